"""Tests for branching strategies and the discreteness predicate."""
import autograd.numpy as np
import pytest

import bnbkit as bb
from bnbkit.branching import (
    First,
    MostFractional,
    get_branch_strategy,
    most_fractional_branching,
)
from bnbkit.traverse import BestFirst, DepthFirst, get_traverse_strategy
from bnbkit.utils import (
    compute_gap,
    gap_closed,
    get_integer_violations,
    is_approx_discrete,
    round_to_integers,
    split_bounds,
)


def is_discrete(v):
    return is_approx_discrete(v, 1e-6, 1e-6)


class TestDiscreteness:
    def test_absolute_tolerance(self):
        assert is_approx_discrete(3.0)
        assert is_approx_discrete(3.0 + 5e-7)
        assert not is_approx_discrete(3.0 + 1e-4)

    def test_relative_tolerance(self):
        # 1e6 + 0.5 is far from an integer in absolute and relative terms
        assert not is_approx_discrete(1e6 + 0.5, atol=1e-6, rtol=1e-9)
        # 0.5 off at 1e6 is within a relative tolerance of 1e-6
        assert is_approx_discrete(1e6 + 0.5, atol=1e-6, rtol=1e-6)

    def test_non_finite_values(self):
        assert not is_approx_discrete(float("inf"))
        assert not is_approx_discrete(float("-inf"))
        assert not is_approx_discrete(float("nan"))

    def test_either_tolerance_suffices(self):
        assert is_approx_discrete(2.001, atol=0.01, rtol=0.0)
        assert is_approx_discrete(2.001, atol=0.0, rtol=0.01)
        assert not is_approx_discrete(2.001, atol=0.0, rtol=0.0)


class TestFirst:
    def test_lowest_fractional_index(self):
        values = [1.0, 2.5, 3.0, 0.3]
        assert First().select(values, [0, 1, 2, 3], is_discrete) == 1

    def test_only_branchable_indices(self):
        values = [1.0, 2.5, 3.0, 0.3]
        assert First().select(values, [3, 2, 0], is_discrete) == 3

    def test_all_discrete(self):
        assert First().select([1.0, 2.0, -3.0], [0, 1, 2], is_discrete) is None


class TestMostFractional:
    def test_furthest_from_integer(self):
        values = [1.1, 2.45, 3.8, 0.3]
        assert MostFractional().select(values, [0, 1, 2, 3], is_discrete) == 1

    def test_ties_lowest_index(self):
        values = [0.0, 1.5, 2.5, 0.5]
        assert MostFractional().select(values, [3, 2, 1], is_discrete) == 1

    def test_all_discrete(self):
        assert MostFractional().select([1.0, 2.0], [0, 1], is_discrete) is None

    def test_non_finite_ranked_last(self):
        values = [float("inf"), 2.2, float("nan")]
        assert MostFractional().select(values, [0, 1, 2], is_discrete) == 1
        assert First().select(values, [0, 1, 2], is_discrete) == 0

    def test_helper_returns_value(self):
        idx, val = most_fractional_branching([(0, 1.1), (4, 0.6), (2, 7.5)])
        assert idx == 2
        assert val == 7.5


class TestStrategyLookup:
    def test_by_name(self):
        assert isinstance(get_branch_strategy("first"), First)
        assert isinstance(get_branch_strategy(bb.MOST_FRACTIONAL), MostFractional)
        assert isinstance(get_branch_strategy("most_infeasible"), MostFractional)
        assert isinstance(get_traverse_strategy("best_first"), BestFirst)
        assert isinstance(get_traverse_strategy(bb.DEPTH_FIRST), DepthFirst)

    def test_unknown_name(self):
        with pytest.raises(ValueError):
            get_branch_strategy("pseudocost")
        with pytest.raises(ValueError):
            get_traverse_strategy("breadth_first")

    def test_custom_object(self):
        class Last:
            def select(self, values, indices, is_discrete):
                return max(indices)

        strategy = Last()
        assert get_branch_strategy(strategy) is strategy

    def test_invalid_object(self):
        with pytest.raises(TypeError):
            get_branch_strategy(42)
        with pytest.raises(TypeError):
            get_traverse_strategy(object())


class TestSplitBounds:
    def test_children_cover_parent_without_overlap(self):
        lbs = np.array([0.0, 1.0, 0.0])
        ubs = np.array([10.0, 5.0, np.inf])
        left, right = split_bounds(lbs, ubs, 1, 2.4)

        assert left["lbs"][1] == 1.0 and left["ubs"][1] == 2.0
        assert right["lbs"][1] == 3.0 and right["ubs"][1] == 5.0
        # adjacent integers: nothing lost between the children, nothing shared
        assert right["lbs"][1] - left["ubs"][1] == 1.0
        assert left["ubs"][1] < 2.4 < right["lbs"][1]

    def test_other_dimensions_unchanged(self):
        lbs = np.array([0.0, 1.0])
        ubs = np.array([10.0, 5.0])
        left, right = split_bounds(lbs, ubs, 0, 7.5)

        assert np.array_equal(left["lbs"], lbs)
        assert np.array_equal(right["ubs"], ubs)
        assert left["ubs"][1] == 5.0 and right["lbs"][1] == 1.0

    def test_parent_arrays_not_mutated(self):
        lbs = np.array([0.0])
        ubs = np.array([4.0])
        split_bounds(lbs, ubs, 0, 1.5)
        assert lbs[0] == 0.0 and ubs[0] == 4.0


def test_integer_violations():
    violations = get_integer_violations([0.5, 1.0, 2.25], [0, 1, 2], is_discrete)
    assert violations == [(0, 0.5), (2, 2.25)]


def test_round_to_integers():
    x = round_to_integers(np.array([1.9999999, 0.4, 2.5000001]), [0, 2])
    assert np.array_equal(x, np.array([2.0, 0.4, 3.0]))


def test_gap():
    assert compute_gap(10.0, 9.0) == pytest.approx(0.1)
    assert compute_gap(0.0, -0.5) == pytest.approx(0.5)
    assert compute_gap(float("inf"), 1.0) == float("inf")
    assert gap_closed(5.0, 5.0, 1e-6, 1e-6)
    assert gap_closed(100.0, 99.95, 1e-6, 1e-3)
    assert not gap_closed(5.0, 4.0, 1e-6, 1e-6)
    assert not gap_closed(float("inf"), 0.0, 1e-6, 1e-6)
