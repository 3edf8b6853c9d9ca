"""Tests for the LP relaxation hooks."""
import autograd.numpy as np
import pytest

import bnbkit as bb
from bnbkit.relaxations import LinearProgram, MIPNode, build_linear_tree


def knapsack_program(sense="max"):
    return LinearProgram(
        c=[1.0, 1.2, 3.2],
        A_ub=[[0.5, 3.1, 4.2], [1.9, 0.7, 0.2], [2.9, -2.3, 4.2]],
        b_ub=[6.1, 8.1, 10.5],
        sense=sense,
    )


def test_maximize_three_variables():
    tree = build_linear_tree(knapsack_program())
    status = tree.optimize()

    assert status == bb.TreeStatus.OPTIMAL
    assert np.array_equal(tree.get_solution(), [2.0, 0.0, 1.0])
    assert np.isclose(tree.get_objective_value(), 5.2)
    assert tree.best_bound == pytest.approx(5.2)


@pytest.mark.parametrize(
    "options",
    [
        {"branch_strategy": "most_fractional"},
        {"traverse_strategy": "depth_first"},
        {"traverse_strategy": "depth_first", "branch_strategy": "most_infeasible"},
    ],
)
def test_strategies_agree(options):
    tree = build_linear_tree(knapsack_program(), **options)
    tree.optimize()

    assert np.array_equal(tree.get_solution(), [2.0, 0.0, 1.0])
    assert np.isclose(tree.get_objective_value(), 5.2)


def test_minimize_reversed_constraints():
    A = np.array([[0.5, 3.1, 4.2], [1.9, 0.7, 0.2], [2.9, -2.3, 4.2]])
    b = np.array([6.1, 8.1, 10.5])
    # A x >= b written as -A x <= -b
    program = LinearProgram(c=[1.0, 1.2, 3.2], A_ub=-A, b_ub=-b)
    tree = build_linear_tree(program)
    status = tree.optimize()

    assert status == bb.TreeStatus.OPTIMAL
    assert np.array_equal(tree.get_solution(), [6.0, 1.0, 0.0])
    assert np.isclose(tree.get_objective_value(), 7.2)


def test_minimize_covering_constraint():
    # 3x + 4y >= 10.5 written as -3x - 4y <= -10.5
    program = LinearProgram(
        c=[2.0, 3.1],
        A_ub=[[-3.0, -4.0]],
        b_ub=[-10.5],
        ubs=[10.0, 10.0],
    )
    tree = build_linear_tree(program)
    status = tree.optimize()

    assert status == bb.TreeStatus.OPTIMAL
    assert np.array_equal(tree.get_solution(), [4.0, 0.0])
    assert np.isclose(tree.get_objective_value(), 8.0)
    # the LP relaxation value at the root is below the integer optimum
    assert tree.stats.nodes_explored > 1


def test_continuous_variables_not_branched():
    program = LinearProgram(
        c=[1.0, 2.0],
        A_ub=[[1.0, 1.0]],
        b_ub=[3.5],
        ubs=[10.0, 1.5],
        integer=[1],
        sense="max",
    )
    tree = build_linear_tree(program)
    tree.optimize()

    x = tree.get_solution()
    assert np.isclose(x[0], 2.5)
    assert x[1] == 1.0
    assert np.isclose(tree.get_objective_value(), 4.5)
    assert tree.branching_indices == (1,)


def test_infeasible_program():
    program = LinearProgram(c=[1.0], lbs=[0.2], ubs=[0.8])
    closed = []
    tree = build_linear_tree(
        program, on_node_closed=lambda t, n, r: closed.append((n.node_id, n.status, r))
    )
    status = tree.optimize()

    assert status == bb.TreeStatus.INFEASIBLE
    assert closed == [
        (1, "optimal", bb.NodeCloseReason.NORMAL),
        (2, "infeasible", bb.NodeCloseReason.INFEASIBLE),
        (3, "infeasible", bb.NodeCloseReason.INFEASIBLE),
    ]
    with pytest.raises(bb.NoSolutionError):
        tree.get_solution()


def test_infeasible_constraints():
    program = LinearProgram(c=[1.0, 1.0], A_eq=[[1.0, 1.0]], b_eq=[-1.0])
    tree = build_linear_tree(program)
    assert tree.optimize() == bb.TreeStatus.INFEASIBLE
    assert tree.stats.nodes_infeasible == 1


def test_nodes_carry_relaxed_solution():
    tree = build_linear_tree(knapsack_program(), max_nodes=1)
    tree.optimize()

    for child in tree.nodes:
        assert isinstance(child, MIPNode)
        assert child.status == "not_called"
        assert child.x is None
    assert tree.solutions.capacity == 1


def test_keeps_several_solutions():
    tree = build_linear_tree(
        knapsack_program(), traverse_strategy="depth_first", max_solutions=5
    )
    tree.optimize()

    objectives = [tree.get_objective_value(i) for i in range(len(tree.solutions))]
    assert objectives == sorted(objectives, reverse=True)
    assert np.isclose(objectives[0], 5.2)


class TestLinearProgram:
    def test_defaults(self):
        program = LinearProgram(c=[1.0, 2.0])
        assert np.array_equal(program.lbs, [0.0, 0.0])
        assert np.all(np.isposinf(program.ubs))
        assert program.integer == [0, 1]
        assert program.sense == bb.MIN
        assert program.num_vars == 2

    def test_constraint_pairs(self):
        with pytest.raises(ValueError, match="A_ub"):
            LinearProgram(c=[1.0], A_ub=[[1.0]])
        with pytest.raises(ValueError, match="A_eq"):
            LinearProgram(c=[1.0], b_eq=[1.0])

    def test_bounds_shape(self):
        with pytest.raises(ValueError, match="shape"):
            LinearProgram(c=[1.0, 2.0], lbs=[0.0])

    def test_integer_indices(self):
        with pytest.raises(ValueError, match="out of bounds"):
            LinearProgram(c=[1.0, 2.0], integer=[2])

    def test_sense(self):
        assert LinearProgram(c=[1.0], sense="MAX").sense == bb.MAX
        with pytest.raises(ValueError):
            LinearProgram(c=[1.0], sense="maximise")


def test_unbounded_minimize():
    tree = build_linear_tree(LinearProgram(c=[-1.0]))
    status = tree.optimize()

    assert status == bb.TreeStatus.UNBOUNDED
    assert tree.best_bound == float("-inf")
    assert tree.stats.nodes_infeasible == 0
    with pytest.raises(bb.NoSolutionError):
        tree.get_solution()


def test_unbounded_maximize():
    program = LinearProgram(
        c=[1.0, 1.0], A_ub=[[0.0, 1.0]], b_ub=[2.5], sense="max"
    )
    tree = build_linear_tree(program)

    assert tree.optimize() == bb.TreeStatus.UNBOUNDED
    assert tree.best_bound == float("inf")
