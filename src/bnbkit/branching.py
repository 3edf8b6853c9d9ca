"""
Branching Variable Selection Strategies

This module implements the strategies for selecting which dimension to
branch on when the default branch hook splits a node.

A branch strategy receives the node's current values, the branchable indices
of the tree and the tree's discreteness predicate. It returns the index to
branch on, or None when every branchable value is already discrete.

Strategies:
- FIRST: Branch on the lowest index that is not discrete
- MOST_FRACTIONAL: Branch on the value furthest from the nearest integer
"""

from __future__ import annotations

from typing import Callable, List, Protocol, Sequence, Tuple

import autograd.numpy as np

from .constants import BranchingStrategy
from .utils import get_integer_violations


class BranchStrategy(Protocol):
    def select(
        self,
        values: Sequence[float],
        indices: Sequence[int],
        is_discrete: Callable[[float], bool],
    ) -> int | None:
        ...


def first_branching(violations: List[Tuple[int, float]]) -> Tuple[int, float]:
    """Select the violated variable with the lowest index."""
    return min(violations, key=lambda v: v[0])


def most_fractional_branching(
    violations: List[Tuple[int, float]],
) -> Tuple[int, float]:
    """Select the most fractional variable for branching."""
    best_idx, best_val = min(violations, key=lambda v: v[0])
    best_score = _fractionality_score(best_val)

    for idx, val in violations:
        score = _fractionality_score(val)
        if score > best_score or (score == best_score and idx < best_idx):
            best_idx = idx
            best_val = val
            best_score = score

    return best_idx, best_val


def _fractionality_score(val: float) -> float:
    """Distance to the nearest integer (higher = more fractional = better to branch).

    Non-finite values score below every finite one.
    """
    if not np.isfinite(val):
        return -1.0
    return abs(val - round(val))


class First:
    def select(self, values, indices, is_discrete):
        violations = get_integer_violations(values, indices, is_discrete)
        if not violations:
            return None
        return first_branching(violations)[0]

    def __repr__(self):
        return "First()"


class MostFractional:
    def select(self, values, indices, is_discrete):
        violations = get_integer_violations(values, indices, is_discrete)
        if not violations:
            return None
        return most_fractional_branching(violations)[0]

    def __repr__(self):
        return "MostFractional()"


_BUILTIN = {
    BranchingStrategy.FIRST: First,
    BranchingStrategy.MOST_FRACTIONAL: MostFractional,
}


def get_branch_strategy(strategy: BranchStrategy | BranchingStrategy | str) -> BranchStrategy:
    """Resolve a strategy name or object to a branch strategy object."""
    if isinstance(strategy, str):
        return _BUILTIN[BranchingStrategy(strategy)]()
    if not callable(getattr(strategy, "select", None)):
        raise TypeError(
            f"Branch strategy must define select(values, indices, is_discrete), "
            f"got {type(strategy).__name__}"
        )
    return strategy
