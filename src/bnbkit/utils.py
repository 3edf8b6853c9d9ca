"""
Utility Functions for Branch-and-Bound

This module contains utility functions shared across the B&B implementation,
including integrality checks, child bound splitting and gap computation.
"""

from __future__ import annotations

from typing import Callable, Dict, List, Sequence, Tuple

import autograd.numpy as np

from .constants import DEFAULT_ATOL, DEFAULT_RTOL


def is_approx_discrete(
    value: float,
    atol: float = DEFAULT_ATOL,
    rtol: float = DEFAULT_RTOL,
) -> bool:
    """Return whether `value` is within either tolerance of the nearest integer.

    Non-finite values (inf, nan) are never discrete.
    """
    if not np.isfinite(value):
        return False
    frac = abs(value - round(value))
    return frac <= atol or frac <= rtol * abs(value)


def get_integer_violations(
    x: Sequence[float],
    int_indices: Sequence[int],
    is_discrete: Callable[[float], bool],
) -> List[Tuple[int, float]]:
    """Get list of (index, value) for variables violating integrality."""
    violations = []

    for idx in int_indices:
        val = float(x[idx])
        if not is_discrete(val):
            violations.append((idx, val))

    return violations


def round_to_integers(
    x: np.ndarray,
    int_indices: Sequence[int],
) -> np.ndarray:
    """Round integer variables to nearest integers."""
    x_rounded = np.array(x, dtype=float)

    for idx in int_indices:
        x_rounded[idx] = round(x_rounded[idx])

    return x_rounded


def split_bounds(
    lbs: np.ndarray,
    ubs: np.ndarray,
    branch_idx: int,
    branch_val: float,
) -> Tuple[Dict[str, np.ndarray], Dict[str, np.ndarray]]:
    """Create the bound records of the two children of a standard integer branch.

    The left child keeps x[i] <= floor(val), the right child x[i] >= ceil(val),
    so at a fractional value the two children neither overlap nor leave a gap.
    """
    left_ubs = np.array(ubs, dtype=float)
    left_ubs[branch_idx] = np.floor(branch_val)

    right_lbs = np.array(lbs, dtype=float)
    right_lbs[branch_idx] = np.ceil(branch_val)

    left = {"lbs": np.array(lbs, dtype=float), "ubs": left_ubs}
    right = {"lbs": right_lbs, "ubs": np.array(ubs, dtype=float)}
    return left, right


def compute_gap(incumbent: float, best_bound: float) -> float:
    """Relative gap between incumbent and bound, absolute when the incumbent is ~0."""
    if not np.isfinite(incumbent) or not np.isfinite(best_bound):
        return float("inf")
    if abs(incumbent) > 1e-10:
        return abs(incumbent - best_bound) / abs(incumbent)
    return abs(incumbent - best_bound)


def gap_closed(
    incumbent: float,
    best_bound: float,
    abs_gap: float,
    rel_gap: float,
) -> bool:
    if not np.isfinite(incumbent):
        return False
    diff = incumbent - best_bound
    return diff <= abs_gap or diff <= rel_gap * abs(incumbent)
