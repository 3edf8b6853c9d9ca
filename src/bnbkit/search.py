"""
Branch-and-Bound Search Loop

The steps of one iteration are the following:

    node = select(traverse_strategy)        # SELECT
    lb, ub = evaluate(tree, node)           # EVALUATE
    if lb and ub are nan:                   # infeasible relaxation
        close node, continue
    set_node_bound(node, lb, ub)            # FOLD_BOUNDS
    if node.lower_bound is -inf:            # unbounded relaxation
        close node, stop
    if node.lower_bound >= incumbent:       # dominated
        close node, continue
    if update_best_solution(node):          # new incumbent
        bound(node)                         # global prune
        check_consistency()
        if gap closed: close node, stop
    close node                              # CLOSE
    branch(node)                            # BRANCH

The loop runs until no open node is left, the optimality gap closes, or a
node/time limit is reached. Limits are only checked between iterations; an
evaluation in progress is never interrupted.
"""

from __future__ import annotations

import logging
import time
from typing import TYPE_CHECKING

import autograd.numpy as np

from .constants import NodeCloseReason, TreeStatus
from .utils import compute_gap, gap_closed

if TYPE_CHECKING:
    from .tree import BnBTree

logger = logging.getLogger(__name__)


def terminated(tree: BnBTree) -> bool:
    """Return True when no open node is left."""
    return not tree.nodes


def _evaluate(tree: BnBTree, node):
    result = tree.hooks.evaluate(tree, node)
    try:
        lb, ub = result
    except (TypeError, ValueError):
        raise TypeError(
            f"evaluate must return a (lower, upper) pair, got {result!r}"
        ) from None
    return float(lb), float(ub)


def _print_progress(tree: BnBTree, elapsed: float, marker: str = "") -> None:
    stats = tree.stats
    inc_str = (
        f"{tree.incumbent:>12.4e}" if np.isfinite(tree.incumbent) else "         inf"
    )
    bound_str = (
        f"{tree.lower_bound:>12.4e}" if tree.lower_bound > -1e30 else "        -inf"
    )
    gap = compute_gap(tree.incumbent, tree.lower_bound)
    print(
        f"{stats.nodes_explored:>8} {inc_str} {bound_str} {gap:>10.2e} "
        f"{elapsed:>7.1f}s {marker}".rstrip()
    )


def optimize(tree: BnBTree) -> TreeStatus:
    """
    Optimize the problem using a branch-and-bound approach.

    Returns:
        The final TreeStatus, also stored on `tree.status`.
    """
    options = tree.options
    stats = tree.stats
    start_time = time.time()
    tree.status = TreeStatus.NOT_SOLVED

    if options.verbose:
        print(
            f"Branch-and-Bound: {len(tree.branching_indices)} branchable indices, "
            f"sense {tree.sense.value}"
        )
        print(f"Strategy: {options.traverse_strategy!r}, Branching: {options.branch_strategy!r}")
        print(f"{'Nodes':>8} {'Incumbent':>12} {'Best Bound':>12} {'Gap':>10} {'Time':>8}")
        print("-" * 54)

    while not terminated(tree):
        tree.update_lower_bound()

        elapsed = time.time() - start_time
        if options.max_time is not None and elapsed > options.max_time:
            logger.info(f"Time limit reached ({options.max_time}s)")
            tree.status = TreeStatus.TIME_LIMIT
            break
        if options.max_nodes is not None and stats.nodes_explored >= options.max_nodes:
            logger.info(f"Node limit reached ({options.max_nodes})")
            tree.status = TreeStatus.NODE_LIMIT
            break

        node = tree.nodes.select(options.traverse_strategy)
        stats.nodes_explored += 1

        lb, ub = _evaluate(tree, node)
        # if the relaxation was infeasible we simply close the node and continue
        if np.isnan(lb) and np.isnan(ub):
            logger.debug(f"Node {node.node_id} infeasible")
            stats.nodes_infeasible += 1
            tree.close_node(node, NodeCloseReason.INFEASIBLE)
            continue

        tree.set_node_bound(node, lb, ub)
        tree.update_lower_bound()

        if np.isneginf(node.lower_bound) and not np.isnan(lb):
            logger.info(f"Relaxation at node {node.node_id} is unbounded")
            tree.close_node(node, NodeCloseReason.NORMAL)
            tree.status = TreeStatus.UNBOUNDED
            break

        if node.lower_bound >= tree.incumbent:
            logger.debug(f"Node {node.node_id} dominated by incumbent {tree.incumbent}")
            stats.nodes_dominated += 1
            tree.close_node(node, NodeCloseReason.DOMINATED)
            continue

        if tree.update_best_solution(node):
            tree.bound(node.node_id)
            tree.nodes.check_consistency()
            tree.update_lower_bound()
            if options.verbose:
                _print_progress(tree, time.time() - start_time, "*")
            if gap_closed(tree.incumbent, tree.lower_bound, options.abs_gap, options.rel_gap):
                logger.debug(f"Optimality gap closed at node {node.node_id}")
                tree.close_node(node, NodeCloseReason.NORMAL)
                tree.status = TreeStatus.OPTIMAL
                break

        tree.close_node(node, NodeCloseReason.NORMAL)
        tree.branch(node)

        if options.verbose and stats.nodes_explored % 100 == 0:
            _print_progress(tree, time.time() - start_time)

    if tree.status != TreeStatus.UNBOUNDED:
        tree.update_lower_bound()
    if tree.status == TreeStatus.NOT_SOLVED:
        tree.status = TreeStatus.OPTIMAL if len(tree.solutions) else TreeStatus.INFEASIBLE

    stats.best_bound = tree.best_bound
    stats.gap = compute_gap(tree.incumbent, tree.lower_bound)
    stats.solve_time = time.time() - start_time

    if options.verbose:
        _print_progress(tree, stats.solve_time)
        print(f"Status: {tree.status.value}, nodes explored: {stats.nodes_explored}")
    logger.info(
        f"Branch-and-bound finished: {tree.status.value} after "
        f"{stats.nodes_explored} nodes"
    )

    return tree.status
