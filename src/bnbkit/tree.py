"""
Branch-and-Bound Tree

The tree is the aggregate state of one branch-and-bound run: the open node
store, the incumbent, the global lower bound, the recorded solutions, the
node-id counter, the objective sense and the options.

Internally everything is stored as a minimization problem. Values returned by
the evaluator are negated on the way in for a maximization problem, and
objective values are negated again on the way out. Nothing in between applies
the sense.

Required hooks (checked by `initialize`):
- branchable_indices(root) -> indices eligible for branching
- evaluate(tree, node) -> (lower, upper), or (nan, nan) if infeasible
- extract_solution(tree, node) -> value stored with a new incumbent

Optional hooks:
- branch(tree, node): add child nodes; the default reads `relaxed_values`
  once, asks the branch strategy for an index and adds the records of
  `branching_nodes_info`
- branching_nodes_info(tree, node, index, value) -> child configuration
  records; the default splits `lbs`/`ubs` of a BoundedNode at floor/ceil
- relaxed_values(tree, node) -> values read by the branch strategy;
  required by the default branch
- on_node_closed(tree, node, reason): observer called once per explored node
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence, Tuple

import autograd.numpy as np

from .branching import BranchStrategy, get_branch_strategy
from .constants import (
    DEFAULT_ATOL,
    DEFAULT_RTOL,
    NodeCloseReason,
    ObjectiveSense,
    TreeStatus,
)
from .errors import InvariantError, MissingHookError
from .node import BBStats, BnBNode, BoundedNode, DefaultNode, NodeSchema
from .search import optimize
from .solution import SolutionStore
from .store import NodeStore
from .traverse import TraverseStrategy, get_traverse_strategy
from .utils import is_approx_discrete, split_bounds

logger = logging.getLogger(__name__)


@dataclass
class Options:
    traverse_strategy: TraverseStrategy
    branch_strategy: BranchStrategy
    atol: float
    rtol: float
    abs_gap: float
    rel_gap: float
    max_nodes: Optional[int] = None
    max_time: Optional[float] = None
    verbose: bool = False
    value_type: Optional[type] = None


@dataclass
class Hooks:
    evaluate: Callable[["BnBTree", BnBNode], Tuple[float, float]]
    extract_solution: Callable[["BnBTree", BnBNode], Any]
    branchable_indices: Callable[[Any], Sequence[int]]
    branch: Callable[["BnBTree", BnBNode], None]
    branching_nodes_info: Callable[["BnBTree", BnBNode, int, float], List[Mapping[str, Any]]]
    relaxed_values: Optional[Callable[["BnBTree", BnBNode], Sequence[float]]]
    on_node_closed: Optional[Callable[["BnBTree", BnBNode, NodeCloseReason], None]] = None


class BnBTree:
    """Holds all the information of the branch-and-bound tree."""

    def __init__(
        self,
        schema: NodeSchema,
        hooks: Hooks,
        options: Options,
        root: Any = None,
        sense: ObjectiveSense = ObjectiveSense.MIN,
        max_solutions: int = 1,
    ):
        self.schema = schema
        self.hooks = hooks
        self.options = options
        self.root = root
        self.sense = sense

        self.incumbent = float("inf")
        self.lower_bound = float("-inf")
        self.nodes = NodeStore()
        self.solutions = SolutionStore(max_solutions)
        self.num_nodes = 0
        self.branching_indices: Tuple[int, ...] = tuple(
            int(i) for i in hooks.branchable_indices(root)
        )

        self.status = TreeStatus.NOT_SOLVED
        self.stats = BBStats()
        self._branch_parent: Optional[BnBNode] = None

    def __repr__(self):
        return (
            f"BnBTree(sense={self.sense.value}, open_nodes={len(self.nodes)}, "
            f"incumbent={self.incumbent}, lower_bound={self.lower_bound}, "
            f"status={self.status.value})"
        )

    # ------------------------------------------------------------------
    # Node lifecycle
    # ------------------------------------------------------------------

    def add_node(self, info: Mapping[str, Any]) -> int:
        """Create an open node from a configuration record and return its id.

        A node added while its parent is being branched inherits the parent's
        lower bound and sits one level deeper. Any other node starts at the
        current global lower bound.
        """
        parent = self._branch_parent
        if parent is not None:
            lower_bound, depth = parent.lower_bound, parent.depth + 1
        else:
            lower_bound, depth = self.lower_bound, 0

        node = self.schema.create(self.num_nodes + 1, info, lower_bound, depth)
        self.num_nodes += 1
        self.nodes.push(node)
        logger.debug(f"Added node {node.node_id} (depth {depth}, bound {lower_bound})")
        return node.node_id

    def set_root(self, info: Mapping[str, Any]) -> int:
        if self.num_nodes:
            raise ValueError("The root node has already been set")
        return self.add_node(info)

    def close_node(self, node: BnBNode, reason: NodeCloseReason = NodeCloseReason.NORMAL) -> None:
        self.nodes.remove(node.node_id)
        if self.hooks.on_node_closed is not None:
            self.hooks.on_node_closed(self, node, reason)

    def set_node_bound(self, node: BnBNode, lb: float, ub: float) -> None:
        """Fold the evaluator's bounds into the node.

        The bounds are converted to minimization form once. A node's lower
        bound only ever tightens: a looser value than the stored one is
        ignored.
        """
        lb, ub = float(lb), float(ub)
        if self.sense == ObjectiveSense.MAX:
            lb, ub = -lb, -ub
        if np.isnan(lb):
            lb = float("-inf")
        if np.isnan(ub):
            ub = float("inf")

        node.lower_bound = max(node.lower_bound, lb)
        node.upper_bound = ub
        self.nodes.update(node.node_id)

    def update_lower_bound(self) -> float:
        """Recompute the global lower bound from the open nodes."""
        if self.nodes:
            bound = self.nodes.min_lower_bound()
        else:
            bound = max(self.lower_bound, self.incumbent)

        if bound < self.lower_bound:
            raise InvariantError(
                f"Global lower bound decreased from {self.lower_bound} to {bound}"
            )
        self.lower_bound = bound
        return bound

    # ------------------------------------------------------------------
    # Incumbent and pruning
    # ------------------------------------------------------------------

    def update_best_solution(self, node: BnBNode) -> bool:
        """Record the node's solution if its upper bound beats the incumbent."""
        if not np.isfinite(node.upper_bound):
            return False
        if node.upper_bound >= self.incumbent:
            return False

        value = self.hooks.extract_solution(self, node)
        value_type = self.options.value_type
        if value_type is not None and not isinstance(value, value_type):
            raise TypeError(
                f"extract_solution returned {type(value).__name__}, expected {value_type.__name__}"
            )
        self.incumbent = node.upper_bound
        self.solutions.record(node.upper_bound, value, node)
        self.stats.solutions_found += 1
        logger.debug(f"New incumbent {self.incumbent} from node {node.node_id}")
        return True

    def bound(self, current_node_id: int) -> int:
        """Close all other open nodes whose lower bound reaches the incumbent."""
        pruned = self.nodes.prune_dominated(self.incumbent, excluding=current_node_id)
        self.stats.nodes_pruned += len(pruned)
        return len(pruned)

    # ------------------------------------------------------------------
    # Branching
    # ------------------------------------------------------------------

    def is_approx_discrete(self, value: float) -> bool:
        return is_approx_discrete(value, self.options.atol, self.options.rtol)

    def get_branching_variable(self, node: BnBNode) -> Optional[Tuple[int, float]]:
        """Index and value to branch on for `node`, or None if every value is discrete.

        `relaxed_values` is called exactly once.
        """
        if self.hooks.relaxed_values is None:
            raise MissingHookError("get_branching_variable needs a 'relaxed_values' hook")
        values = self.hooks.relaxed_values(self, node)
        if values is None:
            return None
        index = self.options.branch_strategy.select(
            values, self.branching_indices, self.is_approx_discrete
        )
        if index is None:
            return None
        return index, float(values[index])

    def branch(self, node: BnBNode) -> None:
        self._branch_parent = node
        try:
            self.hooks.branch(self, node)
        finally:
            self._branch_parent = None

    # ------------------------------------------------------------------
    # Read-out
    # ------------------------------------------------------------------

    def get_solution(self, result: int = 0) -> Any:
        return self.solutions.get(result).value

    def get_objective_value(self, result: int = 0) -> float:
        return self.solutions.read(self.sense, result)

    @property
    def best_bound(self) -> float:
        """Global bound in the problem's own sense."""
        if self.sense == ObjectiveSense.MAX:
            return -self.lower_bound
        return self.lower_bound

    def optimize(self) -> TreeStatus:
        return optimize(self)


def default_branch(tree: BnBTree, node: BnBNode) -> None:
    """Branch on the index chosen by the tree's branch strategy, if any."""
    choice = tree.get_branching_variable(node)
    if choice is None:
        return
    index, value = choice
    for info in tree.hooks.branching_nodes_info(tree, node, index, value):
        tree.add_node(info)


def default_branching_nodes_info(
    tree: BnBTree, node: BnBNode, index: int, value: float
) -> List[Dict[str, Any]]:
    """Split the bounds of dimension `index` around its relaxed value."""
    left, right = split_bounds(node.lbs, node.ubs, index, value)
    return [left, right]


def _require_hook(name: str, hook: Any) -> Callable:
    if hook is None:
        raise MissingHookError(f"Required hook '{name}' was not provided")
    if not callable(hook):
        raise MissingHookError(f"Hook '{name}' must be callable, got {type(hook).__name__}")
    return hook


def _optional_hook(name: str, hook: Any, default: Callable | None) -> Callable | None:
    if hook is None:
        return default
    return _require_hook(name, hook)


def _tolerance(name: str, value: float) -> float:
    value = float(value)
    if not value >= 0:
        raise ValueError(f"{name} must be non-negative, got {value}")
    return value


def initialize(
    *,
    evaluate: Callable | None = None,
    extract_solution: Callable | None = None,
    branchable_indices: Callable | None = None,
    branch: Callable | None = None,
    branching_nodes_info: Callable | None = None,
    relaxed_values: Callable | None = None,
    on_node_closed: Callable | None = None,
    traverse_strategy: TraverseStrategy | str = "best_first",
    branch_strategy: BranchStrategy | str = "first",
    atol: float = DEFAULT_ATOL,
    rtol: float = DEFAULT_RTOL,
    abs_gap: float | None = None,
    rel_gap: float | None = None,
    node_type: type = DefaultNode,
    value_type: type | None = None,
    root: Any = None,
    sense: ObjectiveSense | str = ObjectiveSense.MIN,
    max_solutions: int = 1,
    max_nodes: int | None = None,
    max_time: float | None = None,
    verbose: bool = False,
) -> BnBTree:
    """
    Initialize a branch-and-bound tree.

    Args:
        evaluate: Evaluates a node's relaxation, returns (lower, upper) in the
            problem's own sense, or (nan, nan) if the relaxation is infeasible.
            For a maximization problem the first value is the relaxation bound
            (an upper bound on the objective). A nan second value means no
            feasible point is known at this node.
        extract_solution: Returns the solution value for a new incumbent.
        branchable_indices: Returns the indices eligible for branching, given
            the root payload.
        branch: Custom branching hook replacing the default split.
        branching_nodes_info: Custom child records for the default branch hook,
            called as (tree, node, index, value).
        relaxed_values: Values read by the branch strategy, required by the
            default branch hook. Called once per branched node.
        on_node_closed: Observer called as (tree, node, NodeCloseReason).
        traverse_strategy: "best_first" (default), "depth_first" or an object
            with select(store).
        branch_strategy: "first" (default), "most_fractional" or an object
            with select(values, indices, is_discrete).
        atol: Absolute tolerance to check whether a value is discrete
            (default: 1e-6).
        rtol: Relative tolerance to check whether a value is discrete
            (default: 1e-6).
        abs_gap: Absolute optimality gap tolerance (default: atol).
        rel_gap: Relative optimality gap tolerance (default: rtol).
        node_type: Node dataclass, subclass of BnBNode (default: DefaultNode).
        value_type: Expected type of the values returned by extract_solution
            (default: unchecked).
        root: Root payload given to branchable_indices.
        sense: "min" (default) or "max".
        max_solutions: Number of solutions kept, best first (default: 1).
        max_nodes: Maximum nodes to explore (default: unlimited).
        max_time: Maximum time in seconds (default: unlimited).
        verbose: Print progress (default: False).

    Returns:
        An empty BnBTree, the input for `set_root` and `optimize`.
    """
    evaluate = _require_hook("evaluate", evaluate)
    extract_solution = _require_hook("extract_solution", extract_solution)
    branchable_indices = _require_hook("branchable_indices", branchable_indices)
    on_node_closed = _optional_hook("on_node_closed", on_node_closed, None)

    schema = NodeSchema(node_type)

    branch = _optional_hook("branch", branch, default_branch)
    branching_nodes_info = _optional_hook(
        "branching_nodes_info", branching_nodes_info, None
    )
    if branching_nodes_info is None:
        if branch is default_branch and not issubclass(node_type, BoundedNode):
            raise MissingHookError(
                f"Node type {node_type.__name__} has no 'lbs'/'ubs' bounds: provide "
                f"a 'branch' or 'branching_nodes_info' hook"
            )
        branching_nodes_info = default_branching_nodes_info
    relaxed_values = _optional_hook("relaxed_values", relaxed_values, None)
    if branch is default_branch and relaxed_values is None:
        raise MissingHookError(
            "The default branch hook reads 'relaxed_values': provide it or a 'branch' hook"
        )

    if value_type is not None and not isinstance(value_type, type):
        raise TypeError(f"value_type must be a type, got {value_type!r}")

    atol = _tolerance("atol", atol)
    rtol = _tolerance("rtol", rtol)
    options = Options(
        traverse_strategy=get_traverse_strategy(traverse_strategy),
        branch_strategy=get_branch_strategy(branch_strategy),
        atol=atol,
        rtol=rtol,
        abs_gap=atol if abs_gap is None else _tolerance("abs_gap", abs_gap),
        rel_gap=rtol if rel_gap is None else _tolerance("rel_gap", rel_gap),
        max_nodes=None if max_nodes is None else int(max_nodes),
        max_time=None if max_time is None else float(max_time),
        verbose=bool(verbose),
        value_type=value_type,
    )

    hooks = Hooks(
        evaluate=evaluate,
        extract_solution=extract_solution,
        branchable_indices=branchable_indices,
        branch=branch,
        branching_nodes_info=branching_nodes_info,
        relaxed_values=relaxed_values,
        on_node_closed=on_node_closed,
    )

    return BnBTree(
        schema,
        hooks,
        options,
        root=root,
        sense=ObjectiveSense(str(sense).lower()),
        max_solutions=int(max_solutions),
    )


def set_root(tree: BnBTree, info: Mapping[str, Any]) -> int:
    """Create node 1 from `info` as the sole open node."""
    return tree.set_root(info)


def add_node(tree: BnBTree, info: Mapping[str, Any]) -> int:
    return tree.add_node(info)


def get_solution(tree: BnBTree, result: int = 0) -> Any:
    """Return the solution value of the best (or `result`-th) solution."""
    return tree.get_solution(result)


def get_objective_value(tree: BnBTree, result: int = 0) -> float:
    """Return the objective value of the best (or `result`-th) solution."""
    return tree.get_objective_value(result)
