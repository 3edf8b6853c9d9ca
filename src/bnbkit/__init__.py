__all__ = [
    "BnBTree",
    "BnBNode",
    "DefaultNode",
    "BoundedNode",
    "NodeSchema",
    "BBStats",
    "NodeStore",
    "Solution",
    "SolutionStore",
    "Options",
    "TraverseStrategy",
    "BestFirst",
    "DepthFirst",
    "PriorityTraverse",
    "BranchStrategy",
    "First",
    "MostFractional",
    "ObjectiveSense",
    "NodeSelection",
    "BranchingStrategy",
    "NodeCloseReason",
    "TreeStatus",
    "BnBError",
    "MissingHookError",
    "NodeSchemaError",
    "NoSolutionError",
    "InvariantError",
    "MIN",
    "MAX",
    "BEST_FIRST",
    "DEPTH_FIRST",
    "FIRST",
    "MOST_FRACTIONAL",
    "initialize",
    "set_root",
    "add_node",
    "optimize",
    "get_solution",
    "get_objective_value",
    "is_approx_discrete",
]

from .constants import (
    BranchingStrategy,
    NodeCloseReason,
    NodeSelection,
    ObjectiveSense,
    TreeStatus,
)
from .errors import (
    BnBError,
    InvariantError,
    MissingHookError,
    NodeSchemaError,
    NoSolutionError,
)
from .node import BBStats, BnBNode, BoundedNode, DefaultNode, NodeSchema
from .store import NodeStore
from .solution import Solution, SolutionStore
from .traverse import BestFirst, DepthFirst, PriorityTraverse, TraverseStrategy
from .branching import BranchStrategy, First, MostFractional
from .search import optimize
from .tree import (
    BnBTree,
    Options,
    add_node,
    get_objective_value,
    get_solution,
    initialize,
    set_root,
)
from .utils import is_approx_discrete

MIN = ObjectiveSense.MIN
MAX = ObjectiveSense.MAX

BEST_FIRST = NodeSelection.BEST_FIRST
DEPTH_FIRST = NodeSelection.DEPTH_FIRST

FIRST = BranchingStrategy.FIRST
MOST_FRACTIONAL = BranchingStrategy.MOST_FRACTIONAL
