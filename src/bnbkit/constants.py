from enum import StrEnum


class ObjectiveSense(StrEnum):
    MIN = "min"
    MAX = "max"


class NodeSelection(StrEnum):
    """Node selection (traverse) strategy."""

    BEST_FIRST = "best_first"  # Smallest lower bound, oldest node on ties
    DEPTH_FIRST = "depth_first"  # Most recently created open node


class BranchingStrategy(StrEnum):
    """Branching dimension selection strategy."""

    FIRST = "first"  # Lowest index that is not discrete
    MOST_FRACTIONAL = "most_fractional"  # Furthest from the nearest integer

    @classmethod
    def _missing_(cls, value):
        # "most infeasible" is the older name of the same rule
        if value == "most_infeasible":
            return cls.MOST_FRACTIONAL
        return None


class NodeCloseReason(StrEnum):
    NORMAL = "normal"
    INFEASIBLE = "infeasible"
    DOMINATED = "dominated"


class TreeStatus(StrEnum):
    OPTIMAL = "optimal"
    INFEASIBLE = "infeasible"
    UNBOUNDED = "unbounded"
    NODE_LIMIT = "node_limit"
    TIME_LIMIT = "time_limit"
    NOT_SOLVED = "not_solved"


DEFAULT_ATOL = 1e-6
DEFAULT_RTOL = 1e-6
DEFAULT_NLP_FTOL = 1e-9
DEFAULT_NLP_MAXITER = 1000
