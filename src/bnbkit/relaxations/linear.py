"""
Linear Relaxation Hooks

Evaluates the LP relaxation of a mixed-integer linear program at every node
with SciPy's HiGHS interface. Each node carries its own variable bounds; the
default floor/ceil split of the tree tightens them when branching.

Example:
    program = LinearProgram(
        c=[1.0, 1.2, 3.2],
        A_ub=[[0.5, 3.1, 4.2], [1.9, 0.7, 0.2], [2.9, -2.3, 4.2]],
        b_ub=[6.1, 8.1, 10.5],
        sense="max",
    )
    tree = build_tree(program)
    tree.optimize()
    tree.get_solution()  # array([2., 0., 1.])
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence, Tuple

import autograd.numpy as np
from scipy.optimize import linprog

from ..constants import ObjectiveSense
from ..node import BnBNode, BoundedNode
from ..tree import BnBTree, initialize, set_root
from ..utils import round_to_integers

logger = logging.getLogger(__name__)


@dataclass(kw_only=True, eq=False)
class MIPNode(BoundedNode):
    """Bounded node recording the status and solution of its relaxation."""

    status: str = "not_called"
    x: Optional[np.ndarray] = None


class LinearProgram:
    """
    A mixed-integer linear program

        min/max   c^T x
        s.t.      A_ub x <= b_ub
                  A_eq x == b_eq
                  lbs <= x <= ubs
                  x[i] integer for i in `integer`
    """

    def __init__(
        self,
        c: Sequence[float],
        A_ub: Sequence[Sequence[float]] | None = None,
        b_ub: Sequence[float] | None = None,
        A_eq: Sequence[Sequence[float]] | None = None,
        b_eq: Sequence[float] | None = None,
        lbs: Sequence[float] | None = None,
        ubs: Sequence[float] | None = None,
        integer: Sequence[int] | None = None,
        sense: ObjectiveSense | str = ObjectiveSense.MIN,
    ):
        self.c = np.asarray(c, dtype=float)
        n = self.c.size

        self.A_ub = None if A_ub is None else np.atleast_2d(np.asarray(A_ub, dtype=float))
        self.b_ub = None if b_ub is None else np.asarray(b_ub, dtype=float)
        self.A_eq = None if A_eq is None else np.atleast_2d(np.asarray(A_eq, dtype=float))
        self.b_eq = None if b_eq is None else np.asarray(b_eq, dtype=float)
        if (self.A_ub is None) != (self.b_ub is None):
            raise ValueError("A_ub and b_ub must be given together")
        if (self.A_eq is None) != (self.b_eq is None):
            raise ValueError("A_eq and b_eq must be given together")

        self.lbs = np.zeros(n) if lbs is None else np.asarray(lbs, dtype=float)
        self.ubs = np.full(n, np.inf) if ubs is None else np.asarray(ubs, dtype=float)
        if self.lbs.shape != (n,) or self.ubs.shape != (n,):
            raise ValueError(f"Variable bounds must have shape ({n},)")

        self.integer = list(range(n)) if integer is None else [int(i) for i in integer]
        for idx in self.integer:
            if not 0 <= idx < n:
                raise ValueError(f"Integer index {idx} out of bounds for {n} variables")

        self.sense = ObjectiveSense(str(sense).lower())

    @property
    def num_vars(self) -> int:
        return self.c.size

    def root_info(self) -> Dict[str, Any]:
        """Configuration record of the root node."""
        return {"lbs": self.lbs.copy(), "ubs": self.ubs.copy()}


def _scipy_bounds(lbs: np.ndarray, ubs: np.ndarray) -> List[Tuple[float | None, float | None]]:
    return [
        (None if np.isneginf(lb) else float(lb), None if np.isposinf(ub) else float(ub))
        for lb, ub in zip(lbs, ubs)
    ]


class LinearRelaxation:
    """Tree hooks solving LP relaxations of a LinearProgram."""

    def __init__(self, program: LinearProgram, method: str = "highs"):
        self.program = program
        self.method = method
        # linprog always minimizes
        self._c = -program.c if program.sense == ObjectiveSense.MAX else program.c

    def branchable_indices(self, root: LinearProgram) -> List[int]:
        return list(root.integer)

    def evaluate(self, tree: BnBTree, node: MIPNode) -> Tuple[float, float]:
        program = self.program
        if np.any(node.lbs > node.ubs):
            node.status = "infeasible"
            return float("nan"), float("nan")

        result = linprog(
            self._c,
            A_ub=program.A_ub,
            b_ub=program.b_ub,
            A_eq=program.A_eq,
            b_eq=program.b_eq,
            bounds=_scipy_bounds(node.lbs, node.ubs),
            method=self.method,
        )

        if result.status == 2:
            node.status = "infeasible"
            return float("nan"), float("nan")
        if result.status == 3:
            node.status = "unbounded"
            unbounded = float("inf") if program.sense == ObjectiveSense.MAX else float("-inf")
            return unbounded, float("nan")
        if not result.success:
            logger.warning(f"LP relaxation at node {node.node_id} failed: {result.message}")
            node.status = "error"
            return float("nan"), float("nan")

        node.status = "optimal"
        node.x = np.asarray(result.x, dtype=float)
        obj = float(result.fun)
        if program.sense == ObjectiveSense.MAX:
            obj = -obj

        if all(tree.is_approx_discrete(node.x[i]) for i in program.integer):
            return obj, obj
        return obj, float("nan")

    def relaxed_values(self, tree: BnBTree, node: MIPNode) -> np.ndarray:
        return node.x

    def extract_solution(self, tree: BnBTree, node: BnBNode) -> np.ndarray:
        return round_to_integers(node.x, self.program.integer)


def build_tree(program: LinearProgram, **options) -> BnBTree:
    """Initialize a tree with LinearRelaxation hooks and install the root node."""
    relaxation = LinearRelaxation(program)
    tree = initialize(
        evaluate=relaxation.evaluate,
        extract_solution=relaxation.extract_solution,
        branchable_indices=relaxation.branchable_indices,
        relaxed_values=relaxation.relaxed_values,
        node_type=MIPNode,
        root=program,
        sense=program.sense,
        **options,
    )
    set_root(tree, program.root_info())
    return tree
