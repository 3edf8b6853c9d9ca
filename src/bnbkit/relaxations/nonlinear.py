"""
Nonlinear Relaxation Hooks

Evaluates the continuous relaxation of a mixed-integer nonlinear program at
every node with scipy.optimize.minimize. Gradients of the objective and
Jacobians of the constraints are obtained with autograd, so the objective and
constraint functions must be written with `autograd.numpy`.

The relaxation value is a valid bound only when the relaxation is solved to
global optimality, i.e. for convex programs. For nonconvex programs the
search is a heuristic.

Child nodes are warm started from their parent's relaxed solution, projected
to the child's bounds.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Dict, List, Sequence, Tuple

import autograd.numpy as np
from autograd import grad, jacobian
from scipy.optimize import minimize

from ..constants import DEFAULT_ATOL, DEFAULT_NLP_FTOL, DEFAULT_NLP_MAXITER, ObjectiveSense
from ..node import BnBNode
from ..tree import BnBTree, default_branching_nodes_info, initialize, set_root
from ..utils import round_to_integers
from .linear import MIPNode, _scipy_bounds

logger = logging.getLogger(__name__)


class NonlinearProgram:
    """
    A mixed-integer nonlinear program

        min/max   f(x)
        s.t.      g(x) >= 0   for constraints of type "ineq"
                  h(x) == 0   for constraints of type "eq"
                  lbs <= x <= ubs
                  x[i] integer for i in `integer`

    Constraints are given as dictionaries {"type": "ineq" | "eq", "fun": g},
    the convention of scipy.optimize.minimize.
    """

    def __init__(
        self,
        objective: Callable[[np.ndarray], float],
        x0: Sequence[float],
        constraints: Sequence[Dict[str, Any]] | None = None,
        lbs: Sequence[float] | None = None,
        ubs: Sequence[float] | None = None,
        integer: Sequence[int] | None = None,
        sense: ObjectiveSense | str = ObjectiveSense.MIN,
    ):
        self.objective = objective
        self.x0 = np.asarray(x0, dtype=float)
        n = self.x0.size

        self.constraints = list(constraints) if constraints is not None else []
        for c in self.constraints:
            if c.get("type") not in ("ineq", "eq"):
                raise ValueError(f"Constraint type must be 'ineq' or 'eq', got {c.get('type')!r}")
            if not callable(c.get("fun")):
                raise ValueError("Constraint 'fun' must be callable")

        self.lbs = np.full(n, -np.inf) if lbs is None else np.asarray(lbs, dtype=float)
        self.ubs = np.full(n, np.inf) if ubs is None else np.asarray(ubs, dtype=float)
        if self.lbs.shape != (n,) or self.ubs.shape != (n,):
            raise ValueError(f"Variable bounds must have shape ({n},)")

        self.integer = list(range(n)) if integer is None else [int(i) for i in integer]
        self.sense = ObjectiveSense(str(sense).lower())

    def root_info(self) -> Dict[str, Any]:
        return {"lbs": self.lbs.copy(), "ubs": self.ubs.copy()}


class NonlinearRelaxation:
    """Tree hooks solving NLP relaxations of a NonlinearProgram."""

    def __init__(
        self,
        program: NonlinearProgram,
        method: str = "SLSQP",
        maxiter: int = DEFAULT_NLP_MAXITER,
        ftol: float = DEFAULT_NLP_FTOL,
    ):
        self.program = program
        self.method = method
        self.maxiter = maxiter
        self.ftol = ftol

        objective = program.objective
        if program.sense == ObjectiveSense.MAX:
            self._obj_func = lambda x: -objective(x)
        else:
            self._obj_func = objective
        self._obj_grad = grad(self._obj_func)
        self._cons = self._build_constraints()

    def _build_constraints(self) -> List[Dict]:
        cons = []
        for c in self.program.constraints:
            cons.append(
                {
                    "type": c["type"],
                    "fun": c["fun"],
                    "jac": jacobian(c["fun"]),
                }
            )
        return cons

    def _feasible(self, x: np.ndarray, atol: float = DEFAULT_ATOL) -> bool:
        """True if x satisfies every constraint up to `atol`."""
        for c in self.program.constraints:
            val = np.atleast_1d(c["fun"](x))
            if c["type"] == "ineq" and np.any(val < -atol):
                return False
            if c["type"] == "eq" and np.any(np.abs(val) > atol):
                return False
        return True

    def _warm_start(self, node: MIPNode) -> np.ndarray:
        """Get warm start, projected to node bounds."""
        if node.x is not None:
            x0 = np.array(node.x, dtype=float)
        else:
            x0 = self.program.x0.copy()
        return np.clip(x0, node.lbs, node.ubs)

    def branchable_indices(self, root: NonlinearProgram) -> List[int]:
        return list(root.integer)

    def evaluate(self, tree: BnBTree, node: MIPNode) -> Tuple[float, float]:
        if np.any(node.lbs > node.ubs):
            node.status = "infeasible"
            return float("nan"), float("nan")

        try:
            result = minimize(
                self._obj_func,
                self._warm_start(node),
                jac=self._obj_grad,
                method=self.method,
                bounds=_scipy_bounds(node.lbs, node.ubs),
                constraints=self._cons,
                options={"maxiter": self.maxiter, "ftol": self.ftol},
            )
        except ValueError as e:
            logger.debug(f"NLP relaxation at node {node.node_id} failed: {e}")
            result = None

        if result is None or not result.success:
            # NLP solve failed - treat as infeasible
            node.status = "infeasible"
            return float("nan"), float("nan")

        x = np.clip(np.asarray(result.x, dtype=float), node.lbs, node.ubs)
        if not self._feasible(x, tree.options.atol):
            node.status = "infeasible"
            return float("nan"), float("nan")

        node.status = "optimal"
        node.x = x
        obj = float(result.fun)
        if self.program.sense == ObjectiveSense.MAX:
            obj = -obj

        if all(tree.is_approx_discrete(node.x[i]) for i in self.program.integer):
            return obj, obj
        return obj, float("nan")

    def relaxed_values(self, tree: BnBTree, node: MIPNode) -> np.ndarray:
        return node.x

    def branching_nodes_info(
        self, tree: BnBTree, node: MIPNode, index: int, value: float
    ) -> List[Dict[str, Any]]:
        children = default_branching_nodes_info(tree, node, index, value)
        for info in children:
            info["x"] = node.x.copy()
        return children

    def extract_solution(self, tree: BnBTree, node: BnBNode) -> np.ndarray:
        return round_to_integers(node.x, self.program.integer)


def build_tree(program: NonlinearProgram, **options) -> BnBTree:
    """Initialize a tree with NonlinearRelaxation hooks and install the root node."""
    nlp_options = {
        key: options.pop(key) for key in ("method", "maxiter", "ftol") if key in options
    }
    relaxation = NonlinearRelaxation(program, **nlp_options)
    tree = initialize(
        evaluate=relaxation.evaluate,
        extract_solution=relaxation.extract_solution,
        branchable_indices=relaxation.branchable_indices,
        relaxed_values=relaxation.relaxed_values,
        branching_nodes_info=relaxation.branching_nodes_info,
        node_type=MIPNode,
        root=program,
        sense=program.sense,
        **options,
    )
    set_root(tree, program.root_info())
    return tree
