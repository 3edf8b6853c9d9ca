"""
Relaxation Hooks

Ready-made tree hooks that evaluate node relaxations with SciPy. The engine
itself never computes a bound; these modules are ordinary implementations of
the evaluate / extract_solution / branchable_indices hooks.

Modules:
- linear: LP relaxations of mixed-integer linear programs (HiGHS via linprog)
- nonlinear: NLP relaxations of mixed-integer nonlinear programs (SLSQP via
  minimize, derivatives from autograd)
"""

from .linear import LinearProgram, LinearRelaxation, MIPNode
from .linear import build_tree as build_linear_tree
from .nonlinear import NonlinearProgram, NonlinearRelaxation
from .nonlinear import build_tree as build_nonlinear_tree

__all__ = [
    "LinearProgram",
    "LinearRelaxation",
    "MIPNode",
    "NonlinearProgram",
    "NonlinearRelaxation",
    "build_linear_tree",
    "build_nonlinear_tree",
]
