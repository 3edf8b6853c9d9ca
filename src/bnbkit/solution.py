from __future__ import annotations

from dataclasses import dataclass
from typing import Any, List

from .constants import ObjectiveSense
from .errors import NoSolutionError
from .node import BnBNode


@dataclass
class Solution:
    """A feasible solution found during the search.

    `objective` is stored in minimization form; use `SolutionStore.read` or
    `BnBTree.get_objective_value` to obtain it in the problem's own sense.
    """

    objective: float
    value: Any
    node: BnBNode


class SolutionStore:
    """Ranked store of the best solutions found so far.

    With the default capacity of one, recording a solution replaces the
    previous one.
    """

    def __init__(self, capacity: int = 1):
        if capacity < 1:
            raise ValueError(f"Solution capacity must be positive, got {capacity}")
        self.capacity = capacity
        self._solutions: List[Solution] = []

    def __len__(self) -> int:
        return len(self._solutions)

    def __iter__(self):
        return iter(self._solutions)

    def record(self, objective: float, value: Any, node: BnBNode) -> Solution:
        solution = Solution(float(objective), value, node)
        pos = len(self._solutions)
        while pos > 0 and self._solutions[pos - 1].objective > solution.objective:
            pos -= 1
        self._solutions.insert(pos, solution)
        del self._solutions[self.capacity:]
        return solution

    def get(self, result: int = 0) -> Solution:
        if not self._solutions:
            raise NoSolutionError("No feasible solution found")
        if not 0 <= result < len(self._solutions):
            raise NoSolutionError(
                f"Solution {result} requested but only {len(self._solutions)} recorded"
            )
        return self._solutions[result]

    def read(self, sense: ObjectiveSense | str, result: int = 0) -> float:
        """Objective of solution `result` in the problem's own sense."""
        objective = self.get(result).objective
        if ObjectiveSense(sense) == ObjectiveSense.MAX:
            return -objective
        return objective
