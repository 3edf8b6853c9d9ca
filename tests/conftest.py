import logging

import autograd.numpy as np
import pytest

import bnbkit as bb
from bnbkit.node import BoundedNode


@pytest.fixture(autouse=True)
def engine_debug_logging(caplog):
    """Run every test with the engine's debug logging enabled"""
    caplog.set_level(logging.DEBUG, logger="bnbkit")
    yield


class SeparableQuadratic:
    """
    Integer least squares over a box: min sum((x - targets)^2), x integer.

    The relaxation over a box is solved in closed form by clipping the
    targets to the node bounds, so no numerical solver is involved.
    """

    def __init__(self, targets, sense="min"):
        self.targets = np.asarray(targets, dtype=float)
        self.sense = sense
        self.evaluations = []
        self.extractions = []

    def branchable_indices(self, root):
        return list(range(len(self.targets)))

    def point(self, node):
        return np.clip(self.targets, node.lbs, node.ubs)

    def evaluate(self, tree, node):
        self.evaluations.append(node.node_id)
        if np.any(node.lbs > node.ubs):
            return float("nan"), float("nan")
        x = self.point(node)
        obj = float(np.sum((x - self.targets) ** 2))
        if self.sense == "max":
            obj = -obj
        if all(tree.is_approx_discrete(v) for v in x):
            return obj, obj
        return obj, float("nan")

    def relaxed_values(self, tree, node):
        return self.point(node)

    def extract_solution(self, tree, node):
        self.extractions.append(node.node_id)
        return self.point(node)


@pytest.fixture
def quadratic_tree():
    """Factory building a tree for a SeparableQuadratic problem"""

    def build(targets, lbs=None, ubs=None, sense="min", **options):
        problem = SeparableQuadratic(targets, sense=sense)
        n = len(problem.targets)
        tree = bb.initialize(
            evaluate=problem.evaluate,
            extract_solution=problem.extract_solution,
            branchable_indices=problem.branchable_indices,
            relaxed_values=problem.relaxed_values,
            node_type=BoundedNode,
            sense=sense,
            **options,
        )
        bb.set_root(
            tree,
            {
                "lbs": np.zeros(n) if lbs is None else np.asarray(lbs, dtype=float),
                "ubs": np.full(n, 10.0) if ubs is None else np.asarray(ubs, dtype=float),
            },
        )
        return tree, problem

    return build
