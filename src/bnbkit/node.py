"""
Branch-and-Bound Node, Schema and Statistics Dataclasses

This module contains the core data structures of the branch-and-bound
engine: the node base class every node schema derives from, the schema
validator used to build nodes from configuration records, and the search
statistics.

A node schema is a dataclass subclass of ``BnBNode``. Every field that is
not one of the engine fields (``node_id``, ``lower_bound``, ``upper_bound``,
``depth``) is problem-specific payload. Payload fields without a default
must be present in every configuration record.
"""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass
from typing import Any, FrozenSet, Mapping

import autograd.numpy as np

from .errors import NodeSchemaError


@dataclass(kw_only=True, eq=False)
class BnBNode:
    """
    A node in the branch-and-bound tree.

    Bound semantics:
    - Bounds are always stored in minimization form. For a maximization
      problem the tree negates the values returned by the evaluator before
      they reach the node.
    - `lower_bound` is inherited from the parent when the node is created and
      only ever tightens once the node has been evaluated.
    - `upper_bound` is the objective of a feasible point found at this node,
      or +inf if none is known.
    """

    node_id: int
    lower_bound: float = float("-inf")
    upper_bound: float = float("inf")
    depth: int = 0


ENGINE_FIELDS: FrozenSet[str] = frozenset(f.name for f in dataclasses.fields(BnBNode))


@dataclass(kw_only=True, eq=False)
class DefaultNode(BnBNode):
    """Node schema without any payload."""


@dataclass(kw_only=True, eq=False)
class BoundedNode(BnBNode):
    """
    Node schema carrying per-dimension variable bounds.

    This is the schema understood by the default floor/ceil split: a child
    differs from its parent only in `lbs[i]` or `ubs[i]` of the branching
    dimension `i`.
    """

    lbs: np.ndarray
    ubs: np.ndarray


class NodeSchema:
    """Validated description of a node dataclass, built once per tree."""

    def __init__(self, node_type: type):
        if not (isinstance(node_type, type) and issubclass(node_type, BnBNode)):
            raise TypeError(
                f"Node type must be a subclass of BnBNode, got {node_type!r}"
            )
        if not dataclasses.is_dataclass(node_type):
            raise TypeError(f"Node type {node_type.__name__} must be a dataclass")

        self.node_type = node_type
        payload = [f for f in dataclasses.fields(node_type) if f.name not in ENGINE_FIELDS]
        self.fields: FrozenSet[str] = frozenset(f.name for f in payload)
        self.required: FrozenSet[str] = frozenset(
            f.name
            for f in payload
            if f.default is dataclasses.MISSING
            and f.default_factory is dataclasses.MISSING
        )

    def validate(self, info: Mapping[str, Any]) -> None:
        keys = set(info)

        engine = keys & ENGINE_FIELDS
        if engine:
            raise NodeSchemaError(
                f"Fields {sorted(engine)} are assigned by the tree and cannot "
                f"be part of a node configuration"
            )

        missing = self.required - keys
        if missing:
            raise NodeSchemaError(
                f"Node configuration for {self.node_type.__name__} is missing "
                f"required field(s) {sorted(missing)}"
            )

        unknown = keys - self.fields
        if unknown:
            raise NodeSchemaError(
                f"Unknown field(s) {sorted(unknown)} for node type "
                f"{self.node_type.__name__}"
            )

    def create(
        self,
        node_id: int,
        info: Mapping[str, Any],
        lower_bound: float = float("-inf"),
        depth: int = 0,
    ) -> BnBNode:
        """Create a node with id `node_id` from the configuration record `info`."""
        self.validate(info)
        return self.node_type(
            node_id=node_id, lower_bound=lower_bound, depth=depth, **info
        )

    def __repr__(self):
        return f"NodeSchema({self.node_type.__name__}, required={sorted(self.required)})"


@dataclass
class BBStats:
    """Statistics from the branch-and-bound search."""

    nodes_explored: int = 0
    nodes_pruned: int = 0
    nodes_infeasible: int = 0
    nodes_dominated: int = 0
    solutions_found: int = 0
    best_bound: float = float("-inf")
    gap: float = float("inf")
    solve_time: float = 0.0
