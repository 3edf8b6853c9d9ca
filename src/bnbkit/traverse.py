"""
Traverse Strategies

A traverse strategy decides which open node the search loop explores next.
Any object with a ``select(store)`` method returning one of the store's open
nodes can be used; the search loop only relies on that method.

Strategies:
- BEST_FIRST: smallest lower bound, ties broken by the oldest node
- DEPTH_FIRST: most recently created node (finds feasible solutions faster)
- PriorityTraverse: smallest value of a user supplied key, ties by node id
"""

from __future__ import annotations

from typing import Callable, Protocol

from .constants import NodeSelection
from .node import BnBNode
from .store import NodeStore


class TraverseStrategy(Protocol):
    def select(self, store: NodeStore) -> BnBNode:
        ...


class BestFirst:
    def select(self, store: NodeStore) -> BnBNode:
        return store.peek()

    def __repr__(self):
        return "BestFirst()"


class DepthFirst:
    def select(self, store: NodeStore) -> BnBNode:
        return store.newest()

    def __repr__(self):
        return "DepthFirst()"


class PriorityTraverse:
    """Pick the open node with the smallest `key(node)`; O(n) per selection."""

    def __init__(self, key: Callable[[BnBNode], float]):
        self.key = key

    def select(self, store: NodeStore) -> BnBNode:
        return min(store, key=lambda node: (self.key(node), node.node_id))

    def __repr__(self):
        return f"PriorityTraverse({self.key!r})"


_BUILTIN = {
    NodeSelection.BEST_FIRST: BestFirst,
    NodeSelection.DEPTH_FIRST: DepthFirst,
}


def get_traverse_strategy(strategy: TraverseStrategy | NodeSelection | str) -> TraverseStrategy:
    """Resolve a strategy name or object to a traverse strategy object."""
    if isinstance(strategy, str):
        return _BUILTIN[NodeSelection(strategy)]()
    if not callable(getattr(strategy, "select", None)):
        raise TypeError(
            f"Traverse strategy must define select(store), got {type(strategy).__name__}"
        )
    return strategy
