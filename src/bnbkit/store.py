"""
Open Node Store

The store keeps every open node of the tree in a single indexed binary heap:
a list of heap entries ordered by ``(lower_bound, node_id)`` together with a
map from node id to the entry's position in that list. Both live in the same
object and are only changed together, so the id lookup and the priority order
always describe the same set of nodes.

Operations:
- push, update and arbitrary removal by id in O(log n)
- membership, best-first lookup and newest-node lookup in O(1)
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Dict, Iterator, List

from .errors import InvariantError
from .node import BnBNode

if TYPE_CHECKING:
    from .traverse import TraverseStrategy

logger = logging.getLogger(__name__)


class _Entry:
    __slots__ = ("lower_bound", "node_id", "node")

    def __init__(self, node: BnBNode):
        self.lower_bound = node.lower_bound
        self.node_id = node.node_id
        self.node = node

    def key(self):
        return (self.lower_bound, self.node_id)


class NodeStore:
    """All open nodes, keyed by id and ordered for best-first selection."""

    def __init__(self):
        self._heap: List[_Entry] = []
        # Insertion order of the keys is creation order of the nodes
        self._position: Dict[int, int] = {}

    def __len__(self) -> int:
        return len(self._heap)

    def __bool__(self) -> bool:
        return bool(self._heap)

    def __contains__(self, node_id: int) -> bool:
        return node_id in self._position

    def __iter__(self) -> Iterator[BnBNode]:
        """Iterate over open nodes in creation order."""
        for node_id in list(self._position):
            yield self._heap[self._position[node_id]].node

    def get(self, node_id: int) -> BnBNode:
        return self._heap[self._position[node_id]].node

    def ids(self) -> List[int]:
        return list(self._position)

    # ------------------------------------------------------------------
    # Selection
    # ------------------------------------------------------------------

    def select(self, strategy: TraverseStrategy) -> BnBNode:
        """Return the node chosen by `strategy` without removing it."""
        if not self._heap:
            raise IndexError("Cannot select a node from an empty node store")
        return strategy.select(self)

    def peek(self) -> BnBNode:
        """Return the node with the smallest lower bound (oldest on ties)."""
        if not self._heap:
            raise IndexError("Cannot select a node from an empty node store")
        return self._heap[0].node

    def newest(self) -> BnBNode:
        """Return the most recently created open node."""
        if not self._heap:
            raise IndexError("Cannot select a node from an empty node store")
        return self.get(next(reversed(self._position)))

    def min_lower_bound(self) -> float:
        if not self._heap:
            return float("inf")
        return self._heap[0].lower_bound

    # ------------------------------------------------------------------
    # Mutation
    # ------------------------------------------------------------------

    def push(self, node: BnBNode) -> None:
        if node.node_id in self._position:
            raise InvariantError(f"Node {node.node_id} is already open")
        self._heap.append(_Entry(node))
        self._position[node.node_id] = len(self._heap) - 1
        self._sift_up(len(self._heap) - 1)

    def update(self, node_id: int) -> None:
        """Restore the heap order after the node's lower bound changed."""
        pos = self._position[node_id]
        entry = self._heap[pos]
        entry.lower_bound = entry.node.lower_bound
        self._sift_up(pos)
        self._sift_down(self._position[node_id])

    def remove(self, node_id: int) -> BnBNode:
        """Close the node: drop it from the heap and the id map together."""
        pos = self._position.pop(node_id)
        entry = self._heap[pos]
        last = self._heap.pop()
        if pos < len(self._heap):
            self._heap[pos] = last
            self._position[last.node_id] = pos
            self._sift_up(pos)
            self._sift_down(self._position[last.node_id])
        return entry.node

    def prune_dominated(self, incumbent: float, excluding: int | None = None) -> List[BnBNode]:
        """Close every open node other than `excluding` with lower bound >= incumbent."""
        dominated = [
            entry.node_id
            for entry in self._heap
            if entry.node_id != excluding and entry.lower_bound >= incumbent
        ]
        pruned = [self.remove(node_id) for node_id in dominated]
        if pruned:
            logger.debug(f"Pruned {len(pruned)} node(s) with bound >= {incumbent}")
        return pruned

    def check_consistency(self) -> None:
        """Raise InvariantError if the id map and the heap disagree."""
        if len(self._heap) != len(self._position):
            raise InvariantError(
                f"Node store desync: {len(self._heap)} heap entries, "
                f"{len(self._position)} ids"
            )
        for pos, entry in enumerate(self._heap):
            if self._position.get(entry.node_id) != pos:
                raise InvariantError(f"Node store desync at node {entry.node_id}")
            if pos > 0 and self._heap[(pos - 1) // 2].key() > entry.key():
                raise InvariantError(f"Heap order violated at node {entry.node_id}")

    # ------------------------------------------------------------------
    # Heap helpers
    # ------------------------------------------------------------------

    def _swap(self, i: int, j: int) -> None:
        heap = self._heap
        heap[i], heap[j] = heap[j], heap[i]
        self._position[heap[i].node_id] = i
        self._position[heap[j].node_id] = j

    def _sift_up(self, pos: int) -> None:
        heap = self._heap
        while pos > 0:
            parent = (pos - 1) // 2
            if heap[pos].key() < heap[parent].key():
                self._swap(pos, parent)
                pos = parent
            else:
                break

    def _sift_down(self, pos: int) -> None:
        heap = self._heap
        n = len(heap)
        while True:
            smallest = pos
            for child in (2 * pos + 1, 2 * pos + 2):
                if child < n and heap[child].key() < heap[smallest].key():
                    smallest = child
            if smallest == pos:
                break
            self._swap(pos, smallest)
            pos = smallest
