# Copyright 2025 Ilya Makarov
#
# Licensed under the Business Source License 1.1
# Change Date: 2028-11-05
# Change License: Apache License 2.0

"""
Stable priority queue.

Items come out highest priority first. Items sharing a priority come out
in the order they were inserted. Each insertion receives a serial number
from a per-queue counter, and the heap is keyed on ``(-priority, serial)``
so two keys never compare equal and the payload is never compared.

Iterating, counting or listing never consumes the queue.
"""

import copy
import heapq
from typing import Any, Iterator, List, Tuple

EXTRACT_DATA = "data"
EXTRACT_PRIORITY = "priority"
EXTRACT_BOTH = "both"

_EXTRACT_MODES = (EXTRACT_DATA, EXTRACT_PRIORITY, EXTRACT_BOTH)

# (-priority, serial, data)
_HeapEntry = Tuple[int, int, Any]


class PriorityQueue:
    """Priority-ordered container with FIFO tie-break"""

    def __init__(self):
        self._heap: List[_HeapEntry] = []
        self._serial = 0

    # =========================================================================
    # Mutation
    # =========================================================================

    def insert(self, data: Any, priority: int) -> None:
        """Insert ``data`` with ``priority``"""
        heapq.heappush(self._heap, (-priority, self._serial, data))
        self._serial += 1

    def remove(self, data: Any) -> bool:
        """Remove the first entry holding ``data`` (identity match)"""
        for index, entry in enumerate(self._heap):
            if entry[2] is data:
                self._heap.pop(index)
                heapq.heapify(self._heap)
                return True
        return False

    def extract(self) -> Any:
        """Pop and return the highest-priority item"""
        if not self._heap:
            raise IndexError("extract from an empty priority queue")
        return heapq.heappop(self._heap)[2]

    def clear(self) -> None:
        self._heap.clear()

    # =========================================================================
    # Inspection
    # =========================================================================

    def top(self) -> Any:
        """Return the highest-priority item without removing it"""
        if not self._heap:
            raise IndexError("top of an empty priority queue")
        return self._heap[0][2]

    def count(self) -> int:
        return len(self._heap)

    def is_empty(self) -> bool:
        return not self._heap

    def contains(self, data: Any) -> bool:
        return any(entry[2] is data for entry in self._heap)

    def has_priority(self, priority: int) -> bool:
        return any(-entry[0] == priority for entry in self._heap)

    def _ordered(self) -> List[_HeapEntry]:
        # Serials are unique, so sorting never compares payloads
        return sorted(self._heap, key=lambda entry: (entry[0], entry[1]))

    def to_list(self, extract: str = EXTRACT_DATA) -> List[Any]:
        """
        Snapshot of the queue in iteration order.

        Args:
            extract: ``"data"`` for items, ``"priority"`` for priorities,
                ``"both"`` for ``(item, priority)`` tuples

        Returns:
            New list; the queue is left untouched
        """
        if extract not in _EXTRACT_MODES:
            raise ValueError(f"Unknown extract mode: {extract}. Available: {list(_EXTRACT_MODES)}")

        ordered = self._ordered()
        if extract == EXTRACT_DATA:
            return [entry[2] for entry in ordered]
        if extract == EXTRACT_PRIORITY:
            return [-entry[0] for entry in ordered]
        return [(entry[2], -entry[0]) for entry in ordered]

    def __iter__(self) -> Iterator[Any]:
        return iter(self.to_list())

    def __len__(self) -> int:
        return len(self._heap)

    def __contains__(self, data: Any) -> bool:
        return self.contains(data)

    # =========================================================================
    # Copying
    # =========================================================================

    def copy(self) -> "PriorityQueue":
        """Queue with its own entry storage; items themselves are shared"""
        clone = PriorityQueue()
        clone._heap = list(self._heap)
        clone._serial = self._serial
        return clone

    def __copy__(self) -> "PriorityQueue":
        return self.copy()

    def __deepcopy__(self, memo) -> "PriorityQueue":
        clone = PriorityQueue()
        memo[id(self)] = clone
        clone._heap = [
            (neg_priority, serial, copy.deepcopy(data, memo))
            for neg_priority, serial, data in self._heap
        ]
        clone._serial = self._serial
        return clone

    def __repr__(self) -> str:
        return f"PriorityQueue(count={len(self._heap)})"


__all__ = [
    "PriorityQueue",
    "EXTRACT_DATA",
    "EXTRACT_PRIORITY",
    "EXTRACT_BOTH",
]
