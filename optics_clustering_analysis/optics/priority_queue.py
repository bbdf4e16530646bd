"""Indexed binary min-heap used as the OPTICS seed list.

Entries are point indices keyed by ``(reachability, index)``; the position of
every entry is tracked so its key can be lowered in place (decrease-key)
instead of pushing duplicates.
"""

from __future__ import annotations

from typing import Dict, List, Tuple


class ReachabilityHeap:
    """Min-heap of point indices ordered by reachability, then index."""

    def __init__(self) -> None:
        self._heap: List[int] = []
        self._position: Dict[int, int] = {}
        self._key: Dict[int, float] = {}

    def __len__(self) -> int:
        return len(self._heap)

    def __bool__(self) -> bool:
        return bool(self._heap)

    def __contains__(self, item: int) -> bool:
        return item in self._position

    def key(self, item: int) -> float:
        return self._key[item]

    def clear(self) -> None:
        self._heap.clear()
        self._position.clear()
        self._key.clear()

    def push(self, item: int, key: float) -> None:
        """Insert a new item. Raises ``KeyError`` if it is already queued."""
        if item in self._position:
            raise KeyError(f"Item {item} is already in the heap.")
        self._key[item] = key
        self._heap.append(item)
        self._position[item] = len(self._heap) - 1
        self._sift_up(len(self._heap) - 1)

    def decrease_key(self, item: int, key: float) -> None:
        """Lower the key of a queued item. Raises ``ValueError`` if the key would increase."""
        if key > self._key[item]:
            raise ValueError(
                f"New key {key!r} for item {item} is larger than the current key."
            )
        self._key[item] = key
        self._sift_up(self._position[item])

    def push_or_decrease(self, item: int, key: float) -> bool:
        """Insert the item or lower its key; return True if the heap changed."""
        if item not in self._position:
            self.push(item, key)
            return True
        if key < self._key[item]:
            self.decrease_key(item, key)
            return True
        return False

    def peek(self) -> Tuple[int, float]:
        item = self._heap[0]
        return item, self._key[item]

    def pop(self) -> Tuple[int, float]:
        """Remove and return the ``(item, key)`` with the smallest key."""
        if not self._heap:
            raise IndexError("pop from an empty heap")
        top = self._heap[0]
        last = self._heap.pop()
        if self._heap:
            self._heap[0] = last
            self._position[last] = 0
            self._sift_down(0)
        del self._position[top]
        return top, self._key.pop(top)

    # ---------------- Internals ----------------

    def _less(self, a: int, b: int) -> bool:
        key_a, key_b = self._key[a], self._key[b]
        if key_a != key_b:
            return key_a < key_b
        return a < b

    def _swap(self, i: int, j: int) -> None:
        heap = self._heap
        heap[i], heap[j] = heap[j], heap[i]
        self._position[heap[i]] = i
        self._position[heap[j]] = j

    def _sift_up(self, pos: int) -> None:
        while pos > 0:
            parent = (pos - 1) >> 1
            if not self._less(self._heap[pos], self._heap[parent]):
                break
            self._swap(pos, parent)
            pos = parent

    def _sift_down(self, pos: int) -> None:
        size = len(self._heap)
        while True:
            left = 2 * pos + 1
            if left >= size:
                break
            smallest = left
            right = left + 1
            if right < size and self._less(self._heap[right], self._heap[left]):
                smallest = right
            if not self._less(self._heap[smallest], self._heap[pos]):
                break
            self._swap(pos, smallest)
            pos = smallest


__all__ = ["ReachabilityHeap"]
