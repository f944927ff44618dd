"""
Sparse set of small non-negative integers.

Two parallel lists: `dense` holds the members in arbitrary order,
`sparse[i]` holds the position of i in `dense`. A value i is a member iff
sparse[i] < len(dense) and dense[sparse[i]] == i, so `sparse` never needs
clearing and stale slots are harmless.

All operations are O(1). Removal swaps the last member into the freed slot,
so enumeration order is NOT stable and must not be relied upon.

Not thread-safe. The ledger guards it with its own lock.
"""

from typing import Iterator, List


class SparseIndexSet:
    """Set of integers in [0, capacity), capacity fixed at construction."""

    __slots__ = ("_capacity", "_dense", "_sparse")

    def __init__(self, capacity: int):
        if capacity < 0:
            raise ValueError(f"capacity must be >= 0, got {capacity}")
        self._capacity = capacity
        self._dense: List[int] = []
        self._sparse: List[int] = [0] * capacity

    @property
    def capacity(self) -> int:
        return self._capacity

    def add(self, i: int) -> None:
        """
        Add i to the set. No-op if already present.

        Raises:
            IndexError: If i is outside [0, capacity)
        """
        if not 0 <= i < self._capacity:
            raise IndexError(f"{i} out of range [0, {self._capacity})")
        if self.contains(i):
            return
        self._sparse[i] = len(self._dense)
        self._dense.append(i)

    def remove(self, i: int) -> bool:
        """Remove i if present. Reports whether it was."""
        if not self.contains(i):
            return False

        slot = self._sparse[i]
        last = self._dense.pop()
        if last != i:
            self._dense[slot] = last
            self._sparse[last] = slot
        return True

    def contains(self, i: int) -> bool:
        if not 0 <= i < self._capacity:
            return False
        slot = self._sparse[i]
        return slot < len(self._dense) and self._dense[slot] == i

    def at(self, k: int) -> int:
        """
        Return the k'th member in the current (arbitrary) order.

        at(0) through at(len(s) - 1) are all the members of s.
        """
        if not 0 <= k < len(self._dense):
            raise IndexError(f"position {k} out of range [0, {len(self._dense)})")
        return self._dense[k]

    def __contains__(self, i: object) -> bool:
        return isinstance(i, int) and self.contains(i)

    def __len__(self) -> int:
        return len(self._dense)

    def __iter__(self) -> Iterator[int]:
        return iter(list(self._dense))

    def __repr__(self) -> str:
        return f"SparseIndexSet(capacity={self._capacity}, len={len(self._dense)})"
