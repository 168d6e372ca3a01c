"""Circular arrays indexed modulo a power-of-two capacity."""

from __future__ import annotations

from typing import Any, List, Tuple


def _is_power_of_two(value: int) -> bool:
    return value > 0 and value & (value - 1) == 0


class FixedSizeCircularArray:
    """A circular array whose capacity never changes."""

    def __init__(self, capacity: int) -> None:
        if not _is_power_of_two(capacity):
            raise ValueError("capacity has to be a power of two")
        self._capacity = capacity
        self._mask = capacity - 1
        self._items: List[Any] = [None] * capacity

    @property
    def capacity(self) -> int:
        return self._capacity

    def get(self, index: int) -> Any:
        return self._items[index & self._mask]

    def put(self, index: int, value: Any) -> None:
        self._items[index & self._mask] = value

    def can_grow(self) -> bool:
        return False

    def grow(self, bottom: int, top: int) -> None:
        """Always fails: a fixed-size array cannot grow."""
        pending = bottom - top
        raise RuntimeError(
            f"cannot grow fixed_size_circular_array "
            f"({pending} entries pending, capacity {self._capacity})"
        )


class GrowingCircularArray:
    """A circular array that doubles its capacity on demand.

    Storage is split into buckets of sizes 1, 1, 2, 4, ...; growing adds one
    bucket, so existing entries never move and only the entries whose slot
    changes under the wider mask are copied.
    """

    def __init__(self, min_capacity: int = 64, max_capacity: int = 1 << 31) -> None:
        if not _is_power_of_two(min_capacity):
            raise ValueError("min_capacity must be a power of two")
        if not _is_power_of_two(max_capacity):
            raise ValueError("max_capacity must be a power of two")
        if min_capacity >= max_capacity:
            raise ValueError("max_capacity must be greater than min_capacity")
        self._min_capacity = min_capacity
        self._max_capacity = max_capacity
        self._capacity = min_capacity
        self._buckets: List[List[Any]] = [[None]] + [
            [None] * (1 << (bucket - 1)) for bucket in range(1, min_capacity.bit_length())
        ]

    @property
    def capacity(self) -> int:
        return self._capacity

    @property
    def min_capacity(self) -> int:
        return self._min_capacity

    @property
    def max_capacity(self) -> int:
        return self._max_capacity

    @staticmethod
    def _slot(masked_index: int) -> Tuple[int, int]:
        bucket = masked_index.bit_length()
        return bucket, masked_index ^ ((1 << bucket) >> 1)

    def get(self, index: int) -> Any:
        bucket, offset = self._slot(index & (self._capacity - 1))
        return self._buckets[bucket][offset]

    def put(self, index: int, value: Any) -> None:
        bucket, offset = self._slot(index & (self._capacity - 1))
        self._buckets[bucket][offset] = value

    def can_grow(self) -> bool:
        return self._capacity < self._max_capacity

    def grow(self, bottom: int, top: int) -> None:
        """Double the capacity, keeping the entries at indices ``top..bottom-1``."""
        if not self.can_grow():
            raise RuntimeError("cannot grow beyond the maximum capacity")

        capacity = self._capacity
        mod_mask = capacity - 1
        self._buckets.append([None] * capacity)
        new_mask = capacity * 2 - 1

        start = top
        start_mod = top & mod_mask
        if start_mod == top & new_mask:
            start += capacity - start_mod

        for index in range(start, bottom):
            old_index = index & mod_mask
            new_index = index & new_mask
            if old_index == new_index:
                break
            old_bucket, old_offset = self._slot(old_index)
            new_bucket, new_offset = self._slot(new_index)
            self._buckets[new_bucket][new_offset] = self._buckets[old_bucket][old_offset]

        self._capacity = capacity * 2