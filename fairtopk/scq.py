"""A scalable circular ring of small integer indices."""

from __future__ import annotations

import enum
import threading
from typing import Optional, Tuple

_U64 = (1 << 64) - 1
_SIGN = 1 << 63

_CACHELINE_SIZE = 64
_INDEXES_PER_CACHELINE = _CACHELINE_SIZE // 8

_FINALIZED = 1
_INDEX_INC = 2


def _is_power_of_two(value: int) -> bool:
    return value > 0 and value & (value - 1) == 0


def _diff(a: int, b: int) -> int:
    d = (a - b) & _U64
    return d - (1 << 64) if d & _SIGN else d


def calc_remap_shift(capacity: int) -> int:
    """Shift that spreads consecutive ring slots across cache lines."""
    if not _is_power_of_two(capacity):
        raise ValueError(f"capacity must be a power of two, got {capacity}")
    return (capacity // _INDEXES_PER_CACHELINE).bit_length()


def remap_index(index: int, remap_shift: int, n: int) -> int:
    """Map a head or tail counter to a slot in a ring of ``n`` entries."""
    if remap_shift != 0 and (1 << remap_shift) * _INDEXES_PER_CACHELINE != n:
        raise ValueError(f"remap shift {remap_shift} does not fit a ring of {n} entries")
    index >>= 1
    return ((index & (n - 1)) >> remap_shift) | ((index * _INDEXES_PER_CACHELINE) & (n - 1))


class InitialState(enum.Enum):
    """Contents of a freshly built ring."""

    EMPTY = "empty"
    FULL = "full"
    FIRST_USED = "first_used"
    FIRST_EMPTY = "first_empty"


class _Atomic:
    __slots__ = ("_value", "_lock", "_wrap")

    def __init__(self, value: int, lock: threading.Lock, wrap: bool = True) -> None:
        self._wrap = wrap
        self._lock = lock
        self._value = value & _U64 if wrap else value

    def _norm(self, value: int) -> int:
        return value & _U64 if self._wrap else value

    def load(self) -> int:
        return self._value

    def store(self, value: int) -> None:
        with self._lock:
            self._value = self._norm(value)

    def fetch_add(self, delta: int) -> int:
        with self._lock:
            old = self._value
            self._value = self._norm(old + delta)
            return old

    def fetch_or(self, bits: int) -> int:
        with self._lock:
            old = self._value
            self._value = self._norm(old | bits)
            return old

    def compare_exchange(self, expected: int, desired: int) -> Tuple[bool, int]:
        with self._lock:
            current = self._value
            if current == expected:
                self._value = self._norm(desired)
                return True, expected
            return False, current


class ScqRing:
    """A ring holding integers below ``capacity``, in FIFO order.

    Each entry packs a cycle number, an "is safe" flag and a value, so that
    producers and consumers can claim slots by counters alone. At most
    ``capacity`` values may be held at a time; pushing beyond that spins.
    """

    def __init__(
        self,
        capacity: int,
        initial: InitialState = InitialState.EMPTY,
        remap_shift: Optional[int] = None,
    ) -> None:
        if not _is_power_of_two(capacity):
            raise ValueError(f"capacity must be a power of two, got {capacity}")
        if remap_shift is None:
            remap_shift = calc_remap_shift(capacity)
        n = capacity * 2
        if remap_shift != 0 and (1 << remap_shift) * _INDEXES_PER_CACHELINE != n:
            raise ValueError(f"remap shift {remap_shift} does not fit capacity {capacity}")
        self._capacity = capacity
        self._remap_shift = remap_shift
        self._lock = threading.Lock()

        lock = self._lock
        head, tail, threshold = 0, 0, capacity * 3 - 1
        slots = [_U64] * n
        if initial is InitialState.EMPTY:
            threshold = -1
        elif initial is InitialState.FULL:
            tail = capacity * _INDEX_INC
            for i in range(capacity):
                slots[self._slot(i << 1)] = n + i
        elif initial is InitialState.FIRST_USED:
            tail = _INDEX_INC
            slots[self._slot(0)] = n
        elif initial is InitialState.FIRST_EMPTY:
            head = _INDEX_INC
            tail = capacity * _INDEX_INC
            for i in range(1, capacity):
                slots[self._slot(i << 1)] = n + i
        else:
            raise ValueError(f"unknown initial state {initial!r}")

        self._head = _Atomic(head, lock)
        self._tail = _Atomic(tail, lock)
        self._threshold = _Atomic(threshold, lock, wrap=False)
        self._data = [_Atomic(value, lock) for value in slots]

    @property
    def capacity(self) -> int:
        return self._capacity

    @property
    def remap_shift(self) -> int:
        return self._remap_shift

    def _slot(self, counter: int) -> int:
        return remap_index(counter, self._remap_shift, self._capacity * 2)

    def finalize(self) -> None:
        """Mark the ring closed so that finalizable enqueues fail."""
        self._tail.fetch_or(_FINALIZED)

    def set_threshold(self, value: int) -> None:
        self._threshold.store(value)

    def enqueue(self, value: int, nonempty: bool = False, finalizable: bool = False) -> bool:
        """Append ``value``; returns False only for a finalizable push to a finalized ring."""
        capacity = self._capacity
        if not 0 <= value < capacity:
            raise ValueError(f"value must lie in [0, {capacity}), got {value}")
        n = capacity * 2
        mask = 2 * n - 1
        value ^= mask

        while True:
            tail = self._tail.fetch_add(_INDEX_INC)
            if finalizable and tail & _FINALIZED:
                return False
            tail_cycle = tail | mask
            slot = self._data[self._slot(tail)]
            entry = slot.load()
            while True:
                entry_cycle = entry | mask
                usable = _diff(entry_cycle, tail_cycle) < 0 and (
                    entry == entry_cycle
                    or (entry == entry_cycle ^ n and _diff(self._head.load(), tail) <= 0)
                )
                if not usable:
                    break
                stored, entry = slot.compare_exchange(entry, tail_cycle ^ value)
                if not stored:
                    continue
                if not nonempty:
                    threshold = n + capacity - 1
                    if self._threshold.load() != threshold:
                        self._threshold.store(threshold)
                return True

    def dequeue(self, nonempty: bool = False, pop_retries: int = 0) -> Optional[int]:
        """Remove and return the oldest value, or ``None`` when the ring is empty.

        With ``nonempty`` the caller promises a value is present and the call
        keeps trying until it gets one.
        """
        if not nonempty and self._threshold.load() < 0:
            return None

        n = self._capacity * 2
        value_mask = n - 1
        mask = 2 * n - 1

        while True:
            head = self._head.fetch_add(_INDEX_INC)
            head_cycle = head | mask
            next_head = (head + _INDEX_INC) & _U64
            slot = self._data[self._slot(head)]
            attempt = 0
            entry = slot.load()
            while True:
                entry_cycle = entry | mask
                if entry_cycle == head_cycle:
                    slot.fetch_or(value_mask)
                    return entry & value_mask
                if (entry | n) != entry_cycle:
                    entry_new = entry & ~n & _U64
                    if entry == entry_new:
                        break
                else:
                    tail = self._tail.load()
                    if _diff(tail, next_head) > 0 and attempt < pop_retries:
                        attempt += 1
                        entry = slot.load()
                        continue
                    entry_new = head_cycle
                if _diff(entry_cycle, head_cycle) >= 0:
                    break
                swapped, entry = slot.compare_exchange(entry, entry_new)
                if swapped:
                    break

            if not nonempty:
                tail = self._tail.load()
                if _diff(tail, next_head) <= 0:
                    self._catchup(tail, next_head)
                    self._threshold.fetch_add(-1)
                    return None
                if self._threshold.fetch_add(-1) <= 0:
                    return None

    def _catchup(self, tail: int, head: int) -> None:
        while True:
            moved, tail = self._tail.compare_exchange(tail, head)
            if moved:
                return
            head = self._head.load()
            if _diff(tail, head) >= 0:
                return