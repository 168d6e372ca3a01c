"""A bounded multi-producer/multi-consumer FIFO queue."""

from __future__ import annotations

import threading
from typing import Any, Generic, Tuple, TypeVar

from fairtopk.backoff import hardware_pause

T = TypeVar("T")


class QueueEmpty(Exception):
    """Raised when a pop finds no element it can take."""


class _Cell:
    __slots__ = ("sequence", "data")

    def __init__(self, sequence: int) -> None:
        self.sequence = sequence
        self.data: Any = None


class BoundedQueue(Generic[T]):
    """A bounded FIFO queue built on per-cell sequence numbers.

    Producers and consumers work independently. The strong operations keep
    retrying while a concurrent operation on the cell they need is still
    pending, and fail only when the queue is really full or empty. The weak
    operations give up as soon as the cell they need is not ready.
    """

    def __init__(self, size: int, default_to_weak: bool = False) -> None:
        if size < 2 or size & (size - 1):
            raise ValueError(f"size must be a power of two greater than one, got {size}")
        self._cells = [_Cell(i) for i in range(size)]
        self._mask = size - 1
        self._enqueue_pos = 0
        self._dequeue_pos = 0
        self._lock = threading.Lock()
        self._default_to_weak = default_to_weak

    @property
    def capacity(self) -> int:
        return self._mask + 1

    @property
    def default_to_weak(self) -> bool:
        return self._default_to_weak

    def __len__(self) -> int:
        return max(0, self._enqueue_pos - self._dequeue_pos)

    def try_push(self, item: T) -> bool:
        """Push ``item`` with the weak or strong variant, as configured."""
        return self._push(item, self._default_to_weak)

    def try_push_strong(self, item: T) -> bool:
        """Push ``item`` unless the queue is full; waits for pending pops."""
        return self._push(item, False)

    def try_push_weak(self, item: T) -> bool:
        """Push ``item``; fails if the queue is full or a pop on its cell is pending."""
        return self._push(item, True)

    def pop(self) -> T:
        """Pop with the weak or strong variant, as configured."""
        return self._pop(self._default_to_weak)

    def pop_strong(self) -> T:
        """Pop the oldest element unless the queue is empty; waits for pending pushes."""
        return self._pop(False)

    def pop_weak(self) -> T:
        """Pop the oldest element; fails if it is empty or its push is still pending."""
        return self._pop(True)

    def _advance_enqueue(self, expected: int) -> Tuple[bool, int]:
        with self._lock:
            current = self._enqueue_pos
            if current == expected:
                self._enqueue_pos = expected + 1
                return True, expected
            return False, current

    def _advance_dequeue(self, expected: int) -> Tuple[bool, int]:
        with self._lock:
            current = self._dequeue_pos
            if current == expected:
                self._dequeue_pos = expected + 1
                return True, expected
            return False, current

    def _push(self, item: T, weak: bool) -> bool:
        pos = self._enqueue_pos
        while True:
            cell = self._cells[pos & self._mask]
            seq = cell.sequence
            if seq == pos:
                claimed, pos = self._advance_enqueue(pos)
                if claimed:
                    break
            elif weak:
                if seq < pos:
                    return False
                pos = self._enqueue_pos
            else:
                current = self._enqueue_pos
                if current == pos and self._dequeue_pos + self._mask + 1 == pos:
                    return False
                pos = current
                hardware_pause()
        cell.data = item
        cell.sequence = pos + 1
        return True

    def _pop(self, weak: bool) -> T:
        pos = self._dequeue_pos
        while True:
            cell = self._cells[pos & self._mask]
            seq = cell.sequence
            new_pos = pos + 1
            if seq == new_pos:
                claimed, pos = self._advance_dequeue(pos)
                if claimed:
                    break
            elif weak:
                if seq < new_pos:
                    raise QueueEmpty("queue is empty")
                pos = self._dequeue_pos
            else:
                current = self._dequeue_pos
                if current == pos and self._enqueue_pos == pos:
                    raise QueueEmpty("queue is empty")
                pos = current
                hardware_pause()
        item = cell.data
        cell.data = None
        cell.sequence = pos + self._mask + 1
        return item