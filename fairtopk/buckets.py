"""Storage blocks, buckets and bucket states for a concurrent hash map."""

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from typing import Any, List, Optional

from fairtopk.backoff import ExponentialBackoff

BUCKET_ITEM_COUNT = 3
EXTENSION_ITEM_COUNT = 2
BUCKET_TO_EXTENSION_RATIO = 128

_U32 = (1 << 32) - 1


@dataclass(frozen=True)
class BucketState:
    """A packed 32-bit bucket word: lock bit, item count, delete marker and version.

    Bit 0 is the lock; then come the item count and the delete marker, each
    wide enough to hold ``bucket_item_count``; the remaining high bits count
    versions, bumped by every removal.
    """

    value: int = 0
    bucket_item_count: int = BUCKET_ITEM_COUNT

    def __post_init__(self) -> None:
        if self.bucket_item_count < 1:
            raise ValueError("bucket_item_count must be positive")
        object.__setattr__(self, "value", self.value & _U32)

    @property
    def _counter_bits(self) -> int:
        return self.bucket_item_count.bit_length()

    @property
    def _counter_mask(self) -> int:
        return (1 << self._counter_bits) - 1

    @property
    def _delete_marker_shift(self) -> int:
        return 1 + self._counter_bits

    @property
    def _version_shift(self) -> int:
        return 1 + 2 * self._counter_bits

    def _with(self, value: int) -> "BucketState":
        return BucketState(value, self.bucket_item_count)

    def locked(self) -> "BucketState":
        return self._with(self.value | 1)

    def clear_lock(self) -> "BucketState":
        if not self.is_locked():
            raise ValueError("bucket state is not locked")
        return self._with(self.value ^ 1)

    def new_version(self) -> "BucketState":
        return self._with(self.value + (1 << self._version_shift))

    def inc_item_count(self) -> "BucketState":
        if self.item_count() >= self.bucket_item_count:
            raise ValueError("bucket is already full")
        return self._with(self.value + 2)

    def dec_item_count(self) -> "BucketState":
        if self.item_count() == 0:
            raise ValueError("bucket is already empty")
        return self._with(self.value - 2)

    def set_delete_marker(self, marker: int) -> "BucketState":
        if self.delete_marker() != 0:
            raise ValueError("a delete marker is already set")
        if not 0 <= marker <= self._counter_mask:
            raise ValueError(f"delete marker {marker} does not fit the bucket state")
        return self._with(self.value | (marker << self._delete_marker_shift))

    def item_count(self) -> int:
        return (self.value >> 1) & self._counter_mask

    def delete_marker(self) -> int:
        return (self.value >> self._delete_marker_shift) & self._counter_mask

    def version(self) -> int:
        return self.value >> self._version_shift

    def is_locked(self) -> bool:
        return self.value & 1 != 0


class Bucket:
    """A fixed number of inline key/value slots plus a chain of extension items."""

    def __init__(self, bucket_item_count: int = BUCKET_ITEM_COUNT) -> None:
        self.state = BucketState(0, bucket_item_count)
        self.head: Optional[ExtensionItem] = None
        self.keys: List[Any] = [None] * bucket_item_count
        self.values: List[Any] = [None] * bucket_item_count
        self._state_lock = threading.Lock()

    @property
    def capacity(self) -> int:
        return len(self.keys)

    def compare_exchange_state(self, expected: BucketState, desired: BucketState) -> bool:
        """Replace the state with ``desired`` if it still equals ``expected``."""
        with self._state_lock:
            if self.state == expected:
                self.state = desired
                return True
            return False


@dataclass(eq=False)
class ExtensionItem:
    """An overflow key/value slot, linked into a bucket or a free list."""

    owner: "ExtensionBucket"
    key: Any = None
    value: Any = None
    next: Optional["ExtensionItem"] = None


@dataclass(eq=False)
class ExtensionBucket:
    """A small pool of extension items guarded by a spin lock."""

    item_count: int = EXTENSION_ITEM_COUNT
    items: List[ExtensionItem] = field(init=False)
    head: Optional[ExtensionItem] = field(init=False, default=None)
    _lock: threading.Lock = field(init=False, repr=False, default_factory=threading.Lock)

    def __post_init__(self) -> None:
        self.items = [ExtensionItem(self) for _ in range(self.item_count)]
        head: Optional[ExtensionItem] = None
        for item in self.items:
            item.next = head
            head = item
        self.head = head

    def acquire_lock(self) -> None:
        backoff = ExponentialBackoff(16)
        while not self._lock.acquire(blocking=False):
            backoff()

    def release_lock(self) -> None:
        self._lock.release()


class Block:
    """A table of buckets together with the extension buckets serving them."""

    def __init__(
        self,
        bucket_count: int,
        bucket_item_count: int = BUCKET_ITEM_COUNT,
        extension_item_count: int = EXTENSION_ITEM_COUNT,
        bucket_to_extension_ratio: int = BUCKET_TO_EXTENSION_RATIO,
    ) -> None:
        if bucket_count < 1 or bucket_count & (bucket_count - 1):
            raise ValueError(f"bucket_count must be a power of two, got {bucket_count}")
        if bucket_to_extension_ratio < 1:
            raise ValueError("bucket_to_extension_ratio must be positive")
        self.mask = bucket_count - 1
        self.bucket_count = bucket_count
        self.bucket_item_count = bucket_item_count
        self.extension_bucket_count = bucket_count // bucket_to_extension_ratio
        self.buckets = [Bucket(bucket_item_count) for _ in range(bucket_count)]
        self.extension_buckets = [
            ExtensionBucket(extension_item_count) for _ in range(self.extension_bucket_count)
        ]

    def index(self, key_hash: int) -> int:
        """Bucket index for a key hash."""
        return key_hash & self.mask

    def allocate_extension_item(self, key_hash: int) -> Optional[ExtensionItem]:
        """Take a free extension item, preferring the bucket chosen by the hash.

        Returns ``None`` when every extension bucket is exhausted.
        """
        count = self.extension_bucket_count
        if count == 0:
            return None
        mod_mask = count - 1
        for _ in range(2):
            for offset in range(count):
                bucket = self.extension_buckets[(key_hash + offset) & mod_mask]
                if bucket.head is None:
                    continue
                bucket.acquire_lock()
                try:
                    item = bucket.head
                    if item is not None:
                        bucket.head = item.next
                        item.next = None
                        return item
                finally:
                    bucket.release_lock()
        return None

    def free_extension_item(self, item: ExtensionItem) -> None:
        """Return ``item`` to the free list of the extension bucket owning it."""
        owner = item.owner
        owner.acquire_lock()
        try:
            item.key = None
            item.value = None
            item.next = owner.head
            owner.head = item
        finally:
            owner.release_lock()


def allocate_block(bucket_count: int) -> Block:
    """Create an empty block with ``bucket_count`` buckets (a power of two)."""
    return Block(bucket_count)