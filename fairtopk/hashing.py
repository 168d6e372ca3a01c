"""Hash functions for hash-map keys."""

from __future__ import annotations

_SIZE_MASK = (1 << 64) - 1


def value_hash(key) -> int:
    """Hash ``key`` with the built-in hash, as an unsigned 64-bit value."""
    return hash(key) & _SIZE_MASK


def pointer_hash(address: int, alignment: int) -> int:
    """Hash an aligned address by dropping the bits its alignment forces to zero.

    Aligned addresses have zero low bits, which would leave the low buckets of
    a power-of-two table unused; shifting them away spreads keys evenly.
    """
    if alignment <= 0 or alignment & (alignment - 1):
        raise ValueError(f"alignment must be a power of two, got {alignment}")
    shift = alignment.bit_length() - 1
    hashed = (address & _SIZE_MASK) >> shift
    if hashed << shift != address & _SIZE_MASK:
        raise ValueError(f"address {address:#x} is not aligned to {alignment}")
    return hashed