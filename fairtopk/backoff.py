"""Backoff strategies for spinning retry loops."""

from __future__ import annotations

import time


def hardware_pause() -> None:
    """Yield the processor briefly to other threads."""
    time.sleep(0)


class NoBackoff:
    """Backoff strategy that does nothing."""

    def __call__(self) -> None:
        return None


class SingleBackoff:
    """Backoff strategy that always pauses once."""

    def __call__(self) -> None:
        hardware_pause()


class ExponentialBackoff:
    """Pause a doubling number of times per call, up to ``maximum``."""

    def __init__(self, maximum: int) -> None:
        if maximum <= 0:
            raise ValueError(
                "maximum must be greater than zero; use NoBackoff to avoid backing off"
            )
        self._maximum = maximum
        self._count = 1

    @property
    def maximum(self) -> int:
        return self._maximum

    @property
    def count(self) -> int:
        """Number of pauses the next call will perform."""
        return self._count

    def __call__(self) -> None:
        for _ in range(self._count):
            hardware_pause()
        self._count = min(self._maximum, self._count * 2)