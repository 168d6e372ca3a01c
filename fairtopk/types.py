"""Plain value types shared across the package."""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np


@dataclass
class Plane:
    """A hyperplane ``normal · x = constant``; the normal need not be unit length."""

    normal: np.ndarray
    constant: float

    def __post_init__(self) -> None:
        self.normal = np.asarray(self.normal, dtype=float)
        self.constant = float(self.constant)

    def unit_normal(self) -> np.ndarray:
        """Return the normal scaled to unit length; a zero normal is returned unchanged."""
        norm = float(np.linalg.norm(self.normal))
        if norm > 0.0:
            return self.normal / norm
        return self.normal.copy()


@dataclass
class InputParams:
    """Parameters controlling a fair top-k run."""

    k: int = 0
    p_group_lower_bound: int = 0
    p_group_upper_bound: int = 0
    margin: float = 0.0
    thread_count: int = 0
    sample_count: int = 0
    uniform_sampling: bool = False
    runtime: bool = False
    quality: bool = False
    unoptimized: bool = False
    solver: str = "gurobi"