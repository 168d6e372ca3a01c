"""Binary space partitioning of weight space by hyperplanes."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Iterable, List, Optional, Tuple

import numpy as np
from scipy.optimize import linprog

from fairtopk.types import Plane

HalfSpace = Tuple[Plane, bool]
FairnessChecker = Callable[[List[HalfSpace]], Optional[np.ndarray]]

_PARALLEL_EPS = 1e-10
_LP_TOLERANCE = 1e-12


def intersects(plane: Plane, half_spaces: Iterable[HalfSpace]) -> bool:
    """Tell whether ``plane`` meets the open cell bounded by ``half_spaces``.

    Each half-space is a ``(plane, positive)`` pair; ``positive`` selects the
    side where ``normal · x >= constant``, otherwise ``normal · x <= constant``.
    """
    half_spaces = list(half_spaces)
    if not half_spaces:
        return True
    if len(half_spaces) == 1:
        other, positive = half_spaces[0]
        dot = float(plane.unit_normal() @ other.unit_normal())
        if abs(1.0 - dot) <= _PARALLEL_EPS:
            if positive:
                return plane.constant >= other.constant
            return plane.constant <= other.constant
        return True

    dimension = plane.normal.shape[0]
    rows = []
    rhs = []
    for other, positive in half_spaces:
        sign = -1.0 if positive else 1.0
        rows.append(np.append(sign * other.normal, 1.0))
        rhs.append(sign * other.constant)

    cost = np.zeros(dimension + 1)
    cost[-1] = -1.0
    # The slack is capped so the program stays bounded; only its sign matters.
    bounds = [(None, None)] * dimension + [(None, 1.0)]
    result = linprog(
        cost,
        A_ub=np.array(rows),
        b_ub=np.array(rhs),
        A_eq=np.append(plane.normal, 0.0).reshape(1, -1),
        b_eq=np.array([plane.constant]),
        bounds=bounds,
        method="highs",
    )
    return result.status == 0 and result.fun < -_LP_TOLERANCE


@dataclass(eq=False)
class _Node:
    plane: Plane
    positive: Optional["_Node"] = None
    negative: Optional["_Node"] = None


class BSPTree:
    """A tree of hyperplanes whose leaves are convex cells of weight space."""

    def __init__(self) -> None:
        self._root: Optional[_Node] = None
        self._size = 0

    def __len__(self) -> int:
        return self._size

    def _new_node(self, plane: Plane) -> _Node:
        self._size += 1
        return _Node(plane)

    def insert(self, plane: Plane, fairness_checker: FairnessChecker) -> Optional[np.ndarray]:
        """Split every cell that ``plane`` crosses, testing each new cell.

        ``fairness_checker`` receives the half-spaces bounding a cell and
        returns a weight vector when the cell holds a fair one, else ``None``.
        The first weight vector found is returned and the insertion stops;
        ``None`` means no cell passed the check.
        """
        if self._root is None:
            self._root = self._new_node(plane)
            for side in (True, False):
                weights = fairness_checker([(self._root.plane, side)])
                if weights is not None:
                    return weights
            return None

        half_spaces: List[HalfSpace] = []
        stack = [[self._root, 0]]
        while stack:
            frame = stack[-1]
            node, visits = frame
            if visits >= 2:
                stack.pop()
                half_spaces.pop()
                continue
            frame[1] = visits + 1

            positive = visits == 0
            if positive:
                half_spaces.append((node.plane, True))
            else:
                half_spaces[-1] = (node.plane, False)

            if not intersects(plane, half_spaces):
                continue
            child = node.positive if positive else node.negative
            if child is not None:
                stack.append([child, 0])
                continue
            weights = fairness_checker(list(half_spaces))
            if weights is not None:
                return weights
            leaf = self._new_node(plane)
            if positive:
                node.positive = leaf
            else:
                node.negative = leaf

        return None