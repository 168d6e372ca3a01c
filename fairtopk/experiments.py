"""Quality measures for fair top-k weight vectors."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Sequence

import numpy as np

from fairtopk.types import InputParams

EPSILON = 1e-8


@dataclass
class _TieSplit:
    base_indices: list
    base_protected: int
    vacant: int
    tie_protected: list
    tie_other: list


def _ranking(points, weights, k):
    pts = np.asarray(points, dtype=float)
    if pts.ndim == 1:
        pts = pts.reshape(-1, 1)
    scores = pts @ np.asarray(weights, dtype=float)
    if not 1 <= k <= len(scores):
        raise ValueError(f"k must lie between 1 and {len(scores)}, got {k}")
    order = np.argsort(-scores, kind="stable")
    return scores, order


def _split_ties(scores, order, k, groups, p_group) -> _TieSplit:
    kth_score = scores[order[k - 1]]
    split = _TieSplit([], 0, 0, [], [])
    for idx in order[:k]:
        protected = groups[idx] == p_group
        if scores[idx] - kth_score > EPSILON:
            split.base_indices.append(idx)
            split.base_protected += int(protected)
        else:
            split.vacant += 1
            (split.tie_protected if protected else split.tie_other).append(idx)
    for idx in order[k:]:
        if kth_score - scores[idx] > EPSILON:
            break
        (split.tie_protected if groups[idx] == p_group else split.tie_other).append(idx)
    return split


def _target_count(split: _TieSplit, lower_bound: int, upper_bound: int) -> int:
    lowest = split.base_protected + max(0, split.vacant - len(split.tie_other))
    highest = split.base_protected + split.vacant - max(0, split.vacant - len(split.tie_protected))
    target = lower_bound + int((upper_bound - lower_bound) / 2)
    if target < lowest:
        return lowest
    if target > highest:
        return highest
    return target


def p_group_count(points, k, groups, p_group, lower_bound, upper_bound, weights) -> int:
    """Number of protected items in the top-k, resolving ties towards the bounds' midpoint."""
    scores, order = _ranking(points, weights, k)
    split = _split_ties(scores, order, k, groups, p_group)
    return _target_count(split, lower_bound, upper_bound)


def top_k_utility(
    points, k, groups, p_group, lower_bound, upper_bound, scores, weights, arbitrary_tie_breaking
) -> float:
    """Sum of ``scores`` over the top-k items ranked by ``weights``.

    With arbitrary tie breaking the first k items of the stable ranking are
    taken; otherwise ties at the k-th place are filled to reach the protected
    count chosen by :func:`p_group_count`.
    """
    ranking_scores, order = _ranking(points, weights, k)
    utilities = np.asarray(scores, dtype=float)
    if arbitrary_tie_breaking:
        return float(sum(utilities[idx] for idx in order[:k]))

    split = _split_ties(ranking_scores, order, k, groups, p_group)
    target = _target_count(split, lower_bound, upper_bound)
    add_protected = target - split.base_protected
    add_other = split.vacant - add_protected
    chosen = (
        split.base_indices
        + split.tie_protected[:add_protected]
        + split.tie_other[:add_other]
    )
    return float(sum(utilities[idx] for idx in chosen))


@dataclass
class QualityReport:
    """Averages over a set of fair weight vectors; ``None`` when there were none."""

    weight_difference: Optional[float] = None
    p_group_proportion: Optional[float] = None
    utility_loss: Optional[float] = None

    def format(self) -> str:
        """Render the report as printable lines."""
        if self.weight_difference is None:
            return "\n".join(
                [
                    "Average weight vector difference: N/A",
                    "Average protected group fraction: N/A",
                    "Average utility loss: N/A",
                ]
            )
        return "\n".join(
            [
                f"Average weight vector difference: {self.weight_difference:e}",
                f"Average protected group proportion: {self.p_group_proportion:e}",
                f"Average utility loss: {self.utility_loss:e}",
            ]
        )


def evaluate_quality(
    points,
    groups,
    p_group,
    params: InputParams,
    fair_vectors: Sequence,
    unfair_vectors: Sequence,
) -> QualityReport:
    """Compare fair weight vectors with the unfair vectors they replace.

    ``fair_vectors`` holds ``(index, vector)`` pairs where ``index`` selects
    the original vector in ``unfair_vectors``.
    """
    if not fair_vectors:
        return QualityReport()

    pts = np.asarray(points, dtype=float)
    pairs = [(idx, np.asarray(vec, dtype=float)) for idx, vec in fair_vectors]
    originals = [np.asarray(vec, dtype=float) for vec in unfair_vectors]
    size = len(pairs)

    difference = sum(float(np.abs(vec - originals[idx]).sum()) for idx, vec in pairs) / size

    protected_total = sum(
        p_group_count(
            pts, params.k, groups, p_group,
            params.p_group_lower_bound, params.p_group_upper_bound, vec,
        )
        for _, vec in pairs
    )
    proportion = (protected_total / params.k) / size

    loss_total = 0.0
    for idx, vec in pairs:
        original = originals[idx]
        scores = pts @ original
        original_utility = top_k_utility(
            pts, params.k, groups, p_group,
            params.p_group_lower_bound, params.p_group_upper_bound, scores, original, True,
        )
        new_utility = top_k_utility(
            pts, params.k, groups, p_group,
            params.p_group_lower_bound, params.p_group_upper_bound, scores, vec, False,
        )
        loss_total += 1.0 - new_utility / original_utility

    return QualityReport(
        weight_difference=difference,
        p_group_proportion=proportion,
        utility_loss=loss_total / size,
    )