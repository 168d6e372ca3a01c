import numpy as np
import pytest

from fairtopk.experiments import (
    QualityReport,
    evaluate_quality,
    p_group_count,
    top_k_utility,
)
from fairtopk.types import InputParams


def test_p_group_count_without_ties():
    points = [[3.0], [2.0], [1.0]]
    groups = [0, 1, 0]
    assert p_group_count(points, 2, groups, 1, 0, 2, [1.0]) == 1
    assert p_group_count(points, 1, groups, 1, 0, 2, [1.0]) == 0


@pytest.mark.parametrize("bounds", [(0, 0), (0, 2), (2, 2), (1, 1)])
def test_p_group_count_ties_follow_bounds(bounds):
    lower, upper = bounds
    points = [[1.0], [1.0], [1.0], [1.0]]
    groups = [1, 0, 1, 0]
    result = p_group_count(points, 2, groups, 1, lower, upper, [1.0])
    assert lower <= result <= upper
    assert 0 <= result <= 2


def test_p_group_count_clamped_to_available_protected():
    points = [[2.0, 0.0], [1.0, 0.0], [1.0, 0.0]]
    groups = [0, 0, 1]
    # one tie slot, one protected candidate among the ties: at most 1
    assert p_group_count(points, 2, groups, 1, 2, 2, [1.0, 0.0]) == 1


def test_p_group_count_rejects_bad_k():
    with pytest.raises(ValueError):
        p_group_count([[1.0]], 2, [0], 0, 0, 1, [1.0])
    with pytest.raises(ValueError):
        p_group_count([[1.0]], 0, [0], 0, 0, 1, [1.0])


def test_top_k_utility_arbitrary_takes_first_k():
    points = [[3.0], [2.0], [1.0]]
    scores = [3.0, 2.0, 1.0]
    assert top_k_utility(points, 2, [0, 1, 0], 1, 0, 2, scores, [1.0], True) == 5.0


@pytest.mark.parametrize(
    "bounds,expected",
    [((2, 2), 10.0 + 30.0), ((0, 0), 20.0 + 40.0)],
)
def test_top_k_utility_ties_choose_group(bounds, expected):
    points = [[1.0], [1.0], [1.0], [1.0]]
    groups = [1, 0, 1, 0]
    scores = [10.0, 20.0, 30.0, 40.0]
    result = top_k_utility(points, 2, groups, 1, bounds[0], bounds[1], scores, [1.0], False)
    assert result == expected


def test_top_k_utility_matches_arbitrary_without_ties():
    rng = np.random.default_rng(3)
    points = rng.random((20, 3))
    weights = np.array([0.2, 0.5, 0.3])
    groups = [i % 2 for i in range(20)]
    scores = points @ weights
    arb = top_k_utility(points, 5, groups, 1, 1, 3, scores, weights, True)
    fair = top_k_utility(points, 5, groups, 1, 1, 3, scores, weights, False)
    assert fair == pytest.approx(arb)


def test_evaluate_quality_empty_reports_na():
    report = evaluate_quality([[1.0]], [0], 0, InputParams(k=1), [], [])
    assert report == QualityReport()
    assert report.format().count("N/A") == 3


def test_evaluate_quality_identical_vectors():
    points = [[3.0, 1.0], [2.0, 2.0], [1.0, 0.5], [0.5, 0.2]]
    groups = [0, 1, 1, 0]
    params = InputParams(k=2, p_group_lower_bound=0, p_group_upper_bound=2)
    weights = [0.6, 0.4]
    report = evaluate_quality(points, groups, 1, params, [(0, weights)], [weights])
    assert report.weight_difference == 0.0
    assert report.utility_loss == pytest.approx(0.0)
    expected = p_group_count(points, 2, groups, 1, 0, 2, weights) / 2
    assert report.p_group_proportion == pytest.approx(expected)
    assert "Average weight vector difference: 0.000000e+00" in report.format()


def test_evaluate_quality_loss_is_non_negative():
    rng = np.random.default_rng(7)
    points = rng.random((30, 2))
    groups = [i % 3 == 0 for i in range(30)]
    groups = [int(g) for g in groups]
    params = InputParams(k=5, p_group_lower_bound=1, p_group_upper_bound=3)
    unfair = [np.array([0.9, 0.1]), np.array([0.3, 0.7])]
    fair = [(0, np.array([0.5, 0.5])), (1, np.array([0.1, 0.9]))]
    report = evaluate_quality(points, groups, 1, params, fair, unfair)
    assert report.utility_loss >= -1e-12
    assert report.weight_difference == pytest.approx((0.8 + 0.4) / 2)
    assert 0.0 <= report.p_group_proportion <= 1.0
    assert "Average protected group proportion" in report.format()