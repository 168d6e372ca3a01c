"""Loading of preprocessed ranking datasets."""

from __future__ import annotations

import os
from dataclasses import dataclass

import numpy as np


class DatasetError(Exception):
    """Raised when a dataset file is missing, unsupported or malformed."""


@dataclass
class Dataset:
    """Normalised points, their group labels and the protected group label."""

    points: np.ndarray
    groups: np.ndarray
    protected_group: int


def _load_table(path: str) -> np.ndarray:
    try:
        data = np.loadtxt(path, delimiter=",", dtype=float, ndmin=2)
    except ValueError as exc:
        raise DatasetError(f"Malformed dataset file '{path}': {exc}") from exc
    if data.shape[0] < 2:
        raise DatasetError(f"Dataset file '{path}' lacks the minimum and maximum rows.")
    return data


def _normalised_points(data: np.ndarray, dimension: int) -> np.ndarray:
    minimum = data[0, :dimension]
    maximum = data[1, :dimension]
    with np.errstate(divide="ignore"):
        normalizer = 1.0 / (maximum - minimum)
    return data[2:, :dimension] * normalizer


def _read_compas(path: str) -> Dataset:
    data = _load_table(path)
    dimension = data.shape[1] - 2
    if dimension < 1:
        raise DatasetError(f"Dataset file '{path}' has too few columns.")
    points = _normalised_points(data, dimension)
    races = data[2:, dimension + 1].astype(int)
    return Dataset(points=points, groups=races, protected_group=0)


def _read_jee(path: str) -> Dataset:
    data = _load_table(path)
    dimension = data.shape[1] - 1
    if dimension < 1:
        raise DatasetError(f"Dataset file '{path}' has too few columns.")
    points = _normalised_points(data, dimension)
    genders = data[2:, dimension].astype(int)
    return Dataset(points=points, groups=genders, protected_group=1)


def read_preprocessed_dataset(path) -> Dataset:
    """Read a preprocessed COMPAS or JEE dataset, chosen by the file name.

    The first two rows hold the per-column minimum and maximum; each
    remaining row is a point followed by its group columns.
    """
    path = os.fspath(path)
    if not os.path.exists(path):
        raise DatasetError(
            f"Fail to find the dataset file '{path}'. "
            "Verify the path and filename are correct."
        )
    if "compas" in path:
        return _read_compas(path)
    if "jee" in path:
        return _read_jee(path)
    raise DatasetError(f"Unsupported dataset: '{path}'.")