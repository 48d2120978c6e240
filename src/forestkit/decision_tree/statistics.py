"""Distinct-value and mode statistics over a training set."""

from __future__ import annotations

from collections.abc import Sequence

import numpy as np


def label_values(labels: np.ndarray | Sequence[int]) -> list[int]:
    """Return the distinct labels in ascending order.

    Args:
        labels (np.ndarray | Sequence[int]): Label vector.

    Returns:
        list[int]: Sorted distinct label values.

    Examples:
        >>> label_values([2, 0, 2, 1])
        [0, 1, 2]
    """
    return [int(value) for value in np.unique(np.asarray(labels, dtype=np.int64))]


def feature_values(data: np.ndarray) -> list[list[int]]:
    """Return the sorted distinct values observed in each feature column.

    Args:
        data (np.ndarray): 2-D integer matrix with shape `(n_samples, n_features)`.

    Returns:
        list[list[int]]: One ascending list per column.

    Examples:
        >>> feature_values(np.array([[3, 1], [1, 1], [2, 1]]))
        [[1, 2, 3], [1]]
    """
    return [[int(value) for value in np.unique(data[:, column])] for column in range(data.shape[1])]


def label_mode(labels: np.ndarray | Sequence[int], values: Sequence[int] | None = None) -> int:
    """Return the most frequent label.

    Candidates are scanned in the order of `values` and the first one with the
    strictly highest count wins, so ties go to the label listed first (the
    smallest, when `values` comes from `label_values`). Labels absent from
    `values` are not counted.

    Args:
        labels (np.ndarray | Sequence[int]): Labels to summarise.
        values (Sequence[int] | None): Candidate labels in scan order.
            Defaults to the distinct values of `labels`.

    Returns:
        int: The mode label.

    Raises:
        ValueError: If no label in `labels` is among the candidates.

    Examples:
        >>> label_mode([1, 0, 1, 0])
        0
        >>> label_mode([1, 0, 1, 0], values=[1, 0])
        1
    """
    label_array = np.asarray(labels, dtype=np.int64)
    candidates = label_values(label_array) if values is None else values
    best_label: int | None = None
    best_count = 0
    for candidate in candidates:
        count = int(np.count_nonzero(label_array == candidate))
        if count > best_count:
            best_label, best_count = int(candidate), count
    if best_label is None:
        raise ValueError("Cannot take the mode of an empty label vector")
    return best_label


def is_pure(labels: np.ndarray) -> bool:
    """Return whether every label in a non-empty vector is identical.

    Args:
        labels (np.ndarray): 1-D label vector.

    Returns:
        bool: `True` if all entries equal the first one.
    """
    return bool(np.all(labels == labels[0]))
