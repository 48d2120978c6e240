"""Input validation, accuracy scoring, and k-fold bookkeeping."""

from __future__ import annotations

from collections.abc import Sequence

import numpy as np
from loguru import logger
from sklearn.metrics import accuracy_score

from forestkit.exceptions import FeatureCountError, LabelCountError

# Returned instead of raising so that automated sweeps can continue.
ACCURACY_ERROR: float = -1.0


def as_feature_matrix(data: np.ndarray | Sequence[Sequence[int]], n_features: int) -> np.ndarray:
    """Convert input rows to a 2-D int64 matrix and check its width.

    Args:
        data (np.ndarray | Sequence[Sequence[int]]): Samples, one row each.
        n_features (int): Declared feature count.

    Returns:
        np.ndarray: Matrix of shape `(n_samples, n_features)`.

    Raises:
        FeatureCountError: If any row does not have exactly `n_features` values.
    """
    if isinstance(data, np.ndarray):
        matrix = data
    else:
        rows = list(data)
        for row in rows:
            if len(row) != n_features:
                raise FeatureCountError(expected=n_features, actual=len(row))
        matrix = np.array(rows, dtype=np.int64).reshape(len(rows), n_features)
    if matrix.ndim != 2:
        raise FeatureCountError(expected=n_features, actual=matrix.shape[-1] if matrix.ndim else 0)
    if matrix.shape[1] != n_features:
        raise FeatureCountError(expected=n_features, actual=matrix.shape[1])
    return matrix.astype(np.int64, copy=False)


def as_label_vector(labels: np.ndarray | Sequence[int], n_samples: int) -> np.ndarray:
    """Convert a label sequence to a 1-D int64 vector aligned with the samples.

    Args:
        labels (np.ndarray | Sequence[int]): One integer label per sample.
        n_samples (int): Number of rows in the matching feature matrix.

    Returns:
        np.ndarray: Label vector of shape `(n_samples,)`.

    Raises:
        LabelCountError: If the vector length differs from `n_samples`.
    """
    vector = np.asarray(labels, dtype=np.int64).ravel()
    if vector.shape[0] != n_samples:
        raise LabelCountError(n_samples=n_samples, n_labels=vector.shape[0])
    return vector


def compute_accuracy(predictions: np.ndarray | Sequence[int], labels: np.ndarray | Sequence[int]) -> float:
    """Fraction of predictions equal to the true labels.

    Args:
        predictions (np.ndarray | Sequence[int]): Predicted labels.
        labels (np.ndarray | Sequence[int]): True labels.

    Returns:
        float: Accuracy in `[0, 1]`, or `ACCURACY_ERROR` when the vectors
            differ in length or are empty.

    Examples:
        >>> compute_accuracy([0, 1, 1, 0], [0, 1, 0, 0])
        0.75
        >>> compute_accuracy([0, 1], [0])
        -1.0
    """
    prediction_array = np.asarray(predictions)
    label_array = np.asarray(labels)
    if prediction_array.shape[0] != label_array.shape[0]:
        logger.warning(
            "Accuracy requested for mismatched vectors",
            n_predictions=prediction_array.shape[0],
            n_labels=label_array.shape[0],
        )
        return ACCURACY_ERROR
    if label_array.shape[0] == 0:
        logger.warning("Accuracy requested for empty vectors")
        return ACCURACY_ERROR
    return float(accuracy_score(label_array, prediction_array))


def shuffle_samples(
    data: np.ndarray,
    labels: np.ndarray,
    rng: np.random.Generator,
) -> tuple[np.ndarray, np.ndarray]:
    """Return data and labels reordered by one random permutation.

    The inputs are left untouched.

    Args:
        data (np.ndarray): 2-D feature matrix.
        labels (np.ndarray): Aligned label vector.
        rng (np.random.Generator): Random source.

    Returns:
        tuple[np.ndarray, np.ndarray]: Shuffled `(data, labels)`.
    """
    order = rng.permutation(data.shape[0])
    return data[order], labels[order]


def fold_bounds(n_samples: int, k: int, fold: int) -> tuple[int, int]:
    """Return the `[start, stop)` positions of one validation fold.

    Args:
        n_samples (int): Total number of samples.
        k (int): Number of folds.
        fold (int): Fold number in `[0, k)`.

    Returns:
        tuple[int, int]: `(fold * n // k, (fold + 1) * n // k)`.

    Examples:
        >>> [fold_bounds(10, 3, j) for j in range(3)]
        [(0, 3), (3, 6), (6, 10)]
    """
    return fold * n_samples // k, (fold + 1) * n_samples // k
