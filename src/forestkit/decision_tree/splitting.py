"""Split search: weighted Shannon entropy and best (feature, threshold) selection.

For every candidate feature the search evaluates thresholds drawn from the
values observed for that feature in the tree's training set:

- Exactly two observed values `{a, b}` (`a < b`): one split, samples equal to
  `a` go left and the reported threshold is `b`.
- More than two observed values: every observed value `v` is tried, with
  samples `< v` on the left and `>= v` on the right.
- Fewer than two observed values: the feature is constant and yields nothing.

The first candidate reaching a strictly lower entropy wins, scanning features
in the given order and thresholds in ascending order.
"""

from __future__ import annotations

import math
from collections.abc import Sequence

import numpy as np

from forestkit.decision_tree.models import SplitRule


def side_entropy(labels: np.ndarray) -> float:
    """Shannon entropy (base 2) of one side of a partition.

    Args:
        labels (np.ndarray): Labels on this side; may be empty.

    Returns:
        float: `-sum(p * log2(p))` over observed labels, `0.0` when empty.
    """
    if labels.size == 0:
        return 0.0
    _, counts = np.unique(labels, return_counts=True)
    probabilities = counts / labels.size
    return float(-np.sum(probabilities * np.log2(probabilities)))


def weighted_entropy(left_labels: np.ndarray, right_labels: np.ndarray) -> float:
    """Size-weighted entropy of a binary partition.

    Args:
        left_labels (np.ndarray): Labels routed to the left child.
        right_labels (np.ndarray): Labels routed to the right child.

    Returns:
        float: `(|L|/n) * H(L) + (|R|/n) * H(R)`.

    Examples:
        >>> weighted_entropy(np.array([0, 0]), np.array([1, 1]))
        0.0
        >>> weighted_entropy(np.array([0, 1]), np.array([0, 1]))
        1.0
    """
    total = left_labels.size + right_labels.size
    if total == 0:
        return 0.0
    left_fraction = left_labels.size / total
    right_fraction = right_labels.size / total
    return left_fraction * side_entropy(left_labels) + right_fraction * side_entropy(right_labels)


def candidate_feature_indices(
    n_features: int,
    n_considered: int | None,
    rng: np.random.Generator,
) -> list[int]:
    """Choose the feature indices evaluated at one split.

    Args:
        n_features (int): Total number of features.
        n_considered (int | None): Number of indices to draw. `None` (or a
            value equal to `n_features`) returns every index in order.
        rng (np.random.Generator): Random source for the subset draw.

    Returns:
        list[int]: Feature indices; random draws are uniform and may repeat.
    """
    if n_considered is None or n_considered >= n_features:
        return list(range(n_features))
    return [int(index) for index in rng.integers(0, n_features, size=n_considered)]


def find_best_split(
    data: np.ndarray,
    labels: np.ndarray,
    feature_values: Sequence[Sequence[int]],
    candidate_features: Sequence[int],
) -> SplitRule | None:
    """Find the (feature, threshold) pair minimizing weighted entropy.

    Args:
        data (np.ndarray): 2-D integer matrix of the samples at the node.
        labels (np.ndarray): Labels of those samples.
        feature_values (Sequence[Sequence[int]]): Ascending distinct values
            of every feature over the tree's whole training set.
        candidate_features (Sequence[int]): Feature indices to evaluate, in order.

    Returns:
        SplitRule | None: The best split, or `None` when there are no samples
            or every candidate feature is constant.
    """
    if data.shape[0] == 0:
        return None

    best_split: SplitRule | None = None
    min_entropy = math.inf
    for feature_index in candidate_features:
        values = feature_values[feature_index]
        column = data[:, feature_index]

        if len(values) == 2:
            left_mask = column == values[0]
            entropy = weighted_entropy(labels[left_mask], labels[~left_mask])
            if entropy < min_entropy:
                best_split = SplitRule(feature_index, int(values[1]))
                min_entropy = entropy

        elif len(values) > 2:
            for threshold in values:
                left_mask = column < threshold
                entropy = weighted_entropy(labels[left_mask], labels[~left_mask])
                if entropy < min_entropy:
                    best_split = SplitRule(feature_index, int(threshold))
                    min_entropy = entropy

    return best_split
