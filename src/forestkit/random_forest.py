"""Bootstrap-aggregated ensemble of entropy-split decision trees."""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Sequence
from typing import Self

import numpy as np
from loguru import logger
from pydantic import BaseModel, ConfigDict, Field

from forestkit.decision_tree.models import DEFAULT_MIN_NODE_SIZE
from forestkit.decision_tree.statistics import label_mode, label_values
from forestkit.decision_tree.tree import DecisionTree
from forestkit.decision_tree.validation import as_feature_matrix, as_label_vector, compute_accuracy
from forestkit.exceptions import DuplicateFeaturesError, NotFittedError
from forestkit.logging import TRAINING_LEVEL

DEFAULT_N_TREES: int = 100


class ForestConfig(BaseModel):
    """Hyperparameters of a random forest.

    Attributes:
        n_trees (int): Number of bootstrap samples, one tree each.
        n_features_per_split (int | None): Feature indices drawn at random
            (with replacement) at every split of every tree. `None` evaluates
            all features, which reduces the ensemble to plain bagging.
        min_node_size (int): Minimum child size of an accepted split.
        store_root_splits (bool): Count the root split of every tree.
        verbose (bool): Log member trees and their splits at the TRAINING level.

    Examples:
        >>> ForestConfig().n_trees
        100
    """

    model_config = ConfigDict(frozen=True)

    n_trees: int = Field(default=DEFAULT_N_TREES, ge=1, description="Number of bootstrap trees.")
    n_features_per_split: int | None = Field(
        default=None,
        ge=1,
        description="Features drawn per split; None means every feature is evaluated.",
    )
    min_node_size: int = Field(
        default=DEFAULT_MIN_NODE_SIZE,
        ge=1,
        description="Minimum number of training samples each child of a split must receive.",
    )
    store_root_splits: bool = Field(default=False, description="Whether root splits are counted per feature.")
    verbose: bool = Field(default=False, description="Whether training diagnostics are logged.")


def bootstrap_sample(
    data: np.ndarray,
    labels: np.ndarray,
    rng: np.random.Generator,
) -> tuple[np.ndarray, np.ndarray]:
    """Draw a same-size resample with replacement.

    Args:
        data (np.ndarray): 2-D training matrix.
        labels (np.ndarray): Aligned label vector.
        rng (np.random.Generator): Random source; consumes one `integers` draw.

    Returns:
        tuple[np.ndarray, np.ndarray]: Resampled `(data, labels)`.
    """
    n_samples = data.shape[0]
    indices = rng.integers(0, n_samples, size=n_samples)
    return data[indices], labels[indices]


class RandomForest:
    """Majority-vote ensemble of decision trees trained on bootstrap samples.

    Each member is an independent `DecisionTree` that shares the forest's
    random generator, so a seed reproduces both the bootstrap draws and the
    per-split feature subsampling.

    Args:
        features (Sequence[str]): Ordered feature names.
        n_trees (int): Number of trees.
        n_features_per_split (int | None): Features drawn per split; `None` for all.
        min_node_size (int): Minimum child size of an accepted split.
        store_root_splits (bool): Keep a histogram of root (feature, threshold) choices.
        verbose (bool): Log TRAINING diagnostics.
        rng (np.random.Generator | int | None): Random source or seed.

    Examples:
        >>> forest = RandomForest(["x"], n_trees=5, min_node_size=1, rng=0)
        >>> forest.fit([[0], [0], [1], [1]], [0, 0, 1, 1]).predict([[0], [1]]).shape
        (2,)
    """

    def __init__(
        self,
        features: Sequence[str],
        *,
        n_trees: int = DEFAULT_N_TREES,
        n_features_per_split: int | None = None,
        min_node_size: int = DEFAULT_MIN_NODE_SIZE,
        store_root_splits: bool = False,
        verbose: bool = False,
        rng: np.random.Generator | int | None = None,
    ) -> None:
        feature_names = list(features)
        if not feature_names:
            raise ValueError("At least one feature name is required")
        if len(set(feature_names)) != len(feature_names):
            raise DuplicateFeaturesError(feature_names)

        self.config = ForestConfig(
            n_trees=n_trees,
            n_features_per_split=n_features_per_split,
            min_node_size=min_node_size,
            store_root_splits=store_root_splits,
            verbose=verbose,
        )
        if self.config.n_features_per_split is not None and self.config.n_features_per_split > len(feature_names):
            raise ValueError(
                f"n_features_per_split={self.config.n_features_per_split} exceeds the "
                f"{len(feature_names)} available features"
            )

        self._features = feature_names
        self._rng = np.random.default_rng(rng)
        self._trees: list[DecisionTree] = []
        self._label_values: list[int] = []
        self._root_splits: defaultdict[str, defaultdict[int, int]] = defaultdict(lambda: defaultdict(int))

    @property
    def feature_names(self) -> list[str]:
        """Ordered feature names."""
        return list(self._features)

    @property
    def n_features(self) -> int:
        """Number of feature columns every sample must have."""
        return len(self._features)

    @property
    def trees(self) -> list[DecisionTree]:
        """The trained member trees, in training order."""
        self._check_fitted()
        return list(self._trees)

    @property
    def label_values(self) -> list[int]:
        """Distinct training labels in ascending order; the scan order of the vote."""
        self._check_fitted()
        return list(self._label_values)

    @property
    def root_split_histogram(self) -> dict[str, dict[int, int]]:
        """Feature name to threshold to number of trees splitting there at the root.

        Empty unless the forest was built with `store_root_splits=True`.
        Trees whose root is a leaf are not counted.
        """
        return {feature: dict(thresholds) for feature, thresholds in self._root_splits.items()}

    def fit(self, data: np.ndarray | Sequence[Sequence[int]], labels: np.ndarray | Sequence[int]) -> Self:
        """Train `n_trees` trees, each on its own bootstrap sample.

        Previously trained trees and root-split counts are discarded.

        Args:
            data (np.ndarray | Sequence[Sequence[int]]): Integer samples, one row each.
            labels (np.ndarray | Sequence[int]): One integer label per sample.

        Returns:
            Self: This forest, for chaining.

        Raises:
            FeatureCountError: If a row width differs from the feature count.
            LabelCountError: If labels and rows are not aligned.
            ValueError: If the training set is empty.
        """
        matrix = as_feature_matrix(data, self.n_features)
        if matrix.shape[0] == 0:
            raise ValueError("Cannot train a random forest on an empty training set")
        label_vector = as_label_vector(labels, matrix.shape[0])

        logger.debug(
            "Training random forest",
            n_samples=matrix.shape[0],
            n_trees=self.config.n_trees,
            n_features_per_split=self.config.n_features_per_split,
        )

        self._trees = []
        self._root_splits.clear()
        self._label_values = label_values(label_vector)

        for tree_number in range(self.config.n_trees):
            if self.config.verbose:
                logger.log(TRAINING_LEVEL, "Training member tree", tree=tree_number)
            sample_data, sample_labels = bootstrap_sample(matrix, label_vector, self._rng)
            tree = self._train_tree(sample_data, sample_labels)
            self._trees.append(tree)
            if self.config.store_root_splits:
                self._store_root_split(tree)

        logger.info(
            "Random forest trained",
            n_trees=len(self._trees),
            mean_node_count=float(np.mean([tree.node_count for tree in self._trees])),
        )
        return self

    def _train_tree(self, data: np.ndarray, labels: np.ndarray) -> DecisionTree:
        """Train one member tree with the forest's hyperparameters.

        Args:
            data (np.ndarray): Bootstrap sample.
            labels (np.ndarray): Bootstrap labels.

        Returns:
            DecisionTree: The trained tree.
        """
        tree = DecisionTree(
            self._features,
            min_node_size=self.config.min_node_size,
            n_considered_features=self.config.n_features_per_split,
            verbose=self.config.verbose,
            rng=self._rng,
        )
        return tree.fit(data, labels)

    def _store_root_split(self, tree: DecisionTree) -> None:
        """Count the (feature, threshold) of a tree's root split.

        Args:
            tree (DecisionTree): A trained member tree.
        """
        split = tree.root.split
        if split is None:
            return
        self._root_splits[self._features[split.feature_index]][split.threshold] += 1

    def predict_per_tree(self, data: np.ndarray | Sequence[Sequence[int]]) -> np.ndarray:
        """Predict with every member tree independently.

        Args:
            data (np.ndarray | Sequence[Sequence[int]]): Integer samples, one row each.

        Returns:
            np.ndarray: int64 matrix of shape `(n_trees, n_samples)`.
        """
        self._check_fitted()
        matrix = as_feature_matrix(data, self.n_features)
        return np.vstack([tree.predict(matrix) for tree in self._trees])

    def predict(self, data: np.ndarray | Sequence[Sequence[int]]) -> np.ndarray:
        """Predict by majority vote across trees.

        Ties go to the label that comes first among the ascending distinct
        training labels.

        Args:
            data (np.ndarray | Sequence[Sequence[int]]): Integer samples, one row each.

        Returns:
            np.ndarray: int64 label vector with one entry per sample.

        Raises:
            NotFittedError: If the forest has not been trained.
        """
        votes = self.predict_per_tree(data)
        predictions = np.array(
            [label_mode(votes[:, sample_index], self._label_values) for sample_index in range(votes.shape[1])],
            dtype=np.int64,
        )
        logger.debug("Random forest predictions made", n_samples=predictions.shape[0], n_trees=len(self._trees))
        return predictions

    def score(self, data: np.ndarray | Sequence[Sequence[int]], labels: np.ndarray | Sequence[int]) -> float:
        """Accuracy of the ensemble's predictions against true labels.

        Args:
            data (np.ndarray | Sequence[Sequence[int]]): Integer samples.
            labels (np.ndarray | Sequence[int]): True labels.

        Returns:
            float: Accuracy, or `ACCURACY_ERROR` on mismatched lengths.
        """
        return compute_accuracy(self.predict(data), labels)

    def _check_fitted(self) -> None:
        """Raise `NotFittedError` when no trees have been trained yet."""
        if not self._trees:
            raise NotFittedError("RandomForest has not been trained; call fit() first")
