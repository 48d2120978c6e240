"""Entropy-split binary decision tree for integer features and integer labels."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from typing import Self

import numpy as np
from loguru import logger

from forestkit.decision_tree.models import (
    DEFAULT_MIN_NODE_SIZE,
    ClassificationRule,
    CrossValidationResult,
    Predicate,
    SplitRule,
    TreeConfig,
)
from forestkit.decision_tree.splitting import candidate_feature_indices, find_best_split
from forestkit.decision_tree.statistics import feature_values, is_pure, label_mode, label_values
from forestkit.decision_tree.tracing import SampleSplitTrace
from forestkit.decision_tree.validation import (
    as_feature_matrix,
    as_label_vector,
    compute_accuracy,
    fold_bounds,
    shuffle_samples,
)
from forestkit.exceptions import DuplicateFeaturesError, NotFittedError, UnknownFeatureError
from forestkit.logging import TRAINING_LEVEL

_ROOT_ID: int = 0
_DEFAULT_FOLDS: int = 10


@dataclass(slots=True)
class TreeNode:
    """One node of a trained tree, stored in the tree's node list.

    Children are referenced by position in that list. A node without a split
    is a leaf.

    Attributes:
        label (int): Mode label of the training samples that reached the node.
        n_samples (int): Number of those training samples.
        confidence (float): Fraction of them carrying `label`.
        depth (int): Distance from the root.
        split (SplitRule | None): Routing rule of an internal node.
        left (int | None): Node id of the `< threshold` child.
        right (int | None): Node id of the `>= threshold` child.
    """

    label: int
    n_samples: int
    confidence: float
    depth: int
    split: SplitRule | None = None
    left: int | None = None
    right: int | None = None

    @property
    def is_leaf(self) -> bool:
        """Whether the node carries no split."""
        return self.split is None


class DecisionTree:
    """Binary classification tree grown by minimum weighted entropy.

    Every node is split on the (feature, threshold) pair with the lowest
    weighted entropy until its labels are pure, no feature separates its
    samples, or one side of the best split would hold fewer than
    `min_node_size` samples (in which case the whole split is discarded).

    Args:
        features (Sequence[str]): Ordered feature names; fixes the column count.
        min_node_size (int): Minimum number of samples each child of a split must receive.
        n_considered_features (int | None): Feature indices drawn at random
            (with replacement) for every split. `None` evaluates all features.
        verbose (bool): Log every accepted split at the TRAINING level.
        rng (np.random.Generator | int | None): Random source or seed used for
            feature subsampling and cross-validation shuffling.

    Examples:
        >>> tree = DecisionTree(["x"], min_node_size=1)
        >>> tree.fit([[0], [0], [1], [1]], [0, 0, 1, 1]).predict([[0], [1]]).tolist()
        [0, 1]
        >>> tree.root.split
        SplitRule(feature_index=0, threshold=1)
    """

    def __init__(
        self,
        features: Sequence[str],
        *,
        min_node_size: int = DEFAULT_MIN_NODE_SIZE,
        n_considered_features: int | None = None,
        verbose: bool = False,
        rng: np.random.Generator | int | None = None,
    ) -> None:
        feature_names = list(features)
        if not feature_names:
            raise ValueError("At least one feature name is required")
        if len(set(feature_names)) != len(feature_names):
            raise DuplicateFeaturesError(feature_names)

        self.config = TreeConfig(
            min_node_size=min_node_size,
            n_considered_features=n_considered_features,
            verbose=verbose,
        )
        if self.config.n_considered_features is not None and self.config.n_considered_features > len(feature_names):
            raise ValueError(
                f"n_considered_features={self.config.n_considered_features} exceeds the "
                f"{len(feature_names)} available features"
            )

        self._features = feature_names
        self._feature_map = {name: index for index, name in enumerate(feature_names)}
        self._rng = np.random.default_rng(rng)

        self._nodes: list[TreeNode] = []
        self._feature_values: list[list[int]] = []
        self._label_values: list[int] = []
        self._default_label: int | None = None

    # ------------------------------------------------------------------
    # Registry and fitted state
    # ------------------------------------------------------------------

    @property
    def feature_names(self) -> list[str]:
        """Ordered feature names."""
        return list(self._features)

    @property
    def n_features(self) -> int:
        """Number of feature columns every sample must have."""
        return len(self._features)

    @property
    def min_node_size(self) -> int:
        """Minimum child size of an accepted split."""
        return self.config.min_node_size

    @property
    def n_considered_features(self) -> int | None:
        """Features drawn per split, or `None` for all."""
        return self.config.n_considered_features

    @property
    def verbose(self) -> bool:
        """Whether TRAINING diagnostics are logged."""
        return self.config.verbose

    @property
    def is_fitted(self) -> bool:
        """Whether `fit` has completed."""
        return bool(self._nodes)

    def feature_index(self, name: str) -> int:
        """Return the column index of a feature name.

        Args:
            name (str): Feature name.

        Returns:
            int: Column index.

        Raises:
            UnknownFeatureError: If the name is not registered.
        """
        try:
            return self._feature_map[name]
        except KeyError:
            raise UnknownFeatureError(name, self.feature_names) from None

    @property
    def default_label(self) -> int:
        """Mode of the training labels; the starting prediction of every traversal."""
        self._check_fitted()
        return self._default_label  # type: ignore[return-value]

    @property
    def label_values(self) -> list[int]:
        """Distinct training labels in ascending order."""
        self._check_fitted()
        return list(self._label_values)

    @property
    def feature_values(self) -> list[list[int]]:
        """Distinct training values of each feature in ascending order."""
        self._check_fitted()
        return [list(values) for values in self._feature_values]

    @property
    def root(self) -> TreeNode:
        """The root node."""
        self._check_fitted()
        return self._nodes[_ROOT_ID]

    @property
    def nodes(self) -> list[TreeNode]:
        """All nodes; children are addressed by position in this list."""
        self._check_fitted()
        return list(self._nodes)

    @property
    def node_count(self) -> int:
        """Number of nodes."""
        self._check_fitted()
        return len(self._nodes)

    @property
    def leaf_count(self) -> int:
        """Number of leaf nodes."""
        self._check_fitted()
        return sum(1 for node in self._nodes if node.is_leaf)

    @property
    def depth(self) -> int:
        """Largest node depth; `0` for a single-leaf tree."""
        self._check_fitted()
        return max(node.depth for node in self._nodes)

    # ------------------------------------------------------------------
    # Training
    # ------------------------------------------------------------------

    def fit(self, data: np.ndarray | Sequence[Sequence[int]], labels: np.ndarray | Sequence[int]) -> Self:
        """Grow a new tree from a training set, discarding any previous tree.

        Args:
            data (np.ndarray | Sequence[Sequence[int]]): Integer samples, one row each.
            labels (np.ndarray | Sequence[int]): One integer label per sample.

        Returns:
            Self: This tree, for chaining.

        Raises:
            FeatureCountError: If a row width differs from the feature count.
            LabelCountError: If labels and rows are not aligned.
            ValueError: If the training set is empty.
        """
        matrix = as_feature_matrix(data, self.n_features)
        if matrix.shape[0] == 0:
            raise ValueError("Cannot train a decision tree on an empty training set")
        label_vector = as_label_vector(labels, matrix.shape[0])

        logger.debug("Training decision tree", n_samples=matrix.shape[0], n_features=self.n_features)

        self._label_values = label_values(label_vector)
        self._default_label = label_mode(label_vector, self._label_values)
        self._feature_values = feature_values(matrix)
        self._nodes = self._grow(matrix, label_vector)

        logger.info(
            "Decision tree trained",
            node_count=self.node_count,
            leaf_count=self.leaf_count,
            depth=self.depth,
        )
        return self

    def _grow(self, data: np.ndarray, labels: np.ndarray) -> list[TreeNode]:
        """Build the node list depth-first, left subtree before right.

        Args:
            data (np.ndarray): Training matrix.
            labels (np.ndarray): Training labels.

        Returns:
            list[TreeNode]: Nodes with the root at position 0.
        """
        nodes: list[TreeNode] = []
        root_id = self._add_node(nodes, labels, depth=0)
        pending: list[tuple[int, np.ndarray]] = [(root_id, np.arange(data.shape[0]))]

        while pending:
            node_id, indices = pending.pop()
            node = nodes[node_id]
            node_labels = labels[indices]
            if is_pure(node_labels):
                continue

            candidates = candidate_feature_indices(self.n_features, self.n_considered_features, self._rng)
            split = find_best_split(data[indices], node_labels, self._feature_values, candidates)
            if split is None:
                logger.debug("No informative split; node kept as leaf", n_samples=indices.size, depth=node.depth)
                continue

            goes_left = data[indices, split.feature_index] < split.threshold
            left_indices = indices[goes_left]
            right_indices = indices[~goes_left]
            if left_indices.size < self.min_node_size or right_indices.size < self.min_node_size:
                continue

            if self.verbose:
                logger.log(
                    TRAINING_LEVEL,
                    "Split node",
                    feature=self._features[split.feature_index],
                    threshold=split.threshold,
                    left_size=int(left_indices.size),
                    right_size=int(right_indices.size),
                    depth=node.depth,
                )

            node.split = split
            node.left = self._add_node(nodes, labels[left_indices], depth=node.depth + 1)
            node.right = self._add_node(nodes, labels[right_indices], depth=node.depth + 1)
            pending.append((node.right, right_indices))
            pending.append((node.left, left_indices))

        return nodes

    def _add_node(self, nodes: list[TreeNode], node_labels: np.ndarray, *, depth: int) -> int:
        """Append a leaf labelled with the mode of `node_labels` and return its id.

        Args:
            nodes (list[TreeNode]): Node list under construction.
            node_labels (np.ndarray): Training labels that reach the node.
            depth (int): Distance from the root.

        Returns:
            int: Position of the new node.
        """
        label = label_mode(node_labels, self._label_values)
        n_samples = int(node_labels.size)
        confidence = float(np.count_nonzero(node_labels == label)) / n_samples
        nodes.append(TreeNode(label=label, n_samples=n_samples, confidence=confidence, depth=depth))
        return len(nodes) - 1

    # ------------------------------------------------------------------
    # Prediction
    # ------------------------------------------------------------------

    def predict(
        self,
        data: np.ndarray | Sequence[Sequence[int]],
        *,
        trace: SampleSplitTrace | None = None,
    ) -> np.ndarray:
        """Predict a label for every sample.

        Args:
            data (np.ndarray | Sequence[Sequence[int]]): Integer samples, one row each.
            trace (SampleSplitTrace | None): Collector that is cleared and then
                records the path of its followed sample.

        Returns:
            np.ndarray: int64 label vector with one entry per sample.

        Raises:
            NotFittedError: If the tree has not been trained.
            FeatureCountError: If a row width differs from the feature count.
        """
        self._check_fitted()
        matrix = as_feature_matrix(data, self.n_features)
        if trace is not None:
            trace.clear()

        predictions = np.empty(matrix.shape[0], dtype=np.int64)
        for sample_index, sample in enumerate(matrix):
            predictions[sample_index], _ = self._route(sample, sample_index, trace)

        logger.debug("Decision tree predictions made", n_samples=matrix.shape[0])
        return predictions

    def predict_sample(self, sample: Sequence[int] | np.ndarray) -> int:
        """Predict the label of one sample.

        Args:
            sample (Sequence[int] | np.ndarray): One row of feature values.

        Returns:
            int: Predicted label.
        """
        return int(self.predict([list(sample)])[0])

    def apply(self, data: np.ndarray | Sequence[Sequence[int]]) -> np.ndarray:
        """Return the id of the node where each sample's traversal ends.

        Args:
            data (np.ndarray | Sequence[Sequence[int]]): Integer samples, one row each.

        Returns:
            np.ndarray: int64 node ids (positions in `nodes`).
        """
        self._check_fitted()
        matrix = as_feature_matrix(data, self.n_features)
        return np.array([self._route(sample, index, None)[1] for index, sample in enumerate(matrix)], dtype=np.int64)

    def score(self, data: np.ndarray | Sequence[Sequence[int]], labels: np.ndarray | Sequence[int]) -> float:
        """Accuracy of the tree's predictions against true labels.

        Args:
            data (np.ndarray | Sequence[Sequence[int]]): Integer samples.
            labels (np.ndarray | Sequence[int]): True labels.

        Returns:
            float: Accuracy, or `ACCURACY_ERROR` on mismatched lengths.
        """
        return compute_accuracy(self.predict(data), labels)

    def _route(self, sample: np.ndarray, sample_index: int, trace: SampleSplitTrace | None) -> tuple[int, int]:
        """Walk one sample from the root.

        The prediction starts at the default label and takes the label of each
        child entered. A missing child ends the walk with the last label.

        Args:
            sample (np.ndarray): One row of feature values.
            sample_index (int): Position of the sample in its batch.
            trace (SampleSplitTrace | None): Optional path collector.

        Returns:
            tuple[int, int]: `(predicted_label, final_node_id)`.
        """
        prediction: int = self._default_label  # type: ignore[assignment]
        node_id = _ROOT_ID
        node = self._nodes[node_id]
        record = trace is not None and trace.follows(sample_index)

        while node.split is not None:
            feature_index, threshold = node.split
            branch = node.split.branch(int(sample[feature_index]))
            if record:
                trace.record(sample_index, self._features[feature_index], threshold, branch)  # type: ignore[union-attr]
            child_id = node.left if branch == 0 else node.right
            if child_id is None:
                break
            node_id = child_id
            node = self._nodes[node_id]
            prediction = node.label

        return prediction, node_id

    # ------------------------------------------------------------------
    # Introspection
    # ------------------------------------------------------------------

    def extract_rules(self) -> list[ClassificationRule]:
        """Return one rule per leaf, in left-to-right leaf order.

        Returns:
            list[ClassificationRule]: Root-to-leaf predicates with the leaf's
                label, training sample count and confidence.
        """
        self._check_fitted()
        rules: list[ClassificationRule] = []
        pending: list[tuple[int, list[Predicate]]] = [(_ROOT_ID, [])]
        while pending:
            node_id, path = pending.pop()
            node = self._nodes[node_id]
            if node.split is None:
                rules.append(
                    ClassificationRule(
                        predicates=path,
                        prediction=node.label,
                        samples=node.n_samples,
                        confidence=round(node.confidence, 4),
                    )
                )
                continue
            name = self._features[node.split.feature_index]
            threshold = node.split.threshold
            if node.right is not None:
                pending.append((node.right, [*path, Predicate(variable=name, operator=">=", value=threshold)]))
            if node.left is not None:
                pending.append((node.left, [*path, Predicate(variable=name, operator="<", value=threshold)]))
        return rules

    # ------------------------------------------------------------------
    # Cross-validation
    # ------------------------------------------------------------------

    def cross_validate(
        self,
        data: np.ndarray | Sequence[Sequence[int]],
        labels: np.ndarray | Sequence[int],
        candidate_values: Sequence[int],
        k: int = _DEFAULT_FOLDS,
    ) -> CrossValidationResult:
        """Estimate accuracy of each candidate minimum node size by k-fold cross-validation.

        The samples are shuffled once; fold `j` holds out positions
        `[j*n//k, (j+1)*n//k)` of the shuffled order. A fresh tree with this
        tree's feature registry and considered-feature count is trained per
        candidate and fold, so this tree's own fitted state is unchanged.

        Args:
            data (np.ndarray | Sequence[Sequence[int]]): Integer samples.
            labels (np.ndarray | Sequence[int]): One label per sample.
            candidate_values (Sequence[int]): Minimum node sizes to evaluate.
                Repeated values are evaluated once.
            k (int): Number of folds, `2 <= k <= n_samples`.

        Returns:
            CrossValidationResult: Mean and per-fold accuracies per candidate.

        Raises:
            ValueError: If `k` is out of range or no candidates are given.
        """
        matrix = as_feature_matrix(data, self.n_features)
        label_vector = as_label_vector(labels, matrix.shape[0])
        n_samples = matrix.shape[0]
        if not 2 <= k <= n_samples:
            raise ValueError(f"k must be between 2 and the number of samples ({n_samples}), got {k}")
        candidates = list(dict.fromkeys(int(value) for value in candidate_values))
        if not candidates:
            raise ValueError("At least one candidate value is required")

        shuffled_data, shuffled_labels = shuffle_samples(matrix, label_vector, self._rng)
        positions = np.arange(n_samples)

        accuracies: dict[int, float] = {}
        fold_accuracies: dict[int, list[float]] = {}
        for value in candidates:
            if self.verbose:
                logger.log(TRAINING_LEVEL, "Cross-validating candidate", min_node_size=value)
            accuracies[value] = 0.0
            fold_accuracies[value] = []
            for fold in range(k):
                start, stop = fold_bounds(n_samples, k, fold)
                held_out = (positions >= start) & (positions < stop)

                fold_tree = DecisionTree(
                    self._features,
                    min_node_size=value,
                    n_considered_features=self.n_considered_features,
                    rng=self._rng,
                )
                fold_tree.fit(shuffled_data[~held_out], shuffled_labels[~held_out])
                accuracy = compute_accuracy(fold_tree.predict(shuffled_data[held_out]), shuffled_labels[held_out])

                fold_accuracies[value].append(accuracy)
                accuracies[value] += accuracy / k
                if self.verbose:
                    logger.log(TRAINING_LEVEL, "Fold evaluated", min_node_size=value, fold=fold, accuracy=accuracy)

        result = CrossValidationResult(k=k, accuracies=accuracies, fold_accuracies=fold_accuracies)
        logger.info("Cross-validation finished", k=k, accuracies=accuracies, best_value=result.best_value)
        return result

    def _check_fitted(self) -> None:
        """Raise `NotFittedError` when no tree has been grown yet."""
        if not self._nodes:
            raise NotFittedError("DecisionTree has not been trained; call fit() first")
