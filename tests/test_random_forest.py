"""Tests for the bootstrap-aggregated random forest."""

from __future__ import annotations

import numpy as np
import pytest
from pydantic import ValidationError
from pytest_check import check

from forestkit import RandomForest
from forestkit.decision_tree.statistics import label_mode
from forestkit.decision_tree.tree import DecisionTree
from forestkit.exceptions import DuplicateFeaturesError, FeatureCountError, NotFittedError
from forestkit.random_forest import ForestConfig, bootstrap_sample


def _make_step_data() -> tuple[np.ndarray, np.ndarray]:
    """Forty samples of one feature in 0..9 with label `x >= 5`."""
    data = np.tile(np.arange(10), 4).reshape(-1, 1)
    labels = (data[:, 0] >= 5).astype(np.int64)
    return data, labels


def _make_diagonal_grid() -> tuple[np.ndarray, np.ndarray]:
    """Full 10x10 grid of two features with label `x0 + x1 >= 10`."""
    x0, x1 = np.meshgrid(np.arange(10), np.arange(10), indexing="ij")
    data = np.column_stack([x0.ravel(), x1.ravel()])
    labels = (data.sum(axis=1) >= 10).astype(np.int64)
    return data, labels


class TestForestConfig:
    """Tests for forest hyperparameter validation."""

    def test_defaults(self) -> None:
        """Defaults are 100 trees, all features per split, minimum node size 20."""
        # Arrange / Act
        config = ForestConfig()

        # Assert
        with check:
            assert config.n_trees == 100
        with check:
            assert config.n_features_per_split is None
        with check:
            assert config.min_node_size == 20
        with check:
            assert config.store_root_splits is False

    @pytest.mark.parametrize(
        "kwargs",
        [{"n_trees": 0}, {"n_features_per_split": 0}, {"min_node_size": 0}],
        ids=["no_trees", "no_features", "zero_node_size"],
    )
    def test_rejects_non_positive_values(self, kwargs: dict[str, int]) -> None:
        """Counts must be at least one."""
        # Act / Assert
        with pytest.raises(ValidationError):
            RandomForest(["x", "y"], **kwargs)


class TestBootstrapSample:
    """Tests for `bootstrap_sample`."""

    def test_resample_keeps_shape_and_alignment(self) -> None:
        """Rows and labels are drawn together, with the original sample count."""
        # Arrange
        data = np.arange(20).reshape(10, 2)
        labels = np.arange(10) * 10
        rng = np.random.default_rng(5)

        # Act
        sample_data, sample_labels = bootstrap_sample(data, labels, rng)

        # Assert
        with check:
            assert sample_data.shape == (10, 2)
        with check:
            assert sample_labels.shape == (10,)
        with check:
            # Row i of the input is [2i, 2i + 1] with label 10i
            assert np.array_equal(sample_labels, sample_data[:, 0] * 5)

    def test_inputs_are_untouched(self) -> None:
        """The caller's arrays are not reordered."""
        # Arrange
        data = np.arange(12).reshape(6, 2)
        labels = np.arange(6)
        data_before, labels_before = data.copy(), labels.copy()

        # Act
        bootstrap_sample(data, labels, np.random.default_rng(0))

        # Assert
        with check:
            assert np.array_equal(data, data_before)
        with check:
            assert np.array_equal(labels, labels_before)


class TestConstruction:
    """Tests for forest construction errors."""

    def test_duplicate_features_raise(self) -> None:
        """Feature names must be unique."""
        # Act / Assert
        with pytest.raises(DuplicateFeaturesError):
            RandomForest(["a", "a"])

    def test_empty_features_raise(self) -> None:
        """At least one feature is required."""
        # Act / Assert
        with pytest.raises(ValueError, match="At least one feature"):
            RandomForest([])

    def test_too_many_features_per_split_raise(self) -> None:
        """Features per split cannot exceed the feature count."""
        # Act / Assert
        with pytest.raises(ValueError, match="exceeds"):
            RandomForest(["a", "b"], n_features_per_split=3)


class TestFit:
    """Tests for `RandomForest.fit`."""

    def test_trains_requested_number_of_trees(self) -> None:
        """One member tree per bootstrap sample, each trained."""
        # Arrange
        data, labels = _make_step_data()
        forest = RandomForest(["x"], n_trees=7, min_node_size=1, rng=0)

        # Act
        forest.fit(data, labels)

        # Assert
        with check:
            assert len(forest.trees) == 7
        with check:
            assert all(tree.is_fitted for tree in forest.trees)
        with check:
            assert forest.label_values == [0, 1]

    def test_refit_replaces_trees(self) -> None:
        """A second fit discards the first ensemble."""
        # Arrange
        data, labels = _make_step_data()
        forest = RandomForest(["x"], n_trees=4, min_node_size=1, rng=0)
        forest.fit(data, labels)
        first_trees = forest.trees

        # Act
        forest.fit(data, labels)

        # Assert
        with check:
            assert len(forest.trees) == 4
        with check:
            assert all(tree not in first_trees for tree in forest.trees)

    def test_single_tree_matches_manual_bootstrap_tree(self) -> None:
        """With one tree the forest reproduces a tree trained on the same bootstrap draw."""
        # Arrange
        data, labels = _make_diagonal_grid()
        features = ["x0", "x1"]
        forest = RandomForest(
            features,
            n_trees=1,
            n_features_per_split=2,
            min_node_size=2,
            rng=np.random.default_rng(7),
        )
        rng = np.random.default_rng(7)
        sample_data, sample_labels = bootstrap_sample(data, labels, rng)
        tree = DecisionTree(features, n_considered_features=2, min_node_size=2, rng=rng)

        # Act
        forest.fit(data, labels)
        tree.fit(sample_data, sample_labels)

        # Assert
        assert np.array_equal(forest.predict(data), tree.predict(data))

    def test_same_seed_is_reproducible(self) -> None:
        """Two forests built from the same seed agree tree by tree."""
        # Arrange
        data, labels = _make_diagonal_grid()
        first = RandomForest(["x0", "x1"], n_trees=5, n_features_per_split=1, min_node_size=2, rng=3)
        second = RandomForest(["x0", "x1"], n_trees=5, n_features_per_split=1, min_node_size=2, rng=3)

        # Act
        first.fit(data, labels)
        second.fit(data, labels)

        # Assert
        assert np.array_equal(first.predict_per_tree(data), second.predict_per_tree(data))

    def test_empty_training_set_raises(self) -> None:
        """A forest needs at least one sample."""
        # Arrange
        forest = RandomForest(["x"], n_trees=2)

        # Act / Assert
        with pytest.raises(ValueError, match="empty training set"):
            forest.fit(np.empty((0, 1), dtype=np.int64), np.empty(0, dtype=np.int64))

    def test_wrong_width_raises(self) -> None:
        """Every row must carry one value per feature."""
        # Arrange
        forest = RandomForest(["x", "y"], n_trees=2)

        # Act / Assert
        with pytest.raises(FeatureCountError):
            forest.fit([[1, 2], [3]], [0, 1])


class TestPredict:
    """Tests for `RandomForest.predict` and `predict_per_tree`."""

    def test_vote_recovers_step_function(self) -> None:
        """A majority of bootstrap trees classifies a clean threshold perfectly."""
        # Arrange
        data, labels = _make_step_data()
        forest = RandomForest(["x"], n_trees=15, min_node_size=1, rng=11).fit(data, labels)

        # Act
        predictions = forest.predict(np.arange(10).reshape(-1, 1))

        # Assert
        with check:
            assert predictions.tolist() == [0, 0, 0, 0, 0, 1, 1, 1, 1, 1]
        with check:
            assert predictions.dtype == np.int64

    def test_diagonal_grid_training_accuracy(self) -> None:
        """Bagged trees fit a diagonal boundary on their own training grid."""
        # Arrange
        data, labels = _make_diagonal_grid()
        forest = RandomForest(["x0", "x1"], n_trees=25, min_node_size=1, rng=2024).fit(data, labels)

        # Act
        accuracy = forest.score(data, labels)

        # Assert
        assert accuracy >= 0.9

    def test_more_trees_do_not_lower_average_accuracy(self) -> None:
        """Averaged over seeds, a larger ensemble fits the training grid at least as well as one tree."""
        # Arrange
        data, labels = _make_diagonal_grid()
        seeds = range(5)

        # Act
        few = [
            RandomForest(["x0", "x1"], n_trees=1, n_features_per_split=1, min_node_size=5, rng=seed)
            .fit(data, labels)
            .score(data, labels)
            for seed in seeds
        ]
        many = [
            RandomForest(["x0", "x1"], n_trees=21, n_features_per_split=1, min_node_size=5, rng=seed)
            .fit(data, labels)
            .score(data, labels)
            for seed in seeds
        ]

        # Assert
        assert np.mean(many) >= np.mean(few) - 0.01

    def test_vote_is_mode_of_member_predictions(self) -> None:
        """`predict` equals the per-sample mode of `predict_per_tree`."""
        # Arrange
        data, labels = _make_diagonal_grid()
        forest = RandomForest(["x0", "x1"], n_trees=6, n_features_per_split=1, min_node_size=5, rng=9)
        forest.fit(data, labels)

        # Act
        votes = forest.predict_per_tree(data)
        predictions = forest.predict(data)

        # Assert
        with check:
            assert votes.shape == (6, data.shape[0])
        expected = [label_mode(votes[:, index], forest.label_values) for index in range(data.shape[0])]
        with check:
            assert predictions.tolist() == expected

    def test_predict_before_fit_raises(self) -> None:
        """An untrained forest cannot predict."""
        # Arrange
        forest = RandomForest(["x"], n_trees=3)

        # Act / Assert
        with pytest.raises(NotFittedError):
            forest.predict([[1]])

    def test_predict_wrong_width_raises(self) -> None:
        """Prediction rows are checked against the feature count."""
        # Arrange
        data, labels = _make_step_data()
        forest = RandomForest(["x"], n_trees=2, min_node_size=1, rng=0).fit(data, labels)

        # Act / Assert
        with pytest.raises(FeatureCountError):
            forest.predict([[1, 2]])


class TestRootSplitHistogram:
    """Tests for the root-split histogram."""

    def test_counts_every_split_root(self) -> None:
        """Each tree with a split root adds one count under its feature and threshold."""
        # Arrange
        data, labels = _make_step_data()
        forest = RandomForest(["x"], n_trees=10, min_node_size=1, store_root_splits=True, rng=4)

        # Act
        forest.fit(data, labels)
        histogram = forest.root_split_histogram

        # Assert
        with check:
            assert set(histogram) == {"x"}
        with check:
            assert sum(histogram["x"].values()) == 10
        with check:
            expected = {tree.root.split.threshold for tree in forest.trees}  # type: ignore[union-attr]
            assert set(histogram["x"]) == expected

    def test_disabled_by_default(self) -> None:
        """Without `store_root_splits` the histogram stays empty."""
        # Arrange
        data, labels = _make_step_data()
        forest = RandomForest(["x"], n_trees=3, min_node_size=1, rng=4)

        # Act
        forest.fit(data, labels)

        # Assert
        assert forest.root_split_histogram == {}

    def test_refit_resets_counts(self) -> None:
        """Counts from a previous fit are discarded."""
        # Arrange
        data, labels = _make_step_data()
        forest = RandomForest(["x"], n_trees=5, min_node_size=1, store_root_splits=True, rng=4)
        forest.fit(data, labels)

        # Act
        forest.fit(data, labels)

        # Assert
        assert sum(forest.root_split_histogram["x"].values()) == 5
