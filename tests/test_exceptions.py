"""Tests for custom exceptions.

This module tests the exception classes raised by forestkit models, ensuring
proper inheritance, attribute storage, and messages.
"""

from __future__ import annotations

import pytest
from pytest_check import check

from forestkit import DecisionTree
from forestkit.exceptions import (
    DuplicateFeaturesError,
    FeatureCountError,
    LabelCountError,
    NotFittedError,
    UnknownFeatureError,
)


class TestFeatureCountError:
    """Tests for FeatureCountError."""

    def test_stores_counts_and_message(self) -> None:
        """Verify the expected and actual widths are kept and rendered."""
        # Act
        error = FeatureCountError(expected=4, actual=3)

        # Assert
        with check:
            assert error.expected == 4
        with check:
            assert error.actual == 3
        with check:
            assert str(error) == "Incorrect number of features: expected 4, got 3"

    def test_catchable_as_value_error(self) -> None:
        """Verify callers can handle width problems as ValueError."""
        # Arrange
        tree = DecisionTree(["a", "b"])

        # Act / Assert
        with pytest.raises(ValueError, match="expected 2, got 1"):
            tree.fit([[1], [2]], [0, 1])


class TestLabelCountError:
    """Tests for LabelCountError."""

    def test_stores_counts(self) -> None:
        """Verify both lengths are kept and the class is a ValueError."""
        # Act
        error = LabelCountError(n_samples=5, n_labels=4)

        # Assert
        with check:
            assert (error.n_samples, error.n_labels) == (5, 4)
        with check:
            assert isinstance(error, ValueError)
        with check:
            assert "4 entries" in str(error)

    def test_raised_by_fit(self) -> None:
        """Verify a short label vector is rejected at training time."""
        # Arrange
        tree = DecisionTree(["a"])

        # Act / Assert
        with pytest.raises(LabelCountError):
            tree.fit([[1], [2], [3]], [0, 1])


class TestDuplicateFeaturesError:
    """Tests for DuplicateFeaturesError."""

    def test_lists_each_duplicate_once(self) -> None:
        """Verify repeated names are reported once, in first-repeat order."""
        # Act
        error = DuplicateFeaturesError(["age", "income", "age", "zip", "income", "age"])

        # Assert
        with check:
            assert error.duplicate_features == ["age", "income"]
        with check:
            assert error.features == ["age", "income", "age", "zip", "income", "age"]
        with check:
            assert isinstance(error, ValueError)


class TestUnknownFeatureError:
    """Tests for UnknownFeatureError."""

    def test_is_key_error_with_plain_message(self) -> None:
        """Verify the message is not wrapped in KeyError's repr quotes."""
        # Act
        error = UnknownFeatureError("height", ["age", "income"])

        # Assert
        with check:
            assert isinstance(error, KeyError)
        with check:
            assert str(error) == "Feature not found: 'height'"
        with check:
            assert error.available_features == ["age", "income"]

    def test_raised_by_feature_lookup(self) -> None:
        """Verify unknown names raise from `DecisionTree.feature_index`."""
        # Arrange
        tree = DecisionTree(["age", "income"])

        # Act / Assert
        with pytest.raises(UnknownFeatureError) as exc_info:
            tree.feature_index("height")
        with check:
            assert exc_info.value.feature == "height"


class TestNotFittedError:
    """Tests for NotFittedError."""

    def test_raised_before_training(self) -> None:
        """Verify prediction on an untrained tree raises a RuntimeError subclass."""
        # Arrange
        tree = DecisionTree(["a"])

        # Act / Assert
        with pytest.raises(RuntimeError, match="has not been trained"):
            tree.predict([[1]])
        with check:
            assert issubclass(NotFittedError, RuntimeError)
