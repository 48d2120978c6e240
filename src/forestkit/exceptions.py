"""Custom exceptions for forestkit models.

Input validation exceptions (subclass ValueError):
- FeatureCountError: Raised when a feature matrix does not have the declared number of columns.
- LabelCountError: Raised when the label vector is not aligned with the feature matrix.
- DuplicateFeaturesError: Raised when the feature name registry contains repeated names.

Lookup and state exceptions:
- UnknownFeatureError (KeyError): Raised when a feature name is not in the registry.
- NotFittedError (RuntimeError): Raised when a model is used before it has been trained.
"""

from __future__ import annotations


class FeatureCountError(ValueError):
    """Raised when a feature matrix width differs from the declared feature count.

    This is a fatal configuration error: rows are never truncated or padded.

    Attributes:
        expected (int): Number of features in the model's registry.
        actual (int): Number of columns found in the supplied matrix.

    Examples:
        >>> err = FeatureCountError(expected=3, actual=2)
        >>> err.expected, err.actual
        (3, 2)
    """

    expected: int
    actual: int

    def __init__(self, expected: int, actual: int) -> None:
        """Initialize FeatureCountError.

        Args:
            expected (int): Number of features declared at model construction.
            actual (int): Number of columns in the offending matrix.
        """
        super().__init__(f"Incorrect number of features: expected {expected}, got {actual}")
        self.expected = expected
        self.actual = actual


class LabelCountError(ValueError):
    """Raised when the label vector length differs from the number of samples.

    Attributes:
        n_samples (int): Number of rows in the feature matrix.
        n_labels (int): Number of entries in the label vector.
    """

    n_samples: int
    n_labels: int

    def __init__(self, n_samples: int, n_labels: int) -> None:
        """Initialize LabelCountError.

        Args:
            n_samples (int): Number of rows in the feature matrix.
            n_labels (int): Number of entries in the label vector.
        """
        super().__init__(f"Label vector has {n_labels} entries but feature matrix has {n_samples} samples")
        self.n_samples = n_samples
        self.n_labels = n_labels


class DuplicateFeaturesError(ValueError):
    """Raised when duplicate feature names are provided.

    Attributes:
        features (list[str]): The feature list that contains duplicates.
        duplicate_features (list[str]): Names that appear more than once (each listed once).

    Examples:
        >>> err = DuplicateFeaturesError(features=["age", "age", "income"])
        >>> err.duplicate_features
        ['age']
    """

    features: list[str]
    duplicate_features: list[str]

    def __init__(self, features: list[str]) -> None:
        """Initialize DuplicateFeaturesError.

        Args:
            features (list[str]): The feature list containing duplicates.
        """
        super().__init__("Duplicate feature names are not allowed")
        self.features = features
        seen: set[str] = set()
        self.duplicate_features = []
        for name in features:
            if name in seen and name not in self.duplicate_features:
                self.duplicate_features.append(name)
            seen.add(name)


class UnknownFeatureError(KeyError):
    """Raised when a feature name is not present in the registry.

    Attributes:
        feature (str): The name that was looked up.
        available_features (list[str]): Names present in the registry.
    """

    feature: str
    available_features: list[str]

    def __init__(self, feature: str, available_features: list[str]) -> None:
        """Initialize UnknownFeatureError.

        Args:
            feature (str): The name that was looked up.
            available_features (list[str]): Names present in the registry.
        """
        super().__init__(f"Feature not found: {feature!r}")
        self.feature = feature
        self.available_features = available_features

    def __str__(self) -> str:
        """Return the message without KeyError's repr quoting.

        Returns:
            str: Human-readable error message.
        """
        return str(self.args[0])


class NotFittedError(RuntimeError):
    """Raised when prediction or introspection is requested before training."""
