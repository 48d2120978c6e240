"""Configuration and result models for the decision tree module."""

from __future__ import annotations

import math
from typing import Literal, NamedTuple

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

# ---------------------------------------------------------------------------
# Public type aliases
# ---------------------------------------------------------------------------

type PredicateOp = Literal["<", ">="]

# 0 routes left (value < threshold), 1 routes right (value >= threshold)
type Branch = Literal[0, 1]

DEFAULT_MIN_NODE_SIZE: int = 20

# ---------------------------------------------------------------------------
# Public models
# ---------------------------------------------------------------------------


class SplitRule(NamedTuple):
    """A binary routing decision: left if `sample[feature_index] < threshold`, else right.

    Attributes:
        feature_index (int): Column index into the feature registry.
        threshold (int): Observed feature value used as the split point.
    """

    feature_index: int
    threshold: int

    def branch(self, value: int) -> Branch:
        """Return the branch a feature value is routed to.

        Args:
            value (int): The sample's value for `feature_index`.

        Returns:
            Branch: `0` for the left child, `1` for the right child.
        """
        return 0 if value < self.threshold else 1


class TreeConfig(BaseModel):
    """Hyperparameters of a single decision tree.

    Attributes:
        min_node_size (int): A node is not split when either child would hold
            fewer samples than this.
        n_considered_features (int | None): Number of feature indices drawn
            (uniformly, with replacement) at every split. `None` considers
            every feature in index order, which makes training deterministic.
        verbose (bool): Emit TRAINING log records describing every accepted split.

    Examples:
        >>> TreeConfig().min_node_size
        20
        >>> TreeConfig(min_node_size=1, n_considered_features=2).n_considered_features
        2
    """

    model_config = ConfigDict(frozen=True)

    min_node_size: int = Field(
        default=DEFAULT_MIN_NODE_SIZE,
        ge=1,
        description="Minimum number of training samples each child of a split must receive.",
    )
    n_considered_features: int | None = Field(
        default=None,
        ge=1,
        description="Features drawn at random per split; None means every feature is evaluated.",
    )
    verbose: bool = Field(
        default=False,
        description="Whether structural training diagnostics are logged at the TRAINING level.",
    )


class SplitRecord(BaseModel):
    """One step of a followed sample's path through a tree.

    Attributes:
        feature (str): Name of the feature tested at the node.
        threshold (int): The node's split threshold.
        branch (Branch): `0` when the sample went left, `1` when it went right.

    Examples:
        >>> SplitRecord(feature="age", threshold=30, branch=1)
        SplitRecord(feature='age', threshold=30, branch=1)
    """

    model_config = ConfigDict(frozen=True)

    feature: str = Field(description="Name of the feature tested at the node.")
    threshold: int = Field(description="Split threshold of the node.")
    branch: Branch = Field(description="0 = left (value < threshold), 1 = right (value >= threshold).")

    def __repr__(self) -> str:
        """Return a compact representation.

        Returns:
            str: `SplitRecord(feature=..., threshold=..., branch=...)`.
        """
        return f"SplitRecord(feature={self.feature!r}, threshold={self.threshold}, branch={self.branch})"


class Predicate(BaseModel):
    """A single threshold condition on one integer feature.

    Attributes:
        variable (str): Feature name the condition applies to.
        operator (PredicateOp): `"<"` for a left branch, `">="` for a right branch.
        value (int): The split threshold.

    Examples:
        >>> p = Predicate(variable="age", operator=">=", value=30)
        >>> str(p)
        'age >= 30'
        >>> p.eval(29)
        False
    """

    model_config = ConfigDict(frozen=True)

    variable: str = Field(description="Feature name the condition applies to.")
    operator: PredicateOp = Field(description="'<' routes left, '>=' routes right.")
    value: int = Field(description="Integer split threshold.")

    def __str__(self) -> str:
        """Return the predicate as `"<variable> <operator> <value>"`.

        Returns:
            str: Human-readable predicate.
        """
        return f"{self.variable} {self.operator} {self.value}"

    def eval(self, x: int) -> bool:
        """Evaluate this predicate against a feature value.

        Args:
            x (int): The feature value to test.

        Returns:
            bool: `True` if the predicate holds for `x`.
        """
        if self.operator == "<":
            return x < self.value
        return x >= self.value


class ClassificationRule(BaseModel):
    """A root-to-leaf path of a trained tree.

    Attributes:
        predicates (list[Predicate]): Conditions along the path. Empty for a
            single-leaf tree.
        prediction (int): Label assigned to samples that reach the leaf.
        samples (int): Number of training samples that reached the leaf.
        confidence (float): Fraction of those samples carrying `prediction`.
    """

    predicates: list[Predicate] = Field(description="Predicates along the path from root to this leaf.")
    prediction: int = Field(description="Predicted label at the leaf.")
    samples: int = Field(ge=1, description="Number of training samples that reached this leaf.")
    confidence: float = Field(
        ge=0.0,
        le=1.0,
        description="Fraction of training samples at this leaf that carry the predicted label.",
    )

    def __str__(self) -> str:
        """Return the rule as `"IF a AND b THEN label"`.

        Returns:
            str: Human-readable rule.
        """
        condition = " AND ".join(str(p) for p in self.predicates) or "TRUE"
        return f"IF {condition} THEN {self.prediction}"

    def matches(self, sample: dict[str, int]) -> bool:
        """Return whether every predicate holds for a named sample.

        Args:
            sample (dict[str, int]): Mapping of feature name to value.

        Returns:
            bool: `True` when the sample satisfies the full path.
        """
        return all(p.eval(sample[p.variable]) for p in self.predicates)


class CrossValidationResult(BaseModel):
    """Mean k-fold validation accuracy per candidate minimum node size.

    Attributes:
        k (int): Number of folds.
        accuracies (dict[int, float]): Candidate value to mean accuracy in `[0, 1]`.
        fold_accuracies (dict[int, list[float]]): Candidate value to the
            accuracy measured on each of the `k` folds, in fold order.

    Examples:
        >>> result = CrossValidationResult(
        ...     k=2,
        ...     accuracies={1: 0.75, 5: 0.5},
        ...     fold_accuracies={1: [1.0, 0.5], 5: [0.5, 0.5]},
        ... )
        >>> result.best_value
        1
    """

    k: int = Field(ge=2, description="Number of folds.")
    accuracies: dict[int, float] = Field(description="Candidate value to mean k-fold accuracy.")
    fold_accuracies: dict[int, list[float]] = Field(description="Candidate value to per-fold accuracies.")

    @field_validator("accuracies", mode="after")
    @classmethod
    def _validate_accuracy_range(cls, value: dict[int, float]) -> dict[int, float]:
        """Validate that every mean accuracy lies in `[0, 1]`.

        Args:
            value (dict[int, float]): The accuracy mapping to validate.

        Returns:
            dict[int, float]: The validated mapping, unchanged.

        Raises:
            ValueError: If any accuracy is outside `[0, 1]`.
        """
        out_of_range = {key: acc for key, acc in value.items() if not 0.0 <= acc <= 1.0 + 1e-9}
        if out_of_range:
            raise ValueError(f"accuracies must lie in [0, 1], got {out_of_range}")
        return value

    @model_validator(mode="after")
    def _validate_folds_reconstruct_mean(self) -> CrossValidationResult:
        """Validate that per-fold accuracies have length `k` and average to `accuracies`.

        Returns:
            CrossValidationResult: The validated model instance.

        Raises:
            ValueError: If the keys differ, a fold list has the wrong length,
                or a mean does not match its folds.
        """
        if set(self.accuracies) != set(self.fold_accuracies):
            raise ValueError("accuracies and fold_accuracies must have the same candidate values")
        for value, folds in self.fold_accuracies.items():
            if len(folds) != self.k:
                raise ValueError(f"candidate {value} has {len(folds)} fold accuracies, expected {self.k}")
            if not math.isclose(sum(acc / self.k for acc in folds), self.accuracies[value], abs_tol=1e-9):
                raise ValueError(f"fold accuracies for candidate {value} do not average to its mean accuracy")
        return self

    @property
    def best_value(self) -> int:
        """The first candidate value (in insertion order) with the highest mean accuracy."""
        best_value, best_accuracy = None, -math.inf
        for value, accuracy in self.accuracies.items():
            if accuracy > best_accuracy:
                best_value, best_accuracy = value, accuracy
        if best_value is None:
            raise ValueError("No candidate values were cross-validated")
        return best_value
