"""Decision tree sub-package: statistics, split search, the tree model, and ingestion."""

from __future__ import annotations

from forestkit.decision_tree.models import (
    Branch,
    ClassificationRule,
    CrossValidationResult,
    Predicate,
    PredicateOp,
    SplitRecord,
    SplitRule,
    TreeConfig,
)
from forestkit.decision_tree.preprocessing import EncodedDataset, ExcludedFeature, encode_frame
from forestkit.decision_tree.tracing import SampleSplitTrace
from forestkit.decision_tree.tree import DecisionTree, TreeNode
from forestkit.decision_tree.validation import ACCURACY_ERROR, compute_accuracy

__all__ = [
    "ACCURACY_ERROR",
    "Branch",
    "ClassificationRule",
    "CrossValidationResult",
    "DecisionTree",
    "EncodedDataset",
    "ExcludedFeature",
    "Predicate",
    "PredicateOp",
    "SampleSplitTrace",
    "SplitRecord",
    "SplitRule",
    "TreeConfig",
    "TreeNode",
    "compute_accuracy",
    "encode_frame",
]
