"""forestkit: entropy-split decision trees and random forests for integer data."""

from loguru import logger

from forestkit.decision_tree import DecisionTree, SampleSplitTrace
from forestkit.logging import PACKAGE_NAME, enable_logging
from forestkit.random_forest import RandomForest

logger.disable(PACKAGE_NAME)  # noqa: RUF067 - Disable logging for the forestkit package by default

__all__ = [
    "DecisionTree",
    "RandomForest",
    "SampleSplitTrace",
    "enable_logging",
]
