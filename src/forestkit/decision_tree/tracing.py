"""Collector for the split path of one followed sample during prediction."""

from __future__ import annotations

from forestkit.decision_tree.models import Branch, SplitRecord


class SampleSplitTrace:
    """Records the splits taken by one sample of a prediction batch.

    Pass an instance to `DecisionTree.predict`; the trace is cleared when the
    batch starts and filled while the sample at `follow_index` is routed.

    Attributes:
        follow_index (int): Position, within the prediction batch, of the sample to follow.

    Examples:
        >>> trace = SampleSplitTrace(follow_index=0)
        >>> trace.record(0, "age", 30, 1)
        >>> trace.get_sample_splits(0)
        [SplitRecord(feature='age', threshold=30, branch=1)]
        >>> trace.get_sample_splits(5)
        []
    """

    def __init__(self, follow_index: int) -> None:
        """Initialize an empty trace.

        Args:
            follow_index (int): Position of the sample to follow.
        """
        self.follow_index = follow_index
        self._records: dict[int, list[SplitRecord]] = {}

    def clear(self) -> None:
        """Forget every stored record."""
        self._records.clear()

    def follows(self, sample_index: int) -> bool:
        """Return whether splits of this sample should be recorded.

        Args:
            sample_index (int): Position of the sample in the batch.

        Returns:
            bool: `True` for the followed sample.
        """
        return sample_index == self.follow_index

    def record(self, sample_index: int, feature: str, threshold: int, branch: Branch) -> None:
        """Append one split to a sample's path.

        Args:
            sample_index (int): Position of the sample in the batch.
            feature (str): Name of the feature tested.
            threshold (int): Split threshold.
            branch (Branch): `0` for left, `1` for right.
        """
        self._records.setdefault(sample_index, []).append(
            SplitRecord(feature=feature, threshold=threshold, branch=branch)
        )

    def get_sample_splits(self, sample_index: int) -> list[SplitRecord]:
        """Return the recorded path of a sample, empty if it was not followed.

        Args:
            sample_index (int): Position of the sample in the batch.

        Returns:
            list[SplitRecord]: Splits in root-to-leaf order.
        """
        return list(self._records.get(sample_index, []))
