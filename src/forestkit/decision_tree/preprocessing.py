"""Polars DataFrame ingestion: column filtering and integer encoding for tree training."""

from __future__ import annotations

from typing import NamedTuple

import numpy as np
import polars as pl

from forestkit.exceptions import UnknownFeatureError

# ---------------------------------------------------------------------------
# Private helpers -- Column classification
# ---------------------------------------------------------------------------

_INTEGER_DTYPES: frozenset[type[pl.DataType]] = frozenset({
    pl.Int8,
    pl.Int16,
    pl.Int32,
    pl.Int64,
    pl.UInt8,
    pl.UInt16,
    pl.UInt32,
    pl.UInt64,
})


def _is_encodable(dtype: pl.DataType) -> bool:
    """Return whether a column dtype maps losslessly onto integers.

    Args:
        dtype (pl.DataType): Polars dtype of the column.

    Returns:
        bool: `True` for integer and boolean dtypes.
    """
    return dtype in _INTEGER_DTYPES or dtype == pl.Boolean


# ---------------------------------------------------------------------------
# Public interface
# ---------------------------------------------------------------------------


class ExcludedFeature(NamedTuple):
    """A feature column that was not encoded, with the reason.

    Attributes:
        name (str): The column name that was excluded.
        reason (str): Human-readable explanation for the exclusion.
    """

    name: str
    reason: str


class EncodedDataset(NamedTuple):
    """Integer training data extracted from a DataFrame.

    Attributes:
        data (np.ndarray): int64 matrix of shape `(n_rows, len(feature_names))`.
        labels (np.ndarray): int64 label vector of shape `(n_rows,)`.
        feature_names (list[str]): Encoded columns, in matrix column order.
        excluded (list[ExcludedFeature]): Requested columns that were dropped.
    """

    data: np.ndarray
    labels: np.ndarray
    feature_names: list[str]
    excluded: list[ExcludedFeature]


def filter_features(
    df: pl.DataFrame,
    feature_columns: list[str],
) -> tuple[list[str], list[ExcludedFeature]]:
    """Partition feature columns into encodable and excluded sets.

    A column is excluded when its dtype is not integer or boolean, or when it
    contains nulls.

    Args:
        df (pl.DataFrame): The input DataFrame.
        feature_columns (list[str]): Column names to evaluate.

    Returns:
        tuple[list[str], list[ExcludedFeature]]: `(kept_names, excluded_features)`,
            both in input order.
    """
    kept: list[str] = []
    excluded: list[ExcludedFeature] = []
    for col_name in feature_columns:
        series = df[col_name]
        if not _is_encodable(series.dtype):
            excluded.append(ExcludedFeature(name=col_name, reason=f"unsupported dtype {series.dtype}"))
        elif series.null_count() > 0:
            excluded.append(ExcludedFeature(name=col_name, reason="contains null values"))
        else:
            kept.append(col_name)
    return kept, excluded


def encode_frame(
    df: pl.DataFrame,
    target: str,
    features: list[str] | None = None,
) -> EncodedDataset:
    """Extract an integer feature matrix and label vector from a DataFrame.

    Boolean columns are encoded as 0/1.

    Args:
        df (pl.DataFrame): Source DataFrame.
        target (str): Name of the integer or boolean label column.
        features (list[str] | None): Feature columns to consider. `None`
            uses every column except `target`.

    Returns:
        EncodedDataset: The matrix, labels, kept feature names and exclusions.

    Raises:
        UnknownFeatureError: If `target` or a requested feature is not a column.
        ValueError: If the target is not integer/boolean, contains nulls, or
            no feature column can be encoded.

    Examples:
        >>> df = pl.DataFrame({"x": [0, 1], "name": ["a", "b"], "y": [0, 1]})
        >>> encoded = encode_frame(df, "y")
        >>> encoded.feature_names, encoded.data.tolist()
        (['x'], [[0], [1]])
    """
    for column in [target, *(features or [])]:
        if column not in df.columns:
            raise UnknownFeatureError(column, df.columns)

    target_series = df[target]
    if not _is_encodable(target_series.dtype):
        raise ValueError(f"Target column '{target}' must be integer or boolean, got {target_series.dtype}")
    if target_series.null_count() > 0:
        raise ValueError(f"Target column '{target}' contains null values. Remove or impute nulls before training.")

    feature_columns = features if features is not None else [col for col in df.columns if col != target]
    kept, excluded = filter_features(df, feature_columns)
    if not kept:
        excluded_labels = [f"{ef.name} ({ef.reason})" for ef in excluded]
        raise ValueError(f"No encodable feature columns remain. Excluded: {excluded_labels}")

    data = df.select(pl.col(kept).cast(pl.Int64)).to_numpy().astype(np.int64).reshape(len(df), len(kept))
    labels = target_series.cast(pl.Int64).to_numpy().astype(np.int64)
    return EncodedDataset(data=data, labels=labels, feature_names=kept, excluded=excluded)
