"""Demonstrates how to enable logging while training forestkit models.

forestkit logging is disabled by default. Users opt in by calling ``enable_logging()``,
which returns a ``LoggingHandle``. The handle can be used as a context manager
(``with enable_logging(): ...``) or disabled manually via ``handle.disable()``.
When the last active handle is disabled, forestkit logging is automatically turned off.

Key concepts shown here:

- ``level``: controls the minimum log level. The custom ``TRAINING`` level
  (numeric value 25, between INFO and WARNING) carries the split-by-split
  diagnostics of models built with ``verbose=True`` and is the default.
- ``log_format``: ``"short"`` shows ``timestamp | level | function - message``;
  ``"full"`` adds the module and line number.
- Structured fields: every record carries its values (feature, threshold,
  child sizes, fold accuracy) as keyword extras rendered after the message.
"""

import numpy as np
import polars as pl

from forestkit import DecisionTree, RandomForest, SampleSplitTrace, enable_logging
from forestkit.decision_tree import encode_frame

rng = np.random.default_rng(42)
n_customers = 300
df_customers = pl.DataFrame({
    "age_band": rng.integers(0, 8, size=n_customers),
    "visits": rng.integers(0, 30, size=n_customers),
    "is_member": rng.random(n_customers) < 0.4,
    "city": rng.choice(["Austin", "Boston", "Denver"], size=n_customers),
})
df_customers = df_customers.with_columns(
    churned=((pl.col("visits") < 6) & ~pl.col("is_member")).cast(pl.Int64),
)

# String columns are reported as excluded rather than encoded
encoded = encode_frame(df_customers, "churned")
print(f"Features: {encoded.feature_names}; excluded: {encoded.excluded}\n")

with enable_logging(level="TRAINING", log_format="full"):
    tree = DecisionTree(encoded.feature_names, verbose=True, rng=7)

    # Choose the minimum node size by 5-fold cross-validation
    result = tree.cross_validate(encoded.data, encoded.labels, [2, 5, 10, 20], k=5)
    print(f"\nMean accuracies: {result.accuracies}; best: {result.best_value}\n")

    tree = DecisionTree(encoded.feature_names, min_node_size=result.best_value, verbose=True)
    tree.fit(encoded.data, encoded.labels)

for rule in tree.extract_rules():
    print(rule)

trace = SampleSplitTrace(follow_index=0)
tree.predict(encoded.data[:5], trace=trace)
print(f"\nPath of the first customer: {trace.get_sample_splits(0)}\n")

# INFO shows one summary per trained model without the split-level detail
with enable_logging(level="INFO"):
    forest = RandomForest(
        encoded.feature_names,
        n_trees=25,
        n_features_per_split=2,
        min_node_size=5,
        store_root_splits=True,
        rng=7,
    )
    forest.fit(encoded.data, encoded.labels)

print(f"\nForest training accuracy: {forest.score(encoded.data, encoded.labels):.3f}")
print(f"Root splits: {forest.root_split_histogram}")
