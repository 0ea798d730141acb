# ma_analysis/significance/selection.py
"""Significance thresholding and key-based alignment of the per-index tables."""

import logging

import numpy as np
import pandas as pd

from ma_analysis.core.exceptions import AlignmentMismatchError, TableParseError

logger = logging.getLogger(__name__)


def validate_threshold(threshold: float) -> float:
    """Return ``threshold`` as a float, rejecting values outside (0, 1]."""
    try:
        value = float(threshold)
    except (TypeError, ValueError) as e:
        msg = f"Significance threshold must be a number, got {threshold!r}."
        raise ValueError(msg) from e
    if not np.isfinite(value) or not 0.0 < value <= 1.0:
        msg = f"Significance threshold must lie in (0, 1], got {value}."
        raise ValueError(msg)
    return value


def select_significant(
    annotation: pd.DataFrame, threshold: float = 0.05, score_column: str = "bh"
) -> pd.Index:
    """Keys of the features whose adjusted score is strictly below ``threshold``.

    Features without a score are never selected. The returned index keeps the
    annotation's row order.
    """
    threshold = validate_threshold(threshold)
    if score_column not in annotation.columns:
        msg = f"Annotation table missing required column '{score_column}'."
        raise TableParseError(msg)
    scores = pd.to_numeric(annotation[score_column], errors="coerce")
    return annotation.index[(scores < threshold).to_numpy()]


def _check_unique(index: pd.Index, table_name: str) -> None:
    duplicated = index[index.duplicated()].unique()
    if len(duplicated):
        msg = f"{table_name} has duplicated feature keys: {list(duplicated[:5])}"
        raise AlignmentMismatchError(msg)


def align_expression(annotation: pd.DataFrame, expression: pd.DataFrame) -> pd.DataFrame:
    """Reorder ``expression`` to the annotation's keys after verifying they match.

    Both tables must hold the same number of rows and the same unique keys;
    positional correspondence is never assumed.

    Raises:
        AlignmentMismatchError: On duplicated keys, differing counts, or
            differing key sets.
    """
    _check_unique(annotation.index, "Annotation table")
    _check_unique(expression.index, "Expression matrix")

    if len(annotation.index) != len(expression.index):
        msg = (
            f"Row count mismatch: annotation has {len(annotation.index)} features, "
            f"expression has {len(expression.index)}."
        )
        raise AlignmentMismatchError(msg)

    # Keys are compared as strings so "1" and 1 written by different tools still match
    annotation_keys = annotation.index.astype(str)
    expression_keys = expression.index.astype(str)
    missing = annotation_keys.difference(expression_keys)
    extra = expression_keys.difference(annotation_keys)
    if len(missing) or len(extra):
        msg = (
            f"Feature keys differ between tables: {len(missing)} only in annotation "
            f"(e.g. {list(missing[:3])}), {len(extra)} only in expression (e.g. {list(extra[:3])})."
        )
        raise AlignmentMismatchError(msg)

    aligned = expression.set_axis(expression_keys, axis=0).reindex(annotation_keys)
    aligned.index = annotation.index
    if not expression_keys.equals(annotation_keys):
        logger.debug("Expression rows reordered to match annotation keys.")
    return aligned


def subset_expression(
    annotation: pd.DataFrame, expression: pd.DataFrame, selection: pd.Index
) -> pd.DataFrame:
    """Aligned expression rows restricted to ``selection``."""
    aligned = align_expression(annotation, expression)
    return aligned.loc[selection]


def feature_labels(
    annotation: pd.DataFrame, selection: pd.Index, label_column: str | None = "gene"
) -> list[str]:
    """Display labels for the selected features.

    Uses ``label_column`` when present, falling back to the feature key for
    rows where it is missing.
    """
    keys = pd.Series(selection.astype(str), index=selection)
    if label_column and label_column in annotation.columns:
        labels = annotation.loc[selection, label_column]
        return labels.where(labels.notna(), keys).astype(str).tolist()
    return keys.tolist()
