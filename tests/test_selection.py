from __future__ import annotations

import numpy as np
import pandas as pd
import pytest

from ma_analysis.core.exceptions import AlignmentMismatchError, TableParseError
from ma_analysis.significance.selection import (
    align_expression,
    feature_labels,
    select_significant,
    subset_expression,
    validate_threshold,
)


@pytest.fixture
def annotation() -> pd.DataFrame:
    return pd.DataFrame(
        {"gene": ["TP53", None, "MYC"], "bh": [0.01, 0.2, 0.001]},
        index=pd.Index(["g1", "g2", "g3"], name="probe"),
    )


@pytest.fixture
def expression() -> pd.DataFrame:
    return pd.DataFrame(
        {"S1": [1.0, 2.0, 3.0], "S2": [4.0, 5.0, 6.0]},
        index=pd.Index(["g1", "g2", "g3"], name="probe"),
    )


def test_select_significant_example(annotation):
    selection = select_significant(annotation, 0.05)
    assert list(selection) == ["g1", "g3"]


def test_threshold_is_strict_and_missing_scores_never_qualify():
    annotation = pd.DataFrame({"bh": [0.05, 0.0499, np.nan, 0.0]}, index=["a", "b", "c", "d"])
    assert list(select_significant(annotation, 0.05)) == ["b", "d"]


def test_no_significant_rows(annotation):
    assert len(select_significant(annotation, 0.0001)) == 0
    empty = pd.DataFrame({"bh": pd.Series(dtype=float)})
    assert len(select_significant(empty)) == 0


def test_custom_score_column():
    annotation = pd.DataFrame({"adj_p": [0.2, 0.01]}, index=["a", "b"])
    assert list(select_significant(annotation, score_column="adj_p")) == ["b"]
    with pytest.raises(TableParseError):
        select_significant(annotation)


@pytest.mark.parametrize("threshold", [0, -0.1, 1.5, float("nan"), "abc"])
def test_invalid_thresholds(threshold):
    with pytest.raises(ValueError):
        validate_threshold(threshold)


def test_validate_threshold_accepts_bounds():
    assert validate_threshold(1) == 1.0
    assert validate_threshold("0.01") == pytest.approx(0.01)


def test_alignment_is_by_key_not_position(annotation, expression):
    shuffled = expression.loc[["g3", "g1", "g2"]]
    aligned = align_expression(annotation, shuffled)
    pd.testing.assert_frame_equal(aligned, expression)


def test_selection_invariant_under_consistent_reordering(annotation, expression):
    order = ["g3", "g2", "g1"]
    original = subset_expression(annotation, expression, select_significant(annotation))
    reordered_annotation = annotation.loc[order]
    reordered = subset_expression(
        reordered_annotation,
        expression.loc[["g2", "g1", "g3"]],
        select_significant(reordered_annotation),
    )
    assert set(original.index) == set(reordered.index) == {"g1", "g3"}
    pd.testing.assert_frame_equal(original.sort_index(), reordered.sort_index())


def test_alignment_rejects_count_mismatch(annotation, expression):
    with pytest.raises(AlignmentMismatchError, match="Row count mismatch"):
        align_expression(annotation, expression.iloc[:2])


def test_alignment_rejects_key_mismatch(annotation, expression):
    renamed = expression.rename(index={"g2": "g9"})
    with pytest.raises(AlignmentMismatchError, match="keys differ"):
        align_expression(annotation, renamed)


def test_alignment_rejects_duplicate_keys(annotation, expression):
    duplicated = expression.rename(index={"g2": "g1"})
    with pytest.raises(AlignmentMismatchError, match="duplicated"):
        align_expression(annotation, duplicated)


def test_alignment_matches_numeric_and_text_keys():
    annotation = pd.DataFrame({"bh": [0.01, 0.5]}, index=pd.Index(["101", "102"]))
    expression = pd.DataFrame({"S1": [2.0, 1.0]}, index=pd.Index([102, 101]))
    aligned = align_expression(annotation, expression)
    assert list(aligned.index) == ["101", "102"]
    assert list(aligned["S1"]) == [1.0, 2.0]


def test_feature_labels_fall_back_to_key(annotation):
    selection = pd.Index(["g1", "g2"])
    assert feature_labels(annotation, selection, "gene") == ["TP53", "g2"]
    assert feature_labels(annotation, selection, "symbol") == ["g1", "g2"]
