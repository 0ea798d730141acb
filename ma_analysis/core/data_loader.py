# ma_analysis/core/data_loader.py
"""Data loading utilities for the per-index microarray tables."""

import logging
from pathlib import Path
from typing import Any

import numpy as np
import pandas as pd

from ma_analysis.core.config import get_file_path, get_path, get_significance_config
from ma_analysis.core.exceptions import TableParseError

logger = logging.getLogger(__name__)


def read_table(path: Path, index_col: int | None = 0) -> pd.DataFrame:
    """Read a comma-separated table, first column as the row key by default.

    Raises:
        FileNotFoundError: If ``path`` does not exist.
        TableParseError: If the file cannot be parsed.
    """
    path = Path(path)
    if not path.is_file():
        msg = f"Input table not found: {path}"
        raise FileNotFoundError(msg)
    try:
        return pd.read_csv(path, index_col=index_col)
    except pd.errors.EmptyDataError:
        logger.warning(f"Table file is empty: {path}")
        return pd.DataFrame()
    except (pd.errors.ParserError, UnicodeDecodeError) as e:
        msg = f"Error parsing table file: {path}. Error: {e!s}"
        raise TableParseError(msg) from e


def write_table(df: pd.DataFrame, path: Path, index: bool = True) -> Path:
    """Write ``df`` as a comma-separated table, creating parent directories."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    df.to_csv(path, index=index)
    logger.debug(f"Wrote table {path} ({df.shape[0]} rows x {df.shape[1]} columns)")
    return path


def get_basic_stats(expression: pd.DataFrame) -> dict[str, Any]:
    """Basic size and intensity statistics of an expression matrix."""
    numeric = expression.select_dtypes(include=np.number)
    values = numeric.to_numpy(dtype=float).ravel()
    values = values[np.isfinite(values)]
    return {
        "num_features": int(expression.shape[0]),
        "num_samples": int(numeric.shape[1]),
        "mean_intensity": float(values.mean()) if values.size else 0.0,
        "median_intensity": float(np.median(values)) if values.size else 0.0,
        "missing_values": int(numeric.isna().sum().sum()),
    }


class DataLoader:
    """Loads the annotation table and expression matrix of one dataset index.

    File names follow the configured patterns (``fmeta{index}.csv`` and
    ``MAdata{index}.csv`` by default) inside ``data_dir``.
    """

    def __init__(self, data_dir: Path | None = None, score_column: str | None = None):
        self.data_dir = Path(data_dir) if data_dir is not None else get_path("data_dir")
        self.score_column = score_column or get_significance_config()["score_column"]

    def annotation_path(self, index: int) -> Path:
        return get_file_path("annotation", index, base_dir=self.data_dir)

    def expression_path(self, index: int) -> Path:
        return get_file_path("expression", index, base_dir=self.data_dir)

    def load_annotation(self, index: int) -> pd.DataFrame:
        """Load the feature annotation table for ``index``.

        The score column is coerced to float. A zero-byte or header-only file
        loads as an empty table, which later yields no significant rows.

        Raises:
            FileNotFoundError: If the annotation file is missing.
            TableParseError: If the file is malformed, lacks the score column,
                or holds non-numeric scores.
        """
        annotation_path = self.annotation_path(index)
        logger.debug(f"Loading annotation table from {annotation_path}")
        annotation = read_table(annotation_path)

        if annotation.empty and self.score_column not in annotation.columns:
            if annotation.columns.size:
                msg = f"Annotation table '{annotation_path}' missing required column '{self.score_column}'."
                raise TableParseError(msg)
            return pd.DataFrame({self.score_column: pd.Series(dtype=float)})
        if self.score_column not in annotation.columns:
            msg = (
                f"Annotation table '{annotation_path}' missing required column "
                f"'{self.score_column}'. Found: {list(annotation.columns)}"
            )
            raise TableParseError(msg)

        scores = pd.to_numeric(annotation[self.score_column], errors="coerce")
        bad = scores.isna() & annotation[self.score_column].notna()
        if bad.any():
            examples = annotation.loc[bad, self.score_column].astype(str).head(3).tolist()
            msg = f"Non-numeric '{self.score_column}' values in '{annotation_path}': {examples}"
            raise TableParseError(msg)
        annotation = annotation.assign(**{self.score_column: scores.astype(float)})
        if annotation[self.score_column].isna().any():
            logger.warning(
                f"{int(annotation[self.score_column].isna().sum())} features in {annotation_path.name} "
                f"have no '{self.score_column}' value; they are never selected."
            )
        logger.info(f"Loaded annotation table: {annotation.shape[0]} features from {annotation_path}")
        return annotation

    def load_expression(self, index: int) -> pd.DataFrame:
        """Load the expression matrix (features x samples) for ``index``.

        Raises:
            FileNotFoundError: If the expression file is missing.
            TableParseError: If the file is malformed or holds non-numeric samples.
        """
        expression_path = self.expression_path(index)
        logger.debug(f"Loading expression matrix from {expression_path}")
        expression = read_table(expression_path)

        non_numeric = [
            col for col in expression.columns if not pd.api.types.is_numeric_dtype(expression[col])
        ]
        if non_numeric:
            msg = f"Expression matrix '{expression_path}' has non-numeric sample columns: {non_numeric}"
            raise TableParseError(msg)

        stats = get_basic_stats(expression)
        logger.info(
            f"Loaded expression data: {stats['num_features']} features x {stats['num_samples']} samples "
            f"from {expression_path}"
        )
        logger.debug(f"Expression stats for index {index}: {stats}")
        return expression.astype(float)
