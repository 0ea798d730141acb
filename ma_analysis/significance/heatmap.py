# ma_analysis/significance/heatmap.py
"""Clustered heatmap rendering of significant features."""

import logging
import os
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

import matplotlib.pyplot as plt
import numpy as np
import pandas as pd
import seaborn as sns
from matplotlib.backend_bases import FigureCanvasBase
from matplotlib.figure import Figure

from ma_analysis.core.config import get_visualization_config
from ma_analysis.core.exceptions import RenderError
from ma_analysis.core.visualization_utils import (
    BASE_RC_PARAMS,
    DEFAULT_STYLE,
    DENDROGRAM_RATIO,
    FONT_SIZE_TICK,
    MIN_HEATMAP_HEIGHT,
    ROW_HEIGHT_INCHES,
    SAVE_DPI,
)

logger = logging.getLogger(__name__)


def scale_rows(matrix: pd.DataFrame) -> pd.DataFrame:
    """Z-score each row across samples.

    Fully observed rows with zero variance become all zeros; missing values
    stay missing. A matrix with a single sample column is returned unchanged.
    """
    if matrix.shape[1] < 2:
        return matrix.copy()
    centered = matrix.sub(matrix.mean(axis=1), axis=0)
    std = matrix.std(axis=1, ddof=1)
    scaled = centered.div(std.replace(0.0, np.nan), axis=0)
    # Only fully observed rows count as constant; gaps stay NaN
    constant_rows = std.eq(0.0) & matrix.notna().all(axis=1)
    scaled.loc[constant_rows] = 0.0
    return scaled


@contextmanager
def figure_output(path: Path, fig: Figure | None = None) -> Iterator[Path]:
    """Scoped output for a rendered figure.

    Yields a temporary sibling of ``path`` to write to. On normal exit the
    temporary file replaces ``path``; on any exception it is removed, so no
    truncated image is left behind. ``fig`` is closed on every exit path.
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp_path = path.with_name(f".{path.stem}.partial{path.suffix}")
    try:
        yield tmp_path
        os.replace(tmp_path, path)
    except BaseException:
        tmp_path.unlink(missing_ok=True)
        raise
    finally:
        if fig is not None:
            plt.close(fig)


class HeatmapVisualization:
    """Renders clustered heatmaps of expression rows."""

    def __init__(self, figure_format: str | None = None):
        self.viz_config = get_visualization_config()
        self.figure_format = (figure_format or self.viz_config["figure_format"]).lstrip(".").lower()
        supported = FigureCanvasBase.get_supported_filetypes()
        if self.figure_format not in supported:
            msg = (
                f"Unsupported figure format '{self.figure_format}'; "
                f"choose one of: {', '.join(sorted(supported))}."
            )
            raise ValueError(msg)
        plt.style.use(self.viz_config.get("style", DEFAULT_STYLE))
        plt.rcParams.update(BASE_RC_PARAMS)
        logger.debug(f"Using plot style: {self.viz_config.get('style', DEFAULT_STYLE)}")

    def _figsize(self, n_rows: int) -> tuple[float, float]:
        width, height = self.viz_config.get("default_figsize", (10.0, 12.0))
        # Few rows get a shorter canvas
        fitted = max(MIN_HEATMAP_HEIGHT, n_rows * ROW_HEIGHT_INCHES + 3.0)
        return float(width), float(min(height, fitted))

    def plot_significance_heatmap(
        self,
        matrix: pd.DataFrame,
        labels: list[str] | None = None,
        title: str | None = None,
    ) -> Figure:
        """Draw a clustered heatmap of ``matrix`` (features x samples).

        Clustering is skipped along any axis with fewer than two entries.

        Raises:
            RenderError: If the matrix is empty, holds non-finite values after
                scaling, or the plotting backend fails.
        """
        if matrix.empty:
            msg = "Cannot draw heatmap: no rows or no sample columns."
            raise RenderError(msg)

        data = matrix.astype(float)
        if self.viz_config.get("scale_rows", True):
            data = scale_rows(data)
        if not np.isfinite(data.to_numpy()).all():
            msg = f"Cannot draw heatmap: matrix holds {int((~np.isfinite(data.to_numpy())).sum())} missing or infinite values."
            raise RenderError(msg)
        if labels is not None:
            if len(labels) != data.shape[0]:
                msg = f"Got {len(labels)} labels for {data.shape[0]} heatmap rows."
                raise RenderError(msg)
            data = data.set_axis(labels, axis=0)

        n_rows, n_cols = data.shape
        row_cluster = n_rows > 1
        col_cluster = n_cols > 1
        if not (row_cluster and col_cluster):
            logger.info(f"Clustering disabled on degenerate axis ({n_rows} rows x {n_cols} columns).")
        show_labels = n_rows <= int(self.viz_config.get("max_row_labels", 60))

        open_figures = set(plt.get_fignums())
        try:
            grid = sns.clustermap(
                data,
                cmap=self.viz_config.get("cmap"),
                center=0 if self.viz_config.get("scale_rows", True) else None,
                row_cluster=row_cluster,
                col_cluster=col_cluster,
                figsize=self._figsize(n_rows),
                dendrogram_ratio=(
                    DENDROGRAM_RATIO if row_cluster else 0.01,
                    DENDROGRAM_RATIO if col_cluster else 0.01,
                ),
                yticklabels=show_labels,
                xticklabels=True,
                linewidths=0.0,
            )
        except Exception as e:
            # Release the half-built figure
            for num in set(plt.get_fignums()) - open_figures:
                plt.close(num)
            msg = f"Heatmap rendering failed: {e}"
            raise RenderError(msg) from e

        grid.ax_heatmap.set_xlabel("Samples")
        grid.ax_heatmap.set_ylabel("Features")
        ytick_fontsize = max(4, FONT_SIZE_TICK - n_rows // 10)
        grid.ax_heatmap.tick_params(axis="y", labelsize=ytick_fontsize, rotation=0)
        plt.setp(grid.ax_heatmap.get_xticklabels(), rotation=45, ha="right")
        if title:
            grid.figure.suptitle(title, y=1.02)
        return grid.figure

    def save_heatmap(self, fig: Figure, path: Path, dpi: int = SAVE_DPI) -> Path:
        """Write ``fig`` to ``path`` through a scoped output; the figure is closed."""
        path = Path(path)
        try:
            with figure_output(path, fig) as tmp_path:
                fig.savefig(tmp_path, format=self.figure_format, dpi=dpi, bbox_inches="tight")
        except (OSError, ValueError, RuntimeError) as e:
            msg = f"Failed to save heatmap '{path}': {e}"
            raise RenderError(msg) from e
        return path
