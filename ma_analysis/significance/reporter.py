# ma_analysis/significance/reporter.py
"""Batch significance reporter.

For each dataset index the reporter reads ``fmeta{i}.csv``, selects the
features whose adjusted significance is strictly below the threshold, and,
only when some qualify, reads ``MAdata{i}.csv`` and writes a clustered heatmap
of those features to ``heatmap{i}.<format>``. Every index is processed with
its own local tables; a failing index is reported without stopping the rest
unless ``continue_on_error`` is off.
"""

import logging
from collections.abc import Iterable
from dataclasses import asdict, dataclass
from pathlib import Path

import pandas as pd

from ma_analysis.core.config import (
    get_file_path,
    get_heatmap_path,
    get_index_range,
    get_path,
    get_significance_config,
)
from ma_analysis.core.data_loader import DataLoader, write_table
from ma_analysis.significance.heatmap import HeatmapVisualization
from ma_analysis.significance.selection import (
    feature_labels,
    select_significant,
    subset_expression,
    validate_threshold,
)

logger = logging.getLogger(__name__)

STATUS_DE_FOUND = "de_found"
STATUS_NO_DE = "no_de"
STATUS_FAILED = "failed"
NO_DE_MESSAGE = "No DE found."


@dataclass
class IndexReport:
    """Outcome of processing one dataset index."""

    index: int
    annotation_path: Path
    expression_path: Path
    status: str
    n_features: int = 0
    n_significant: int = 0
    output_path: Path | None = None
    table_path: Path | None = None
    error: str | None = None
    message: str = ""

    @property
    def ok(self) -> bool:
        return self.status != STATUS_FAILED


class SignificanceReporter:
    """Runs the significance-filter-and-heatmap workflow over dataset indices."""

    def __init__(
        self,
        data_dir: Path | None = None,
        output_dir: Path | None = None,
        tables_dir: Path | None = None,
        threshold: float | None = None,
        figure_format: str | None = None,
        score_column: str | None = None,
        label_column: str | None = None,
        export_tables: bool | None = None,
        continue_on_error: bool | None = None,
    ):
        sig_cfg = get_significance_config()
        self.threshold = validate_threshold(
            threshold if threshold is not None else sig_cfg["threshold"]
        )
        self.score_column = score_column or sig_cfg["score_column"]
        self.label_column = label_column or sig_cfg["label_column"]
        self.export_tables = sig_cfg["export_tables"] if export_tables is None else export_tables
        self.continue_on_error = (
            sig_cfg["continue_on_error"] if continue_on_error is None else continue_on_error
        )
        self.loader = DataLoader(data_dir=data_dir, score_column=self.score_column)
        self.output_dir = Path(output_dir) if output_dir is not None else get_path("figures_dir")
        if tables_dir is not None:
            self.tables_dir = Path(tables_dir)
        elif output_dir is not None:
            self.tables_dir = self.output_dir
        else:
            self.tables_dir = get_path("tables_dir")
        self.visualizer = HeatmapVisualization(figure_format=figure_format)

    @property
    def figure_format(self) -> str:
        return self.visualizer.figure_format

    def heatmap_path(self, index: int) -> Path:
        return get_heatmap_path(index, self.output_dir, self.figure_format)

    def process_index(self, index: int) -> IndexReport:
        """Filter, report and (when anything qualifies) render one dataset index.

        Raises:
            FileNotFoundError: If an input table is missing.
            AnalysisError: On malformed tables, misaligned keys, or a failed render.
        """
        annotation_path = self.loader.annotation_path(index)
        report = IndexReport(
            index=index,
            annotation_path=annotation_path,
            expression_path=self.loader.expression_path(index),
            status=STATUS_NO_DE,
        )
        logger.info(f"Processing [bold]{annotation_path.name}[/bold]")

        annotation = self.loader.load_annotation(index)
        selection = select_significant(annotation, self.threshold, self.score_column)
        report.n_features = int(annotation.shape[0])
        report.n_significant = len(selection)

        if report.n_significant == 0:
            report.message = f"{annotation_path.name}: {NO_DE_MESSAGE}"
            logger.info(f":cross_mark: {report.message}")
            return report

        logger.info(
            f"{annotation_path.name}: [green]{report.n_significant}[/green] of {report.n_features} "
            f"features with {self.score_column} < {self.threshold}"
        )

        expression = self.loader.load_expression(index)
        selected_matrix = subset_expression(annotation, expression, selection)
        labels = feature_labels(annotation, selection, self.label_column)

        if self.export_tables:
            table_path = get_file_path("table", index, base_dir=self.tables_dir)
            report.table_path = write_table(annotation.loc[selection], table_path)
            logger.info(f":floppy_disk: Saved significant features: {table_path}")

        heatmap_path = self.heatmap_path(index)
        fig = self.visualizer.plot_significance_heatmap(
            selected_matrix,
            labels=labels,
            title=f"Dataset {index}: {report.n_significant} features ({self.score_column} < {self.threshold})",
        )
        report.output_path = self.visualizer.save_heatmap(fig, heatmap_path)
        report.status = STATUS_DE_FOUND
        report.message = (
            f"{annotation_path.name}: {report.n_significant} significant features, "
            f"heatmap written to {heatmap_path.name}"
        )
        logger.info(f":chart_increasing: [green]Saved heatmap:[/green] {heatmap_path}")
        return report

    def run(self, indices: Iterable[int] | None = None) -> list[IndexReport]:
        """Process ``indices`` in order (the configured range by default).

        An exception raised for one index is recorded as a failed report and
        the remaining indices still run, unless ``continue_on_error`` is off.
        """
        indices = list(indices) if indices is not None else list(get_index_range())
        logger.info(
            f"Running significance reporter on indices {indices} "
            f"(threshold {self.threshold}, format {self.figure_format})"
        )
        reports: list[IndexReport] = []
        for index in indices:
            try:
                reports.append(self.process_index(index))
            except Exception as e:
                if not self.continue_on_error:
                    raise
                logger.error(f":cross_mark: [red]Index {index} failed:[/red] {e}")
                reports.append(
                    IndexReport(
                        index=index,
                        annotation_path=self.loader.annotation_path(index),
                        expression_path=self.loader.expression_path(index),
                        status=STATUS_FAILED,
                        error=f"{type(e).__name__}: {e}",
                        message=f"Index {index} failed: {e}",
                    )
                )

        n_failed = sum(not r.ok for r in reports)
        n_de = sum(r.status == STATUS_DE_FOUND for r in reports)
        logger.info(
            f"Processed {len(reports)} indices: {n_de} with significant features, "
            f"{len(reports) - n_de - n_failed} without, {n_failed} failed."
        )
        return reports


def summarize(reports: Iterable[IndexReport]) -> pd.DataFrame:
    """One row per processed index."""
    rows = []
    for report in reports:
        row = asdict(report)
        for key in ("annotation_path", "expression_path", "output_path", "table_path"):
            row[key] = str(row[key]) if row[key] is not None else None
        rows.append(row)
    columns = list(IndexReport.__dataclass_fields__)
    return pd.DataFrame(rows, columns=columns)


def write_summary(reports: Iterable[IndexReport], path: Path) -> Path:
    """Write the run summary as a CSV table."""
    summary = summarize(reports)
    return write_table(summary, path, index=False)
