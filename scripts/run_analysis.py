#!/usr/bin/env python
# scripts/run_analysis.py

"""Main entry point for the microarray batch significance reporter."""

import argparse
import logging
import os
import sys
import time
import tomllib
from pathlib import Path

from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from ma_analysis.core.config import (
    get_files_config,
    get_logging_config,
    get_significance_config,
    setup_directories,
)
from ma_analysis.core.logging import setup_logging
from ma_analysis.significance.reporter import (
    STATUS_DE_FOUND,
    STATUS_FAILED,
    IndexReport,
    SignificanceReporter,
    write_summary,
)

logger = setup_logging(__name__)
console = Console()

EXPERIMENTS_FILE = Path("experiments.toml")

STATUS_STYLES = {
    STATUS_DE_FOUND: "[green]DE found[/]",
    STATUS_FAILED: "[bold red]failed[/]",
}


def print_header(title: str) -> None:
    """Prints a title header using Rich Panel."""
    console.print(
        Panel(f"[bold cyan]{title}[/]", border_style="bold cyan", expand=False, padding=(0, 5))
    )


def _resolve_indices(args: argparse.Namespace) -> list[int]:
    if args.indices:
        # Duplicates dropped, order kept as given
        return list(dict.fromkeys(args.indices))
    sig_cfg = get_significance_config()
    start = args.start if args.start is not None else sig_cfg["index_start"]
    end = args.end if args.end is not None else sig_cfg["index_end"]
    if end < start:
        msg = f"Index range end ({end}) precedes start ({start})."
        raise ValueError(msg)
    return list(range(start, end + 1))


def _print_parameters(reporter: SignificanceReporter, indices: list[int]) -> None:
    param_table = Table(title="Effective Parameters", show_header=False, box=None)
    param_table.add_column("Parameter", style="dim")
    param_table.add_column("Value")
    param_table.add_row("Data Directory", str(reporter.loader.data_dir))
    param_table.add_row("Heatmap Directory", str(reporter.output_dir))
    param_table.add_row("Table Directory", str(reporter.tables_dir))
    param_table.add_row("Indices", ", ".join(map(str, indices)))
    param_table.add_row("Score Column", f"'{reporter.score_column}'")
    param_table.add_row("Threshold", f"< {reporter.threshold}")
    param_table.add_row("Figure Format", reporter.figure_format)
    param_table.add_row(
        "On Error",
        "[green]continue[/]" if reporter.continue_on_error else "[red]stop[/]",
    )
    console.print(param_table)


def _print_results(reports: list[IndexReport]) -> None:
    table = Table(title="Significance Report", show_header=True, header_style="bold")
    table.add_column("Index", style="cyan", justify="right")
    table.add_column("Annotation")
    table.add_column("Features", justify="right")
    table.add_column("Significant", justify="right")
    table.add_column("Status")
    table.add_column("Output / Error")
    for report in reports:
        if report.status == STATUS_FAILED:
            detail = f"[red]{report.error}[/]"
        elif report.output_path is not None:
            detail = report.output_path.name
        else:
            detail = "No DE found."
        table.add_row(
            str(report.index),
            report.annotation_path.name,
            str(report.n_features) if report.status != STATUS_FAILED else "-",
            str(report.n_significant) if report.status != STATUS_FAILED else "-",
            STATUS_STYLES.get(report.status, "[yellow]no DE[/]"),
            detail,
        )
    console.print(table)


def apply_experiment_config(exp_number: int) -> bool:
    """Loads an experiment preset and applies its MA_ANALYSIS_* keys as env vars."""
    if not EXPERIMENTS_FILE.exists():
        logger.error(f"Experiment config file not found: {EXPERIMENTS_FILE}")
        return False

    logger.info(f"Applying configuration for experiment {exp_number} from {EXPERIMENTS_FILE}...")
    try:
        with open(EXPERIMENTS_FILE, "rb") as f:
            all_experiments_data = tomllib.load(f)
    except (OSError, tomllib.TOMLDecodeError) as e:
        logger.exception(f"Error loading {EXPERIMENTS_FILE}: {e}")
        return False

    experiment_table = all_experiments_data.get("experiment")
    if not experiment_table:
        logger.error(f"'[experiment]' table not found in {EXPERIMENTS_FILE}")
        return False
    exp_config = experiment_table.get(str(exp_number))
    if exp_config is None:
        logger.error(
            f"Experiment key '{exp_number}' not defined under [experiment] in {EXPERIMENTS_FILE}"
        )
        return False

    logger.info(f"Experiment Description: {exp_config.get('description', 'N/A')}")
    for key, value in exp_config.items():
        if key.upper().startswith("MA_ANALYSIS"):
            value_str = ",".join(map(str, value)) if isinstance(value, list) else str(value)
            os.environ[key.upper()] = value_str
            logger.debug(f"  Override via experiment: {key.upper()}='{value_str}'")
    return True


def list_experiments() -> int:
    """Lists the experiment presets defined in experiments.toml."""
    if not EXPERIMENTS_FILE.exists():
        logger.error(f"Experiment config file not found: {EXPERIMENTS_FILE}")
        return 1
    try:
        with open(EXPERIMENTS_FILE, "rb") as f:
            experiment_table = tomllib.load(f).get("experiment", {})
    except (OSError, tomllib.TOMLDecodeError) as e:
        logger.exception(f"Error loading or parsing {EXPERIMENTS_FILE}: {e}")
        return 1

    if not experiment_table:
        console.print(f"[yellow]No experiments defined in {EXPERIMENTS_FILE}[/]")
        return 0

    table = Table(title="Available Experiments", show_header=True, header_style="bold")
    table.add_column("ID", style="cyan", justify="right")
    table.add_column("Description", style="white")
    sorted_exp_ids = sorted(
        experiment_table.keys(), key=lambda x: int(x) if x.isdigit() else float("inf")
    )
    for exp_id in sorted_exp_ids:
        table.add_row(exp_id, experiment_table[exp_id].get("description", "No description"))
    console.print(table)
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Report significant features per dataset index and draw their heatmaps.",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    parser.add_argument("--data-dir", type=Path, default=None, help="Directory holding fmeta/MAdata files.")
    parser.add_argument("--output-dir", type=Path, default=None, help="Directory for heatmaps.")
    parser.add_argument("--tables-dir", type=Path, default=None, help="Directory for exported tables.")
    parser.add_argument("--indices", type=int, nargs="+", metavar="I", default=None, help="Explicit indices.")
    parser.add_argument("--start", type=int, default=None, help="First index of the range.")
    parser.add_argument("--end", type=int, default=None, help="Last index of the range (inclusive).")
    parser.add_argument("--threshold", type=float, default=None, help="Adjusted significance cutoff.")
    parser.add_argument("--format", dest="figure_format", default=None, help="Heatmap image format.")
    parser.add_argument("--fail-fast", action="store_true", help="Stop at the first failing index.")
    parser.add_argument("--no-tables", action="store_true", help="Do not export significant rows.")
    parser.add_argument("--experiment", type=int, metavar="N", default=None, help="Apply preset N from experiments.toml.")
    parser.add_argument("--list-experiments", action="store_true", help="List presets and exit.")
    parser.add_argument("--verbose", action="store_true", help="Enable DEBUG level logging.")
    return parser


def main(argv: list[str] | None = None) -> int:
    logging.captureWarnings(True)
    args = build_parser().parse_args(argv)

    if args.list_experiments:
        return list_experiments()
    if args.experiment is not None and not apply_experiment_config(args.experiment):
        logger.error(f"Failed to load or apply experiment {args.experiment}. Exiting.")
        return 1

    if args.verbose:
        root_logger_name = get_logging_config().get("root_logger_name", "ma_analysis")
        logging.getLogger(root_logger_name).setLevel(logging.DEBUG)
        logger.setLevel(logging.DEBUG)
        logger.debug("Verbose logging enabled.")

    print_header("MICROARRAY BATCH SIGNIFICANCE REPORT")
    start_time = time.time()

    try:
        # Configured result directories are only used without --output-dir
        if args.output_dir is None:
            setup_directories()
        indices = _resolve_indices(args)
        reporter = SignificanceReporter(
            data_dir=args.data_dir,
            output_dir=args.output_dir,
            tables_dir=args.tables_dir,
            threshold=args.threshold,
            figure_format=args.figure_format,
            export_tables=False if args.no_tables else None,
            continue_on_error=False if args.fail_fast else None,
        )
    except (ValueError, KeyError) as e:
        logger.critical(f"Configuration error: {e}")
        return 1

    _print_parameters(reporter, indices)

    try:
        reports = reporter.run(indices)
    except Exception as e:
        logger.critical(f":skull: Run stopped: {e}", exc_info=True)
        return 1

    _print_results(reports)
    summary_path = reporter.tables_dir / get_files_config()["summary_file"]
    write_summary(reports, summary_path)
    logger.info(f":floppy_disk: [green]Saved summary:[/green] {summary_path}")

    n_failed = sum(not r.ok for r in reports)
    elapsed = time.time() - start_time
    success = n_failed == 0
    status_message = (
        "[bold green]All indices processed successfully[/]"
        if success
        else f"[bold yellow]{n_failed} of {len(reports)} indices failed[/]"
    )
    console.print(
        Panel(
            f"{status_message}\nTotal execution time: {elapsed:.2f} seconds.",
            title="[bold]Run Summary[/]",
            border_style="bold green" if success else "bold red",
        )
    )
    return 0 if success else 1


if __name__ == "__main__":
    sys.exit(main())
