# ma_analysis/core/config.py
"""Configuration management for the microarray significance pipeline."""

import logging
import os
from pathlib import Path
from typing import Any, Union

from ma_analysis.core.visualization_utils import (
    CMAP_SEQUENTIAL,
    DEFAULT_DPI,
    DEFAULT_FONT_FAMILY,
    DEFAULT_STYLE,
)

logger = logging.getLogger(__name__)

ENV_PREFIX = "MA_ANALYSIS"

# ===================================================
#  === Type Conversion Helper ===
# ===================================================
ConfigValueType = Union[bool, int, float, str, list[str]]


def _convert_value(value: str, target_type: type) -> ConfigValueType:
    """Convert a string value to the specified type."""
    value_stripped = value.strip()
    try:
        if target_type is bool:
            return value_stripped.lower() in ("true", "yes", "1", "t", "y")
        if target_type is int:
            return int(value_stripped)
        if target_type is float:
            return float(value_stripped)
        if target_type is list:
            # Comma-separated strings for lists
            return (
                [item.strip() for item in value_stripped.split(",") if item.strip()]
                if value_stripped
                else []
            )
        if target_type is str:
            return value
        logger.warning(f"Unsupported target type '{target_type.__name__}'. Returning string.")
        return value
    except ValueError:
        logger.warning(f"Failed convert '{value}' to {target_type.__name__}. Using default.")
        if target_type is bool:
            return False
        if target_type is int:
            return 0
        if target_type is float:
            return 0.0
        if target_type is list:
            return []
        return ""


# ===================================================
#  === Getter Functions ===
# ===================================================
def get_env(key: str, default: ConfigValueType) -> ConfigValueType:
    """Get an environment variable with type conversion, handling defaults.

    If the environment variable `key` exists, its value is converted to the
    type of the `default` value and returned. If the variable does not exist,
    the `default` value is returned directly.

    Args:
        key: The name of the environment variable (e.g., "MA_ANALYSIS_LOGGING_LEVEL").
        default: The default value to return if the environment variable is not set.
                 The type of this default value determines the target conversion type.

    Returns:
        The value from the environment variable (converted) or the default value.
    """
    value = os.environ.get(key)
    if value is None:
        return default
    return _convert_value(value, type(default))


def get_paths_config() -> dict[str, Any]:
    """Get the paths configuration."""
    return {
        "data_dir": get_env(f"{ENV_PREFIX}_PATHS_DATA_DIR", "data"),
        "results_dir": get_env(f"{ENV_PREFIX}_PATHS_RESULTS_DIR", "results"),
        "figures_dir_name": get_env(f"{ENV_PREFIX}_PATHS_FIGURES_DIR_NAME", "figures"),
        "tables_dir_name": get_env(f"{ENV_PREFIX}_PATHS_TABLES_DIR_NAME", "tables"),
        "logs_dir": get_env(f"{ENV_PREFIX}_PATHS_LOGS_DIR", "logs"),
    }


def get_files_config() -> dict[str, Any]:
    """Get the file naming configuration.

    Patterns are formatted with ``index=<dataset index>``.
    """
    return {
        "annotation_pattern": get_env(f"{ENV_PREFIX}_FILES_ANNOTATION_PATTERN", "fmeta{index}.csv"),
        "expression_pattern": get_env(
            f"{ENV_PREFIX}_FILES_EXPRESSION_PATTERN", "MAdata{index}.csv"
        ),
        "heatmap_stem": get_env(f"{ENV_PREFIX}_FILES_HEATMAP_STEM", "heatmap{index}"),
        "table_pattern": get_env(f"{ENV_PREFIX}_FILES_TABLE_PATTERN", "significant{index}.csv"),
        "summary_file": get_env(f"{ENV_PREFIX}_FILES_SUMMARY_FILE", "significance_summary.csv"),
    }


def get_significance_config() -> dict[str, Any]:
    """Get the significance filtering configuration."""
    return {
        "threshold": get_env(f"{ENV_PREFIX}_SIGNIFICANCE_THRESHOLD", 0.05),
        "score_column": get_env(f"{ENV_PREFIX}_SIGNIFICANCE_SCORE_COLUMN", "bh"),
        "label_column": get_env(f"{ENV_PREFIX}_SIGNIFICANCE_LABEL_COLUMN", "gene"),
        "index_start": get_env(f"{ENV_PREFIX}_SIGNIFICANCE_INDEX_START", 1),
        "index_end": get_env(f"{ENV_PREFIX}_SIGNIFICANCE_INDEX_END", 3),
        "continue_on_error": get_env(f"{ENV_PREFIX}_SIGNIFICANCE_CONTINUE_ON_ERROR", True),
        "export_tables": get_env(f"{ENV_PREFIX}_SIGNIFICANCE_EXPORT_TABLES", True),
    }


def get_visualization_config() -> dict[str, Any]:
    """Returns config overrides related to plotting."""
    figsize_str = get_env(f"{ENV_PREFIX}_VISUALIZATION_DEFAULT_FIGSIZE", "10,12")
    try:
        if isinstance(figsize_str, str):
            figsize_list = [float(x.strip()) for x in figsize_str.split(",")]
            if len(figsize_list) != 2:
                msg = "Figsize needs two dimensions"
                raise ValueError(msg)
            figsize_tuple = tuple(figsize_list)
        else:
            logger.warning(f"Invalid figsize type: {type(figsize_str)}. Using default (10, 12).")
            figsize_tuple = (10.0, 12.0)
    except ValueError as e:
        logger.warning(f"Invalid figsize format '{figsize_str}': {e!s}. Using default (10, 12).")
        figsize_tuple = (10.0, 12.0)
    return {
        "style": get_env(f"{ENV_PREFIX}_VISUALIZATION_STYLE", DEFAULT_STYLE),
        "default_figsize": figsize_tuple,
        "default_dpi": get_env(f"{ENV_PREFIX}_VISUALIZATION_DEFAULT_DPI", DEFAULT_DPI),
        "font_family": get_env(f"{ENV_PREFIX}_VISUALIZATION_FONT_FAMILY", DEFAULT_FONT_FAMILY),
        "figure_format": get_env(f"{ENV_PREFIX}_VISUALIZATION_FIGURE_FORMAT", "pdf"),
        "cmap": get_env(f"{ENV_PREFIX}_VISUALIZATION_CMAP", CMAP_SEQUENTIAL),
        "scale_rows": get_env(f"{ENV_PREFIX}_VISUALIZATION_SCALE_ROWS", True),
        "max_row_labels": get_env(f"{ENV_PREFIX}_VISUALIZATION_MAX_ROW_LABELS", 60),
    }


def get_logging_config() -> dict[str, Any]:
    """Returns config for logging setup."""
    return {
        "level": get_env(f"{ENV_PREFIX}_LOGGING_LEVEL", "INFO"),
        "file_logging": get_env(f"{ENV_PREFIX}_LOGGING_FILE_LOGGING", True),
        "console_logging": get_env(f"{ENV_PREFIX}_LOGGING_CONSOLE_LOGGING", True),
        "log_format": get_env(
            f"{ENV_PREFIX}_LOGGING_FORMAT", "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
        ),
        "root_logger_name": get_env(f"{ENV_PREFIX}_LOGGING_ROOT_LOGGER_NAME", "ma_analysis"),
    }


# ===================================================
#  === Path Construction Logic ===
# ===================================================
def get_path(key: str) -> Path:
    """Constructs and returns an absolute path for a given config key."""
    paths_cfg = get_paths_config()
    base_results_dir = Path(paths_cfg["results_dir"]).resolve()

    path_map: dict[str, Path] = {
        "data_dir": Path(paths_cfg["data_dir"]).resolve(),
        "results_dir": base_results_dir,
        "figures_dir": base_results_dir / paths_cfg["figures_dir_name"],
        "tables_dir": base_results_dir / paths_cfg["tables_dir_name"],
        "logs_dir": Path(paths_cfg["logs_dir"]).resolve(),
    }
    if key in path_map:
        return path_map[key]
    msg = f"Unknown path key: '{key}'. Available: {list(path_map.keys())}"
    logger.error(msg)
    raise KeyError(msg)


def get_file_path(file_key: str, index: int, base_dir: Path | None = None) -> Path:
    """Constructs the path of a per-index data file.

    Annotation and expression files resolve under the data directory, exported
    tables under the tables directory, unless ``base_dir`` is given.
    """
    files_cfg = get_files_config()
    pattern_map: dict[str, tuple[str, str]] = {
        "annotation": (files_cfg["annotation_pattern"], "data_dir"),
        "expression": (files_cfg["expression_pattern"], "data_dir"),
        "table": (files_cfg["table_pattern"], "tables_dir"),
    }
    if file_key not in pattern_map:
        msg = f"Unknown file key: '{file_key}'. Available: {list(pattern_map.keys())}"
        logger.error(msg)
        raise KeyError(msg)
    pattern, dir_key = pattern_map[file_key]
    directory = Path(base_dir) if base_dir is not None else get_path(dir_key)
    return directory / pattern.format(index=index)


def get_heatmap_path(index: int, output_dir: Path, figure_format: str) -> Path:
    """Path of the heatmap image for ``index`` in ``output_dir``."""
    stem = get_files_config()["heatmap_stem"].format(index=index)
    return Path(output_dir) / f"{stem}.{figure_format.lstrip('.')}"


def get_index_range() -> range:
    """Inclusive range of dataset indices to process."""
    sig_cfg = get_significance_config()
    start, end = int(sig_cfg["index_start"]), int(sig_cfg["index_end"])
    if end < start:
        msg = f"Index range end ({end}) precedes start ({start})."
        raise ValueError(msg)
    return range(start, end + 1)


# ===================================================
#  === Directory Initialization ===
# ===================================================
def setup_directories() -> None:
    """Creates the output directories of the pipeline."""
    logger.info("Setting up project directories...")
    all_dirs_ok = True
    for key in ["results_dir", "figures_dir", "tables_dir", "logs_dir"]:
        dir_path = get_path(key)
        try:
            logger.debug(f"Ensuring directory exists: {dir_path}")
            dir_path.mkdir(parents=True, exist_ok=True)
            if not dir_path.is_dir():
                msg = f"Directory creation failed or path is not a directory: {dir_path}"
                raise OSError(msg)
        except OSError as e:
            logger.exception(f"Could not create or access directory {dir_path}: {e!s}")
            all_dirs_ok = False
            if key in ("results_dir", "logs_dir"):
                msg = f"Fatal: Cannot access/create {dir_path}"
                raise SystemExit(msg) from e

    if all_dirs_ok:
        logger.info("Directory setup process completed successfully.")
    else:
        logger.error("Directory setup encountered non-critical errors.")
