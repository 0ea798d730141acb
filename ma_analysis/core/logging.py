# ma_analysis/core/logging.py
"""Logging for the microarray significance pipeline.

Records go to a RichHandler on stderr and, when enabled, to a dated rotating
log file in the logs directory. Levels and toggles come from
`config.get_logging_config()`.
"""

import logging
import sys
from datetime import UTC, datetime
from logging.handlers import RotatingFileHandler
from pathlib import Path

import rich.traceback
from rich.console import Console
from rich.logging import RichHandler

from ma_analysis.core.config import get_logging_config, get_path

DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
LOG_FILE_MAX_BYTES = 5 * 1024 * 1024
LOG_FILE_BACKUPS = 3


def _get_log_level(level_name: str) -> int:
    level = getattr(logging, str(level_name).upper(), None)
    return level if isinstance(level, int) else logging.INFO


def _add_file_handler(
    logger_instance: logging.Logger, level: int, log_format: str, logs_dir: Path
) -> None:
    """Attach a rotating handler writing to ``<logs_dir>/<date>_<logger>.log``."""
    try:
        logs_dir.mkdir(parents=True, exist_ok=True)
        day = datetime.now(tz=UTC).strftime("%Y-%m-%d")
        safe_name = "".join(c if c.isalnum() else "_" for c in logger_instance.name)
        file_handler = RotatingFileHandler(
            logs_dir / f"{day}_{safe_name}.log",
            maxBytes=LOG_FILE_MAX_BYTES,
            backupCount=LOG_FILE_BACKUPS,
            encoding="utf-8",
        )
    except OSError as e:
        logger_instance.warning(f"File logging disabled, cannot open log in '{logs_dir}': {e}")
        return
    file_handler.setLevel(level)
    file_handler.setFormatter(logging.Formatter(log_format, datefmt=DATE_FORMAT))
    logger_instance.addHandler(file_handler)


def setup_logging(module_name: str | None = None) -> logging.Logger:
    """Configure and return the package logger, or ``module_name``'s logger."""
    config = get_logging_config()
    level_name = str(config.get("level", "INFO")).upper()
    level = _get_log_level(level_name)
    log_format = config.get("log_format", "%(asctime)s - %(name)s - %(levelname)s - %(message)s")

    logger_instance = logging.getLogger(module_name or config.get("root_logger_name", "ma_analysis"))
    logger_instance.handlers.clear()
    logger_instance.setLevel(level)
    logger_instance.propagate = False

    if config.get("console_logging", True):
        logger_instance.addHandler(
            RichHandler(
                level=level,
                console=Console(stderr=True),
                show_path=False,
                markup=True,
                rich_tracebacks=True,
            )
        )
    else:
        # Errors still reach stderr without the rich console
        stderr_handler = logging.StreamHandler(sys.stderr)
        stderr_handler.setLevel(max(level, logging.WARNING))
        stderr_handler.setFormatter(logging.Formatter(log_format, datefmt=DATE_FORMAT))
        logger_instance.addHandler(stderr_handler)

    if config.get("file_logging", True):
        _add_file_handler(logger_instance, level, log_format, get_path("logs_dir"))

    if logging.getLevelName(level) != level_name:
        logger_instance.warning(f"Invalid log level '{level_name}'. Defaulting to INFO.")
    rich.traceback.install(show_locals=False)
    return logger_instance


# Module loggers under ma_analysis.* propagate into this one
logger = setup_logging()
