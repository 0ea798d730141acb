from __future__ import annotations

import logging
import os
from pathlib import Path

import matplotlib

matplotlib.use("Agg")

# Must be set before ma_analysis.core.logging configures handlers at import
os.environ.setdefault("MA_ANALYSIS_LOGGING_FILE_LOGGING", "false")

import pytest


@pytest.fixture(autouse=True)
def _isolated_paths(tmp_path: Path, monkeypatch):
    monkeypatch.setenv("MA_ANALYSIS_PATHS_DATA_DIR", str(tmp_path / "data"))
    monkeypatch.setenv("MA_ANALYSIS_PATHS_RESULTS_DIR", str(tmp_path / "results"))
    monkeypatch.setenv("MA_ANALYSIS_PATHS_LOGS_DIR", str(tmp_path / "logs"))
    monkeypatch.setenv("MA_ANALYSIS_LOGGING_FILE_LOGGING", "false")


@pytest.fixture
def pkg_caplog(caplog):
    """caplog wired to the package logger, which does not propagate once configured."""
    pkg_logger = logging.getLogger("ma_analysis")
    previous_level = pkg_logger.level
    pkg_logger.addHandler(caplog.handler)
    pkg_logger.setLevel(logging.INFO)
    caplog.set_level(logging.INFO)
    yield caplog
    pkg_logger.removeHandler(caplog.handler)
    pkg_logger.setLevel(previous_level)
