from __future__ import annotations

import importlib.util
import os
from pathlib import Path

import pandas as pd
import pytest
from helpers import write_annotation, write_dataset

SCRIPT = Path(__file__).resolve().parents[1] / "scripts" / "run_analysis.py"


@pytest.fixture(scope="module")
def run_analysis():
    spec = importlib.util.spec_from_file_location("run_analysis", SCRIPT)
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module


def _dir_args(tmp_path: Path) -> list[str]:
    return [
        "--data-dir", str(tmp_path / "data"),
        "--output-dir", str(tmp_path / "figures"),
        "--tables-dir", str(tmp_path / "tables"),
    ]


def test_main_processes_range_and_writes_summary(run_analysis, tmp_path: Path):
    write_dataset(tmp_path / "data", 1, {"g1": 0.01, "g2": 0.04, "g3": 0.5})
    write_annotation(tmp_path / "data", 2, {"g1": 0.3})

    exit_code = run_analysis.main(_dir_args(tmp_path) + ["--start", "1", "--end", "2"])

    assert exit_code == 0
    assert (tmp_path / "figures" / "heatmap1.pdf").is_file()
    assert not (tmp_path / "figures" / "heatmap2.pdf").exists()
    summary = pd.read_csv(tmp_path / "tables" / "significance_summary.csv")
    assert list(summary["n_significant"]) == [2, 0]


def test_main_reports_failures_in_exit_code(run_analysis, tmp_path: Path):
    write_annotation(tmp_path / "data", 1, {"g1": 0.3})
    exit_code = run_analysis.main(_dir_args(tmp_path) + ["--indices", "1", "2", "--no-tables"])
    assert exit_code == 1
    summary = pd.read_csv(tmp_path / "tables" / "significance_summary.csv")
    assert list(summary["status"]) == ["no_de", "failed"]


def test_main_rejects_reversed_range(run_analysis, tmp_path: Path):
    assert run_analysis.main(_dir_args(tmp_path) + ["--start", "3", "--end", "1"]) == 1


def test_experiment_presets(run_analysis, tmp_path: Path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    (tmp_path / "experiments.toml").write_text(
        '[experiment.7]\ndescription = "png run"\n'
        'MA_ANALYSIS_VISUALIZATION_FIGURE_FORMAT = "png"\n'
        "MA_ANALYSIS_SIGNIFICANCE_THRESHOLD = 0.02\n",
        encoding="utf-8",
    )
    # Registered with monkeypatch so the preset's overrides are undone afterwards
    monkeypatch.setenv("MA_ANALYSIS_VISUALIZATION_FIGURE_FORMAT", "pdf")
    monkeypatch.setenv("MA_ANALYSIS_SIGNIFICANCE_THRESHOLD", "0.05")
    write_dataset(tmp_path / "data", 1, {"g1": 0.01, "g2": 0.03})

    assert run_analysis.list_experiments() == 0
    assert run_analysis.apply_experiment_config(99) is False
    exit_code = run_analysis.main(_dir_args(tmp_path) + ["--indices", "1", "--experiment", "7"])

    assert exit_code == 0
    assert os.environ["MA_ANALYSIS_SIGNIFICANCE_THRESHOLD"] == "0.02"
    assert (tmp_path / "figures" / "heatmap1.png").is_file()
    summary = pd.read_csv(tmp_path / "tables" / "significance_summary.csv")
    assert list(summary["n_significant"]) == [1]


def test_main_reports_bad_format_as_configuration_error(run_analysis, tmp_path: Path):
    write_dataset(tmp_path / "data", 1, {"g1": 0.01, "g2": 0.02})
    assert run_analysis.main(_dir_args(tmp_path) + ["--indices", "1", "--format", "xyz"]) == 1
    assert not (tmp_path / "figures").exists()
    assert not (tmp_path / "tables").exists()


def test_output_dir_only_keeps_everything_beside_the_heatmaps(run_analysis, tmp_path: Path):
    write_dataset(tmp_path / "data", 1, {"g1": 0.01, "g2": 0.3})
    args = ["--data-dir", str(tmp_path / "data"), "--output-dir", str(tmp_path / "figures")]

    assert run_analysis.main(args + ["--indices", "1"]) == 0
    assert not (tmp_path / "results").exists()
    assert (tmp_path / "figures" / "significant1.csv").is_file()
    assert (tmp_path / "figures" / "significance_summary.csv").is_file()


def test_explicit_indices_keep_the_given_order(run_analysis, tmp_path: Path):
    write_annotation(tmp_path / "data", 1, {"g1": 0.3})
    write_annotation(tmp_path / "data", 3, {"g1": 0.3})

    assert run_analysis.main(_dir_args(tmp_path) + ["--indices", "3", "1", "3"]) == 0
    summary = pd.read_csv(tmp_path / "tables" / "significance_summary.csv")
    assert list(summary["index"]) == [3, 1]
