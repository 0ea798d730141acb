"""Writers for small fmeta/MAdata fixture tables."""

from __future__ import annotations

from pathlib import Path

import numpy as np
import pandas as pd


def write_annotation(data_dir: Path, index: int, scores: dict[str, float]) -> Path:
    data_dir.mkdir(parents=True, exist_ok=True)
    annotation = pd.DataFrame(
        {
            "gene": [f"GENE_{key.upper()}" for key in scores],
            "logFC": [1.5 - i * 0.5 for i in range(len(scores))],
            "bh": list(scores.values()),
        },
        index=pd.Index(list(scores), name="probe"),
    )
    path = data_dir / f"fmeta{index}.csv"
    annotation.to_csv(path)
    return path


def write_expression(
    data_dir: Path, index: int, keys: list[str], n_samples: int = 4, seed: int = 0
) -> Path:
    data_dir.mkdir(parents=True, exist_ok=True)
    rng = np.random.default_rng(seed)
    values = rng.normal(loc=8.0, scale=1.5, size=(len(keys), n_samples))
    expression = pd.DataFrame(
        values,
        index=pd.Index(keys, name="probe"),
        columns=[f"S{j + 1}" for j in range(n_samples)],
    )
    path = data_dir / f"MAdata{index}.csv"
    expression.to_csv(path)
    return path


def write_dataset(
    data_dir: Path, index: int, scores: dict[str, float], n_samples: int = 4
) -> tuple[Path, Path]:
    return (
        write_annotation(data_dir, index, scores),
        write_expression(data_dir, index, list(scores), n_samples=n_samples, seed=index),
    )
