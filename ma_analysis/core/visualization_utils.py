# ma_analysis/core/visualization_utils.py
"""Shared Visualization Constants for the microarray significance pipeline.

Defines common aesthetic defaults (styles, DPI, colormaps) used by the
heatmap renderer. These provide code-level defaults that can be overridden by
runtime configurations fetched via `config.py`.
"""

from typing import Any, Dict, Final

# ===================================================
#  === Shared Visualization Constants ===
# ===================================================

# Font Configuration
# ----------------------------------------------------
DEFAULT_FONT_FAMILY: Final[str] = "DejaVu Sans"
FONT_SIZE_FIGURE_TITLE: Final[int] = 16
FONT_SIZE_AXES_TITLE: Final[int] = 14
FONT_SIZE_LABEL: Final[int] = 12
FONT_SIZE_TICK: Final[int] = 10
FONT_WEIGHT_BOLD: Final[str] = "bold"
FONT_WEIGHT_NORMAL: Final[str] = "normal"

# Matplotlib rcParams
# ----------------------------------------------------
BASE_RC_PARAMS: Final[Dict[str, Any]] = {
    "font.family": DEFAULT_FONT_FAMILY,
    "font.sans-serif": [DEFAULT_FONT_FAMILY, "sans-serif"],
    "font.size": FONT_SIZE_TICK,
    "axes.titlesize": FONT_SIZE_AXES_TITLE,
    "axes.labelsize": FONT_SIZE_LABEL,
    "xtick.labelsize": FONT_SIZE_TICK,
    "ytick.labelsize": FONT_SIZE_TICK,
    "figure.titlesize": FONT_SIZE_FIGURE_TITLE,
    "axes.titleweight": FONT_WEIGHT_BOLD,
    "axes.labelweight": FONT_WEIGHT_NORMAL,
    "figure.titleweight": FONT_WEIGHT_BOLD,
    "figure.facecolor": "white",
    "axes.facecolor": "white",
    "savefig.facecolor": "white",
    "savefig.edgecolor": "white",
    "savefig.transparent": False,
}

# General Style and Resolution Defaults
# ----------------------------------------------------
DEFAULT_STYLE: Final[str] = "seaborn-v0_8-white"
DEFAULT_DPI: Final[int] = 150
SAVE_DPI: Final[int] = 300

# Colormaps
# ----------------------------------------------------
CMAP_SEQUENTIAL: Final[str] = "RdYlBu_r"  # Row-scaled expression, low = blue, high = red

# Heatmap layout
# ----------------------------------------------------
DENDROGRAM_RATIO: Final[float] = 0.15
MIN_HEATMAP_HEIGHT: Final[float] = 4.0
ROW_HEIGHT_INCHES: Final[float] = 0.25
