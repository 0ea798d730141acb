# ma_analysis/core/exceptions.py
"""Error types raised by the significance pipeline.

Missing input files are reported with the built-in ``FileNotFoundError``.
"""


class AnalysisError(Exception):
    """Base class for errors local to a single dataset index."""


class TableParseError(AnalysisError, ValueError):
    """An input table is malformed or lacks a required column."""


class AlignmentMismatchError(AnalysisError, ValueError):
    """Annotation and expression tables do not describe the same features."""


class RenderError(AnalysisError, RuntimeError):
    """The heatmap could not be drawn or written."""
