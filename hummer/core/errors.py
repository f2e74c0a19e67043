"""Errors raised by the analysis pipeline.

Only structural input problems are errors. Unvoiced frames, measures
without a chord and recordings without a key are regular results.
"""


class AnalysisError(Exception):
    """Base class for analysis failures."""


class InsufficientDataError(AnalysisError, ValueError):
    """The recording is empty or shorter than one analysis frame."""


class EngineUnavailableError(AnalysisError, RuntimeError):
    """The spectral transform could not be set up."""
