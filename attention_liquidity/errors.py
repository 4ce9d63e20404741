"""
Error taxonomy for the weekly panel pipeline.

DataQualityError and MergeMismatchError are pipeline-level (fatal for a run).
EstimationError and ConfigurationError are raised per model; the runner
records them and moves on to the next specification.
"""


class PanelAnalysisError(Exception):
    """Base class for all pipeline errors."""
    pass


class DataQualityError(PanelAnalysisError):
    """Raised when input rows violate a precondition that filtering cannot fix."""
    pass


class MergeMismatchError(PanelAnalysisError):
    """Raised when the pricing/attention join produces an empty or near-empty panel."""

    def __init__(self, message: str, n_pricing: int = 0, n_attention: int = 0, n_merged: int = 0):
        super().__init__(message)
        self.n_pricing = n_pricing
        self.n_attention = n_attention
        self.n_merged = n_merged


class EstimationError(PanelAnalysisError):
    """Raised when a single model cannot be estimated (rank, collinearity, sample size)."""
    pass


class ConfigurationError(PanelAnalysisError):
    """Raised when a model specification is invalid for the panel it runs on."""
    pass
