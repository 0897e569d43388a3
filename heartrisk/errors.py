"""
Error types raised by the heart-disease analysis pipeline.

Every error is terminal for a run. Each carries the pipeline stage that
failed and, where it applies, the offending column.
"""

from typing import Optional


class AnalysisError(Exception):
    """
    Base class for all analysis errors.
    """

    stage = 'analysis'

    def __init__(self, message: str, column: Optional[str] = None):
        """
        Initialize an analysis error.

        Args:
            message: Human-readable description of the failure
            column: Name of the offending column, if any
        """
        super().__init__(message)
        self.column = column

    def __str__(self) -> str:
        message = super().__str__()
        if self.column is not None:
            return f"[{self.stage}] {message} (column: {self.column})"
        return f"[{self.stage}] {message}"


class ParseError(AnalysisError):
    """Input file is unreadable or lacks required columns."""
    stage = 'load'


class EmptyDatasetError(AnalysisError):
    """No rows remain after dropping missing values."""
    stage = 'load'


class DegenerateColumnError(AnalysisError):
    """A continuous column has zero standard deviation."""
    stage = 'standardize'


class NumericalInstabilityError(AnalysisError):
    """The correlation matrix is singular beyond tolerance."""
    stage = 'pca'


class InvalidClusterCountError(AnalysisError):
    """Requested cluster count is outside 1..n_rows."""
    stage = 'cluster'


class InsufficientDataError(AnalysisError):
    """A column has too few distinct values to fill every bin."""
    stage = 'discretize'


class NoFrequentItemsetsError(AnalysisError):
    """No single item meets the minimum support."""
    stage = 'rules'
