"""Custom exceptions for the originality checker."""


class OriginalityCheckError(Exception):
    """Base exception for the project."""


class ConfigError(OriginalityCheckError):
    """Raised when required configuration is missing or invalid."""


class InvalidAnalysisRequestError(OriginalityCheckError):
    """Raised when an analysis trigger payload is missing required fields."""


class LiteratureSearchError(OriginalityCheckError):
    """Raised when a literature index cannot be queried."""


class TextUnderstandingError(OriginalityCheckError):
    """Raised when the text-understanding service call fails."""


class AnalysisStoreError(OriginalityCheckError):
    """Raised when an analysis record cannot be read or written."""


class AnalysisNotFoundError(AnalysisStoreError):
    """Raised when an analysis record does not exist."""


class InvalidStatusTransitionError(OriginalityCheckError):
    """Raised when an analysis status change is not allowed."""


class AnalysisTimeoutError(OriginalityCheckError):
    """Raised when polling for a terminal analysis status times out."""
