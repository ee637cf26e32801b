"""
Lexi Error Taxonomy
===================
The closed set of failures an analysis can end with.

Every error carries a machine-readable ``tag`` and a human-readable message.
None of them is retryable: a document that could not be extracted once will
not succeed on a second attempt.
"""

from typing import Any


class AnalysisError(Exception):
    """Base class for terminal analysis failures."""
    tag = "AnalysisError"
    retryable = False

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "error": self.tag,
            "message": self.message,
            "details": self.details or None
        }


class UnsupportedFormatError(AnalysisError):
    """Declared media type is not one of the supported kinds."""
    tag = "UnsupportedFormat"


class EmptyOrImageBasedDocumentError(AnalysisError):
    """Decoder produced no usable text; likely a scan or a corrupted file."""
    tag = "EmptyOrImageBasedDocument"


class ExtractionFailureError(AnalysisError):
    """Underlying decoder raised while reading the byte stream."""
    tag = "ExtractionFailure"

    def __init__(
        self,
        message: str,
        cause: BaseException | None = None,
        details: dict[str, Any] | None = None
    ):
        if cause is not None:
            message = f"{message}: {type(cause).__name__}: {cause}"
        super().__init__(message, details)
        self.cause = cause


class LowQualityTextError(AnalysisError):
    """Extracted text looks garbled; analysis would be low confidence."""
    tag = "LowQualityText"


class ExtractionCancelledError(AnalysisError):
    """Extraction timed out or was cancelled before producing text."""
    tag = "ExtractionCancelled"
