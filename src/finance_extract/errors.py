"""Exception hierarchy for the extraction pipeline."""

from __future__ import annotations


class ExtractionError(Exception):
    """Base class for every failure surfaced to callers of the pipeline."""


class DocumentRejected(ExtractionError):
    """The uploaded document failed validation before any model call."""


class UnsupportedMediaType(DocumentRejected):
    """The declared MIME type is neither an image nor a PDF."""


class PayloadTooLarge(DocumentRejected):
    """The uploaded document exceeds the configured size limit."""


class ExternalServiceError(ExtractionError):
    """The generative model was unreachable or returned nothing usable."""

    def __init__(self, message: str, detail: str | None = None) -> None:
        self.detail = detail
        if detail:
            message = f"{message} - {detail}"
        super().__init__(message)


class UnreadableDocument(ExtractionError):
    """No structured data could be recovered from the model's reply."""


class NoStructuredDataFound(UnreadableDocument):
    """Every recovery strategy was exhausted without a usable result."""


class NoTransactionsExtracted(UnreadableDocument):
    """A history document parsed cleanly but contained no transactions."""
