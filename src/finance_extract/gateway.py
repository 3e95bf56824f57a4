"""Document submission gateway: validation and transient storage."""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import TYPE_CHECKING

from finance_extract.config import DEFAULT_MAX_UPLOAD_BYTES
from finance_extract.errors import (
    DocumentRejected,
    PayloadTooLarge,
    UnsupportedMediaType,
)
from finance_extract.models import ExtractionMode

if TYPE_CHECKING:
    from collections.abc import Iterator
    from pathlib import Path

    from finance_extract.models import UploadedDocument
    from finance_extract.store import UploadStore

logger = logging.getLogger(__name__)

_FILENAME_PREFIXES = {
    ExtractionMode.SINGLE_RECEIPT: "receipt",
    ExtractionMode.HISTORY_BATCH: "history",
}


def media_type_of(doc: UploadedDocument) -> str:
    """Return the bare, lower-cased MIME type (parameters stripped)."""
    return doc.content_type.split(";", 1)[0].strip().lower()


def is_supported_media_type(media_type: str) -> bool:
    """Accept any image type and PDF."""
    return media_type.startswith("image/") or media_type == "application/pdf"


def validate_document(
    doc: UploadedDocument, max_bytes: int = DEFAULT_MAX_UPLOAD_BYTES
) -> None:
    """Reject documents the model should never see."""
    media_type = media_type_of(doc)
    if not is_supported_media_type(media_type):
        msg = f"Only images and PDF files are allowed, got {doc.content_type!r}"
        raise UnsupportedMediaType(msg)

    if doc.size == 0:
        msg = f"Uploaded file {doc.filename!r} is empty"
        raise DocumentRejected(msg)

    if doc.size > max_bytes:
        msg = f"Uploaded file is {doc.size} bytes; the limit is {max_bytes} bytes"
        raise PayloadTooLarge(msg)


class DocumentGateway:
    """Validate uploads and own their on-disk copy for one request."""

    def __init__(
        self, store: UploadStore, max_bytes: int = DEFAULT_MAX_UPLOAD_BYTES
    ) -> None:
        self.store = store
        self.max_bytes = max_bytes

    @contextmanager
    def admit(self, doc: UploadedDocument, mode: ExtractionMode) -> Iterator[Path]:
        """Validate and store the document, deleting it on exit.

        Validation happens before anything is written. The stored file is
        removed whether the body succeeds or raises; removal errors are
        logged and swallowed.
        """
        validate_document(doc, self.max_bytes)

        path = self.store.save(doc, _FILENAME_PREFIXES[mode])
        logger.info(
            "Processing %s: %s (%s, %d bytes)",
            mode.value,
            doc.filename,
            media_type_of(doc),
            doc.size,
        )
        try:
            yield path
        finally:
            try:
                self.store.delete(path)
            except OSError:
                logger.warning("Error deleting upload %s", path, exc_info=True)
