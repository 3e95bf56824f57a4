"""Upload store abstraction and local filesystem implementation."""

from __future__ import annotations

import logging
import secrets
import time
from pathlib import Path
from typing import TYPE_CHECKING, Protocol

from slugify import slugify

if TYPE_CHECKING:
    from finance_extract.models import UploadedDocument

logger = logging.getLogger(__name__)


class UploadStore(Protocol):
    """Protocol for transient upload storage backends."""

    def save(self, doc: UploadedDocument, prefix: str) -> Path: ...

    def delete(self, path: Path) -> None: ...


class LocalUploadStore:
    """Local filesystem implementation of UploadStore.

    File layout: {root}/{prefix}-{epoch_ms}-{random}__{slug}{ext}

    Names embed a millisecond timestamp and a random suffix, so concurrent
    uploads of the same file never collide in practice.
    """

    def __init__(self, root: Path) -> None:
        self.root = root

    def save(self, doc: UploadedDocument, prefix: str) -> Path:
        """Write the document bytes and return the absolute stored path."""
        self.root.mkdir(parents=True, exist_ok=True)

        original = Path(doc.filename)
        slug = self._slugify_stem(original.stem)
        suffix = original.suffix.lower()
        unique = f"{time.time_ns() // 1_000_000}-{secrets.randbelow(10**9)}"

        stem = f"{prefix}-{unique}__{slug}" if slug else f"{prefix}-{unique}"
        file_path = self.root / f"{stem}{suffix}"
        file_path.write_bytes(doc.data)
        logger.debug("Stored upload %s (%d bytes)", file_path, doc.size)
        return file_path

    def delete(self, path: Path) -> None:
        """Remove a stored upload."""
        path.unlink()

    @staticmethod
    def _slugify_stem(stem: str) -> str:
        """Convert the original filename stem to a safe slug, max 40 chars."""
        return str(slugify(stem, max_length=40))
