"""Shared test fixtures."""

from __future__ import annotations

from datetime import date
from typing import TYPE_CHECKING

import pytest

from finance_extract.gateway import DocumentGateway
from finance_extract.models import UploadedDocument
from finance_extract.store import LocalUploadStore

if TYPE_CHECKING:
    from pathlib import Path

PROCESSING_DATE = date(2025, 6, 15)


class ScriptedModel:
    """ModelAdapter fake that replays a fixed reply and records each call."""

    def __init__(self, reply: str) -> None:
        self.reply = reply
        self.calls: list[tuple[str, bytes, str]] = []

    def generate(self, prompt: str, data: bytes, media_type: str) -> str:
        self.calls.append((prompt, data, media_type))
        return self.reply


@pytest.fixture
def upload_root(tmp_path: Path) -> Path:
    """Provide a temporary directory as the upload store root."""
    root = tmp_path / "uploads"
    root.mkdir()
    return root


@pytest.fixture
def gateway(upload_root: Path) -> DocumentGateway:
    """Provide a gateway backed by a temporary local store."""
    return DocumentGateway(LocalUploadStore(upload_root))


@pytest.fixture
def receipt_image() -> UploadedDocument:
    """Provide a small JPEG receipt upload."""
    return UploadedDocument(
        filename="Lunch Receipt.JPG",
        content_type="image/jpeg",
        data=b"\xff\xd8\xff\xe0fake-jpeg",
    )


@pytest.fixture
def statement_pdf() -> UploadedDocument:
    """Provide a small PDF transaction-history upload."""
    return UploadedDocument(
        filename="statement-june.pdf",
        content_type="application/pdf",
        data=b"%PDF-1.4 fake statement",
    )


@pytest.fixture
def scripted_model() -> type[ScriptedModel]:
    """Provide the scripted ModelAdapter fake; call it with the reply text."""
    return ScriptedModel


@pytest.fixture
def processing_date() -> date:
    """Provide the fixed processing date used to fill missing dates."""
    return PROCESSING_DATE
