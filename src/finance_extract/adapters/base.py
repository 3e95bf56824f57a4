"""Model adapter protocol."""

from __future__ import annotations

from typing import Protocol, runtime_checkable


@runtime_checkable
class ModelAdapter(Protocol):
    """Protocol for generative models that read a document and reply in text."""

    def generate(self, prompt: str, data: bytes, media_type: str) -> str: ...
