"""Configuration via environment variables."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv
from pydantic_ai.settings import ModelSettings

load_dotenv()

DEFAULT_MAX_UPLOAD_BYTES = 10 * 1024 * 1024

# Extraction, not generation: keep the model close to deterministic.
# ModelSettings has no top-k option, so Gemini's default top-k applies.
GENERATION_SETTINGS = ModelSettings(temperature=0.1, top_p=0.95, max_tokens=4096)


@dataclass(frozen=True)
class UploadConfig:
    """Transient upload storage configuration."""

    upload_dir: Path
    max_bytes: int = DEFAULT_MAX_UPLOAD_BYTES


def get_gemini_api_key() -> str:
    """Return the GEMINI_API_KEY from the environment."""
    key = os.environ.get("GEMINI_API_KEY")
    if not key:
        msg = "GEMINI_API_KEY environment variable is required"
        raise ValueError(msg)
    return key


def get_llm_model() -> str:
    """Return the Gemini model identifier.

    Defaults to gemini-2.0-flash-001.
    """
    return os.environ.get("LLM_MODEL", "gemini-2.0-flash-001")


def get_upload_config() -> UploadConfig:
    """Build upload configuration from environment variables.

    Optional: UPLOAD_DIR (default ./uploads), MAX_UPLOAD_BYTES (default 10 MiB)
    """
    upload_dir = Path(os.environ.get("UPLOAD_DIR", "./uploads")).resolve()

    max_bytes_str = os.environ.get("MAX_UPLOAD_BYTES", str(DEFAULT_MAX_UPLOAD_BYTES))
    try:
        max_bytes = int(max_bytes_str)
    except ValueError:
        msg = f"MAX_UPLOAD_BYTES must be an integer, got {max_bytes_str!r}"
        raise ValueError(msg) from None
    if max_bytes <= 0:
        msg = "MAX_UPLOAD_BYTES must be positive"
        raise ValueError(msg)

    return UploadConfig(upload_dir=upload_dir, max_bytes=max_bytes)
