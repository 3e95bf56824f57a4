"""Gemini model adapter using pydantic-ai."""

from __future__ import annotations

import logging
from typing import Any

import httpx
from pydantic_ai import Agent, BinaryContent
from pydantic_ai.exceptions import AgentRunError, ModelHTTPError
from pydantic_ai.models.google import GoogleModel
from pydantic_ai.providers.google import GoogleProvider

from finance_extract.config import (
    GENERATION_SETTINGS,
    get_gemini_api_key,
    get_llm_model,
)
from finance_extract.errors import ExternalServiceError

logger = logging.getLogger(__name__)


def create_model_agent() -> Agent[None, str]:
    """Create a pydantic-ai Agent that returns the model's raw text reply."""
    # Ensure API key is available (fail fast)
    api_key = get_gemini_api_key()

    model = GoogleModel(get_llm_model(), provider=GoogleProvider(api_key=api_key))
    return Agent(model, output_type=str)


class GeminiAdapter:
    """Send a prompt plus an inline document to Gemini and return its text.

    Accepts an optional agent for dependency injection in tests. Failures are
    classified as ExternalServiceError and never retried.
    """

    def __init__(self, agent: Agent[None, str] | None = None) -> None:
        self.agent = agent if agent is not None else create_model_agent()

    def generate(self, prompt: str, data: bytes, media_type: str) -> str:
        """Run one extraction call; pydantic-ai base64-encodes the bytes inline."""
        try:
            result: Any = self.agent.run_sync(
                [prompt, BinaryContent(data=data, media_type=media_type)],
                model_settings=GENERATION_SETTINGS,
            )
        except ModelHTTPError as exc:
            msg = f"Model request failed with status {exc.status_code}"
            raise ExternalServiceError(msg, _provider_detail(exc.body)) from exc
        except AgentRunError as exc:
            msg = "Model returned an unusable response"
            raise ExternalServiceError(msg, str(exc)) from exc
        except httpx.TransportError as exc:
            msg = "Model service is unreachable"
            raise ExternalServiceError(msg, str(exc) or None) from exc

        if result is None:
            msg = "No response received from the model"
            raise ExternalServiceError(msg)

        text = result.output
        if not isinstance(text, str) or not text.strip():
            msg = "Model returned an empty response"
            raise ExternalServiceError(msg)

        logger.debug("Raw model response: %s", text)
        return text


def _provider_detail(body: object) -> str | None:
    """Pull the nested provider error message out of an error body."""
    if isinstance(body, dict):
        error = body.get("error")
        if isinstance(error, dict) and error.get("message"):
            return str(error["message"])
        if isinstance(error, str) and error:
            return error
        if body.get("message"):
            return str(body["message"])
        return None
    if isinstance(body, str) and body.strip():
        return body.strip()
    return None
