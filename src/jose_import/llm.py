"""Text-completion adapter interface and Gemini implementation.

Defines the TextCompletionAdapter protocol used by the AI fallback parser,
plus two implementations:
- GeminiAdapter: sends one prompt to the Google Generative Language API via
  httpx.
- NullAdapter: never configured (for --no-ai mode).

This module only moves text. Prompt construction and validation of the
returned JSON live in ``ai_parser``.
"""

from __future__ import annotations

import json
import logging
import os
from typing import Protocol

import httpx

from jose_import.exceptions import AIOverloadedError, LLMServiceError, OVERLOAD_STATUSES

logger = logging.getLogger(__name__)

GEMINI_API_URL = "https://generativelanguage.googleapis.com/v1beta/models/{model}:generateContent"


class TextCompletionAdapter(Protocol):
    """Protocol for the external text-completion service.

    ``generate`` raises :class:`~jose_import.exceptions.LLMServiceError`
    (with ``status`` when the service answered with an HTTP error) instead
    of returning partial text.
    """

    def is_configured(self) -> bool:
        """True if a credential is available for the service."""
        ...

    def generate(self, prompt: str) -> str:
        """Send *prompt* and return the completion text."""
        ...


class GeminiAdapter:
    """Adapter that calls the Gemini ``generateContent`` endpoint via httpx.

    Reads the API key from the environment variable named in config
    (``api_key_env``) at call time, so a key exported after startup is
    picked up.

    Args:
        model: Gemini model identifier, e.g. "gemini-2.5-flash".
        api_key_env: Name of the environment variable containing the API key.
        timeout: HTTP request timeout in seconds. Default: 60.
    """

    def __init__(self, model: str, api_key_env: str, timeout: float = 60.0) -> None:
        self.model = model
        self.api_key_env = api_key_env
        self.timeout = timeout

    def _api_key(self) -> str:
        return os.environ.get(self.api_key_env, "")

    def is_configured(self) -> bool:
        return bool(self._api_key())

    def generate(self, prompt: str) -> str:
        """Send *prompt* to Gemini and return the concatenated text parts.

        Raises:
            AIOverloadedError: On HTTP 429 or 503.
            LLMServiceError: On any other HTTP, network or format failure,
                or when no API key is configured.
        """
        api_key = self._api_key()
        if not api_key:
            raise LLMServiceError(
                f"API key not found in environment variable '{self.api_key_env}'"
            )

        request_body = {"contents": [{"role": "user", "parts": [{"text": prompt}]}]}
        headers = {
            "x-goog-api-key": api_key,
            "content-type": "application/json",
        }

        try:
            response = httpx.post(
                GEMINI_API_URL.format(model=self.model),
                json=request_body,
                headers=headers,
                timeout=self.timeout,
            )
            response.raise_for_status()
        except httpx.TimeoutException as exc:
            raise LLMServiceError("AI request timed out") from exc
        except httpx.HTTPStatusError as exc:
            status = exc.response.status_code
            message = f"AI service returned HTTP {status}: {exc.response.text[:200]}"
            if status in OVERLOAD_STATUSES:
                raise AIOverloadedError(message, status=status) from exc
            raise LLMServiceError(message, status=status) from exc
        except httpx.HTTPError as exc:
            raise LLMServiceError(f"AI request failed: {exc}") from exc

        try:
            body = response.json()
            parts = body["candidates"][0]["content"]["parts"]
            text = "\n".join(part["text"] for part in parts if "text" in part)
        except (json.JSONDecodeError, KeyError, IndexError, TypeError) as exc:
            raise LLMServiceError(f"Unexpected AI response format: {exc}") from exc

        logger.debug("AI response: %d characters", len(text))
        return text


class NullAdapter:
    """Adapter for --no-ai mode and ``provider = "none"``.

    Never configured; ``generate`` is not expected to be called.
    """

    def is_configured(self) -> bool:
        return False

    def generate(self, prompt: str) -> str:
        raise LLMServiceError("AI fallback is disabled")


def make_adapter(
    provider: str, model: str, api_key_env: str, timeout: float = 60.0
) -> TextCompletionAdapter:
    """Build the adapter for a configured provider name.

    Raises:
        KeyError: If *provider* is not ``"gemini"`` or ``"none"``.
    """
    if provider == "gemini":
        return GeminiAdapter(model=model, api_key_env=api_key_env, timeout=timeout)
    if provider == "none":
        return NullAdapter()
    raise KeyError(provider)
