"""
Google Gemini text provider — uses the google-genai SDK (v1 API).

The analysis prompt is sent as a single user turn (no history, no streaming)
and the complete response text is returned for parsing.
"""
from __future__ import annotations

import asyncio
import logging
import time

import httpx
from google import genai
from google.genai import errors as genai_errors
from google.genai import types as genai_types

from providers.base import InterpretationError, TextProvider

logger = logging.getLogger(__name__)


class GeminiProvider(TextProvider):

    def __init__(self, api_key: str, model: str = "gemini-2.0-flash", timeout: float = 30.0):
        self.name     = "google"
        self.model_id = model
        self._timeout = timeout
        # Force v1 (stable) API
        self._client  = genai.Client(api_key=api_key, http_options={"api_version": "v1"})

    async def generate(self, prompt: str) -> str:
        contents = [
            genai_types.Content(role="user", parts=[genai_types.Part(text=prompt)]),
        ]

        t0 = time.monotonic()
        try:
            response = await asyncio.wait_for(
                self._client.aio.models.generate_content(model=self.model_id, contents=contents),
                timeout=self._timeout,
            )
        except asyncio.TimeoutError as exc:
            raise InterpretationError(
                f"[{self.full_name}] timed out after {self._timeout:.0f}s", retryable=True,
            ) from exc
        except genai_errors.ServerError as exc:
            raise InterpretationError(f"[{self.full_name}] server error: {exc}", retryable=True) from exc
        except genai_errors.APIError as exc:
            raise InterpretationError(
                f"[{self.full_name}] API error: {exc}", retryable=exc.code == 429,
            ) from exc
        except httpx.TransportError as exc:
            raise InterpretationError(f"[{self.full_name}] request failed: {exc}", retryable=True) from exc

        latency_ms = int((time.monotonic() - t0) * 1000)
        # .text is None when the candidate was blocked or empty
        raw = response.text or ""

        usage = response.usage_metadata
        logger.info(
            "[%s] OK, %d chars in %dms (tokens in=%s out=%s)",
            self.full_name,
            len(raw),
            latency_ms,
            getattr(usage, "prompt_token_count", "?"),
            getattr(usage, "candidates_token_count", "?"),
        )
        return raw
