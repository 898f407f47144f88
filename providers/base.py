"""
Shared types and base classes for the OCR and text-generation providers.
"""
from __future__ import annotations

import asyncio
import logging
from abc import ABC, abstractmethod
from typing import Awaitable, Callable, TypeVar

from analysis import AnalysisResult, RecognitionResult, parse_analysis
from camera.base import CapturedImage

logger = logging.getLogger(__name__)

T = TypeVar("T")


# ── Errors ─────────────────────────────────────────────────────────────────────

class AnalysisError(RuntimeError):
    """A provider call failed. `retryable` marks transient failures."""

    def __init__(self, message: str, retryable: bool = False) -> None:
        super().__init__(message)
        self.retryable = retryable


class RecognitionError(AnalysisError):
    """OCR call failed or returned something we could not read."""


class InterpretationError(AnalysisError):
    """Text-generation call failed."""


# ── Prompt ─────────────────────────────────────────────────────────────────────

ANALYSIS_PROMPT = """You are a health and environment expert. Analyze this packed food or product and return the following:

1. Health-related **Pros** and **Cons** in short bullet points (maximum 5 each).
2. A brief paragraph on the **environmental impact** (such as impact of production, packaging, or ingredients).

Put each part under these exact headers, one per line: "Pros:", "Cons:", "Environmental Impact:".

Product Name (if known): {name}

Full Label or Info:
{text}"""


def build_prompt(text: str, guessed_name: str) -> str:
    return ANALYSIS_PROMPT.format(name=guessed_name, text=text)


# ── Abstract bases ─────────────────────────────────────────────────────────────

class OCRProvider(ABC):
    """Base class for image → text providers."""

    name: str           # e.g. "google-vision"

    @abstractmethod
    async def annotate(self, content_b64: str) -> str:
        """
        Run text detection on base64 image content (no data-URI prefix).
        Returns the detected text, or "" when there is none.
        Raises RecognitionError on failure.
        """
        ...

    async def recognize(self, image: CapturedImage) -> RecognitionResult:
        raw_text = await self.annotate(image.payload)
        return RecognitionResult.from_text(raw_text)


class TextProvider(ABC):
    """Base class for prompt → text providers."""

    name: str           # e.g. "google"
    model_id: str       # e.g. "gemini-2.0-flash"

    @abstractmethod
    async def generate(self, prompt: str) -> str:
        """Single-turn completion. Raises InterpretationError on failure."""
        ...

    @property
    def full_name(self) -> str:
        return f"{self.name}/{self.model_id}"

    async def interpret(self, text: str, guessed_name: str) -> AnalysisResult:
        output = await self.generate(build_prompt(text, guessed_name))
        return parse_analysis(output)


# ── Retry ──────────────────────────────────────────────────────────────────────

async def with_retry(
    call: Callable[[], Awaitable[T]],
    *,
    retries: int,
    backoff: float,
    label: str,
) -> T:
    """
    Await call(), retrying retryable AnalysisErrors up to `retries` times
    with exponential backoff (backoff, 2×backoff, 4×backoff…).
    Non-retryable errors and the last failure propagate unchanged.
    """
    attempt = 0
    while True:
        try:
            return await call()
        except AnalysisError as exc:
            if not exc.retryable or attempt >= retries:
                raise
            delay = backoff * (2 ** attempt)
            attempt += 1
            logger.warning(
                "[%s] %s, retrying in %.1fs (%d/%d)", label, exc, delay, attempt, retries,
            )
            await asyncio.sleep(delay)
