"""
Shared pytest fixtures.

Provides an in-memory camera and scripted OCR / text providers so session
tests never touch a real device or the network.
"""
from __future__ import annotations

import asyncio
import sys
from pathlib import Path
from typing import Optional

import pytest

# ── Make the project root importable without installing the package ────────────
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from camera.base import Camera, DeviceError  # noqa: E402
from config import ScannerConfig  # noqa: E402
from providers.base import OCRProvider, TextProvider  # noqa: E402

PNG_BYTES = b"\x89PNG\r\n\x1a\nfake-frame"

SAMPLE_RESPONSE = (
    "Pros:\n- Low sugar\n- High fiber\n"
    "Cons:\n- High sodium\n- Low sugar\n"
    "Environmental Impact:\nPackaging is recyclable."
)


class FakeCamera(Camera):
    """Camera that hands out a fixed frame and counts open/release calls."""

    def __init__(self, frame: bytes = PNG_BYTES, fail_open: bool = False) -> None:
        self.frame = frame
        self.fail_open = fail_open
        self._open = False
        self.open_calls = 0
        self.release_calls = 0

    @property
    def is_open(self) -> bool:
        return self._open

    def open(self) -> None:
        self.open_calls += 1
        if self.fail_open:
            raise DeviceError("Permission denied")
        self._open = True

    def read_frame(self) -> bytes:
        if not self._open:
            raise DeviceError("Camera is not open")
        return self.frame

    def release(self) -> None:
        self.release_calls += 1
        self._open = False


class FakeOCR(OCRProvider):
    def __init__(self, text: str = "Crunchy Oat Bars\nIngredients: oats, sugar",
                 error: Optional[Exception] = None) -> None:
        self.name = "fake-ocr"
        self.text = text
        self.error = error
        self.payloads: list[str] = []

    async def annotate(self, content_b64: str) -> str:
        self.payloads.append(content_b64)
        if self.error is not None:
            raise self.error
        return self.text


class BlockingOCR(FakeOCR):
    """OCR that waits until the test releases it."""

    def __init__(self) -> None:
        super().__init__()
        self.gate = asyncio.Event()

    async def annotate(self, content_b64: str) -> str:
        self.payloads.append(content_b64)
        await self.gate.wait()
        return self.text


class FakeTextProvider(TextProvider):
    def __init__(self, output: str = SAMPLE_RESPONSE, error: Optional[Exception] = None) -> None:
        self.name = "fake"
        self.model_id = "model"
        self.output = output
        self.error = error
        self.prompts: list[str] = []

    async def generate(self, prompt: str) -> str:
        self.prompts.append(prompt)
        if self.error is not None:
            raise self.error
        return self.output


@pytest.fixture
def config() -> ScannerConfig:
    return ScannerConfig(
        google_vision_api_key="vision-test-key",
        gemini_api_key="gemini-test-key",
        retry_backoff=0.0,
    )


@pytest.fixture
def camera() -> FakeCamera:
    return FakeCamera()


@pytest.fixture
def ocr() -> FakeOCR:
    return FakeOCR()


@pytest.fixture
def text_provider() -> FakeTextProvider:
    return FakeTextProvider()
