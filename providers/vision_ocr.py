"""
Google Cloud Vision OCR provider — plain REST call over aiohttp.

Endpoint: POST https://vision.googleapis.com/v1/images:annotate?key=...
Request:  {"requests": [{"image": {"content": <b64>},
                         "features": [{"type": "TEXT_DETECTION"}]}]}
Response: responses[0].fullTextAnnotation.text  (absent when no text found)
"""
from __future__ import annotations

import asyncio
import logging
import time

import aiohttp

from providers.base import OCRProvider, RecognitionError

logger = logging.getLogger(__name__)

VISION_URL = "https://vision.googleapis.com/v1/images:annotate"


def _is_transient(status: int) -> bool:
    return status == 429 or status >= 500


class GoogleVisionOCR(OCRProvider):

    def __init__(self, api_key: str, timeout: float = 30.0, endpoint: str = VISION_URL) -> None:
        self.name      = "google-vision"
        self._key      = api_key
        self._timeout  = timeout
        self._endpoint = endpoint

    async def annotate(self, content_b64: str) -> str:
        payload = {
            "requests": [
                {
                    "image": {"content": content_b64},
                    "features": [{"type": "TEXT_DETECTION"}],
                }
            ]
        }

        t0 = time.monotonic()
        try:
            async with aiohttp.ClientSession() as session:
                async with session.post(
                    self._endpoint,
                    params={"key": self._key},
                    json=payload,
                    timeout=aiohttp.ClientTimeout(total=self._timeout),
                ) as resp:
                    if resp.status != 200:
                        text = await resp.text()
                        raise RecognitionError(
                            f"Vision API error {resp.status}: {text[:200]}",
                            retryable=_is_transient(resp.status),
                        )
                    data = await resp.json()
        except asyncio.TimeoutError as exc:
            raise RecognitionError(
                f"Vision API timed out after {self._timeout:.0f}s", retryable=True,
            ) from exc
        except (aiohttp.ContentTypeError, ValueError) as exc:
            raise RecognitionError(f"Vision API returned malformed JSON: {exc}") from exc
        except aiohttp.ClientError as exc:
            raise RecognitionError(f"Vision API request failed: {exc}", retryable=True) from exc

        latency_ms = int((time.monotonic() - t0) * 1000)
        text = _extract_text(data)
        logger.info("[%s] OK, %d chars in %dms", self.name, len(text), latency_ms)
        return text


def _extract_text(data: object) -> str:
    """Pull responses[0].fullTextAnnotation.text out of an annotate response."""
    if not isinstance(data, dict):
        raise RecognitionError("Vision API returned malformed JSON: expected an object")
    responses = data.get("responses") or []
    first = responses[0] if responses else {}
    if not isinstance(first, dict):
        raise RecognitionError("Vision API returned malformed JSON: bad responses[0]")
    error = first.get("error")
    if error:
        message = error.get("message", error) if isinstance(error, dict) else error
        raise RecognitionError(f"Vision API could not process the image: {message}")
    annotation = first.get("fullTextAnnotation") or {}
    return annotation.get("text", "") or ""
