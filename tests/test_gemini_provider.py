"""
Tests for providers/gemini_provider.py.

The google-genai client is replaced with a MagicMock so no network is used.

Covers:
  - generate(): single-turn contents envelope, model id, returned text
  - blocked / empty candidates → ""
  - error mapping: timeout, ServerError, ClientError (429 vs other), transport errors
  - interpret(): end-to-end prompt → AnalysisResult
"""
from __future__ import annotations

import asyncio
from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import pytest
from google.genai import errors as genai_errors

from conftest import SAMPLE_RESPONSE
from providers.base import InterpretationError
from providers.gemini_provider import GeminiProvider


def _make_provider(generate: AsyncMock, timeout: float = 30.0) -> GeminiProvider:
    client = MagicMock()
    client.aio.models.generate_content = generate
    with patch("providers.gemini_provider.genai.Client", return_value=client):
        return GeminiProvider(api_key="test-key", model="gemini-2.0-flash", timeout=timeout)


def _response(text):
    resp = MagicMock()
    resp.text = text
    resp.usage_metadata = MagicMock(prompt_token_count=120, candidates_token_count=80)
    return resp


@pytest.mark.asyncio
class TestGenerate:
    async def test_returns_response_text(self):
        generate = AsyncMock(return_value=_response("Pros:\n- Tasty"))
        provider = _make_provider(generate)
        assert await provider.generate("hello") == "Pros:\n- Tasty"

    async def test_single_turn_request(self):
        generate = AsyncMock(return_value=_response("ok"))
        provider = _make_provider(generate)
        await provider.generate("the prompt")

        kwargs = generate.await_args.kwargs
        assert kwargs["model"] == "gemini-2.0-flash"
        contents = kwargs["contents"]
        assert len(contents) == 1
        assert contents[0].role == "user"
        assert [p.text for p in contents[0].parts] == ["the prompt"]

    async def test_blocked_response_gives_empty_string(self):
        provider = _make_provider(AsyncMock(return_value=_response(None)))
        assert await provider.generate("x") == ""

    async def test_timeout_is_retryable(self):
        async def _hang(**_):
            await asyncio.sleep(10)

        provider = _make_provider(AsyncMock(side_effect=_hang), timeout=0.01)
        with pytest.raises(InterpretationError, match="timed out") as exc_info:
            await provider.generate("x")
        assert exc_info.value.retryable is True

    async def test_server_error_is_retryable(self):
        err = genai_errors.ServerError(503, {"error": {"message": "overloaded", "status": "UNAVAILABLE"}})
        provider = _make_provider(AsyncMock(side_effect=err))
        with pytest.raises(InterpretationError, match="server error") as exc_info:
            await provider.generate("x")
        assert exc_info.value.retryable is True

    async def test_connection_error_is_retryable(self):
        provider = _make_provider(AsyncMock(side_effect=httpx.ConnectError("refused")))
        with pytest.raises(InterpretationError, match="request failed") as exc_info:
            await provider.generate("x")
        assert exc_info.value.retryable is True
        assert isinstance(exc_info.value.__cause__, httpx.ConnectError)

    async def test_quota_error_is_retryable(self):
        err = genai_errors.ClientError(429, {"error": {"message": "quota", "status": "RESOURCE_EXHAUSTED"}})
        provider = _make_provider(AsyncMock(side_effect=err))
        with pytest.raises(InterpretationError) as exc_info:
            await provider.generate("x")
        assert exc_info.value.retryable is True

    async def test_invalid_key_is_not_retryable(self):
        err = genai_errors.ClientError(400, {"error": {"message": "API key not valid", "status": "INVALID_ARGUMENT"}})
        provider = _make_provider(AsyncMock(side_effect=err))
        with pytest.raises(InterpretationError, match="API error") as exc_info:
            await provider.generate("x")
        assert exc_info.value.retryable is False


@pytest.mark.asyncio
class TestInterpret:
    async def test_end_to_end(self):
        generate = AsyncMock(return_value=_response(SAMPLE_RESPONSE))
        provider = _make_provider(generate)
        result = await provider.interpret("Ingredients: oats", "Oat Bar")

        assert result.pros == ["Low sugar", "High fiber"]
        assert result.cons == ["High sodium"]
        assert result.environmental_impact == "Packaging is recyclable."
        prompt = generate.await_args.kwargs["contents"][0].parts[0].text
        assert "Oat Bar" in prompt
        assert "Ingredients: oats" in prompt


def test_full_name():
    provider = _make_provider(AsyncMock())
    assert provider.full_name == "google/gemini-2.0-flash"
