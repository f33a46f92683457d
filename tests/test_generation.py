"""Tests for generation backends (mocked SDK calls)."""

import sys
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from chopchop.config import load_config
from chopchop.errors import UpstreamError
from chopchop.generation import contents_to_text, create_backend
from chopchop.generation.claude import ClaudeBackend
from chopchop.generation.gemini import GeminiBackend

CONTENTS = [{"parts": [{"text": "List the groceries."}, {"text": "Receipt: MILK"}]}]


class _BlockedResponse:
    @property
    def text(self):
        raise ValueError("response was blocked")


class TestCreateBackend:
    def test_create_gemini_backend(self):
        config = load_config()
        backend = create_backend(config)
        assert isinstance(backend, GeminiBackend)
        assert backend.name == "gemini"

    def test_create_claude_backend(self):
        config = load_config()
        config.generation.backend = "claude"
        backend = create_backend(config)
        assert isinstance(backend, ClaudeBackend)

    def test_create_unknown_backend(self):
        config = load_config()
        config.generation.backend = "unknown"
        with pytest.raises(ValueError, match="Unknown generation backend"):
            create_backend(config)


def test_contents_to_text():
    assert contents_to_text(CONTENTS) == "List the groceries.\n\nReceipt: MILK"
    assert contents_to_text([{"parts": [{"inline_data": {}}]}]) == ""


def _mock_genai(response=None, error=None):
    model = MagicMock()
    if error is not None:
        model.generate_content_async = AsyncMock(side_effect=error)
    else:
        model.generate_content_async = AsyncMock(return_value=response)
    genai = MagicMock()
    genai.GenerativeModel.return_value = model
    google = MagicMock()
    google.generativeai = genai
    return {"google": google, "google.generativeai": genai}, genai, model


class TestGeminiBackend:
    @pytest.mark.asyncio
    async def test_requires_api_key(self):
        with pytest.raises(ValueError, match="API key"):
            await GeminiBackend(api_key="").generate(CONTENTS)

    @pytest.mark.asyncio
    async def test_generate_mocked(self):
        modules, genai, model = _mock_genai(response=MagicMock(text="[]"))

        with patch.dict(sys.modules, modules):
            text = await GeminiBackend(api_key="k", model="gemini-test").generate(CONTENTS)

        assert text == "[]"
        genai.configure.assert_called_once_with(api_key="k")
        genai.GenerativeModel.assert_called_once_with("gemini-test")
        model.generate_content_async.assert_awaited_once_with(CONTENTS)

    @pytest.mark.asyncio
    async def test_sdk_error_becomes_upstream_error(self):
        error = RuntimeError("quota exceeded")
        error.code = 429
        modules, _, _ = _mock_genai(error=error)

        with patch.dict(sys.modules, modules):
            with pytest.raises(UpstreamError) as excinfo:
                await GeminiBackend(api_key="k").generate(CONTENTS)

        assert excinfo.value.status == 429
        assert "quota exceeded" in excinfo.value.detail

    @pytest.mark.asyncio
    async def test_blocked_answer_is_empty_text(self):
        modules, _, _ = _mock_genai(response=_BlockedResponse())

        with patch.dict(sys.modules, modules):
            assert await GeminiBackend(api_key="k").generate(CONTENTS) == ""


class TestClaudeBackend:
    @pytest.mark.asyncio
    async def test_requires_api_key(self):
        with pytest.raises(ValueError, match="API key"):
            await ClaudeBackend(api_key="").generate(CONTENTS)

    @pytest.mark.asyncio
    async def test_generate_mocked(self):
        mock_response = MagicMock()
        mock_response.content = [MagicMock(text="## Soup\nboil")]

        mock_client = AsyncMock()
        mock_client.messages.create = AsyncMock(return_value=mock_response)

        mock_anthropic = MagicMock()
        mock_anthropic.AsyncAnthropic.return_value = mock_client

        with patch.dict(sys.modules, {"anthropic": mock_anthropic}):
            text = await ClaudeBackend(api_key="test-key").generate(CONTENTS)

        assert text == "## Soup\nboil"
        kwargs = mock_client.messages.create.await_args.kwargs
        assert kwargs["messages"] == [
            {"role": "user", "content": "List the groceries.\n\nReceipt: MILK"}
        ]

    @pytest.mark.asyncio
    async def test_sdk_error_becomes_upstream_error(self):
        error = RuntimeError("overloaded")
        error.status_code = 529

        mock_client = AsyncMock()
        mock_client.messages.create = AsyncMock(side_effect=error)
        mock_anthropic = MagicMock()
        mock_anthropic.AsyncAnthropic.return_value = mock_client

        with patch.dict(sys.modules, {"anthropic": mock_anthropic}):
            with pytest.raises(UpstreamError) as excinfo:
                await ClaudeBackend(api_key="test-key").generate(CONTENTS)

        assert excinfo.value.status == 529
