"""Unit tests for LLM provider adapters: OpenAI-compatible and Anthropic."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock, patch

import anthropic
import openai
import pytest

from docqa.config.settings import Settings
from docqa.providers.llm.anthropic_provider import AnthropicLLMProvider
from docqa.providers.llm.openai_provider import OpenAILLMProvider
from docqa.utils.errors import LLMError


def _settings(**overrides) -> Settings:
    defaults = {
        "openai_api_key": "sk-test",
        "openai_base_url": "",
        "openai_text_model": "",
        "anthropic_api_key": "sk-ant-test",
        "anthropic_model": "claude-test",
    }
    defaults.update(overrides)
    return Settings(**defaults)


def _chat_response(content: str | None) -> MagicMock:
    response = MagicMock()
    response.choices = [MagicMock(message=MagicMock(content=content))]
    response.usage = MagicMock(total_tokens=42)
    return response


def _block(block_type: str, text: str = "") -> MagicMock:
    block = MagicMock()
    block.type = block_type
    block.text = text
    return block


def _messages_response(blocks: list[MagicMock]) -> MagicMock:
    response = MagicMock()
    response.content = blocks
    response.usage = MagicMock(input_tokens=10, output_tokens=5)
    return response


# ======================================================================
# OpenAI-compatible
# ======================================================================


class TestOpenAILLMProvider:
    def test_provider_name(self) -> None:
        assert OpenAILLMProvider(_settings(), client=AsyncMock()).get_provider_name() == "openai"
        compatible = OpenAILLMProvider(
            _settings(openai_base_url="http://localhost:8000/v1"), client=AsyncMock()
        )
        assert compatible.get_provider_name() == "openai-compatible"

    def test_is_available(self) -> None:
        assert OpenAILLMProvider(_settings(), client=AsyncMock()).is_available()
        assert not OpenAILLMProvider(
            _settings(openai_api_key=""), client=AsyncMock()
        ).is_available()

    def test_client_uses_base_url(self) -> None:
        with patch("docqa.providers.llm.openai_provider.openai.AsyncOpenAI") as client_cls:
            OpenAILLMProvider(_settings(openai_base_url="http://local/v1"))

        assert client_cls.call_args.kwargs["base_url"] == "http://local/v1"
        assert client_cls.call_args.kwargs["api_key"] == "sk-test"

    @pytest.mark.asyncio
    async def test_complete_success(self) -> None:
        client = AsyncMock()
        client.chat.completions.create = AsyncMock(return_value=_chat_response("- answer"))
        provider = OpenAILLMProvider(_settings(), client=client)

        result = await provider.complete("system", "user", temperature=0.1, max_tokens=50)

        assert result == "- answer"
        kwargs = client.chat.completions.create.call_args.kwargs
        assert kwargs["model"] == "gpt-4o-mini"
        assert kwargs["messages"] == [
            {"role": "system", "content": "system"},
            {"role": "user", "content": "user"},
        ]
        assert kwargs["temperature"] == 0.1
        assert kwargs["max_tokens"] == 50

    @pytest.mark.asyncio
    async def test_custom_model(self) -> None:
        client = AsyncMock()
        client.chat.completions.create = AsyncMock(return_value=_chat_response("ok"))
        provider = OpenAILLMProvider(_settings(openai_text_model="llama-3-70b"), client=client)

        await provider.complete("system", "user")

        assert client.chat.completions.create.call_args.kwargs["model"] == "llama-3-70b"

    @pytest.mark.asyncio
    async def test_empty_content_raises(self) -> None:
        client = AsyncMock()
        client.chat.completions.create = AsyncMock(return_value=_chat_response(None))
        provider = OpenAILLMProvider(_settings(), client=client)

        with pytest.raises(LLMError, match="empty response"):
            await provider.complete("system", "user")

    @pytest.mark.asyncio
    async def test_api_error_wrapped(self) -> None:
        client = AsyncMock()
        client.chat.completions.create = AsyncMock(
            side_effect=openai.APIError(
                message="Rate limit exceeded",
                request=MagicMock(),
                body=None,
            )
        )
        provider = OpenAILLMProvider(_settings(), client=client)

        with pytest.raises(LLMError) as exc_info:
            await provider.complete("system", "user")

        assert exc_info.value.provider_name == "openai"
        assert "Rate limit exceeded" in str(exc_info.value)


# ======================================================================
# Anthropic
# ======================================================================


class TestAnthropicLLMProvider:
    def test_provider_name_and_availability(self) -> None:
        provider = AnthropicLLMProvider(_settings(), client=AsyncMock())
        assert provider.get_provider_name() == "anthropic"
        assert provider.is_available()
        assert not AnthropicLLMProvider(
            _settings(anthropic_api_key=""), client=AsyncMock()
        ).is_available()

    @pytest.mark.asyncio
    async def test_complete_success(self) -> None:
        client = AsyncMock()
        client.messages.create = AsyncMock(
            return_value=_messages_response([_block("text", "- answer")])
        )
        provider = AnthropicLLMProvider(_settings(), client=client)

        result = await provider.complete("system", "user", temperature=0.0, max_tokens=100)

        assert result == "- answer"
        kwargs = client.messages.create.call_args.kwargs
        assert kwargs["model"] == "claude-test"
        assert kwargs["system"] == "system"
        assert kwargs["messages"] == [{"role": "user", "content": "user"}]
        assert kwargs["max_tokens"] == 100

    @pytest.mark.asyncio
    async def test_text_blocks_joined(self) -> None:
        client = AsyncMock()
        client.messages.create = AsyncMock(
            return_value=_messages_response(
                [_block("text", "- one"), _block("tool_use"), _block("text", "- two")]
            )
        )
        provider = AnthropicLLMProvider(_settings(), client=client)

        assert await provider.complete("system", "user") == "- one\n- two"

    @pytest.mark.asyncio
    async def test_no_text_blocks_raises(self) -> None:
        client = AsyncMock()
        client.messages.create = AsyncMock(return_value=_messages_response([]))
        provider = AnthropicLLMProvider(_settings(), client=client)

        with pytest.raises(LLMError, match="no text content"):
            await provider.complete("system", "user")

    @pytest.mark.asyncio
    async def test_api_error_wrapped(self) -> None:
        client = AsyncMock()
        client.messages.create = AsyncMock(
            side_effect=anthropic.APIError(
                message="overloaded",
                request=MagicMock(),
                body=None,
            )
        )
        provider = AnthropicLLMProvider(_settings(), client=client)

        with pytest.raises(LLMError, match="Anthropic API error"):
            await provider.complete("system", "user")
