"""LLM provider implementations for answer generation."""

from docqa.providers.llm.anthropic_provider import AnthropicLLMProvider
from docqa.providers.llm.openai_provider import OpenAILLMProvider

__all__ = ["AnthropicLLMProvider", "OpenAILLMProvider"]
