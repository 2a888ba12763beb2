"""Abstract base class for LLM service providers.

The answer generator is an opaque prompt-to-text call: slow, remote and
allowed to fail.  Implementations wrap the OpenAI (or OpenAI-compatible)
chat API or the Anthropic Messages API.
"""

from __future__ import annotations

from abc import ABC, abstractmethod


# Concrete implementations: OpenAILLMProvider, AnthropicLLMProvider
# Located in: docqa/providers/llm/
class ILLMProvider(ABC):
    """Contract for LLM completion used by the answer service."""

    @abstractmethod
    async def complete(
        self,
        system_prompt: str,
        user_prompt: str,
        temperature: float = 0.2,
        max_tokens: int = 2000,
    ) -> str:
        """Generate a text completion from the model.

        Parameters
        ----------
        system_prompt:
            The instruction message that sets the model's behaviour.
        user_prompt:
            The context passages and the question.
        temperature:
            Sampling temperature (0.0 = deterministic).
        max_tokens:
            Upper bound on the number of tokens in the response.

        Returns
        -------
        str
            The model's text response.

        Raises
        ------
        docqa.utils.errors.LLMError
            If the API call fails or returns an invalid response.
        """

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return a short identifier such as ``"openai"`` or ``"anthropic"``."""

    @abstractmethod
    def is_available(self) -> bool:
        """Return ``True`` if credentials are configured."""
