"""Answer generation: reranked passages + citations -> cited answer text.

Sends the passages and the question to the configured LLM with a fixed
rule list that keeps the model inside the supplied context, then appends a
``Sources:`` block rendered from the resolved citations.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import TYPE_CHECKING

import structlog

from docqa.utils.logging import get_logger

if TYPE_CHECKING:
    from docqa.interfaces.llm_provider import ILLMProvider
    from docqa.models.citation import Citation
    from docqa.models.rag import RerankResult

logger: structlog.BoundLogger = get_logger(__name__)

NO_ANSWER_MESSAGE = "No answer could be generated."


class AnswerService:
    """Distils reranked evidence into a concise answer with a source list.

    Parameters
    ----------
    llm_provider:
        The answer generator.
    temperature, max_tokens:
        Passed through to :meth:`ILLMProvider.complete`.
    """

    _SYSTEM_PROMPT = "\n".join(
        [
            "You are a question answering system. Follow these rules:",
            "0. Do not invent or fabricate facts; use ONLY the CONTEXT provided.",
            "1. Extract sentences directly OR indirectly relevant to the question.",
            "2. Always include causal or transformative events when the question asks HOW or WHY.",
            "3. Preserve important related entities, concepts, and events even if not "
            "explicitly named in the question.",
            "4. Organize the output into bullet points grouped by related concepts, topics, "
            "or entities where appropriate.",
            "5. Keep wording faithful to the source text (light trimming is OK, no paraphrasing).",
            "6. If unsure whether a fact is relevant, INCLUDE it rather than omit it.",
            "7. Output plain text with '-' bullet points.",
            "8. If multiple important facts exist for the same concept or entity, "
            "include up to THREE bullets.",
            "9. Keep the entire output concise: maximum ~100 lines total.",
            "10. Start your answer with a short summary paragraph.",
        ]
    )

    def __init__(
        self,
        llm_provider: ILLMProvider,
        temperature: float = 0.2,
        max_tokens: int = 2000,
    ) -> None:
        self._llm = llm_provider
        self._temperature = temperature
        self._max_tokens = max_tokens

    @property
    def system_prompt(self) -> str:
        return self._SYSTEM_PROMPT

    async def build_answer(
        self,
        query: str,
        passages: Sequence[RerankResult],
        citations: Sequence[Citation],
    ) -> str:
        """Generate the answer text for *query* and append the source list.

        Returns :data:`NO_ANSWER_MESSAGE` (without sources) when the model
        returns blank text.  LLM failures propagate as
        :class:`~docqa.utils.errors.LLMError`.
        """
        user_prompt = self.build_user_prompt(query, passages)
        logger.debug(
            "answer_prompt_built",
            passages=len(passages),
            prompt_chars=len(user_prompt),
        )

        generated = await self._llm.complete(
            system_prompt=self._SYSTEM_PROMPT,
            user_prompt=user_prompt,
            temperature=self._temperature,
            max_tokens=self._max_tokens,
        )

        if not generated or not generated.strip():
            logger.warning("answer_blank", provider=self._llm.get_provider_name())
            return NO_ANSWER_MESSAGE

        logger.info(
            "answer_generated",
            provider=self._llm.get_provider_name(),
            answer_chars=len(generated),
            citations=len(citations),
        )
        return f"{generated.rstrip()}\n\n{self.render_sources(citations)}"

    @staticmethod
    def build_user_prompt(query: str, passages: Sequence[RerankResult]) -> str:
        """Return ``CONTEXT:`` with one ``- passage`` line each, then the question."""
        lines = ["CONTEXT:"]
        lines.extend(f"- {passage.text}" for passage in passages)
        return "\n".join(lines) + f"\n\nQUESTION: {query}"

    @staticmethod
    def render_sources(citations: Sequence[Citation]) -> str:
        lines = ["Sources:"]
        lines.extend(f"- {citation.as_string()}" for citation in citations)
        return "\n".join(lines)
