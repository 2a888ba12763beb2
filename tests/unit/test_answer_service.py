"""Unit tests for AnswerService: prompt construction and source rendering."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock

import pytest

from docqa.models.citation import Citation, PageInterval
from docqa.models.rag import RerankResult
from docqa.services.answer_service import NO_ANSWER_MESSAGE, AnswerService
from docqa.utils.errors import LLMError
from tests.fakes import RecordingLLM

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _passage(text: str, doc_id: str = "d1") -> RerankResult:
    return RerankResult(doc_id=doc_id, chunk_id=f"{doc_id}_00000", text=text, score=1.0)


_CITATIONS = [
    Citation(
        doc_id="d1",
        title="Field Guide",
        page_intervals=[PageInterval(from_page=1, to_page=5), PageInterval(from_page=7, to_page=7)],
    ),
    Citation(doc_id="d2", title="notes.txt"),
]


# ---------------------------------------------------------------------------
# Prompt and rendering helpers
# ---------------------------------------------------------------------------


class TestPromptHelpers:
    def test_user_prompt_layout(self) -> None:
        prompt = AnswerService.build_user_prompt(
            "Where do dragons nest?",
            [_passage("They nest on volcanoes."), _passage("Eggs need heat.")],
        )
        assert prompt == (
            "CONTEXT:\n"
            "- They nest on volcanoes.\n"
            "- Eggs need heat.\n"
            "\n"
            "QUESTION: Where do dragons nest?"
        )

    def test_render_sources(self) -> None:
        assert AnswerService.render_sources(_CITATIONS) == (
            "Sources:\n- Field Guide p. 1-5, 7\n- notes.txt"
        )

    def test_system_prompt_forbids_invention(self) -> None:
        service = AnswerService(llm_provider=RecordingLLM())
        assert "use ONLY the CONTEXT" in service.system_prompt
        assert service.system_prompt.startswith("You are a question answering system.")


# ---------------------------------------------------------------------------
# build_answer
# ---------------------------------------------------------------------------


class TestBuildAnswer:
    @pytest.mark.asyncio
    async def test_answer_with_sources_appended(self) -> None:
        llm = RecordingLLM(reply="Dragons nest on volcanoes.\n- High up.\n\n")
        service = AnswerService(llm_provider=llm, temperature=0.1, max_tokens=300)

        answer = await service.build_answer(
            "Where do dragons nest?", [_passage("They nest on volcanoes.")], _CITATIONS
        )

        assert answer == (
            "Dragons nest on volcanoes.\n- High up.\n\n"
            "Sources:\n- Field Guide p. 1-5, 7\n- notes.txt"
        )

    @pytest.mark.asyncio
    async def test_llm_receives_prompts_and_settings(self) -> None:
        llm = RecordingLLM()
        service = AnswerService(llm_provider=llm, temperature=0.1, max_tokens=300)

        await service.build_answer("Q?", [_passage("P.")], _CITATIONS)

        assert len(llm.calls) == 1
        call = llm.calls[0]
        assert call["system_prompt"] == service.system_prompt
        assert call["user_prompt"] == "CONTEXT:\n- P.\n\nQUESTION: Q?"
        assert call["temperature"] == 0.1
        assert call["max_tokens"] == 300

    @pytest.mark.asyncio
    @pytest.mark.parametrize("reply", ["", "   \n"])
    async def test_blank_reply_gives_no_answer_message(self, reply: str) -> None:
        service = AnswerService(llm_provider=RecordingLLM(reply=reply))

        answer = await service.build_answer("Q?", [_passage("P.")], _CITATIONS)

        assert answer == NO_ANSWER_MESSAGE

    @pytest.mark.asyncio
    async def test_llm_error_propagates(self) -> None:
        llm = MagicMock()
        llm.complete = AsyncMock(side_effect=LLMError("boom", provider_name="openai"))
        llm.get_provider_name.return_value = "openai"
        service = AnswerService(llm_provider=llm)

        with pytest.raises(LLMError):
            await service.build_answer("Q?", [_passage("P.")], _CITATIONS)
