"""End-to-end tests: build_orchestrator wiring with a real SQLite catalog.

Only the model-backed collaborators (embedder, cross-encoder, LLM) are
replaced with deterministic doubles; extraction, cleaning, chunking, both
retrieval sides, windowed reranking, citation merging and the catalog run
for real.
"""

from __future__ import annotations

from pathlib import Path

import pytest

from docqa.config.settings import Settings
from docqa.main import build_orchestrator
from docqa.models.catalog import DocumentStatus
from docqa.models.pipeline import ProgressStatus, QuestionStatus
from docqa.pipeline.orchestrator import NO_RELEVANT_INFORMATION, PipelineOrchestrator
from docqa.providers.search_index.memory_index import InMemorySearchIndex
from docqa.utils.errors import DocumentNotFoundError, PipelineError
from tests.fakes import CharTokenScorer, HashingEmbedder, RecordingLLM

_GRIFFINS = (
    "Griffins guard hoards of gold in the northern hills.\n\f"
    "Griffins glide over cold cliffs at dawn. They rarely land near towns."
)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _settings(tmp_path: Path) -> Settings:
    return Settings(
        _env_file=None,
        catalog_db_path=str(tmp_path / "data" / "catalog.db"),
        blob_dir=str(tmp_path / "data" / "blobs"),
        chunk_target_chars=200,
        chunk_overlap_chars=40,
        app_env="test",
        log_level="WARNING",
    )


def _orchestrator(tmp_path: Path, llm: RecordingLLM | None = None) -> PipelineOrchestrator:
    return build_orchestrator(
        _settings(tmp_path),
        embedding_provider=HashingEmbedder(),
        search_index=InMemorySearchIndex(),
        scorer=CharTokenScorer(positive_terms=("volcanic",)),
        llm_provider=llm or RecordingLLM(reply="Dragons nest in volcanic mountains."),
    )


async def _ask(orchestrator: PipelineOrchestrator, query: str):
    job = orchestrator.submit_question(query)
    await orchestrator.drain()
    return orchestrator.get_job(job.id)


# ---------------------------------------------------------------------------
# Tests
# ---------------------------------------------------------------------------


class TestDocumentLifecycle:
    @pytest.mark.asyncio
    async def test_ingest_ask_delete(self, tmp_path: Path, sample_text: str) -> None:
        llm = RecordingLLM(reply="Dragons nest in volcanic mountains.")
        orchestrator = _orchestrator(tmp_path, llm)
        await orchestrator.initialize()
        updates: list[ProgressStatus] = []
        orchestrator.set_progress_listener(updates.append)

        try:
            dragons = await orchestrator.submit_document(
                "dragons.txt", None, sample_text.encode("utf-8")
            )
            griffins = await orchestrator.submit_document(
                "griffins.txt", "text/plain", _GRIFFINS.encode("utf-8")
            )
            assert dragons.status == DocumentStatus.QUEUED
            assert dragons.mime == "text/plain"

            await orchestrator.drain()

            records = {r.id: r for r in await orchestrator.list_documents()}
            assert set(records) == {dragons.id, griffins.id}
            assert all(r.status == DocumentStatus.INDEXED for r in records.values())
            assert records[dragons.id].chunks >= 3
            assert records[dragons.id].embed_model == "hashing-test"
            assert records[dragons.id].last_indexed_at is not None
            assert orchestrator.progress() == ProgressStatus(total_percent=100, document_percent=100)
            assert updates[-1].total_percent == 100

            done = await _ask(orchestrator, "Where do dragons nest?")
            assert done is not None
            assert done.status == QuestionStatus.COMPLETED
            assert done.answer == (
                "Dragons nest in volcanic mountains.\n\nSources:\n- dragons.txt p. 1"
            )
            assert "Griffins" not in llm.calls[0]["user_prompt"]

            await orchestrator.delete_document(dragons.id)

            remaining = await orchestrator.list_documents()
            assert [r.id for r in remaining] == [griffins.id]
            assert not Path(dragons.blob_path).exists()

            after = await _ask(orchestrator, "Where do dragons nest?")
            assert after is not None
            assert after.status == QuestionStatus.COMPLETED
            assert after.answer == NO_RELEVANT_INFORMATION
            assert len(llm.calls) == 1
        finally:
            await orchestrator.stop()

    @pytest.mark.asyncio
    async def test_empty_document_rejected_and_removed(self, tmp_path: Path) -> None:
        orchestrator = _orchestrator(tmp_path)
        await orchestrator.initialize()

        try:
            with pytest.raises(PipelineError, match="no extractable text"):
                await orchestrator.submit_document("blank.txt", None, b"   \n\t  ")

            assert await orchestrator.list_documents() == []
            assert list((tmp_path / "data" / "blobs").iterdir()) == []
        finally:
            await orchestrator.stop()

    @pytest.mark.asyncio
    async def test_delete_unknown_document(self, tmp_path: Path) -> None:
        orchestrator = _orchestrator(tmp_path)
        await orchestrator.initialize()

        try:
            with pytest.raises(DocumentNotFoundError):
                await orchestrator.delete_document("0" * 32)
        finally:
            await orchestrator.stop()

    @pytest.mark.asyncio
    async def test_catalog_survives_restart(self, tmp_path: Path, sample_text: str) -> None:
        first = _orchestrator(tmp_path)
        await first.initialize()
        record = await first.submit_document("dragons.txt", None, sample_text.encode("utf-8"))
        await first.drain()
        await first.stop()

        # A fresh in-memory index: the second process rebuilds it from the catalog.
        second = _orchestrator(tmp_path)
        await second.initialize()
        try:
            await second.drain()
            (stored,) = await second.list_documents()
            assert stored.id == record.id
            assert stored.status == DocumentStatus.INDEXED

            done = await _ask(second, "Where do dragons nest?")
            assert done is not None
            assert done.status == QuestionStatus.COMPLETED
            assert done.answer == (
                "Dragons nest in volcanic mountains.\n\nSources:\n- dragons.txt p. 1"
            )
        finally:
            await second.stop()


class TestQuestions:
    @pytest.mark.asyncio
    async def test_question_on_empty_index(self, tmp_path: Path) -> None:
        llm = RecordingLLM()
        orchestrator = _orchestrator(tmp_path, llm)
        await orchestrator.initialize()

        try:
            done = await _ask(orchestrator, "Anything at all?")

            assert done is not None
            assert done.status == QuestionStatus.COMPLETED
            assert done.answer == NO_RELEVANT_INFORMATION
            assert llm.calls == []
        finally:
            await orchestrator.stop()

    @pytest.mark.asyncio
    async def test_job_ids_increase(self, tmp_path: Path) -> None:
        orchestrator = _orchestrator(tmp_path)
        await orchestrator.initialize()

        try:
            first = orchestrator.submit_question("one?")
            second = orchestrator.submit_question("two?")
            await orchestrator.drain()

            assert (first.id, second.id) == (1, 2)
            assert orchestrator.get_job(2).status == QuestionStatus.COMPLETED
        finally:
            await orchestrator.stop()
