"""Unit tests for IngestionService: prepare (extract/clean/chunk) and index."""

from __future__ import annotations

from pathlib import Path
from unittest.mock import AsyncMock, MagicMock

import pytest

from docqa.models.catalog import DocumentRecord, DocumentStatus
from docqa.providers.search_index.memory_index import InMemorySearchIndex
from docqa.services.ingestion.chunker import SentenceChunker
from docqa.services.ingestion.ingestion_service import IngestionService
from docqa.services.ingestion.source_processors import PDFTextExtractor, PlainTextExtractor
from docqa.services.ingestion.text_cleaner import TextCleaner
from docqa.utils.errors import PipelineError, RAGError
from tests.fakes import HashingEmbedder, InMemoryCatalog

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _make_service(
    catalog: InMemoryCatalog,
    embedder: HashingEmbedder | MagicMock | None = None,
    index: InMemorySearchIndex | MagicMock | None = None,
) -> IngestionService:
    return IngestionService(
        extractors=[PDFTextExtractor(), PlainTextExtractor()],
        cleaner=TextCleaner(),
        chunker=SentenceChunker(target_chars=200, overlap_chars=40),
        embedding_provider=embedder or HashingEmbedder(),
        search_index=index or InMemorySearchIndex(),
        catalog=catalog,
    )


async def _store(
    catalog: InMemoryCatalog,
    content: str | bytes,
    file_name: str = "dragons.txt",
    mime: str | None = None,
) -> DocumentRecord:
    data = content.encode("utf-8") if isinstance(content, str) else content
    return await catalog.save(file_name, mime, data, DocumentStatus.QUEUED)


# ---------------------------------------------------------------------------
# prepare
# ---------------------------------------------------------------------------


class TestPrepare:
    @pytest.mark.asyncio
    async def test_text_document_is_chunked(
        self, catalog: InMemoryCatalog, sample_text: str
    ) -> None:
        record = await _store(catalog, sample_text)
        service = _make_service(catalog)

        chunks = await service.prepare(record)

        assert len(chunks) > 1
        assert all(c.doc_id == record.id for c in chunks)
        assert chunks[0].chunk_id == f"{record.id}_00000_p1-1"

    @pytest.mark.asyncio
    async def test_form_feed_pages_reach_chunks(self, catalog: InMemoryCatalog) -> None:
        text = "First page sentence here.\fSecond page sentence here."
        record = await _store(catalog, text)

        chunks = await _make_service(catalog).prepare(record)

        assert len(chunks) == 1
        assert (chunks[0].page_start, chunks[0].page_end) == (1, 2)
        # The form feed is a control character and is cleaned away.
        assert chunks[0].text == "First page sentence here.Second page sentence here."

    @pytest.mark.asyncio
    async def test_unsupported_mime_type(self, catalog: InMemoryCatalog) -> None:
        record = await _store(catalog, b"\x00\x01", file_name="blob.bin")

        with pytest.raises(PipelineError, match="No text extractor supports"):
            await _make_service(catalog).prepare(record)

    @pytest.mark.asyncio
    async def test_extraction_failure_wrapped(self, catalog: InMemoryCatalog) -> None:
        record = await _store(catalog, b"%PDF-1.4", file_name="broken.pdf")
        Path(record.blob_path).unlink()

        with pytest.raises(PipelineError, match="Extraction failed") as exc_info:
            await _make_service(catalog).prepare(record)

        assert exc_info.value.provider_name == "pymupdf"

    @pytest.mark.asyncio
    async def test_blank_document_rejected(self, catalog: InMemoryCatalog) -> None:
        record = await _store(catalog, "  \n\u200B  \n")

        with pytest.raises(PipelineError, match="no extractable text"):
            await _make_service(catalog).prepare(record)


# ---------------------------------------------------------------------------
# index
# ---------------------------------------------------------------------------


class TestIndex:
    @pytest.mark.asyncio
    async def test_embeds_indexes_and_updates_catalog(
        self, catalog: InMemoryCatalog, sample_text: str
    ) -> None:
        embedder = HashingEmbedder()
        index = InMemorySearchIndex()
        service = _make_service(catalog, embedder=embedder, index=index)
        record = await _store(catalog, sample_text)
        chunks = await service.prepare(record)

        result = await service.index(record, chunks)

        assert result.doc_id == record.id
        assert result.chunks == len(chunks)
        assert result.embed_model == "hashing-test"
        assert await index.count() == len(chunks)
        assert embedder.embedded_texts == [c.text for c in chunks]

        stored = await catalog.find_by_id(record.id)
        assert stored is not None
        assert stored.chunks == len(chunks)
        assert stored.embed_model == "hashing-test"
        assert stored.last_indexed_at is not None

    @pytest.mark.asyncio
    async def test_callback_runs_once_per_chunk(
        self, catalog: InMemoryCatalog, sample_text: str
    ) -> None:
        service = _make_service(catalog)
        record = await _store(catalog, sample_text)
        chunks = await service.prepare(record)
        calls: list[int] = []

        await service.index(record, chunks, on_chunk_embedded=lambda: calls.append(1))

        assert len(calls) == len(chunks)

    @pytest.mark.asyncio
    async def test_embedding_failure_wrapped(
        self, catalog: InMemoryCatalog, sample_text: str
    ) -> None:
        embedder = MagicMock()
        embedder.embed = AsyncMock(side_effect=RAGError("model gone", provider_name="fastembed"))
        embedder.get_provider_name.return_value = "fastembed"
        service = _make_service(catalog, embedder=embedder)
        record = await _store(catalog, sample_text)
        chunks = await _make_service(catalog).prepare(record)

        with pytest.raises(PipelineError, match="Embedding failed"):
            await service.index(record, chunks)

    @pytest.mark.asyncio
    async def test_index_failure_wrapped(
        self, catalog: InMemoryCatalog, sample_text: str
    ) -> None:
        index = MagicMock()
        index.upsert_document = AsyncMock(side_effect=RAGError("disk full"))
        index.get_provider_name.return_value = "chromadb"
        service = _make_service(catalog, index=index)
        record = await _store(catalog, sample_text)
        chunks = await service.prepare(record)

        with pytest.raises(PipelineError, match="Index upsert failed") as exc_info:
            await service.index(record, chunks)

        assert exc_info.value.provider_name == "chromadb"

    @pytest.mark.asyncio
    async def test_reindex_replaces_document_chunks(
        self, catalog: InMemoryCatalog, sample_text: str
    ) -> None:
        index = InMemorySearchIndex()
        service = _make_service(catalog, index=index)
        record = await _store(catalog, sample_text)

        first = await service.reindex(record)
        second = await service.reindex(record)

        assert first.chunks == second.chunks
        assert await index.count() == second.chunks

    @pytest.mark.asyncio
    async def test_reindex_reports_chunk_count_before_embedding(
        self, catalog: InMemoryCatalog, sample_text: str
    ) -> None:
        service = _make_service(catalog)
        record = await _store(catalog, sample_text)
        events: list[str] = []

        result = await service.reindex(
            record,
            on_chunk_embedded=lambda: events.append("embedded"),
            on_prepared=lambda count: events.append(f"prepared:{count}"),
        )

        assert events[0] == f"prepared:{result.chunks}"
        assert events[1:] == ["embedded"] * result.chunks
