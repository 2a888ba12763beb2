"""Document ingestion: extract -> clean -> chunk -> embed -> index.

The :class:`IngestionService` coordinates the ingestion collaborators
without any of them knowing about each other:

    1. ITextExtractor       -- stored file -> raw text + page map
    2. TextCleaner          -- strips artefacts, keeps the page map aligned
    3. SentenceChunker      -- page-annotated, overlapping chunks
    4. IEmbeddingProvider   -- one vector per chunk
    5. ISearchIndexProvider -- replace-all upsert of the document's chunks
    6. ICatalogProvider     -- chunk count, embedding model, timestamp

Stages 1-3 (:meth:`prepare`) are cheap enough to run at submission time so
the chunk count is known before any heavy work is queued.  Stages 4-6
(:meth:`index`) run on the ingestion worker.  Any stage failure surfaces as
:class:`~docqa.utils.errors.PipelineError` naming the stage.
"""

from __future__ import annotations

import asyncio
import time
from collections.abc import Callable, Sequence
from typing import TYPE_CHECKING

import structlog

from docqa.models.rag import Chunk, IngestionResult
from docqa.services.ingestion.chunker import SentenceChunker
from docqa.services.ingestion.text_cleaner import TextCleaner
from docqa.utils.errors import PipelineError

if TYPE_CHECKING:
    from docqa.interfaces.catalog_provider import ICatalogProvider
    from docqa.interfaces.embedding_provider import IEmbeddingProvider
    from docqa.interfaces.search_index_provider import ISearchIndexProvider
    from docqa.interfaces.text_extractor import ITextExtractor
    from docqa.models.catalog import DocumentRecord

logger = structlog.get_logger(logger_name=__name__)


class IngestionService:
    """Turns catalog documents into indexed, embedded chunks.

    Parameters
    ----------
    extractors:
        Candidate extractors; the first whose :meth:`supports` accepts the
        document's MIME type is used.
    cleaner:
        Text cleaner shared across documents.
    chunker:
        Sentence chunker shared across documents.
    embedding_provider:
        Generates one vector per chunk.
    search_index:
        Stores chunks and vectors.
    catalog:
        Receives the indexing outcome for each document.
    """

    def __init__(
        self,
        extractors: Sequence[ITextExtractor],
        cleaner: TextCleaner,
        chunker: SentenceChunker,
        embedding_provider: IEmbeddingProvider,
        search_index: ISearchIndexProvider,
        catalog: ICatalogProvider,
    ) -> None:
        self._extractors = list(extractors)
        self._cleaner = cleaner
        self._chunker = chunker
        self._embedding_provider = embedding_provider
        self._search_index = search_index
        self._catalog = catalog

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def prepare(self, record: DocumentRecord) -> list[Chunk]:
        """Extract, clean and chunk the stored file of *record*.

        Raises
        ------
        PipelineError
            If no extractor supports the MIME type, extraction fails, or the
            document yields no text.
        """
        extractor = self._select_extractor(record.mime)

        try:
            # PDF parsing is CPU-bound and synchronous; keep it off the loop.
            extracted = await asyncio.to_thread(extractor.extract, record.blob_path)
        except Exception as exc:
            raise PipelineError(
                message=f"Extraction failed for document {record.id}: {exc}",
                provider_name=extractor.get_provider_name(),
            ) from exc

        try:
            cleaned = self._cleaner.clean_with_page_map(extracted.raw_text, extracted.page_map)
            chunks = self._chunker.chunk(record.id, cleaned.clean_text, cleaned.page_map or None)
        except Exception as exc:
            raise PipelineError(
                message=f"Chunking failed for document {record.id}: {exc}",
            ) from exc

        if not chunks:
            raise PipelineError(message=f"Document {record.id} contains no extractable text")

        logger.info(
            "ingestion_prepared",
            doc_id=record.id,
            title=record.title,
            raw_chars=len(extracted.raw_text),
            clean_chars=len(cleaned.clean_text),
            chunks=len(chunks),
        )
        return chunks

    async def index(
        self,
        record: DocumentRecord,
        chunks: Sequence[Chunk],
        on_chunk_embedded: Callable[[], None] | None = None,
    ) -> IngestionResult:
        """Embed *chunks*, replace the document's index entries, update the catalog.

        Chunks are embedded one at a time and *on_chunk_embedded* is called
        after each, which is what drives per-chunk progress reporting.
        """
        started = time.monotonic()
        provider_name = self._embedding_provider.get_provider_name()

        try:
            vectors: list[list[float]] = []
            for chunk in chunks:
                vectors.extend(await self._embedding_provider.embed([chunk.text]))
                if on_chunk_embedded is not None:
                    on_chunk_embedded()
        except Exception as exc:
            raise PipelineError(
                message=f"Embedding failed for document {record.id}: {exc}",
                provider_name=provider_name,
            ) from exc

        try:
            await self._search_index.upsert_document(record.id, list(chunks), vectors)
        except Exception as exc:
            raise PipelineError(
                message=f"Index upsert failed for document {record.id}: {exc}",
                provider_name=self._search_index.get_provider_name(),
            ) from exc

        try:
            await self._catalog.mark_indexed(record.id, len(chunks), provider_name)
        except Exception as exc:
            raise PipelineError(
                message=f"Catalog update failed for document {record.id}: {exc}",
                provider_name=self._catalog.get_provider_name(),
            ) from exc

        elapsed = round(time.monotonic() - started, 3)
        logger.info(
            "ingestion_indexed",
            doc_id=record.id,
            chunks=len(chunks),
            embed_model=provider_name,
            seconds=elapsed,
        )
        return IngestionResult(
            doc_id=record.id,
            chunks=len(chunks),
            embed_model=provider_name,
            ingest_time_seconds=elapsed,
        )

    async def reindex(
        self,
        record: DocumentRecord,
        on_chunk_embedded: Callable[[], None] | None = None,
        on_prepared: Callable[[int], None] | None = None,
    ) -> IngestionResult:
        """Run the whole pipeline for an existing catalog record.

        *on_prepared* receives the chunk count once chunking is done, before
        the first chunk is embedded.
        """
        chunks = await self.prepare(record)
        if on_prepared is not None:
            on_prepared(len(chunks))
        return await self.index(record, chunks, on_chunk_embedded=on_chunk_embedded)

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    def _select_extractor(self, mime: str) -> ITextExtractor:
        for extractor in self._extractors:
            if extractor.supports(mime):
                return extractor
        raise PipelineError(message=f"No text extractor supports MIME type '{mime}'")
