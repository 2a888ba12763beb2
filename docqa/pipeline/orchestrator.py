"""Central orchestrator for document ingestion and question answering.

Two independent pipelines, each drained by its own single-consumer
:class:`~docqa.utils.concurrency.SerialTaskQueue`:

    Ingestion   save -> extract -> clean -> chunk | embed -> index -> catalog
    Questions   retrieve -> rerank -> cite -> answer

Submission never waits for the heavy work.  For documents, the cheap
extract/clean/chunk stages run at submission time so the chunk count can be
registered with the :class:`DocumentProgressTracker` before the embedding
job is queued.  For questions, the caller receives a ``QUEUED`` job snapshot
and polls :meth:`PipelineOrchestrator.get_job` for the outcome.

Failures inside a queued job never reach the submitter.  A failed ingestion
is rolled back by deleting the document's index entries, blob and catalog
record; a failed question ends in ``FAILED`` with the error message stored
as its answer.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import TYPE_CHECKING

import structlog

from docqa.models.catalog import DocumentRecord, DocumentStatus
from docqa.models.pipeline import ProgressStatus, QuestionJob, QuestionStatus
from docqa.pipeline.progress_tracker import DocumentProgressTracker, ProgressListener
from docqa.pipeline.question_registry import QuestionRegistry
from docqa.utils.concurrency import SerialTaskQueue
from docqa.utils.errors import DocumentNotFoundError
from docqa.utils.logging import get_logger

if TYPE_CHECKING:
    from docqa.interfaces.catalog_provider import ICatalogProvider
    from docqa.interfaces.retrieval import IReranker, IRetriever
    from docqa.interfaces.search_index_provider import ISearchIndexProvider
    from docqa.models.rag import Chunk
    from docqa.services.answer_service import AnswerService
    from docqa.services.citation_service import CitationResolver
    from docqa.services.ingestion.ingestion_service import IngestionService

NO_RELEVANT_INFORMATION = "No relevant information found."


class PipelineOrchestrator:
    """Runs ingestion and question jobs on two serial worker queues.

    All collaborators are injected; see :func:`docqa.main.build_orchestrator`
    for the production wiring.

    Parameters
    ----------
    retrieval_top_k:
        Number of fused candidates requested from the retriever.
    rerank_top_n:
        Maximum number of non-negative reranked passages passed on to
        citation resolution and answering.
    """

    def __init__(
        self,
        ingestion_service: IngestionService,
        retriever: IRetriever,
        reranker: IReranker,
        citation_resolver: CitationResolver,
        answer_service: AnswerService,
        catalog: ICatalogProvider,
        search_index: ISearchIndexProvider,
        progress_tracker: DocumentProgressTracker | None = None,
        question_registry: QuestionRegistry | None = None,
        retrieval_top_k: int = 100,
        rerank_top_n: int = 50,
    ) -> None:
        self._ingestion_service = ingestion_service
        self._retriever = retriever
        self._reranker = reranker
        self._citation_resolver = citation_resolver
        self._answer_service = answer_service
        self._catalog = catalog
        self._search_index = search_index
        self._tracker = progress_tracker or DocumentProgressTracker()
        self._registry = question_registry or QuestionRegistry()
        self._retrieval_top_k = retrieval_top_k
        self._rerank_top_n = rerank_top_n

        self._ingestion_queue = SerialTaskQueue("ingestion")
        self._question_queue = SerialTaskQueue("questions")
        self._logger: structlog.BoundLogger = get_logger(__name__)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def initialize(self, rebuild_empty_index: bool = True) -> None:
        """Prepare persistent storage and start the workers.

        The catalog outlives a non-persistent search index.  When the index
        starts out empty but the catalog still lists documents, every
        document is queued for reindexing unless *rebuild_empty_index* is
        false.  Questions run on their own queue, so call :meth:`drain`
        first to answer from the rebuilt index.
        """
        await self._catalog.initialize()
        self.start()

        if rebuild_empty_index and await self._search_index.count() == 0:
            records = await self._catalog.list_all()
            if records:
                self._logger.warning("search_index_empty", documents=len(records))
                self._queue_reindex(records)

    def start(self) -> None:
        """Start both worker queues.  Must be called from a running event loop."""
        self._ingestion_queue.start()
        self._question_queue.start()

    async def stop(self) -> None:
        """Stop both workers.  Jobs that have not started yet are dropped."""
        await self._ingestion_queue.stop()
        await self._question_queue.stop()

    async def drain(self) -> None:
        """Wait until every job submitted so far has finished."""
        await self._ingestion_queue.join()
        await self._question_queue.join()

    # ------------------------------------------------------------------
    # Documents
    # ------------------------------------------------------------------

    async def submit_document(
        self,
        file_name: str,
        mime: str | None,
        content: bytes,
    ) -> DocumentRecord:
        """Store a document and queue it for embedding and indexing.

        The returned record is ``QUEUED``.  Extraction and chunking happen
        before this method returns; if they fail the stored document is
        removed again and the error is raised to the caller.
        """
        record = await self._catalog.save(file_name, mime, content, DocumentStatus.QUEUED)

        try:
            chunks = await self._ingestion_service.prepare(record)
        except Exception as exc:
            self._logger.error(
                "document_preparation_failed",
                doc_id=record.id,
                title=record.title,
                error=str(exc),
            )
            await self._discard_document(record.id)
            raise

        self._tracker.add_document(len(chunks))
        self._ingestion_queue.start()
        self._ingestion_queue.submit(lambda: self._index_document(record, chunks))

        self._logger.info(
            "document_queued",
            doc_id=record.id,
            title=record.title,
            chunks=len(chunks),
            pending=self._ingestion_queue.pending,
        )
        return record

    async def delete_document(self, doc_id: str) -> None:
        """Delete a document's index entries, blob and catalog record.

        The deletion runs on the ingestion queue, after any indexing job
        already queued for the same document.

        Raises
        ------
        DocumentNotFoundError
            If *doc_id* has no catalog record.
        """
        record = await self._catalog.find_by_id(doc_id)
        if record is None:
            raise DocumentNotFoundError(
                message=f"Document not found: {doc_id}",
                provider_name=self._catalog.get_provider_name(),
            )

        async def _delete() -> None:
            await self._search_index.delete_document(doc_id)
            await self._catalog.delete(doc_id)

        self._ingestion_queue.start()
        await self._ingestion_queue.submit(_delete)
        self._logger.info("document_deleted", doc_id=doc_id, title=record.title)

    async def reindex_all(self) -> int:
        """Queue every catalog document for re-extraction and indexing.

        Each job replaces the document's index entries.  A document that
        fails to reindex is discarded, like a failed ingestion.

        Returns
        -------
        int
            Number of documents queued.
        """
        records = await self._catalog.list_all()
        self._queue_reindex(records)
        return len(records)

    async def list_documents(self) -> list[DocumentRecord]:
        return await self._catalog.list_all()

    def progress(self) -> ProgressStatus:
        """Return the current ingestion progress snapshot."""
        return self._tracker.status()

    def set_progress_listener(self, listener: ProgressListener | None) -> None:
        self._tracker.set_listener(listener)

    # ------------------------------------------------------------------
    # Questions
    # ------------------------------------------------------------------

    def submit_question(self, query: str) -> QuestionJob:
        """Register *query* and queue it for answering.

        Returns the ``QUEUED`` job snapshot immediately.  Must be called from
        a running event loop.
        """
        job = self._registry.create_job(query)
        self._question_queue.start()
        self._question_queue.submit(lambda: self._answer_question(job.id, query))
        self._logger.info(
            "question_queued",
            job_id=job.id,
            pending=self._question_queue.pending,
        )
        return job

    def get_job(self, job_id: int) -> QuestionJob | None:
        return self._registry.get_job(job_id)

    # ------------------------------------------------------------------
    # Worker jobs
    # ------------------------------------------------------------------

    async def _index_document(self, record: DocumentRecord, chunks: Sequence[Chunk]) -> None:
        embedded = 0

        def _on_chunk_embedded() -> None:
            nonlocal embedded
            embedded += 1
            self._tracker.step()

        try:
            await self._catalog.update_chunks_and_status(
                record.id, len(chunks), DocumentStatus.PROCESSING
            )
            await self._ingestion_service.index(
                record, chunks, on_chunk_embedded=_on_chunk_embedded
            )
            await self._catalog.update_status(record.id, DocumentStatus.INDEXED)
        except Exception as exc:
            self._logger.error(
                "document_indexing_failed",
                doc_id=record.id,
                title=record.title,
                error=str(exc),
            )
            # Settle the tracker so the next document becomes current.
            remaining = len(chunks) - embedded
            if remaining > 0:
                self._tracker.step(remaining)
            await self._discard_document(record.id)
            return

        self._logger.info("document_indexed", doc_id=record.id, chunks=len(chunks))

    def _queue_reindex(self, records: Sequence[DocumentRecord]) -> None:
        self._ingestion_queue.start()
        for record in records:
            self._ingestion_queue.submit(lambda r=record: self._reindex_document(r))
        self._logger.info(
            "reindex_queued",
            documents=len(records),
            pending=self._ingestion_queue.pending,
        )

    async def _reindex_document(self, record: DocumentRecord) -> None:
        registered = 0
        embedded = 0

        def _on_prepared(chunk_count: int) -> None:
            nonlocal registered
            registered = chunk_count
            self._tracker.add_document(chunk_count)

        def _on_chunk_embedded() -> None:
            nonlocal embedded
            embedded += 1
            self._tracker.step()

        try:
            await self._ingestion_service.reindex(
                record,
                on_chunk_embedded=_on_chunk_embedded,
                on_prepared=_on_prepared,
            )
            await self._catalog.update_status(record.id, DocumentStatus.INDEXED)
        except Exception as exc:
            self._logger.error(
                "document_reindex_failed",
                doc_id=record.id,
                title=record.title,
                error=str(exc),
            )
            remaining = registered - embedded
            if remaining > 0:
                self._tracker.step(remaining)
            await self._discard_document(record.id)
            return

        self._logger.info("document_reindexed", doc_id=record.id, chunks=registered)

    async def _answer_question(self, job_id: int, query: str) -> None:
        try:
            self._registry.update_status(job_id, QuestionStatus.RETRIEVING)
            candidates = await self._retriever.search(query, self._retrieval_top_k)

            self._registry.update_status(job_id, QuestionStatus.RERANKING)
            reranked = await self._reranker.rerank(query, candidates)
            passages = [r for r in reranked if r.score >= 0][: self._rerank_top_n]

            if not passages:
                self._registry.update_status(
                    job_id, QuestionStatus.COMPLETED, NO_RELEVANT_INFORMATION
                )
                self._logger.info("question_no_relevant_information", job_id=job_id)
                return

            citations = await self._citation_resolver.resolve(passages)

            self._registry.update_status(job_id, QuestionStatus.ANSWERING)
            answer = await self._answer_service.build_answer(query, passages, citations)

            self._registry.update_status(job_id, QuestionStatus.COMPLETED, answer)
            self._logger.info(
                "question_completed",
                job_id=job_id,
                passages=len(passages),
                citations=len(citations),
            )
        except Exception as exc:
            self._logger.error("question_failed", job_id=job_id, error=str(exc))
            self._registry.update_status(
                job_id, QuestionStatus.FAILED, str(exc) or type(exc).__name__
            )

    async def _discard_document(self, doc_id: str) -> None:
        """Best-effort removal of everything stored for *doc_id*."""
        try:
            await self._search_index.delete_document(doc_id)
        except Exception as exc:
            self._logger.warning("cleanup_index_failed", doc_id=doc_id, error=str(exc))
        try:
            await self._catalog.delete(doc_id)
        except Exception as exc:
            self._logger.warning("cleanup_catalog_failed", doc_id=doc_id, error=str(exc))
        self._logger.info("document_discarded", doc_id=doc_id)
