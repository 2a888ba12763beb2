"""ChromaDB-backed search index.

Wraps ``chromadb.PersistentClient`` to implement
:class:`ISearchIndexProvider`.  Vectors live in a cosine-space HNSW
collection on disk; the keyword side is a BM25 corpus rebuilt from the
collection's stored documents at start-up and after every write.

ChromaDB's client is synchronous, so every call runs in a worker thread via
``asyncio.to_thread``.  Writes are serialised by an ``asyncio.Lock``.
"""

from __future__ import annotations

import asyncio
import os
from typing import Any

# Disable ChromaDB's PostHog telemetry before chromadb is imported; some
# ChromaDB releases ship a PostHog client that errors on capture().
os.environ["ANONYMIZED_TELEMETRY"] = "False"

import posthog

posthog.disabled = True

import chromadb
import structlog

from docqa.interfaces.search_index_provider import ISearchIndexProvider
from docqa.models.rag import Chunk, IndexHit
from docqa.providers.search_index.keyword_corpus import KeywordCorpus, validate_upsert
from docqa.utils.errors import InvalidInputError, RAGError

logger = structlog.get_logger(logger_name=__name__)

_PAGE_SIZE = 5000


class _NoopEmbeddingFunction(chromadb.EmbeddingFunction[list[str]]):
    """Keeps ChromaDB from loading its default embedding model.

    docqa always passes pre-computed vectors, so this is never called.
    """

    def __call__(self, input: list[str]) -> list[list[float]]:
        raise NotImplementedError("docqa passes pre-computed embeddings to ChromaDB")

    def name(self) -> str:
        """Return function name (required by ChromaDB's EmbeddingFunction protocol)."""
        return "noop_precomputed"


class ChromaDBSearchIndex(ISearchIndexProvider):
    """Durable dual-mode index on ChromaDB with a BM25 keyword side."""

    def __init__(
        self,
        persist_directory: str = "./data/chromadb",
        collection_name: str = "docqa_chunks",
        client: Any | None = None,
    ) -> None:
        self._persist_directory = persist_directory
        self._collection_name = collection_name
        self._client = client or chromadb.PersistentClient(
            path=persist_directory,
            settings=chromadb.config.Settings(anonymized_telemetry=False),
        )
        # Collections created by older ChromaDB versions reject a different
        # embedding function; reopen them with whatever was persisted.
        try:
            self._collection = self._client.get_or_create_collection(
                name=collection_name,
                metadata={"hnsw:space": "cosine"},
                embedding_function=_NoopEmbeddingFunction(),
            )
        except ValueError:
            self._collection = self._client.get_or_create_collection(
                name=collection_name,
                metadata={"hnsw:space": "cosine"},
            )

        self._write_lock = asyncio.Lock()
        self._dimension = self._stored_dimension()
        self._keywords = KeywordCorpus(self._load_chunks())

        logger.info(
            "chromadb_index_opened",
            path=persist_directory,
            collection=collection_name,
            chunks=len(self._keywords),
            dimension=self._dimension,
        )

    # ------------------------------------------------------------------
    # ISearchIndexProvider implementation
    # ------------------------------------------------------------------

    async def upsert_document(
        self,
        doc_id: str,
        chunks: list[Chunk],
        vectors: list[list[float]],
    ) -> None:
        async with self._write_lock:
            dimension = validate_upsert(
                doc_id, chunks, vectors, self._dimension, self.get_provider_name()
            )
            try:
                await asyncio.to_thread(self._replace_document, doc_id, chunks, vectors)
                keywords = KeywordCorpus(await asyncio.to_thread(self._load_chunks))
            except Exception as exc:
                raise RAGError(
                    message=f"ChromaDB upsert failed for document {doc_id}: {exc}",
                    provider_name=self.get_provider_name(),
                ) from exc
            self._dimension = dimension
            self._keywords = keywords

        logger.info("chromadb_upsert", doc_id=doc_id, chunks=len(chunks))

    async def delete_document(self, doc_id: str) -> None:
        async with self._write_lock:
            try:
                await asyncio.to_thread(self._collection.delete, where={"doc_id": doc_id})
                self._keywords = KeywordCorpus(await asyncio.to_thread(self._load_chunks))
            except Exception as exc:
                raise RAGError(
                    message=f"ChromaDB delete failed for document {doc_id}: {exc}",
                    provider_name=self.get_provider_name(),
                ) from exc

        logger.info("chromadb_delete", doc_id=doc_id)

    async def vector_query(self, vector: list[float], k: int) -> list[IndexHit]:
        if k <= 0:
            return []
        if self._dimension is not None and len(vector) != self._dimension:
            raise InvalidInputError(
                message=(
                    f"Query vector dimension {len(vector)} does not match "
                    f"index dimension {self._dimension}"
                ),
                provider_name=self.get_provider_name(),
            )

        try:
            total = await asyncio.to_thread(self._collection.count)
            if total == 0:
                return []
            results = await asyncio.to_thread(
                self._collection.query,
                query_embeddings=[vector],
                n_results=min(k, total),
                include=["documents", "metadatas", "distances"],
            )
        except Exception as exc:
            raise RAGError(
                message=f"ChromaDB query failed: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

        if not results["ids"] or not results["ids"][0]:
            return []

        hits: list[IndexHit] = []
        for chunk_id, text, meta, distance in zip(
            results["ids"][0],
            results["documents"][0],
            results["metadatas"][0],
            results["distances"][0],
            strict=True,
        ):
            # Cosine distance is 1 - cos, so (1 + cos) / 2 == 1 - distance / 2.
            score = max(0.0, min(1.0, 1.0 - float(distance) / 2.0))
            hits.append(
                IndexHit(
                    doc_id=meta["doc_id"],
                    chunk_id=chunk_id,
                    text=text or "",
                    from_page=int(meta.get("page_start", -1)),
                    to_page=int(meta.get("page_end", -1)),
                    score=score,
                )
            )
        return hits

    async def keyword_query(self, text: str, k: int) -> list[IndexHit]:
        return self._keywords.query(text, k)

    async def count(self) -> int:
        try:
            return await asyncio.to_thread(self._collection.count)
        except Exception as exc:
            raise RAGError(
                message=f"ChromaDB count failed: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

    def get_provider_name(self) -> str:
        return "chromadb"

    def is_available(self) -> bool:
        try:
            self._client.heartbeat()
            return True
        except Exception:
            return False

    # ------------------------------------------------------------------
    # Private helpers (synchronous; run in worker threads)
    # ------------------------------------------------------------------

    def _replace_document(
        self,
        doc_id: str,
        chunks: list[Chunk],
        vectors: list[list[float]],
    ) -> None:
        """Upsert the new chunks, then drop the document's stale ids.

        A failed upsert leaves the previous chunks in place.
        """
        new_ids = [c.chunk_id for c in chunks]
        existing = self._collection.get(where={"doc_id": doc_id}, include=[])
        self._collection.upsert(
            ids=new_ids,
            embeddings=vectors,
            documents=[c.text for c in chunks],
            metadatas=[
                {"doc_id": c.doc_id, "page_start": c.page_start, "page_end": c.page_end}
                for c in chunks
            ],
        )
        stale = sorted(set(existing["ids"] or []) - set(new_ids))
        if stale:
            self._collection.delete(ids=stale)

    def _load_chunks(self) -> list[Chunk]:
        """Read every stored chunk back, paginated to stay under SQLite's bind limit."""
        chunks: list[Chunk] = []
        offset = 0
        while True:
            page = self._collection.get(
                include=["documents", "metadatas"],
                limit=_PAGE_SIZE,
                offset=offset,
            )
            ids = page["ids"] or []
            if not ids:
                break
            for chunk_id, text, meta in zip(
                ids, page["documents"] or [], page["metadatas"] or [], strict=True
            ):
                chunks.append(
                    Chunk(
                        doc_id=meta["doc_id"],
                        chunk_id=chunk_id,
                        text=text or "",
                        page_start=int(meta.get("page_start", -1)),
                        page_end=int(meta.get("page_end", -1)),
                    )
                )
            if len(ids) < _PAGE_SIZE:
                break
            offset += _PAGE_SIZE
        return chunks

    def _stored_dimension(self) -> int | None:
        if self._collection.count() == 0:
            return None
        sample = self._collection.peek(limit=1)
        embeddings = sample.get("embeddings") if sample else None
        if embeddings is None or len(embeddings) == 0:
            return None
        return len(embeddings[0])
