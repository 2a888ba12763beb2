"""In-process search index: numpy cosine similarity plus BM25.

Every write builds a complete new :class:`_Snapshot` and swaps it in with a
single reference assignment.  Queries grab the current snapshot once and
work on it, so they never see a half-applied ``upsert_document`` and never
wait for a writer.  Writers are serialised by an ``asyncio.Lock``.

Nothing is persisted; the index starts empty on every process start.  Use
the ChromaDB backend for a durable index.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field

import numpy as np
import structlog

from docqa.interfaces.search_index_provider import ISearchIndexProvider
from docqa.models.rag import Chunk, IndexHit
from docqa.providers.search_index.keyword_corpus import KeywordCorpus, to_hit, validate_upsert
from docqa.utils.errors import InvalidInputError

logger = structlog.get_logger(logger_name=__name__)


def _normalize(vectors: np.ndarray) -> np.ndarray:
    norms = np.linalg.norm(vectors, axis=1, keepdims=True) + 1e-12
    return vectors / norms


@dataclass(frozen=True)
class _Snapshot:
    """One consistent generation of the index."""

    documents: dict[str, tuple[tuple[Chunk, ...], np.ndarray]] = field(default_factory=dict)
    chunks: tuple[Chunk, ...] = ()
    matrix: np.ndarray | None = None
    keywords: KeywordCorpus = field(default_factory=lambda: KeywordCorpus([]))

    @classmethod
    def build(cls, documents: dict[str, tuple[tuple[Chunk, ...], np.ndarray]]) -> _Snapshot:
        chunks: list[Chunk] = []
        blocks: list[np.ndarray] = []
        for doc_chunks, doc_matrix in documents.values():
            chunks.extend(doc_chunks)
            blocks.append(doc_matrix)
        matrix = np.vstack(blocks) if blocks else None
        return cls(
            documents=documents,
            chunks=tuple(chunks),
            matrix=matrix,
            keywords=KeywordCorpus(chunks),
        )


class InMemorySearchIndex(ISearchIndexProvider):
    """Dual-mode chunk index held entirely in memory."""

    def __init__(self) -> None:
        self._snapshot = _Snapshot()
        self._write_lock = asyncio.Lock()
        self._dimension: int | None = None

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
            matrix = _normalize(np.asarray(vectors, dtype=np.float32))

            documents = dict(self._snapshot.documents)
            documents[doc_id] = (tuple(chunks), matrix)
            self._snapshot = _Snapshot.build(documents)
            self._dimension = dimension

        logger.info(
            "memory_index_upsert",
            doc_id=doc_id,
            chunks=len(chunks),
            total_chunks=len(self._snapshot.chunks),
        )

    async def delete_document(self, doc_id: str) -> None:
        async with self._write_lock:
            if doc_id not in self._snapshot.documents:
                return
            documents = dict(self._snapshot.documents)
            removed = len(documents.pop(doc_id)[0])
            self._snapshot = _Snapshot.build(documents)

        logger.info("memory_index_delete", doc_id=doc_id, removed=removed)

    async def vector_query(self, vector: list[float], k: int) -> list[IndexHit]:
        snapshot = self._snapshot
        if k <= 0 or snapshot.matrix is None:
            return []
        if len(vector) != snapshot.matrix.shape[1]:
            raise InvalidInputError(
                message=(
                    f"Query vector dimension {len(vector)} does not match "
                    f"index dimension {snapshot.matrix.shape[1]}"
                ),
                provider_name=self.get_provider_name(),
            )

        query = _normalize(np.asarray([vector], dtype=np.float32))[0]
        cosine = snapshot.matrix @ query
        scores = np.clip((1.0 + cosine) / 2.0, 0.0, 1.0)
        top = np.argsort(-scores, kind="stable")[:k]
        return [to_hit(snapshot.chunks[i], float(scores[i])) for i in top]

    async def keyword_query(self, text: str, k: int) -> list[IndexHit]:
        return self._snapshot.keywords.query(text, k)

    async def count(self) -> int:
        return len(self._snapshot.chunks)

    def get_provider_name(self) -> str:
        return "memory"

    def is_available(self) -> bool:
        return True
