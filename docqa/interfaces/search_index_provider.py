"""Abstract base class for the chunk search index.

The index stores one entry per chunk (doc_id, chunk_id, text, page range,
vector) and answers two kinds of query: nearest-neighbour over vectors and
BM25 over text.  It is shared by the ingestion and question pipelines, so
implementations must allow reads while a single writer mutates, and a
completed write must be visible to the next query without any explicit
reopen by the caller.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from docqa.models.rag import Chunk, IndexHit


# Concrete implementations:
#   InMemorySearchIndex  - numpy cosine + rank-bm25, snapshot swap on write
#   ChromaDBSearchIndex  - chromadb (cosine HNSW) + rank-bm25 keyword side
# Located in: docqa/providers/search_index/
class ISearchIndexProvider(ABC):
    """Contract for dual-mode (vector + keyword) chunk search."""

    @abstractmethod
    async def upsert_document(
        self,
        doc_id: str,
        chunks: list[Chunk],
        vectors: list[list[float]],
    ) -> None:
        """Replace every stored chunk of *doc_id* with *chunks*.

        The replacement is all-or-nothing: readers see either the old chunk
        set or the new one, never a mix.

        Parameters
        ----------
        doc_id:
            Owning document id; must be non-blank.
        chunks:
            Chunks to store, non-empty.
        vectors:
            One vector per chunk, positionally aligned with *chunks*.

        Raises
        ------
        docqa.utils.errors.InvalidInputError
            If *doc_id* is blank, either list is empty, the lists differ in
            length, or a vector's dimension differs from the index dimension.
        docqa.utils.errors.RAGError
            If the underlying store fails.
        """

    @abstractmethod
    async def delete_document(self, doc_id: str) -> None:
        """Remove every chunk of *doc_id*.  Unknown ids are a no-op."""

    @abstractmethod
    async def vector_query(self, vector: list[float], k: int) -> list[IndexHit]:
        """Return up to *k* chunks nearest to *vector*, best first.

        Scores are ``(1 + cosine) / 2`` so they lie in ``[0, 1]``.
        """

    @abstractmethod
    async def keyword_query(self, text: str, k: int) -> list[IndexHit]:
        """Return up to *k* chunks ranked by BM25 against *text*, best first.

        Only hits with a positive BM25 score are returned.
        """

    @abstractmethod
    async def count(self) -> int:
        """Return the number of stored chunks."""

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return a short identifier such as ``"memory"`` or ``"chromadb"``."""

    @abstractmethod
    def is_available(self) -> bool:
        """Return ``True`` if the index backend is usable."""
