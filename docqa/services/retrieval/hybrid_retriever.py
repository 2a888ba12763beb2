"""Hybrid lexical + semantic retrieval with weighted score fusion.

For a question and a result count ``k``:

1. embed the question and ask the index for ``2k`` nearest chunks;
2. ask the index for ``2k`` BM25 hits on the raw question text;
3. divide every score in each hit set by that set's maximum, multiply by
   the set's weight (0.6 vector, 0.4 keyword by default) and sum per chunk;
4. sort by fused score descending, ties by ``chunk_id`` ascending, and
   keep the top ``k``.

A chunk found by both queries can therefore score up to
``vector_weight + keyword_weight``.  A hit set whose maximum is not
positive contributes nothing.

Retrieval never raises: a failure is logged and yields ``[]``, which the
question pipeline treats as "no relevant information".
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import TYPE_CHECKING

import structlog

from docqa.interfaces.retrieval import IRetriever
from docqa.models.rag import IndexHit, SearchResult
from docqa.utils.errors import ConfigurationError

if TYPE_CHECKING:
    from docqa.interfaces.embedding_provider import IEmbeddingProvider
    from docqa.interfaces.search_index_provider import ISearchIndexProvider

logger = structlog.get_logger(logger_name=__name__)

DEFAULT_VECTOR_WEIGHT = 0.6
DEFAULT_KEYWORD_WEIGHT = 0.4


class HybridRetriever(IRetriever):
    """Fuses vector and keyword hits from one :class:`ISearchIndexProvider`.

    Parameters
    ----------
    embedding_provider:
        Embeds the question for the vector query.
    search_index:
        Index answering both query kinds.
    vector_weight, keyword_weight:
        Non-negative fusion weights.
    """

    def __init__(
        self,
        embedding_provider: IEmbeddingProvider,
        search_index: ISearchIndexProvider,
        vector_weight: float = DEFAULT_VECTOR_WEIGHT,
        keyword_weight: float = DEFAULT_KEYWORD_WEIGHT,
    ) -> None:
        if vector_weight < 0 or keyword_weight < 0:
            raise ConfigurationError("Fusion weights must be non-negative")
        self._embedding_provider = embedding_provider
        self._search_index = search_index
        self._vector_weight = vector_weight
        self._keyword_weight = keyword_weight

    async def search(self, query: str, k: int) -> list[SearchResult]:
        """Return the top *k* fused candidates for *query*, or ``[]`` on failure."""
        if k <= 0 or not query or not query.strip():
            return []

        try:
            vector = await self._embedding_provider.embed_single(query)
            vector_hits = await self._search_index.vector_query(vector, k * 2)
            keyword_hits = await self._search_index.keyword_query(query, k * 2)

            fused: dict[str, float] = {}
            hits_by_id: dict[str, IndexHit] = {}
            self._accumulate(vector_hits, self._vector_weight, fused, hits_by_id)
            self._accumulate(keyword_hits, self._keyword_weight, fused, hits_by_id)

            ranked = sorted(fused.items(), key=lambda item: (-item[1], item[0]))[:k]
            results = [
                SearchResult(
                    doc_id=hits_by_id[chunk_id].doc_id,
                    chunk_id=chunk_id,
                    text=hits_by_id[chunk_id].text,
                    from_page=hits_by_id[chunk_id].from_page,
                    to_page=hits_by_id[chunk_id].to_page,
                    score=score,
                )
                for chunk_id, score in ranked
            ]
        except Exception as exc:
            logger.error("hybrid_retrieval_failed", query_chars=len(query), error=str(exc))
            return []

        logger.info(
            "hybrid_retrieval_complete",
            vector_hits=len(vector_hits),
            keyword_hits=len(keyword_hits),
            results=len(results),
        )
        return results

    @staticmethod
    def _accumulate(
        hits: Sequence[IndexHit],
        weight: float,
        fused: dict[str, float],
        hits_by_id: dict[str, IndexHit],
    ) -> None:
        """Add ``weight * score / max_score`` for every hit into *fused*."""
        if not hits:
            return
        max_score = max(hit.score for hit in hits)
        if max_score <= 0:
            return
        for hit in hits:
            fused[hit.chunk_id] = fused.get(hit.chunk_id, 0.0) + weight * (hit.score / max_score)
            hits_by_id.setdefault(hit.chunk_id, hit)
