"""Shared pieces of the search-index backends.

Both backends keep their keyword side in a :class:`KeywordCorpus`, a BM25
index (``rank_bm25.BM25Okapi``) over the chunk texts that is rebuilt after
every write.  :func:`validate_upsert` holds the argument checks that every
``upsert_document`` implementation applies before touching storage.
"""

from __future__ import annotations

import re
from collections.abc import Sequence

from rank_bm25 import BM25Okapi

from docqa.models.rag import Chunk, IndexHit
from docqa.utils.errors import InvalidInputError

_TOKEN = re.compile(r"\w+", re.UNICODE)


def tokenize(text: str) -> list[str]:
    """Lower-cased word tokens used on both the corpus and the query side."""
    return _TOKEN.findall(text.lower())


def to_hit(chunk: Chunk, score: float) -> IndexHit:
    return IndexHit(
        doc_id=chunk.doc_id,
        chunk_id=chunk.chunk_id,
        text=chunk.text,
        from_page=chunk.page_start,
        to_page=chunk.page_end,
        score=score,
    )


def validate_upsert(
    doc_id: str,
    chunks: Sequence[Chunk],
    vectors: Sequence[Sequence[float]],
    dimension: int | None,
    provider_name: str,
) -> int:
    """Check an upsert request and return the vector dimension it uses.

    Raises
    ------
    InvalidInputError
        On a blank *doc_id*, empty or misaligned lists, chunks owned by
        another document, or vectors whose dimension differs from each
        other or from the index's established *dimension*.
    """
    if not doc_id or not doc_id.strip():
        raise InvalidInputError(message="doc_id must not be blank", provider_name=provider_name)
    if not chunks or not vectors:
        raise InvalidInputError(
            message="chunks and vectors must not be empty", provider_name=provider_name
        )
    if len(chunks) != len(vectors):
        raise InvalidInputError(
            message=f"chunks and vectors length mismatch: {len(chunks)} != {len(vectors)}",
            provider_name=provider_name,
        )
    for chunk in chunks:
        if chunk.doc_id != doc_id:
            raise InvalidInputError(
                message=f"Chunk {chunk.chunk_id} belongs to {chunk.doc_id}, not {doc_id}",
                provider_name=provider_name,
            )

    expected = dimension if dimension is not None else len(vectors[0])
    if expected == 0:
        raise InvalidInputError(message="vectors must not be empty", provider_name=provider_name)
    for vector in vectors:
        if len(vector) != expected:
            raise InvalidInputError(
                message=f"Vector dimension {len(vector)} does not match index dimension {expected}",
                provider_name=provider_name,
            )
    return expected


class KeywordCorpus:
    """Immutable BM25 view over a list of chunks.

    Chunks whose text yields no tokens are kept out of the BM25 model
    because ``BM25Okapi`` cannot score empty documents.
    """

    def __init__(self, chunks: Sequence[Chunk]) -> None:
        tokenized = [(chunk, tokenize(chunk.text)) for chunk in chunks]
        kept = [(chunk, tokens) for chunk, tokens in tokenized if tokens]
        self._chunks: list[Chunk] = [chunk for chunk, _ in kept]
        self._bm25 = BM25Okapi([tokens for _, tokens in kept]) if kept else None

    def __len__(self) -> int:
        return len(self._chunks)

    def query(self, text: str, k: int) -> list[IndexHit]:
        """Return up to *k* positively scored hits, best first."""
        if self._bm25 is None or k <= 0:
            return []
        tokens = tokenize(text)
        if not tokens:
            return []

        scores = self._bm25.get_scores(tokens)
        ranked = sorted(range(len(scores)), key=lambda i: (-scores[i], self._chunks[i].chunk_id))

        hits: list[IndexHit] = []
        for idx in ranked:
            score = float(scores[idx])
            if score <= 0.0:
                break
            hits.append(to_hit(self._chunks[idx], score))
            if len(hits) >= k:
                break
        return hits
