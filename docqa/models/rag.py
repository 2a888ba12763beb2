"""RAG pipeline data models for docqa.

Pydantic v2 models for the values that flow through ingestion and
retrieval: cleaned text with its page map, chunks, index hits, fused
search results and reranked results.  All models are frozen.

Page numbers are 1-based.  ``-1`` means "no page information", which is
what chunks produced without a page map carry.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, model_validator


# ---------------------------------------------------------------------------
# Ingestion-side values
# ---------------------------------------------------------------------------
class ExtractedText(BaseModel):
    """Raw text pulled out of a stored document plus its per-character page map."""

    model_config = ConfigDict(frozen=True)

    raw_text: str = Field(description="Text exactly as extracted, before cleaning.")
    page_map: list[int] = Field(
        default_factory=list,
        description="1-based page number for every character of raw_text.",
    )

    @model_validator(mode="after")
    def _check_lengths(self) -> ExtractedText:
        if len(self.raw_text) != len(self.page_map):
            raise ValueError("page_map length must equal raw_text length")
        return self


class CleaningResult(BaseModel):
    """Output of :meth:`TextCleaner.clean_with_page_map`.

    ``page_map`` is either empty (no map was supplied) or exactly as long
    as ``clean_text``.
    """

    model_config = ConfigDict(frozen=True)

    clean_text: str
    page_map: list[int] = Field(default_factory=list)


class Chunk(BaseModel):
    """A bounded span of one document's cleaned text, the atomic retrieval unit.

    ``chunk_id`` encodes ``{doc_id}_{sequence:05d}`` and, when page info is
    known, a ``_p{page_start}-{page_end}`` suffix.
    """

    model_config = ConfigDict(frozen=True)

    doc_id: str = Field(description="Catalog id of the parent document.")
    chunk_id: str = Field(description="Stable chunk identifier.")
    text: str = Field(description="Materialized chunk text, overlap prefix included.")
    page_start: int = Field(default=-1, description="First page covered, or -1.")
    page_end: int = Field(default=-1, description="Last page covered, or -1.")


class IngestionResult(BaseModel):
    """Summary of one (re)index run for a single document."""

    model_config = ConfigDict(frozen=True)

    doc_id: str
    chunks: int = Field(ge=0)
    embed_model: str
    ingest_time_seconds: float = Field(default=0.0, ge=0.0)


# ---------------------------------------------------------------------------
# Retrieval-side values
# ---------------------------------------------------------------------------
class IndexHit(BaseModel):
    """One stored chunk returned by a keyword or vector index query.

    ``score`` is backend-specific: BM25 for keyword queries, ``(1 + cos) / 2``
    for vector queries.  Both are non-negative.
    """

    model_config = ConfigDict(frozen=True)

    doc_id: str
    chunk_id: str
    text: str
    from_page: int = -1
    to_page: int = -1
    score: float = 0.0


class SearchResult(BaseModel):
    """A retrieval candidate carrying the fused hybrid score."""

    model_config = ConfigDict(frozen=True)

    doc_id: str
    chunk_id: str
    text: str
    from_page: int = -1
    to_page: int = -1
    score: float = Field(description="Weighted sum of max-normalized vector and keyword scores.")


class RerankResult(BaseModel):
    """A candidate rescored by the cross-encoder; higher is more relevant.

    The score is an unbounded logit, so negative values are normal and mean
    "probably not relevant".
    """

    model_config = ConfigDict(frozen=True)

    doc_id: str
    chunk_id: str
    text: str
    from_page: int = -1
    to_page: int = -1
    score: float

    @classmethod
    def from_search_result(cls, result: SearchResult, score: float) -> RerankResult:
        return cls(
            doc_id=result.doc_id,
            chunk_id=result.chunk_id,
            text=result.text,
            from_page=result.from_page,
            to_page=result.to_page,
            score=score,
        )
