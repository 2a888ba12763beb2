"""Pydantic v2 data models for docqa.

Re-exports the models from ``rag``, ``citation``, ``pipeline`` and
``catalog`` so callers can write ``from docqa.models import Chunk``.
"""

from docqa.models.catalog import DocumentRecord, DocumentStatus
from docqa.models.citation import Citation, PageInterval
from docqa.models.pipeline import ProgressStatus, QuestionJob, QuestionStatus
from docqa.models.rag import (
    Chunk,
    CleaningResult,
    ExtractedText,
    IndexHit,
    IngestionResult,
    RerankResult,
    SearchResult,
)

__all__ = [
    "Chunk",
    "Citation",
    "CleaningResult",
    "DocumentRecord",
    "DocumentStatus",
    "ExtractedText",
    "IndexHit",
    "IngestionResult",
    "PageInterval",
    "ProgressStatus",
    "QuestionJob",
    "QuestionStatus",
    "RerankResult",
    "SearchResult",
]
