"""Abstract base class for page-aware text extractors.

An extractor turns a stored file into raw text plus a map giving the
1-based page number of every character.  Both are produced together, so
``len(page_map) == len(raw_text)`` always holds.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from docqa.models.rag import ExtractedText


# Concrete implementations: PDFTextExtractor, PlainTextExtractor
# Located in: docqa/services/ingestion/source_processors/
class ITextExtractor(ABC):
    """Contract for converting a stored file into page-mapped text."""

    @abstractmethod
    def supports(self, mime: str) -> bool:
        """Return ``True`` if this extractor can read files of type *mime*."""

    @abstractmethod
    def extract(self, file_path: str) -> ExtractedText:
        """Read *file_path* and return its text with the per-character page map.

        Synchronous and potentially slow; callers run it in a worker thread.

        Raises
        ------
        docqa.utils.errors.ExtractionError
            If the file is missing or cannot be parsed.
        """

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return a short identifier such as ``"pymupdf"``."""
