"""Plain-text extraction with form-feed page breaks.

Text files have no real pages.  A form feed (``\\f``) is treated as a page
break, which is what ``pdftotext`` and most print-oriented exports emit;
a file without form feeds is a single page 1.
"""

from __future__ import annotations

import unicodedata
from pathlib import Path

import structlog

from docqa.interfaces.text_extractor import ITextExtractor
from docqa.models.rag import ExtractedText
from docqa.utils.errors import ExtractionError

logger = structlog.get_logger(logger_name=__name__)

_PAGE_BREAK = "\f"


class PlainTextExtractor(ITextExtractor):
    """Reads UTF-8 text (and markdown) files."""

    def supports(self, mime: str) -> bool:
        return mime.lower().startswith("text/")

    def extract(self, file_path: str) -> ExtractedText:
        path = Path(file_path)
        try:
            content = path.read_text(encoding="utf-8", errors="replace")
        except OSError as exc:
            raise ExtractionError(
                message=f"Failed to read text file {path.name}: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc
        return self.extract_from_string(content)

    @staticmethod
    def extract_from_string(content: str) -> ExtractedText:
        """Build the page map for already-loaded text."""
        text = unicodedata.normalize("NFC", content)
        page_map: list[int] = []
        page = 1
        for char in text:
            page_map.append(page)
            # The form feed itself belongs to the page it closes.
            if char == _PAGE_BREAK:
                page += 1
        logger.debug("text_extracted", chars=len(text), pages=page)
        return ExtractedText(raw_text=text, page_map=page_map)

    def get_provider_name(self) -> str:
        return "plaintext"
