"""Page-aware text extraction for PDF files.

Reads a PDF with PyMuPDF (fitz) page by page, NFC-normalises each page's
text and concatenates the pages into one string so that sentences can run
across page breaks.  A parallel page map records the 1-based page number of
every character, which the cleaner and chunker later turn into page ranges
for citations.
"""

from __future__ import annotations

import unicodedata
from pathlib import Path

import fitz  # PyMuPDF -- the "fitz" import name is a PyMuPDF convention
import structlog

from docqa.interfaces.text_extractor import ITextExtractor
from docqa.models.rag import ExtractedText
from docqa.utils.errors import ExtractionError

logger = structlog.get_logger(logger_name=__name__)

_PDF_MIME_TYPES = frozenset({"application/pdf", "application/x-pdf"})


class PDFTextExtractor(ITextExtractor):
    """Extracts page-mapped text from PDF files."""

    def supports(self, mime: str) -> bool:
        return mime.lower() in _PDF_MIME_TYPES

    def extract(self, file_path: str) -> ExtractedText:
        """Return the document's text and per-character page map.

        Raises
        ------
        ExtractionError
            If the file does not exist or PyMuPDF cannot read it.
        """
        path = Path(file_path)
        if not path.is_file():
            raise ExtractionError(
                message=f"PDF file not found: {file_path}",
                provider_name=self.get_provider_name(),
            )

        parts: list[str] = []
        page_map: list[int] = []
        try:
            with fitz.open(str(path)) as doc:
                for page_index, page in enumerate(doc):
                    page_number = page_index + 1
                    text = unicodedata.normalize("NFC", page.get_text("text") or "")
                    # Keep words on adjacent pages apart; the separator counts
                    # toward the page it ends.
                    if text and not text[-1].isspace():
                        text += "\n"
                    parts.append(text)
                    page_map.extend([page_number] * len(text))
                page_count = len(doc)
        except Exception as exc:
            raise ExtractionError(
                message=f"Failed to extract text from PDF {path.name}: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

        raw_text = "".join(parts)
        logger.info(
            "pdf_text_extracted",
            file=path.name,
            pages=page_count,
            chars=len(raw_text),
        )
        return ExtractedText(raw_text=raw_text, page_map=page_map)

    def get_provider_name(self) -> str:
        return "pymupdf"
