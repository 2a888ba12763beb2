"""Page-aware text extractors, one per supported input format."""

from docqa.services.ingestion.source_processors.pdf_processor import PDFTextExtractor
from docqa.services.ingestion.source_processors.text_processor import PlainTextExtractor

__all__ = ["PDFTextExtractor", "PlainTextExtractor"]
