"""Document ingestion: cleaning, chunking, extraction and the ingestion service."""

from docqa.services.ingestion.chunker import SentenceChunker
from docqa.services.ingestion.ingestion_service import IngestionService
from docqa.services.ingestion.text_cleaner import TextCleaner

__all__ = ["IngestionService", "SentenceChunker", "TextCleaner"]
