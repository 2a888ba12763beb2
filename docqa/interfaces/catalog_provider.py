"""Abstract base class for the document catalog and its blob storage.

The catalog keeps one metadata record per uploaded document and owns the
stored original file.  Citation resolution reads titles from it; the
ingestion pipeline writes status, chunk counts and indexing timestamps.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from docqa.models.catalog import DocumentRecord, DocumentStatus


# Concrete implementation: SQLiteCatalogProvider (aiosqlite + blob directory)
# Located in: docqa/providers/catalog/
class ICatalogProvider(ABC):
    """Contract for catalog persistence."""

    @abstractmethod
    async def initialize(self) -> None:
        """Create tables and storage directories if they do not exist."""

    @abstractmethod
    async def save(
        self,
        file_name: str,
        mime: str | None,
        content: bytes,
        status: DocumentStatus,
    ) -> DocumentRecord:
        """Store *content* as a new blob and insert its catalog record.

        Parameters
        ----------
        file_name:
            Original file name; becomes the record title.
        mime:
            Declared MIME type, or ``None`` to guess from *file_name*.
        content:
            Raw file bytes.
        status:
            Initial status, normally ``QUEUED``.

        Returns
        -------
        DocumentRecord
            The inserted record with a freshly generated id.
        """

    @abstractmethod
    async def find_by_id(self, doc_id: str) -> DocumentRecord | None:
        """Return the record for *doc_id*, or ``None``."""

    @abstractmethod
    async def list_all(self) -> list[DocumentRecord]:
        """Return every record, oldest first."""

    @abstractmethod
    async def update_status(self, doc_id: str, status: DocumentStatus) -> None:
        """Set the status of *doc_id*."""

    @abstractmethod
    async def update_chunks_and_status(
        self,
        doc_id: str,
        chunks: int,
        status: DocumentStatus,
    ) -> None:
        """Set the chunk count and status of *doc_id* in one write."""

    @abstractmethod
    async def mark_indexed(self, doc_id: str, chunks: int, embed_model: str) -> None:
        """Record a finished indexing run: chunk count, model, timestamp."""

    @abstractmethod
    async def delete(self, doc_id: str) -> None:
        """Delete the blob and the record.  Unknown ids are a no-op."""

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return a short identifier such as ``"sqlite"``."""
