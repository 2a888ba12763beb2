"""Catalog record model: one row per uploaded document."""

from __future__ import annotations

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class DocumentStatus(str, Enum):  # noqa: UP042
    """Indexing status of a catalog document.

    Documents whose ingestion fails are deleted, so there is no failed state.
    """

    QUEUED = "QUEUED"
    PROCESSING = "PROCESSING"
    INDEXED = "INDEXED"


class DocumentRecord(BaseModel):
    """Catalog metadata for a stored document."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(description="32-character hex id, also the index doc_id.")
    title: str = Field(description="Display title; the original file name.")
    mime: str = "application/octet-stream"
    size_bytes: int = Field(default=0, ge=0)
    chunks: int = Field(default=0, ge=0)
    embed_model: str = "unknown"
    added_at: datetime
    last_indexed_at: datetime | None = None
    blob_path: str = Field(description="Path of the stored original file.")
    status: DocumentStatus = DocumentStatus.QUEUED
