"""SQLite-backed document catalog with on-disk blob storage.

One row per uploaded document lives in ``data/catalog.db``; the original
file bytes are stored under ``data/blobs/<id>`` next to it.  Uses
``aiosqlite`` for async I/O.  Blob writes go through a temporary file and
an atomic rename so a crash never leaves a half-written blob behind a
catalog row.
"""

from __future__ import annotations

import asyncio
import mimetypes
import os
import uuid
from datetime import datetime, timezone
from pathlib import Path

import aiosqlite
import structlog

from docqa.interfaces.catalog_provider import ICatalogProvider
from docqa.models.catalog import DocumentRecord, DocumentStatus

logger = structlog.get_logger(logger_name=__name__)

_DEFAULT_DB_PATH = Path("data/catalog.db")
_DEFAULT_BLOB_DIR = Path("data/blobs")
_FALLBACK_MIME = "application/octet-stream"

_CREATE_TABLE_SQL = """\
CREATE TABLE IF NOT EXISTS documents (
    id               TEXT    PRIMARY KEY,
    title            TEXT    NOT NULL,
    mime             TEXT    NOT NULL,
    size_bytes       INTEGER NOT NULL,
    chunks           INTEGER NOT NULL DEFAULT 0,
    embed_model      TEXT    NOT NULL DEFAULT 'unknown',
    added_at         TEXT    NOT NULL,
    last_indexed_at  TEXT,
    blob_path        TEXT    NOT NULL,
    status           TEXT    NOT NULL
);
"""

_CREATE_INDICES_SQL = [
    "CREATE INDEX IF NOT EXISTS idx_documents_added ON documents(added_at);",
]

_INSERT_SQL = """\
INSERT INTO documents
    (id, title, mime, size_bytes, chunks, embed_model, added_at, last_indexed_at, blob_path, status)
VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?);
"""

_SELECT_COLUMNS = (
    "SELECT id, title, mime, size_bytes, chunks, embed_model, added_at, "
    "last_indexed_at, blob_path, status FROM documents"
)

_UPDATE_STATUS_SQL = "UPDATE documents SET status = ? WHERE id = ?;"

_UPDATE_CHUNKS_STATUS_SQL = "UPDATE documents SET chunks = ?, status = ? WHERE id = ?;"

_MARK_INDEXED_SQL = """\
UPDATE documents
SET chunks = ?, embed_model = ?, last_indexed_at = ?
WHERE id = ?;
"""

_DELETE_SQL = "DELETE FROM documents WHERE id = ?;"


def _now() -> str:
    return datetime.now(tz=timezone.utc).isoformat()  # noqa: UP017


def _write_blob(path: Path, content: bytes) -> None:
    tmp_path = path.with_name(f"{path.name}.tmp")
    tmp_path.write_bytes(content)
    os.replace(tmp_path, path)


class SQLiteCatalogProvider(ICatalogProvider):
    """SQLite catalog of uploaded documents and their stored files."""

    def __init__(
        self,
        db_path: str | Path = _DEFAULT_DB_PATH,
        blob_dir: str | Path = _DEFAULT_BLOB_DIR,
    ) -> None:
        self._db_path = Path(db_path)
        self._blob_dir = Path(blob_dir)

    async def initialize(self) -> None:
        """Create the documents table, indices and blob directory."""
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        self._blob_dir.mkdir(parents=True, exist_ok=True)
        async with aiosqlite.connect(str(self._db_path)) as db:
            await db.execute(_CREATE_TABLE_SQL)
            for idx_sql in _CREATE_INDICES_SQL:
                await db.execute(idx_sql)
            await db.commit()
        logger.info(
            "catalog_db_initialized",
            path=str(self._db_path),
            blob_dir=str(self._blob_dir),
        )

    async def save(
        self,
        file_name: str,
        mime: str | None,
        content: bytes,
        status: DocumentStatus,
    ) -> DocumentRecord:
        doc_id = uuid.uuid4().hex
        blob_path = self._blob_dir / doc_id
        resolved_mime = mime or mimetypes.guess_type(file_name)[0] or _FALLBACK_MIME

        await asyncio.to_thread(_write_blob, blob_path, content)

        record = DocumentRecord(
            id=doc_id,
            title=file_name,
            mime=resolved_mime,
            size_bytes=len(content),
            added_at=datetime.fromisoformat(_now()),
            blob_path=str(blob_path),
            status=status,
        )
        async with aiosqlite.connect(str(self._db_path)) as db:
            await db.execute(
                _INSERT_SQL,
                (
                    record.id,
                    record.title,
                    record.mime,
                    record.size_bytes,
                    record.chunks,
                    record.embed_model,
                    record.added_at.isoformat(),
                    None,
                    record.blob_path,
                    record.status.value,
                ),
            )
            await db.commit()

        logger.info(
            "document_saved",
            doc_id=doc_id,
            title=file_name,
            mime=resolved_mime,
            size_bytes=len(content),
        )
        return record

    async def find_by_id(self, doc_id: str) -> DocumentRecord | None:
        async with aiosqlite.connect(str(self._db_path)) as db:
            db.row_factory = aiosqlite.Row
            cursor = await db.execute(f"{_SELECT_COLUMNS} WHERE id = ?;", (doc_id,))
            row = await cursor.fetchone()
        return self._row_to_record(row) if row else None

    async def list_all(self) -> list[DocumentRecord]:
        async with aiosqlite.connect(str(self._db_path)) as db:
            db.row_factory = aiosqlite.Row
            cursor = await db.execute(f"{_SELECT_COLUMNS} ORDER BY added_at, rowid;")
            rows = await cursor.fetchall()
        return [self._row_to_record(r) for r in rows]

    async def update_status(self, doc_id: str, status: DocumentStatus) -> None:
        await self._execute(_UPDATE_STATUS_SQL, (status.value, doc_id))
        logger.debug("document_status_updated", doc_id=doc_id, status=status.value)

    async def update_chunks_and_status(
        self,
        doc_id: str,
        chunks: int,
        status: DocumentStatus,
    ) -> None:
        await self._execute(_UPDATE_CHUNKS_STATUS_SQL, (chunks, status.value, doc_id))
        logger.debug(
            "document_chunks_status_updated",
            doc_id=doc_id,
            chunks=chunks,
            status=status.value,
        )

    async def mark_indexed(self, doc_id: str, chunks: int, embed_model: str) -> None:
        await self._execute(_MARK_INDEXED_SQL, (chunks, embed_model, _now(), doc_id))
        logger.debug("document_marked_indexed", doc_id=doc_id, chunks=chunks)

    async def delete(self, doc_id: str) -> None:
        record = await self.find_by_id(doc_id)
        if record is None:
            return

        try:
            await asyncio.to_thread(Path(record.blob_path).unlink, missing_ok=True)
        except OSError as exc:
            logger.warning("blob_delete_failed", doc_id=doc_id, path=record.blob_path, error=str(exc))

        await self._execute(_DELETE_SQL, (doc_id,))
        logger.info("document_deleted_from_catalog", doc_id=doc_id)

    def get_provider_name(self) -> str:
        return "sqlite"

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    async def _execute(self, sql: str, params: tuple) -> None:
        async with aiosqlite.connect(str(self._db_path)) as db:
            await db.execute(sql, params)
            await db.commit()

    @staticmethod
    def _row_to_record(row: aiosqlite.Row) -> DocumentRecord:
        last_indexed = row["last_indexed_at"]
        return DocumentRecord(
            id=row["id"],
            title=row["title"],
            mime=row["mime"],
            size_bytes=row["size_bytes"],
            chunks=row["chunks"],
            embed_model=row["embed_model"],
            added_at=datetime.fromisoformat(row["added_at"]),
            last_indexed_at=datetime.fromisoformat(last_indexed) if last_indexed else None,
            blob_path=row["blob_path"],
            status=DocumentStatus(row["status"]),
        )
