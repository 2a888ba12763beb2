"""Ingestion progress tracking with callback-based listener notification.

Counts embedded chunks across the documents waiting on the ingestion worker
and reports two percentages: overall progress and progress of the document
currently being embedded.

Data flow:
    1. ``submit_document`` calls :meth:`add_document` with the chunk count
       known after chunking.
    2. The ingestion worker calls :meth:`step` once per embedded chunk.
    3. The tracker recomputes the snapshot and hands it to the listener
       (a UI progress bar, a log line, a test spy).

Documents are consumed in the order they were added, matching the FIFO
ingestion worker.  Counters are guarded by a ``threading.Lock`` so that
steps reported from worker threads and reads from the event loop see a
consistent snapshot.
"""

from __future__ import annotations

import threading
from collections import deque
from collections.abc import Callable

import structlog

from docqa.models.pipeline import ProgressStatus
from docqa.utils.logging import get_logger

ProgressListener = Callable[[ProgressStatus], None]


class DocumentProgressTracker:
    """Per-chunk ingestion progress across a FIFO of documents.

    Parameters
    ----------
    listener:
        Optional callable invoked with a fresh :class:`ProgressStatus`
        after every effective step.
    """

    def __init__(self, listener: ProgressListener | None = None) -> None:
        self._lock = threading.Lock()
        self._pending: deque[int] = deque()
        self._total_chunks = 0
        self._processed_chunks = 0
        self._current_chunks = 0
        self._current_processed = 0
        self._listener = listener
        self._logger: structlog.BoundLogger = get_logger(__name__)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def add_document(self, chunk_count: int) -> None:
        """Queue a document with *chunk_count* chunks still to embed."""
        if chunk_count < 0:
            raise ValueError("chunk_count must be >= 0")
        with self._lock:
            self._pending.append(chunk_count)
            self._total_chunks += chunk_count
            if self._current_chunks == 0:
                self._start_next_document()

        self._logger.debug("progress_document_added", chunks=chunk_count)

    def step(self, count: int = 1) -> None:
        """Record *count* embedded chunks of the current document.

        A step with no document in progress is ignored.  When the current
        document's last chunk is recorded the next queued document becomes
        current.
        """
        stepped = False
        with self._lock:
            for _ in range(count):
                if self._current_chunks == 0:
                    break
                self._processed_chunks += 1
                self._current_processed += 1
                stepped = True
                if self._current_processed >= self._current_chunks:
                    self._start_next_document()
            snapshot = self._snapshot()
            listener = self._listener

        if stepped and listener is not None:
            self._notify_listener(listener, snapshot)

    def status(self) -> ProgressStatus:
        """Return the current overall and per-document percentages."""
        with self._lock:
            return self._snapshot()

    def set_listener(self, listener: ProgressListener | None) -> None:
        """Replace the progress listener; ``None`` disables notification."""
        with self._lock:
            self._listener = listener

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    def _start_next_document(self) -> None:
        # Empty documents have nothing to step through, so skip past them.
        self._current_chunks = 0
        self._current_processed = 0
        while self._pending and self._current_chunks == 0:
            self._current_chunks = self._pending.popleft()

    def _snapshot(self) -> ProgressStatus:
        if self._total_chunks == 0:
            total_percent = 0
        else:
            total_percent = self._processed_chunks * 100 // self._total_chunks

        if self._current_chunks == 0:
            document_percent = 100
        else:
            document_percent = self._current_processed * 100 // self._current_chunks

        return ProgressStatus(
            total_percent=min(total_percent, 100),
            document_percent=min(document_percent, 100),
        )

    def _notify_listener(self, listener: ProgressListener, snapshot: ProgressStatus) -> None:
        """Invoke the listener; a failing listener never stalls ingestion."""
        try:
            listener(snapshot)
        except Exception as exc:
            self._logger.warning(
                "progress_listener_error",
                error=str(exc),
                callback=getattr(listener, "__name__", repr(listener)),
            )
