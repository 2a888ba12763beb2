"""Job state models for the question-answering pipeline.

QuestionJob is frozen; the registry advances a job by storing a new copy
made with ``model_copy(update={...})``, so a snapshot handed to a polling
caller never changes underneath it.

State machine::

    QUEUED -> RETRIEVING -> RERANKING -> ANSWERING -> COMPLETED
       \\-> FAILED   (from any non-terminal state)
"""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class QuestionStatus(str, Enum):  # noqa: UP042
    """Lifecycle of a submitted question."""

    QUEUED = "QUEUED"          # Accepted, waiting for the question worker
    RETRIEVING = "RETRIEVING"  # Hybrid retrieval running
    RERANKING = "RERANKING"    # Cross-encoder rescoring running
    ANSWERING = "ANSWERING"    # Answer generator running
    COMPLETED = "COMPLETED"    # Answer (or "no relevant information") stored
    FAILED = "FAILED"          # Error message stored as the answer

    @property
    def is_terminal(self) -> bool:
        return self in (QuestionStatus.COMPLETED, QuestionStatus.FAILED)

    @property
    def rank(self) -> int:
        """Position in the happy-path sequence; FAILED ranks above everything."""
        return _STATUS_ORDER.index(self)


_STATUS_ORDER: list[QuestionStatus] = [
    QuestionStatus.QUEUED,
    QuestionStatus.RETRIEVING,
    QuestionStatus.RERANKING,
    QuestionStatus.ANSWERING,
    QuestionStatus.COMPLETED,
    QuestionStatus.FAILED,
]


class QuestionJob(BaseModel):
    """Read-only snapshot of one question job.

    ``answer`` is ``None`` until the job reaches a terminal status.
    """

    model_config = ConfigDict(frozen=True)

    id: int = Field(ge=1, description="Monotonically increasing job id, starting at 1.")
    query: str
    status: QuestionStatus = QuestionStatus.QUEUED
    answer: str | None = None
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(tz=timezone.utc)  # noqa: UP017
    )


class ProgressStatus(BaseModel):
    """Ingestion progress derived from the tracker's counters."""

    model_config = ConfigDict(frozen=True)

    total_percent: int = Field(ge=0, le=100)
    document_percent: int = Field(ge=0, le=100)
