"""In-memory registry of question jobs.

Ids are handed out from 1 in submission order.  Each job is stored as a
frozen :class:`QuestionJob`; advancing a job replaces it with a
``model_copy``, so pollers always receive an immutable snapshot.
"""

from __future__ import annotations

import itertools
import threading

import structlog

from docqa.models.pipeline import QuestionJob, QuestionStatus
from docqa.utils.errors import InvalidInputError
from docqa.utils.logging import get_logger


class QuestionRegistry:
    """Creates, stores and advances :class:`QuestionJob` snapshots.

    Status only moves forward along
    ``QUEUED -> RETRIEVING -> RERANKING -> ANSWERING -> COMPLETED``;
    ``FAILED`` may be entered from any non-terminal status, and no status
    may be left once terminal.
    """

    def __init__(self) -> None:
        self._ids = itertools.count(1)
        self._jobs: dict[int, QuestionJob] = {}
        self._lock = threading.Lock()
        self._logger: structlog.BoundLogger = get_logger(__name__)

    def create_job(self, query: str) -> QuestionJob:
        """Register *query* and return its ``QUEUED`` snapshot."""
        with self._lock:
            job = QuestionJob(id=next(self._ids), query=query)
            self._jobs[job.id] = job
        self._logger.debug("question_job_created", job_id=job.id)
        return job

    def get_job(self, job_id: int) -> QuestionJob | None:
        with self._lock:
            return self._jobs.get(job_id)

    def list_jobs(self) -> list[QuestionJob]:
        """Return every job in id order."""
        with self._lock:
            return [self._jobs[job_id] for job_id in sorted(self._jobs)]

    def update_status(
        self,
        job_id: int,
        status: QuestionStatus,
        answer: str | None = None,
    ) -> QuestionJob:
        """Move job *job_id* to *status*, storing *answer* when given.

        Raises
        ------
        InvalidInputError
            If the job does not exist or the transition would move the job
            backwards or out of a terminal status.
        """
        with self._lock:
            current = self._jobs.get(job_id)
            if current is None:
                raise InvalidInputError(message=f"Unknown question job: {job_id}")

            if current.status.is_terminal:
                raise InvalidInputError(
                    message=(
                        f"Question job {job_id} is already {current.status.value}; "
                        f"cannot move to {status.value}"
                    )
                )
            if status.rank < current.status.rank:
                raise InvalidInputError(
                    message=(
                        f"Question job {job_id} cannot move back from "
                        f"{current.status.value} to {status.value}"
                    )
                )

            update: dict[str, object] = {"status": status}
            if answer is not None:
                update["answer"] = answer
            job = current.model_copy(update=update)
            self._jobs[job_id] = job

        self._logger.debug("question_job_status", job_id=job_id, status=status.value)
        return job
