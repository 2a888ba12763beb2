"""Single-consumer job queues that serialize pipeline work.

The embedding, reranking and answer runtimes are compute-bound and are not
safe to call concurrently, so each pipeline owns exactly one
:class:`SerialTaskQueue`.  The queue has one consumer task: jobs run one at
a time, strictly in submission order, and submission never blocks.

Do not add consumers to speed things up.  The single consumer is the only
thing keeping two inference calls from sharing a runtime.
"""

from __future__ import annotations

import asyncio
import contextlib
from typing import Any, Awaitable, Callable, TypeVar

import structlog

from docqa.utils.logging import get_logger

_T = TypeVar("_T")

_Job = Callable[[], Awaitable[Any]]


class SerialTaskQueue:
    """FIFO, unbounded job queue drained by exactly one asyncio task.

    Parameters
    ----------
    name:
        Label used in log events (e.g. ``"ingestion"``, ``"questions"``).
    """

    def __init__(self, name: str) -> None:
        self._name = name
        self._queue: asyncio.Queue[tuple[_Job, asyncio.Future[Any]]] = asyncio.Queue()
        self._consumer: asyncio.Task[None] | None = None
        self._logger: structlog.BoundLogger = get_logger(__name__)

    @property
    def name(self) -> str:
        return self._name

    @property
    def pending(self) -> int:
        """Number of jobs waiting to run (excludes the one in flight)."""
        return self._queue.qsize()

    @property
    def is_running(self) -> bool:
        return self._consumer is not None and not self._consumer.done()

    def start(self) -> None:
        """Spawn the consumer task.  Must be called from a running event loop."""
        if self.is_running:
            return
        self._consumer = asyncio.get_running_loop().create_task(
            self._consume(), name=f"serial-queue-{self._name}"
        )
        self._logger.info("serial_queue_started", queue=self._name)

    def submit(self, job: Callable[[], Awaitable[_T]]) -> asyncio.Future[_T]:
        """Enqueue *job* and return a future for its result without waiting.

        The returned future resolves with the job's return value or carries
        the exception the job raised.
        """
        future: asyncio.Future[_T] = asyncio.get_running_loop().create_future()
        self._queue.put_nowait((job, future))
        self._logger.debug("serial_queue_submitted", queue=self._name, pending=self.pending)
        return future

    async def join(self) -> None:
        """Wait until every job submitted so far has finished."""
        await self._queue.join()

    async def stop(self) -> None:
        """Cancel the consumer.  Jobs still waiting in the queue are dropped."""
        if self._consumer is None:
            return
        self._consumer.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await self._consumer
        self._consumer = None
        self._logger.info("serial_queue_stopped", queue=self._name, dropped=self.pending)

    async def _consume(self) -> None:
        while True:
            job, future = await self._queue.get()
            try:
                if future.cancelled():
                    continue
                try:
                    result = await job()
                except asyncio.CancelledError:
                    future.cancel()
                    raise
                except Exception as exc:
                    self._logger.error(
                        "serial_queue_job_failed",
                        queue=self._name,
                        error=str(exc),
                    )
                    future.set_exception(exc)
                else:
                    future.set_result(result)
            finally:
                self._queue.task_done()
