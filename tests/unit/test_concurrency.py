"""Unit tests for SerialTaskQueue: FIFO order, one job at a time, error isolation."""

from __future__ import annotations

import asyncio

import pytest

from docqa.utils.concurrency import SerialTaskQueue


class TestSerialTaskQueue:
    @pytest.mark.asyncio
    async def test_jobs_run_in_submission_order(self) -> None:
        queue = SerialTaskQueue("test")
        queue.start()
        order: list[int] = []

        def _job(n: int):
            async def _run() -> int:
                await asyncio.sleep(0.01 * (3 - n))
                order.append(n)
                return n

            return _run

        futures = [queue.submit(_job(n)) for n in range(3)]
        results = await asyncio.gather(*futures)

        assert order == [0, 1, 2]
        assert results == [0, 1, 2]
        await queue.stop()

    @pytest.mark.asyncio
    async def test_never_more_than_one_job_in_flight(self) -> None:
        queue = SerialTaskQueue("test")
        queue.start()
        in_flight = 0
        peak = 0

        async def _job() -> None:
            nonlocal in_flight, peak
            in_flight += 1
            peak = max(peak, in_flight)
            await asyncio.sleep(0.005)
            in_flight -= 1

        for _ in range(5):
            queue.submit(_job)
        await queue.join()

        assert peak == 1
        await queue.stop()

    @pytest.mark.asyncio
    async def test_submit_does_not_wait(self) -> None:
        queue = SerialTaskQueue("test")
        queue.start()
        release = asyncio.Event()

        async def _blocked() -> str:
            await release.wait()
            return "done"

        future = queue.submit(_blocked)
        await asyncio.sleep(0)
        assert not future.done()

        release.set()
        assert await future == "done"
        await queue.stop()

    @pytest.mark.asyncio
    async def test_failed_job_does_not_stop_the_consumer(self) -> None:
        queue = SerialTaskQueue("test")
        queue.start()

        async def _fail() -> None:
            raise RuntimeError("boom")

        async def _ok() -> str:
            return "ok"

        failing = queue.submit(_fail)
        succeeding = queue.submit(_ok)

        with pytest.raises(RuntimeError, match="boom"):
            await failing
        assert await succeeding == "ok"
        assert queue.is_running
        await queue.stop()

    @pytest.mark.asyncio
    async def test_jobs_wait_until_started(self) -> None:
        queue = SerialTaskQueue("test")
        ran: list[str] = []

        async def _job() -> None:
            ran.append("x")

        future = queue.submit(_job)
        await asyncio.sleep(0.01)
        assert ran == []
        assert queue.pending == 1

        queue.start()
        await future
        assert ran == ["x"]
        await queue.stop()

    @pytest.mark.asyncio
    async def test_start_is_idempotent_and_stop_resets(self) -> None:
        queue = SerialTaskQueue("test")
        assert queue.name == "test"
        assert not queue.is_running

        queue.start()
        queue.start()
        assert queue.is_running

        await queue.stop()
        assert not queue.is_running
        await queue.stop()
