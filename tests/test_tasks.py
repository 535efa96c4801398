"""Tests for the background task pool."""

import asyncio

import pytest

from shortlink.tasks import BackgroundTaskPool


@pytest.mark.asyncio
class TestBackgroundTaskPool:
    """Test bounded fire-and-forget execution."""

    async def test_runs_jobs(self, task_pool):
        results = []

        async def record(value):
            results.append(value)

        for i in range(10):
            assert task_pool.submit(record, i)
        await task_pool.drain()

        assert sorted(results) == list(range(10))

    async def test_failures_are_counted(self, task_pool):
        """A failing job does not stop the workers."""
        results = []

        async def boom():
            raise RuntimeError("boom")

        async def record(value):
            results.append(value)

        task_pool.submit(boom, description="boom")
        task_pool.submit(record, "after")
        await task_pool.drain()

        assert task_pool.failed == 1
        assert results == ["after"]

    async def test_full_queue_drops(self, logger):
        pool = BackgroundTaskPool(workers=1, max_pending=1, logger=logger)
        release = asyncio.Event()

        async def wait():
            await release.wait()

        assert pool.submit(wait) is True
        assert pool.submit(wait) is False
        assert pool.dropped == 1

        release.set()
        await pool.close()

    async def test_close_finishes_pending(self, logger):
        pool = BackgroundTaskPool(workers=2, logger=logger)
        done = []

        async def slow(i):
            await asyncio.sleep(0.01)
            done.append(i)

        for i in range(5):
            pool.submit(slow, i)
        await pool.close()

        assert len(done) == 5
        assert pool.pending == 0

    async def test_close_without_jobs(self, logger):
        pool = BackgroundTaskPool(logger=logger)
        await pool.close()

    async def test_invalid_workers(self):
        with pytest.raises(ValueError):
            BackgroundTaskPool(workers=0)
