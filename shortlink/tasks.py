"""Bounded background task pool for fire-and-forget work."""

import asyncio
import logging
from typing import Any, Awaitable, Callable, List, Optional, Tuple


Job = Tuple[Callable[..., Awaitable[Any]], Tuple[Any, ...], str]


class BackgroundTaskPool:
    """Run coroutine functions on a fixed set of asyncio workers.

    Submissions go into a bounded queue; when it is full the job is dropped
    and a warning is logged. Job failures are logged, never raised to the
    submitter.
    """

    def __init__(
        self,
        workers: int = 4,
        max_pending: int = 1000,
        logger: Optional[logging.Logger] = None,
    ):
        """Initialize task pool.

        Args:
            workers: Number of worker coroutines
            max_pending: Maximum number of queued jobs
            logger: Optional logger
        """
        if workers < 1:
            raise ValueError("workers must be at least 1")
        self.num_workers = workers
        self.max_pending = max_pending
        self.logger = logger or logging.getLogger(__name__)
        self._queue: Optional[asyncio.Queue] = None
        self._workers: List[asyncio.Task] = []
        self.dropped = 0
        self.failed = 0

    @property
    def pending(self) -> int:
        return self._queue.qsize() if self._queue else 0

    def _ensure_started(self) -> asyncio.Queue:
        if self._queue is None:
            self._queue = asyncio.Queue(maxsize=self.max_pending)
        if not self._workers:
            self._workers = [
                asyncio.create_task(self._worker(i), name=f"background-worker-{i}")
                for i in range(self.num_workers)
            ]
            self.logger.debug(f"Started {self.num_workers} background workers")
        return self._queue

    async def start(self) -> None:
        """Start workers (also done lazily on first submit)."""
        self._ensure_started()

    def submit(self, func: Callable[..., Awaitable[Any]], *args: Any, description: str = "") -> bool:
        """Queue ``func(*args)`` for background execution.

        Must be called from a running event loop.

        Returns:
            True if queued, False if dropped because the queue is full
        """
        queue = self._ensure_started()
        try:
            queue.put_nowait((func, args, description or getattr(func, "__name__", "job")))
            return True
        except asyncio.QueueFull:
            self.dropped += 1
            self.logger.warning(
                f"Background queue full ({self.max_pending}), dropping {description or func}"
            )
            return False

    async def _worker(self, index: int) -> None:
        queue = self._queue
        while True:
            func, args, description = await queue.get()
            try:
                await func(*args)
            except asyncio.CancelledError:
                raise
            except Exception as e:
                self.failed += 1
                self.logger.error(f"Background task {description} failed: {e}")
            finally:
                queue.task_done()

    async def drain(self) -> None:
        """Wait until every queued job has finished."""
        if self._queue is not None:
            await self._queue.join()

    async def close(self, timeout: float = 5.0) -> None:
        """Finish queued jobs (up to ``timeout`` seconds) and stop workers."""
        if self._queue is not None and self._workers:
            try:
                await asyncio.wait_for(self.drain(), timeout=timeout)
            except asyncio.TimeoutError:
                self.logger.warning(
                    f"Background pool closed with {self.pending} jobs still pending"
                )

        for task in self._workers:
            task.cancel()
        await asyncio.gather(*self._workers, return_exceptions=True)
        self._workers = []
        self._queue = None
