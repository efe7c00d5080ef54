"""asyncio background queue - bounded channel drained by a worker pool."""

import asyncio
import logging
from typing import Any

from cosmos_repository.application.ports import WorkFn
from cosmos_repository.domain.value_objects import CancellationToken

logger = logging.getLogger(__name__)


class AsyncioBackgroundQueue:
    """FIFO work queue processed by `workers` concurrent tasks.

    Work items run after `submit` returns, possibly concurrently with other
    items. An item that raises is logged and dropped; there is no retry and
    nothing is reported back to the submitter.
    """

    def __init__(self, workers: int = 4, max_size: int = 10000) -> None:
        if workers < 1:
            raise ValueError("workers must be at least 1")
        self._queue: asyncio.Queue[tuple[Any, WorkFn, CancellationToken | None]] = asyncio.Queue(
            maxsize=max_size
        )
        self._worker_count = workers
        self._workers: list[asyncio.Task] = []
        self._failed = 0

    @property
    def running(self) -> bool:
        return bool(self._workers)

    @property
    def failed_count(self) -> int:
        return self._failed

    @property
    def pending(self) -> int:
        return self._queue.qsize()

    async def start(self) -> None:
        """Start worker tasks."""
        if self._workers:
            logger.warning("Background queue already running")
            return
        for i in range(self._worker_count):
            self._workers.append(asyncio.create_task(self._process(i)))
        logger.info("Background queue started with %d workers", self._worker_count)

    async def stop(self, drain: bool = True) -> None:
        """Stop workers, by default after the queued work has run."""
        if not self._workers:
            return
        if drain:
            await self._queue.join()
        for worker in self._workers:
            worker.cancel()
        await asyncio.gather(*self._workers, return_exceptions=True)
        self._workers.clear()
        logger.info("Background queue stopped")

    async def join(self) -> None:
        """Wait until every submitted item has been processed."""
        await self._queue.join()

    async def submit(
        self,
        state: Any,
        work: WorkFn,
        cancellation: CancellationToken | None = None,
    ) -> None:
        """Enqueue `work(state, cancellation)`; waits only if the queue is full."""
        await self._queue.put((state, work, cancellation))

    async def _process(self, worker_id: int) -> None:
        logger.debug("Background worker %d started", worker_id)
        while True:
            state, work, cancellation = await self._queue.get()
            try:
                if cancellation is not None and cancellation.is_cancelled:
                    logger.debug("Background worker %d skipped cancelled item", worker_id)
                    continue
                await work(state, cancellation)
            except asyncio.CancelledError:
                raise
            except Exception as e:
                self._failed += 1
                logger.error("Background work item failed: %s", e, exc_info=True)
            finally:
                self._queue.task_done()
