"""Bounded-concurrency fan-out with per-item failure isolation."""

import asyncio
import logging
from collections.abc import Awaitable, Callable, Sequence
from typing import Generic, TypeVar

from cosmos_repository.domain.value_objects import CancellationToken
from cosmos_repository.domain.value_objects.cancellation import ensure_not_cancelled

logger = logging.getLogger(__name__)

S = TypeVar("S")


class ConcurrentExecutor(Generic[S]):
    """Run one coroutine per state with at most `max_concurrency` in flight.

    A failing item is logged and recorded; its siblings keep running.
    Items not yet started when the token is cancelled are skipped, and
    OperationCancelled is raised once the in-flight items have finished.
    """

    def __init__(self, max_concurrency: int) -> None:
        if max_concurrency < 1:
            raise ValueError("max_concurrency must be at least 1")
        self._max_concurrency = max_concurrency

    async def execute(
        self,
        states: Sequence[S],
        work: Callable[[S, CancellationToken | None], Awaitable[None]],
        cancellation: CancellationToken | None = None,
    ) -> list[tuple[S, Exception]]:
        """Run `work` for every state. Returns the failed states and their errors."""
        semaphore = asyncio.Semaphore(self._max_concurrency)
        failures: list[tuple[S, Exception]] = []

        async def _run(state: S) -> None:
            async with semaphore:
                if cancellation is not None and cancellation.is_cancelled:
                    return
                try:
                    await work(state, cancellation)
                except Exception as e:
                    logger.error("Concurrent work item failed: %s", e, exc_info=True)
                    failures.append((state, e))

        await asyncio.gather(*(_run(s) for s in states))
        ensure_not_cancelled(cancellation)
        return failures
