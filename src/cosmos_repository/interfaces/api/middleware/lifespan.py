"""Lifespan middleware - starts the background queue on startup, drains it on shutdown."""

import logging
from typing import Any

from cosmos_repository.infrastructure.cosmos.client import CosmosContainerResolver
from cosmos_repository.infrastructure.queue.background_queue import AsyncioBackgroundQueue

logger = logging.getLogger(__name__)


class LifespanMiddleware:
    """Middleware that owns the background queue and the Cosmos client."""

    def __init__(
        self,
        queue: AsyncioBackgroundQueue,
        resolver: CosmosContainerResolver | None = None,
    ) -> None:
        self._queue = queue
        self._resolver = resolver

    async def process_startup(
        self, scope: dict[str, Any], event: dict[str, Any]
    ) -> None:
        """Start queue workers when ASGI server starts."""
        await self._queue.start()

    async def process_shutdown(
        self, scope: dict[str, Any], event: dict[str, Any]
    ) -> None:
        """Run remaining queued writes, then close the client."""
        await self._queue.stop(drain=True)
        if self._queue.failed_count:
            logger.warning("%d background work items failed", self._queue.failed_count)
        if self._resolver is not None:
            await self._resolver.close()
