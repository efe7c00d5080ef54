"""Cosmos DB async client and container resolution."""

import logging

from azure.cosmos.aio import ContainerProxy, CosmosClient

from cosmos_repository.domain.value_objects import CancellationToken
from cosmos_repository.domain.value_objects.cancellation import ensure_not_cancelled

logger = logging.getLogger(__name__)


def create_client(endpoint: str, key: str, **client_options) -> CosmosClient:
    """Create async Cosmos client.

    The client holds an aiohttp session; the caller must close it (e.g.
    via LifespanMiddleware in ASGI lifespan).
    """
    if not endpoint:
        raise ValueError("endpoint is required")
    return CosmosClient(endpoint, credential=key, **client_options)


class CosmosContainerResolver:
    """Resolves container names to cached ContainerProxy handles."""

    def __init__(self, client: CosmosClient, database: str) -> None:
        self._client = client
        self._database = client.get_database_client(database)
        self._containers: dict[str, ContainerProxy] = {}

    async def get(
        self, name: str, cancellation: CancellationToken | None = None
    ) -> ContainerProxy:
        """Get container handle (no round-trip; the proxy is lazy)."""
        ensure_not_cancelled(cancellation)
        container = self._containers.get(name)
        if container is None:
            container = self._database.get_container_client(name)
            self._containers[name] = container
            logger.info("Resolved container '%s'", name)
        return container

    async def close(self) -> None:
        self._containers.clear()
        await self._client.close()
