"""Container resolver port - named container to live SDK handle."""

from typing import Protocol

from azure.cosmos.aio import ContainerProxy

from cosmos_repository.domain.value_objects import CancellationToken


class ContainerResolver(Protocol):
    """Port for resolving a logical container name to a container handle."""

    async def get(
        self, name: str, cancellation: CancellationToken | None = None
    ) -> ContainerProxy: ...
