"""Application entry point and composition root."""

import logging
from dataclasses import dataclass
from typing import TypeVar

import falcon.asgi

from cosmos_repository import __version__
from cosmos_repository.application.dto.repository_config import RepositoryConfig
from cosmos_repository.application.ports.repositories import DocumentRepository
from cosmos_repository.config import Settings, get_settings
from cosmos_repository.domain.entities import Document
from cosmos_repository.infrastructure.cosmos.client import CosmosContainerResolver, create_client
from cosmos_repository.infrastructure.cosmos.repository import CosmosRepository
from cosmos_repository.infrastructure.queue.background_queue import AsyncioBackgroundQueue
from cosmos_repository.infrastructure.user_context.context_var_user_context import (
    ContextVarUserContext,
)
from cosmos_repository.interfaces.api.middleware.lifespan import LifespanMiddleware
from cosmos_repository.interfaces.api.middleware.user_context import UserContextMiddleware

TDocument = TypeVar("TDocument", bound=Document)

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def main() -> None:
    """CLI entry point."""
    print(f"cosmos-repository v{__version__}")


def configure_logging(settings: Settings) -> None:
    """Set the root log level from settings; DEBUG when `debug` is on."""
    level = logging.DEBUG if settings.debug else settings.log_level.upper()
    logging.basicConfig(level=level, format=LOG_FORMAT)
    logging.getLogger("azure").setLevel(logging.WARNING)


@dataclass
class CosmosServices:
    """Shared infrastructure every repository is built from."""

    settings: Settings
    resolver: CosmosContainerResolver
    queue: AsyncioBackgroundQueue
    user_context: ContextVarUserContext

    def repository(
        self,
        document_type: type[TDocument],
        container_name: str,
        audit_enabled: bool = True,
    ) -> DocumentRepository[TDocument]:
        """Build a repository for `document_type` stored in `container_name`."""
        config = RepositoryConfig(
            container_name=container_name,
            audit_enabled=audit_enabled,
            audit_container_name=self.settings.audit_container_name,
            log_queries=self.settings.cosmos_log,
            log_audits=self.settings.cosmos_audit_log,
            default_page_size=self.settings.default_page_size,
        )
        return CosmosRepository(
            document_type,
            config,
            self.resolver,
            self.queue,
            self.user_context,
        )


def create_services(settings: Settings | None = None) -> CosmosServices:
    """Wire client, container resolver, background queue and user context."""
    settings = settings or get_settings()
    client = create_client(settings.cosmos_endpoint, settings.cosmos_key)
    return CosmosServices(
        settings=settings,
        resolver=CosmosContainerResolver(client, settings.cosmos_database),
        queue=AsyncioBackgroundQueue(
            workers=settings.background_queue_workers,
            max_size=settings.background_queue_max_size,
        ),
        user_context=ContextVarUserContext(),
    )


def create_app(services: CosmosServices | None = None) -> falcon.asgi.App:
    """Falcon ASGI host with queue lifespan and ambient user id wired in.

    Routes are added by the caller.
    """
    services = services or create_services()
    configure_logging(services.settings)
    return falcon.asgi.App(
        middleware=[
            LifespanMiddleware(services.queue, services.resolver),
            UserContextMiddleware(services.user_context),
        ],
    )
