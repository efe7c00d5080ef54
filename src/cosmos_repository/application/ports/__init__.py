"""Application ports - interfaces for external adapters."""

from cosmos_repository.application.ports.background_queue import BackgroundQueue, WorkFn
from cosmos_repository.application.ports.container_resolver import ContainerResolver
from cosmos_repository.application.ports.query_translator import QueryTranslator
from cosmos_repository.application.ports.user_context import UserContext

__all__ = [
    "BackgroundQueue",
    "ContainerResolver",
    "QueryTranslator",
    "UserContext",
    "WorkFn",
]
