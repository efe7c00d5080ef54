"""Repository ports."""

from cosmos_repository.application.ports.repositories.document_repository import (
    DocumentRepository,
)

__all__ = ["DocumentRepository"]
