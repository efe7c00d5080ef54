"""Domain entities."""

from cosmos_repository.domain.entities.audit_record import AuditRecord
from cosmos_repository.domain.entities.document import Document
from cosmos_repository.domain.entities.id_partition_pair import IdPartitionPair

__all__ = [
    "AuditRecord",
    "Document",
    "IdPartitionPair",
]
