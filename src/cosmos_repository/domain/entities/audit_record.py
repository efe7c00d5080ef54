"""Audit record entity."""

from dataclasses import dataclass
from datetime import datetime
from typing import Any

from cosmos_repository.domain.entities.document import encode_value
from cosmos_repository.domain.value_objects import CrudEventType


@dataclass(frozen=True)
class AuditRecord:
    """Immutable log entry for one create, update or delete.

    Partitioned by the document id half of the target's entity id.
    """

    document_id: str
    partition_key: str
    entity_id: str
    entity_type: str
    event_type: CrudEventType
    created_at: datetime
    entity: Any = None
    user_id: str | None = None

    def to_item(self) -> dict[str, Any]:
        return {
            "id": self.document_id,
            "documentId": self.document_id,
            "partitionKey": self.partition_key,
            "entityId": self.entity_id,
            "entityType": self.entity_type,
            "entity": encode_value(self.entity),
            "eventType": self.event_type.value,
            "userId": self.user_id,
            "createdAt": self.created_at.isoformat(),
        }
