"""Lightweight identity projection."""

from dataclasses import dataclass
from typing import Any

from cosmos_repository.domain.value_objects.composite_id import join_id


@dataclass(frozen=True)
class IdPartitionPair:
    """Document id and partition key, without the payload."""

    id: str
    partition_key: str

    @property
    def entity_id(self) -> str:
        return join_id(self.partition_key, self.id)

    @classmethod
    def from_item(cls, item: dict[str, Any]) -> "IdPartitionPair":
        return cls(id=item["id"], partition_key=item["partitionKey"])
