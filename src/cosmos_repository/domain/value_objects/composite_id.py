"""Composite entity id: partition key and document id in one string."""

from dataclasses import dataclass

DELIMITER = ":"


def split_id(entity_id: str) -> tuple[str, str]:
    """Split an entity id into (partition_key, document_id).

    Splits on the first delimiter only. An id without a delimiter is both
    its own partition key and document id.
    """
    partition_key, sep, document_id = entity_id.partition(DELIMITER)
    if not sep:
        return entity_id, entity_id
    return partition_key, document_id


def join_id(partition_key: str, document_id: str) -> str:
    """Join partition key and document id into an entity id."""
    if partition_key == document_id:
        return document_id
    return f"{partition_key}{DELIMITER}{document_id}"


@dataclass(frozen=True)
class CompositeId:
    """Two-part document identity."""

    partition_key: str
    document_id: str

    @classmethod
    def parse(cls, entity_id: str) -> "CompositeId":
        partition_key, document_id = split_id(entity_id)
        return cls(partition_key=partition_key, document_id=document_id)

    @property
    def entity_id(self) -> str:
        return join_id(self.partition_key, self.document_id)

    def __str__(self) -> str:
        return self.entity_id
