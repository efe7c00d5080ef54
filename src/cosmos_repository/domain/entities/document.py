"""Base document stored in a Cosmos DB container."""

import dataclasses
import types
from dataclasses import dataclass, field, fields
from datetime import UTC, datetime
from enum import Enum
from typing import Any, Union, get_args, get_origin, get_type_hints

from cosmos_repository.domain.value_objects.composite_id import join_id


def to_camel(name: str) -> str:
    """snake_case -> camelCase."""
    head, *rest = name.split("_")
    return head + "".join(part[:1].upper() + part[1:] for part in rest)


def encode_value(value: Any) -> Any:
    """Convert a field value into a JSON-compatible item value."""
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, Enum):
        return value.value
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return {to_camel(f.name): encode_value(getattr(value, f.name)) for f in fields(value)}
    if isinstance(value, dict):
        return {k: encode_value(v) for k, v in value.items()}
    if isinstance(value, (list, tuple, set)):
        return [encode_value(v) for v in value]
    return value


def _is_datetime_hint(hint: Any) -> bool:
    if hint is datetime:
        return True
    if get_origin(hint) in (Union, types.UnionType):
        return datetime in get_args(hint)
    return False


@dataclass(kw_only=True)
class Document:
    """Document with a two-part identity.

    `id` is the composite entity id and is only reliable after the first
    write; `document_id` is the store's item id and `partition_key` its
    partition. Subclasses add their own fields and are mapped to items
    with camelCase keys.
    """

    partition_key: str = ""
    document_id: str = ""
    id: str = ""
    created_at: datetime = field(default_factory=lambda: datetime.now(UTC))
    modified_at: datetime | None = None

    @property
    def entity_id(self) -> str:
        """Stored id if assigned, else the id derived from the two halves."""
        return self.id or join_id(self.partition_key, self.document_id)

    def to_item(self) -> dict[str, Any]:
        """Item body as written to the store (`id` is the document id)."""
        item = {
            to_camel(f.name): encode_value(getattr(self, f.name))
            for f in fields(self)
            if f.name != "id"
        }
        item["id"] = self.document_id
        return item

    @classmethod
    def from_item(cls, item: dict[str, Any]) -> "Document":
        """Build a document from a store item; system fields are ignored."""
        hints = get_type_hints(cls)
        kwargs: dict[str, Any] = {}
        for f in fields(cls):
            if not f.init or f.name == "id":
                continue
            key = to_camel(f.name)
            if key not in item:
                continue
            value = item[key]
            if isinstance(value, str) and _is_datetime_hint(hints.get(f.name)):
                value = datetime.fromisoformat(value)
            kwargs[f.name] = value
        doc = cls(**kwargs)
        if not doc.document_id:
            doc.document_id = item.get("id", "")
        doc.id = join_id(doc.partition_key, doc.document_id)
        return doc
