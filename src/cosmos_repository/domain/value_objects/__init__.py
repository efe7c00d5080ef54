"""Domain value objects."""

from cosmos_repository.domain.value_objects.cancellation import CancellationToken
from cosmos_repository.domain.value_objects.composite_id import (
    DELIMITER,
    CompositeId,
    join_id,
    split_id,
)
from cosmos_repository.domain.value_objects.crud_event_type import CrudEventType
from cosmos_repository.domain.value_objects.page import Page
from cosmos_repository.domain.value_objects.query_spec import QuerySpec

__all__ = [
    "DELIMITER",
    "CancellationToken",
    "CompositeId",
    "CrudEventType",
    "Page",
    "QuerySpec",
    "join_id",
    "split_id",
]
