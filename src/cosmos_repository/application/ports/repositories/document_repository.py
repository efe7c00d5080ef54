"""Document repository port."""

from collections.abc import Awaitable, Callable, Sequence
from datetime import datetime
from typing import Any, Protocol, TypeVar

from cosmos_repository.domain.entities import Document, IdPartitionPair
from cosmos_repository.domain.value_objects import CancellationToken, Page, QuerySpec

TDocument = TypeVar("TDocument", bound=Document)


class DocumentRepository(Protocol[TDocument]):
    """Port for typed document persistence in one container."""

    @property
    def container_name(self) -> str: ...

    @property
    def audit_enabled(self) -> bool: ...

    @property
    def document_type(self) -> type[TDocument]: ...

    def resolve_partition_key(self, entity_id: str) -> str: ...

    def build_query(
        self, max_item_count: int | None = None, partition_key: str | None = None
    ) -> QuerySpec: ...

    def build_paged_query(
        self, page_size: int | None = None, continuation_token: str | None = None
    ) -> QuerySpec: ...

    async def exists(
        self, entity_id: str, *, cancellation: CancellationToken | None = None
    ) -> bool: ...

    async def exists_query(
        self, query: QuerySpec, *, cancellation: CancellationToken | None = None
    ) -> bool: ...

    async def count(
        self, query: QuerySpec | None = None, *, cancellation: CancellationToken | None = None
    ) -> int: ...

    async def get_item(
        self, entity_id: str, *, cancellation: CancellationToken | None = None
    ) -> TDocument | None: ...

    async def get_item_by_query(
        self, query: QuerySpec, *, cancellation: CancellationToken | None = None
    ) -> Any: ...

    async def get_all(
        self, *, delay: float | None = None, cancellation: CancellationToken | None = None
    ) -> list[TDocument]: ...

    async def get_items(
        self,
        query: QuerySpec | str,
        *,
        parameters: dict[str, Any] | None = None,
        convert: Callable[[Any], Any] | None = None,
        delay: float | None = None,
        cancellation: CancellationToken | None = None,
    ) -> list[Any]: ...

    async def get_ids(
        self,
        query: QuerySpec,
        *,
        delay: float | None = None,
        cancellation: CancellationToken | None = None,
    ) -> list[IdPartitionPair]: ...

    async def get_items_between(
        self,
        start_at: datetime,
        end_at: datetime,
        *,
        delay: float | None = None,
        cancellation: CancellationToken | None = None,
    ) -> list[TDocument]: ...

    async def get_all_paged(
        self,
        page_size: int | None = None,
        continuation_token: str | None = None,
        *,
        cancellation: CancellationToken | None = None,
    ) -> Page[TDocument]: ...

    async def get_items_paged(
        self,
        query: QuerySpec | str,
        page_size: int | None = None,
        continuation_token: str | None = None,
        *,
        parameters: dict[str, Any] | None = None,
        convert: Callable[[Any], Any] | None = None,
        cancellation: CancellationToken | None = None,
    ) -> Page[Any]: ...

    async def execute_on_get_items_paged(
        self,
        query: QuerySpec | str,
        handler: Callable[[list[Any]], Awaitable[None]],
        page_size: int | None = None,
        *,
        parameters: dict[str, Any] | None = None,
        convert: Callable[[Any], Any] | None = None,
        cancellation: CancellationToken | None = None,
    ) -> int: ...

    async def add_item(
        self,
        document: TDocument,
        *,
        use_queue: bool = False,
        exclude_response: bool = False,
        cancellation: CancellationToken | None = None,
    ) -> str: ...

    async def add_items(
        self,
        documents: list[TDocument],
        *,
        delay: float | None = None,
        use_queue: bool = False,
        exclude_response: bool = False,
        cancellation: CancellationToken | None = None,
    ) -> list[TDocument]: ...

    async def update_item(
        self,
        document: TDocument,
        entity_id: str | None = None,
        *,
        use_queue: bool = False,
        exclude_response: bool = False,
        cancellation: CancellationToken | None = None,
    ) -> TDocument: ...

    async def patch_item(
        self,
        entity_id: str,
        operations: list[dict[str, Any]],
        *,
        use_queue: bool = False,
        cancellation: CancellationToken | None = None,
    ) -> TDocument | None: ...

    async def delete_item(
        self,
        entity_id: str,
        *,
        use_queue: bool = False,
        cancellation: CancellationToken | None = None,
    ) -> None: ...

    async def delete_ids(
        self,
        ids: Sequence[IdPartitionPair],
        *,
        delay: float | None = None,
        use_queue: bool = False,
        cancellation: CancellationToken | None = None,
    ) -> None: ...

    async def delete_ids_batched(
        self,
        ids: Sequence[IdPartitionPair],
        batch_size: int = 100,
        *,
        cancellation: CancellationToken | None = None,
    ) -> None: ...
