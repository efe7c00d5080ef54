"""Cosmos DB document repository implementation."""

import json
import logging
from collections.abc import Awaitable, Callable, Sequence
from datetime import datetime
from typing import Any, Generic, TypeVar

from azure.cosmos.aio import ContainerProxy
from azure.cosmos.exceptions import CosmosResourceNotFoundError

from cosmos_repository.application.dto.repository_config import RepositoryConfig
from cosmos_repository.application.ports import (
    BackgroundQueue,
    ContainerResolver,
    QueryTranslator,
    UserContext,
)
from cosmos_repository.domain.entities import Document, IdPartitionPair
from cosmos_repository.domain.exceptions import ValidationError
from cosmos_repository.domain.value_objects import (
    CancellationToken,
    Page,
    QuerySpec,
    join_id,
    split_id,
)
from cosmos_repository.domain.value_objects.cancellation import delay as pause
from cosmos_repository.domain.value_objects.cancellation import ensure_not_cancelled
from cosmos_repository.infrastructure.cosmos.audit_recorder import AuditRecorder
from cosmos_repository.infrastructure.cosmos.concurrent_executor import ConcurrentExecutor
from cosmos_repository.infrastructure.cosmos.paging import drain, execute_on_pages, read_page
from cosmos_repository.infrastructure.cosmos.query_log import build_query_log_text
from cosmos_repository.infrastructure.cosmos.write_dispatcher import (
    WriteAction,
    WriteDispatcher,
    WriteSnapshot,
)

logger = logging.getLogger(__name__)

TDocument = TypeVar("TDocument", bound=Document)

ID_PROJECTION = "VALUE { id: c.id, partitionKey: c.partitionKey }"
DOCUMENT_ID_BATCH_SIZE = 50
DELETE_BATCH_SIZE = 100

QueryLike = QuerySpec | str


class CosmosRepository(Generic[TDocument]):
    """Typed CRUD and query surface over one Cosmos DB container.

    Entity ids are composite (`partitionKey:documentId`, or a single id
    when both halves are equal). Reads return None or an empty list
    instead of raising on not-found. Mutations accept `use_queue` to
    defer the store call to the background queue (fire-and-forget: the
    caller never sees its outcome) and `exclude_response` to skip the
    echoed payload. `delay` is in seconds and applies between items or
    non-empty pages. Every operation takes an optional cancellation token
    checked before each page and each item.
    """

    def __init__(
        self,
        document_type: type[TDocument],
        config: RepositoryConfig,
        container_resolver: ContainerResolver,
        background_queue: BackgroundQueue,
        user_context: UserContext,
    ) -> None:
        self._document_type = document_type
        self._config = config
        self._resolver = container_resolver
        self._recorder = AuditRecorder(
            entity_type=document_type.__name__,
            container_resolver=container_resolver,
            background_queue=background_queue,
            user_context=user_context,
            audit_container_name=config.audit_container_name,
            log_records=config.log_audits,
        )
        self._dispatcher = WriteDispatcher(background_queue, self._recorder)

    @property
    def container_name(self) -> str:
        return self._config.container_name

    @property
    def audit_enabled(self) -> bool:
        return self._config.audit_enabled

    @property
    def document_type(self) -> type[TDocument]:
        return self._document_type

    def resolve_partition_key(self, entity_id: str) -> str:
        """Partition key half of an entity id."""
        partition_key, _ = split_id(entity_id)
        return partition_key

    # --- helpers ---

    async def _container(self, cancellation: CancellationToken | None) -> ContainerProxy:
        return await self._resolver.get(self._config.container_name, cancellation)

    def _to_document(self, item: dict[str, Any]) -> TDocument:
        return self._document_type.from_item(item)

    def _log_query(self, method: str, spec: QuerySpec) -> None:
        if not self._config.log_queries:
            return
        logger.debug(
            "-- COSMOS: %s (%s): %s",
            method,
            self._document_type.__name__,
            build_query_log_text(spec.query_text, spec.query_parameters),
        )

    def _log_document(self, method: str, body: dict[str, Any]) -> None:
        if not self._config.log_queries:
            return
        logger.debug(
            "-- COSMOS: %s (%s): %s",
            method,
            self._document_type.__name__,
            json.dumps(body, indent=2, default=str),
        )

    @staticmethod
    def _spec(query: QueryLike, parameters: dict[str, Any] | None = None) -> QuerySpec:
        if isinstance(query, str):
            return QuerySpec.raw(query, parameters)
        if parameters:
            raise ValueError("parameters are only accepted with raw query text")
        return query

    @staticmethod
    def _pager(container: ContainerProxy, spec: QuerySpec) -> Any:
        kwargs: dict[str, Any] = {"query": spec.query_text}
        params = spec.query_parameters
        if params:
            kwargs["parameters"] = params
        if spec.partition_key is not None:
            kwargs["partition_key"] = spec.partition_key
        if spec.max_item_count is not None:
            kwargs["max_item_count"] = spec.max_item_count
        return container.query_items(**kwargs)

    async def _drain(
        self,
        spec: QuerySpec,
        method: str,
        *,
        convert: Callable[[Any], Any] | None = None,
        delay: float | None = None,
        cancellation: CancellationToken | None = None,
    ) -> list[Any]:
        self._log_query(method, spec)
        container = await self._container(cancellation)
        return await drain(
            self._pager(container, spec),
            convert=convert or self._to_document,
            delay_seconds=delay,
            cancellation=cancellation,
        )

    async def _read_page(
        self,
        spec: QuerySpec,
        method: str,
        *,
        convert: Callable[[Any], Any] | None = None,
        cancellation: CancellationToken | None = None,
    ) -> Page[Any]:
        self._log_query(method, spec)
        container = await self._container(cancellation)
        return await read_page(
            self._pager(container, spec),
            continuation_token=spec.continuation_token,
            convert=convert or self._to_document,
            cancellation=cancellation,
        )

    @staticmethod
    def _validate_keys(document: Document) -> None:
        if not (document.partition_key or "").strip() or not (document.document_id or "").strip():
            raise ValidationError(
                "document_id and partition_key must be present on the document before storing"
            )

    # --- query builder passthrough ---

    def build_query(
        self, max_item_count: int | None = None, partition_key: str | None = None
    ) -> QuerySpec:
        """Empty query over this container, for composing custom filters."""
        return QuerySpec().with_paging(max_item_count).with_partition_key(partition_key)

    def build_paged_query(
        self, page_size: int | None = None, continuation_token: str | None = None
    ) -> QuerySpec:
        """Empty query limited to `page_size` items per page.

        Add an order_by before paging: continuation tokens are only stable
        under a fixed sort order.
        """
        return QuerySpec().with_paging(page_size or self._config.default_page_size, continuation_token)

    # --- existence ---

    async def exists(self, entity_id: str, *, cancellation: CancellationToken | None = None) -> bool:
        partition_key, document_id = split_id(entity_id)
        return await self.exists_by_keys(partition_key, document_id, cancellation=cancellation)

    async def exists_by_keys(
        self,
        partition_key: str,
        document_id: str,
        *,
        cancellation: CancellationToken | None = None,
    ) -> bool:
        container = await self._container(cancellation)
        try:
            await container.read_item(item=document_id, partition_key=partition_key)
        except CosmosResourceNotFoundError:
            return False
        return True

    async def exists_query(
        self, query: QuerySpec, *, cancellation: CancellationToken | None = None
    ) -> bool:
        """True if `query` matches at least one item."""
        probe = query.unordered().select("VALUE 1").take(1).with_paging(1)
        return bool(await self._drain(probe, "exists_query", convert=int, cancellation=cancellation))

    async def exists_by_partition_key(
        self, partition_key: str, *, cancellation: CancellationToken | None = None
    ) -> bool:
        probe = self.build_query(1, partition_key).select("VALUE 1").take(1)
        return bool(
            await self._drain(probe, "exists_by_partition_key", convert=int, cancellation=cancellation)
        )

    async def any(self, *, cancellation: CancellationToken | None = None) -> bool:
        return await self.exists_query(self.build_query(), cancellation=cancellation)

    async def none(self, *, cancellation: CancellationToken | None = None) -> bool:
        return not await self.any(cancellation=cancellation)

    async def count(
        self, query: QuerySpec | None = None, *, cancellation: CancellationToken | None = None
    ) -> int:
        spec = (query or self.build_query()).unordered().select("VALUE COUNT(1)")
        counts = await self._drain(spec, "count", convert=int, cancellation=cancellation)
        return sum(counts)

    # --- single item ---

    async def get_item(
        self, entity_id: str, *, cancellation: CancellationToken | None = None
    ) -> TDocument | None:
        """Get one item by entity id. None if it does not exist."""
        partition_key, document_id = split_id(entity_id)
        return await self.get_item_by_keys(document_id, partition_key, cancellation=cancellation)

    async def get_item_by_keys(
        self,
        document_id: str,
        partition_key: str,
        *,
        cancellation: CancellationToken | None = None,
    ) -> TDocument | None:
        if self._config.log_queries:
            logger.debug(
                "-- COSMOS: get_item (%s): %s",
                self._document_type.__name__,
                join_id(partition_key, document_id),
            )
        container = await self._container(cancellation)
        try:
            item = await container.read_item(item=document_id, partition_key=partition_key)
        except CosmosResourceNotFoundError:
            return None
        return self._to_document(item)

    async def get_item_by_partition_key(
        self, partition_key: str, *, cancellation: CancellationToken | None = None
    ) -> TDocument | None:
        """Most recently written item in the partition.

        Assumes the partition holds a single document.
        """
        spec = self.build_query(1, partition_key).take(1).order_by("_ts", descending=True)
        return await self.get_item_by_query(spec, cancellation=cancellation)

    async def get_item_by_query(
        self,
        query: QuerySpec,
        *,
        convert: Callable[[Any], Any] | None = None,
        cancellation: CancellationToken | None = None,
    ) -> Any:
        """First item of `query`, or None.

        Leading empty pages are skipped.
        """
        items = await self._drain(
            query.take(1), "get_item_by_query", convert=convert, cancellation=cancellation
        )
        return items[0] if items else None

    async def get_first(self, *, cancellation: CancellationToken | None = None) -> TDocument | None:
        """Oldest item by createdAt."""
        spec = self.build_query(1).order_by("createdAt")
        return await self.get_item_by_query(spec, cancellation=cancellation)

    async def get_last(self, *, cancellation: CancellationToken | None = None) -> TDocument | None:
        """Newest item by createdAt."""
        spec = self.build_query(1).order_by("createdAt", descending=True)
        return await self.get_item_by_query(spec, cancellation=cancellation)

    # --- bulk retrieval ---

    async def get_all(
        self,
        *,
        delay: float | None = None,
        cancellation: CancellationToken | None = None,
    ) -> list[TDocument]:
        """Full scan. Prefer get_all_paged for large containers."""
        return await self._drain(self.build_query(), "get_all", delay=delay, cancellation=cancellation)

    async def get_all_by_partition_key(
        self,
        partition_key: str,
        *,
        delay: float | None = None,
        cancellation: CancellationToken | None = None,
    ) -> list[TDocument]:
        spec = self.build_query(partition_key=partition_key)
        return await self._drain(
            spec, "get_all_by_partition_key", delay=delay, cancellation=cancellation
        )

    async def get_all_by_document_ids(
        self,
        document_ids: Sequence[str],
        *,
        cancellation: CancellationToken | None = None,
    ) -> list[TDocument]:
        """Items whose document id is in `document_ids`, queried in IN batches."""
        results: list[TDocument] = []
        for start in range(0, len(document_ids), DOCUMENT_ID_BATCH_SIZE):
            ensure_not_cancelled(cancellation)
            chunk = document_ids[start : start + DOCUMENT_ID_BATCH_SIZE]
            params = {f"i{j}": value for j, value in enumerate(chunk)}
            tokens = ", ".join(f"@{name}" for name in params)
            spec = self.build_query().where(f"c.id IN ({tokens})", **params)
            results.extend(
                await self._drain(spec, "get_all_by_document_ids", cancellation=cancellation)
            )
        return results

    async def get_all_by_id_partition_pairs(
        self,
        pairs: Sequence[IdPartitionPair],
        *,
        cancellation: CancellationToken | None = None,
    ) -> list[TDocument]:
        """Point-read many items in one round trip."""
        if not pairs:
            return []
        container = await self._container(cancellation)
        items = await container.read_items(items=[(p.id, p.partition_key) for p in pairs])
        return [self._to_document(item) for item in items]

    async def get_items(
        self,
        query: QueryLike,
        *,
        parameters: dict[str, Any] | None = None,
        convert: Callable[[Any], Any] | None = None,
        delay: float | None = None,
        cancellation: CancellationToken | None = None,
    ) -> list[Any]:
        """Run a query (raw text or QuerySpec) and return every result.

        Results are documents unless `convert` maps raw items differently.
        """
        spec = self._spec(query, parameters)
        return await self._drain(spec, "get_items", convert=convert, delay=delay, cancellation=cancellation)

    async def get_items_between(
        self,
        start_at: datetime,
        end_at: datetime,
        *,
        delay: float | None = None,
        cancellation: CancellationToken | None = None,
    ) -> list[TDocument]:
        """Items with createdAt in [start_at, end_at]. Not ordered."""
        spec = self.build_query().where(
            "c.createdAt >= @start AND c.createdAt <= @end", start=start_at, end=end_at
        )
        return await self._drain(spec, "get_items_between", delay=delay, cancellation=cancellation)

    async def get_all_ids(
        self,
        *,
        delay: float | None = None,
        cancellation: CancellationToken | None = None,
    ) -> list[IdPartitionPair]:
        return await self.get_ids(self.build_query(), delay=delay, cancellation=cancellation)

    async def get_ids(
        self,
        query: QuerySpec,
        *,
        delay: float | None = None,
        cancellation: CancellationToken | None = None,
    ) -> list[IdPartitionPair]:
        """Identity pairs of the items matched by `query`."""
        spec = query.select(ID_PROJECTION)
        return await self._drain(
            spec,
            "get_ids",
            convert=IdPartitionPair.from_item,
            delay=delay,
            cancellation=cancellation,
        )

    async def get_all_partition_keys(
        self,
        *,
        delay: float | None = None,
        cancellation: CancellationToken | None = None,
    ) -> list[str]:
        return await self.get_partition_keys(self.build_query(), delay=delay, cancellation=cancellation)

    async def get_partition_keys(
        self,
        query: QuerySpec,
        *,
        delay: float | None = None,
        cancellation: CancellationToken | None = None,
    ) -> list[str]:
        spec = query.unordered().select("VALUE c.partitionKey", distinct=True)
        return await self._drain(spec, "get_partition_keys", convert=str, delay=delay, cancellation=cancellation)

    async def get_items_translated(
        self,
        odata_options: Any,
        translator: QueryTranslator,
        *,
        source_query: QuerySpec | None = None,
        convert: Callable[[Any], Any] | None = None,
        cancellation: CancellationToken | None = None,
    ) -> list[Any]:
        """Run the query text the translator builds from OData options."""
        query_text = translator.translate(odata_options, source_query or self.build_query())
        return await self.get_items(query_text, convert=convert, cancellation=cancellation)

    # --- paged ---

    async def get_all_paged(
        self,
        page_size: int | None = None,
        continuation_token: str | None = None,
        *,
        cancellation: CancellationToken | None = None,
    ) -> Page[TDocument]:
        """One page of all items, ordered by createdAt."""
        spec = self.build_paged_query(page_size, continuation_token).order_by("createdAt")
        return await self._read_page(spec, "get_all_paged", cancellation=cancellation)

    async def get_items_paged(
        self,
        query: QueryLike,
        page_size: int | None = None,
        continuation_token: str | None = None,
        *,
        parameters: dict[str, Any] | None = None,
        convert: Callable[[Any], Any] | None = None,
        cancellation: CancellationToken | None = None,
    ) -> Page[Any]:
        """One page of `query` starting at `continuation_token`."""
        spec = self._spec(query, parameters)
        spec = spec.with_paging(
            page_size or spec.max_item_count or self._config.default_page_size,
            continuation_token if continuation_token is not None else spec.continuation_token,
        )
        return await self._read_page(spec, "get_items_paged", convert=convert, cancellation=cancellation)

    async def execute_on_get_items_paged(
        self,
        query: QueryLike,
        handler: Callable[[list[Any]], Awaitable[None]],
        page_size: int | None = None,
        *,
        parameters: dict[str, Any] | None = None,
        convert: Callable[[Any], Any] | None = None,
        cancellation: CancellationToken | None = None,
    ) -> int:
        """Call `handler` with each page of `query` until the token runs out.

        Returns the number of pages handled.
        """
        spec = self._spec(query, parameters)

        async def _fetch(token: str | None) -> Page[Any]:
            return await self.get_items_paged(
                spec, page_size, token, convert=convert, cancellation=cancellation
            )

        return await execute_on_pages(
            _fetch, handler, continuation_token=spec.continuation_token, cancellation=cancellation
        )

    async def execute_on_get_all_paged(
        self,
        handler: Callable[[list[TDocument]], Awaitable[None]],
        page_size: int | None = None,
        *,
        cancellation: CancellationToken | None = None,
    ) -> int:
        spec = self.build_paged_query(page_size).order_by("createdAt")
        return await self.execute_on_get_items_paged(
            spec, handler, page_size, cancellation=cancellation
        )

    async def delete_all_paged(
        self,
        page_size: int | None = None,
        *,
        use_queue: bool = False,
        cancellation: CancellationToken | None = None,
    ) -> None:
        """Delete every item, one page of ids at a time."""
        logger.warning(
            "-- COSMOS: delete_all_paged (%s) from container '%s'",
            self._document_type.__name__,
            self.container_name,
        )
        spec = self.build_paged_query(page_size).order_by("createdAt").select(ID_PROJECTION)
        await self._delete_pages(spec, page_size, use_queue, cancellation)
        logger.debug("-- COSMOS: Finished delete_all_paged (%s)", self._document_type.__name__)

    async def delete_items_paged(
        self,
        query: QueryLike,
        page_size: int | None = None,
        *,
        parameters: dict[str, Any] | None = None,
        use_queue: bool = False,
        cancellation: CancellationToken | None = None,
    ) -> None:
        """Delete the items matched by `query`, one page at a time.

        Matched items must carry `id` and `partitionKey`.
        """
        logger.warning("-- COSMOS: delete_items_paged (%s)", self._document_type.__name__)
        spec = self._spec(query, parameters)
        if not spec.is_raw:
            spec = spec.select(ID_PROJECTION)
        await self._delete_pages(spec, page_size, use_queue, cancellation)
        logger.debug("-- COSMOS: Finished delete_items_paged (%s)", self._document_type.__name__)

    async def _delete_pages(
        self,
        spec: QuerySpec,
        page_size: int | None,
        use_queue: bool,
        cancellation: CancellationToken | None,
    ) -> None:
        container = await self._container(cancellation)

        async def _delete_page(ids: list[IdPartitionPair]) -> None:
            logger.debug("Number of rows to be deleted in page: %d", len(ids))
            for pair in ids:
                ensure_not_cancelled(cancellation)
                await self._delete_with_container(
                    container, pair.id, pair.partition_key, use_queue=use_queue, cancellation=cancellation
                )

        await self.execute_on_get_items_paged(
            spec,
            _delete_page,
            page_size,
            convert=IdPartitionPair.from_item,
            cancellation=cancellation,
        )

    # --- add ---

    async def add_item(
        self,
        document: TDocument,
        *,
        use_queue: bool = False,
        exclude_response: bool = False,
        cancellation: CancellationToken | None = None,
    ) -> str:
        """Create the document and return its entity id.

        Raises ValidationError before any I/O if either key is missing.
        The document's `id` is set to the entity id.
        """
        self._validate_keys(document)
        container = await self._container(cancellation)
        return await self._add_with_container(
            container,
            document,
            use_queue=use_queue,
            exclude_response=exclude_response,
            cancellation=cancellation,
        )

    async def _add_with_container(
        self,
        container: ContainerProxy,
        document: TDocument,
        *,
        use_queue: bool,
        exclude_response: bool,
        cancellation: CancellationToken | None,
    ) -> str:
        self._validate_keys(document)
        entity_id = join_id(document.partition_key, document.document_id)
        body = document.to_item()
        self._log_document("add_item", body)
        snapshot = WriteSnapshot.capture(
            container,
            WriteAction.CREATE,
            entity_id,
            document.document_id,
            document.partition_key,
            body=body,
            no_response=exclude_response,
            audit=self.audit_enabled,
        )
        await self._dispatcher.dispatch(
            snapshot, use_queue=use_queue, audit_entity=body, cancellation=cancellation
        )
        document.id = entity_id
        return entity_id

    async def add_items(
        self,
        documents: list[TDocument],
        *,
        delay: float | None = None,
        use_queue: bool = False,
        exclude_response: bool = False,
        cancellation: CancellationToken | None = None,
    ) -> list[TDocument]:
        """Create documents one after another, in order."""
        if self._config.log_queries:
            logger.debug(
                "-- COSMOS: add_items (%s) w/ %ss delay between docs",
                self._document_type.__name__,
                delay or 0,
            )
        container = await self._container(cancellation)
        for document in documents:
            ensure_not_cancelled(cancellation)
            document.id = await self._add_with_container(
                container,
                document,
                use_queue=use_queue,
                exclude_response=exclude_response,
                cancellation=cancellation,
            )
            if delay:
                await pause(delay, cancellation)
        return documents

    async def add_items_parallel(
        self,
        documents: list[TDocument],
        max_concurrency: int,
        *,
        exclude_response: bool = False,
        cancellation: CancellationToken | None = None,
    ) -> list[TDocument]:
        """Create documents concurrently. Order is not kept; failures are logged per item."""
        container = await self._container(cancellation)
        executor: ConcurrentExecutor[TDocument] = ConcurrentExecutor(max_concurrency)

        async def _add(document: TDocument, token: CancellationToken | None) -> None:
            await self._add_with_container(
                container,
                document,
                use_queue=False,
                exclude_response=exclude_response,
                cancellation=token,
            )

        await executor.execute(documents, _add, cancellation)
        return documents

    # --- update ---

    async def update_item(
        self,
        document: TDocument,
        entity_id: str | None = None,
        *,
        use_queue: bool = False,
        exclude_response: bool = False,
        cancellation: CancellationToken | None = None,
    ) -> TDocument:
        """Replace the stored document.

        `entity_id` overrides the id carried by the document. Returns the
        server's version when it sent one, else `document` itself.
        """
        container = await self._container(cancellation)
        return await self._update_with_container(
            container,
            document,
            entity_id or document.entity_id,
            use_queue=use_queue,
            exclude_response=exclude_response,
            cancellation=cancellation,
        )

    async def _update_with_container(
        self,
        container: ContainerProxy,
        document: TDocument,
        entity_id: str,
        *,
        use_queue: bool,
        exclude_response: bool,
        cancellation: CancellationToken | None,
    ) -> TDocument:
        partition_key, document_id = split_id(entity_id)
        body = document.to_item()
        body["id"] = document_id
        body["documentId"] = document_id
        if not body.get("partitionKey"):
            body["partitionKey"] = partition_key
        self._log_document("update_item", body)
        snapshot = WriteSnapshot.capture(
            container,
            WriteAction.REPLACE,
            entity_id,
            document_id,
            partition_key,
            body=body,
            no_response=exclude_response,
            audit=self.audit_enabled,
        )
        result = await self._dispatcher.dispatch(
            snapshot, use_queue=use_queue, audit_entity=body, cancellation=cancellation
        )
        if not result:
            return document
        return self._to_document(result)

    async def update_items(
        self,
        documents: list[TDocument],
        *,
        delay: float | None = None,
        use_queue: bool = False,
        exclude_response: bool = False,
        cancellation: CancellationToken | None = None,
    ) -> list[TDocument]:
        """Replace documents one after another; each slot gets the server's version."""
        container = await self._container(cancellation)
        for i, document in enumerate(documents):
            ensure_not_cancelled(cancellation)
            documents[i] = await self._update_with_container(
                container,
                document,
                document.entity_id,
                use_queue=use_queue,
                exclude_response=exclude_response,
                cancellation=cancellation,
            )
            if delay:
                await pause(delay, cancellation)
        return documents

    async def update_items_parallel(
        self,
        documents: list[TDocument],
        max_concurrency: int,
        *,
        exclude_response: bool = False,
        cancellation: CancellationToken | None = None,
    ) -> list[TDocument]:
        """Replace documents concurrently. A failed item is logged and left as given."""
        container = await self._container(cancellation)
        executor: ConcurrentExecutor[int] = ConcurrentExecutor(max_concurrency)

        async def _update(index: int, token: CancellationToken | None) -> None:
            document = documents[index]
            documents[index] = await self._update_with_container(
                container,
                document,
                document.entity_id,
                use_queue=False,
                exclude_response=exclude_response,
                cancellation=token,
            )

        await executor.execute(list(range(len(documents))), _update, cancellation)
        return documents

    # --- patch ---

    async def patch_item(
        self,
        entity_id: str,
        operations: list[dict[str, Any]],
        *,
        use_queue: bool = False,
        cancellation: CancellationToken | None = None,
    ) -> TDocument | None:
        """Apply partial-update operations, e.g. {"op": "set", "path": "/name", "value": "x"}.

        Returns the patched document inline, None when queued.
        """
        if self._config.log_queries:
            logger.debug("-- COSMOS: patch_item (%s)", self._document_type.__name__)
        container = await self._container(cancellation)
        return await self._patch_with_container(
            container, entity_id, operations, use_queue=use_queue, cancellation=cancellation
        )

    async def _patch_with_container(
        self,
        container: ContainerProxy,
        entity_id: str,
        operations: list[dict[str, Any]],
        *,
        use_queue: bool,
        cancellation: CancellationToken | None,
    ) -> TDocument | None:
        partition_key, document_id = split_id(entity_id)
        snapshot = WriteSnapshot.capture(
            container,
            WriteAction.PATCH,
            entity_id,
            document_id,
            partition_key,
            operations=operations,
            audit=self.audit_enabled,
        )
        result = await self._dispatcher.dispatch(snapshot, use_queue=use_queue, cancellation=cancellation)
        if not result:
            return None
        return self._to_document(result)

    async def patch_items(
        self,
        documents: list[TDocument],
        operations: list[dict[str, Any]],
        *,
        delay: float | None = None,
        use_queue: bool = False,
        cancellation: CancellationToken | None = None,
    ) -> list[TDocument]:
        """Apply the same operations to each document, in order."""
        container = await self._container(cancellation)
        for document in documents:
            ensure_not_cancelled(cancellation)
            await self._patch_with_container(
                container,
                document.entity_id,
                operations,
                use_queue=use_queue,
                cancellation=cancellation,
            )
            if delay:
                await pause(delay, cancellation)
        return documents

    # --- delete ---

    async def delete_item(
        self,
        entity_id: str,
        *,
        use_queue: bool = False,
        cancellation: CancellationToken | None = None,
    ) -> None:
        """Delete by entity id. Deleting a missing item is not an error."""
        partition_key, document_id = split_id(entity_id)
        await self.delete_item_by_keys(
            document_id, partition_key, use_queue=use_queue, cancellation=cancellation
        )

    async def delete_item_by_keys(
        self,
        document_id: str,
        partition_key: str,
        *,
        use_queue: bool = False,
        cancellation: CancellationToken | None = None,
    ) -> None:
        container = await self._container(cancellation)
        await self._delete_with_container(
            container, document_id, partition_key, use_queue=use_queue, cancellation=cancellation
        )

    async def _delete_with_container(
        self,
        container: ContainerProxy,
        document_id: str,
        partition_key: str,
        *,
        use_queue: bool,
        cancellation: CancellationToken | None,
    ) -> None:
        entity_id = join_id(partition_key, document_id)
        if self._config.log_queries:
            logger.debug("-- COSMOS: delete_item (%s): %s", self._document_type.__name__, entity_id)
        snapshot = WriteSnapshot.capture(
            container,
            WriteAction.DELETE,
            entity_id,
            document_id,
            partition_key,
            audit=self.audit_enabled,
        )
        await self._dispatcher.dispatch(snapshot, use_queue=use_queue, cancellation=cancellation)

    async def delete_all(
        self,
        *,
        delay: float | None = None,
        use_queue: bool = False,
        cancellation: CancellationToken | None = None,
    ) -> None:
        """Delete every item in the container, one at a time."""
        logger.warning(
            "-- COSMOS: delete_all (%s) w/ %ss delay between docs",
            self._document_type.__name__,
            delay or 0,
        )
        ids = await self.get_all_ids(delay=delay, cancellation=cancellation)
        await self.delete_ids(ids, delay=delay, use_queue=use_queue, cancellation=cancellation)
        logger.debug("-- COSMOS: Finished delete_all (%s)", self._document_type.__name__)

    async def delete_items(
        self,
        query: QuerySpec,
        *,
        delay: float | None = None,
        use_queue: bool = False,
        cancellation: CancellationToken | None = None,
    ) -> None:
        if self._config.log_queries:
            logger.warning("-- COSMOS: delete_items (%s)", self._document_type.__name__)
        ids = await self.get_ids(query, delay=delay, cancellation=cancellation)
        await self.delete_ids(ids, delay=delay, use_queue=use_queue, cancellation=cancellation)

    async def delete_items_parallel(
        self,
        query: QuerySpec,
        max_concurrency: int,
        *,
        cancellation: CancellationToken | None = None,
    ) -> None:
        if self._config.log_queries:
            logger.warning("-- COSMOS: delete_items_parallel (%s)", self._document_type.__name__)
        ids = await self.get_ids(query, cancellation=cancellation)
        await self.delete_ids_parallel(ids, max_concurrency, cancellation=cancellation)

    async def delete_ids(
        self,
        ids: Sequence[IdPartitionPair],
        *,
        delay: float | None = None,
        use_queue: bool = False,
        cancellation: CancellationToken | None = None,
    ) -> None:
        """Delete each pair in order."""
        container = await self._container(cancellation)
        for pair in ids:
            ensure_not_cancelled(cancellation)
            await self._delete_with_container(
                container, pair.id, pair.partition_key, use_queue=use_queue, cancellation=cancellation
            )
            if delay:
                await pause(delay, cancellation)
        if self._config.log_queries:
            logger.debug("-- COSMOS: Finished delete_ids (%s)", self._document_type.__name__)

    async def delete_ids_parallel(
        self,
        ids: Sequence[IdPartitionPair],
        max_concurrency: int,
        *,
        cancellation: CancellationToken | None = None,
    ) -> None:
        container = await self._container(cancellation)
        executor: ConcurrentExecutor[IdPartitionPair] = ConcurrentExecutor(max_concurrency)

        async def _delete(pair: IdPartitionPair, token: CancellationToken | None) -> None:
            ensure_not_cancelled(token)
            await self._delete_with_container(
                container, pair.id, pair.partition_key, use_queue=False, cancellation=token
            )

        await executor.execute(list(ids), _delete, cancellation)

    async def delete_ids_batched(
        self,
        ids: Sequence[IdPartitionPair],
        batch_size: int = DELETE_BATCH_SIZE,
        *,
        cancellation: CancellationToken | None = None,
    ) -> None:
        """Delete through transactional batches, one partition key per batch.

        Batched deletes bypass the per-item path and are not audited.
        """
        if batch_size < 1:
            raise ValueError("batch_size must be positive")
        container = await self._container(cancellation)

        groups: dict[str, list[str]] = {}
        for pair in ids:
            groups.setdefault(pair.partition_key, []).append(pair.id)

        for partition_key, document_ids in groups.items():
            for start in range(0, len(document_ids), batch_size):
                ensure_not_cancelled(cancellation)
                await self._execute_delete_batch(
                    container, partition_key, document_ids[start : start + batch_size]
                )

    @staticmethod
    async def _execute_delete_batch(
        container: ContainerProxy, partition_key: str, document_ids: list[str]
    ) -> None:
        operations = [("delete", (document_id,)) for document_id in document_ids]
        await container.execute_item_batch(batch_operations=operations, partition_key=partition_key)
        logger.debug("Deleted %d items in partition %s", len(document_ids), partition_key)

    async def delete_created_at_between(
        self,
        start_at: datetime,
        end_at: datetime,
        *,
        cancellation: CancellationToken | None = None,
    ) -> None:
        """Delete items with createdAt in [start_at, end_at] through batches of 100."""
        if self._config.log_queries:
            logger.warning("-- COSMOS: delete_created_at_between (%s)", self._document_type.__name__)
        query = self.build_query().where(
            "c.createdAt >= @start AND c.createdAt <= @end", start=start_at, end=end_at
        )
        ids = await self.get_ids(query, cancellation=cancellation)
        await self.delete_ids_batched(ids, DELETE_BATCH_SIZE, cancellation=cancellation)
