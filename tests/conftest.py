"""Pytest fixtures for cosmos-repository tests."""

from __future__ import annotations

import copy
import re
from collections import Counter
from dataclasses import dataclass
from typing import Any

import pytest
from azure.cosmos.exceptions import CosmosResourceNotFoundError

from cosmos_repository.application.dto.repository_config import RepositoryConfig
from cosmos_repository.domain.entities import Document
from cosmos_repository.infrastructure.cosmos.repository import CosmosRepository


@dataclass(kw_only=True)
class Customer(Document):
    """Sample document used across tests."""

    name: str = ""
    tier: str = "standard"


def not_found() -> CosmosResourceNotFoundError:
    return CosmosResourceNotFoundError(status_code=404, message="Entity with the specified id does not exist")


# --- Fake SDK objects ---


class FakeAsyncPage:
    """One page of results, async-iterable like the SDK's page."""

    def __init__(self, items: list[Any]) -> None:
        self._items = list(items)

    def __aiter__(self):
        return self._iterate()

    async def _iterate(self):
        for item in self._items:
            yield item


class FakePageIterator:
    """Async iterator over pages exposing `continuation_token` like AsyncItemPaged.by_page()."""

    def __init__(self, pager: FakePager, start: int) -> None:
        self._pager = pager
        self._index = start
        self.continuation_token: str | None = None

    def __aiter__(self) -> FakePageIterator:
        return self

    async def __anext__(self) -> FakeAsyncPage:
        self._pager.fetch_count += 1
        pages = self._pager.pages
        if self._index >= len(pages):
            raise StopAsyncIteration
        page = pages[self._index]
        self._index += 1
        self.continuation_token = str(self._index) if self._index < len(pages) else None
        return FakeAsyncPage(page)


class FakePager:
    """Stands in for the AsyncItemPaged returned by query_items."""

    def __init__(self, pages: list[list[Any]]) -> None:
        self.pages = pages
        self.fetch_count = 0
        self.start_tokens: list[str | None] = []

    def by_page(self, continuation_token: str | None = None) -> FakePageIterator:
        self.start_tokens.append(continuation_token)
        return FakePageIterator(self, int(continuation_token) if continuation_token else 0)


class FakeContainer:
    """In-memory container keyed by (partition key, id) with a call log.

    Queries are answered from `scripted_pages` when set, else evaluated for
    the small set of shapes the repository issues.
    """

    def __init__(self, name: str = "customers") -> None:
        self.id = name
        self.items: dict[tuple[str, str], dict[str, Any]] = {}
        self.calls: list[tuple[str, dict[str, Any]]] = []
        self.pagers: list[FakePager] = []
        self.scripted_pages: list[list[list[Any]]] = []
        self.fail_on: set[str] = set()
        self._ts = 0

    def seed(self, *bodies: dict[str, Any]) -> None:
        for body in bodies:
            self._store(copy.deepcopy(body))

    def _store(self, body: dict[str, Any]) -> dict[str, Any]:
        self._ts += 1
        body["_ts"] = self._ts
        self.items[(body["partitionKey"], body["id"])] = body
        return body

    def _maybe_fail(self, key: str) -> None:
        if key in self.fail_on:
            raise RuntimeError(f"injected failure for {key}")

    async def create_item(self, body: dict[str, Any], no_response: bool = False, **kwargs) -> Any:
        self.calls.append(("create_item", {"body": body, "no_response": no_response}))
        self._maybe_fail(body["id"])
        stored = self._store(copy.deepcopy(body))
        return None if no_response else copy.deepcopy(stored)

    async def read_item(self, item: str, partition_key: str, **kwargs) -> dict[str, Any]:
        self.calls.append(("read_item", {"item": item, "partition_key": partition_key}))
        try:
            return copy.deepcopy(self.items[(partition_key, item)])
        except KeyError:
            raise not_found() from None

    async def replace_item(self, item: str, body: dict[str, Any], no_response: bool = False, **kwargs) -> Any:
        self.calls.append(("replace_item", {"item": item, "body": body, "no_response": no_response}))
        self._maybe_fail(item)
        key = (body["partitionKey"], item)
        if key not in self.items:
            raise not_found()
        stored = self._store(copy.deepcopy(body))
        return None if no_response else copy.deepcopy(stored)

    async def patch_item(
        self,
        item: str,
        partition_key: str,
        patch_operations: list[dict[str, Any]],
        no_response: bool = False,
        **kwargs,
    ) -> Any:
        self.calls.append(
            ("patch_item", {"item": item, "partition_key": partition_key, "patch_operations": patch_operations})
        )
        try:
            stored = self.items[(partition_key, item)]
        except KeyError:
            raise not_found() from None
        for op in patch_operations:
            field = op["path"].lstrip("/")
            if op["op"] == "remove":
                stored.pop(field, None)
            else:
                stored[field] = op["value"]
        return None if no_response else copy.deepcopy(stored)

    async def delete_item(self, item: str, partition_key: str, **kwargs) -> None:
        self.calls.append(("delete_item", {"item": item, "partition_key": partition_key}))
        self._maybe_fail(item)
        if self.items.pop((partition_key, item), None) is None:
            raise not_found()

    async def read_items(self, items: list[tuple[str, str]], **kwargs) -> list[dict[str, Any]]:
        self.calls.append(("read_items", {"items": items}))
        return [copy.deepcopy(self.items[(pk, i)]) for i, pk in items if (pk, i) in self.items]

    async def execute_item_batch(self, batch_operations: list, partition_key: str, **kwargs) -> list:
        self.calls.append(
            ("execute_item_batch", {"batch_operations": batch_operations, "partition_key": partition_key})
        )
        for _, args in batch_operations:
            self.items.pop((partition_key, args[0]), None)
        return []

    def query_items(
        self,
        query: str,
        parameters: list[dict[str, Any]] | None = None,
        partition_key: str | None = None,
        max_item_count: int | None = None,
        **kwargs,
    ) -> FakePager:
        self.calls.append(
            (
                "query_items",
                {
                    "query": query,
                    "parameters": parameters,
                    "partition_key": partition_key,
                    "max_item_count": max_item_count,
                },
            )
        )
        if self.scripted_pages:
            pages = self.scripted_pages.pop(0)
        else:
            results = self._evaluate(query, parameters or [], partition_key)
            size = max_item_count or len(results) or 1
            pages = [results[i : i + size] for i in range(0, len(results), size)] or [[]]
        pager = FakePager(pages)
        self.pagers.append(pager)
        return pager

    def _evaluate(self, query: str, parameters: list[dict[str, Any]], partition_key: str | None) -> list[Any]:
        params = {p["name"]: p["value"] for p in parameters}
        rows = [
            copy.deepcopy(body)
            for (pk, _), body in self.items.items()
            if partition_key is None or pk == partition_key
        ]
        in_match = re.search(r"c\.id IN \(([^)]*)\)", query)
        if in_match:
            wanted = {params[token.strip()] for token in in_match.group(1).split(",")}
            rows = [r for r in rows if r["id"] in wanted]
        if "@start" in params:
            rows = [r for r in rows if params["@start"] <= r["createdAt"] <= params["@end"]]
        order = re.search(r"ORDER BY c\.(\w+) (ASC|DESC)", query)
        if order:
            rows.sort(key=lambda r: r.get(order.group(1)), reverse=order.group(2) == "DESC")
        top = re.search(r"TOP (\d+)", query)
        if top:
            rows = rows[: int(top.group(1))]
        if "VALUE COUNT(1)" in query:
            return [len(rows)]
        if "VALUE 1" in query:
            return [1 for _ in rows]
        if "VALUE { id: c.id" in query:
            return [{"id": r["id"], "partitionKey": r["partitionKey"]} for r in rows]
        if "VALUE c.partitionKey" in query:
            return list(dict.fromkeys(r["partitionKey"] for r in rows))
        return rows

    def calls_named(self, name: str) -> list[dict[str, Any]]:
        return [kwargs for method, kwargs in self.calls if method == name]


class FakeContainerResolver:
    """Hands out one FakeContainer per name and counts resolutions."""

    def __init__(self) -> None:
        self.containers: dict[str, FakeContainer] = {}
        self.resolve_counts: Counter[str] = Counter()

    async def get(self, name: str, cancellation=None) -> FakeContainer:
        self.resolve_counts[name] += 1
        if cancellation is not None:
            cancellation.raise_if_cancelled()
        return self.containers.setdefault(name, FakeContainer(name))


class FakeQueue:
    """Background queue that records submissions; runs them on demand."""

    def __init__(self, immediate: bool = False) -> None:
        self.immediate = immediate
        self.submitted: list[tuple[Any, Any, Any]] = []

    async def submit(self, state, work, cancellation=None) -> None:
        self.submitted.append((state, work, cancellation))
        if self.immediate:
            await work(state, cancellation)

    async def run_all(self) -> None:
        while self.submitted:
            state, work, cancellation = self.submitted.pop(0)
            await work(state, cancellation)


class FakeUserContext:
    def __init__(self, user_id: str | None = "user-1") -> None:
        self.user_id = user_id

    def get_id_or_none(self) -> str | None:
        return self.user_id


# --- Fixtures ---


@pytest.fixture
def resolver() -> FakeContainerResolver:
    return FakeContainerResolver()


@pytest.fixture
def queue() -> FakeQueue:
    """Queue that runs work inline so audit writes land immediately."""
    return FakeQueue(immediate=True)


@pytest.fixture
def user_context() -> FakeUserContext:
    return FakeUserContext()


def make_repository(
    resolver: FakeContainerResolver,
    queue: FakeQueue,
    user_context: FakeUserContext,
    **config: Any,
) -> CosmosRepository[Customer]:
    config.setdefault("container_name", "customers")
    return CosmosRepository(Customer, RepositoryConfig(**config), resolver, queue, user_context)


@pytest.fixture
def repository(resolver, queue, user_context) -> CosmosRepository[Customer]:
    return make_repository(resolver, queue, user_context)


@pytest.fixture
def container(resolver) -> FakeContainer:
    return resolver.containers.setdefault("customers", FakeContainer("customers"))


@pytest.fixture
def audits(resolver) -> FakeContainer:
    return resolver.containers.setdefault("audits", FakeContainer("audits"))
