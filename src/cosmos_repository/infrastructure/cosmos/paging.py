"""Continuation-token paging over SDK query results."""

import logging
from collections.abc import Awaitable, Callable
from typing import Any, Protocol, TypeVar

from cosmos_repository.domain.value_objects import CancellationToken, Page
from cosmos_repository.domain.value_objects.cancellation import delay, ensure_not_cancelled

logger = logging.getLogger(__name__)

DEFAULT_PAGE_SIZE = 500

T = TypeVar("T")


class Pager(Protocol):
    """What the engine needs from an SDK result (AsyncItemPaged)."""

    def by_page(self, continuation_token: str | None = None) -> Any: ...


def _identity(item: Any) -> Any:
    return item


async def drain(
    pager: Pager,
    *,
    convert: Callable[[Any], T] = _identity,
    delay_seconds: float | None = None,
    cancellation: CancellationToken | None = None,
) -> list[T]:
    """Read every page and return all items in server order.

    Cancellation is checked before each page fetch; partial results are
    discarded. The optional delay applies after each non-empty page.
    """
    results: list[T] = []
    pages = pager.by_page()
    fetched = 0
    while True:
        ensure_not_cancelled(cancellation)
        try:
            page = await anext(pages)
        except StopAsyncIteration:
            break
        fetched += 1
        items = [convert(item) async for item in page]
        results.extend(items)
        if delay_seconds and items:
            await delay(delay_seconds, cancellation)
    logger.debug("Drained %d items over %d pages", len(results), fetched)
    return results


async def read_page(
    pager: Pager,
    *,
    continuation_token: str | None = None,
    convert: Callable[[Any], T] = _identity,
    cancellation: CancellationToken | None = None,
) -> Page[T]:
    """Read exactly one page starting at `continuation_token`."""
    ensure_not_cancelled(cancellation)
    pages = pager.by_page(continuation_token)
    try:
        page = await anext(pages)
    except StopAsyncIteration:
        return Page(items=[], continuation_token=None)
    items = [convert(item) async for item in page]
    return Page(items=items, continuation_token=pages.continuation_token or None)


async def execute_on_pages(
    fetch_page: Callable[[str | None], Awaitable[Page[T]]],
    handler: Callable[[list[T]], Awaitable[None]],
    *,
    continuation_token: str | None = None,
    cancellation: CancellationToken | None = None,
) -> int:
    """Fetch a page, hand it to `handler`, repeat while a token is returned.

    The handler sees every page once, in order, including empty pages
    returned before the end of results. Returns the number of pages.
    """
    count = 0
    while True:
        ensure_not_cancelled(cancellation)
        page = await fetch_page(continuation_token)
        count += 1
        continuation_token = page.continuation_token
        await handler(page.items)
        if continuation_token is None:
            return count
