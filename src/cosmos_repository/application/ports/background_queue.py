"""Background queue port - deferred, fire-and-forget work."""

from collections.abc import Awaitable, Callable
from typing import Any, Protocol

from cosmos_repository.domain.value_objects import CancellationToken

WorkFn = Callable[[Any, CancellationToken | None], Awaitable[None]]


class BackgroundQueue(Protocol):
    """Port for submitting work that runs after the caller has returned.

    There is no return channel: failures of submitted work are handled by
    the queue implementation, never reported to the submitter.
    """

    async def submit(
        self,
        state: Any,
        work: WorkFn,
        cancellation: CancellationToken | None = None,
    ) -> None: ...
