"""Cooperative cancellation token passed explicitly through every call."""

import asyncio

from cosmos_repository.domain.exceptions import OperationCancelled


class CancellationToken:
    """Signal checked at iteration boundaries and before page fetches.

    Once cancelled, in-flight store calls may still complete but no
    further page, item or delay is started.
    """

    def __init__(self) -> None:
        self._event = asyncio.Event()

    @property
    def is_cancelled(self) -> bool:
        return self._event.is_set()

    def cancel(self) -> None:
        self._event.set()

    def raise_if_cancelled(self) -> None:
        if self._event.is_set():
            raise OperationCancelled("Operation was cancelled")

    async def sleep(self, seconds: float) -> None:
        """Sleep for `seconds`, raising OperationCancelled if cancelled meanwhile."""
        self.raise_if_cancelled()
        try:
            await asyncio.wait_for(self._event.wait(), timeout=seconds)
        except TimeoutError:
            return
        raise OperationCancelled("Operation was cancelled")


def ensure_not_cancelled(cancellation: CancellationToken | None) -> None:
    """Raise OperationCancelled if the (optional) token is cancelled."""
    if cancellation is not None:
        cancellation.raise_if_cancelled()


async def delay(seconds: float, cancellation: CancellationToken | None = None) -> None:
    """Cancellable asyncio.sleep."""
    if cancellation is None:
        await asyncio.sleep(seconds)
    else:
        await cancellation.sleep(seconds)
