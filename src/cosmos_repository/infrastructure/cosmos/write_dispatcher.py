"""Inline or queued execution of single-document writes.

Inline writes are awaited and their store errors reach the caller.
Queued writes are handed to the background queue as an immutable
snapshot and the caller returns immediately; their failures are only
visible in the queue's logs. Audit records follow only a successful
write (a delete of a missing item counts as success). Inline writes
enqueue their audit; queued writes write it from the worker, tagged with
the user captured at dispatch.
"""

import copy
import logging
from dataclasses import dataclass, replace
from enum import StrEnum
from typing import Any

from azure.cosmos.aio import ContainerProxy
from azure.cosmos.exceptions import CosmosResourceNotFoundError

from cosmos_repository.application.ports import BackgroundQueue
from cosmos_repository.domain.value_objects import CancellationToken, CrudEventType
from cosmos_repository.infrastructure.cosmos.audit_recorder import AuditRecorder

logger = logging.getLogger(__name__)


class WriteAction(StrEnum):
    """Store call behind a write."""

    CREATE = "create"
    REPLACE = "replace"
    PATCH = "patch"
    DELETE = "delete"


_AUDIT_EVENTS = {
    WriteAction.CREATE: CrudEventType.CREATE,
    WriteAction.REPLACE: CrudEventType.UPDATE,
    WriteAction.PATCH: CrudEventType.UPDATE,
    WriteAction.DELETE: CrudEventType.DELETE,
}


@dataclass(frozen=True)
class WriteSnapshot:
    """Everything a write needs, captured when the call is made."""

    container: ContainerProxy
    action: WriteAction
    entity_id: str
    document_id: str
    partition_key: str
    body: dict[str, Any] | None = None
    operations: tuple[dict[str, Any], ...] = ()
    no_response: bool = False
    audit: bool = False
    user_id: str | None = None

    @classmethod
    def capture(
        cls,
        container: ContainerProxy,
        action: WriteAction,
        entity_id: str,
        document_id: str,
        partition_key: str,
        *,
        body: dict[str, Any] | None = None,
        operations: list[dict[str, Any]] | None = None,
        no_response: bool = False,
        audit: bool = False,
    ) -> "WriteSnapshot":
        """Deep-copy body and operations so later caller mutations are not seen."""
        return cls(
            container=container,
            action=action,
            entity_id=entity_id,
            document_id=document_id,
            partition_key=partition_key,
            body=copy.deepcopy(body),
            operations=tuple(copy.deepcopy(operations or [])),
            no_response=no_response,
            audit=audit,
        )

    @property
    def event_type(self) -> CrudEventType:
        return _AUDIT_EVENTS[self.action]


async def execute_write(snapshot: WriteSnapshot) -> dict[str, Any] | None:
    """Perform the store call. Returns the server's item, if it sent one."""
    container = snapshot.container
    if snapshot.action is WriteAction.CREATE:
        return await container.create_item(
            body=dict(snapshot.body or {}), no_response=snapshot.no_response
        )
    if snapshot.action is WriteAction.REPLACE:
        return await container.replace_item(
            item=snapshot.document_id,
            body=dict(snapshot.body or {}),
            no_response=snapshot.no_response,
        )
    if snapshot.action is WriteAction.PATCH:
        return await container.patch_item(
            item=snapshot.document_id,
            partition_key=snapshot.partition_key,
            patch_operations=list(snapshot.operations),
            no_response=snapshot.no_response,
        )
    try:
        await container.delete_item(item=snapshot.document_id, partition_key=snapshot.partition_key)
    except CosmosResourceNotFoundError:
        logger.debug("Delete of missing item %s treated as success", snapshot.entity_id)
    return None


class WriteDispatcher:
    """Routes writes inline or through the background queue."""

    def __init__(self, background_queue: BackgroundQueue, recorder: AuditRecorder | None) -> None:
        self._queue = background_queue
        self._recorder = recorder

    async def dispatch(
        self,
        snapshot: WriteSnapshot,
        *,
        use_queue: bool = False,
        audit_entity: Any = None,
        cancellation: CancellationToken | None = None,
    ) -> dict[str, Any] | None:
        """Execute or enqueue the write.

        Inline, returns the server's item and lets store errors propagate.
        Queued, returns None as soon as the snapshot is accepted.
        The inline audit payload is `audit_entity` if given, else the
        server's item, else the snapshot body.
        """
        if use_queue:
            if snapshot.audit and self._recorder is not None:
                snapshot = replace(snapshot, user_id=self._recorder.current_user_id())
            await self._queue.submit(snapshot, self._run_queued, cancellation)
            return None

        result = await execute_write(snapshot)
        if snapshot.audit:
            entity = audit_entity if audit_entity is not None else (result or snapshot.body)
            await self._audit(snapshot, entity, cancellation)
        return result

    async def _run_queued(
        self, snapshot: WriteSnapshot, cancellation: CancellationToken | None
    ) -> None:
        await execute_write(snapshot)
        if snapshot.audit:
            await self._audit(snapshot, snapshot.body, cancellation, inline=False)

    async def _audit(
        self,
        snapshot: WriteSnapshot,
        entity: Any,
        cancellation: CancellationToken | None,
        *,
        inline: bool = True,
    ) -> None:
        if self._recorder is None:
            return
        # A worker must not wait on its own queue.
        write = self._recorder.record if inline else self._recorder.write
        try:
            await write(
                snapshot.event_type,
                snapshot.entity_id,
                entity,
                cancellation,
                user_id=snapshot.user_id,
            )
        except Exception as e:
            # Audit failures never fail the data write.
            logger.error(
                "Failed to write %s audit for %s: %s",
                snapshot.event_type,
                snapshot.entity_id,
                e,
                exc_info=True,
            )
