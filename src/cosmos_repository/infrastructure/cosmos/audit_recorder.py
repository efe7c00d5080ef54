"""Audit records for data mutations, written on the background path."""

import json
import logging
import uuid
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any

from azure.cosmos.aio import ContainerProxy

from cosmos_repository.application.ports import BackgroundQueue, ContainerResolver, UserContext
from cosmos_repository.domain.entities import AuditRecord, Document
from cosmos_repository.domain.value_objects import CancellationToken, CrudEventType, split_id

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class _AuditWrite:
    """Snapshot handed to the queue: no live references to caller objects."""

    container: ContainerProxy
    body: dict[str, Any]


async def _write_audit(state: _AuditWrite, cancellation: CancellationToken | None) -> None:
    await state.container.create_item(body=state.body, no_response=True)


def build_record(
    event_type: CrudEventType,
    entity_id: str,
    entity: Any,
    user_id: str | None,
    entity_type: str,
) -> AuditRecord:
    """Build an audit record. Deterministic except for the id and timestamp."""
    _, document_id = split_id(entity_id)
    return AuditRecord(
        document_id=str(uuid.uuid4()),
        partition_key=document_id,
        entity_id=entity_id,
        entity_type=entity_type,
        entity=entity,
        event_type=event_type,
        user_id=user_id,
        created_at=datetime.now(UTC),
    )


class AuditRecorder:
    """Builds audit records and writes them to the audit container.

    `record` enqueues the write; `write` performs it directly and is meant
    for work already running on a queue worker.
    """

    def __init__(
        self,
        entity_type: str,
        container_resolver: ContainerResolver,
        background_queue: BackgroundQueue,
        user_context: UserContext,
        audit_container_name: str = "audits",
        log_records: bool = False,
    ) -> None:
        self._entity_type = entity_type
        self._resolver = container_resolver
        self._queue = background_queue
        self._user_context = user_context
        self._container_name = audit_container_name
        self._log_records = log_records

    def current_user_id(self) -> str | None:
        """Ambient user id of the calling task."""
        return self._user_context.get_id_or_none()

    def _prepare(
        self,
        event_type: CrudEventType,
        entity_id: str,
        entity: Document | dict[str, Any] | str | None,
        user_id: str | None,
    ) -> AuditRecord:
        if isinstance(entity, Document):
            entity = entity.to_item()
        elif isinstance(entity, str):
            entity = json.loads(entity) if entity.strip() else None

        record = build_record(
            event_type,
            entity_id,
            entity,
            user_id if user_id is not None else self.current_user_id(),
            self._entity_type,
        )
        if self._log_records:
            logger.debug(
                "-- COSMOS: audit (%s): %s",
                self._entity_type,
                json.dumps(record.to_item(), indent=2, default=str),
            )
        return record

    async def record(
        self,
        event_type: CrudEventType,
        entity_id: str,
        entity: Document | dict[str, Any] | str | None = None,
        cancellation: CancellationToken | None = None,
        *,
        user_id: str | None = None,
    ) -> AuditRecord:
        """Build a record for the mutation and enqueue its write.

        `entity` may be a document, an item body or serialized JSON text.
        `user_id` defaults to the ambient user of the calling task.
        """
        record = self._prepare(event_type, entity_id, entity, user_id)
        container = await self._resolver.get(self._container_name, cancellation)
        await self._queue.submit(
            _AuditWrite(container=container, body=record.to_item()), _write_audit, cancellation
        )
        return record

    async def write(
        self,
        event_type: CrudEventType,
        entity_id: str,
        entity: Document | dict[str, Any] | str | None = None,
        cancellation: CancellationToken | None = None,
        *,
        user_id: str | None = None,
    ) -> AuditRecord:
        """Build a record and write it directly, without the queue.

        For work already running on a queue worker, which must not wait on
        its own queue.
        """
        record = self._prepare(event_type, entity_id, entity, user_id)
        container = await self._resolver.get(self._container_name, cancellation)
        await _write_audit(_AuditWrite(container=container, body=record.to_item()), cancellation)
        return record
