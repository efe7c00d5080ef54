"""Kinds of data mutation recorded in the audit log."""

from enum import StrEnum


class CrudEventType(StrEnum):
    """Mutation event types."""

    CREATE = "Create"
    UPDATE = "Update"
    DELETE = "Delete"
