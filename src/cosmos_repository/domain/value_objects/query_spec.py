"""Immutable, composable Cosmos SQL query description."""

import re
from dataclasses import dataclass, replace
from datetime import datetime
from enum import Enum
from typing import Any

_FIELD_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*(\.[A-Za-z_][A-Za-z0-9_]*)*$")
_PARAM_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


def _check_field(name: str) -> str:
    if not _FIELD_RE.match(name):
        raise ValueError(f"Invalid field name '{name}'")
    return name


def _param_value(value: Any) -> Any:
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, (list, tuple)):
        return [_param_value(v) for v in value]
    return value


@dataclass(frozen=True)
class QuerySpec:
    """Query over the container alias `c`.

    Each builder method returns a new spec; a spec never changes after
    creation, so one can be shared as a base for several queries.
    """

    projection: str = "*"
    conditions: tuple[str, ...] = ()
    parameters: tuple[tuple[str, Any], ...] = ()
    order: tuple[str, ...] = ()
    top: int | None = None
    distinct: bool = False
    partition_key: str | None = None
    max_item_count: int | None = None
    continuation_token: str | None = None
    raw_text: str | None = None

    @classmethod
    def raw(cls, query_text: str, parameters: dict[str, Any] | None = None) -> "QuerySpec":
        """Wrap hand-written query text. Raw specs can be scoped and paged, not composed."""
        params = tuple(
            (name if name.startswith("@") else f"@{name}", value)
            for name, value in (parameters or {}).items()
        )
        return cls(raw_text=query_text, parameters=params)

    @property
    def is_raw(self) -> bool:
        return self.raw_text is not None

    def _composable(self) -> None:
        if self.raw_text is not None:
            raise ValueError("Raw query text cannot be composed")

    def where(self, condition: str, **params: Any) -> "QuerySpec":
        """Add an AND condition; `params` bind `@name` tokens in it."""
        self._composable()
        new_params = list(self.parameters)
        for name, value in params.items():
            if not _PARAM_RE.match(name):
                raise ValueError(f"Invalid parameter name '{name}'")
            new_params.append((f"@{name}", value))
        return replace(
            self,
            conditions=self.conditions + (condition,),
            parameters=tuple(new_params),
        )

    def where_equals(self, field: str, value: Any) -> "QuerySpec":
        name = f"p{len(self.parameters)}"
        return self.where(f"c.{_check_field(field)} = @{name}", **{name: value})

    def order_by(self, field: str, descending: bool = False) -> "QuerySpec":
        self._composable()
        direction = "DESC" if descending else "ASC"
        return replace(self, order=self.order + (f"c.{_check_field(field)} {direction}",))

    def unordered(self) -> "QuerySpec":
        self._composable()
        return replace(self, order=())

    def select(self, projection: str, distinct: bool = False) -> "QuerySpec":
        self._composable()
        return replace(self, projection=projection, distinct=distinct)

    def take(self, count: int) -> "QuerySpec":
        self._composable()
        if count < 1:
            raise ValueError("count must be positive")
        return replace(self, top=count)

    def with_partition_key(self, partition_key: str | None) -> "QuerySpec":
        return replace(self, partition_key=partition_key)

    def with_paging(
        self, max_item_count: int | None, continuation_token: str | None = None
    ) -> "QuerySpec":
        if max_item_count is not None and max_item_count < 1:
            raise ValueError("max_item_count must be positive")
        return replace(
            self,
            max_item_count=max_item_count,
            continuation_token=continuation_token,
        )

    @property
    def query_text(self) -> str:
        if self.raw_text is not None:
            return self.raw_text
        parts = ["SELECT"]
        if self.distinct:
            parts.append("DISTINCT")
        if self.top is not None:
            parts.append(f"TOP {self.top}")
        parts.append(self.projection)
        parts.append("FROM c")
        if self.conditions:
            parts.append("WHERE " + " AND ".join(f"({c})" for c in self.conditions))
        if self.order:
            parts.append("ORDER BY " + ", ".join(self.order))
        return " ".join(parts)

    @property
    def query_parameters(self) -> list[dict[str, Any]]:
        return [{"name": name, "value": _param_value(value)} for name, value in self.parameters]

    def __str__(self) -> str:
        return self.query_text
