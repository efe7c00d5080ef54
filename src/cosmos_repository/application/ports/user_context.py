"""Ambient user context port."""

from typing import Protocol


class UserContext(Protocol):
    """Port for the current user, used for audit attribution."""

    def get_id_or_none(self) -> str | None: ...
