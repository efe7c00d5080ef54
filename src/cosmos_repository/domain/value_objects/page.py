"""One page of a continuation-token cursor."""

from dataclasses import dataclass, field
from typing import Generic, TypeVar

T = TypeVar("T")


@dataclass
class Page(Generic[T]):
    """Items of a single page and the token for the next one.

    A None token is the only end-of-results signal; a page may be empty
    while the token is still set.
    """

    items: list[T] = field(default_factory=list)
    continuation_token: str | None = None

    @property
    def has_more(self) -> bool:
        return self.continuation_token is not None
