"""Unit tests for composite entity ids."""

import pytest

from cosmos_repository.domain.value_objects import CompositeId, join_id, split_id


@pytest.mark.parametrize(
    ("partition_key", "document_id"),
    [("tenant-1", "doc-9"), ("same", "same"), ("a", "b"), ("", "x")],
)
def test_split_join_round_trip(partition_key: str, document_id: str) -> None:
    """split(join(pk, id)) returns the original pair."""
    assert split_id(join_id(partition_key, document_id)) == (partition_key, document_id)


def test_join_collapses_equal_halves() -> None:
    """Equal halves join to a single part."""
    assert join_id("abc", "abc") == "abc"


def test_join_uses_delimiter() -> None:
    """Distinct halves are joined with a colon."""
    assert join_id("tenant", "doc") == "tenant:doc"


def test_split_without_delimiter_returns_input_twice() -> None:
    """An id without a colon is both partition key and document id."""
    assert split_id("abc") == ("abc", "abc")


def test_split_uses_first_delimiter() -> None:
    """Extra colons stay in the document id half."""
    assert split_id("a:b:c") == ("a", "b:c")


def test_composite_id_parse_and_str() -> None:
    """CompositeId parses an entity id and prints it back."""
    composite = CompositeId.parse("tenant:doc")
    assert composite.partition_key == "tenant"
    assert composite.document_id == "doc"
    assert composite.entity_id == "tenant:doc"
    assert str(composite) == "tenant:doc"


def test_composite_id_is_immutable() -> None:
    """CompositeId fields cannot be reassigned."""
    composite = CompositeId("p", "d")
    with pytest.raises(AttributeError):
        composite.partition_key = "other"  # type: ignore[misc]
