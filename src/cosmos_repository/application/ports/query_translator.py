"""Query translator port - OData options to Cosmos SQL."""

from typing import Any, Protocol

from cosmos_repository.domain.value_objects import QuerySpec


class QueryTranslator(Protocol):
    """Port for translating OData query options into query text."""

    def translate(self, odata_options: Any, source_query: QuerySpec) -> str: ...
