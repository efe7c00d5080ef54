"""Readable query text for debug logging."""

import json
import re
from datetime import datetime
from typing import Any

_TOKEN_RE = re.compile(r"@[A-Za-z0-9_]+")


def _format_value(value: Any) -> str:
    if value is None:
        return "null"
    if isinstance(value, str):
        return f'"{value}"'
    if isinstance(value, datetime):
        return f'"{value.isoformat()}"'
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (list, dict)):
        return json.dumps(value, default=str)
    return str(value)


def build_query_log_text(query_text: str, parameters: list[dict[str, Any]] | None) -> str:
    """Inline `@name` parameter values into the query text.

    Unknown tokens and a bare `@` are left as they are.
    """
    if not parameters:
        return query_text
    values = {p["name"]: p.get("value") for p in parameters}

    def _sub(match: re.Match[str]) -> str:
        token = match.group(0)
        if token in values:
            return _format_value(values[token])
        return token

    return _TOKEN_RE.sub(_sub, query_text)
