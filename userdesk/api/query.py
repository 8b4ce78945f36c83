"""Query-string construction for user API list requests."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any
from urllib.parse import quote

# Characters left unescaped by JavaScript's encodeURIComponent.
_UNRESERVED = "-_.!~*'()"


def build_query_string(params: Mapping[str, Any]) -> str:
    """Serialize non-empty parameters into `?k=v&...`, keeping insertion order."""
    pairs = [
        f"{_encode(key)}={_encode(value)}"
        for key, value in params.items()
        if value is not None and value != ""
    ]
    if not pairs:
        return ""
    return "?" + "&".join(pairs)


def _encode(value: Any) -> str:
    if isinstance(value, bool):
        value = "true" if value else "false"
    return quote(str(value), safe=_UNRESERVED)
