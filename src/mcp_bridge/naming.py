"""Mapping between canonical tool names and the provider-safe name alphabet."""

from __future__ import annotations

import re
from typing import TYPE_CHECKING, Final, Iterable

if TYPE_CHECKING:
    from mcp_bridge.catalog import ToolCatalog

__all__ = [
    "INTROSPECTION_TOOL_NAME",
    "PARALLEL_TOOL_NAME",
    "NameResolver",
    "resolve",
    "sanitize",
]

INTROSPECTION_TOOL_NAME: Final = "list_available_tools"
PARALLEL_TOOL_NAME: Final = "multi_tool_use_parallel"

_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9_-]")


def sanitize(name: str) -> str:
    """Replace every character providers reject in tool names with ``_``."""
    return _UNSAFE_CHARS.sub("_", name)


def resolve(catalog: "ToolCatalog | Iterable[str]", safe_name: str) -> str:
    """Map a provider-issued name back to its canonical catalog name.

    Exact match first, then a reverse search over sanitized catalog names;
    unknown names are passed through unchanged.
    """
    names = catalog.names() if hasattr(catalog, "names") else list(catalog)
    if safe_name in names:
        return safe_name
    for name in names:
        if sanitize(name) == safe_name:
            return name
    return safe_name


class NameResolver:
    """Per-turn lookup table for :func:`resolve`.

    Catalog names are assumed unique after sanitization; on a collision the
    first name in catalog order wins.
    """

    def __init__(self, catalog: "ToolCatalog | Iterable[str]") -> None:
        names = catalog.names() if hasattr(catalog, "names") else list(catalog)
        self._canonical = frozenset(names)
        self._reverse: dict[str, str] = {}
        for name in names:
            self._reverse.setdefault(sanitize(name), name)

    def resolve(self, safe_name: str) -> str:
        if safe_name in self._canonical:
            return safe_name
        return self._reverse.get(safe_name, safe_name)

    def is_known(self, safe_name: str) -> bool:
        return self.resolve(safe_name) in self._canonical
