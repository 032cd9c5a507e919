"""Tool catalog: one ordered, name-unique snapshot of every tool a turn may use."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import IntEnum
from typing import Iterable, Iterator, Sequence

from mcp_bridge.errors import ToolNotFound
from mcp_bridge.naming import INTROSPECTION_TOOL_NAME
from mcp_bridge.types import LocalExecution, ParamSpec, ParamType, Tool

__all__ = [
    "SourceKind",
    "ToolSource",
    "ToolCatalog",
    "build_catalog",
    "builtin_tools",
    "introspection_tool",
]

logger = logging.getLogger(__name__)


class SourceKind(IntEnum):
    """Priority of a tool source; higher values are applied later and win."""

    DECLARED = 0
    NODE = 1
    WORKFLOW = 2
    BUILTIN = 3


@dataclass(frozen=True)
class ToolSource:
    kind: SourceKind
    tools: Sequence[Tool] = field(default_factory=tuple)


class ToolCatalog:
    """Immutable, insertion-ordered view over tools keyed by canonical name."""

    def __init__(self, tools: Iterable[Tool] = ()) -> None:
        by_name: dict[str, Tool] = {}
        for tool in tools:
            by_name[tool.name] = tool
        self._tools = by_name

    def list(self) -> list[Tool]:
        return list(self._tools.values())

    def names(self) -> list[str]:
        return list(self._tools)

    def get(self, name: str) -> Tool:
        try:
            return self._tools[name]
        except KeyError:
            raise ToolNotFound(name) from None

    @property
    def is_empty(self) -> bool:
        """True when nothing but the reserved introspection tool is present."""
        return not any(name != INTROSPECTION_TOOL_NAME for name in self._tools)

    def __contains__(self, name: object) -> bool:
        return name in self._tools

    def __iter__(self) -> Iterator[Tool]:
        return iter(self._tools.values())

    def __len__(self) -> int:
        return len(self._tools)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.names()!r})"


def introspection_tool() -> Tool:
    """The reserved tool that lets a model list what it can actually call."""
    return Tool(
        name=INTROSPECTION_TOOL_NAME,
        description=(
            "Get a comprehensive list of all tools available on this MCP server. "
            "Use this tool when the user asks what tools are available, what "
            "capabilities the assistant has, or what functions can be performed."
        ),
        schema={
            "category": ParamSpec(
                type=ParamType.STRING,
                description=(
                    "Optional category filter (e.g., 'weather', 'database'). "
                    "Leave empty to list all tools."
                ),
            ),
        },
        execution=LocalExecution(INTROSPECTION_TOOL_NAME),
    )


def builtin_tools() -> ToolSource:
    """Locally handled tools that need no backend server."""
    return ToolSource(
        kind=SourceKind.BUILTIN,
        tools=(
            Tool(
                name="weather",
                description=(
                    "Get current weather information for any city or location worldwide. "
                    "Use this tool whenever a user asks about weather, temperature, "
                    "conditions, humidity, or wind for a specific location."
                ),
                schema={
                    "city": ParamSpec(
                        type=ParamType.STRING,
                        description=(
                            "The name of the city or location to get weather information "
                            "for. Examples: 'Paris', 'New York', 'Tokyo'."
                        ),
                    ),
                },
                execution=LocalExecution("weather"),
            ),
            Tool(
                name="calculator",
                description="Evaluate an arithmetic expression such as '(2 + 3) * 4 / 5'.",
                schema={
                    "expression": ParamSpec(
                        type=ParamType.STRING,
                        description="Arithmetic expression using numbers, + - * / // % ** and parentheses.",
                    ),
                },
                execution=LocalExecution("calculator"),
            ),
        ),
    )


def build_catalog(
    sources: Iterable[ToolSource],
    exclude: Iterable[str] = (),
) -> ToolCatalog:
    """
    Merge tool sources into one catalog snapshot.

    Sources are applied in SourceKind order (stable for equal kinds); a later
    tool replaces an earlier one of the same name in place. Excluded names are
    dropped whatever their source. The introspection tool is always added last
    and cannot be excluded.
    """
    excluded = set(exclude)
    merged: dict[str, Tool] = {}

    for source in sorted(sources, key=lambda s: s.kind):
        for tool in source.tools:
            if tool.name in excluded:
                logger.debug("Excluding tool %s from %s source", tool.name, source.kind.name)
                continue
            if tool.name in merged:
                logger.debug("Tool %s overridden by %s source", tool.name, source.kind.name)
            merged[tool.name] = tool

    if merged.pop(INTROSPECTION_TOOL_NAME, None) is not None:
        logger.debug("Replacing caller-supplied %s with the built-in one", INTROSPECTION_TOOL_NAME)
    merged[INTROSPECTION_TOOL_NAME] = introspection_tool()

    catalog = ToolCatalog(merged.values())
    logger.info("Built tool catalog with %d tools", len(catalog))
    return catalog
