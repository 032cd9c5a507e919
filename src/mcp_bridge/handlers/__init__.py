"""Fixed registry of in-process tool handlers.

Tools with ``LocalExecution(handler_id)`` are dispatched here. The registry is
a plain mapping built at import time; nothing is compiled from request data.
"""

from __future__ import annotations

from dataclasses import dataclass
from types import MappingProxyType
from typing import TYPE_CHECKING, Any, Awaitable, Callable, Mapping

import httpx

from mcp_bridge.naming import INTROSPECTION_TOOL_NAME
from mcp_bridge.settings import BridgeSettings

from .calculator import evaluate
from .introspection import describe_tools, introspection_handler
from .weather import weather_handler

if TYPE_CHECKING:
    from mcp_bridge.catalog import ToolCatalog


@dataclass(frozen=True)
class HandlerContext:
    """Read-only state a local handler may use for the duration of one call."""

    catalog: "ToolCatalog"
    settings: BridgeSettings
    http_client: httpx.AsyncClient


ToolHandler = Callable[[dict[str, Any], HandlerContext], Awaitable[Any]]


async def calculator_handler(arguments: dict[str, Any], context: HandlerContext) -> dict[str, Any]:
    return {"result": evaluate(arguments.get("expression", ""))}


DEFAULT_HANDLERS: Mapping[str, ToolHandler] = MappingProxyType(
    {
        INTROSPECTION_TOOL_NAME: introspection_handler,
        "weather": weather_handler,
        "calculator": calculator_handler,
    }
)

__all__ = [
    "DEFAULT_HANDLERS",
    "HandlerContext",
    "ToolHandler",
    "calculator_handler",
    "describe_tools",
    "evaluate",
    "introspection_handler",
    "weather_handler",
]
