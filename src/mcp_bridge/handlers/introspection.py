"""Handler for the reserved tool-listing tool."""

from __future__ import annotations

from typing import Any

from mcp_bridge.naming import INTROSPECTION_TOOL_NAME
from mcp_bridge.types import Tool


def _matches(tool: Tool, category: str) -> bool:
    return category in tool.name.lower() or category in (tool.description or "").lower()


def describe_tools(tools: list[Tool], category: str | None = None) -> dict[str, Any]:
    """Enumerate *tools*, optionally keeping only those whose name or description mention *category*."""
    needle = (category or "").strip().lower()
    selected = [
        t for t in tools
        if t.name != INTROSPECTION_TOOL_NAME and (not needle or _matches(t, needle))
    ]

    formatted = []
    for tool in selected:
        params = ""
        if tool.schema:
            params = "\nParameters:\n" + "\n".join(
                f"- {name}: {spec.description or 'No description'}"
                for name, spec in tool.schema.items()
            )
        formatted.append(
            {
                "name": tool.name,
                "description": tool.description or "No description available",
                "parameters": params,
            }
        )

    readable = "\n\n".join(
        f"Tool: {t['name']}\nDescription: {t['description']}{t['parameters']}" for t in formatted
    )
    heading = f'Available tools in category "{needle}"' if needle else "Available tools"
    return {
        "total_tools": len(formatted),
        "category": needle or "all",
        "tools": formatted,
        "formatted_response": f"{heading}:\n\n{readable}",
    }


async def introspection_handler(arguments: dict[str, Any], context: Any) -> dict[str, Any]:
    category = arguments.get("category")
    return describe_tools(context.catalog.list(), category if isinstance(category, str) else None)
