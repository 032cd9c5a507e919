"""Translation between catalog parameter specs and provider JSON Schema dialects."""

from __future__ import annotations

from typing import Any, Mapping

from mcp_bridge.catalog import ToolCatalog
from mcp_bridge.naming import PARALLEL_TOOL_NAME, sanitize
from mcp_bridge.provider import Provider
from mcp_bridge.types import ParamSpec, ParamType, Tool

__all__ = [
    "catalog_to_provider_tools",
    "parallel_tool_schema",
    "to_generic_schema",
    "to_json_schema",
    "to_provider_schema",
]


def _property(name: str, spec: ParamSpec) -> dict[str, Any]:
    prop: dict[str, Any] = {}
    if spec.type is not ParamType.ANY:
        prop["type"] = spec.type.value
    prop["description"] = spec.description or f"Parameter: {name}"
    if spec.type is ParamType.ARRAY:
        # items are untyped in the catalog; strings are the safest default
        prop["items"] = {"type": "string"}
    if spec.enum and spec.type.is_scalar:
        prop["enum"] = list(spec.enum)
    return prop


def to_json_schema(schema: Mapping[str, ParamSpec]) -> dict[str, Any]:
    """Object schema for a tool's parameters. Every parameter is required."""
    properties = {name: _property(name, spec) for name, spec in schema.items()}
    return {
        "type": "object",
        "properties": properties,
        "required": list(properties),
    }


def _wrap(dialect: Provider, name: str, description: str, parameters: dict[str, Any]) -> dict[str, Any]:
    if dialect is Provider.OPENAI:
        return {
            "type": "function",
            "function": {
                "name": name,
                "description": description,
                "parameters": parameters,
            },
        }
    if dialect is Provider.ANTHROPIC:
        return {
            "name": name,
            "description": description,
            "input_schema": parameters,
        }
    raise ValueError(f"Unsupported provider: {dialect}")


def to_provider_schema(tool: Tool, dialect: Provider) -> dict[str, Any]:
    """Provider tool definition for one catalog tool, under its sanitized name."""
    return _wrap(dialect, sanitize(tool.name), tool.description, to_json_schema(tool.schema))


def parallel_tool_schema(catalog: ToolCatalog, dialect: Provider) -> dict[str, Any]:
    """Definition of the fan-out pseudo-tool that runs several tools at once."""
    parameters = {
        "type": "object",
        "properties": {
            "tools_to_use": {
                "type": "array",
                "description": "The tool calls to run in parallel.",
                "items": {
                    "type": "object",
                    "properties": {
                        "tool_name": {
                            "type": "string",
                            "enum": [sanitize(name) for name in catalog.names()],
                        },
                        "parameters": {"type": "object"},
                    },
                    "required": ["tool_name", "parameters"],
                },
            },
        },
        "required": ["tools_to_use"],
    }
    return _wrap(
        dialect,
        PARALLEL_TOOL_NAME,
        "Use this to execute multiple tools in parallel",
        parameters,
    )


def catalog_to_provider_tools(catalog: ToolCatalog, dialect: Provider) -> list[dict[str, Any]]:
    """All catalog tools in catalog order, followed by the fan-out pseudo-tool."""
    tools = [to_provider_schema(tool, dialect) for tool in catalog]
    tools.append(parallel_tool_schema(catalog, dialect))
    return tools


def to_generic_schema(raw: Mapping[str, Any] | None) -> dict[str, ParamSpec]:
    """
    Convert a third-party parameter description into catalog ParamSpecs.

    Accepts a JSON Schema object (``{"type": "object", "properties": {...}}``)
    or the flat MCP map ``{param: {"type": ..., "description": ...}}``, where
    ``type`` may itself be nested as ``{"type": "string"}``. A missing type
    defaults to string.
    """
    if not raw:
        return {}
    if isinstance(raw.get("properties"), Mapping):
        properties = raw["properties"]
    elif raw.get("type") == "object":
        return {}
    else:
        properties = raw

    result: dict[str, ParamSpec] = {}
    for name, prop in properties.items():
        if not isinstance(prop, Mapping):
            prop = {}
        enum = prop.get("enum")
        result[name] = ParamSpec(
            type=ParamType.parse(prop.get("type")),
            description=str(prop.get("description") or ""),
            enum=tuple(enum) if isinstance(enum, (list, tuple)) and enum else None,
        )
    return result
