"""
Provider‑neutral dataclasses for tools, their parameters and tool calls.

They are intentionally minimal: everything provider‑specific lives in adapters.
"""
from __future__ import annotations

import json
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Mapping, Optional, Union

__all__ = [
    "ParamType",
    "ParamSpec",
    "RemoteExecution",
    "LocalExecution",
    "ToolExecution",
    "Tool",
    "ToolCallRequest",
    "ToolCallResult",
]


class ParamType(str, Enum):
    """Shape of a single tool parameter."""

    STRING = "string"
    NUMBER = "number"
    BOOLEAN = "boolean"
    ARRAY = "array"
    OBJECT = "object"
    ANY = "any"

    @classmethod
    def parse(cls, value: Any) -> "ParamType":
        """
        Parse a loosely typed schema ``type`` entry.

        Accepts plain strings (``"string"``), the legacy nested form
        (``{"type": "string"}``) and JSON Schema's ``"integer"``. Anything
        missing defaults to STRING; anything unknown becomes ANY.
        """
        if isinstance(value, Mapping):
            value = value.get("type")
        if value is None or value == "":
            return cls.STRING
        if isinstance(value, list):
            # JSON Schema unions like ["string", "null"]
            concrete = [v for v in value if v != "null"]
            return cls.parse(concrete[0]) if len(concrete) == 1 else cls.ANY
        if value == "integer":
            return cls.NUMBER
        try:
            return cls(str(value).lower())
        except ValueError:
            return cls.ANY

    @property
    def is_scalar(self) -> bool:
        return self in (ParamType.STRING, ParamType.NUMBER, ParamType.BOOLEAN)


@dataclass(frozen=True, slots=True)
class ParamSpec:
    """Description of one tool parameter. Every declared parameter is required."""

    type: ParamType = ParamType.STRING
    description: str = ""
    enum: Optional[tuple[Any, ...]] = None


@dataclass(frozen=True, slots=True)
class RemoteExecution:
    """Run the tool through ``POST {url}/execute``; ``None`` means the turn's server URL."""

    url: Optional[str] = None


@dataclass(frozen=True, slots=True)
class LocalExecution:
    """Run the tool with a handler from the built-in handler registry."""

    handler_id: str


ToolExecution = Union[RemoteExecution, LocalExecution]


@dataclass(frozen=True, slots=True)
class Tool:
    """A named, schema-described capability a model may invoke."""

    name: str
    description: str = ""
    schema: Mapping[str, ParamSpec] = field(default_factory=dict)
    execution: ToolExecution = field(default_factory=RemoteExecution)

    @property
    def is_local(self) -> bool:
        return isinstance(self.execution, LocalExecution)


@dataclass(slots=True)
class ToolCallRequest:
    """A model‑agnostic request emitted by the LLM to call a tool."""

    id: str
    name: str  # as issued by the provider, possibly sanitized
    arguments: dict[str, Any]


@dataclass(slots=True)
class ToolCallResult:
    """Outcome of one tool call, handed back to the LLM in the next round."""

    id: str  # must match the request id
    tool_name: str  # canonical catalog name
    ok: bool
    value: Any = None
    error_text: Optional[str] = None

    @classmethod
    def success(cls, id: str, tool_name: str, value: Any) -> "ToolCallResult":
        return cls(id=id, tool_name=tool_name, ok=True, value=value)

    @classmethod
    def failure(cls, id: str, tool_name: str, error_text: str) -> "ToolCallResult":
        return cls(id=id, tool_name=tool_name, ok=False, error_text=error_text)

    @property
    def content(self) -> str:
        """Text sent to the model as the tool result content."""
        if not self.ok:
            return json.dumps({"error": self.error_text})
        if isinstance(self.value, str):
            return self.value
        return json.dumps(self.value, default=str)
