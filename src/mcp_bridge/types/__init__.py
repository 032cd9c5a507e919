from .chat import ChatMessage, ChatResponse
from .tool import (
    LocalExecution,
    ParamSpec,
    ParamType,
    RemoteExecution,
    Tool,
    ToolCallRequest,
    ToolCallResult,
    ToolExecution,
)

__all__ = [
    "ChatMessage",
    "ChatResponse",
    "LocalExecution",
    "ParamSpec",
    "ParamType",
    "RemoteExecution",
    "Tool",
    "ToolCallRequest",
    "ToolCallResult",
    "ToolExecution",
]
