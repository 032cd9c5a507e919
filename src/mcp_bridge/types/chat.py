"""Chat message and response types shared by every provider."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional

from mcp_bridge.errors import ProviderError
from mcp_bridge.types.tool import ToolCallRequest

__all__ = ["ChatMessage", "ChatResponse"]


# Type alias for chat messages
ChatMessage = dict[str, Any]


@dataclass
class ChatResponse:
    """Unified response object for all LLM providers."""

    content: str
    tool_calls: list[ToolCallRequest] | None = None
    raw: Any = None
    error: Optional[str] = None
    # provider-form assistant message to replay in the next round
    assistant_message: ChatMessage | None = None
    exception: Optional[BaseException] = None

    @property
    def is_error(self) -> bool:
        return self.error is not None

    @property
    def has_tool_calls(self) -> bool:
        return bool(self.tool_calls)

    def raise_for_error(self) -> None:
        if self.is_error:
            raise ProviderError(self.error or "provider error", self.exception)
