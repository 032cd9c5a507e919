"""
Error taxonomy for the bridge, plus translation of noisy provider tracebacks
into a unified `ProviderError` that preserves the original exception.
"""

from __future__ import annotations

import logging
from typing import Any, Final, Optional, Type

import anthropic
import httpx
import openai

__all__: tuple[str, ...] = (
    "BridgeError",
    "ConfigurationError",
    "ToolNotFound",
    "ToolExecutionError",
    "MCPServerError",
    "ProviderError",
    "classify_error",
)


class BridgeError(RuntimeError):
    """Base class for every error the bridge raises on purpose."""

    code: str = "bridge_error"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict[str, Any]:
        """Structured form returned to callers on fatal errors."""
        return {"code": self.code, "message": self.message}


class ConfigurationError(BridgeError):
    """Missing server URL or API key, malformed URL, empty catalog."""

    code = "configuration_error"


class ToolNotFound(BridgeError):
    """A tool name that maps to no catalog entry."""

    code = "tool_not_found"

    def __init__(self, name: str) -> None:
        super().__init__(f"Tool not found: {name}")
        self.name = name


class ToolExecutionError(BridgeError):
    """A tool ran and failed. Always recovered into a failed ToolCallResult."""

    code = "tool_execution_error"


class MCPServerError(BridgeError):
    """The MCP server could not list its tools."""

    code = "mcp_server_error"


class ProviderError(BridgeError):
    """The completion API itself failed.

    Attributes:
        original_exc: The underlying provider exception, if any.
    """

    code = "provider_error"

    def __init__(self, message: str, original_exc: Optional[BaseException] = None) -> None:
        super().__init__(message)
        self.original_exc = original_exc
        self.__cause__ = original_exc


RATE_LIMIT_ERRORS: Final[tuple[Type[Exception], ...]] = (
    openai.RateLimitError,
    anthropic.RateLimitError,
)

CONN_ERRORS: Final[tuple[Type[Exception], ...]] = (
    openai.APIConnectionError,
    anthropic.APIConnectionError,
    httpx.TransportError,
    TimeoutError,
    ConnectionError,
)

API_ERRORS: Final[tuple[Type[Exception], ...]] = (
    openai.APIError,
    anthropic.APIError,
)


def classify_error(
    exc: BaseException,
    logger: Optional[logging.Logger] = None,
) -> ProviderError:
    """Wrap an SDK exception in ProviderError with a friendly, concise message."""
    log = logger or logging.getLogger("mcp_bridge.errors")

    if isinstance(exc, ProviderError):
        return exc

    # order matters: rate-limit and connection errors subclass APIError
    if isinstance(exc, RATE_LIMIT_ERRORS):
        msg = "Rate-limit exceeded, please retry later"
    elif isinstance(exc, CONN_ERRORS):
        msg = "Connection problem, unable to reach the LLM provider"
    elif isinstance(exc, API_ERRORS):
        status = getattr(exc, "status_code", None)
        msg = f"API error ({status})" if status is not None else "Provider reported an error"
    else:
        msg = exc.__class__.__name__

    log.warning("Wrapping provider exception: %s: %s", msg, exc)
    return ProviderError(f"{msg}: {exc}", exc)
