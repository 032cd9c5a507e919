"""Runtime settings, read from the environment (and a local ``.env``)."""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Mapping, Optional

from dotenv import load_dotenv

from mcp_bridge.errors import ConfigurationError

_PREFIX = "MCP_BRIDGE_"
_TRUTHY = {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class BridgeSettings:
    """Knobs for tool execution and provider calls.

    Attributes:
        request_timeout: Seconds allowed for one remote ``/execute`` or ``/tools`` call.
        tool_timeout: Seconds allowed for one local handler.
        max_concurrency: Upper bound on tool calls running at once within a round.
        weather_fallback: Answer weather lookups with placeholder data when the
            weather API fails. Off by default so failures are not masked.
        default_openai_model: Model used when ProviderConfig.model is empty.
        default_anthropic_model: Same, for Anthropic.
        max_tokens: Completion budget sent to providers that require one.
    """

    request_timeout: float = 30.0
    tool_timeout: float = 15.0
    max_concurrency: int = 8
    weather_fallback: bool = False
    default_openai_model: str = "gpt-4o"
    default_anthropic_model: str = "claude-3-5-sonnet-20241022"
    max_tokens: int = 4096

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "BridgeSettings":
        """Build settings from ``MCP_BRIDGE_*`` variables, falling back to defaults."""
        if environ is None:
            load_dotenv()
            environ = os.environ

        def get(name: str) -> Optional[str]:
            value = environ.get(_PREFIX + name)
            return value if value not in (None, "") else None

        defaults = cls()
        try:
            return cls(
                request_timeout=float(get("REQUEST_TIMEOUT") or defaults.request_timeout),
                tool_timeout=float(get("TOOL_TIMEOUT") or defaults.tool_timeout),
                max_concurrency=int(get("MAX_CONCURRENCY") or defaults.max_concurrency),
                weather_fallback=(get("WEATHER_FALLBACK") or "").lower() in _TRUTHY,
                default_openai_model=get("DEFAULT_OPENAI_MODEL") or defaults.default_openai_model,
                default_anthropic_model=get("DEFAULT_ANTHROPIC_MODEL")
                or defaults.default_anthropic_model,
                max_tokens=int(get("MAX_TOKENS") or defaults.max_tokens),
            )
        except ValueError as exc:
            raise ConfigurationError(f"Invalid {_PREFIX}* setting: {exc}") from exc

    def __post_init__(self) -> None:
        if self.max_concurrency < 1:
            raise ConfigurationError("max_concurrency must be at least 1")
        if self.request_timeout <= 0 or self.tool_timeout <= 0:
            raise ConfigurationError("timeouts must be positive")


__all__ = ["BridgeSettings"]
