from __future__ import annotations

import os
from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any, Final, Optional

from dotenv import load_dotenv

from mcp_bridge.errors import ConfigurationError

load_dotenv()


class Provider(StrEnum):
    OPENAI = "openai"
    ANTHROPIC = "anthropic"


_ENV_VARS: Final[dict[Provider, str]] = {
    Provider.OPENAI: "OPENAI_API_KEY",
    Provider.ANTHROPIC: "ANTHROPIC_API_KEY",
}


def get_api_key(provider: Provider) -> str:
    """Return the API key for *provider* or raise ConfigurationError."""
    try:
        env_var = _ENV_VARS[provider]
    except KeyError:
        raise ConfigurationError(f"No config for {provider!s}") from None

    key = os.environ.get(env_var)
    if not key:
        raise ConfigurationError(f"{env_var} missing")
    return key


@dataclass
class ProviderConfig:
    """Which LLM answers this turn, and how to reach it.

    ``client`` may hold a pre-configured ``AsyncOpenAI`` / ``AsyncAnthropic``
    instance; ``params`` are per-request options (temperature, max_tokens, ...).
    """

    kind: Provider
    model: Optional[str] = None
    api_key: Optional[str] = None
    base_url: Optional[str] = None
    client: Any = None
    params: dict[str, Any] = field(default_factory=dict)

    def resolve_api_key(self) -> str:
        """Explicit key, then the client's key, then the environment."""
        if self.api_key:
            return self.api_key
        client_key = getattr(self.client, "api_key", None)
        if client_key:
            return client_key
        return get_api_key(self.kind)


__all__ = ["Provider", "ProviderConfig", "get_api_key"]
