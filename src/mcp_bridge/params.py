"""
Parameter normalization for mcp-bridge.

Public API
- Callers put per-request options in `ProviderConfig.params`.

Contract
- Standard keys work across providers:
  temperature: float
  max_tokens: int
  top_p: float
  stop: str | list[str]
  user: str
  seed: int
  parallel_tool_calls: bool

- Provider specific keys go under `extra` and pass through unchanged.
  Examples:
    extra.reasoning_effort: "low" | "medium" | "high"
    extra.metadata: dict

- `messages`, `model`, `tools`, `tool_choice` and `stream` are owned by the
  bridge; passing them is a configuration error.

Unknown top-level keys are moved into extra.
Unknown extra keys are forwarded as-is.
"""

from __future__ import annotations

from typing import Any

from mcp_bridge.errors import ConfigurationError

STANDARD_KEYS = {
    "temperature",
    "max_tokens",
    "top_p",
    "stop",
    "user",
    "seed",
    "parallel_tool_calls",
    "frequency_penalty",
    "presence_penalty",
}

RESERVED_KEYS = {"messages", "model", "tools", "tool_choice", "stream"}


def normalize_params(params: dict[str, Any] | None) -> dict[str, Any]:
    """
    Normalize a user-supplied params dict to a single internal shape.

    Returns a dict with only standard keys plus an `extra` dict.
    Rules:
      - Keys not in STANDARD_KEYS are moved into extra
      - If the caller already passed an `extra` dict it is merged last
      - None values are dropped

    Example
    -------
    >>> normalize_params({"temperature": 0.2, "reasoning_effort": "high"})
    {'temperature': 0.2, 'extra': {'reasoning_effort': 'high'}}
    """
    if params is None:
        return {"extra": {}}
    if not isinstance(params, dict):
        raise ConfigurationError(f"params must be a dict, got {type(params).__name__}")

    user_extra = params.get("extra") or {}
    if not isinstance(user_extra, dict):
        raise ConfigurationError("params['extra'] must be a dict")

    reserved = RESERVED_KEYS.intersection(params) | RESERVED_KEYS.intersection(user_extra)
    if reserved:
        raise ConfigurationError(
            f"params may not set {', '.join(sorted(reserved))}; the bridge controls them"
        )

    std: dict[str, Any] = {}
    extra: dict[str, Any] = {}
    for key, value in params.items():
        if key == "extra" or value is None:
            continue
        if key in STANDARD_KEYS:
            std[key] = value
        else:
            extra[key] = value

    # moved unknowns first, then user-provided extra wins
    std["extra"] = {**extra, **user_extra}
    return std
