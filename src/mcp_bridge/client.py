"""
LLM clients that run one "complete with tools" round against a provider.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Any, Optional, Protocol, Self, Sequence

from anthropic import AsyncAnthropic
from anthropic.types import Message
from openai import AsyncOpenAI
from openai.types.chat import ChatCompletion

from mcp_bridge.adapters import AnthropicRequestAdapter, OpenAIRequestAdapter
from mcp_bridge.errors import ConfigurationError, classify_error
from mcp_bridge.params import normalize_params
from mcp_bridge.provider import Provider, ProviderConfig
from mcp_bridge.settings import BridgeSettings
from mcp_bridge.types import ChatMessage, ChatResponse, ToolCallResult

__all__ = [
    "DEFAULT_SYSTEM_PROMPT",
    "RequestAdapter",
    "BaseAsyncLLM",
    "OpenAILLM",
    "AnthropicLLM",
    "create_llm",
]

DEFAULT_SYSTEM_PROMPT = """You are an AI assistant with access to external tools through the Model Context Protocol (MCP).

When asked about available tools or capabilities, use the list_available_tools tool to provide accurate information about what tools are available.

NEVER invent tools or capabilities you don't have. ALWAYS use the list_available_tools tool to check what's available when asked about your capabilities.

ALWAYS USE TOOLS when they can help answer a user's question, and prefer the real tool results over your own knowledge. Present information from tools in a clear, readable format.

For weather-related queries, use the weather tool with the specific city mentioned. Present all available data from the result.

If a tool call fails, explain what went wrong to the user."""


class RequestAdapter(Protocol):
    """Protocol for adapting between generic chat format and provider-specific format."""

    resend_tools: bool

    def to_provider(
        self,
        messages: Sequence[ChatMessage],
        params: dict[str, Any],
        tools: Sequence[dict[str, Any]] | None = None,
    ) -> dict[str, Any]:
        """Convert generic messages, normalized params and tools to a provider request."""
        ...

    def from_provider(self, raw: Any) -> ChatResponse:
        """Convert provider response to unified ChatResponse."""
        ...

    def assistant_message_from(self, raw: Any) -> ChatMessage:
        """Convert a provider response to a provider-specific assistant ChatMessage."""
        ...

    def tool_result_message(self, result: ToolCallResult) -> ChatMessage:
        """Convert a ToolCallResult to a provider-specific ChatMessage."""
        ...

    def tool_result_messages(self, results: Sequence[ToolCallResult]) -> list[ChatMessage]:
        """Convert one round of results to the messages appended before the next round."""
        ...


def _has_system_message(messages: Sequence[ChatMessage]) -> bool:
    return any(m.get("role") == "system" for m in messages)


class BaseAsyncLLM(ABC):
    """
    Abstract base class for async-first LLM wrappers.
    """

    dialect: Provider

    def __init__(
        self,
        model: str,
        *,
        api_key: str | None = None,
        logger: Optional[logging.Logger] = None,
        name: Optional[str] = None,
        **kwargs: Any,
    ) -> None:
        self.model = model
        self.logger = logger or logging.getLogger(__name__)
        self.name = name or self.__class__.__name__

    @abstractmethod
    async def _chat_impl(
        self,
        messages: Sequence[ChatMessage],
        params: dict[str, Any],
        tools: Sequence[dict[str, Any]] | None,
    ) -> Any:
        """
        Send one request to the provider and return its raw response.

        Args:
            messages: Conversation history in generic (OpenAI-like) form.
            params: Normalized request parameters.
            tools: Provider tool definitions, or None to send none.
        """
        ...

    @property
    @abstractmethod
    def adapter(self) -> RequestAdapter:
        """Request adapter for this provider."""
        ...

    async def chat(
        self,
        messages: Sequence[ChatMessage],
        *,
        params: dict[str, Any] | None = None,
        tools: Sequence[dict[str, Any]] | None = None,
    ) -> ChatResponse:
        """
        Send chat request and return a single response.

        Provider failures do not raise; they come back as a ChatResponse with
        ``error`` set (see :meth:`ChatResponse.raise_for_error`).
        """
        normalized_params = normalize_params(params)
        normalized_params["stream"] = False

        try:
            raw = await self._chat_impl(messages, normalized_params, tools)
            return self.adapter.from_provider(raw)
        except Exception as exc:
            return self._wrap_error(exc)

    async def complete(
        self,
        messages: Sequence[ChatMessage],
        tool_defs: Sequence[dict[str, Any]] | None,
        system_prompt: str | None = None,
        *,
        params: dict[str, Any] | None = None,
    ) -> ChatResponse:
        """
        One "complete with tools" round.

        A system message is prepended when the history has none: *system_prompt*
        if given, otherwise :data:`DEFAULT_SYSTEM_PROMPT`.
        """
        history = list(messages)
        if not _has_system_message(history):
            history.insert(0, {"role": "system", "content": system_prompt or DEFAULT_SYSTEM_PROMPT})
        return await self.chat(history, params=params, tools=tool_defs)

    def _wrap_error(self, exc: Exception) -> ChatResponse:
        """Wrap exception into an error response."""
        err = classify_error(exc, self.logger)
        return ChatResponse(content="", error=str(err), exception=exc)

    def _log(self, message: str, level: int = logging.INFO) -> None:
        self.logger.log(level, f"[{self.name}] {message}")

    # --- lifecycle ---------------------------------------------------------
    async def aclose(self) -> None:
        """
        Close underlying async HTTP clients. Safe to call multiple times.
        """
        client = getattr(self, "_client", None)
        close = getattr(client, "close", None)
        if close:
            await close()

    async def __aenter__(self) -> "BaseAsyncLLM":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()


class OpenAILLM(BaseAsyncLLM):
    """
    OpenAI LLM implementation (async‑only).

    Use ``OpenAILLM.from_client`` when you already have an ``AsyncOpenAI`` instance.
    """

    dialect = Provider.OPENAI

    def __init__(
        self,
        model: str,
        *,
        api_key: str,
        timeout: float = 60.0,
        max_retries: int = 2,
        logger: Optional[logging.Logger] = None,
        name: Optional[str] = None,
        base_url: Optional[str] = None,
    ) -> None:
        super().__init__(model=model, api_key=api_key, logger=logger, name=name)
        self.api_key = api_key
        self._client = AsyncOpenAI(
            api_key=api_key,
            timeout=timeout,
            max_retries=max_retries,
            base_url=base_url,
        )
        self._adapter = OpenAIRequestAdapter()

    @classmethod
    def from_client(
        cls,
        model: str,
        client: AsyncOpenAI,
        *,
        logger: Optional[logging.Logger] = None,
        name: Optional[str] = None,
    ) -> Self:
        """
        Build an ``OpenAILLM`` around an already‑configured ``AsyncOpenAI`` client.
        """
        if not isinstance(client, AsyncOpenAI):
            raise TypeError(
                f"OpenAILLM.from_client expects AsyncOpenAI; got {type(client).__name__}"
            )

        self = cls.__new__(cls)  # bypass __init__
        BaseAsyncLLM.__init__(
            self, model=model, api_key=client.api_key or "", logger=logger, name=name
        )
        self.api_key = client.api_key or ""
        self._client = client
        self._adapter = OpenAIRequestAdapter()
        return self

    @property
    def adapter(self) -> RequestAdapter:
        """Request adapter for OpenAI provider."""
        return self._adapter

    async def _chat_impl(
        self,
        messages: Sequence[ChatMessage],
        params: dict[str, Any],
        tools: Sequence[dict[str, Any]] | None,
    ) -> ChatCompletion:
        """Core implementation for OpenAI chat requests."""
        request_data = self._adapter.to_provider(messages, params, tools)

        args = {
            "model": self.model,
            **request_data,
        }

        # Handle special fields that need passthrough
        passthrough_keys = ("verbosity", "reasoning_effort")
        extra_body = {}
        for k in passthrough_keys:
            if k in args:
                extra_body[k] = args.pop(k)
        if extra_body:
            args["extra_body"] = {**args.get("extra_body", {}), **extra_body}

        self._log(
            f"Sending request to OpenAI model {self.model} ({len(tools or ())} tools)"
        )
        response: ChatCompletion = await self._client.chat.completions.create(**args)
        return response


class AnthropicLLM(BaseAsyncLLM):
    """
    Anthropic LLM implementation (async‑only).

    Use ``AnthropicLLM.from_client`` when you already have an ``AsyncAnthropic`` instance.
    """

    dialect = Provider.ANTHROPIC

    def __init__(
        self,
        model: str,
        *,
        api_key: str,
        timeout: float = 60.0,
        max_retries: int = 2,
        logger: Optional[logging.Logger] = None,
        name: Optional[str] = None,
        base_url: Optional[str] = None,
        max_tokens: int = 4096,
    ) -> None:
        super().__init__(model=model, api_key=api_key, logger=logger, name=name)
        self.api_key = api_key
        self._client = AsyncAnthropic(
            api_key=api_key,
            timeout=timeout,
            max_retries=max_retries,
            base_url=base_url,
        )
        self._adapter = AnthropicRequestAdapter(max_tokens=max_tokens)

    @classmethod
    def from_client(
        cls,
        model: str,
        client: AsyncAnthropic,
        *,
        logger: Optional[logging.Logger] = None,
        name: Optional[str] = None,
        max_tokens: int = 4096,
    ) -> Self:
        """
        Wrap an existing ``AsyncAnthropic`` client.
        """
        if not isinstance(client, AsyncAnthropic):
            raise TypeError(
                f"AnthropicLLM.from_client expects AsyncAnthropic; got {type(client).__name__}"
            )

        self = cls.__new__(cls)  # bypass __init__
        BaseAsyncLLM.__init__(
            self, model=model, api_key=client.api_key or "", logger=logger, name=name
        )
        self.api_key = client.api_key or ""
        self._client = client
        self._adapter = AnthropicRequestAdapter(max_tokens=max_tokens)
        return self

    @property
    def adapter(self) -> RequestAdapter:
        """Request adapter for Anthropic provider."""
        return self._adapter

    async def _chat_impl(
        self,
        messages: Sequence[ChatMessage],
        params: dict[str, Any],
        tools: Sequence[dict[str, Any]] | None,
    ) -> Message:
        """Core implementation for Anthropic chat requests."""
        request_data = self._adapter.to_provider(messages, params, tools)

        args = {
            "model": self.model,
            **request_data,
        }

        self._log(
            f"Sending request to Anthropic model {self.model} ({len(tools or ())} tools)"
        )
        response: Message = await self._client.messages.create(**args)
        return response


# Factory for creating LLM instances

_LLM_REGISTRY: dict[Provider, type[BaseAsyncLLM]] = {
    Provider.OPENAI: OpenAILLM,
    Provider.ANTHROPIC: AnthropicLLM,
}

# keyword arguments from_client accepts beyond model, client and logger
_CLIENT_KWARGS: dict[type[BaseAsyncLLM], tuple[str, ...]] = {
    OpenAILLM: ("name",),
    AnthropicLLM: ("name", "max_tokens"),
}


def _default_model(provider: Provider, settings: BridgeSettings) -> str:
    if provider is Provider.ANTHROPIC:
        return settings.default_anthropic_model
    return settings.default_openai_model


def create_llm(
    config: ProviderConfig,
    settings: BridgeSettings | None = None,
    *,
    logger: logging.Logger | None = None,
    **provider_kwargs: Any,
) -> BaseAsyncLLM:
    """
    Factory for creating the LLM a ProviderConfig describes.

    Args:
        config: Provider kind, model and credentials. ``config.client`` (an
            ``AsyncOpenAI`` or ``AsyncAnthropic`` instance) is used verbatim when set.
        settings: Supplies default models and the Anthropic ``max_tokens``.
        logger: Optional custom logger.
        **provider_kwargs: Any extra args to pass through (timeout, max_retries).
            Transport options are ignored when ``config.client`` is set; only
            ``max_tokens`` still applies to a supplied Anthropic client.

    Raises:
        ConfigurationError: Unknown provider or no API key anywhere.
    """
    settings = settings or BridgeSettings()
    try:
        llm_cls = _LLM_REGISTRY[config.kind]
    except KeyError:
        raise ConfigurationError(f"Unsupported provider: {config.kind}") from None

    model = config.model or _default_model(config.kind, settings)
    if llm_cls is AnthropicLLM:
        provider_kwargs.setdefault("max_tokens", settings.max_tokens)

    if config.client is not None:  # use caller‑supplied client verbatim
        accepted = _CLIENT_KWARGS[llm_cls]
        client_kwargs = {k: v for k, v in provider_kwargs.items() if k in accepted}
        ignored = sorted(set(provider_kwargs) - set(client_kwargs))
        if ignored:
            (logger or logging.getLogger(__name__)).warning(
                "Ignoring %s: %s client is supplied pre-configured",
                ", ".join(ignored),
                config.kind,
            )
        return llm_cls.from_client(model, config.client, logger=logger, **client_kwargs)

    key = config.resolve_api_key()
    return llm_cls(
        model=model,
        api_key=key,
        base_url=config.base_url,
        logger=logger,
        **provider_kwargs,
    )
