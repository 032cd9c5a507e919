"""
Two-round tool-calling conversation.

Round 1 offers the model every catalog tool. If it asks for tools, they are
executed concurrently, the results are appended to the history and the model
is asked again (round 2) for the final answer.
"""

from __future__ import annotations

import contextlib
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, AsyncIterator, Iterable, Mapping, Optional, Sequence

import httpx

from mcp_bridge.catalog import ToolCatalog, ToolSource, build_catalog
from mcp_bridge.client import BaseAsyncLLM, RequestAdapter, create_llm
from mcp_bridge.errors import ConfigurationError, ToolNotFound
from mcp_bridge.executor import ToolExecutor, normalize_server_url
from mcp_bridge.handlers import DEFAULT_HANDLERS, ToolHandler
from mcp_bridge.mcp_client import MCPServerClient
from mcp_bridge.naming import PARALLEL_TOOL_NAME, NameResolver
from mcp_bridge.provider import ProviderConfig
from mcp_bridge.schema import catalog_to_provider_tools
from mcp_bridge.settings import BridgeSettings
from mcp_bridge.types import ChatMessage, ToolCallRequest, ToolCallResult

__all__ = [
    "TurnState",
    "TurnResult",
    "Orchestrator",
    "append_tool_results",
]

logger = logging.getLogger(__name__)


class TurnState(str, Enum):
    INIT = "init"
    ROUND1_PENDING = "round1_pending"
    EXECUTING = "executing"
    ROUND2_PENDING = "round2_pending"
    DONE = "done"
    FAILED = "failed"


@dataclass
class TurnResult:
    """Final assistant message of a turn plus what happened on the way."""

    message: ChatMessage
    content: str
    tool_results: list[ToolCallResult] = field(default_factory=list)
    rounds: int = 1
    state: TurnState = TurnState.DONE
    server_info: Optional[dict[str, Any]] = None


def append_tool_results(
    messages: Sequence[ChatMessage],
    assistant_message: ChatMessage,
    results: Sequence[ToolCallResult],
    adapter: RequestAdapter,
) -> list[ChatMessage]:
    """
    History for round 2: the original messages, the round-1 assistant message
    and the tool results in provider form. Returns a new list; nothing passed
    in is modified.
    """
    return [*messages, dict(assistant_message), *adapter.tool_result_messages(results)]


class Orchestrator:
    """
    Runs tool-calling turns.

    One instance may serve many requests; all per-turn state (catalog, LLM,
    executor) lives inside :meth:`run`.

    Args:
        settings: Timeouts, concurrency and default models.
        http_client: Shared client for MCP servers and local handlers. When
            omitted each turn opens and closes its own.
        handlers: Registry for locally executed tools.
    """

    def __init__(
        self,
        settings: Optional[BridgeSettings] = None,
        *,
        http_client: Optional[httpx.AsyncClient] = None,
        handlers: Mapping[str, ToolHandler] = DEFAULT_HANDLERS,
    ) -> None:
        self.settings = settings or BridgeSettings()
        self._http = http_client
        self._handlers = handlers

    @contextlib.asynccontextmanager
    async def _http_scope(self) -> AsyncIterator[httpx.AsyncClient]:
        if self._http is not None:
            yield self._http
            return
        async with httpx.AsyncClient(timeout=self.settings.request_timeout) as client:
            yield client

    async def run(
        self,
        messages: Sequence[ChatMessage],
        server_url: str,
        provider_config: ProviderConfig,
        catalog: ToolCatalog,
        *,
        system_prompt: Optional[str] = None,
    ) -> TurnResult:
        """
        Run one turn against *catalog*.

        Raises:
            ConfigurationError: Missing or malformed server URL, empty
                catalog or no API key. Raised before any network call.
            ToolNotFound: The model called a tool that is not in the catalog.
            ProviderError: The completion API failed in either round.
        """
        base_url = self._validate(server_url, provider_config, catalog)
        async with self._http_scope() as http:
            return await self._run(messages, base_url, provider_config, catalog, http, system_prompt)

    async def run_remote(
        self,
        messages: Sequence[ChatMessage],
        server_url: str,
        provider_config: ProviderConfig,
        *,
        exclude: Iterable[str] = (),
        extra_sources: Iterable[ToolSource] = (),
        system_prompt: Optional[str] = None,
    ) -> TurnResult:
        """
        Discover the server's tools over HTTP, then :meth:`run` with them.

        The server's tools form a DECLARED source; *extra_sources* (for
        example :func:`mcp_bridge.catalog.builtin_tools`) are merged by
        priority and *exclude* removes names from the result.
        """
        base_url = normalize_server_url(server_url)
        provider_config.resolve_api_key()

        async with self._http_scope() as http:
            server = MCPServerClient(base_url, http_client=http, settings=self.settings)
            info = await server.server_info()
            logger.info(
                "Connected to MCP server %s (%s %s)",
                base_url,
                info.get("protocol", "MCP"),
                info.get("version", "?"),
            )
            source = await server.tool_source()
            catalog = build_catalog([source, *extra_sources], exclude=exclude)
            self._validate(base_url, provider_config, catalog)
            result = await self._run(messages, base_url, provider_config, catalog, http, system_prompt)

        result.server_info = info
        return result

    def _validate(self, server_url: str, config: ProviderConfig, catalog: ToolCatalog) -> str:
        try:
            base_url = normalize_server_url(server_url)
            if catalog.is_empty:
                raise ConfigurationError("No tools available: the tool catalog is empty")
            config.resolve_api_key()
        except ConfigurationError as exc:
            logger.warning("Turn %s: %s", TurnState.FAILED.value, exc.message)
            raise
        return base_url

    async def _run(
        self,
        messages: Sequence[ChatMessage],
        base_url: str,
        config: ProviderConfig,
        catalog: ToolCatalog,
        http: httpx.AsyncClient,
        system_prompt: Optional[str],
    ) -> TurnResult:
        llm = create_llm(config, self.settings)
        try:
            return await self._converse(llm, messages, base_url, config, catalog, http, system_prompt)
        except Exception:
            logger.warning("Turn %s", TurnState.FAILED.value)
            raise
        finally:
            # caller-supplied SDK clients stay open
            if config.client is None:
                await llm.aclose()

    async def _converse(
        self,
        llm: BaseAsyncLLM,
        messages: Sequence[ChatMessage],
        base_url: str,
        config: ProviderConfig,
        catalog: ToolCatalog,
        http: httpx.AsyncClient,
        system_prompt: Optional[str],
    ) -> TurnResult:
        tool_defs = catalog_to_provider_tools(catalog, llm.dialect)

        logger.info("Turn %s: %d tools offered to %s", TurnState.ROUND1_PENDING.value, len(tool_defs), llm.name)
        first = await llm.complete(messages, tool_defs, system_prompt, params=config.params)
        first.raise_for_error()

        if not first.has_tool_calls:
            logger.info("Turn %s after one round (no tool calls)", TurnState.DONE.value)
            return TurnResult(
                message=first.assistant_message or {"role": "assistant", "content": first.content},
                content=first.content,
            )

        calls = first.tool_calls or []
        self._check_calls(calls, catalog)

        logger.info("Turn %s: %d tool calls", TurnState.EXECUTING.value, len(calls))
        executor = ToolExecutor(
            catalog,
            base_url,
            settings=self.settings,
            http_client=http,
            handlers=self._handlers,
        )
        results = await executor.execute_many(calls)

        history = append_tool_results(messages, first.assistant_message or {}, results, llm.adapter)
        round_two_tools = tool_defs if llm.adapter.resend_tools else None

        logger.info("Turn %s", TurnState.ROUND2_PENDING.value)
        second = await llm.complete(history, round_two_tools, system_prompt, params=config.params)
        second.raise_for_error()
        if second.has_tool_calls:
            logger.warning("Ignoring %d tool calls requested in round 2", len(second.tool_calls or []))

        logger.info("Turn %s after two rounds", TurnState.DONE.value)
        return TurnResult(
            message=second.assistant_message or {"role": "assistant", "content": second.content},
            content=second.content,
            tool_results=results,
            rounds=2,
        )

    @staticmethod
    def _check_calls(calls: Sequence[ToolCallRequest], catalog: ToolCatalog) -> None:
        resolver = NameResolver(catalog)
        for call in calls:
            if call.name != PARALLEL_TOOL_NAME and not resolver.is_known(call.name):
                raise ToolNotFound(call.name)
