"""
Tool execution: remote MCP ``/execute`` calls, local handlers and the
parallel fan-out pseudo-tool.

`ToolExecutor.execute` never raises for a tool failure; every problem comes
back as ``ToolCallResult(ok=False)`` so the model can explain it. Only
``asyncio.CancelledError`` propagates.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Mapping, Optional, Sequence

import httpx

from mcp_bridge.catalog import ToolCatalog
from mcp_bridge.errors import BridgeError, ConfigurationError, ToolExecutionError
from mcp_bridge.handlers import DEFAULT_HANDLERS, HandlerContext, ToolHandler
from mcp_bridge.naming import PARALLEL_TOOL_NAME, NameResolver
from mcp_bridge.settings import BridgeSettings
from mcp_bridge.types import LocalExecution, RemoteExecution, Tool, ToolCallRequest, ToolCallResult

__all__ = ["ToolExecutor", "normalize_server_url"]

logger = logging.getLogger(__name__)


def normalize_server_url(url: Optional[str]) -> str:
    """
    Canonical base URL for an MCP server: scheme defaults to ``http://`` and
    the path always ends with ``/`` so endpoint names can be appended.

    Raises:
        ConfigurationError: If the URL is empty or not a valid http(s) URL.
    """
    if not url or not url.strip():
        raise ConfigurationError("MCP server URL is required")

    candidate = url.strip()
    if "://" not in candidate:
        candidate = f"http://{candidate}"

    try:
        parsed = httpx.URL(candidate)
    except httpx.InvalidURL as exc:
        raise ConfigurationError(f"Invalid MCP server URL {url!r}: {exc}") from exc
    if parsed.scheme not in ("http", "https") or not parsed.host:
        raise ConfigurationError(f"Invalid MCP server URL: {url!r}")

    return candidate if candidate.endswith("/") else candidate + "/"


def _error_text(body: Mapping[str, Any]) -> str:
    """Join the text blocks of an MCP ``{isError, content}`` body."""
    parts = [
        str(block.get("text", ""))
        for block in body.get("content") or []
        if isinstance(block, Mapping) and block.get("type") == "text"
    ]
    return "\n".join(p for p in parts if p) or "Tool reported an error"


class ToolExecutor:
    """
    Run tool calls for one turn.

    Args:
        catalog: Snapshot of the tools the model was offered.
        server_url: Base URL of the MCP server for tools with
            ``RemoteExecution(url=None)``. Normalized on construction.
        settings: Timeouts and concurrency limits.
        http_client: Shared ``httpx.AsyncClient``. When omitted the executor
            creates one and closes it in :meth:`aclose`.
        handlers: Registry for ``LocalExecution`` tools.
    """

    def __init__(
        self,
        catalog: ToolCatalog,
        server_url: Optional[str] = None,
        *,
        settings: Optional[BridgeSettings] = None,
        http_client: Optional[httpx.AsyncClient] = None,
        handlers: Mapping[str, ToolHandler] = DEFAULT_HANDLERS,
    ) -> None:
        self.catalog = catalog
        self.settings = settings or BridgeSettings()
        self.server_url = normalize_server_url(server_url) if server_url else None
        self._owns_client = http_client is None
        self._http = http_client or httpx.AsyncClient(timeout=self.settings.request_timeout)
        self._handlers = handlers
        self._resolver = NameResolver(catalog)
        self._slots = asyncio.Semaphore(self.settings.max_concurrency)

    async def execute(self, call: ToolCallRequest) -> ToolCallResult:
        """Run one call. Failures are returned, not raised."""
        name = self._resolver.resolve(call.name)
        if name == PARALLEL_TOOL_NAME:
            return await self._execute_parallel(call)
        return await self._execute_single(call, name)

    async def execute_many(self, calls: Sequence[ToolCallRequest]) -> list[ToolCallResult]:
        """
        Run *calls* concurrently. The result at index i answers calls[i] and
        carries its id, whatever order the calls finish in; repeated ids each
        get their own result.
        """
        return list(await asyncio.gather(*(self.execute(call) for call in calls)))

    async def _execute_single(self, call: ToolCallRequest, name: str) -> ToolCallResult:
        try:
            tool = self.catalog.get(name)
            async with self._slots:
                value = await self._dispatch(tool, call.arguments or {})
        except TimeoutError:
            logger.warning("Tool %s timed out", name)
            return ToolCallResult.failure(call.id, name, f"Tool {name} timed out")
        except BridgeError as exc:
            logger.warning("Tool %s failed: %s", name, exc.message)
            return ToolCallResult.failure(call.id, name, exc.message)
        except httpx.HTTPError as exc:
            logger.warning("Request for tool %s failed: %s", name, exc)
            return ToolCallResult.failure(call.id, name, f"Error executing tool {name}: {exc}")
        except Exception as exc:
            logger.exception("Unexpected error in tool %s", name)
            return ToolCallResult.failure(
                call.id, name, f"Error executing tool {name}: {type(exc).__name__}: {exc}"
            )

        logger.debug("Tool %s (%s) succeeded", name, call.id)
        return ToolCallResult.success(call.id, name, value)

    async def _dispatch(self, tool: Tool, arguments: dict[str, Any]) -> Any:
        execution = tool.execution
        if isinstance(execution, LocalExecution):
            return await self._execute_local(tool, execution, arguments)
        if isinstance(execution, RemoteExecution):
            return await self._execute_remote(tool, execution, arguments)
        raise ToolExecutionError(f"Tool {tool.name} has no execution strategy")

    async def _execute_local(
        self, tool: Tool, execution: LocalExecution, arguments: dict[str, Any]
    ) -> Any:
        handler = self._handlers.get(execution.handler_id)
        if handler is None:
            raise ToolExecutionError(f"No local handler registered for {execution.handler_id}")
        context = HandlerContext(catalog=self.catalog, settings=self.settings, http_client=self._http)
        logger.debug("Running local handler %s for %s", execution.handler_id, tool.name)
        return await asyncio.wait_for(
            handler(dict(arguments), context), timeout=self.settings.tool_timeout
        )

    async def _execute_remote(
        self, tool: Tool, execution: RemoteExecution, arguments: dict[str, Any]
    ) -> Any:
        base = normalize_server_url(execution.url) if execution.url else self.server_url
        if base is None:
            raise ConfigurationError(f"No MCP server URL for remote tool {tool.name}")

        url = base + "execute"
        logger.info("Executing tool %s at %s", tool.name, url)
        response = await self._http.post(
            url,
            json={"name": tool.name, "parameters": arguments},
            timeout=self.settings.request_timeout,
        )
        if not response.is_success:
            raise ToolExecutionError(
                f"Error executing tool {tool.name}: HTTP {response.status_code} {response.text[:200]}"
            )

        try:
            body = response.json()
        except ValueError:
            return response.text

        if isinstance(body, Mapping):
            if body.get("isError"):
                raise ToolExecutionError(_error_text(body))
            if "result" in body:
                return body["result"]
        return body

    async def _execute_parallel(self, call: ToolCallRequest) -> ToolCallResult:
        entries = (call.arguments or {}).get("tools_to_use")
        if not isinstance(entries, list):
            return ToolCallResult.failure(
                call.id, PARALLEL_TOOL_NAME, "tools_to_use must be a list of {tool_name, parameters}"
            )

        logger.info("Fanning out %d tool calls for %s", len(entries), call.id)
        outcomes = await asyncio.gather(
            *(self._execute_slot(call.id, index, entry) for index, entry in enumerate(entries))
        )
        return ToolCallResult.success(call.id, PARALLEL_TOOL_NAME, list(outcomes))

    async def _execute_slot(self, parent_id: str, index: int, entry: Any) -> dict[str, Any]:
        if not isinstance(entry, Mapping) or not isinstance(entry.get("tool_name"), str):
            return {"tool_name": None, "result": {"error": "Each entry needs a tool_name string"}}

        issued = entry["tool_name"]
        name = self._resolver.resolve(issued)
        if name == PARALLEL_TOOL_NAME:
            return {"tool_name": issued, "result": {"error": f"{PARALLEL_TOOL_NAME} cannot be nested"}}

        parameters = entry.get("parameters")
        sub_call = ToolCallRequest(
            id=f"{parent_id}#{index}",
            name=issued,
            arguments=dict(parameters) if isinstance(parameters, Mapping) else {},
        )
        result = await self._execute_single(sub_call, name)
        return {
            "tool_name": issued,
            "result": result.value if result.ok else {"error": result.error_text},
        }

    # --- lifecycle ---------------------------------------------------------
    async def aclose(self) -> None:
        """Close the HTTP client if this executor created it."""
        if self._owns_client:
            await self._http.aclose()

    async def __aenter__(self) -> "ToolExecutor":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()
