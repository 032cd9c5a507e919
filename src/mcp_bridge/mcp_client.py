"""Discovery calls against a remote MCP-over-HTTP server (``GET /`` and ``GET /tools``)."""

from __future__ import annotations

import logging
from typing import Any, Mapping, Optional

import httpx

from mcp_bridge.catalog import SourceKind, ToolSource
from mcp_bridge.errors import MCPServerError
from mcp_bridge.executor import normalize_server_url
from mcp_bridge.schema import to_generic_schema
from mcp_bridge.settings import BridgeSettings
from mcp_bridge.types import RemoteExecution, Tool

__all__ = ["DEFAULT_SERVER_INFO", "MCPServerClient", "tool_from_remote"]

logger = logging.getLogger(__name__)

DEFAULT_SERVER_INFO: dict[str, Any] = {"protocol": "MCP", "version": "1.0.0"}


def tool_from_remote(entry: Mapping[str, Any]) -> Tool:
    """Build a catalog Tool from one ``/tools`` entry."""
    raw_schema = (
        entry.get("schema")
        or entry.get("parameters")
        or entry.get("inputSchema")
        or entry.get("input_schema")
    )
    return Tool(
        name=str(entry["name"]),
        description=str(entry.get("description") or ""),
        schema=to_generic_schema(raw_schema if isinstance(raw_schema, Mapping) else None),
        execution=RemoteExecution(),
    )


class MCPServerClient:
    """Read-only view of one MCP server's metadata and tool list."""

    def __init__(
        self,
        server_url: str,
        *,
        http_client: Optional[httpx.AsyncClient] = None,
        settings: Optional[BridgeSettings] = None,
    ) -> None:
        self.settings = settings or BridgeSettings()
        self.base_url = normalize_server_url(server_url)
        self._owns_client = http_client is None
        self._http = http_client or httpx.AsyncClient(timeout=self.settings.request_timeout)

    async def server_info(self) -> dict[str, Any]:
        """``GET /``; an unreachable or silent server yields DEFAULT_SERVER_INFO."""
        logger.info("Fetching MCP server info from %s", self.base_url)
        try:
            response = await self._http.get(self.base_url, timeout=self.settings.request_timeout)
            response.raise_for_status()
            data = response.json()
        except (httpx.HTTPError, ValueError) as exc:
            logger.warning("Could not fetch MCP server info from %s: %s", self.base_url, exc)
            return dict(DEFAULT_SERVER_INFO)
        return data if isinstance(data, dict) and data else dict(DEFAULT_SERVER_INFO)

    async def list_tools(self) -> list[Tool]:
        """
        ``GET /tools``. Accepts ``{"tools": [...]}`` or a bare array.

        Raises:
            MCPServerError: The request failed or the body is not a tool list.
        """
        url = self.base_url + "tools"
        logger.info("Fetching tools from MCP server: %s", url)
        try:
            response = await self._http.get(url, timeout=self.settings.request_timeout)
            response.raise_for_status()
            data = response.json()
        except (httpx.HTTPError, ValueError) as exc:
            raise MCPServerError(f"Error with MCP server: {exc}") from exc

        entries = data.get("tools") if isinstance(data, dict) else data
        if entries is None:
            entries = []
        if not isinstance(entries, list):
            raise MCPServerError("Error with MCP server: /tools did not return a list")

        tools = []
        for entry in entries:
            if not isinstance(entry, Mapping) or not entry.get("name"):
                logger.warning("Skipping malformed tool entry from %s: %r", url, entry)
                continue
            tools.append(tool_from_remote(entry))
        logger.debug("MCP server %s offers %d tools", self.base_url, len(tools))
        return tools

    async def tool_source(self) -> ToolSource:
        """The server's tools as a DECLARED catalog source."""
        return ToolSource(kind=SourceKind.DECLARED, tools=tuple(await self.list_tools()))

    async def aclose(self) -> None:
        if self._owns_client:
            await self._http.aclose()

    async def __aenter__(self) -> "MCPServerClient":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()
