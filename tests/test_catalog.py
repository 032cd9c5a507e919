"""Tests for catalog construction and the introspection tool."""

import pytest

from mcp_bridge.catalog import (
    SourceKind,
    ToolCatalog,
    ToolSource,
    build_catalog,
    builtin_tools,
)
from mcp_bridge.errors import ToolNotFound
from mcp_bridge.handlers import describe_tools
from mcp_bridge.naming import INTROSPECTION_TOOL_NAME
from mcp_bridge.types import LocalExecution, RemoteExecution, Tool


def _names(catalog):
    return catalog.names()


class TestBuildCatalog:
    def test_introspection_tool_is_always_last(self):
        catalog = build_catalog([ToolSource(SourceKind.DECLARED, (Tool("a"), Tool("b")))])
        assert _names(catalog) == ["a", "b", INTROSPECTION_TOOL_NAME]

    def test_higher_priority_source_wins_and_keeps_position(self):
        sources = [
            ToolSource(SourceKind.BUILTIN, (Tool("a", "builtin a"),)),
            ToolSource(SourceKind.DECLARED, (Tool("a", "declared a"), Tool("b"))),
        ]
        catalog = build_catalog(sources)

        assert _names(catalog) == ["a", "b", INTROSPECTION_TOOL_NAME]
        assert catalog.get("a").description == "builtin a"

    def test_equal_kinds_apply_in_given_order(self):
        sources = [
            ToolSource(SourceKind.NODE, (Tool("x", "first"),)),
            ToolSource(SourceKind.NODE, (Tool("x", "second"),)),
        ]
        assert build_catalog(sources).get("x").description == "second"

    def test_exclusion_drops_tools_from_any_source(self):
        sources = [
            ToolSource(SourceKind.DECLARED, (Tool("a"), Tool("b"))),
            ToolSource(SourceKind.WORKFLOW, (Tool("b"), Tool("c"))),
        ]
        catalog = build_catalog(sources, exclude=["b"])
        assert _names(catalog) == ["a", "c", INTROSPECTION_TOOL_NAME]

    def test_introspection_cannot_be_excluded(self):
        catalog = build_catalog([], exclude=[INTROSPECTION_TOOL_NAME])
        assert INTROSPECTION_TOOL_NAME in catalog

    def test_caller_introspection_tool_is_replaced(self):
        fake = Tool(INTROSPECTION_TOOL_NAME, "caller version")
        catalog = build_catalog([ToolSource(SourceKind.DECLARED, (fake, Tool("a")))])

        assert _names(catalog) == ["a", INTROSPECTION_TOOL_NAME]
        tool = catalog.get(INTROSPECTION_TOOL_NAME)
        assert tool.execution == LocalExecution(INTROSPECTION_TOOL_NAME)

    def test_builtin_tools_are_local(self):
        catalog = build_catalog([builtin_tools()])
        assert _names(catalog) == ["weather", "calculator", INTROSPECTION_TOOL_NAME]
        assert all(tool.is_local for tool in catalog)


class TestToolCatalog:
    def test_get_unknown_raises(self, catalog):
        with pytest.raises(ToolNotFound) as exc_info:
            catalog.get("missing")
        assert exc_info.value.code == "tool_not_found"
        assert "missing" in str(exc_info.value)

    def test_is_empty_ignores_introspection_tool(self):
        assert build_catalog([]).is_empty
        assert ToolCatalog().is_empty
        assert not build_catalog([ToolSource(SourceKind.DECLARED, (Tool("a"),))]).is_empty

    def test_container_protocol(self, catalog):
        assert "weather" in catalog
        assert len(catalog) == 3
        assert [t.name for t in catalog] == catalog.names()

    def test_remote_tools_default_to_server_url(self, weather_tool):
        assert weather_tool.execution == RemoteExecution(url=None)
        assert not weather_tool.is_local


class TestIntrospection:
    def test_lists_all_other_tools(self, catalog):
        result = describe_tools(catalog.list())

        assert result["total_tools"] == 2
        assert result["category"] == "all"
        assert [t["name"] for t in result["tools"]] == ["weather", "stock.quote"]
        assert result["formatted_response"].startswith("Available tools:")

    def test_category_filter_matches_name_or_description(self, catalog):
        result = describe_tools(catalog.list(), "WEATHER")

        assert result["total_tools"] == 1
        assert result["category"] == "weather"
        assert result["tools"][0]["name"] == "weather"
        assert "city: City name" in result["tools"][0]["parameters"]

    def test_category_by_description(self, catalog):
        result = describe_tools(catalog.list(), "share price")
        assert [t["name"] for t in result["tools"]] == ["stock.quote"]

    def test_no_match(self, catalog):
        result = describe_tools(catalog.list(), "database")
        assert result["total_tools"] == 0
        assert result["tools"] == []
