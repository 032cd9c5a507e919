import pytest

from fakes import FakeHTTP
from mcp_bridge import BridgeSettings, SourceKind, Tool, ToolSource, build_catalog
from mcp_bridge.types import ParamSpec, ParamType


@pytest.fixture
def fake_http():
    return FakeHTTP()


@pytest.fixture
def settings():
    return BridgeSettings(request_timeout=5.0, tool_timeout=1.0, max_concurrency=4)


@pytest.fixture
def weather_tool():
    return Tool(
        name="weather",
        description="Get current weather information for a city",
        schema={"city": ParamSpec(ParamType.STRING, "City name")},
    )


@pytest.fixture
def catalog(weather_tool):
    """Remote weather and stock tools plus the built-in introspection tool."""
    stock = Tool(
        name="stock.quote",
        description="Latest share price for a ticker",
        schema={"symbol": ParamSpec(ParamType.STRING, "Ticker symbol")},
    )
    return build_catalog([ToolSource(SourceKind.DECLARED, (weather_tool, stock))])
