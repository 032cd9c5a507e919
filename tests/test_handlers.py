"""Tests for the local weather and introspection handlers."""

import httpx
import pytest

from mcp_bridge.errors import ToolExecutionError
from mcp_bridge.handlers import HandlerContext, calculator_handler, introspection_handler
from mcp_bridge.handlers.weather import weather_handler
from mcp_bridge.settings import BridgeSettings

GEOCODING = ("GET", "geocoding-api.open-meteo.com/v1/search")
FORECAST = ("GET", "api.open-meteo.com/v1/forecast")

PARIS = {"results": [{"name": "Paris", "latitude": 48.85, "longitude": 2.35}]}
PARIS_NOW = {
    "current": {
        "temperature_2m": 18.4,
        "apparent_temperature": 17.0,
        "relative_humidity_2m": 62,
        "wind_speed_10m": 7.6,
        "weather_code": 3,
    }
}


def _context(fake_http, catalog, **settings):
    return HandlerContext(
        catalog=catalog,
        settings=BridgeSettings(**settings),
        http_client=fake_http.client(),
    )


class TestWeather:
    @pytest.mark.asyncio
    async def test_current_conditions(self, fake_http, catalog):
        fake_http.add(*GEOCODING, PARIS).add(*FORECAST, PARIS_NOW)

        result = await weather_handler({"city": "Paris"}, _context(fake_http, catalog))

        assert result["city"] == "Paris"
        assert result["temperature"] == 18
        assert result["condition"] == "Cloudy"
        assert result["humidity"] == 62
        assert result["wind"] == "8 mph"
        assert result["source"] == "Open-Meteo API"

        geo_request = fake_http.sent(*GEOCODING)[0]
        assert geo_request.url.params["name"] == "Paris"
        forecast_request = fake_http.sent(*FORECAST)[0]
        assert forecast_request.url.params["wind_speed_unit"] == "mph"
        assert forecast_request.url.params["latitude"] == "48.85"

    @pytest.mark.asyncio
    async def test_unknown_city_is_a_tool_error(self, fake_http, catalog):
        fake_http.add(*GEOCODING, {"results": []})

        with pytest.raises(ToolExecutionError, match="Atlantis"):
            await weather_handler({"city": "Atlantis"}, _context(fake_http, catalog))
        assert fake_http.sent(*FORECAST) == []

    @pytest.mark.asyncio
    async def test_api_failure_surfaces_without_fallback(self, fake_http, catalog):
        fake_http.add(*GEOCODING, httpx.Response(503, text="down"))

        with pytest.raises(ToolExecutionError, match="Weather lookup failed"):
            await weather_handler({"city": "Paris"}, _context(fake_http, catalog))

    @pytest.mark.asyncio
    async def test_fallback_when_enabled(self, fake_http, catalog):
        fake_http.add(*GEOCODING, httpx.Response(503, text="down"))

        result = await weather_handler(
            {"city": "Paris"}, _context(fake_http, catalog, weather_fallback=True)
        )

        assert result["city"] == "Paris"
        assert "fallback" in result["note"]

    @pytest.mark.asyncio
    async def test_city_required(self, fake_http, catalog):
        with pytest.raises(ToolExecutionError):
            await weather_handler({}, _context(fake_http, catalog))
        assert fake_http.requests == []


class TestOtherHandlers:
    @pytest.mark.asyncio
    async def test_introspection_uses_context_catalog(self, fake_http, catalog):
        result = await introspection_handler({"category": "weather"}, _context(fake_http, catalog))
        assert [t["name"] for t in result["tools"]] == ["weather"]

    @pytest.mark.asyncio
    async def test_introspection_ignores_non_string_category(self, fake_http, catalog):
        result = await introspection_handler({"category": 5}, _context(fake_http, catalog))
        assert result["category"] == "all"

    @pytest.mark.asyncio
    async def test_calculator(self, fake_http, catalog):
        result = await calculator_handler({"expression": "6 * 7"}, _context(fake_http, catalog))
        assert result == {"result": 42}
