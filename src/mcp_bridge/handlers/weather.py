"""Current-weather lookup against the Open-Meteo geocoding and forecast APIs."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Final

import httpx

from mcp_bridge.errors import ToolExecutionError

logger = logging.getLogger(__name__)

GEOCODING_URL: Final = "https://geocoding-api.open-meteo.com/v1/search"
FORECAST_URL: Final = "https://api.open-meteo.com/v1/forecast"

WEATHER_CONDITIONS: Final[dict[int, str]] = {
    0: "Clear",
    1: "Mainly Clear",
    2: "Partly Cloudy",
    3: "Cloudy",
    45: "Foggy",
    48: "Rime Fog",
    51: "Light Drizzle",
    53: "Moderate Drizzle",
    55: "Dense Drizzle",
    56: "Light Freezing Drizzle",
    57: "Dense Freezing Drizzle",
    61: "Slight Rain",
    63: "Moderate Rain",
    65: "Heavy Rain",
    66: "Light Freezing Rain",
    67: "Heavy Freezing Rain",
    71: "Slight Snow",
    73: "Moderate Snow",
    75: "Heavy Snow",
    77: "Snow Grains",
    80: "Slight Rain Showers",
    81: "Moderate Rain Showers",
    82: "Violent Rain Showers",
    85: "Slight Snow Showers",
    86: "Heavy Snow Showers",
    95: "Thunderstorm",
    96: "Thunderstorm with Slight Hail",
    99: "Thunderstorm with Heavy Hail",
}


async def fetch_weather(client: httpx.AsyncClient, city: str) -> dict[str, Any]:
    """Geocode *city* and return its current conditions."""
    geo = await client.get(GEOCODING_URL, params={"name": city, "count": 1})
    geo.raise_for_status()
    results = geo.json().get("results") or []
    if not results:
        raise ToolExecutionError(f"Could not find coordinates for city: {city}")

    place = results[0]
    forecast = await client.get(
        FORECAST_URL,
        params={
            "latitude": place["latitude"],
            "longitude": place["longitude"],
            "current": "temperature_2m,apparent_temperature,relative_humidity_2m,wind_speed_10m,weather_code",
            "wind_speed_unit": "mph",
            "timezone": "auto",
        },
    )
    forecast.raise_for_status()
    current = forecast.json()["current"]

    return {
        "city": place.get("name", city),
        "temperature": round(current["temperature_2m"]),
        "condition": WEATHER_CONDITIONS.get(current.get("weather_code"), "Unknown"),
        "humidity": current.get("relative_humidity_2m"),
        "wind": f"{round(current['wind_speed_10m'])} mph",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "source": "Open-Meteo API",
    }


def fallback_weather(city: str, error: BaseException) -> dict[str, Any]:
    """Placeholder data, only used when the weather_fallback setting is on."""
    return {
        "city": city,
        "temperature": 22,
        "condition": "Unknown",
        "humidity": 50,
        "note": f"This is fallback data because the real weather lookup failed. Error: {error}",
    }


async def weather_handler(arguments: dict[str, Any], context: Any) -> dict[str, Any]:
    city = str(arguments.get("city") or "").strip()
    if not city:
        raise ToolExecutionError("city is required")

    try:
        return await fetch_weather(context.http_client, city)
    except (httpx.HTTPError, ToolExecutionError, KeyError, ValueError) as exc:
        if not context.settings.weather_fallback:
            if isinstance(exc, ToolExecutionError):
                raise
            raise ToolExecutionError(f"Weather lookup failed for {city}: {exc}") from exc
        logger.warning("Weather lookup for %s failed, returning fallback data: %s", city, exc)
        return fallback_weather(city, exc)
