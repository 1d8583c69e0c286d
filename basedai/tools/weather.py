from __future__ import annotations

import re
from datetime import datetime

import httpx
from pydantic import BaseModel, ValidationError

from basedai.log import logger
from basedai.tools.base import Tool, ToolDescriptor, ToolInvocation, ToolParameter, error_text

GEOCODING_URL = "https://geocoding-api.open-meteo.com/v1/search"
FORECAST_URL = "https://api.open-meteo.com/v1/forecast"

HOURLY_SAMPLES = 24
DAILY_SAMPLES = 7

_COORDINATES_RE = re.compile(r"^\s*(-?\d+(?:\.\d+)?)\s*,\s*(-?\d+(?:\.\d+)?)\s*$")

# WMO weather interpretation codes, grouped
WEATHER_CONDITIONS: tuple[tuple[range, str], ...] = (
    (range(0, 1), "Clear sky"),
    (range(1, 4), "Partly cloudy"),
    (range(45, 49), "Fog"),
    (range(51, 58), "Drizzle"),
    (range(61, 68), "Rain"),
    (range(71, 78), "Snow"),
    (range(80, 83), "Rain"),
    (range(85, 87), "Snow"),
    (range(95, 100), "Thunderstorm"),
)


def weather_condition(code: int) -> str:
    for codes, condition in WEATHER_CONDITIONS:
        if code in codes:
            return condition
    return "Unknown"


class Location(BaseModel):
    latitude: float
    longitude: float
    name: str


DEFAULT_LOCATION = Location(latitude=51.52, longitude=-0.11, name="London (51.52, -0.11)")


class GeocodingResult(BaseModel):
    latitude: float
    longitude: float
    name: str
    country: str | None = None


class GeocodingResponse(BaseModel):
    results: list[GeocodingResult] | None = None


class CurrentWeather(BaseModel):
    temperature: float
    windspeed: float
    weathercode: int


class HourlyForecast(BaseModel):
    time: list[str]
    temperature_2m: list[float]
    weathercode: list[int]


class DailyForecast(BaseModel):
    time: list[str]
    temperature_2m_max: list[float]
    temperature_2m_min: list[float]
    weathercode: list[int]


class WeatherResponse(BaseModel):
    current_weather: CurrentWeather
    hourly: HourlyForecast | None = None
    daily: DailyForecast | None = None


def parse_coordinates(text: str) -> Location | None:
    match = _COORDINATES_RE.match(text)
    if not match:
        return None
    latitude, longitude = float(match.group(1)), float(match.group(2))
    if not (-90 <= latitude <= 90 and -180 <= longitude <= 180):
        return None
    return Location(latitude=latitude, longitude=longitude, name=f"{match.group(1)},{match.group(2)}")


class WeatherTool(Tool):
    descriptor = ToolDescriptor(
        name="get_weather",
        description=(
            "Fetches current weather and optional forecast for a specified location. "
            "If no location is provided, defaults to London (51.52,-0.11). "
            "Accepts a city name (e.g., 'Tokyo', 'New York') or coordinates (e.g., '51.52,-0.11'). "
            "Forecast type can be 'none' (current weather only), 'hourly' (next 24 hours), or 'daily' (next 7 days). "
            "Returns temperature, condition, wind speed, and forecast if requested."
        ),
        optional_parameters=(
            ToolParameter(name="location", description="Optional city name or coordinates (latitude,longitude)."),
            ToolParameter(
                name="forecast_type",
                description=(
                    "Optional forecast type: 'none' (current only), 'hourly' (next 24 hours), "
                    "or 'daily' (next 7 days). Defaults to 'none'."
                ),
                default="none",
            ),
        ),
    )

    def __init__(self, client: httpx.AsyncClient) -> None:
        self.client = client

    async def execute(self, invocation: ToolInvocation) -> str:
        forecast_type = invocation.arguments["forecast_type"].strip().lower()
        try:
            location = await self.resolve_location(invocation.arguments.get("location"))
            weather = await self.fetch_weather(location, forecast_type)
            return format_weather(location, weather, forecast_type)
        except (httpx.HTTPError, ValidationError, ValueError) as e:
            logger.warning(f"Weather lookup failed: {e}")
            return error_text(f"could not fetch weather: {e}. Try a different location or check connectivity.")

    async def resolve_location(self, text: str | None) -> Location:
        if not text or not text.strip():
            return DEFAULT_LOCATION

        coordinates = parse_coordinates(text)
        if coordinates:
            return coordinates

        response = await self.client.get(GEOCODING_URL, params={"name": text.strip(), "count": 1})
        response.raise_for_status()
        geocoding = GeocodingResponse.model_validate(response.json())
        if not geocoding.results:
            logger.info(f"No geocoding match for {text!r}, using {DEFAULT_LOCATION.name}")
            return DEFAULT_LOCATION

        match = geocoding.results[0]
        name = f"{match.name}, {match.country}" if match.country else match.name
        return Location(latitude=match.latitude, longitude=match.longitude, name=name)

    async def fetch_weather(self, location: Location, forecast_type: str) -> WeatherResponse:
        params: dict[str, str | float] = {
            "latitude": location.latitude,
            "longitude": location.longitude,
            "current_weather": "true",
            "temperature_unit": "fahrenheit",
            "wind_speed_unit": "mph",
            "precipitation_unit": "inch",
        }
        if forecast_type == "hourly":
            params["hourly"] = "temperature_2m,weathercode"
        elif forecast_type == "daily":
            params["daily"] = "temperature_2m_max,temperature_2m_min,weathercode"

        response = await self.client.get(FORECAST_URL, params=params)
        response.raise_for_status()
        return WeatherResponse.model_validate(response.json())


def format_weather(location: Location, weather: WeatherResponse, forecast_type: str) -> str:
    current = weather.current_weather
    lines = [
        f"Current weather in {location.name}: {current.temperature}°F, "
        f"{weather_condition(current.weathercode)}, wind speed {current.windspeed} mph"
    ]

    if forecast_type == "hourly" and weather.hourly:
        hourly = weather.hourly
        lines.append("Hourly forecast (next 24 hours):")
        for time, temperature, code in list(zip(hourly.time, hourly.temperature_2m, hourly.weathercode))[
            :HOURLY_SAMPLES
        ]:
            lines.append(f"  {datetime.fromisoformat(time):%H:%M}: {temperature}°F, {weather_condition(code)}")
    elif forecast_type == "daily" and weather.daily:
        daily = weather.daily
        lines.append("Daily forecast (next 7 days):")
        samples = zip(daily.time, daily.temperature_2m_max, daily.temperature_2m_min, daily.weathercode)
        for day, high, low, code in list(samples)[:DAILY_SAMPLES]:
            lines.append(f"  {day}: {high}°F / {low}°F, {weather_condition(code)}")

    return "\n".join(lines)
