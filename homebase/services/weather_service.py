from __future__ import annotations

import asyncio
import logging
import math
from datetime import datetime, timedelta, timezone
from typing import Callable

import httpx

from homebase.schemas import WeatherData, WidgetResult, WidgetState
from homebase.services.geolocation import GeolocationError, build_geolocator
from homebase.settings import Settings
from homebase.storage import KeyValueStorage, PersistedValue, run_blocking

logger = logging.getLogger(__name__)

WEATHER_KEY = "weatherData"
FALLBACK_WEATHER = {
    "temperature": 22,
    "condition": "Clear",
    "humidity": 65,
    "location": "Your Location",
}
WEATHER_ICONS = {
    "clear": "☀️",
    "clouds": "☁️",
    "rain": "🌧️",
    "snow": "❄️",
    "thunderstorm": "⛈️",
}
DEFAULT_WEATHER_ICON = "🌤️"


class WeatherProviderError(RuntimeError):
    pass


def weather_icon(condition) -> str:
    return WEATHER_ICONS.get(str(condition or "").lower(), DEFAULT_WEATHER_ICON)


def _round_half_up(value) -> int:
    value = float(value)
    if not math.isfinite(value):
        raise ValueError(f"Reading out of range: {value}")
    return int(math.floor(value + 0.5))


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class WeatherService:
    def __init__(
        self,
        storage: KeyValueStorage,
        settings: Settings,
        geolocator=None,
        transport: httpx.AsyncBaseTransport | None = None,
        clock: Callable[[], datetime] = _utc_now,
    ):
        self.storage = storage
        self.settings = settings
        self.geolocator = geolocator if geolocator is not None else build_geolocator(settings, transport)
        self.state = WidgetState.IDLE
        self._cache = PersistedValue(storage, WEATHER_KEY, WeatherData)
        self._transport = transport
        self._clock = clock
        self._generation = 0

    def _age(self, reading: WeatherData) -> timedelta:
        updated = reading.last_updated
        if updated.tzinfo is None:
            updated = updated.replace(tzinfo=timezone.utc)
        return self._clock() - updated

    async def current(self, lat: float | None = None, lon: float | None = None) -> WidgetResult:
        """Cached reading while it is fresh, otherwise a new fetch."""
        cached = await run_blocking(self._cache.load)
        if cached is not None and self._age(cached) < timedelta(minutes=self.settings.weather_fresh_minutes):
            self.state = WidgetState.CACHED
            return _result(cached, WidgetState.CACHED, "cache")
        return await self.refresh(lat, lon)

    async def refresh(self, lat: float | None = None, lon: float | None = None) -> WidgetResult:
        self._generation += 1
        generation = self._generation
        self.state = WidgetState.FETCHING
        try:
            reading = await self._fetch(lat, lon)
        except (GeolocationError, WeatherProviderError, asyncio.TimeoutError, httpx.HTTPError) as exc:
            logger.info("Weather fetch failed: %s", exc)
            return await self._fallback(generation)
        except (KeyError, IndexError, TypeError, ValueError) as exc:
            logger.warning("Weather provider returned an unexpected payload: %s", exc)
            return await self._fallback(generation)

        if generation == self._generation:
            await run_blocking(self._cache.save, reading)
            self.state = WidgetState.SUCCEEDED
        else:
            logger.debug("Discarding superseded weather fetch %s", generation)
        return _result(reading, WidgetState.SUCCEEDED, "openweathermap", f"Current conditions for {reading.location}")

    async def _locate(self, lat, lon):
        if lat is not None and lon is not None:
            return float(lat), float(lon)
        if self.geolocator is None:
            raise GeolocationError("No geolocation source configured")
        point = await asyncio.wait_for(self.geolocator.locate(), timeout=self.settings.geolocation_timeout_seconds)
        return point.latitude, point.longitude

    async def _fetch(self, lat, lon) -> WeatherData:
        secret = self.settings.openweather_api_key
        api_key = secret.get_secret_value() if secret is not None else ""
        if not api_key:
            raise WeatherProviderError("Weather API key not configured")
        lat, lon = await self._locate(lat, lon)
        params = {"lat": lat, "lon": lon, "appid": api_key, "units": "metric"}
        async with httpx.AsyncClient(timeout=self.settings.http_timeout_seconds, transport=self._transport) as client:
            response = await client.get(self.settings.weather_api_url, params=params)
        if response.status_code == 401:
            raise WeatherProviderError("API key invalid or expired")
        response.raise_for_status()
        data = response.json()
        return WeatherData(
            temperature=_round_half_up(data["main"]["temp"]),
            condition=str(data["weather"][0]["main"]),
            humidity=_round_half_up(data["main"]["humidity"]),
            location=str(data.get("name") or FALLBACK_WEATHER["location"]),
            last_updated=self._clock(),
        )

    async def _fallback(self, generation: int) -> WidgetResult:
        cached = await run_blocking(self._cache.load)
        if cached is not None and self._age(cached) < timedelta(hours=self.settings.weather_cache_max_age_hours):
            result = _result(cached, WidgetState.FALLBACK, "cache", "Using cached weather: unable to fetch current weather data.")
        else:
            reading = WeatherData(**FALLBACK_WEATHER, last_updated=self._clock())
            result = _result(reading, WidgetState.FALLBACK, "fallback", "Weather service unavailable: showing sample weather data.")
        if generation == self._generation:
            self.state = WidgetState.FALLBACK
        return result


def _result(reading: WeatherData, state: WidgetState, source: str, notice: str | None = None) -> WidgetResult:
    return WidgetResult(
        value=reading.model_dump(mode="json", by_alias=True),
        state=state,
        source=source,
        notice=notice,
        icon=weather_icon(reading.condition),
    )
