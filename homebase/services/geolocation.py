from __future__ import annotations

import logging
from dataclasses import dataclass

import httpx

from homebase.settings import Settings

logger = logging.getLogger(__name__)


class GeolocationError(RuntimeError):
    pass


@dataclass(frozen=True)
class GeoPoint:
    latitude: float
    longitude: float


class StaticGeolocator:
    """Coordinates configured up front, e.g. ``DEFAULT_LATITUDE``/``DEFAULT_LONGITUDE``."""

    def __init__(self, latitude: float, longitude: float):
        self.point = GeoPoint(float(latitude), float(longitude))

    async def locate(self) -> GeoPoint:
        return self.point


class IpGeolocator:
    """Approximate location of this host from an IP geolocation lookup."""

    def __init__(self, url: str, timeout: float = 10.0, transport: httpx.AsyncBaseTransport | None = None):
        self.url = url
        self.timeout = timeout
        self._transport = transport

    async def locate(self) -> GeoPoint:
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                response = await client.get(self.url)
            response.raise_for_status()
            data = response.json()
        except (httpx.HTTPError, ValueError) as exc:
            raise GeolocationError(f"Geolocation lookup failed: {exc}") from exc
        if not isinstance(data, dict) or data.get("status") == "fail":
            raise GeolocationError("Geolocation lookup returned no position")
        lat = data.get("lat", data.get("latitude"))
        lon = data.get("lon", data.get("longitude"))
        try:
            return GeoPoint(float(lat), float(lon))
        except (TypeError, ValueError) as exc:
            raise GeolocationError("Geolocation lookup returned no position") from exc


def build_geolocator(settings: Settings, transport: httpx.AsyncBaseTransport | None = None):
    if settings.has_static_location:
        return StaticGeolocator(settings.default_latitude, settings.default_longitude)
    if settings.geolocation_url:
        return IpGeolocator(settings.geolocation_url, settings.geolocation_timeout_seconds, transport=transport)
    return None
