from __future__ import annotations

from fastapi import APIRouter, Depends, Query

from homebase.deps import get_quote_service, get_weather_service
from homebase.services.quote_service import QuoteService
from homebase.services.weather_service import WeatherService

router = APIRouter()


@router.get("/v1/widgets/quote")
async def daily_quote(service: QuoteService = Depends(get_quote_service)):
    return await service.daily_quote()


@router.post("/v1/widgets/quote/refresh")
async def refresh_quote(service: QuoteService = Depends(get_quote_service)):
    result = await service.refresh()
    payload = result.model_dump(mode="json")
    payload["remaining_requests"] = service.rate_limiter.remaining
    return payload


@router.get("/v1/widgets/weather")
async def current_weather(
    lat: float | None = Query(None, ge=-90, le=90),
    lon: float | None = Query(None, ge=-180, le=180),
    service: WeatherService = Depends(get_weather_service),
):
    return await service.current(lat, lon)


@router.post("/v1/widgets/weather/refresh")
async def refresh_weather(
    lat: float | None = Query(None, ge=-90, le=90),
    lon: float | None = Query(None, ge=-180, le=180),
    service: WeatherService = Depends(get_weather_service),
):
    return await service.refresh(lat, lon)
