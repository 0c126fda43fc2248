from __future__ import annotations

from functools import lru_cache

from fastapi import Depends

from homebase.db import get_engine
from homebase.services.quote_service import QuoteService
from homebase.services.weather_service import WeatherService
from homebase.settings import get_settings
from homebase.storage import KeyValueStorage
from homebase.stores.calendar import CalendarStore
from homebase.stores.moods import MoodStore
from homebase.stores.todos import TodoStore


@lru_cache(maxsize=1)
def get_storage() -> KeyValueStorage:
    return KeyValueStorage(get_engine())


def get_todo_store(storage: KeyValueStorage = Depends(get_storage)) -> TodoStore:
    return TodoStore(storage)


def get_mood_store(storage: KeyValueStorage = Depends(get_storage)) -> MoodStore:
    return MoodStore(storage)


def get_calendar_store(storage: KeyValueStorage = Depends(get_storage)) -> CalendarStore:
    return CalendarStore(storage)


# Widgets keep rate-limit and fetch state between requests.
@lru_cache(maxsize=1)
def get_quote_service() -> QuoteService:
    return QuoteService(get_storage(), get_settings())


@lru_cache(maxsize=1)
def get_weather_service() -> WeatherService:
    return WeatherService(get_storage(), get_settings())
