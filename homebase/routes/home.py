from __future__ import annotations

from fastapi import APIRouter, Depends
from fastapi.encoders import jsonable_encoder

from homebase.deps import get_calendar_store, get_mood_store, get_todo_store
from homebase.settings import get_settings
from homebase.stores.calendar import CalendarStore
from homebase.stores.moods import MoodStore
from homebase.stores.todos import TodoStore

router = APIRouter()

PREVIEW_SIZE = 3


@router.get("/v1/home")
def home_overview(
    todos: TodoStore = Depends(get_todo_store),
    moods: MoodStore = Depends(get_mood_store),
    calendar: CalendarStore = Depends(get_calendar_store),
):
    today = get_settings().today()
    recent_moods = []
    for entry in moods.recent(PREVIEW_SIZE):
        payload = jsonable_encoder(entry)
        payload["emoji"] = moods.emoji_for(entry.mood)
        recent_moods.append(payload)
    return {
        "today": today.isoformat(),
        "todos": jsonable_encoder({"items": todos.preview(PREVIEW_SIZE), "progress": todos.progress()}),
        "moods": {"items": recent_moods},
        "upcoming_events": jsonable_encoder(calendar.upcoming(today, PREVIEW_SIZE)),
    }
