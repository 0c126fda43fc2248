from __future__ import annotations

import datetime as dt
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


Priority = Literal["High", "Medium", "Low"]
StatusFilter = Literal["all", "completed", "pending"]
PriorityFilter = Literal["all", "High", "Medium", "Low"]
Mood = Literal["happy", "sad", "excited", "calm", "anxious", "angry", "neutral"]


class StoredRecord(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# Stored records


class Task(StoredRecord):
    id: str
    title: str
    completed: bool = False
    priority: Priority = "Medium"
    created_at: datetime


class MoodEntry(StoredRecord):
    id: str
    mood: Mood
    drawing: str
    timestamp: datetime


class CalendarEvent(StoredRecord):
    id: str
    title: str
    description: str = ""
    date: dt.date
    time: Optional[str] = None
    created_at: datetime


class QuoteData(StoredRecord):
    content: str
    author: str
    date_added: datetime


class WeatherData(StoredRecord):
    temperature: int
    condition: str
    humidity: int
    location: str
    last_updated: datetime


# Derived views


class TodoProgress(BaseModel):
    completed: int
    total: int
    percent: float


class MoodOption(BaseModel):
    value: str
    label: str
    emoji: str


class CalendarDay(BaseModel):
    date: dt.date
    events: List[CalendarEvent]
    more_count: int = 0
    is_today: bool = False


class MonthView(BaseModel):
    year: int
    month: int
    title: str
    leading_blanks: int
    days: List[CalendarDay]


class WidgetState(str, Enum):
    IDLE = "idle"
    FETCHING = "fetching"
    SUCCEEDED = "succeeded"
    CACHED = "cached"
    FALLBACK = "fallback"


class WidgetResult(BaseModel):
    value: Dict[str, Any]
    state: WidgetState
    source: str
    notice: Optional[str] = None
    icon: Optional[str] = None


# Request payloads


class TaskCreate(BaseModel):
    title: str
    priority: Priority = "Medium"


class TaskPatch(BaseModel):
    title: Optional[str] = None
    priority: Optional[Priority] = None
    completed: Optional[bool] = None


class MoodCreate(BaseModel):
    mood: Optional[str] = None
    drawing: Optional[str] = None


class EventCreate(BaseModel):
    date: dt.date
    title: str
    time: Optional[str] = None
    description: str = ""


class EventPatch(BaseModel):
    title: Optional[str] = None
    description: Optional[str] = None
    date: Optional[dt.date] = None
    time: Optional[str] = None

