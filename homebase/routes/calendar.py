from __future__ import annotations

from datetime import date

from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.encoders import jsonable_encoder

from homebase.deps import get_calendar_store
from homebase.schemas import EventCreate, EventPatch
from homebase.settings import get_settings
from homebase.stores.base import InputValidationError
from homebase.stores.calendar import CalendarStore, MonthCursor

router = APIRouter()


@router.get("/v1/calendar/events")
def list_events(day: date | None = Query(None, alias="date"), store: CalendarStore = Depends(get_calendar_store)):
    items = store.events_on(day) if day is not None else store.all()
    return jsonable_encoder({"items": items})


@router.post("/v1/calendar/events", status_code=201)
def create_event(payload: EventCreate, store: CalendarStore = Depends(get_calendar_store)):
    try:
        event = store.add(payload.date, payload.title, payload.time, payload.description)
    except InputValidationError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    return jsonable_encoder({"item": event, "notice": f'"{event.title}" has been added to your calendar'})


@router.patch("/v1/calendar/events/{event_id}")
def patch_event(event_id: str, payload: EventPatch, store: CalendarStore = Depends(get_calendar_store)):
    try:
        event = store.update(event_id, payload)
    except InputValidationError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    if event is None:
        raise HTTPException(status_code=404, detail="Event not found")
    return jsonable_encoder({"item": event, "notice": "Your event has been successfully updated"})


@router.delete("/v1/calendar/events/{event_id}")
def delete_event(event_id: str, store: CalendarStore = Depends(get_calendar_store)):
    event = store.remove(event_id)
    if event is None:
        raise HTTPException(status_code=404, detail="Event not found")
    return {"ok": True, "notice": f'"{event.title}" has been removed from your calendar'}


@router.get("/v1/calendar/upcoming")
def upcoming_events(
    from_date: date | None = Query(None),
    limit: int = Query(5, ge=0, le=100),
    store: CalendarStore = Depends(get_calendar_store),
):
    start = from_date or get_settings().today()
    return jsonable_encoder({"from_date": start, "items": store.upcoming(start, limit)})


@router.get("/v1/calendar/month")
def month_view(
    year: int | None = Query(None, ge=1, le=9999),
    month: int | None = Query(None, ge=1, le=12),
    step: int = Query(0, ge=-1200, le=1200),
    store: CalendarStore = Depends(get_calendar_store),
):
    if (year is None) != (month is None):
        raise HTTPException(status_code=400, detail="year and month must be given together")
    today = get_settings().today()
    cursor = MonthCursor(year, month) if year is not None else MonthCursor.for_date(today)
    cursor = cursor.shift(step)
    if not 1 <= cursor.year <= 9999:
        raise HTTPException(status_code=400, detail="Month out of range")
    return jsonable_encoder(store.month_view(cursor, today))
