from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Response
from fastapi.encoders import jsonable_encoder

from homebase.deps import get_mood_store
from homebase.schemas import MoodCreate
from homebase.stores.base import InputValidationError
from homebase.stores.moods import MoodStore, mood_options

router = APIRouter()


def _with_emoji(entry) -> dict:
    payload = jsonable_encoder(entry)
    payload["emoji"] = MoodStore.emoji_for(entry.mood)
    return payload


@router.get("/v1/moods")
def list_moods(store: MoodStore = Depends(get_mood_store)):
    return {"items": [_with_emoji(entry) for entry in store.all()]}


@router.get("/v1/moods/options")
def list_mood_options():
    return {"items": jsonable_encoder(mood_options())}


@router.post("/v1/moods", status_code=201)
def save_mood(payload: MoodCreate, store: MoodStore = Depends(get_mood_store)):
    try:
        entry = store.save(payload.mood, payload.drawing)
    except InputValidationError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    return {"item": _with_emoji(entry), "notice": f"Your {entry.mood} mood has been recorded"}


@router.delete("/v1/moods/{entry_id}")
def delete_mood(entry_id: str, store: MoodStore = Depends(get_mood_store)):
    if store.remove(entry_id) is None:
        raise HTTPException(status_code=404, detail="Mood entry not found")
    return {"ok": True, "notice": "Mood entry has been removed"}


@router.get("/v1/moods/{entry_id}/drawing")
def download_drawing(entry_id: str, store: MoodStore = Depends(get_mood_store)):
    entry = store.get(entry_id)
    if entry is None:
        raise HTTPException(status_code=404, detail="Mood entry not found")
    try:
        export = store.export_drawing(entry)
    except InputValidationError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc
    return Response(
        content=export.content,
        media_type=export.media_type,
        headers={"Content-Disposition": f'attachment; filename="{export.filename}"'},
    )
