from __future__ import annotations

import base64
import binascii
import logging
import mimetypes
import re
from dataclasses import dataclass

from homebase.schemas import MoodEntry, MoodOption
from homebase.storage import KeyValueStorage, PersistedList
from homebase.stores.base import InputValidationError, clean_text, new_id, utc_now

logger = logging.getLogger(__name__)

MOOD_ENTRIES_KEY = "moodEntries"

MOODS = [
    ("happy", "Happy", "😊"),
    ("sad", "Sad", "😢"),
    ("excited", "Excited", "🤩"),
    ("calm", "Calm", "😌"),
    ("anxious", "Anxious", "😰"),
    ("angry", "Angry", "😠"),
    ("neutral", "Neutral", "😐"),
]
MOOD_EMOJI = {value: emoji for value, _, emoji in MOODS}
DEFAULT_EMOJI = "😐"

# 1x1 transparent PNG, stored when a mood is saved without a drawing.
BLANK_DRAWING = (
    "data:image/png;base64,"
    "iVBORw0KGgoAAAANSUhEUgAAAAEAAAABCAQAAAC1HAwCAAAAC0lEQVR42mNkYAAAAAYAAjCB0C8AAAAASUVORK5CYII="
)

_DATA_URL_RE = re.compile(r"^data:(?P<media_type>image/[\w.+-]+);base64,(?P<payload>[A-Za-z0-9+/=\s]+)$")


@dataclass(frozen=True)
class DrawingExport:
    filename: str
    media_type: str
    content: bytes


def emoji_for(mood) -> str:
    return MOOD_EMOJI.get(mood, DEFAULT_EMOJI)


def mood_options() -> list[MoodOption]:
    return [MoodOption(value=value, label=label, emoji=emoji) for value, label, emoji in MOODS]


def _decode_drawing(drawing: str) -> tuple[str, bytes]:
    match = _DATA_URL_RE.match(drawing or "")
    if not match:
        raise InputValidationError("Drawing must be a base64 image data URL")
    try:
        content = base64.b64decode(match.group("payload"), validate=False)
    except (binascii.Error, ValueError) as exc:
        raise InputValidationError("Drawing data is not valid base64") from exc
    return match.group("media_type"), content


class MoodStore:
    def __init__(self, storage: KeyValueStorage):
        self._list = PersistedList(storage, MOOD_ENTRIES_KEY, MoodEntry)

    def all(self) -> list[MoodEntry]:
        return self._list.load()

    def get(self, entry_id: str) -> MoodEntry | None:
        return next((entry for entry in self._list.load() if entry.id == entry_id), None)

    def save(self, mood, drawing: str | None = None) -> MoodEntry:
        mood = clean_text(mood)
        if not mood:
            raise InputValidationError("Please select a mood")
        if mood not in MOOD_EMOJI:
            raise InputValidationError(f"Unknown mood: {mood}")
        drawing = clean_text(drawing) or BLANK_DRAWING
        _decode_drawing(drawing)
        entry = MoodEntry(id=new_id(), mood=mood, drawing=drawing, timestamp=utc_now())
        self._list.save([entry, *self._list.load()])
        logger.debug("Saved %s mood entry %s", mood, entry.id)
        return entry

    def remove(self, entry_id: str) -> MoodEntry | None:
        entries = self._list.load()
        removed = next((entry for entry in entries if entry.id == entry_id), None)
        if removed is None:
            return None
        self._list.save([entry for entry in entries if entry.id != entry_id])
        return removed

    def recent(self, limit: int = 3) -> list[MoodEntry]:
        return self._list.load()[: max(0, limit)]

    @staticmethod
    def emoji_for(mood) -> str:
        return emoji_for(mood)

    @staticmethod
    def export_drawing(entry: MoodEntry) -> DrawingExport:
        media_type, content = _decode_drawing(entry.drawing)
        extension = ".png" if media_type == "image/png" else (mimetypes.guess_extension(media_type) or ".png")
        day_label = entry.timestamp.strftime("%a %b %d %Y")
        return DrawingExport(
            filename=f"mood-{entry.mood}-{day_label}{extension}",
            media_type=media_type,
            content=content,
        )
