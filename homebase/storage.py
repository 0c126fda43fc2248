"""Local key-value storage and the persisted records built on top of it.

Every value is a JSON document stored under a string key in a single table.
Writes are synchronous and overwrite the previous value unconditionally, so
the last writer for a key wins.
"""
from __future__ import annotations

import asyncio
import json
import logging
from typing import Callable, Generic, Iterable, TypeVar

from pydantic import BaseModel, TypeAdapter, ValidationError
from sqlalchemy import text as sql_text
from sqlalchemy.engine import Engine

from homebase.db_init import STORAGE_TABLE

logger = logging.getLogger(__name__)

T = TypeVar("T", bound=BaseModel)

StorageListener = Callable[[str], None]


class KeyValueStorage:
    def __init__(self, engine: Engine):
        self._engine = engine
        self._listeners: list[StorageListener] = []

    def get_item(self, key: str) -> str | None:
        with self._engine.connect() as conn:
            row = conn.execute(
                sql_text(f"SELECT value FROM {STORAGE_TABLE} WHERE key = :key"),
                {"key": key},
            ).fetchone()
        return row[0] if row else None

    def set_item(self, key: str, value: str) -> None:
        with self._engine.begin() as conn:
            conn.execute(
                sql_text(
                    f"INSERT INTO {STORAGE_TABLE} (key, value) VALUES (:key, :value) "
                    "ON CONFLICT(key) DO UPDATE SET value=EXCLUDED.value"
                ),
                {"key": key, "value": value},
            )
        self._notify(key)

    def remove_item(self, key: str) -> None:
        with self._engine.begin() as conn:
            conn.execute(sql_text(f"DELETE FROM {STORAGE_TABLE} WHERE key = :key"), {"key": key})
        self._notify(key)

    def subscribe(self, listener: StorageListener) -> Callable[[], None]:
        """Register ``listener`` to be called with the key after every write.

        Returns a callable that removes the listener again.
        """
        self._listeners.append(listener)

        def _unsubscribe():
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    def _notify(self, key: str) -> None:
        for listener in list(self._listeners):
            try:
                listener(key)
            except Exception:
                logger.exception("Storage listener failed for key %s", key)


class PersistedList(Generic[T]):
    """An ordered list of records saved as one JSON array under ``key``."""

    def __init__(self, storage: KeyValueStorage, key: str, model: type[T]):
        self.storage = storage
        self.key = key
        self.model = model
        self._adapter = TypeAdapter(list[model])

    def load(self) -> list[T]:
        raw = self.storage.get_item(self.key)
        if not raw:
            return []
        try:
            return self._adapter.validate_json(raw)
        except ValidationError as exc:
            logger.warning("Discarding unreadable %s data: %s", self.key, exc.error_count())
            return []

    def save(self, items: Iterable[T]) -> None:
        payload = self._adapter.dump_json(list(items), by_alias=True)
        self.storage.set_item(self.key, payload.decode("utf-8"))


class PersistedValue(Generic[T]):
    """A single replaceable record saved under ``key``."""

    def __init__(self, storage: KeyValueStorage, key: str, model: type[T]):
        self.storage = storage
        self.key = key
        self.model = model

    def load(self) -> T | None:
        raw = self.storage.get_item(self.key)
        if not raw:
            return None
        try:
            return self.model.model_validate_json(raw)
        except ValidationError:
            logger.warning("Discarding unreadable %s data", self.key)
            return None

    def save(self, value: T) -> None:
        self.storage.set_item(self.key, value.model_dump_json(by_alias=True))


def load_text(storage: KeyValueStorage, key: str) -> str | None:
    """Read a plain JSON string value, ``None`` when absent or unreadable."""
    raw = storage.get_item(key)
    if not raw:
        return None
    try:
        value = json.loads(raw)
    except ValueError:
        return None
    return value if isinstance(value, str) else None


def save_text(storage: KeyValueStorage, key: str, value: str) -> None:
    storage.set_item(key, json.dumps(value))


async def run_blocking(func, *args):
    """Run a synchronous storage call on the loop's default executor."""
    loop = asyncio.get_running_loop()
    return await loop.run_in_executor(None, func, *args)
