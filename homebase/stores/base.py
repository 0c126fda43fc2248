from __future__ import annotations

from datetime import datetime, timezone
from uuid import uuid4


class InputValidationError(ValueError):
    """A required field is missing or malformed; the operation was not applied."""


def new_id() -> str:
    return uuid4().hex


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def clean_text(value) -> str:
    return str(value or "").strip()
