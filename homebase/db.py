from __future__ import annotations

import logging
from urllib.parse import urlparse

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine

from homebase.settings import get_settings

logger = logging.getLogger(__name__)


def _normalize_database_url(database_url: str) -> str:
    url = str(database_url or "").strip()
    if not url:
        return url
    if url.startswith("postgres://"):
        url = "postgresql+psycopg2://" + url[len("postgres://") :]
    elif url.startswith("postgresql+asyncpg://"):
        url = "postgresql+psycopg2://" + url[len("postgresql+asyncpg://") :]
    return url


def build_engine(database_url: str) -> Engine:
    db_url = _normalize_database_url(database_url)
    engine_kwargs: dict = {"future": True}
    try:
        scheme = urlparse(db_url).scheme
    except Exception:
        scheme = ""
        logger.debug("Failed to parse database URL scheme.")
    if scheme.startswith("sqlite"):
        # Store calls may run on FastAPI's threadpool.
        engine_kwargs["connect_args"] = {"check_same_thread": False}
    else:
        engine_kwargs["pool_pre_ping"] = True
    return create_engine(db_url, **engine_kwargs)


_engine: Engine | None = None


def get_engine() -> Engine:
    global _engine
    if _engine is None:
        _engine = build_engine(get_settings().database_url)
    return _engine
