from __future__ import annotations

from sqlalchemy import text as sql_text
from sqlalchemy.engine import Engine

from homebase.db import get_engine


STORAGE_TABLE = "local_storage"


def init_db(engine: Engine | None = None) -> None:
    engine = engine or get_engine()
    with engine.begin() as conn:
        conn.execute(
            sql_text(
                f"""
                CREATE TABLE IF NOT EXISTS {STORAGE_TABLE} (
                    key TEXT PRIMARY KEY,
                    value TEXT
                )
                """
            )
        )
