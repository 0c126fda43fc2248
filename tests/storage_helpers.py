import tempfile
from pathlib import Path

from homebase.db import build_engine
from homebase.db_init import init_db
from homebase.storage import KeyValueStorage


def make_storage(testcase):
    """A storage backed by a throwaway SQLite file, removed after the test."""
    tmp = tempfile.TemporaryDirectory()
    testcase.addCleanup(tmp.cleanup)
    engine = build_engine(f"sqlite:///{Path(tmp.name) / 'homebase.db'}")
    testcase.addCleanup(engine.dispose)
    init_db(engine)
    return KeyValueStorage(engine)
