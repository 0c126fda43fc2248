from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from homebase.db_init import init_db
from homebase.logging_config import configure_logging
from homebase.routes import calendar, home, moods, todos, widgets
from homebase.settings import get_settings


def create_app() -> FastAPI:
    configure_logging(get_settings().log_level)
    app = FastAPI(title="Homebase API", version="0.1.0")

    app.include_router(home.router)
    app.include_router(todos.router)
    app.include_router(moods.router)
    app.include_router(calendar.router)
    app.include_router(widgets.router)

    @app.on_event("startup")
    def _startup():
        init_db()

    @app.exception_handler(Exception)
    async def _unhandled_exception_handler(request: Request, exc: Exception):
        logging.getLogger("homebase").exception("Unhandled exception: %s", exc)
        return JSONResponse(status_code=500, content={"detail": "Internal error"})

    @app.get("/health")
    async def health():
        return {"ok": True}

    return app


app = create_app()
