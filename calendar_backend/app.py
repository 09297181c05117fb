"""
FastAPI application entry point for the calendar backend.
"""

from __future__ import annotations

import logging
import os

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

from calendar_backend.config import Settings, get_settings
from calendar_backend.errors import register_error_handlers
from calendar_backend.routes import router
from calendar_backend.schemas import HealthResponse

logger = logging.getLogger(__name__)


def create_app(settings: Settings | None = None) -> FastAPI:
    settings = settings or get_settings()
    app = FastAPI(title="Calendar Backend", version="0.1.0")
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    register_error_handlers(app)
    app.include_router(router, prefix=settings.api_prefix)

    @app.get("/health", response_model=HealthResponse)
    def health_check():
        return HealthResponse(status="healthy", service="calendar-backend")

    # Mounted last so API routes take precedence over static files.
    if os.path.isdir(settings.static_dir):
        app.mount(
            "/", StaticFiles(directory=settings.static_dir, html=True), name="static"
        )
    else:
        logger.info("Static directory %s not found; not serving assets", settings.static_dir)
    return app


app = create_app()
