"""
app.py — FastAPI application factory and startup lifecycle.

This is the ASGI application object imported by uvicorn.
It wires the planning service and registers the planning router.

Usage (via launcher):
    python main.py

Usage (direct uvicorn):
    uvicorn app:app --reload
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI

from booking_engine.controllers.planning_controller import router as planning_router
from booking_engine.services.planning_service import ResourcePlanningService
from booking_engine.utils.config import Settings, get_settings
from booking_engine.utils.logger import get_logger


logger = get_logger(__name__)


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """
    Build and wire the FastAPI application.

    The planning service is injected via app.state; controllers resolve it
    through booking_engine.controllers.dependencies.
    """
    settings = settings or get_settings()
    planning_service = ResourcePlanningService(settings=settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Log the effective engine configuration before accepting requests."""
        _startup(app)
        yield

    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        lifespan=lifespan,
    )

    app.include_router(planning_router)

    app.state.settings = settings
    app.state.planning_service = planning_service

    return app


def _startup(app: FastAPI) -> None:
    service: ResourcePlanningService = app.state.planning_service
    logger.info(
        "Startup complete | business_window=%s-%s | recurrence_cap=%s",
        service.config.business_window_start,
        service.config.business_window_end,
        service.config.recurrence_max_occurrences,
    )


# Module-level app object for uvicorn
app = create_app()
