"""Shared FastAPI dependency providers for controller layer."""

from __future__ import annotations

from fastapi import HTTPException, Request, status

from booking_engine.services.planning_service import ResourcePlanningService
from booking_engine.utils.config import get_settings


def get_planning_service(request: Request) -> ResourcePlanningService:
    service = getattr(request.app.state, "planning_service", None)
    if service is None:
        try:
            service = ResourcePlanningService(settings=get_settings())
        except ValueError as exc:
            raise HTTPException(
                status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
                detail=f"Planning service is not initialized: {exc}",
            ) from exc
        request.app.state.planning_service = service
    return service
