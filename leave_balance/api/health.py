import logging
from typing import Literal

from fastapi import APIRouter, Request
from pydantic import BaseModel
from sqlalchemy import text

from leave_balance.config import get_settings
from leave_balance.db import SessionDep
from leave_balance.models.enums import SchedulerState

logger = logging.getLogger(__name__)

router = APIRouter(tags=["health"])


class HealthResponse(BaseModel):
    """Health check response."""

    status: Literal["ok", "degraded", "error"]
    version: str
    environment: str
    scheduler: SchedulerState | None


@router.get("/health", response_model=HealthResponse)
async def health(request: Request, session: SessionDep) -> HealthResponse:
    """Return the health status of the API service."""
    settings = get_settings()
    status: Literal["ok", "degraded", "error"] = "ok"

    try:
        await session.execute(text("SELECT 1"))
    except Exception:
        logger.exception("Health check: database connectivity failed")
        status = "degraded"

    scheduler = getattr(request.app.state, "scheduler", None)
    return HealthResponse(
        status=status,
        version=settings.app_version,
        environment=settings.environment,
        scheduler=scheduler.state if scheduler is not None else None,
    )
