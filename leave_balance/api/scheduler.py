"""API endpoints for the daily reconciliation scheduler."""

from __future__ import annotations

from fastapi import APIRouter

from leave_balance.api.deps import SchedulerDep
from leave_balance.schemas.reconciliation import ReconciliationResponse, to_reconciliation_response
from leave_balance.schemas.scheduler import SchedulerStatusResponse
from leave_balance.services.scheduler import SchedulerDaemon

scheduler_router = APIRouter(
    prefix="/scheduler",
    tags=["scheduler"],
)


def _build_status_response(scheduler: SchedulerDaemon) -> SchedulerStatusResponse:
    status = scheduler.status()
    return SchedulerStatusResponse(
        running=status.running,
        state=status.state,
        next_run_at=status.next_run_at,
        last_run=to_reconciliation_response(status.last_run) if status.last_run is not None else None,
    )


@scheduler_router.get("/status", response_model=SchedulerStatusResponse)
async def get_status(scheduler: SchedulerDep) -> SchedulerStatusResponse:
    """Whether the scheduler is armed and when it fires next."""
    return _build_status_response(scheduler)


@scheduler_router.post("/start", response_model=SchedulerStatusResponse)
async def start_scheduler(scheduler: SchedulerDep) -> SchedulerStatusResponse:
    """Arm the daily run. No-op if already running."""
    scheduler.start()
    return _build_status_response(scheduler)


@scheduler_router.post("/stop", response_model=SchedulerStatusResponse)
async def stop_scheduler(scheduler: SchedulerDep) -> SchedulerStatusResponse:
    """Cancel pending runs. No-op if already stopped."""
    scheduler.stop()
    return _build_status_response(scheduler)


@scheduler_router.post("/trigger", response_model=ReconciliationResponse)
async def trigger_now(scheduler: SchedulerDep) -> ReconciliationResponse:
    """Run the daily reconciliation for the current year right away."""
    result = await scheduler.trigger_now()
    return to_reconciliation_response(result)
