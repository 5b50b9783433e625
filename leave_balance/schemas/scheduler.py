# ruff: noqa: TC001, TC003
from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel

from leave_balance.models.enums import SchedulerState
from leave_balance.schemas.reconciliation import ReconciliationResponse


class SchedulerStatusResponse(BaseModel):
    """Current state of the daily reconciliation scheduler."""

    running: bool
    state: SchedulerState
    next_run_at: datetime | None
    last_run: ReconciliationResponse | None
