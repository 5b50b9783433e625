# ruff: noqa: TC001, TC003
from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING

from pydantic import BaseModel

from leave_balance.models.enums import RunStatus

if TYPE_CHECKING:
    from leave_balance.services.reconciler import ReconciliationResult


class ReconciliationResponse(BaseModel):
    """Outcome of a leave balance reconciliation run."""

    year: int
    status: RunStatus
    employees_processed: int
    failed_employee_ids: list[str]
    total_used_days: int
    total_remaining_days: int
    started_at: datetime
    finished_at: datetime | None


def to_reconciliation_response(result: ReconciliationResult) -> ReconciliationResponse:
    """Map a run result dataclass to its response schema."""
    return ReconciliationResponse(
        year=result.year,
        status=result.status,
        employees_processed=result.employees_processed,
        failed_employee_ids=list(result.failed_employee_ids),
        total_used_days=result.total_used_days,
        total_remaining_days=result.total_remaining_days,
        started_at=result.started_at,
        finished_at=result.finished_at,
    )
