# ruff: noqa: B008, TC001
"""API endpoints for leave balance recomputation, reports, and summaries."""

from __future__ import annotations

from datetime import date

from fastapi import APIRouter, Query

from leave_balance.api.deps import DirectoryDep, ReconcilerDep
from leave_balance.db import SessionDep
from leave_balance.exceptions import CollaboratorUnavailable, PerEmployeeAggregationFailure
from leave_balance.schemas.balance import AbsencePreviewResponse, BalanceReportResponse, LeaveSummaryResponse
from leave_balance.schemas.reconciliation import ReconciliationResponse, to_reconciliation_response
from leave_balance.services.report import build_balance_report
from leave_balance.services.summary import summarize_year

leave_balances_router = APIRouter(
    prefix="/leave-balances",
    tags=["leave-balances"],
)


def _current_year() -> int:
    return date.today().year


@leave_balances_router.post("/recompute", response_model=ReconciliationResponse)
async def recompute(
    reconciler: ReconcilerDep,
    year: int | None = Query(default=None),
) -> ReconciliationResponse:
    """Recompute and persist leave balances for every active employee.

    Idempotent and safe to call repeatedly; a call that arrives while the
    same year is already being reconciled shares that run.
    """
    result = await reconciler.reconcile(year if year is not None else _current_year())
    return to_reconciliation_response(result)


@leave_balances_router.get("/report", response_model=BalanceReportResponse)
async def get_report(
    session: SessionDep,
    directory: DirectoryDep,
    year: int | None = Query(default=None),
) -> BalanceReportResponse:
    """Stored balances for a year, one row per employee."""
    return await build_balance_report(session, directory, year if year is not None else _current_year())


@leave_balances_router.get("/summary", response_model=LeaveSummaryResponse)
async def get_summary(
    session: SessionDep,
    year: int | None = Query(default=None),
) -> LeaveSummaryResponse:
    """Totals over the stored balances for a year."""
    return await summarize_year(session, year if year is not None else _current_year())


@leave_balances_router.get("/employees/{employee_id}/absences", response_model=AbsencePreviewResponse)
async def preview_absences(
    employee_id: str,
    reconciler: ReconcilerDep,
    year: int | None = Query(default=None),
) -> AbsencePreviewResponse:
    """Chargeable absences for one employee, read live from attendance. Writes nothing."""
    target_year = year if year is not None else _current_year()
    reconciler.policy.ensure_applicable(target_year)

    try:
        absent_dates = await reconciler.aggregator.list_chargeable_absences(employee_id, target_year)
    except PerEmployeeAggregationFailure as failure:
        raise CollaboratorUnavailable("attendance ledger", failure.cause) from failure
    used_days = len(absent_dates)
    return AbsencePreviewResponse(
        employee_id=employee_id,
        year=target_year,
        annual_entitlement=reconciler.policy.annual_entitlement,
        absent_dates=absent_dates,
        used_days=used_days,
        remaining_days=reconciler.policy.remaining_for(used_days),
    )
