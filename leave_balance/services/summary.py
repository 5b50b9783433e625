"""Read-only projection of persisted leave balances into yearly totals."""

from __future__ import annotations

from typing import TYPE_CHECKING

from sqlalchemy import case, func, select
from sqlmodel import col

from leave_balance.models.balance import LeaveBalance
from leave_balance.schemas.balance import LeaveSummaryResponse

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession


async def summarize_year(session: AsyncSession, year: int) -> LeaveSummaryResponse:
    """Sum the stored balances for a year.

    Never recomputes attendance: a year that has not been reconciled yet
    reports zeros everywhere.
    """
    result = await session.execute(
        select(
            func.count().label("total_employees"),
            func.coalesce(func.sum(col(LeaveBalance.annual_entitlement)), 0).label("total_eligible_days"),
            func.coalesce(func.sum(col(LeaveBalance.used_days)), 0).label("total_absent_days"),
            func.coalesce(func.sum(col(LeaveBalance.remaining_days)), 0).label("total_remaining_days"),
            func.coalesce(
                func.sum(case((col(LeaveBalance.used_days) == 0, 1), else_=0)),
                0,
            ).label("fully_available"),
        ).where(col(LeaveBalance.year) == year)
    )
    row = result.one()

    return LeaveSummaryResponse(
        year=year,
        total_employees=row.total_employees,
        total_eligible_days=row.total_eligible_days,
        total_absent_days=row.total_absent_days,
        total_remaining_days=row.total_remaining_days,
        fully_available=row.fully_available,
    )
