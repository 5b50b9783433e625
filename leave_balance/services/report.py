"""Per-employee leave balance report built from persisted rows."""

from __future__ import annotations

from typing import TYPE_CHECKING

from sqlalchemy import select
from sqlmodel import col

from leave_balance.models.balance import LeaveBalance
from leave_balance.schemas.balance import BalanceReportResponse, EmployeeBalanceRow
from leave_balance.services.policy import categorize_usage

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

    from leave_balance.services.employee import EmployeeDirectory, EmployeeInfo


def _build_balance_row(balance: LeaveBalance, employee: EmployeeInfo | None) -> EmployeeBalanceRow:
    category = categorize_usage(balance.used_days, balance.annual_entitlement)
    return EmployeeBalanceRow(
        employee_id=balance.employee_id,
        full_name=employee.full_name if employee else None,
        group=employee.group if employee else None,
        department=employee.department if employee else None,
        year=balance.year,
        annual_entitlement=balance.annual_entitlement,
        used_days=balance.used_days,
        remaining_days=balance.remaining_days,
        usage_category=category,
        usage_label=category.label,
        updated_at=balance.updated_at,
    )


async def build_balance_report(
    session: AsyncSession,
    directory: EmployeeDirectory,
    year: int,
) -> BalanceReportResponse:
    """List every stored balance for the year, ordered by employee id.

    Balances of employees that have left the directory are kept, without
    name, group or department.
    """
    result = await session.execute(
        select(LeaveBalance).where(col(LeaveBalance.year) == year).order_by(col(LeaveBalance.employee_id))
    )
    balances = list(result.scalars().all())

    items: list[EmployeeBalanceRow] = []
    for balance in balances:
        employee = await directory.get_employee(balance.employee_id)
        items.append(_build_balance_row(balance, employee))

    return BalanceReportResponse(year=year, items=items, total=len(items))
