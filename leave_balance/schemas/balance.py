# ruff: noqa: TC001, TC003
from __future__ import annotations

import datetime

from pydantic import BaseModel

from leave_balance.models.enums import UsageCategory

# ---------------------------------------------------------------------------
# Report schemas
# ---------------------------------------------------------------------------


class EmployeeBalanceRow(BaseModel):
    """Stored leave balance of one employee, with directory metadata."""

    employee_id: str
    full_name: str | None
    group: str | None
    department: str | None
    year: int
    annual_entitlement: int
    used_days: int
    remaining_days: int
    usage_category: UsageCategory
    usage_label: str
    updated_at: datetime.datetime


class BalanceReportResponse(BaseModel):
    """All stored balances for a year, ordered by employee id."""

    year: int
    items: list[EmployeeBalanceRow]
    total: int


class LeaveSummaryResponse(BaseModel):
    """Totals over the stored balances of a year."""

    year: int
    total_employees: int
    total_eligible_days: int
    total_absent_days: int
    total_remaining_days: int
    fully_available: int


# ---------------------------------------------------------------------------
# Absence preview
# ---------------------------------------------------------------------------


class AbsencePreviewResponse(BaseModel):
    """Chargeable absences read live from attendance, without persisting anything."""

    employee_id: str
    year: int
    annual_entitlement: int
    absent_dates: list[datetime.date]
    used_days: int
    remaining_days: int
