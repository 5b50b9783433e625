from __future__ import annotations

import sqlalchemy as sa
from sqlmodel import Field

from leave_balance.models.base import TimestampMixin, UUIDBase


class LeaveBalance(UUIDBase, TimestampMixin, table=True):
    """Annual leave balance for one employee and year, derived from attendance."""

    __tablename__ = "leave_balance"
    __table_args__ = (
        sa.UniqueConstraint("employee_id", "year", name="uq_leave_balance_employee_year"),
        sa.CheckConstraint("used_days >= 0", name="ck_leave_balance_used_days_non_negative"),
        sa.CheckConstraint("remaining_days >= 0", name="ck_leave_balance_remaining_days_non_negative"),
    )

    employee_id: str = Field(max_length=64, index=True)
    year: int = Field(index=True)
    annual_entitlement: int
    used_days: int = Field(default=0, sa_column_kwargs={"server_default": "0"})
    remaining_days: int = Field(default=0, sa_column_kwargs={"server_default": "0"})
