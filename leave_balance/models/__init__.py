from sqlmodel import SQLModel

from leave_balance.models.balance import LeaveBalance
from leave_balance.models.base import TimestampMixin, UUIDBase
from leave_balance.models.enums import (
    AttendanceStatus,
    EmployeeStatus,
    OverlapPolicy,
    RunStatus,
    SchedulerState,
    UsageCategory,
)

__all__ = [
    "AttendanceStatus",
    "EmployeeStatus",
    "LeaveBalance",
    "OverlapPolicy",
    "RunStatus",
    "SQLModel",
    "SchedulerState",
    "TimestampMixin",
    "UUIDBase",
    "UsageCategory",
]
