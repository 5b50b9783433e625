from __future__ import annotations

import enum


class EmployeeStatus(enum.StrEnum):
    """Directory status of an employee."""

    ACTIVE = "active"
    INACTIVE = "inactive"


class AttendanceStatus(enum.StrEnum):
    """Status recorded for an employee on a given day."""

    PRESENT = "present"
    ABSENT = "absent"
    LATE = "late"
    HALF_DAY = "half_day"
    LEAVE = "leave"


class UsageCategory(enum.StrEnum):
    """Reporting bucket for how much of the entitlement has been used."""

    NO_LEAVE_TAKEN = "NO_LEAVE_TAKEN"
    LOW_USAGE = "LOW_USAGE"
    MODERATE_USAGE = "MODERATE_USAGE"
    HIGH_USAGE = "HIGH_USAGE"

    @property
    def label(self) -> str:
        return self.value.replace("_", " ").title()


class RunStatus(enum.StrEnum):
    """Outcome of a reconciliation run."""

    SUCCESS = "SUCCESS"
    PARTIAL = "PARTIAL"
    FAILED = "FAILED"


class SchedulerState(enum.StrEnum):
    """Lifecycle of the daily reconciliation scheduler."""

    STOPPED = "STOPPED"
    SCHEDULED = "SCHEDULED"
    RUNNING = "RUNNING"


class OverlapPolicy(enum.StrEnum):
    """What a reconciliation request does while one for the same year is running."""

    JOIN = "join"
    REJECT = "reject"
