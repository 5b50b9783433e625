# ruff: noqa: TC003
from __future__ import annotations

import datetime
from typing import Protocol, runtime_checkable

from pydantic import BaseModel

from leave_balance.models.enums import AttendanceStatus


class AttendanceEntry(BaseModel):
    """One day of attendance for one employee, as recorded by the attendance ledger."""

    employee_id: str
    date: datetime.date
    status: AttendanceStatus


@runtime_checkable
class AttendanceLedger(Protocol):
    """Interface for the attendance ledger."""

    async def query_attendance(
        self, employee_id: str, start: datetime.date, end: datetime.date
    ) -> list[AttendanceEntry]:
        """Return the employee's records dated within [start, end], inclusive."""
        ...


class InMemoryAttendanceLedger:
    """In-memory stub implementation for development."""

    def __init__(self) -> None:
        self._entries: dict[tuple[str, datetime.date], AttendanceEntry] = {}

    def seed(self, entry: AttendanceEntry) -> None:
        """Seed an attendance record; a later record for the same day replaces it."""
        self._entries[(entry.employee_id, entry.date)] = entry

    def record(self, employee_id: str, day: datetime.date, status: AttendanceStatus) -> None:
        """Shorthand for seeding a single record."""
        self.seed(AttendanceEntry(employee_id=employee_id, date=day, status=status))

    async def query_attendance(
        self, employee_id: str, start: datetime.date, end: datetime.date
    ) -> list[AttendanceEntry]:
        """Return the employee's records dated within [start, end], ordered by date."""
        return sorted(
            (
                e
                for (emp_id, day), e in self._entries.items()
                if emp_id == employee_id and start <= day <= end
            ),
            key=lambda e: e.date,
        )


_attendance_ledger: AttendanceLedger = InMemoryAttendanceLedger()


def get_attendance_ledger() -> AttendanceLedger:
    """FastAPI dependency for the attendance ledger."""
    return _attendance_ledger


def set_attendance_ledger(ledger: AttendanceLedger) -> None:
    """Override the ledger (for testing or production wiring)."""
    global _attendance_ledger
    _attendance_ledger = ledger
