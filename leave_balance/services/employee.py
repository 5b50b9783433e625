from __future__ import annotations

from typing import Protocol, runtime_checkable

from pydantic import BaseModel

from leave_balance.models.enums import EmployeeStatus


class EmployeeInfo(BaseModel):
    """Employee metadata from the employee directory."""

    id: str  # directory employee code, e.g. "EMP-0042"
    full_name: str
    group: str  # e.g. "group_a"
    department: str | None = None
    status: EmployeeStatus = EmployeeStatus.ACTIVE


@runtime_checkable
class EmployeeDirectory(Protocol):
    """Interface for the employee directory."""

    async def list_active_employees(self) -> list[EmployeeInfo]:
        """List every employee whose status is active."""
        ...

    async def get_employee(self, employee_id: str) -> EmployeeInfo | None:
        """Fetch employee metadata. Returns None if not found."""
        ...


class InMemoryEmployeeDirectory:
    """In-memory stub implementation for development."""

    def __init__(self) -> None:
        self._employees: dict[str, EmployeeInfo] = {}

    def seed(self, employee: EmployeeInfo) -> None:
        """Seed an employee for testing."""
        self._employees[employee.id] = employee

    async def list_active_employees(self) -> list[EmployeeInfo]:
        """List every employee whose status is active, ordered by id."""
        return sorted(
            (e for e in self._employees.values() if e.status == EmployeeStatus.ACTIVE),
            key=lambda e: e.id,
        )

    async def get_employee(self, employee_id: str) -> EmployeeInfo | None:
        """Fetch employee metadata. Returns None if not found."""
        return self._employees.get(employee_id)


_employee_directory: EmployeeDirectory = InMemoryEmployeeDirectory()


def get_employee_directory() -> EmployeeDirectory:
    """FastAPI dependency for the employee directory."""
    return _employee_directory


def set_employee_directory(directory: EmployeeDirectory) -> None:
    """Override the directory (for testing or production wiring)."""
    global _employee_directory
    _employee_directory = directory
