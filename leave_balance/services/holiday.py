# ruff: noqa: TC003
from __future__ import annotations

import datetime
from typing import Protocol, runtime_checkable

from pydantic import BaseModel


class HolidayInfo(BaseModel):
    """A holiday from the holiday calendar."""

    date: datetime.date
    year: int
    name: str
    is_active: bool = True


@runtime_checkable
class HolidayRegistry(Protocol):
    """Interface for the holiday calendar."""

    async def list_active_holidays(self, year: int) -> set[datetime.date]:
        """Return the dates of every active holiday registered for the year."""
        ...


class InMemoryHolidayRegistry:
    """In-memory stub implementation for development."""

    def __init__(self) -> None:
        self._holidays: list[HolidayInfo] = []

    def seed(self, holiday: HolidayInfo) -> None:
        """Seed a holiday for testing."""
        self._holidays.append(holiday)

    async def list_active_holidays(self, year: int) -> set[datetime.date]:
        """Return the dates of every active holiday registered for the year."""
        return {h.date for h in self._holidays if h.year == year and h.is_active}


_holiday_registry: HolidayRegistry = InMemoryHolidayRegistry()


def get_holiday_registry() -> HolidayRegistry:
    """FastAPI dependency for the holiday registry."""
    return _holiday_registry


def set_holiday_registry(registry: HolidayRegistry) -> None:
    """Override the registry (for testing or production wiring)."""
    global _holiday_registry
    _holiday_registry = registry
