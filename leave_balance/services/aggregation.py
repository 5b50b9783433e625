"""Absence aggregation: which attendance records consume leave, and how many per employee/year.

The weekend/holiday exclusion rule lives only in ``ChargeableAbsenceQuery``.
Both the batch count used by reconciliation and the per-employee absence
preview go through it.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import date
from typing import TYPE_CHECKING

from leave_balance.exceptions import CollaboratorUnavailable, PerEmployeeAggregationFailure
from leave_balance.models.enums import AttendanceStatus
from leave_balance.services.attendance import get_attendance_ledger
from leave_balance.services.holiday import get_holiday_registry

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence

    from leave_balance.services.attendance import AttendanceEntry, AttendanceLedger
    from leave_balance.services.holiday import HolidayRegistry

logger = logging.getLogger(__name__)

_SATURDAY = 5
_SUNDAY = 6


def year_bounds(year: int) -> tuple[date, date]:
    """Return (Jan 1, Dec 31) of the year, both inclusive."""
    return date(year, 1, 1), date(year, 12, 31)


@dataclass(frozen=True)
class ChargeableAbsenceQuery:
    """Selects the attendance records that count against the leave entitlement.

    A record is chargeable when it is marked absent, falls inside the year,
    is on a weekday, and is not an active holiday of that year. Absences on
    inactive holidays still count.
    """

    year: int
    active_holidays: frozenset[date] = field(default_factory=frozenset)

    @property
    def date_range(self) -> tuple[date, date]:
        return year_bounds(self.year)

    def matches(self, entry: AttendanceEntry) -> bool:
        start, end = self.date_range
        return (
            entry.status == AttendanceStatus.ABSENT
            and start <= entry.date <= end
            and entry.date.weekday() not in (_SATURDAY, _SUNDAY)
            and entry.date not in self.active_holidays
        )

    def apply(self, entries: Iterable[AttendanceEntry]) -> list[date]:
        """Return the date of every chargeable record, sorted.

        Each matching record is one day of leave, so a date recorded twice
        appears twice.
        """
        return sorted(e.date for e in entries if self.matches(e))


@dataclass
class AttendanceAggregator:
    """Counts chargeable absences per employee from the attendance ledger."""

    ledger: AttendanceLedger = field(default_factory=get_attendance_ledger)
    holidays: HolidayRegistry = field(default_factory=get_holiday_registry)
    concurrency: int = 8

    async def build_query(self, year: int) -> ChargeableAbsenceQuery:
        """Resolve the active holidays for the year into a reusable query.

        Raises CollaboratorUnavailable if the holiday registry cannot be read.
        """
        try:
            active = await self.holidays.list_active_holidays(year)
        except Exception as exc:
            raise CollaboratorUnavailable("holiday registry", exc) from exc
        return ChargeableAbsenceQuery(year=year, active_holidays=frozenset(active))

    async def _fetch_attendance(self, employee_id: str, query: ChargeableAbsenceQuery) -> list[AttendanceEntry]:
        start, end = query.date_range
        try:
            return await self.ledger.query_attendance(employee_id, start, end)
        except Exception as exc:
            raise PerEmployeeAggregationFailure(employee_id, exc) from exc

    async def list_chargeable_absences(
        self,
        employee_id: str,
        year: int,
        query: ChargeableAbsenceQuery | None = None,
    ) -> list[date]:
        """Return the dates on which the employee's absence consumed leave, one per record.

        Raises PerEmployeeAggregationFailure if the ledger lookup fails.
        """
        if query is None:
            query = await self.build_query(year)
        return query.apply(await self._fetch_attendance(employee_id, query))

    async def count_absent_days(
        self,
        employee_id: str,
        year: int,
        query: ChargeableAbsenceQuery | None = None,
    ) -> int:
        """Number of chargeable absence records for the employee in the year."""
        if query is None:
            query = await self.build_query(year)
        entries = await self._fetch_attendance(employee_id, query)
        return sum(1 for e in entries if query.matches(e))

    async def count_many(
        self,
        employee_ids: Sequence[str],
        year: int,
    ) -> dict[str, int | PerEmployeeAggregationFailure]:
        """Count absences for many employees concurrently.

        Each employee's outcome is independent: a failed lookup is returned as
        a PerEmployeeAggregationFailure in that employee's slot.
        """
        query = await self.build_query(year)
        semaphore = asyncio.Semaphore(max(1, self.concurrency))

        async def _count_one(employee_id: str) -> int | PerEmployeeAggregationFailure:
            async with semaphore:
                try:
                    return await self.count_absent_days(employee_id, year, query)
                except PerEmployeeAggregationFailure as failure:
                    logger.exception("Absence aggregation failed for employee=%s year=%d", employee_id, year)
                    return failure

        outcomes = await asyncio.gather(*(_count_one(emp_id) for emp_id in employee_ids))
        return dict(zip(employee_ids, outcomes, strict=True))
