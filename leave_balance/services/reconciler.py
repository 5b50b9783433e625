"""Leave balance reconciliation: recompute and persist every active employee's balance for a year."""

from __future__ import annotations

import asyncio
import logging
import uuid
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import TYPE_CHECKING

from sqlalchemy import or_
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import SQLAlchemyError

from leave_balance.config import get_settings
from leave_balance.db import get_session_factory
from leave_balance.exceptions import (
    CollaboratorUnavailable,
    ConcurrentRunRejected,
    PerEmployeeAggregationFailure,
    PersistenceFailure,
)
from leave_balance.models.balance import LeaveBalance
from leave_balance.models.enums import OverlapPolicy, RunStatus
from leave_balance.services.aggregation import AttendanceAggregator
from leave_balance.services.employee import get_employee_directory
from leave_balance.services.policy import EntitlementPolicy, get_entitlement_policy

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

    from leave_balance.services.employee import EmployeeDirectory

logger = logging.getLogger(__name__)

_DIALECT_INSERTS = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}

# ---------------------------------------------------------------------------
# Result dataclasses
# ---------------------------------------------------------------------------


@dataclass
class ReconciliationResult:
    """Summary of one reconciliation run."""

    year: int
    started_at: datetime
    finished_at: datetime | None = None
    employees_processed: int = 0
    failed_employee_ids: list[str] = field(default_factory=list)
    total_used_days: int = 0
    total_remaining_days: int = 0

    @property
    def status(self) -> RunStatus:
        if not self.failed_employee_ids:
            return RunStatus.SUCCESS
        if self.employees_processed > 0:
            return RunStatus.PARTIAL
        return RunStatus.FAILED


# ---------------------------------------------------------------------------
# Persistence
# ---------------------------------------------------------------------------


async def upsert_leave_balance(
    session: AsyncSession,
    *,
    employee_id: str,
    year: int,
    annual_entitlement: int,
    used_days: int,
    remaining_days: int,
) -> None:
    """Insert or overwrite the (employee_id, year) balance row in one statement.

    Relies on the uq_leave_balance_employee_year constraint. The update only
    fires when a stored value differs, so repeating a reconciliation over
    unchanged attendance leaves the row untouched, updated_at included.
    """
    dialect = session.get_bind().dialect.name
    insert = _DIALECT_INSERTS.get(dialect)
    if insert is None:
        msg = f"Unsupported database dialect for leave balance upsert: {dialect}"
        raise NotImplementedError(msg)

    table = LeaveBalance.__table__  # type: ignore[attr-defined]
    now = datetime.now(UTC)
    stmt = insert(table).values(
        id=uuid.uuid4(),
        employee_id=employee_id,
        year=year,
        annual_entitlement=annual_entitlement,
        used_days=used_days,
        remaining_days=remaining_days,
        created_at=now,
        updated_at=now,
    )
    stmt = stmt.on_conflict_do_update(
        index_elements=["employee_id", "year"],
        set_={
            "annual_entitlement": stmt.excluded.annual_entitlement,
            "used_days": stmt.excluded.used_days,
            "remaining_days": stmt.excluded.remaining_days,
            "updated_at": stmt.excluded.updated_at,
        },
        where=or_(
            table.c.annual_entitlement != stmt.excluded.annual_entitlement,
            table.c.used_days != stmt.excluded.used_days,
            table.c.remaining_days != stmt.excluded.remaining_days,
        ),
    )
    await session.execute(stmt)


# ---------------------------------------------------------------------------
# Orchestration
# ---------------------------------------------------------------------------


class BalanceReconciler:
    """Recomputes leave balances from attendance and persists them idempotently.

    At most one run per year is in flight per instance. Under the JOIN overlap
    policy a second request for a running year awaits the in-flight run and
    returns its result; under REJECT it raises ConcurrentRunRejected. Every
    trigger source (API, scheduler, scripts) must share one instance.
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        *,
        aggregator: AttendanceAggregator | None = None,
        directory: EmployeeDirectory | None = None,
        policy: EntitlementPolicy | None = None,
        overlap_policy: OverlapPolicy = OverlapPolicy.JOIN,
        retry_backoff_seconds: float = 0.5,
    ) -> None:
        self._session_factory = session_factory
        self.aggregator = aggregator or AttendanceAggregator()
        self.directory = directory or get_employee_directory()
        self.policy = policy or EntitlementPolicy()
        self.overlap_policy = overlap_policy
        self.retry_backoff_seconds = retry_backoff_seconds
        self._in_flight: dict[int, asyncio.Task[ReconciliationResult]] = {}

    def is_running(self, year: int | None = None) -> bool:
        """Whether a run is in flight, for the given year or for any year."""
        if year is None:
            return bool(self._in_flight)
        return year in self._in_flight

    async def reconcile(self, year: int) -> ReconciliationResult:
        """Recompute and persist balances for every active employee for the year.

        Raises PolicyNotApplicable before touching anything when the year
        precedes the effective policy year, and CollaboratorUnavailable when
        the employee directory or holiday registry cannot be read.
        """
        self.policy.ensure_applicable(year)

        task = self._in_flight.get(year)
        if task is not None:
            if self.overlap_policy == OverlapPolicy.REJECT:
                raise ConcurrentRunRejected(year)
            logger.info("Reconciliation for %d already running; waiting for its result", year)
            return await asyncio.shield(task)

        task = asyncio.create_task(self._run(year), name=f"reconcile-leave-balances-{year}")
        self._in_flight[year] = task
        task.add_done_callback(lambda _t: self._in_flight.pop(year, None))
        # Shielded so a cancelled caller does not abort a batch others may be awaiting.
        return await asyncio.shield(task)

    async def _run(self, year: int) -> ReconciliationResult:
        result = ReconciliationResult(year=year, started_at=datetime.now(UTC))

        try:
            employees = await self.directory.list_active_employees()
        except Exception as exc:
            raise CollaboratorUnavailable("employee directory", exc) from exc
        employee_ids = sorted(dict.fromkeys(e.id for e in employees))
        logger.info("Reconciling leave balances for %d active employees (year=%d)", len(employee_ids), year)

        counts = await self.aggregator.count_many(employee_ids, year)

        async with self._session_factory() as session:
            for employee_id in employee_ids:
                outcome = counts[employee_id]
                if isinstance(outcome, PerEmployeeAggregationFailure):
                    result.failed_employee_ids.append(employee_id)
                    continue

                used_days = outcome
                remaining_days = self.policy.remaining_for(used_days)
                try:
                    await self._persist(session, employee_id, year, used_days, remaining_days)
                except PersistenceFailure:
                    logger.exception("Error persisting leave balance for employee=%s year=%d", employee_id, year)
                    result.failed_employee_ids.append(employee_id)
                    continue

                result.employees_processed += 1
                result.total_used_days += used_days
                result.total_remaining_days += remaining_days

        result.finished_at = datetime.now(UTC)
        logger.info(
            "Reconciliation complete for %d: status=%s processed=%d failed=%d used=%d remaining=%d",
            year,
            result.status,
            result.employees_processed,
            len(result.failed_employee_ids),
            result.total_used_days,
            result.total_remaining_days,
        )
        return result

    async def _persist(
        self,
        session: AsyncSession,
        employee_id: str,
        year: int,
        used_days: int,
        remaining_days: int,
    ) -> None:
        """Upsert and commit one balance row, retrying once after a backoff."""
        values = {
            "employee_id": employee_id,
            "year": year,
            "annual_entitlement": self.policy.annual_entitlement,
            "used_days": used_days,
            "remaining_days": remaining_days,
        }
        try:
            await upsert_leave_balance(session, **values)
            await session.commit()
        except SQLAlchemyError as exc:
            await session.rollback()
            logger.warning(
                "Upsert failed for employee=%s year=%d, retrying in %.2fs: %s",
                employee_id,
                year,
                self.retry_backoff_seconds,
                exc,
            )
        else:
            return

        await asyncio.sleep(self.retry_backoff_seconds)
        try:
            await upsert_leave_balance(session, **values)
            await session.commit()
        except SQLAlchemyError as exc:
            await session.rollback()
            raise PersistenceFailure(employee_id, year, exc) from exc


def create_reconciler(
    session_factory: async_sessionmaker[AsyncSession] | None = None,
) -> BalanceReconciler:
    """Build a reconciler wired to the configured collaborators and settings."""
    settings = get_settings()
    return BalanceReconciler(
        session_factory or get_session_factory(),
        aggregator=AttendanceAggregator(concurrency=settings.aggregation_concurrency),
        directory=get_employee_directory(),
        policy=get_entitlement_policy(),
        overlap_policy=OverlapPolicy(settings.overlap_policy),
        retry_backoff_seconds=settings.persistence_retry_backoff_seconds,
    )
