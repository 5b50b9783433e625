from __future__ import annotations

import asyncio
from datetime import UTC, datetime, timedelta
from typing import TYPE_CHECKING

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from leave_balance.api.deps import get_reconciler, get_scheduler
from leave_balance.db import get_session
from leave_balance.main import app
from leave_balance.models import SQLModel
from leave_balance.services.aggregation import AttendanceAggregator
from leave_balance.services.attendance import InMemoryAttendanceLedger, set_attendance_ledger
from leave_balance.services.employee import (
    InMemoryEmployeeDirectory,
    get_employee_directory,
    set_employee_directory,
)
from leave_balance.services.holiday import InMemoryHolidayRegistry, set_holiday_registry
from leave_balance.services.policy import EntitlementPolicy
from leave_balance.services.reconciler import BalanceReconciler
from leave_balance.services.scheduler import SchedulerDaemon

if TYPE_CHECKING:
    from collections.abc import AsyncIterator, Iterator
    from pathlib import Path

    from sqlalchemy.ext.asyncio import AsyncEngine


class FakeClock:
    """Controllable clock whose sleep advances time instead of waiting.

    Only the first ``limit`` sleeps complete; later ones block until the
    sleeping task is cancelled, which parks a scheduler loop.
    """

    def __init__(self, start: datetime, limit: int = 0) -> None:
        self.current = start
        self.limit = limit
        self.sleeps: list[float] = []

    def __call__(self) -> datetime:
        return self.current

    async def sleep(self, delay: float) -> None:
        self.sleeps.append(delay)
        if len(self.sleeps) > self.limit:
            await asyncio.Event().wait()
        self.current += timedelta(seconds=delay)


@pytest.fixture
async def engine(tmp_path: Path) -> AsyncIterator[AsyncEngine]:
    """Create a per-test SQLite database with all tables."""
    _engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'leave_balance.db'}")
    async with _engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
    yield _engine
    await _engine.dispose()


@pytest.fixture
def session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(engine, expire_on_commit=False)


@pytest.fixture
async def db_session(session_factory: async_sessionmaker[AsyncSession]) -> AsyncIterator[AsyncSession]:
    async with session_factory() as session:
        yield session


@pytest.fixture
def directory() -> Iterator[InMemoryEmployeeDirectory]:
    """In-memory employee directory, installed as the process-wide directory."""
    svc = InMemoryEmployeeDirectory()
    set_employee_directory(svc)
    yield svc
    set_employee_directory(InMemoryEmployeeDirectory())


@pytest.fixture
def ledger() -> Iterator[InMemoryAttendanceLedger]:
    svc = InMemoryAttendanceLedger()
    set_attendance_ledger(svc)
    yield svc
    set_attendance_ledger(InMemoryAttendanceLedger())


@pytest.fixture
def holidays() -> Iterator[InMemoryHolidayRegistry]:
    svc = InMemoryHolidayRegistry()
    set_holiday_registry(svc)
    yield svc
    set_holiday_registry(InMemoryHolidayRegistry())


@pytest.fixture
def reconciler(
    session_factory: async_sessionmaker[AsyncSession],
    directory: InMemoryEmployeeDirectory,
    ledger: InMemoryAttendanceLedger,
    holidays: InMemoryHolidayRegistry,
) -> BalanceReconciler:
    return BalanceReconciler(
        session_factory,
        aggregator=AttendanceAggregator(ledger=ledger, holidays=holidays, concurrency=4),
        directory=directory,
        policy=EntitlementPolicy(annual_entitlement=45, effective_year=2025),
        retry_backoff_seconds=0,
    )


@pytest.fixture
def clock_factory() -> type[FakeClock]:
    return FakeClock


@pytest.fixture
def clock() -> FakeClock:
    """Mid-afternoon UTC on a Tuesday in the first policy year."""
    return FakeClock(datetime(2025, 6, 10, 15, 30, tzinfo=UTC))


@pytest.fixture
def scheduler(reconciler: BalanceReconciler, clock: FakeClock) -> Iterator[SchedulerDaemon]:
    daemon = SchedulerDaemon(reconciler, timezone=UTC, clock=clock, sleep=clock.sleep)
    yield daemon
    daemon.stop()


@pytest.fixture
async def async_client(
    session_factory: async_sessionmaker[AsyncSession],
    reconciler: BalanceReconciler,
    scheduler: SchedulerDaemon,
    directory: InMemoryEmployeeDirectory,
) -> AsyncIterator[AsyncClient]:
    """Async HTTP client with the session, reconciler, scheduler, and directory overridden."""

    async def _override_get_session() -> AsyncIterator[AsyncSession]:
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_session] = _override_get_session
    app.dependency_overrides[get_reconciler] = lambda: reconciler
    app.dependency_overrides[get_scheduler] = lambda: scheduler
    app.dependency_overrides[get_employee_directory] = lambda: directory
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client
    app.dependency_overrides.clear()

