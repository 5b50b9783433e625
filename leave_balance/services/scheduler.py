"""Daily scheduler for leave balance reconciliation.

Fires once at every local midnight and reconciles the current year through the
shared BalanceReconciler, so timer-driven and manual runs go through the same
non-overlap guard.

Timers are in-process and wall-clock based. Nothing about the schedule is
persisted: after a restart the delay to the next midnight is recomputed from
the new current time, and a midnight missed while the process was down is not
caught up. Run ``recompute`` manually to cover such a gap.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from datetime import UTC, date, datetime, time, timedelta
from typing import TYPE_CHECKING
from zoneinfo import ZoneInfo

from leave_balance.config import get_settings
from leave_balance.models.enums import SchedulerState

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable
    from datetime import tzinfo

    from leave_balance.services.reconciler import BalanceReconciler, ReconciliationResult

logger = logging.getLogger(__name__)


def next_local_midnight(now: datetime) -> datetime:
    """Return the first midnight strictly after ``now``, in now's timezone."""
    tomorrow = now.date() + timedelta(days=1)
    return datetime.combine(tomorrow, time.min, tzinfo=now.tzinfo)


def seconds_until(target: datetime, now: datetime) -> float:
    """Real elapsed seconds between two aware datetimes, DST transitions included."""
    return max(0.0, (target.astimezone(UTC) - now.astimezone(UTC)).total_seconds())


def _utc_now() -> datetime:
    return datetime.now(UTC)


@dataclass
class SchedulerStatus:
    """Snapshot of the scheduler lifecycle."""

    running: bool
    state: SchedulerState
    next_run_at: datetime | None
    last_run: ReconciliationResult | None


class SchedulerDaemon:
    """Owns the STOPPED -> SCHEDULED -> RUNNING -> SCHEDULED ... lifecycle.

    Instantiate once per process with the process-wide reconciler.
    """

    def __init__(
        self,
        reconciler: BalanceReconciler,
        *,
        timezone: tzinfo | None = None,
        clock: Callable[[], datetime] = _utc_now,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self._reconciler = reconciler
        self._timezone = timezone
        self._clock = clock
        self._sleep = sleep
        self._state = SchedulerState.STOPPED
        self._task: asyncio.Task[None] | None = None
        self._last_run: ReconciliationResult | None = None

    @property
    def state(self) -> SchedulerState:
        return self._state

    def now(self) -> datetime:
        """Current time in the scheduler's timezone (host local zone when unset)."""
        now = self._clock()
        if self._timezone is not None:
            return now.astimezone(self._timezone)
        return now.astimezone()

    def start(self) -> None:
        """Arm the daily timer. No-op when already scheduled or running.

        Must be called from within a running event loop.
        """
        if self._state != SchedulerState.STOPPED:
            logger.info("Leave balance scheduler is already running")
            return

        self._state = SchedulerState.SCHEDULED
        self._task = asyncio.get_running_loop().create_task(self._run_forever(), name="leave-balance-scheduler")

        now = self.now()
        next_run = next_local_midnight(now)
        logger.info(
            "Leave balance scheduler started; first run at %s (in %d minutes)",
            next_run.isoformat(),
            round(seconds_until(next_run, now) / 60),
        )

    def stop(self) -> None:
        """Cancel pending timers and return to STOPPED. Safe to call repeatedly.

        A reconciliation already in progress is allowed to finish; no further
        automatic runs happen until start() is called again.
        """
        if self._task is not None:
            self._task.cancel()
            self._task = None
        if self._state != SchedulerState.STOPPED:
            logger.info("Leave balance scheduler stopped")
        self._state = SchedulerState.STOPPED

    def status(self) -> SchedulerStatus:
        running = self._state != SchedulerState.STOPPED
        return SchedulerStatus(
            running=running,
            state=self._state,
            next_run_at=next_local_midnight(self.now()) if running else None,
            last_run=self._last_run,
        )

    async def trigger_now(self) -> ReconciliationResult:
        """Reconcile the current year immediately, through the shared guard.

        Errors (PolicyNotApplicable, ConcurrentRunRejected) propagate to the caller.
        """
        year = self.now().year
        logger.info("Manual leave balance reconciliation requested for %d", year)
        result = await self._reconciler.reconcile(year)
        self._last_run = result
        return result

    def years_due(self, run_date: date) -> list[int]:
        """Policy years to reconcile on a firing dated run_date.

        The Jan 1 firing also closes out the previous year, whose final day
        of attendance was recorded after the Dec 31 firing.
        """
        years = [run_date.year - 1, run_date.year] if (run_date.month, run_date.day) == (1, 1) else [run_date.year]
        return [year for year in years if self._reconciler.policy.is_applicable(year)]

    async def _run_forever(self) -> None:
        while True:
            target = next_local_midnight(self.now())
            # Timers may wake slightly early; keep sleeping until the target has passed.
            delay = seconds_until(target, self.now())
            while delay > 0:
                await self._sleep(delay)
                delay = seconds_until(target, self.now())
            await self._fire(target.date())

    async def _fire(self, run_date: date) -> None:
        self._state = SchedulerState.RUNNING
        try:
            years = self.years_due(run_date)
            if not years:
                logger.info("No leave policy year applies on %s; skipping scheduled run", run_date)
            for year in years:
                await self._reconcile_year(year)
        finally:
            if self._state == SchedulerState.RUNNING:
                self._state = SchedulerState.SCHEDULED

    async def _reconcile_year(self, year: int) -> None:
        logger.info("=== Daily leave balance update for %d ===", year)
        try:
            result = await self._reconciler.reconcile(year)
        except Exception:
            # The next midnight stays armed either way.
            logger.exception("Daily leave balance update failed for %d", year)
            return
        self._last_run = result


def create_scheduler(reconciler: BalanceReconciler) -> SchedulerDaemon:
    """Build the scheduler for the configured timezone."""
    settings = get_settings()
    timezone = ZoneInfo(settings.scheduler_timezone) if settings.scheduler_timezone else None
    return SchedulerDaemon(reconciler, timezone=timezone)
