"""Worker process for the daily leave balance reconciliation.

Runs the SchedulerDaemon in its own asyncio loop, for deployments that keep
``SCHEDULER_ENABLED=false`` on the API processes. Only one worker (or one
scheduler-enabled API process) should run per deployment: the non-overlap
guard is in-process.

Run with:  python -m leave_balance.worker [--now]
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import signal

from leave_balance.config import get_settings
from leave_balance.db import dispose_engine
from leave_balance.exceptions import AppError
from leave_balance.logs import setup_logging
from leave_balance.services.reconciler import create_reconciler
from leave_balance.services.scheduler import create_scheduler

logger = logging.getLogger(__name__)


async def run_scheduler(*, run_now: bool = False) -> None:
    """Start the scheduler and block until SIGINT/SIGTERM."""
    reconciler = create_reconciler()
    scheduler = create_scheduler(reconciler)

    stop_event = asyncio.Event()
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, stop_event.set)

    logger.info("Leave balance worker started")
    try:
        if run_now:
            try:
                result = await scheduler.trigger_now()
            except AppError as exc:
                logger.warning("Initial run skipped: %s", exc.message)
            else:
                logger.info(
                    "Initial run for %d: status=%s processed=%d failed=%s",
                    result.year,
                    result.status,
                    result.employees_processed,
                    result.failed_employee_ids,
                )
        scheduler.start()
        await stop_event.wait()
    finally:
        scheduler.stop()
        await dispose_engine()
        logger.info("Leave balance worker stopped")


def main() -> None:
    """Entry point for the worker process."""
    parser = argparse.ArgumentParser(description="Daily leave balance reconciliation worker")
    parser.add_argument("--now", action="store_true", help="reconcile the current year once before scheduling")
    args = parser.parse_args()

    setup_logging(get_settings())
    asyncio.run(run_scheduler(run_now=args.now))


if __name__ == "__main__":
    main()
