from __future__ import annotations

from typing import Annotated

from fastapi import Depends, Request

from leave_balance.exceptions import AppError
from leave_balance.services.employee import EmployeeDirectory, get_employee_directory
from leave_balance.services.reconciler import BalanceReconciler
from leave_balance.services.scheduler import SchedulerDaemon


def get_reconciler(request: Request) -> BalanceReconciler:
    """Return the process-wide reconciler created by the application lifespan."""
    reconciler: BalanceReconciler | None = getattr(request.app.state, "reconciler", None)
    if reconciler is None:
        raise AppError("Reconciler is not initialised", status_code=503)
    return reconciler


def get_scheduler(request: Request) -> SchedulerDaemon:
    """Return the process-wide scheduler created by the application lifespan."""
    scheduler: SchedulerDaemon | None = getattr(request.app.state, "scheduler", None)
    if scheduler is None:
        raise AppError("Scheduler is not initialised", status_code=503)
    return scheduler


ReconcilerDep = Annotated[BalanceReconciler, Depends(get_reconciler)]
SchedulerDep = Annotated[SchedulerDaemon, Depends(get_scheduler)]
DirectoryDep = Annotated[EmployeeDirectory, Depends(get_employee_directory)]
