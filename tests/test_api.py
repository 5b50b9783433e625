"""HTTP tests for the leave balance and scheduler endpoints."""

from __future__ import annotations

from datetime import date
from typing import TYPE_CHECKING

import pytest

from leave_balance.models.enums import AttendanceStatus
from leave_balance.services.employee import EmployeeInfo
from leave_balance.services.holiday import HolidayInfo

if TYPE_CHECKING:
    from httpx import AsyncClient

    from leave_balance.services.attendance import InMemoryAttendanceLedger
    from leave_balance.services.employee import InMemoryEmployeeDirectory
    from leave_balance.services.holiday import InMemoryHolidayRegistry
    from leave_balance.services.scheduler import SchedulerDaemon


def _seed(
    directory: InMemoryEmployeeDirectory,
    ledger: InMemoryAttendanceLedger,
    holidays: InMemoryHolidayRegistry,
) -> None:
    directory.seed(EmployeeInfo(id="E1", full_name="Ada", group="group_a", department="Finance"))
    directory.seed(EmployeeInfo(id="E2", full_name="Ben", group="group_b"))
    holidays.seed(HolidayInfo(date=date(2025, 1, 1), year=2025, name="New Year"))
    for day in (date(2025, 3, 3), date(2025, 3, 4), date(2025, 3, 5), date(2025, 3, 8), date(2025, 1, 1)):
        ledger.record("E1", day, AttendanceStatus.ABSENT)


# ---------------------------------------------------------------------------
# POST /leave-balances/recompute
# ---------------------------------------------------------------------------


async def test_recompute(
    async_client: AsyncClient,
    directory: InMemoryEmployeeDirectory,
    ledger: InMemoryAttendanceLedger,
    holidays: InMemoryHolidayRegistry,
) -> None:
    _seed(directory, ledger, holidays)

    response = await async_client.post("/leave-balances/recompute", params={"year": 2025})

    assert response.status_code == 200
    data = response.json()
    assert data["year"] == 2025
    assert data["status"] == "SUCCESS"
    assert data["employees_processed"] == 2
    assert data["failed_employee_ids"] == []
    assert data["total_used_days"] == 3
    assert data["total_remaining_days"] == 87
    assert data["finished_at"] is not None


async def test_recompute_twice_is_idempotent(
    async_client: AsyncClient,
    directory: InMemoryEmployeeDirectory,
    ledger: InMemoryAttendanceLedger,
    holidays: InMemoryHolidayRegistry,
) -> None:
    _seed(directory, ledger, holidays)
    await async_client.post("/leave-balances/recompute", params={"year": 2025})
    first = (await async_client.get("/leave-balances/report", params={"year": 2025})).json()

    await async_client.post("/leave-balances/recompute", params={"year": 2025})
    second = (await async_client.get("/leave-balances/report", params={"year": 2025})).json()

    assert first == second


async def test_recompute_pre_policy_year_is_rejected(async_client: AsyncClient) -> None:
    response = await async_client.post("/leave-balances/recompute", params={"year": 2024})

    assert response.status_code == 422
    data = response.json()
    assert data["error"] == "PolicyNotApplicable"
    assert "2025" in data["detail"]


async def test_recompute_when_employee_directory_is_down(
    async_client: AsyncClient,
    directory: InMemoryEmployeeDirectory,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    async def _directory_down() -> list[EmployeeInfo]:
        raise ConnectionError("directory unavailable")

    monkeypatch.setattr(directory, "list_active_employees", _directory_down)

    response = await async_client.post("/leave-balances/recompute", params={"year": 2025})

    assert response.status_code == 503
    data = response.json()
    assert data["error"] == "CollaboratorUnavailable"
    assert "employee directory" in data["detail"]


async def test_recompute_invalid_year_is_validation_error(async_client: AsyncClient) -> None:
    response = await async_client.post("/leave-balances/recompute", params={"year": "next"})

    assert response.status_code == 422
    assert response.json()["error"] == "ValidationError"


# ---------------------------------------------------------------------------
# GET /leave-balances/report and /summary
# ---------------------------------------------------------------------------


async def test_report(
    async_client: AsyncClient,
    directory: InMemoryEmployeeDirectory,
    ledger: InMemoryAttendanceLedger,
    holidays: InMemoryHolidayRegistry,
) -> None:
    _seed(directory, ledger, holidays)
    await async_client.post("/leave-balances/recompute", params={"year": 2025})

    response = await async_client.get("/leave-balances/report", params={"year": 2025})

    assert response.status_code == 200
    data = response.json()
    assert data["total"] == 2
    first, second = data["items"]
    assert first["employee_id"] == "E1"
    assert first["full_name"] == "Ada"
    assert first["used_days"] == 3
    assert first["remaining_days"] == 42
    assert first["usage_category"] == "LOW_USAGE"
    assert first["usage_label"] == "Low Usage"
    assert second["employee_id"] == "E2"
    assert second["usage_category"] == "NO_LEAVE_TAKEN"


async def test_summary(
    async_client: AsyncClient,
    directory: InMemoryEmployeeDirectory,
    ledger: InMemoryAttendanceLedger,
    holidays: InMemoryHolidayRegistry,
) -> None:
    _seed(directory, ledger, holidays)
    await async_client.post("/leave-balances/recompute", params={"year": 2025})

    response = await async_client.get("/leave-balances/summary", params={"year": 2025})

    assert response.status_code == 200
    assert response.json() == {
        "year": 2025,
        "total_employees": 2,
        "total_eligible_days": 90,
        "total_absent_days": 3,
        "total_remaining_days": 87,
        "fully_available": 1,
    }


async def test_summary_without_run_returns_zeros(async_client: AsyncClient) -> None:
    response = await async_client.get("/leave-balances/summary", params={"year": 2025})

    assert response.status_code == 200
    assert response.json()["total_employees"] == 0


# ---------------------------------------------------------------------------
# GET /leave-balances/employees/{employee_id}/absences
# ---------------------------------------------------------------------------


async def test_absence_preview(
    async_client: AsyncClient,
    directory: InMemoryEmployeeDirectory,
    ledger: InMemoryAttendanceLedger,
    holidays: InMemoryHolidayRegistry,
) -> None:
    _seed(directory, ledger, holidays)

    response = await async_client.get("/leave-balances/employees/E1/absences", params={"year": 2025})

    assert response.status_code == 200
    data = response.json()
    assert data["absent_dates"] == ["2025-03-03", "2025-03-04", "2025-03-05"]
    assert data["used_days"] == 3
    assert data["remaining_days"] == 42
    assert data["annual_entitlement"] == 45

    # The preview writes nothing.
    summary = (await async_client.get("/leave-balances/summary", params={"year": 2025})).json()
    assert summary["total_employees"] == 0


async def test_absence_preview_pre_policy_year(async_client: AsyncClient) -> None:
    response = await async_client.get("/leave-balances/employees/E1/absences", params={"year": 2024})

    assert response.status_code == 422
    assert response.json()["error"] == "PolicyNotApplicable"


async def test_absence_preview_when_attendance_ledger_is_down(
    async_client: AsyncClient,
    ledger: InMemoryAttendanceLedger,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    async def _ledger_down(employee_id: str, start: date, end: date) -> list[object]:
        raise ConnectionError("attendance store unavailable")

    monkeypatch.setattr(ledger, "query_attendance", _ledger_down)

    response = await async_client.get("/leave-balances/employees/E1/absences", params={"year": 2025})

    assert response.status_code == 503
    data = response.json()
    assert data["error"] == "CollaboratorUnavailable"
    assert "attendance ledger" in data["detail"]


# ---------------------------------------------------------------------------
# /scheduler
# ---------------------------------------------------------------------------


async def test_scheduler_status_when_stopped(async_client: AsyncClient) -> None:
    response = await async_client.get("/scheduler/status")

    assert response.status_code == 200
    assert response.json() == {"running": False, "state": "STOPPED", "next_run_at": None, "last_run": None}


async def test_scheduler_start_and_stop(async_client: AsyncClient, scheduler: SchedulerDaemon) -> None:
    started = await async_client.post("/scheduler/start")

    assert started.status_code == 200
    data = started.json()
    assert data["running"] is True
    assert data["state"] == "SCHEDULED"
    assert data["next_run_at"].startswith("2025-06-11T00:00:00")

    again = await async_client.post("/scheduler/start")
    assert again.json()["running"] is True

    stopped = await async_client.post("/scheduler/stop")
    assert stopped.json()["running"] is False
    assert stopped.json()["next_run_at"] is None
    assert scheduler.status().running is False


async def test_scheduler_trigger(
    async_client: AsyncClient,
    directory: InMemoryEmployeeDirectory,
    ledger: InMemoryAttendanceLedger,
    holidays: InMemoryHolidayRegistry,
) -> None:
    _seed(directory, ledger, holidays)

    response = await async_client.post("/scheduler/trigger")

    assert response.status_code == 200
    assert response.json()["year"] == 2025
    assert response.json()["employees_processed"] == 2

    status = (await async_client.get("/scheduler/status")).json()
    assert status["last_run"]["total_used_days"] == 3
