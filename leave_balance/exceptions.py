from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel


class ErrorResponse(BaseModel):
    """Standard error response schema."""

    error: str
    detail: str | None = None
    status_code: int


class AppError(Exception):
    """Base application exception."""

    def __init__(self, message: str, status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR) -> None:
        self.message = message
        self.status_code = status_code
        super().__init__(self.message)


class PolicyNotApplicable(AppError):
    """The requested year precedes the first year the leave policy applies to."""

    def __init__(self, year: int, effective_year: int) -> None:
        self.year = year
        self.effective_year = effective_year
        super().__init__(
            f"Leave balance calculation applies from {effective_year} onwards (requested {year})",
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        )


class ConcurrentRunRejected(AppError):
    """A reconciliation for the same year is already in flight."""

    def __init__(self, year: int) -> None:
        self.year = year
        super().__init__(
            f"Leave balance reconciliation for {year} is already running",
            status_code=status.HTTP_409_CONFLICT,
        )


class CollaboratorUnavailable(AppError):
    """An upstream source (employee directory, attendance ledger, holiday registry) could not be read."""

    def __init__(self, source: str, cause: BaseException) -> None:
        self.source = source
        self.cause = cause
        super().__init__(
            f"The {source} is unavailable: {cause}",
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        )


class PerEmployeeAggregationFailure(Exception):
    """Absence lookup failed for a single employee."""

    def __init__(self, employee_id: str, cause: BaseException) -> None:
        self.employee_id = employee_id
        self.cause = cause
        super().__init__(f"Absence aggregation failed for employee {employee_id}: {cause}")


class PersistenceFailure(Exception):
    """Writing a leave balance row failed after retrying."""

    def __init__(self, employee_id: str, year: int, cause: BaseException) -> None:
        self.employee_id = employee_id
        self.year = year
        self.cause = cause
        super().__init__(f"Could not persist leave balance for employee {employee_id} ({year}): {cause}")


async def _app_exception_handler(request: Request, exc: AppError) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content=ErrorResponse(
            error=type(exc).__name__,
            detail=exc.message,
            status_code=exc.status_code,
        ).model_dump(),
    )


async def _validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content=ErrorResponse(
            error="ValidationError",
            detail=str(exc.errors()),
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        ).model_dump(),
    )


def setup_exception_handlers(app: FastAPI) -> None:
    """Register exception handlers on the application."""
    app.add_exception_handler(AppError, _app_exception_handler)  # type: ignore[arg-type]
    app.add_exception_handler(RequestValidationError, _validation_exception_handler)  # type: ignore[arg-type]
