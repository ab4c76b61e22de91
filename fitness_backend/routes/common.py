from fastapi import HTTPException, status
from sqlalchemy.exc import SQLAlchemyError

from fitness_backend.database import ensure_appointment_schema
from fitness_backend.services.results import Outcome, SchedulingResult

DATABASE_UNAVAILABLE_DETAIL = 'Database unavailable. Verify DATABASE_URL and database credentials.'

OUTCOME_STATUS_CODES = {
    Outcome.INVALID_REQUEST: status.HTTP_400_BAD_REQUEST,
    Outcome.OUT_OF_HOURS: status.HTTP_400_BAD_REQUEST,
    Outcome.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    Outcome.CONFLICT: status.HTTP_409_CONFLICT,
}


def database_unavailable() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        detail=DATABASE_UNAVAILABLE_DETAIL,
    )


def ensure_database_ready() -> None:
    try:
        ensure_appointment_schema()
    except SQLAlchemyError as exc:
        raise database_unavailable() from exc


def raise_for_outcome(result: SchedulingResult) -> None:
    if result.ok:
        return

    raise HTTPException(
        status_code=OUTCOME_STATUS_CODES[result.outcome],
        detail=result.reason,
    )
