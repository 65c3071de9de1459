import logging
import re

from fastapi import HTTPException, status
from sqlalchemy.exc import SQLAlchemyError

from dental_clinic.database import ensure_appointment_schema
from dental_clinic.errors import RecordNotFoundError

DATABASE_UNAVAILABLE_DETAIL = 'Database unavailable. Verify DATABASE_URL.'
TIME_PATTERN = re.compile(r'^([01]\d|2[0-3]):[0-5]\d$')

logger = logging.getLogger(__name__)


def database_unavailable(exc: SQLAlchemyError) -> HTTPException:
    logger.error('Database error: %s', exc)
    return HTTPException(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        detail=DATABASE_UNAVAILABLE_DETAIL,
    )


def not_found(exc: RecordNotFoundError) -> HTTPException:
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f'{exc.model_name} not found.')


def ensure_database_ready() -> None:
    try:
        ensure_appointment_schema()
    except SQLAlchemyError as exc:
        raise database_unavailable(exc) from exc


def validate_time_string(value: str | None) -> str | None:
    if value is None:
        return None

    normalized = value.strip()
    # Postgres TIME columns come back as HH:MM:SS.
    if len(normalized) == 8 and normalized.count(':') == 2:
        normalized = normalized[:5]
    if not TIME_PATTERN.match(normalized):
        raise ValueError('Times must use 24-hour HH:MM format.')
    return normalized


def normalize_choice(value: str, choices: tuple[str, ...], label: str) -> str:
    normalized = value.strip().lower()
    if normalized not in choices:
        raise ValueError(f'Invalid {label}.')
    return normalized
