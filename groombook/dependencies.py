from datetime import datetime, tzinfo

from fastapi import HTTPException, status
from sqlalchemy.exc import SQLAlchemyError

from groombook.database import SessionLocal, ensure_booking_schema


def ensure_database_ready() -> None:
    try:
        ensure_booking_schema()
    except SQLAlchemyError as exc:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail='Database unavailable. Verify DATABASE_URL and database credentials.',
        ) from exc


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def current_time(tz: tzinfo) -> datetime:
    return datetime.now(tz)


def internal_error(exc: Exception) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail={'error': 'Internal server error', 'details': str(exc)},
    )
