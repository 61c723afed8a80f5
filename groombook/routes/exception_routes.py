import logging
from datetime import date, datetime, time

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, ConfigDict, field_validator, model_validator
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from groombook.dependencies import ensure_database_ready, get_db, internal_error
from groombook.models.availability_exception import AvailabilityException
from groombook.queries import get_business_or_404
from groombook.scheduling.schemas import ExceptionType

router = APIRouter(tags=['availability-exceptions'])

logger = logging.getLogger(__name__)

MAX_EXCEPTION_TEXT_LENGTH = 500


class CreateExceptionRequest(BaseModel):
    exception_type: ExceptionType = ExceptionType.BLOCK
    start_date: date
    end_date: date | None = None
    start_time: time | None = None
    end_time: time | None = None
    is_all_day: bool = True
    reason: str | None = None
    notes: str | None = None

    @field_validator('reason', 'notes')
    @classmethod
    def validate_text(cls, value: str | None) -> str | None:
        if value is None:
            return None

        normalized = value.strip()
        if not normalized:
            return None

        if len(normalized) > MAX_EXCEPTION_TEXT_LENGTH:
            raise ValueError(f'Text must be {MAX_EXCEPTION_TEXT_LENGTH} characters or fewer.')

        return normalized

    @model_validator(mode='after')
    def validate_range(self) -> 'CreateExceptionRequest':
        if self.end_date is None:
            self.end_date = self.start_date
        if self.end_date < self.start_date:
            raise ValueError('end_date cannot be before start_date.')

        if self.is_all_day:
            self.start_time = None
            self.end_time = None
        else:
            if self.start_time is None or self.end_time is None:
                raise ValueError('Partial-day exceptions need both start_time and end_time.')
            if self.start_time >= self.end_time:
                raise ValueError('start_time must be before end_time.')

        return self


class ExceptionResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    business_id: str
    exception_type: ExceptionType
    start_date: date
    end_date: date
    start_time: time | None = None
    end_time: time | None = None
    is_all_day: bool
    reason: str | None = None
    notes: str | None = None
    created_at: datetime | None = None


@router.get('/{business_id}/exceptions', response_model=list[ExceptionResponse])
def list_exceptions(business_id: str, db: Session = Depends(get_db)):
    ensure_database_ready()

    try:
        get_business_or_404(business_id, db)
        return db.query(AvailabilityException).filter(
            AvailabilityException.business_id == business_id,
        ).order_by(AvailabilityException.start_date.desc()).all()
    except SQLAlchemyError as exc:
        logger.exception('Error loading exceptions for business %s.', business_id)
        raise internal_error(exc) from exc


@router.post(
    '/{business_id}/exceptions',
    response_model=ExceptionResponse,
    status_code=status.HTTP_201_CREATED,
)
def create_exception(business_id: str, data: CreateExceptionRequest, db: Session = Depends(get_db)):
    ensure_database_ready()

    try:
        get_business_or_404(business_id, db)

        exception = AvailabilityException(
            business_id=business_id,
            exception_type=data.exception_type.value,
            start_date=data.start_date,
            end_date=data.end_date,
            start_time=data.start_time,
            end_time=data.end_time,
            is_all_day=data.is_all_day,
            reason=data.reason,
            notes=data.notes,
        )
        db.add(exception)
        db.commit()
        db.refresh(exception)
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception('Error creating exception for business %s.', business_id)
        raise internal_error(exc) from exc

    logger.info(
        'Business %s blocked %s to %s (%s).',
        business_id,
        exception.start_date,
        exception.end_date,
        exception.exception_type,
    )
    return exception


@router.delete('/{business_id}/exceptions/{exception_id}', status_code=status.HTTP_204_NO_CONTENT)
def delete_exception(business_id: str, exception_id: int, db: Session = Depends(get_db)):
    ensure_database_ready()

    try:
        exception = db.query(AvailabilityException).filter(
            AvailabilityException.id == exception_id,
            AvailabilityException.business_id == business_id,
        ).first()

        if not exception:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail='Availability exception not found.',
            )

        db.delete(exception)
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception('Error deleting exception %s for business %s.', exception_id, business_id)
        raise internal_error(exc) from exc
