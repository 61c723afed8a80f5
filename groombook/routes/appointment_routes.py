"""
Booking commit and cancellation.

The slot check runs as the last step before the insert, inside the same
request. Two requests that pass the check at the same moment can both be
stored; exclusivity would need a constraint in the database, so capacity
enforcement here is a best-effort pre-check.
"""

import logging
from datetime import date, datetime, time, timedelta

from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import BaseModel, ConfigDict, Field, field_validator
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from groombook.core import config
from groombook.dependencies import current_time, ensure_database_ready, get_db, internal_error
from groombook.models.appointment import Appointment
from groombook.queries import (
    get_appointments_in_range,
    get_business_or_404,
    get_business_timezone,
    get_exceptions_in_range,
    get_settings_or_404,
    get_weekly_hours,
)
from groombook.routes.availability_routes import REASON_TOO_FAR_AHEAD, booking_window_end, configuration_error
from groombook.scheduling.availability import ConfigurationError, is_slot_available, to_local_naive
from groombook.scheduling.overlap import CANCELLED_STATUS
from groombook.scheduling.schemas import AppointmentStatus

router = APIRouter(tags=['appointments'])

logger = logging.getLogger(__name__)

MAX_APPOINTMENT_NOTES_LENGTH = 600


class CreateAppointmentRequest(BaseModel):
    business_id: str
    customer_name: str
    customer_email: str
    pet_name: str
    service_name: str | None = None
    appointment_date: date
    start_time: time
    service_duration: int = Field(gt=0)
    notes: str | None = None

    @field_validator('customer_email')
    @classmethod
    def validate_customer_email(cls, value: str) -> str:
        normalized = value.strip().lower()
        if not normalized or '@' not in normalized:
            raise ValueError('A valid customer email is required.')
        return normalized

    @field_validator('customer_name', 'pet_name')
    @classmethod
    def validate_required_text(cls, value: str) -> str:
        normalized = value.strip()
        if not normalized:
            raise ValueError('This field is required.')
        return normalized

    @field_validator('notes')
    @classmethod
    def validate_notes(cls, value: str | None) -> str | None:
        if value is None:
            return None

        normalized = value.strip()
        if not normalized:
            return None

        if len(normalized) > MAX_APPOINTMENT_NOTES_LENGTH:
            raise ValueError(f'Notes must be {MAX_APPOINTMENT_NOTES_LENGTH} characters or fewer.')

        return normalized


class UpdateAppointmentStatusRequest(BaseModel):
    status: AppointmentStatus


class AppointmentResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    business_id: str
    customer_name: str | None = None
    customer_email: str | None = None
    pet_name: str | None = None
    service_name: str | None = None
    service_duration_minutes: int | None = None
    appointment_date: date
    start_time: time
    end_time: time
    status: str
    notes: str | None = None


@router.post('', response_model=AppointmentResponse, status_code=status.HTTP_201_CREATED)
def create_appointment(data: CreateAppointmentRequest, db: Session = Depends(get_db)):
    ensure_database_ready()

    start_time = data.start_time.replace(second=0, microsecond=0)

    try:
        business = get_business_or_404(data.business_id, db)
        settings = get_settings_or_404(data.business_id, db)
        business_tz = get_business_timezone(business)
        now = current_time(business_tz)

        if config.ENFORCE_MAX_BOOKING_ADVANCE and data.appointment_date > booking_window_end(now.date(), settings):
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail=REASON_TOO_FAR_AHEAD,
            )

        result = is_slot_available(
            data.appointment_date,
            start_time,
            get_weekly_hours(business),
            settings,
            data.service_duration,
            get_exceptions_in_range(data.business_id, data.appointment_date, data.appointment_date, db),
            get_appointments_in_range(data.business_id, data.appointment_date, data.appointment_date, db),
            now=now,
            tz=business_tz,
        )
        if not result.available:
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail=result.reason or 'Not available',
            )

        occupied = timedelta(minutes=data.service_duration + settings.buffer_time_minutes)
        appointment = Appointment(
            business_id=data.business_id,
            customer_name=data.customer_name,
            customer_email=data.customer_email,
            pet_name=data.pet_name,
            service_name=data.service_name,
            service_duration_minutes=data.service_duration,
            appointment_date=data.appointment_date,
            start_time=start_time,
            end_time=(datetime.combine(data.appointment_date, start_time) + occupied).time(),
            status=AppointmentStatus.PENDING.value,
            notes=data.notes,
        )
        db.add(appointment)
        db.commit()
        db.refresh(appointment)
    except ConfigurationError as exc:
        raise configuration_error(exc) from exc
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception('Error booking %s %s for business %s.', data.appointment_date, start_time, data.business_id)
        raise internal_error(exc) from exc

    logger.info('Booked appointment %s for business %s on %s at %s.', appointment.id, data.business_id, data.appointment_date, start_time)
    return appointment


@router.post('/{appointment_id}/cancel', response_model=AppointmentResponse)
def cancel_appointment(
    appointment_id: int,
    customer_email: str = Query(...),
    db: Session = Depends(get_db),
):
    normalized_email = customer_email.strip().lower()
    if not normalized_email:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail='Customer email is required.',
        )

    ensure_database_ready()

    try:
        appointment = db.query(Appointment).filter(Appointment.id == appointment_id).first()
        if not appointment:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail='Appointment not found.',
            )

        if (appointment.customer_email or '').strip().lower() != normalized_email:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail='Only the customer who booked this appointment can cancel it.',
            )

        if appointment.status == CANCELLED_STATUS:
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail='Appointment is already cancelled.',
            )

        business = get_business_or_404(appointment.business_id, db)
        settings = get_settings_or_404(appointment.business_id, db)
        local_now = to_local_naive(current_time(get_business_timezone(business)))
        starts_at = datetime.combine(appointment.appointment_date, appointment.start_time)

        if starts_at - local_now < timedelta(hours=settings.cancellation_policy_hours):
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f'Appointments can only be cancelled at least {settings.cancellation_policy_hours} hours in advance.',
            )

        appointment.status = CANCELLED_STATUS
        db.commit()
        db.refresh(appointment)
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception('Error cancelling appointment %s.', appointment_id)
        raise internal_error(exc) from exc

    logger.info('Cancelled appointment %s for business %s.', appointment.id, appointment.business_id)
    return appointment


@router.patch('/{appointment_id}/status', response_model=AppointmentResponse)
def update_appointment_status(
    appointment_id: int,
    data: UpdateAppointmentStatusRequest,
    db: Session = Depends(get_db),
):
    """Move a booking through its lifecycle from the business dashboard.

    Cancelling frees the booking's slot right away. A cancelled booking is
    never reopened here; the customer books the slot again instead.
    """
    ensure_database_ready()

    try:
        appointment = db.query(Appointment).filter(Appointment.id == appointment_id).first()
        if not appointment:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail='Appointment not found.',
            )

        previous_status = appointment.status
        if previous_status == CANCELLED_STATUS and data.status is not AppointmentStatus.CANCELLED:
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail='Cancelled appointments cannot be reopened.',
            )

        appointment.status = data.status.value
        db.commit()
        db.refresh(appointment)
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception('Error updating status of appointment %s.', appointment_id)
        raise internal_error(exc) from exc

    logger.info(
        'Appointment %s for business %s moved from %s to %s.',
        appointment.id,
        appointment.business_id,
        previous_status,
        appointment.status,
    )
    return appointment
