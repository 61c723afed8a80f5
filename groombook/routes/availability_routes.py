import logging
from datetime import date, datetime, timedelta

from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import BaseModel
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from groombook.core import config
from groombook.dependencies import current_time, ensure_database_ready, get_db, internal_error
from groombook.queries import (
    get_appointments_in_range,
    get_business_or_404,
    get_business_timezone,
    get_exceptions_in_range,
    get_settings_or_404,
    get_weekly_hours,
)
from groombook.scheduling.availability import (
    ConfigurationError,
    calculate_availability,
    is_slot_available,
)
from groombook.scheduling.schemas import AppointmentSettings, DayAvailability

router = APIRouter(tags=['availability'])

logger = logging.getLogger(__name__)

REASON_TOO_FAR_AHEAD = 'Too far in advance to book'


class AvailabilityReportResponse(BaseModel):
    business_id: str
    start_date: str
    end_date: str
    service_duration: int
    availability: list[DayAvailability]


class ValidateSlotRequest(BaseModel):
    business_id: str | None = None
    appointment_date: str | None = None
    start_time: str | None = None
    service_duration: int | None = None


class ValidateSlotResponse(BaseModel):
    available: bool
    reason: str
    business_id: str
    appointment_date: str
    start_time: str
    service_duration: int


def parse_iso_date(value: str, field_name: str) -> date:
    """Parse a YYYY-MM-DD date; a full ISO datetime is accepted and reduced to its date."""
    normalized = value.strip()
    try:
        if 'T' in normalized:
            if normalized.endswith('Z'):
                normalized = normalized[:-1] + '+00:00'
            return datetime.fromisoformat(normalized).date()
        return date.fromisoformat(normalized)
    except ValueError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f'{field_name} must be an ISO date (YYYY-MM-DD).',
        ) from exc


def parse_service_duration(value: str) -> int:
    try:
        return int(value)
    except ValueError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail='service_duration must be an integer number of minutes.',
        ) from exc


def booking_window_end(today: date, settings: AppointmentSettings) -> date:
    return today + timedelta(days=settings.max_booking_advance_days)


def configuration_error(exc: ConfigurationError) -> HTTPException:
    return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))


@router.get('/{business_id}', response_model=AvailabilityReportResponse)
def get_business_availability(
    business_id: str,
    start_date: str | None = Query(default=None),
    end_date: str | None = Query(default=None),
    service_duration: str | None = Query(default=None),
    db: Session = Depends(get_db),
):
    if not start_date or not service_duration:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail='Missing required parameters: start_date, service_duration',
        )

    range_start = parse_iso_date(start_date, 'start_date')
    range_end = (
        parse_iso_date(end_date, 'end_date')
        if end_date
        else range_start + timedelta(days=config.DEFAULT_AVAILABILITY_RANGE_DAYS)
    )
    duration_minutes = parse_service_duration(service_duration)

    if range_end < range_start:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail='end_date cannot be before start_date.',
        )
    if (range_end - range_start).days > config.MAX_AVAILABILITY_RANGE_DAYS:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f'Date range cannot exceed {config.MAX_AVAILABILITY_RANGE_DAYS} days.',
        )

    ensure_database_ready()

    try:
        business = get_business_or_404(business_id, db)
        settings = get_settings_or_404(business_id, db)
        weekly_hours = get_weekly_hours(business)
        business_tz = get_business_timezone(business)
        now = current_time(business_tz)

        if config.ENFORCE_MAX_BOOKING_ADVANCE:
            window_end = booking_window_end(now.date(), settings)
            if range_start > window_end:
                raise HTTPException(
                    status_code=status.HTTP_400_BAD_REQUEST,
                    detail=f'start_date is beyond the booking window of {settings.max_booking_advance_days} days.',
                )
            range_end = min(range_end, window_end)

        exceptions = get_exceptions_in_range(business_id, range_start, range_end, db)
        appointments = get_appointments_in_range(business_id, range_start, range_end, db)

        availability = calculate_availability(
            range_start,
            range_end,
            weekly_hours,
            settings,
            duration_minutes,
            exceptions,
            appointments,
            now=now,
            tz=business_tz,
        )
    except ConfigurationError as exc:
        raise configuration_error(exc) from exc
    except SQLAlchemyError as exc:
        logger.exception('Error calculating availability for business %s (%s to %s).', business_id, start_date, end_date)
        raise internal_error(exc) from exc

    return AvailabilityReportResponse(
        business_id=business_id,
        start_date=range_start.isoformat(),
        end_date=range_end.isoformat(),
        service_duration=duration_minutes,
        availability=availability,
    )


@router.post('/validate', response_model=ValidateSlotResponse)
def validate_slot(data: ValidateSlotRequest, db: Session = Depends(get_db)):
    if not data.business_id or not data.appointment_date or not data.start_time or not data.service_duration:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail='Missing required parameters',
        )

    appointment_date = parse_iso_date(data.appointment_date, 'appointment_date')

    ensure_database_ready()

    try:
        business = get_business_or_404(data.business_id, db)
        settings = get_settings_or_404(data.business_id, db)
        weekly_hours = get_weekly_hours(business)
        business_tz = get_business_timezone(business)
        now = current_time(business_tz)

        if config.ENFORCE_MAX_BOOKING_ADVANCE and appointment_date > booking_window_end(now.date(), settings):
            available, reason = False, REASON_TOO_FAR_AHEAD
        else:
            exceptions = get_exceptions_in_range(data.business_id, appointment_date, appointment_date, db)
            appointments = get_appointments_in_range(data.business_id, appointment_date, appointment_date, db)
            result = is_slot_available(
                appointment_date,
                data.start_time,
                weekly_hours,
                settings,
                data.service_duration,
                exceptions,
                appointments,
                now=now,
                tz=business_tz,
            )
            available, reason = result.available, result.reason
    except ConfigurationError as exc:
        raise configuration_error(exc) from exc
    except SQLAlchemyError as exc:
        logger.exception('Error validating slot %s %s for business %s.', data.appointment_date, data.start_time, data.business_id)
        raise internal_error(exc) from exc

    logger.debug('Slot %s %s for business %s: available=%s (%s)', data.appointment_date, data.start_time, data.business_id, available, reason)

    return ValidateSlotResponse(
        available=available,
        reason=reason or ('Available' if available else 'Not available'),
        business_id=data.business_id,
        appointment_date=data.appointment_date,
        start_time=data.start_time,
        service_duration=data.service_duration,
    )
