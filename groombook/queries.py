"""Booking-store lookups that turn database rows into engine inputs."""

import logging
from datetime import date
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from fastapi import HTTPException, status
from sqlalchemy.orm import Session

from groombook.core import config
from groombook.models.appointment import Appointment
from groombook.models.appointment_settings import AppointmentSettings as AppointmentSettingsRow
from groombook.models.availability_exception import AvailabilityException as AvailabilityExceptionRow
from groombook.models.business import BusinessProfile
from groombook.scheduling.business_hours import WeeklyHours, parse_business_hours
from groombook.scheduling.overlap import CANCELLED_STATUS
from groombook.scheduling.schemas import AppointmentSettings, AvailabilityException, ExistingAppointment

logger = logging.getLogger(__name__)


def get_business_or_404(business_id: str, db: Session) -> BusinessProfile:
    business = db.query(BusinessProfile).filter(BusinessProfile.id == business_id).first()
    if not business:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail='Business not found',
        )
    return business


def get_settings_row(business_id: str, db: Session) -> AppointmentSettingsRow | None:
    return db.query(AppointmentSettingsRow).filter(AppointmentSettingsRow.business_id == business_id).first()


def get_settings_or_404(business_id: str, db: Session) -> AppointmentSettings:
    settings_row = get_settings_row(business_id, db)
    if not settings_row:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail='Appointment settings not found',
        )
    return AppointmentSettings.model_validate(settings_row)


def get_weekly_hours(business: BusinessProfile) -> WeeklyHours:
    try:
        return parse_business_hours(business.business_hours)
    except ValueError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f'Business hours are misconfigured: {exc}',
        ) from exc


def get_business_timezone(business: BusinessProfile) -> ZoneInfo:
    if business.timezone:
        try:
            return ZoneInfo(business.timezone)
        except ZoneInfoNotFoundError:
            logger.warning('Unknown timezone %r for business %s, using %s.', business.timezone, business.id, config.DEFAULT_TIMEZONE)
    return ZoneInfo(config.DEFAULT_TIMEZONE)


def get_exceptions_in_range(business_id: str, start_date: date, end_date: date, db: Session) -> list[AvailabilityException]:
    rows = db.query(AvailabilityExceptionRow).filter(
        AvailabilityExceptionRow.business_id == business_id,
        AvailabilityExceptionRow.start_date <= end_date,
        AvailabilityExceptionRow.end_date >= start_date,
    ).all()
    return [AvailabilityException.model_validate(row) for row in rows]


def get_appointments_in_range(business_id: str, start_date: date, end_date: date, db: Session) -> list[ExistingAppointment]:
    rows = db.query(Appointment).filter(
        Appointment.business_id == business_id,
        Appointment.appointment_date >= start_date,
        Appointment.appointment_date <= end_date,
        Appointment.status != CANCELLED_STATUS,
    ).all()
    return [ExistingAppointment.model_validate(row) for row in rows]
