import logging
from typing import Any

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, ConfigDict, Field, field_validator
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from groombook.dependencies import ensure_database_ready, get_db, internal_error
from groombook.models.appointment_settings import AppointmentSettings
from groombook.queries import get_business_or_404, get_settings_row, get_weekly_hours
from groombook.scheduling.business_hours import parse_business_hours, serialize_business_hours

router = APIRouter(tags=['businesses'])

logger = logging.getLogger(__name__)


class BusinessHoursRequest(BaseModel):
    business_hours: dict[str, Any]

    @field_validator('business_hours')
    @classmethod
    def validate_business_hours(cls, value: dict[str, Any]) -> dict[str, Any]:
        weekly_hours = parse_business_hours(value)
        if not weekly_hours:
            raise ValueError('At least one weekday must be configured.')

        for weekday, hours in weekly_hours.items():
            if hours.closed:
                continue
            if hours.open is None or hours.close is None:
                raise ValueError(f'{weekday.name.title()} needs both an opening and a closing time.')
            if hours.open >= hours.close:
                raise ValueError(f'{weekday.name.title()} must open before it closes.')

        return serialize_business_hours(weekly_hours)


class BusinessHoursResponse(BaseModel):
    business_id: str
    business_hours: dict[str, Any]


class AppointmentSettingsRequest(BaseModel):
    slot_duration_minutes: int = Field(gt=0, le=24 * 60)
    buffer_time_minutes: int = Field(default=0, ge=0)
    max_appointments_per_slot: int = Field(default=1, ge=1)
    min_booking_notice_hours: int = Field(default=0, ge=0)
    max_booking_advance_days: int = Field(default=30, ge=1)
    cancellation_policy_hours: int = Field(default=24, ge=0)
    allow_same_day_booking: bool = True


class AppointmentSettingsResponse(AppointmentSettingsRequest):
    model_config = ConfigDict(from_attributes=True)

    business_id: str


@router.get('/{business_id}/hours', response_model=BusinessHoursResponse)
def get_business_hours(business_id: str, db: Session = Depends(get_db)):
    ensure_database_ready()

    try:
        business = get_business_or_404(business_id, db)
        weekly_hours = get_weekly_hours(business)
    except SQLAlchemyError as exc:
        logger.exception('Error loading hours for business %s.', business_id)
        raise internal_error(exc) from exc

    return BusinessHoursResponse(
        business_id=business_id,
        business_hours=serialize_business_hours(weekly_hours),
    )


@router.put('/{business_id}/hours', response_model=BusinessHoursResponse)
def update_business_hours(business_id: str, data: BusinessHoursRequest, db: Session = Depends(get_db)):
    ensure_database_ready()

    try:
        business = get_business_or_404(business_id, db)
        business.business_hours = data.business_hours
        db.commit()
        db.refresh(business)
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception('Error updating hours for business %s.', business_id)
        raise internal_error(exc) from exc

    return BusinessHoursResponse(business_id=business_id, business_hours=business.business_hours)


@router.get('/{business_id}/appointment-settings', response_model=AppointmentSettingsResponse)
def get_appointment_settings(business_id: str, db: Session = Depends(get_db)):
    ensure_database_ready()

    try:
        get_business_or_404(business_id, db)
        settings = get_settings_row(business_id, db)
    except SQLAlchemyError as exc:
        logger.exception('Error loading appointment settings for business %s.', business_id)
        raise internal_error(exc) from exc

    if not settings:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail='Appointment settings not found',
        )

    return settings


@router.put('/{business_id}/appointment-settings', response_model=AppointmentSettingsResponse)
def upsert_appointment_settings(
    business_id: str,
    data: AppointmentSettingsRequest,
    db: Session = Depends(get_db),
):
    ensure_database_ready()

    try:
        business = get_business_or_404(business_id, db)
        settings = get_settings_row(business_id, db)
        if settings is None:
            settings = AppointmentSettings(business_id=business_id)
            db.add(settings)

        for field_name, value in data.model_dump().items():
            setattr(settings, field_name, value)

        db.commit()
        db.refresh(settings)
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception('Error saving appointment settings for business %s.', business_id)
        raise internal_error(exc) from exc

    logger.info('Saved appointment settings for business %s (%s).', business.id, business.business_name)

    return settings
