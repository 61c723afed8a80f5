"""Appointment settings model definitions."""

from sqlalchemy import Boolean, Column, ForeignKey, Integer, String
from groombook.database import Base


class AppointmentSettings(Base):
    """Booking rules configured once per business."""
    __tablename__ = "appointment_settings"

    id = Column(Integer, primary_key=True)
    business_id = Column(String(36), ForeignKey("business_profiles.id"), unique=True, nullable=False)
    slot_duration_minutes = Column(Integer, nullable=False, default=30)
    buffer_time_minutes = Column(Integer, nullable=False, default=0)
    max_appointments_per_slot = Column(Integer, nullable=False, default=1)
    min_booking_notice_hours = Column(Integer, nullable=False, default=0)
    max_booking_advance_days = Column(Integer, nullable=False, default=30)
    cancellation_policy_hours = Column(Integer, nullable=False, default=24)
    allow_same_day_booking = Column(Boolean, nullable=False, default=True)
