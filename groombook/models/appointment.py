"""Appointment model definitions."""

from datetime import datetime

from sqlalchemy import Column, Date, DateTime, ForeignKey, Integer, String, Time
from groombook.database import Base


class Appointment(Base):
    """A booked grooming appointment.

    ``end_time`` includes the business's buffer time, so the stored interval is
    the interval the booking occupies.
    """
    __tablename__ = "appointments"

    id = Column(Integer, primary_key=True)
    business_id = Column(String(36), ForeignKey("business_profiles.id"), nullable=False)
    customer_name = Column(String)
    customer_email = Column(String, index=True)
    pet_name = Column(String)
    service_name = Column(String)
    service_duration_minutes = Column(Integer)
    appointment_date = Column(Date, nullable=False)
    start_time = Column(Time, nullable=False)
    end_time = Column(Time, nullable=False)
    status = Column(String, nullable=False, default="pending")  # pending/confirmed/in_progress/completed/cancelled
    notes = Column(String)
    created_at = Column(DateTime, default=datetime.utcnow)
