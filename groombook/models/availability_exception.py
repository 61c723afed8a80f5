"""Availability exception model definitions."""

from datetime import datetime

from sqlalchemy import Boolean, Column, Date, DateTime, ForeignKey, Integer, String, Time
from groombook.database import Base


class AvailabilityException(Base):
    """A blackout period declared by a business (vacation, break, block)."""
    __tablename__ = "availability_exceptions"

    id = Column(Integer, primary_key=True)
    business_id = Column(String(36), ForeignKey("business_profiles.id"), nullable=False)
    exception_type = Column(String, nullable=False, default="block")
    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=False)
    start_time = Column(Time)
    end_time = Column(Time)
    is_all_day = Column(Boolean, nullable=False, default=True)
    reason = Column(String)
    notes = Column(String)
    created_at = Column(DateTime, default=datetime.utcnow)
