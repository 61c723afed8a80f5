"""Business profile model definitions."""

import uuid

from sqlalchemy import Boolean, Column, JSON, String
from groombook.database import Base


def generate_uuid() -> str:
    return str(uuid.uuid4())


class BusinessProfile(Base):
    """A grooming business and its weekly opening hours."""
    __tablename__ = "business_profiles"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    business_name = Column(String, nullable=False)
    slug = Column(String, unique=True, index=True)
    business_hours = Column(JSON)  # weekday name -> {open, close, closed}
    timezone = Column(String)  # IANA name, falls back to DEFAULT_TIMEZONE
    is_active = Column(Boolean, default=True)
