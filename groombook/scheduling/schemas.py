"""Value types consumed and produced by the availability engine."""

from datetime import date, time
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class ExceptionType(str, Enum):
    BLOCK = 'block'
    VACATION = 'vacation'
    BREAK = 'break'
    CUSTOM = 'custom'


class AppointmentStatus(str, Enum):
    PENDING = 'pending'
    CONFIRMED = 'confirmed'
    IN_PROGRESS = 'in_progress'
    COMPLETED = 'completed'
    CANCELLED = 'cancelled'


class BusinessDayHours(BaseModel):
    model_config = ConfigDict(frozen=True)

    open: time | None = None
    close: time | None = None
    closed: bool = False


class AppointmentSettings(BaseModel):
    model_config = ConfigDict(from_attributes=True, frozen=True)

    slot_duration_minutes: int
    buffer_time_minutes: int = 0
    max_appointments_per_slot: int = 1
    min_booking_notice_hours: int = 0
    max_booking_advance_days: int = 30
    cancellation_policy_hours: int = 24
    allow_same_day_booking: bool = True


class AvailabilityException(BaseModel):
    model_config = ConfigDict(from_attributes=True, frozen=True)

    exception_type: ExceptionType = ExceptionType.BLOCK
    start_date: date
    end_date: date
    start_time: time | None = None
    end_time: time | None = None
    is_all_day: bool = True


class ExistingAppointment(BaseModel):
    model_config = ConfigDict(from_attributes=True, frozen=True)

    appointment_date: date
    start_time: time
    end_time: time
    status: str


class TimeSlot(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    time: str
    available: bool
    conflicts_count: int = Field(default=0, alias='conflictsCount')
    reason: str | None = None


class DayAvailability(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    date: str
    is_open: bool = Field(alias='isOpen')
    slots: list[TimeSlot]
    total_available: int = Field(alias='totalAvailable')


class SlotCheck(BaseModel):
    available: bool
    reason: str | None = None
