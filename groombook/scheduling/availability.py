"""
Appointment availability engine.

Derives bookable time slots from a business's weekly hours, appointment
settings, blackout exceptions and already booked appointments:

- generate_time_slots: every grid slot of one day, each marked available or
  not with a reason
- calculate_availability: one DayAvailability per date of an inclusive range
- is_slot_available: authoritative check of a single (date, time) candidate

The functions keep no state and perform no I/O. The current time is always
passed in by the caller.
"""

import logging
from datetime import date, datetime, time, timedelta, tzinfo
from typing import Sequence

from groombook.scheduling.business_hours import ClosedDay, DayResolution, OpenDay, WeeklyHours, resolve_day
from groombook.scheduling.overlap import count_conflicts, is_blocked
from groombook.scheduling.schemas import (
    AppointmentSettings,
    AvailabilityException,
    DayAvailability,
    ExistingAppointment,
    SlotCheck,
    TimeSlot,
)

logger = logging.getLogger(__name__)

SLOT_TIME_FORMAT = '%H:%M'

REASON_TOO_SOON = 'Too soon to book'
REASON_BLOCKED = 'Time blocked by business'
REASON_FULL = 'No availability - time slot full'
REASON_INVALID_SLOT = 'Invalid time slot'


class ConfigurationError(ValueError):
    """Settings or request values that make a calculation meaningless."""


def ensure_valid_settings(settings: AppointmentSettings, service_duration: int) -> None:
    if settings.slot_duration_minutes <= 0:
        raise ConfigurationError('slot_duration_minutes must be greater than zero.')
    if service_duration <= 0:
        raise ConfigurationError('service_duration must be greater than zero.')
    if settings.buffer_time_minutes < 0:
        raise ConfigurationError('buffer_time_minutes cannot be negative.')
    if settings.max_appointments_per_slot < 1:
        raise ConfigurationError('max_appointments_per_slot must be at least 1.')
    if settings.min_booking_notice_hours < 0:
        raise ConfigurationError('min_booking_notice_hours cannot be negative.')


def to_local_naive(now: datetime, tz: tzinfo | None = None) -> datetime:
    """Express ``now`` as naive wall-clock time in the business timezone."""
    if now.tzinfo is not None and tz is not None:
        now = now.astimezone(tz)
    return now.replace(tzinfo=None)


def _is_too_soon(slot_start: datetime, settings: AppointmentSettings, local_now: datetime) -> bool:
    if not settings.allow_same_day_booking and slot_start.date() == local_now.date():
        return True
    return slot_start < local_now + timedelta(hours=settings.min_booking_notice_hours)


def _resolve_day_logged(weekly_hours: WeeklyHours, day: date) -> DayResolution:
    resolution = resolve_day(weekly_hours, day)
    if isinstance(resolution, ClosedDay) and resolution.is_misconfigured:
        logger.warning('No slots for %s: business hours are %s.', day.isoformat(), resolution.reason.value)
    return resolution


def _build_slots(
    day: date,
    hours: OpenDay,
    settings: AppointmentSettings,
    service_duration: int,
    exceptions: Sequence[AvailabilityException],
    existing_appointments: Sequence[ExistingAppointment],
    local_now: datetime,
) -> list[TimeSlot]:
    slot_step = timedelta(minutes=settings.slot_duration_minutes)
    occupied = timedelta(minutes=service_duration + settings.buffer_time_minutes)
    close_at = datetime.combine(day, hours.close)
    cursor = datetime.combine(day, hours.open)

    slots: list[TimeSlot] = []
    while cursor < close_at:
        slot_end = cursor + occupied
        if slot_end > close_at:
            break

        label = cursor.strftime(SLOT_TIME_FORMAT)

        if _is_too_soon(cursor, settings, local_now):
            slots.append(TimeSlot(time=label, available=False, conflicts_count=0, reason=REASON_TOO_SOON))
        elif is_blocked(exceptions, day, cursor, slot_end):
            slots.append(TimeSlot(time=label, available=False, conflicts_count=0, reason=REASON_BLOCKED))
        else:
            conflicts = count_conflicts(existing_appointments, day, cursor, slot_end)
            available = conflicts < settings.max_appointments_per_slot
            slots.append(
                TimeSlot(
                    time=label,
                    available=available,
                    conflicts_count=conflicts,
                    reason=None if available else REASON_FULL,
                )
            )

        cursor += slot_step

    return slots


def generate_time_slots(
    day: date,
    weekly_hours: WeeklyHours,
    settings: AppointmentSettings,
    service_duration: int,
    exceptions: Sequence[AvailabilityException] = (),
    existing_appointments: Sequence[ExistingAppointment] = (),
    *,
    now: datetime,
    tz: tzinfo | None = None,
) -> list[TimeSlot]:
    """
    Generate the slot grid for one date.

    Slots start at the day's opening time and advance by
    ``slot_duration_minutes``. Generation stops at the first slot whose
    service duration plus buffer would end after closing; ending exactly at
    closing is allowed. Slots that are too soon, blocked or full are still
    listed with ``available=False`` and a reason.

    Raises:
        ConfigurationError: the settings or service duration are unusable.
    """
    ensure_valid_settings(settings, service_duration)
    resolution = _resolve_day_logged(weekly_hours, day)
    if isinstance(resolution, ClosedDay):
        return []

    return _build_slots(
        day,
        resolution,
        settings,
        service_duration,
        exceptions,
        existing_appointments,
        to_local_naive(now, tz),
    )


def calculate_availability(
    start_date: date,
    end_date: date,
    weekly_hours: WeeklyHours,
    settings: AppointmentSettings,
    service_duration: int,
    exceptions: Sequence[AvailabilityException] = (),
    existing_appointments: Sequence[ExistingAppointment] = (),
    *,
    now: datetime,
    tz: tzinfo | None = None,
) -> list[DayAvailability]:
    """Availability for every date in ``[start_date, end_date]``, in order."""
    ensure_valid_settings(settings, service_duration)
    local_now = to_local_naive(now, tz)

    days: list[DayAvailability] = []
    current_day = start_date
    while current_day <= end_date:
        resolution = _resolve_day_logged(weekly_hours, current_day)
        is_open = isinstance(resolution, OpenDay)
        slots = (
            _build_slots(
                current_day,
                resolution,
                settings,
                service_duration,
                exceptions,
                existing_appointments,
                local_now,
            )
            if is_open
            else []
        )

        days.append(
            DayAvailability(
                date=current_day.isoformat(),
                is_open=is_open,
                slots=slots,
                total_available=sum(1 for slot in slots if slot.available),
            )
        )
        current_day += timedelta(days=1)

    return days


def is_slot_available(
    day: date,
    start_time: str | time,
    weekly_hours: WeeklyHours,
    settings: AppointmentSettings,
    service_duration: int,
    exceptions: Sequence[AvailabilityException] = (),
    existing_appointments: Sequence[ExistingAppointment] = (),
    *,
    now: datetime,
    tz: tzinfo | None = None,
) -> SlotCheck:
    """
    Check one candidate slot right before a booking is committed.

    The whole day is regenerated so the answer always follows the same rules
    as the listing. A time that is not on the slot grid is reported as
    ``Invalid time slot``.
    """
    requested = start_time.strftime(SLOT_TIME_FORMAT) if isinstance(start_time, time) else start_time

    slots = generate_time_slots(
        day,
        weekly_hours,
        settings,
        service_duration,
        exceptions,
        existing_appointments,
        now=now,
        tz=tz,
    )
    slot = next((candidate for candidate in slots if candidate.time == requested), None)

    if slot is None:
        return SlotCheck(available=False, reason=REASON_INVALID_SLOT)

    return SlotCheck(available=slot.available, reason=slot.reason)
