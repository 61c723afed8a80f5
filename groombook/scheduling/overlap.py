"""
Overlap detection for candidate slots.

A slot occupies [start, end) where end already includes the buffer time.
Exceptions and appointments are compared against that interval with the
same three-way test used everywhere in the engine.
"""

from datetime import date, datetime
from typing import Iterable

from groombook.scheduling.schemas import AppointmentStatus, AvailabilityException, ExistingAppointment

CANCELLED_STATUS = AppointmentStatus.CANCELLED.value


def intervals_overlap(
    start: datetime,
    end: datetime,
    other_start: datetime,
    other_end: datetime,
) -> bool:
    """
    True when [start, end) touches [other_start, other_end).

    Overlap exists if the slot starts inside the other interval, ends inside
    it, or fully contains it.
    """
    return (
        (other_start <= start < other_end)
        or (other_start < end <= other_end)
        or (start <= other_start and end >= other_end)
    )


def exception_covers_date(exception: AvailabilityException, day: date) -> bool:
    return exception.start_date <= day <= exception.end_date


def exception_blocks_slot(
    exception: AvailabilityException,
    day: date,
    slot_start: datetime,
    slot_end: datetime,
) -> bool:
    if not exception_covers_date(exception, day):
        return False

    if exception.is_all_day:
        return True

    # A partial-day exception without both bounds blocks nothing.
    if exception.start_time is None or exception.end_time is None:
        return False

    return intervals_overlap(
        slot_start,
        slot_end,
        datetime.combine(day, exception.start_time),
        datetime.combine(day, exception.end_time),
    )


def is_blocked(
    exceptions: Iterable[AvailabilityException],
    day: date,
    slot_start: datetime,
    slot_end: datetime,
) -> bool:
    return any(exception_blocks_slot(exception, day, slot_start, slot_end) for exception in exceptions)


def count_conflicts(
    appointments: Iterable[ExistingAppointment],
    day: date,
    slot_start: datetime,
    slot_end: datetime,
) -> int:
    conflicts = 0
    for appointment in appointments:
        if appointment.appointment_date != day:
            continue
        if appointment.status.strip().lower() == CANCELLED_STATUS:
            continue

        if intervals_overlap(
            slot_start,
            slot_end,
            datetime.combine(day, appointment.start_time),
            datetime.combine(day, appointment.end_time),
        ):
            conflicts += 1

    return conflicts
