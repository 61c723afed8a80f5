"""Weekday keys and resolution of a business's opening hours for a date.

Stored hours are keyed by weekday name. Both English and Spanish names are
accepted, and two value shapes are understood:

    {"open": "09:00", "close": "17:00", "closed": false}
    {"open": true, "start": "09:00", "end": "17:00"}

Everything is converted into a ``WeeklyHours`` map keyed by ``Weekday`` so the
engine never matches on locale strings.
"""

import logging
from datetime import date, time
from enum import Enum, IntEnum
from typing import Any, Union

from pydantic import BaseModel, ConfigDict

from groombook.scheduling.schemas import BusinessDayHours

logger = logging.getLogger(__name__)


class Weekday(IntEnum):
    MONDAY = 0
    TUESDAY = 1
    WEDNESDAY = 2
    THURSDAY = 3
    FRIDAY = 4
    SATURDAY = 5
    SUNDAY = 6

    @classmethod
    def for_date(cls, day: date) -> 'Weekday':
        return cls(day.weekday())


WeeklyHours = dict[Weekday, BusinessDayHours]

WEEKDAY_ALIASES: dict[str, Weekday] = {
    'monday': Weekday.MONDAY,
    'lunes': Weekday.MONDAY,
    'tuesday': Weekday.TUESDAY,
    'martes': Weekday.TUESDAY,
    'wednesday': Weekday.WEDNESDAY,
    'miércoles': Weekday.WEDNESDAY,
    'miercoles': Weekday.WEDNESDAY,
    'thursday': Weekday.THURSDAY,
    'jueves': Weekday.THURSDAY,
    'friday': Weekday.FRIDAY,
    'viernes': Weekday.FRIDAY,
    'saturday': Weekday.SATURDAY,
    'sábado': Weekday.SATURDAY,
    'sabado': Weekday.SATURDAY,
    'sunday': Weekday.SUNDAY,
    'domingo': Weekday.SUNDAY,
}


class ClosedReason(str, Enum):
    CLOSED = 'closed'
    NOT_CONFIGURED = 'not_configured'
    INCOMPLETE_HOURS = 'incomplete_hours'
    INVALID_HOURS = 'invalid_hours'


class OpenDay(BaseModel):
    model_config = ConfigDict(frozen=True)

    open: time
    close: time


class ClosedDay(BaseModel):
    model_config = ConfigDict(frozen=True)

    reason: ClosedReason

    @property
    def is_misconfigured(self) -> bool:
        return self.reason is not ClosedReason.CLOSED


DayResolution = Union[OpenDay, ClosedDay]


def weekday_for_key(key: str) -> Weekday | None:
    return WEEKDAY_ALIASES.get(key.strip().lower())


def _parse_time(value: Any) -> time | None:
    if value is None or value == '':
        return None
    if isinstance(value, time):
        return value.replace(second=0, microsecond=0)
    if isinstance(value, str):
        return time.fromisoformat(value.strip()).replace(second=0, microsecond=0)
    raise ValueError(f'Unsupported time value: {value!r}')


def parse_day_hours(raw: Any) -> BusinessDayHours:
    """Normalize one stored day entry into ``BusinessDayHours``."""
    if isinstance(raw, BusinessDayHours):
        return raw
    if not isinstance(raw, dict):
        raise ValueError(f'Day hours must be an object, got {type(raw).__name__}.')

    # Dashboard shape: "open" is a flag and the bounds live in start/end.
    if isinstance(raw.get('open'), bool):
        start = _parse_time(raw.get('start'))
        end = _parse_time(raw.get('end'))
        closed = raw['open'] is False or start is None or end is None
        return BusinessDayHours(open=start, close=end, closed=closed)

    # "closed" goes through pydantic so strings like "false" parse as booleans.
    return BusinessDayHours.model_validate({
        'open': _parse_time(raw.get('open')),
        'close': _parse_time(raw.get('close')),
        'closed': raw.get('closed') or False,
    })


def parse_business_hours(raw: dict[str, Any] | None) -> WeeklyHours:
    if not raw:
        return {}

    weekly_hours: WeeklyHours = {}
    for key, value in raw.items():
        weekday = weekday_for_key(str(key))
        if weekday is None:
            logger.warning('Ignoring unknown weekday key %r in business hours.', key)
            continue
        weekly_hours[weekday] = parse_day_hours(value)

    return weekly_hours


def serialize_business_hours(weekly_hours: WeeklyHours) -> dict[str, dict[str, Any]]:
    return {
        weekday.name.lower(): {
            'open': hours.open.strftime('%H:%M') if hours.open else None,
            'close': hours.close.strftime('%H:%M') if hours.close else None,
            'closed': hours.closed,
        }
        for weekday, hours in sorted(weekly_hours.items())
    }


def resolve_day(weekly_hours: WeeklyHours, day: date) -> DayResolution:
    hours = weekly_hours.get(Weekday.for_date(day))

    if hours is None:
        return ClosedDay(reason=ClosedReason.NOT_CONFIGURED)
    if hours.closed:
        return ClosedDay(reason=ClosedReason.CLOSED)
    if hours.open is None or hours.close is None:
        return ClosedDay(reason=ClosedReason.INCOMPLETE_HOURS)
    if hours.open >= hours.close:
        return ClosedDay(reason=ClosedReason.INVALID_HOURS)

    return OpenDay(open=hours.open, close=hours.close)
