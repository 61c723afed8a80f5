import os
from datetime import datetime, time

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

os.environ.setdefault('DATABASE_URL', 'sqlite:///./test.db')

from groombook.database import Base  # noqa: E402
from groombook.models.appointment import Appointment  # noqa: E402
from groombook.models.appointment_settings import AppointmentSettings  # noqa: E402
from groombook.models.availability_exception import AvailabilityException  # noqa: E402
from groombook.models.business import BusinessProfile  # noqa: E402

ROUTE_MODULES = (
    'groombook.routes.availability_routes',
    'groombook.routes.business_routes',
    'groombook.routes.exception_routes',
    'groombook.routes.appointment_routes',
)

# Thursday, four days before the Monday most tests book on.
FROZEN_NOW = datetime(2026, 1, 1, 8, 0)

WEEKDAY_HOURS = {
    'lunes': {'open': True, 'start': '09:00', 'end': '17:00'},
    'martes': {'open': True, 'start': '09:00', 'end': '17:00'},
    'miércoles': {'open': True, 'start': '09:00', 'end': '17:00'},
    'jueves': {'open': True, 'start': '09:00', 'end': '17:00'},
    'viernes': {'open': True, 'start': '09:00', 'end': '17:00'},
    'sábado': {'open': False, 'start': None, 'end': None},
    'domingo': {'open': False},
}


@pytest.fixture
def booking_db():
    engine = create_engine('sqlite:///:memory:')
    testing_session_local = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    tables = [
        BusinessProfile.__table__,
        AppointmentSettings.__table__,
        AvailabilityException.__table__,
        Appointment.__table__,
    ]
    Base.metadata.create_all(bind=engine, tables=tables)

    db = testing_session_local()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine, tables=list(reversed(tables)))


@pytest.fixture
def frozen_clock(monkeypatch: pytest.MonkeyPatch):
    clock = {'now': FROZEN_NOW}

    def fake_current_time(tz):
        return clock['now'].replace(tzinfo=tz)

    for module in ROUTE_MODULES:
        monkeypatch.setattr(f'{module}.ensure_database_ready', lambda: None)
        if module in ('groombook.routes.availability_routes', 'groombook.routes.appointment_routes'):
            monkeypatch.setattr(f'{module}.current_time', fake_current_time)

    return clock


@pytest.fixture
def business(booking_db, frozen_clock):
    profile = BusinessProfile(
        id='biz-1',
        business_name='Happy Paws',
        slug='happy-paws',
        business_hours=WEEKDAY_HOURS,
        timezone='UTC',
    )
    booking_db.add(profile)
    booking_db.add(
        AppointmentSettings(
            business_id='biz-1',
            slot_duration_minutes=30,
            buffer_time_minutes=0,
            max_appointments_per_slot=1,
            min_booking_notice_hours=0,
            max_booking_advance_days=30,
            cancellation_policy_hours=24,
            allow_same_day_booking=True,
        )
    )
    booking_db.commit()
    return profile


def book(db, appointment_date, start, end, status='confirmed', business_id='biz-1'):
    appointment = Appointment(
        business_id=business_id,
        customer_name='Ana',
        customer_email='ana@example.com',
        pet_name='Toby',
        appointment_date=appointment_date,
        start_time=start,
        end_time=end,
        status=status,
    )
    db.add(appointment)
    db.commit()
    db.refresh(appointment)
    return appointment


@pytest.fixture
def add_appointment(booking_db):
    def _add(appointment_date, start: time, end: time, status='confirmed'):
        return book(booking_db, appointment_date, start, end, status=status)

    return _add
