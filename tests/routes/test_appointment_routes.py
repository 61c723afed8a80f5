from datetime import date, datetime, time

import pytest
from fastapi import HTTPException
from pydantic import ValidationError

from groombook.models.appointment import Appointment
from groombook.models.appointment_settings import AppointmentSettings
from groombook.routes.appointment_routes import (
    CreateAppointmentRequest,
    UpdateAppointmentStatusRequest,
    cancel_appointment,
    create_appointment,
    update_appointment_status,
)
from groombook.routes.availability_routes import ValidateSlotRequest, validate_slot
from groombook.scheduling.availability import REASON_FULL, REASON_INVALID_SLOT, REASON_TOO_SOON
from groombook.scheduling.schemas import AppointmentStatus

MONDAY = date(2026, 1, 5)


def booking_request(**overrides) -> CreateAppointmentRequest:
    values = {
        'business_id': 'biz-1',
        'customer_name': 'Ana Ruiz',
        'customer_email': ' ANA@EXAMPLE.COM ',
        'pet_name': 'Toby',
        'service_name': 'Full groom',
        'appointment_date': MONDAY,
        'start_time': time(10, 0),
        'service_duration': 60,
    }
    values.update(overrides)
    return CreateAppointmentRequest(**values)


def test_create_appointment_request_normalizes_fields() -> None:
    request = booking_request(notes='  Nervous with dryers  ')

    assert request.customer_email == 'ana@example.com'
    assert request.notes == 'Nervous with dryers'


@pytest.mark.parametrize(
    'overrides',
    [
        {'customer_email': 'not-an-email'},
        {'pet_name': '   '},
        {'service_duration': 0},
        {'notes': 'x' * 601},
    ],
)
def test_create_appointment_request_rejects_invalid_fields(overrides: dict) -> None:
    with pytest.raises(ValidationError):
        booking_request(**overrides)


def test_create_appointment_books_pending_slot(booking_db, business) -> None:
    appointment = create_appointment(booking_request(), db=booking_db)

    assert appointment.status == 'pending'
    assert appointment.start_time == time(10, 0)
    assert appointment.end_time == time(11, 0)
    assert appointment.customer_email == 'ana@example.com'


def test_create_appointment_stores_buffer_in_end_time(booking_db, business) -> None:
    settings = booking_db.query(AppointmentSettings).first()
    settings.buffer_time_minutes = 15
    booking_db.commit()

    appointment = create_appointment(booking_request(), db=booking_db)

    assert appointment.end_time == time(11, 15)


def test_create_appointment_rejects_full_slot(booking_db, business) -> None:
    create_appointment(booking_request(), db=booking_db)

    with pytest.raises(HTTPException) as exception_info:
        create_appointment(booking_request(start_time=time(10, 30), customer_email='leo@example.com'), db=booking_db)

    assert exception_info.value.status_code == 409
    assert exception_info.value.detail == REASON_FULL
    assert booking_db.query(Appointment).count() == 1


def test_create_appointment_respects_capacity(booking_db, business) -> None:
    settings = booking_db.query(AppointmentSettings).first()
    settings.max_appointments_per_slot = 2
    booking_db.commit()

    create_appointment(booking_request(), db=booking_db)
    create_appointment(booking_request(customer_email='leo@example.com'), db=booking_db)

    with pytest.raises(HTTPException) as exception_info:
        create_appointment(booking_request(customer_email='mia@example.com'), db=booking_db)

    assert exception_info.value.detail == REASON_FULL


@pytest.mark.parametrize(
    ('overrides', 'detail'),
    [
        ({'start_time': time(10, 15)}, REASON_INVALID_SLOT),
        ({'appointment_date': date(2026, 1, 11)}, REASON_INVALID_SLOT),
        ({'appointment_date': date(2025, 12, 29)}, REASON_TOO_SOON),
    ],
)
def test_create_appointment_rejects_unbookable_slots(booking_db, business, overrides: dict, detail: str) -> None:
    with pytest.raises(HTTPException) as exception_info:
        create_appointment(booking_request(**overrides), db=booking_db)

    assert exception_info.value.status_code == 409
    assert exception_info.value.detail == detail


def test_cancel_appointment_reopens_slot(booking_db, business) -> None:
    appointment = create_appointment(booking_request(), db=booking_db)

    cancelled = cancel_appointment(appointment_id=appointment.id, customer_email='ana@example.com', db=booking_db)

    assert cancelled.status == 'cancelled'
    result = validate_slot(
        ValidateSlotRequest(business_id='biz-1', appointment_date='2026-01-05', start_time='10:00', service_duration=60),
        db=booking_db,
    )
    assert result.available is True


def test_cancel_appointment_enforces_cancellation_policy(booking_db, business, frozen_clock) -> None:
    appointment = create_appointment(booking_request(), db=booking_db)
    frozen_clock['now'] = datetime(2026, 1, 4, 18, 0)

    with pytest.raises(HTTPException) as exception_info:
        cancel_appointment(appointment_id=appointment.id, customer_email='ana@example.com', db=booking_db)

    assert exception_info.value.status_code == 400
    assert exception_info.value.detail == 'Appointments can only be cancelled at least 24 hours in advance.'


def test_cancel_appointment_rejects_other_customer(booking_db, business) -> None:
    appointment = create_appointment(booking_request(), db=booking_db)

    with pytest.raises(HTTPException) as exception_info:
        cancel_appointment(appointment_id=appointment.id, customer_email='leo@example.com', db=booking_db)

    assert exception_info.value.status_code == 403


def test_cancel_appointment_rejects_repeat_cancellation(booking_db, business) -> None:
    appointment = create_appointment(booking_request(), db=booking_db)
    cancel_appointment(appointment_id=appointment.id, customer_email='ana@example.com', db=booking_db)

    with pytest.raises(HTTPException) as exception_info:
        cancel_appointment(appointment_id=appointment.id, customer_email='ana@example.com', db=booking_db)

    assert exception_info.value.status_code == 409


def test_cancel_appointment_returns_not_found(booking_db, business) -> None:
    with pytest.raises(HTTPException) as exception_info:
        cancel_appointment(appointment_id=999, customer_email='ana@example.com', db=booking_db)

    assert exception_info.value.status_code == 404
    assert exception_info.value.detail == 'Appointment not found.'


def test_cancel_appointment_requires_email(booking_db, business) -> None:
    with pytest.raises(HTTPException) as exception_info:
        cancel_appointment(appointment_id=1, customer_email='   ', db=booking_db)

    assert exception_info.value.status_code == 400


def validate_monday_ten(db):
    return validate_slot(
        ValidateSlotRequest(business_id='biz-1', appointment_date='2026-01-05', start_time='10:00', service_duration=60),
        db=db,
    )


@pytest.mark.parametrize('new_status', ['confirmed', 'in_progress', 'completed'])
def test_update_status_moves_booking_and_keeps_slot_taken(booking_db, business, new_status: str) -> None:
    appointment = create_appointment(booking_request(), db=booking_db)

    updated = update_appointment_status(
        appointment_id=appointment.id,
        data=UpdateAppointmentStatusRequest(status=new_status),
        db=booking_db,
    )

    assert updated.status == new_status
    assert booking_db.query(Appointment).filter(Appointment.id == appointment.id).one().status == new_status
    assert validate_monday_ten(booking_db).available is False


def test_update_status_to_cancelled_frees_slot(booking_db, business) -> None:
    appointment = create_appointment(booking_request(), db=booking_db)
    update_appointment_status(
        appointment_id=appointment.id,
        data=UpdateAppointmentStatusRequest(status=AppointmentStatus.CONFIRMED),
        db=booking_db,
    )
    assert validate_monday_ten(booking_db).available is False

    cancelled = update_appointment_status(
        appointment_id=appointment.id,
        data=UpdateAppointmentStatusRequest(status=AppointmentStatus.CANCELLED),
        db=booking_db,
    )

    assert cancelled.status == 'cancelled'
    assert validate_monday_ten(booking_db).available is True


def test_update_status_does_not_reopen_cancelled_booking(booking_db, business) -> None:
    appointment = create_appointment(booking_request(), db=booking_db)
    cancel_appointment(appointment_id=appointment.id, customer_email='ana@example.com', db=booking_db)

    with pytest.raises(HTTPException) as exception_info:
        update_appointment_status(
            appointment_id=appointment.id,
            data=UpdateAppointmentStatusRequest(status=AppointmentStatus.CONFIRMED),
            db=booking_db,
        )

    assert exception_info.value.status_code == 409
    assert booking_db.query(Appointment).one().status == 'cancelled'


@pytest.mark.parametrize('bad_status', ['done', 'CONFIRMED', '', 'no_show'])
def test_update_status_request_rejects_unknown_status(bad_status: str) -> None:
    with pytest.raises(ValidationError):
        UpdateAppointmentStatusRequest(status=bad_status)


def test_update_status_returns_not_found(booking_db, business) -> None:
    with pytest.raises(HTTPException) as exception_info:
        update_appointment_status(
            appointment_id=999,
            data=UpdateAppointmentStatusRequest(status=AppointmentStatus.CONFIRMED),
            db=booking_db,
        )

    assert exception_info.value.status_code == 404
    assert exception_info.value.detail == 'Appointment not found.'
