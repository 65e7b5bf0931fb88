from datetime import datetime, timedelta, timezone

import pytest
from sqlmodel import select

from app import scheduling
from app.errors import CancellationWindowExpired, Forbidden, NotFound
from app.jobs import CANCELLATION_MAIL
from app.models import Appointment, OutboxEntry

UTC = timezone.utc
SLOT = datetime(2025, 3, 10, 14, tzinfo=UTC)


@pytest.fixture
def appointment(session, clock, provider, customer):
    return scheduling.create_appointment(session, customer.id, provider.id, SLOT, clock())


def test_cancel_sets_canceled_at_and_stages_mail(session, clock, appointment, provider, customer):
    cancelled = scheduling.cancel_appointment(session, appointment.id, customer.id, clock())

    assert cancelled.canceled_at == clock()

    entries = session.exec(select(OutboxEntry)).all()
    assert len(entries) == 1
    entry = entries[0]
    assert entry.job_kind == CANCELLATION_MAIL
    assert entry.dispatched_at is None
    assert entry.payload == {
        "id": appointment.id,
        "date": "2025-03-10T14:00:00+00:00",
        "canceled_at": clock().isoformat(),
        "provider": {"id": provider.id, "name": "Paula", "email": "paula@example.com"},
        "user": {"id": customer.id, "name": "Carlos"},
    }


def test_missing_appointment_is_not_found(session, clock, customer):
    with pytest.raises(NotFound):
        scheduling.cancel_appointment(session, 12345, customer.id, clock())


def test_only_the_booking_client_can_cancel(session, clock, appointment, other_customer):
    with pytest.raises(Forbidden):
        scheduling.cancel_appointment(session, appointment.id, other_customer.id, clock())


def test_provider_cannot_cancel(session, clock, appointment, provider):
    with pytest.raises(Forbidden):
        scheduling.cancel_appointment(session, appointment.id, provider.id, clock())


def test_cancel_inside_window_is_rejected(session, clock, appointment, customer):
    clock.now = SLOT - timedelta(hours=1, minutes=30)
    with pytest.raises(CancellationWindowExpired):
        scheduling.cancel_appointment(session, appointment.id, customer.id, clock())

    assert session.get(Appointment, appointment.id).canceled_at is None
    assert session.exec(select(OutboxEntry)).all() == []


def test_cancel_exactly_at_window_boundary_is_rejected(session, clock, appointment, customer):
    clock.now = SLOT - timedelta(hours=2)
    with pytest.raises(CancellationWindowExpired):
        scheduling.cancel_appointment(session, appointment.id, customer.id, clock())


def test_cancel_just_before_window_boundary_succeeds(session, clock, appointment, customer):
    clock.now = SLOT - timedelta(hours=2, microseconds=1)
    cancelled = scheduling.cancel_appointment(session, appointment.id, customer.id, clock())

    assert cancelled.canceled_at == clock.now


def test_second_cancel_is_rejected_and_keeps_canceled_at(session, clock, appointment, customer):
    first = scheduling.cancel_appointment(session, appointment.id, customer.id, clock())
    canceled_at = first.canceled_at

    clock.now = clock.now + timedelta(minutes=5)
    with pytest.raises(NotFound):
        scheduling.cancel_appointment(session, appointment.id, customer.id, clock())

    assert session.get(Appointment, appointment.id).canceled_at == canceled_at
    assert len(session.exec(select(OutboxEntry)).all()) == 1


def test_cancel_tomorrow_morning_scenario(session, clock, provider, customer, other_customer):
    tomorrow_ten = datetime(2025, 3, 10, 10, tzinfo=UTC)
    mine = scheduling.create_appointment(session, customer.id, provider.id, tomorrow_ten, clock())
    theirs = scheduling.create_appointment(
        session, other_customer.id, provider.id, tomorrow_ten + timedelta(hours=1), clock()
    )

    clock.now = datetime(2025, 3, 10, 7, 30, tzinfo=UTC)
    cancelled = scheduling.cancel_appointment(session, mine.id, customer.id, clock())
    assert cancelled.canceled_at == clock.now
    assert len(session.exec(select(OutboxEntry)).all()) == 1

    clock.now = datetime(2025, 3, 10, 9, 30, tzinfo=UTC)
    with pytest.raises(CancellationWindowExpired):
        scheduling.cancel_appointment(session, theirs.id, other_customer.id, clock())
