# app/scheduling.py
"""
Appointment lifecycle: booking, cancellation and listing.

An appointment is created directly as scheduled and can be cancelled once.
Slot exclusivity among active appointments is enforced by the partial unique
index on (provider_id, date); the availability query below only rejects the
common case early.
"""

import logging
from datetime import datetime
from typing import List, Optional

import sqlalchemy as sa
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select

from app.config import settings
from app.core import is_before, start_of_hour, sub_hours, to_utc
from app.errors import (
    CancellationWindowExpired,
    Forbidden,
    InvalidProvider,
    NotFound,
    PastDateNotAllowed,
    SelfBookingNotAllowed,
    SlotUnavailable,
    ValidationFailed,
)
from app.jobs import emit_cancellation_job
from app.models import Appointment, User
from app.notifications import notify_new_booking

logger = logging.getLogger(__name__)


def find_provider(session: Session, provider_id: int) -> Optional[User]:
    return session.exec(
        select(User)
        .where(User.id == provider_id)
        .where(User.provider == True)  # noqa: E712
    ).first()


def is_slot_taken(session: Session, provider_id: int, slot: datetime) -> bool:
    existing = session.exec(
        select(Appointment.id)
        .where(Appointment.provider_id == provider_id)
        .where(Appointment.canceled_at == None)  # noqa: E711
        .where(Appointment.date == slot)
    ).first()
    return existing is not None


def is_past(appointment: Appointment, now: datetime) -> bool:
    return is_before(appointment.date, now)


def is_cancelable(appointment: Appointment, now: datetime) -> bool:
    window_start = sub_hours(appointment.date, settings.CANCELLATION_WINDOW_HOURS)
    return appointment.canceled_at is None and is_before(now, window_start)


def appointment_public(appointment: Appointment, provider: User, now: datetime) -> dict:
    return {
        "id": appointment.id,
        "date": to_utc(appointment.date),
        "user_id": appointment.user_id,
        "provider": {"id": provider.id, "name": provider.name},
        "canceled_at": to_utc(appointment.canceled_at) if appointment.canceled_at else None,
        "past": is_past(appointment, now),
        "cancelable": is_cancelable(appointment, now),
    }


def create_appointment(
    session: Session,
    client_id: int,
    provider_id: int,
    raw_date: datetime,
    now: datetime,
) -> Appointment:
    now = to_utc(now)

    # 1) Only providers can be booked
    provider = find_provider(session, provider_id)
    if provider is None:
        raise InvalidProvider()

    # 2) A provider cannot book itself
    if provider_id == client_id:
        raise SelfBookingNotAllowed()

    # 3) Round down to the slot and reject past slots
    slot = start_of_hour(raw_date)
    if is_before(slot, now):
        raise PastDateNotAllowed()

    # 4) Reject slots that already hold an active appointment
    if is_slot_taken(session, provider_id, slot):
        raise SlotUnavailable()

    # 5) Create; a concurrent booking of the same slot fails on the unique index
    appointment = Appointment(
        user_id=client_id,
        provider_id=provider_id,
        date=slot,
    )
    session.add(appointment)
    try:
        session.commit()
    except IntegrityError:
        session.rollback()
        logger.info(f"Slot {slot.isoformat()} of provider {provider_id} was taken concurrently")
        raise SlotUnavailable()

    session.refresh(appointment)
    logger.info(
        f"Appointment {appointment.id} booked: client {client_id}, "
        f"provider {provider_id}, slot {slot.isoformat()}"
    )

    # 6) Notify the provider; the booking stands even if this fails
    notify_new_booking(session, provider_id, client_id, slot)

    return appointment


def cancel_appointment(
    session: Session,
    appointment_id: int,
    client_id: int,
    now: datetime,
) -> Appointment:
    now = to_utc(now)

    # 1) Only active appointments can be cancelled
    appointment = session.get(Appointment, appointment_id)
    if appointment is None or appointment.canceled_at is not None:
        raise NotFound()

    # 2) Only the client who booked may cancel
    if appointment.user_id != client_id:
        raise Forbidden()

    # 3) Cancellation window closes N hours before the slot (boundary included)
    window_hours = settings.CANCELLATION_WINDOW_HOURS
    if not is_before(now, sub_hours(appointment.date, window_hours)):
        raise CancellationWindowExpired(
            f"You can only cancel appointments {window_hours} hours in advance"
        )

    # 4) Conditional update so that two concurrent cancels cannot both win
    result = session.connection().execute(
        sa.update(Appointment)
        .where(Appointment.id == appointment_id)
        .where(Appointment.canceled_at == None)  # noqa: E711
        .values(canceled_at=now)
    )
    if result.rowcount != 1:
        session.rollback()
        raise NotFound()

    # 5) Stage the cancellation mail in the same transaction
    session.refresh(appointment)
    emit_cancellation_job(session, appointment)
    session.commit()
    session.refresh(appointment)

    logger.info(f"Appointment {appointment.id} cancelled by client {client_id}")
    return appointment


def list_appointments(session: Session, client_id: int, page: int, now: datetime) -> List[dict]:
    if page < 1:
        raise ValidationFailed("page must be 1 or greater")

    page_size = settings.PAGE_SIZE
    rows = session.exec(
        select(Appointment, User)
        .join(User, User.id == Appointment.provider_id)
        .where(Appointment.user_id == client_id)
        .where(Appointment.canceled_at == None)  # noqa: E711
        .order_by(Appointment.date, Appointment.id)
        .limit(page_size)
        .offset((page - 1) * page_size)
    ).all()

    return [appointment_public(appointment, provider, now) for appointment, provider in rows]
