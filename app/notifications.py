# app/notifications.py
"""
Provider notifications.

Notifications are written after the appointment has been committed, so a
failure here is logged and swallowed: the booking already exists.
"""

import logging
from datetime import datetime
from typing import List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, select

from app.models import Notification, User

logger = logging.getLogger(__name__)

NOTIFICATIONS_LIMIT = 20


def format_slot(slot: datetime) -> str:
    # e.g. "Day 10 of March, at 14:00h"
    return f"Day {slot:%d} of {slot:%B}, at {slot.hour}:{slot:%M}h"


def booking_content(client_name: str, slot: datetime) -> str:
    return f"New appointment from {client_name} for {format_slot(slot)}"


def notify(session: Session, provider_id: int, content: str) -> Optional[Notification]:
    """Record a notification for a provider. Returns None if it could not be stored."""
    notification = Notification(user_id=provider_id, content=content)
    session.add(notification)
    try:
        session.commit()
    except SQLAlchemyError as e:
        session.rollback()
        logger.error(f"Failed to notify provider {provider_id}: {e}")
        return None

    session.refresh(notification)
    logger.info(f"Notification {notification.id} recorded for provider {provider_id}")
    return notification


def notify_new_booking(session: Session, provider_id: int, client_id: int, slot: datetime) -> Optional[Notification]:
    """Tell the provider about a new booking. Failures are logged, never raised."""
    try:
        client = session.get(User, client_id)
    except SQLAlchemyError as e:
        session.rollback()
        logger.error(f"Failed to load client {client_id} for the booking notification: {e}")
        return None

    if client is None:
        logger.error(f"Client {client_id} not found, provider {provider_id} not notified")
        return None

    return notify(session, provider_id, booking_content(client.name, slot))


def list_notifications(session: Session, provider_id: int) -> List[Notification]:
    stmt = (
        select(Notification)
        .where(Notification.user_id == provider_id)
        .order_by(Notification.created_at.desc(), Notification.id.desc())
        .limit(NOTIFICATIONS_LIMIT)
    )
    return session.exec(stmt).all()


def mark_read(session: Session, notification_id: int, provider_id: int) -> Optional[Notification]:
    notification = session.get(Notification, notification_id)
    if notification is None or notification.user_id != provider_id:
        return None

    notification.read = True
    session.add(notification)
    session.commit()
    session.refresh(notification)
    return notification
