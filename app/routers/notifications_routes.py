# app/routers/notifications_routes.py

from typing import List

from fastapi import APIRouter, Depends, HTTPException
from sqlmodel import Session

from app.db import get_session
from app.schemas import NotificationPublic
from app.auth import get_current_user
from app.deps import require_provider
from app import notifications

router = APIRouter(
    prefix="/notifications",
    tags=["notifications"],
)


@router.get("", response_model=List[NotificationPublic])
def list_my_notifications(
    session: Session = Depends(get_session),
    current_user: dict = Depends(get_current_user),
):
    require_provider(current_user)
    return notifications.list_notifications(session, current_user["id"])


@router.put("/{notification_id}", response_model=NotificationPublic)
def read_notification(
    notification_id: int,
    session: Session = Depends(get_session),
    current_user: dict = Depends(get_current_user),
):
    require_provider(current_user)
    notification = notifications.mark_read(session, notification_id, current_user["id"])
    if notification is None:
        raise HTTPException(status_code=404, detail="Notification not found")
    return notification
