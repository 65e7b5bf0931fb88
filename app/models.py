# app/models.py

from typing import Optional
from datetime import datetime

import sqlalchemy as sa
from sqlalchemy.types import JSON
from sqlmodel import SQLModel, Field, Column

from app.core import utcnow


class User(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    name: str
    email: str = Field(index=True, unique=True)
    password_hash: str
    provider: bool = False


class Appointment(SQLModel, table=True):
    # one active booking per provider and slot; cancelled rows free the slot
    __table_args__ = (
        sa.Index(
            "uq_appointment_provider_active_slot",
            "provider_id",
            "date",
            unique=True,
            sqlite_where=sa.text("canceled_at IS NULL"),
            postgresql_where=sa.text("canceled_at IS NULL"),
        ),
    )

    id: Optional[int] = Field(default=None, primary_key=True)

    date: datetime = Field(index=True)
    user_id: int = Field(foreign_key="user.id", index=True)
    provider_id: int = Field(foreign_key="user.id")
    canceled_at: Optional[datetime] = None
    created_at: datetime = Field(default_factory=utcnow)


class Notification(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)

    user_id: int = Field(foreign_key="user.id", index=True)  # recipient provider
    content: str
    read: bool = False
    created_at: datetime = Field(default_factory=utcnow)


class OutboxEntry(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)

    job_kind: str
    payload: dict = Field(sa_column=Column(JSON))
    created_at: datetime = Field(default_factory=utcnow)
    dispatched_at: Optional[datetime] = Field(default=None, index=True)
    attempts: int = 0
    last_error: Optional[str] = None
