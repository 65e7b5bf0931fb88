# app/schemas.py

from pydantic import BaseModel, Field
from datetime import datetime
from typing import Optional


class Token(BaseModel):
    access_token: str
    token_type: str = "bearer"


class UserPublic(BaseModel):
    id: int
    name: str
    email: str
    provider: bool


class UserCreate(BaseModel):
    name: str = Field(min_length=1, max_length=120)
    email: str
    password: str = Field(min_length=8, max_length=72)
    provider: bool = False


class ProviderPublic(BaseModel):
    id: int
    name: str


class AppointmentCreate(BaseModel):
    provider_id: int
    date: datetime


class AppointmentPublic(BaseModel):
    id: int
    date: datetime
    user_id: int
    provider: ProviderPublic
    canceled_at: Optional[datetime] = None
    past: bool
    cancelable: bool


class NotificationPublic(BaseModel):
    id: int
    content: str
    read: bool
    created_at: datetime
