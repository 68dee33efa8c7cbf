"""Notification ledger schemas."""

from datetime import datetime
from enum import Enum
from typing import Any
from uuid import UUID

from pydantic import ConfigDict

from app.schemas.appointments import CamelModel


class RecipientType(str, Enum):
    """Role a notification is addressed to."""

    PATIENT = "patient"
    DOCTOR = "doctor"


class NotificationDraft(CamelModel):
    """Classified event, ready to be persisted."""

    event_type: str
    message: str
    recipient_type: RecipientType
    recipient_id: str
    payload: dict[str, Any]
    event_timestamp: str | None = None


class NotificationRecord(CamelModel):
    """Schema for a stored notification."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    event_type: str
    message: str
    recipient_type: RecipientType
    recipient_id: str
    payload: dict[str, Any]
    event_timestamp: str | None = None
    read: bool
    created_at: datetime


class NotificationListResponse(CamelModel):
    """Schema for a recipient's notifications, newest first."""

    notifications: list[NotificationRecord]


class UnreadCountResponse(CamelModel):
    """Schema for the unread notification count."""

    unread_count: int


class MessageResponse(CamelModel):
    """Schema for simple acknowledgement responses."""

    message: str


class CleanupResponse(CamelModel):
    """Schema for the retention sweep result."""

    message: str
    deleted_count: int
