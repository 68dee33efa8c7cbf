"""Event envelope exchanged between the appointment and notification services."""

from datetime import UTC, datetime
from enum import Enum
from typing import Any

from pydantic import Field

from app.schemas.appointments import CamelModel


class EventType(str, Enum):
    """Appointment event tags."""

    CREATED = "appointment.created"
    APPROVED = "appointment.approved"
    REJECTED = "appointment.rejected"
    COMPLETED = "appointment.completed"
    CANCELLED = "appointment.cancelled"


def utc_timestamp() -> str:
    """ISO-8601 timestamp in UTC."""
    return datetime.now(UTC).isoformat()


class EventEnvelope(CamelModel):
    """Schema for an appointment event envelope."""

    event_type: str = Field(..., min_length=1)
    data: dict[str, Any]
    timestamp: str | None = Field(default_factory=utc_timestamp)


class EventAcknowledgement(CamelModel):
    """Schema for the ingest acknowledgement."""

    message: str
