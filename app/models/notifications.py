"""Notification ledger model for appointment status-change events."""

from datetime import UTC, datetime
from uuid import uuid4

from sqlalchemy import (
    JSON,
    Boolean,
    CheckConstraint,
    Column,
    DateTime,
    Index,
    MetaData,
    String,
    Table,
    Text,
    Uuid,
    false,
)


def utcnow() -> datetime:
    """Current time in UTC."""
    return datetime.now(UTC)


# Metadata for the notification service database
metadata = MetaData()

notifications = Table(
    "notifications",
    metadata,
    Column("id", Uuid(as_uuid=True), primary_key=True, default=uuid4),
    Column("event_type", String(50), nullable=False),
    Column("message", Text, nullable=False),
    Column("recipient_type", String(20), nullable=False),
    Column("recipient_id", Text, nullable=False),
    # Event data as received
    Column("payload", JSON, nullable=False),
    Column("event_timestamp", Text, nullable=True),
    Column("read", Boolean, nullable=False, default=False, server_default=false()),
    Column("created_at", DateTime(timezone=True), nullable=False, default=utcnow),
    CheckConstraint(
        "recipient_type IN ('patient', 'doctor')",
        name="notifications_recipient_type_check",
    ),
    Index("idx_notifications_recipient", "recipient_id", "recipient_type"),
    Index("idx_notifications_recipient_read", "recipient_id", "recipient_type", "read"),
    Index("idx_notifications_created_at", "created_at"),
)
