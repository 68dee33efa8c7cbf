"""Notification service: turns appointment events into recipient notifications."""

from collections.abc import Callable
from typing import Any
from uuid import UUID

import structlog
from sqlalchemy import desc, func, insert, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.models.notifications import notifications
from app.schemas.events import EventEnvelope, EventType
from app.schemas.notifications import NotificationDraft, NotificationRecord, RecipientType

logger = structlog.get_logger(__name__)


def _created_message(data: dict[str, Any]) -> str:
    return (
        f"New appointment request from {data.get('patientName')} "
        f"on {data.get('appointmentDate')} at {data.get('appointmentTime')}"
    )


def _approved_message(data: dict[str, Any]) -> str:
    return f"Your appointment with Dr. {data.get('doctorName')} has been approved!"


def _rejected_message(data: dict[str, Any]) -> str:
    notes = data.get("notes") or ""
    return f"Your appointment with Dr. {data.get('doctorName')} has been rejected. {notes}".rstrip()


def _completed_message(data: dict[str, Any]) -> str:
    return f"Your appointment with Dr. {data.get('doctorName')} has been marked as completed."


def _cancelled_message(data: dict[str, Any]) -> str:
    return f"Appointment with {data.get('patientName')} has been cancelled."


# eventType -> (message builder, recipient type, data key holding the recipient id)
EVENT_RULES: dict[str, tuple[Callable[[dict[str, Any]], str], RecipientType, str]] = {
    EventType.CREATED.value: (_created_message, RecipientType.DOCTOR, "doctorId"),
    EventType.APPROVED.value: (_approved_message, RecipientType.PATIENT, "patientId"),
    EventType.REJECTED.value: (_rejected_message, RecipientType.PATIENT, "patientId"),
    EventType.COMPLETED.value: (_completed_message, RecipientType.PATIENT, "patientId"),
    EventType.CANCELLED.value: (_cancelled_message, RecipientType.DOCTOR, "doctorId"),
}


def classify_event(envelope: EventEnvelope) -> NotificationDraft | None:
    """
    Derive the notification for an event.

    Args:
        envelope: Received event

    Returns:
        Notification draft, or None for unknown event types and events
        without a recipient id
    """
    rule = EVENT_RULES.get(envelope.event_type)
    if rule is None:
        logger.info("unknown_event_type", event_type=envelope.event_type)
        return None

    build_message, recipient_type, recipient_key = rule
    recipient_id = envelope.data.get(recipient_key)
    if recipient_id in (None, ""):
        logger.warning(
            "event_missing_recipient",
            event_type=envelope.event_type,
            recipient_key=recipient_key,
        )
        return None

    return NotificationDraft(
        event_type=envelope.event_type,
        message=build_message(envelope.data),
        recipient_type=recipient_type,
        recipient_id=str(recipient_id),
        payload=envelope.data,
        event_timestamp=envelope.timestamp,
    )


class NotificationService:
    """Service for the notification ledger."""

    @staticmethod
    async def store_notification(
        db: AsyncSession,
        draft: NotificationDraft,
    ) -> NotificationRecord:
        """Persist a classified notification as unread."""
        stmt = (
            insert(notifications)
            .values(
                event_type=draft.event_type,
                message=draft.message,
                recipient_type=draft.recipient_type.value,
                recipient_id=draft.recipient_id,
                payload=draft.payload,
                event_timestamp=draft.event_timestamp,
                read=False,
            )
            .returning(notifications)
        )
        result = await db.execute(stmt)
        row = result.fetchone()
        await db.commit()

        return NotificationRecord.model_validate(dict(row._mapping))

    @staticmethod
    async def handle_event(
        session_factory: async_sessionmaker[AsyncSession],
        envelope: EventEnvelope,
    ) -> NotificationRecord | None:
        """
        Classify and persist an event after it has been acknowledged.

        Runs as a background task, so nothing raised here can reach the
        publisher; failures are logged and the notification is lost.

        Args:
            session_factory: Factory for a session owned by this task
            envelope: Received event

        Returns:
            Stored notification, or None if nothing was stored
        """
        draft = classify_event(envelope)
        if draft is None:
            return None

        try:
            async with session_factory() as db:
                record = await NotificationService.store_notification(db, draft)
        except SQLAlchemyError as e:
            logger.error(
                "notification_store_failed",
                event_type=envelope.event_type,
                recipient_id=draft.recipient_id,
                error=str(e),
            )
            return None

        logger.info(
            "notification_stored",
            notification_id=str(record.id),
            event_type=record.event_type,
            recipient_type=record.recipient_type.value,
            recipient_id=record.recipient_id,
        )
        return record

    @staticmethod
    async def get_recipient_notifications(
        db: AsyncSession,
        recipient_id: str,
        recipient_type: RecipientType,
        limit: int = 50,
        skip: int = 0,
    ) -> list[NotificationRecord]:
        """
        Get notifications addressed to a recipient, newest first.

        Args:
            db: Database session
            recipient_id: Recipient identity
            recipient_type: Recipient role
            limit: Maximum number of notifications
            skip: Number of notifications to skip

        Returns:
            Notification records
        """
        query = (
            select(notifications)
            .where(
                notifications.c.recipient_id == recipient_id,
                notifications.c.recipient_type == recipient_type.value,
            )
            .order_by(desc(notifications.c.created_at))
            .limit(limit)
            .offset(skip)
        )

        result = await db.execute(query)
        return [NotificationRecord.model_validate(dict(row._mapping)) for row in result.fetchall()]

    @staticmethod
    async def mark_notification_as_read(
        db: AsyncSession,
        notification_id: str | UUID,
    ) -> bool:
        """
        Mark a notification as read.

        Marking an already-read notification again succeeds.

        Args:
            db: Database session
            notification_id: Notification ID

        Returns:
            True if the notification exists, False otherwise
        """
        if isinstance(notification_id, str):
            try:
                notification_id = UUID(notification_id)
            except ValueError:
                return False

        result = await db.execute(
            update(notifications).where(notifications.c.id == notification_id).values(read=True)
        )
        await db.commit()
        return result.rowcount > 0

    @staticmethod
    async def get_unread_count(
        db: AsyncSession,
        recipient_id: str,
        recipient_type: RecipientType,
    ) -> int:
        """Count unread notifications addressed to a recipient."""
        query = (
            select(func.count())
            .select_from(notifications)
            .where(
                notifications.c.recipient_id == recipient_id,
                notifications.c.recipient_type == recipient_type.value,
                notifications.c.read.is_(False),
            )
        )
        result = await db.execute(query)
        return result.scalar_one()
