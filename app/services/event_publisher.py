"""Delivery of appointment events to the notification service."""

from typing import Any

import httpx
import structlog

from app.schemas.events import EventEnvelope, EventType

logger = structlog.get_logger(__name__)


class EventPublisher:
    """
    Fire-and-forget notifier for committed appointment transitions.

    Delivery is at-most-once and best effort: a single POST with a bounded
    timeout, no retry. A failed delivery is logged and dropped; the
    appointment change that triggered it stays committed. Callers that need
    every notification to arrive cannot rely on this publisher.
    """

    def __init__(
        self,
        events_url: str,
        timeout: float = 5.0,
        shared_secret: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        """Initialize publisher with the ingest endpoint and delivery timeout."""
        self.events_url = events_url
        self.timeout = timeout
        self.shared_secret = shared_secret
        self.transport = transport

    @staticmethod
    def build_envelope(event_type: EventType | str, data: dict[str, Any]) -> EventEnvelope:
        """Wrap event data in an envelope stamped with the current time."""
        return EventEnvelope(event_type=EventType(event_type).value, data=data)

    async def publish(self, envelope: EventEnvelope) -> bool:
        """
        Deliver an envelope to the notification service.

        Args:
            envelope: Event to deliver

        Returns:
            True if the notification service acknowledged the event
        """
        headers = {}
        if self.shared_secret:
            headers["X-Service-Secret"] = self.shared_secret

        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                response = await client.post(
                    self.events_url,
                    json=envelope.model_dump(by_alias=True),
                    headers=headers,
                )
                response.raise_for_status()
        except httpx.HTTPError as e:
            logger.error(
                "event_delivery_failed",
                event_type=envelope.event_type,
                appointment_id=envelope.data.get("appointmentId"),
                error=str(e),
            )
            return False

        logger.info(
            "event_emitted",
            event_type=envelope.event_type,
            appointment_id=envelope.data.get("appointmentId"),
        )
        return True
