"""Event ingest endpoint."""

from fastapi import APIRouter, BackgroundTasks, Depends, status

from app.dependencies import NotificationSessionFactory, verify_service_secret
from app.schemas.events import EventAcknowledgement, EventEnvelope
from app.services.notification_service import NotificationService

router = APIRouter()


@router.post(
    "/events",
    response_model=EventAcknowledgement,
    status_code=status.HTTP_200_OK,
    dependencies=[Depends(verify_service_secret)],
    summary="Receive an appointment event",
)
async def receive_event(
    envelope: EventEnvelope,
    session_factory: NotificationSessionFactory,
    background_tasks: BackgroundTasks,
) -> EventAcknowledgement:
    """
    Acknowledge an event and process it after responding.

    Classification and persistence happen in a background task; their
    failures are logged and never reported back to the publisher.
    """
    background_tasks.add_task(NotificationService.handle_event, session_factory, envelope)
    return EventAcknowledgement(message="Event received")
