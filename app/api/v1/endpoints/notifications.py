"""Notification ledger endpoints."""

from fastapi import APIRouter, Depends, Query, status

from app.core.exceptions import NotFoundException
from app.dependencies import NotificationDatabaseSession, Retention, verify_service_secret
from app.schemas.notifications import (
    CleanupResponse,
    MessageResponse,
    NotificationListResponse,
    RecipientType,
    UnreadCountResponse,
)
from app.services.notification_service import NotificationService

router = APIRouter(prefix="/notifications", tags=["Notifications"])


@router.delete(
    "/cleanup",
    response_model=CleanupResponse,
    status_code=status.HTTP_200_OK,
    dependencies=[Depends(verify_service_secret)],
    summary="Delete old read notifications",
)
async def cleanup_notifications(
    db: NotificationDatabaseSession,
    retention: Retention,
) -> CleanupResponse:
    """
    Run the retention sweep.

    Deletes read notifications older than the retention horizon; unread
    notifications are kept regardless of age.

    Args:
        db: Database session
        retention: Retention sweeper

    Returns:
        Number of deleted notifications
    """
    deleted_count = await retention.sweep(db)
    return CleanupResponse(message="Cleanup completed", deleted_count=deleted_count)


@router.patch(
    "/{notification_id}/read",
    response_model=MessageResponse,
    status_code=status.HTTP_200_OK,
    summary="Mark notification as read",
)
async def mark_notification_read(
    notification_id: str,
    db: NotificationDatabaseSession,
) -> MessageResponse:
    """
    Mark a notification as read.

    Raises:
        NotFoundException: If the notification does not exist
    """
    updated = await NotificationService.mark_notification_as_read(db, notification_id)
    if not updated:
        raise NotFoundException("Notification not found")
    return MessageResponse(message="Notification marked as read")


@router.get(
    "/{recipient_id}/{recipient_type}/unread-count",
    response_model=UnreadCountResponse,
    status_code=status.HTTP_200_OK,
    summary="Count unread notifications",
)
async def get_unread_count(
    recipient_id: str,
    recipient_type: RecipientType,
    db: NotificationDatabaseSession,
) -> UnreadCountResponse:
    """Count unread notifications addressed to a recipient."""
    count = await NotificationService.get_unread_count(db, recipient_id, recipient_type)
    return UnreadCountResponse(unread_count=count)


@router.get(
    "/{recipient_id}/{recipient_type}",
    response_model=NotificationListResponse,
    status_code=status.HTTP_200_OK,
    summary="List a recipient's notifications",
)
async def list_notifications(
    recipient_id: str,
    recipient_type: RecipientType,
    db: NotificationDatabaseSession,
    limit: int = Query(50, ge=1, le=200, description="Maximum number of notifications"),
    skip: int = Query(0, ge=0, description="Number of notifications to skip"),
) -> NotificationListResponse:
    """
    List notifications addressed to a recipient, newest first.

    Args:
        recipient_id: Recipient identity
        recipient_type: patient or doctor
        db: Database session
        limit: Page size
        skip: Offset

    Returns:
        Notifications
    """
    records = await NotificationService.get_recipient_notifications(
        db=db,
        recipient_id=recipient_id,
        recipient_type=recipient_type,
        limit=limit,
        skip=skip,
    )
    return NotificationListResponse(notifications=records)
