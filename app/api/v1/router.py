"""API v1 router configuration."""

from fastapi import APIRouter

from app import database
from app.api.v1.endpoints import appointments, events, notifications
from app.api.v1.endpoints.health import build_health_router

# Appointment service
appointment_api_router = APIRouter()
appointment_api_router.include_router(
    build_health_router("appointments", lambda: database.engine),
    tags=["Health"],
)
appointment_api_router.include_router(
    appointments.router,
    prefix="/appointments",
    tags=["Appointments"],
)

# Notification service
notification_api_router = APIRouter()
notification_api_router.include_router(
    build_health_router("notifications", lambda: database.notification_engine),
    tags=["Health"],
)
notification_api_router.include_router(events.router, tags=["Events"])
notification_api_router.include_router(notifications.router, tags=["Notifications"])
