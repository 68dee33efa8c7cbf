"""Appointment endpoints."""

from fastapi import APIRouter, BackgroundTasks, status

from app.dependencies import CurrentCaller, DatabaseSession, Identity, Publisher
from app.schemas.appointments import (
    AppointmentCreate,
    AppointmentListResponse,
    AppointmentResponse,
    AppointmentStatusUpdate,
)
from app.services.appointment_service import AppointmentService

router = APIRouter()


@router.post(
    "",
    response_model=AppointmentResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Request an appointment",
)
async def create_appointment(
    data: AppointmentCreate,
    caller: CurrentCaller,
    db: DatabaseSession,
    publisher: Publisher,
    identity: Identity,
    background_tasks: BackgroundTasks,
) -> AppointmentResponse:
    """
    Create a pending appointment for the authenticated patient.

    Args:
        data: Doctor, date, time and reason
        caller: Authenticated patient
        db: Database session
        publisher: Event publisher
        identity: Identity provider client
        background_tasks: Post-response tasks

    Returns:
        Created appointment
    """
    service = AppointmentService(db, publisher, background_tasks, identity)
    return await service.create_appointment(caller, data)


@router.get(
    "",
    response_model=AppointmentListResponse,
    status_code=status.HTTP_200_OK,
    summary="List the caller's appointments",
)
async def list_appointments(
    caller: CurrentCaller,
    db: DatabaseSession,
    publisher: Publisher,
    background_tasks: BackgroundTasks,
) -> AppointmentListResponse:
    """List appointments where the caller is the patient or the doctor, newest first."""
    service = AppointmentService(db, publisher, background_tasks)
    return await service.list_appointments(caller)


@router.get(
    "/{appointment_id}",
    response_model=AppointmentResponse,
    status_code=status.HTTP_200_OK,
    summary="Get appointment by ID",
)
async def get_appointment(
    appointment_id: str,
    caller: CurrentCaller,
    db: DatabaseSession,
    publisher: Publisher,
    background_tasks: BackgroundTasks,
) -> AppointmentResponse:
    """
    Get a specific appointment by ID.

    Raises:
        ValidationException: If the id is malformed
        NotFoundException: If appointment not found
        ForbiddenException: If the caller is not a party to the appointment
    """
    service = AppointmentService(db, publisher, background_tasks)
    return await service.get_appointment(caller, appointment_id)


@router.patch(
    "/{appointment_id}/status",
    response_model=AppointmentResponse,
    status_code=status.HTTP_200_OK,
    summary="Approve, reject or complete an appointment",
)
async def update_appointment_status(
    appointment_id: str,
    data: AppointmentStatusUpdate,
    caller: CurrentCaller,
    db: DatabaseSession,
    publisher: Publisher,
    background_tasks: BackgroundTasks,
) -> AppointmentResponse:
    """
    Record the doctor's decision on an appointment.

    Args:
        appointment_id: Appointment ID
        data: Target status and optional notes
        caller: Authenticated doctor
        db: Database session
        publisher: Event publisher
        background_tasks: Post-response tasks

    Returns:
        Updated appointment
    """
    service = AppointmentService(db, publisher, background_tasks)
    return await service.update_appointment_status(caller, appointment_id, data)


@router.patch(
    "/{appointment_id}/cancel",
    response_model=AppointmentResponse,
    status_code=status.HTTP_200_OK,
    summary="Cancel a pending appointment",
)
async def cancel_appointment(
    appointment_id: str,
    caller: CurrentCaller,
    db: DatabaseSession,
    publisher: Publisher,
    background_tasks: BackgroundTasks,
) -> AppointmentResponse:
    """Cancel one of the caller's pending appointments."""
    service = AppointmentService(db, publisher, background_tasks)
    return await service.cancel_appointment(caller, appointment_id)
