"""Appointment service for business logic."""

from typing import Any
from uuid import UUID

import structlog
from fastapi import BackgroundTasks
from sqlalchemy import and_, insert, select, update
from sqlalchemy.engine import Row
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import (
    ForbiddenException,
    InvalidTransitionException,
    NotFoundException,
    UpstreamUnavailableException,
    ValidationException,
)
from app.core.permissions import CAPABILITY_DENIED_MESSAGES, Caller, Capability, UserRole
from app.models.appointments import appointments, utcnow
from app.schemas.appointments import (
    AppointmentCreate,
    AppointmentListResponse,
    AppointmentResponse,
    AppointmentStatus,
    AppointmentStatusUpdate,
)
from app.schemas.events import EventType
from app.services.appointment_lifecycle import (
    DOCTOR_DECISIONS,
    event_type_for,
    is_terminal,
    source_statuses,
)
from app.services.event_publisher import EventPublisher
from app.services.identity_client import IdentityClient

logger = structlog.get_logger(__name__)

PATIENT_NAME_PLACEHOLDER = "Patient"


class AppointmentService:
    """
    Service for managing appointments.

    Every mutation is a single conditional ``UPDATE ... RETURNING`` that
    matches on id, ownership and expected status together, so two concurrent
    requests against the same record cannot both succeed. Events are handed
    to the publisher as background tasks and only after the commit.
    """

    def __init__(
        self,
        db: AsyncSession,
        publisher: EventPublisher,
        background_tasks: BackgroundTasks,
        identity: IdentityClient | None = None,
    ):
        """Initialize service with database session and collaborators."""
        self.db = db
        self.publisher = publisher
        self.background_tasks = background_tasks
        self.identity = identity

    @staticmethod
    def _require(caller: Caller, capability: Capability) -> None:
        """Reject callers whose role lacks the capability."""
        if not caller.can(capability):
            raise ForbiddenException(CAPABILITY_DENIED_MESSAGES[capability])

    @staticmethod
    def _parse_id(appointment_id: str | UUID) -> UUID:
        """Parse an appointment id taken from the request path."""
        if isinstance(appointment_id, UUID):
            return appointment_id
        try:
            return UUID(appointment_id)
        except ValueError:
            raise ValidationException("Invalid appointment ID")

    @staticmethod
    def _to_response(row: Row) -> AppointmentResponse:
        return AppointmentResponse.model_validate(dict(row._mapping))

    def _emit(self, event_type: EventType, data: dict[str, Any]) -> None:
        """Schedule delivery of an event after the response is sent."""
        envelope = self.publisher.build_envelope(event_type, data)
        self.background_tasks.add_task(self.publisher.publish, envelope)

    async def _resolve_patient_name(self, caller: Caller) -> str:
        """Look up the patient's display name, falling back to a placeholder."""
        if self.identity is None:
            return PATIENT_NAME_PLACEHOLDER

        try:
            return await self.identity.get_display_name(caller.token)
        except UpstreamUnavailableException as e:
            logger.warning(
                "patient_name_lookup_failed",
                patient_id=caller.id,
                error=e.message,
            )
            return PATIENT_NAME_PLACEHOLDER

    async def create_appointment(
        self,
        caller: Caller,
        data: AppointmentCreate,
    ) -> AppointmentResponse:
        """
        Create a new appointment request.

        The patient is always the authenticated caller; the request body
        cannot name one.

        Args:
            caller: Authenticated patient
            data: Appointment creation data

        Returns:
            Created appointment in ``pending`` status
        """
        self._require(caller, Capability.CREATE_APPOINTMENT)

        patient_name = await self._resolve_patient_name(caller)
        now = utcnow()

        values = {
            "patient_id": caller.id,
            "doctor_id": data.doctor_id,
            "patient_name": patient_name,
            "doctor_name": data.doctor_name,
            "appointment_date": data.appointment_date,
            "appointment_time": data.appointment_time,
            "reason": data.reason,
            "status": AppointmentStatus.PENDING.value,
            "notes": None,
            "created_at": now,
            "updated_at": now,
        }

        stmt = insert(appointments).values(**values).returning(appointments)
        result = await self.db.execute(stmt)
        row = result.fetchone()
        await self.db.commit()

        appointment = self._to_response(row)

        logger.info(
            "appointment_created",
            appointment_id=str(appointment.id),
            patient_id=appointment.patient_id,
            doctor_id=appointment.doctor_id,
        )

        self._emit(
            EventType.CREATED,
            {
                "appointmentId": str(appointment.id),
                "patientId": appointment.patient_id,
                "patientName": appointment.patient_name,
                "doctorId": appointment.doctor_id,
                "doctorName": appointment.doctor_name,
                "appointmentDate": appointment.appointment_date,
                "appointmentTime": appointment.appointment_time,
                "reason": appointment.reason,
            },
        )

        return appointment

    async def list_appointments(self, caller: Caller) -> AppointmentListResponse:
        """
        List the caller's appointments, newest first.

        Patients see appointments they booked, doctors the ones addressed
        to them.
        """
        self._require(caller, Capability.LIST_APPOINTMENTS)

        if caller.role == UserRole.PATIENT:
            owner_column = appointments.c.patient_id
        else:
            owner_column = appointments.c.doctor_id

        stmt = (
            select(appointments)
            .where(owner_column == caller.id)
            .order_by(appointments.c.created_at.desc())
        )

        result = await self.db.execute(stmt)
        items = [self._to_response(row) for row in result.fetchall()]

        return AppointmentListResponse(total=len(items), appointments=items)

    async def get_appointment(
        self,
        caller: Caller,
        appointment_id: str | UUID,
    ) -> AppointmentResponse:
        """
        Get appointment by ID.

        Args:
            caller: Authenticated patient or doctor
            appointment_id: Appointment ID

        Returns:
            Appointment details

        Raises:
            ValidationException: If the id is malformed
            NotFoundException: If appointment not found
            ForbiddenException: If caller is neither its patient nor its doctor
        """
        self._require(caller, Capability.VIEW_APPOINTMENT)
        appointment_uuid = self._parse_id(appointment_id)

        stmt = select(appointments).where(appointments.c.id == appointment_uuid)
        result = await self.db.execute(stmt)
        row = result.fetchone()

        if not row:
            raise NotFoundException("Appointment not found")

        if caller.id not in (row.patient_id, row.doctor_id):
            raise ForbiddenException("Access denied to this appointment")

        return self._to_response(row)

    async def update_appointment_status(
        self,
        caller: Caller,
        appointment_id: str | UUID,
        data: AppointmentStatusUpdate,
    ) -> AppointmentResponse:
        """
        Approve, reject or complete an appointment.

        Only the doctor of record may decide. An appointment that does not
        exist and one that belongs to another doctor both report
        ``NotFoundException`` so existence is not revealed.

        Args:
            caller: Authenticated doctor
            appointment_id: Appointment ID
            data: Target status and optional notes

        Returns:
            Updated appointment

        Raises:
            NotFoundException: If no appointment matches the id and the doctor
            InvalidTransitionException: If the status change is not allowed
        """
        self._require(caller, Capability.DECIDE_APPOINTMENT)
        appointment_uuid = self._parse_id(appointment_id)
        target = data.status

        if target not in DOCTOR_DECISIONS:
            raise InvalidTransitionException(
                requested_status=target.value,
                message="Invalid status: doctors can only approve, reject or complete appointments",
            )

        update_values: dict[str, Any] = {
            "status": target.value,
            "updated_at": utcnow(),
        }

        # Omitted notes keep whatever was stored before
        if data.notes:
            update_values["notes"] = data.notes

        ownership = and_(
            appointments.c.id == appointment_uuid,
            appointments.c.doctor_id == caller.id,
        )
        stmt = (
            update(appointments)
            .where(ownership, appointments.c.status.in_(source_statuses(target)))
            .values(**update_values)
            .returning(appointments)
        )

        result = await self.db.execute(stmt)
        row = result.fetchone()

        if row is None:
            await self.db.rollback()
            # Read only to pick the error; the write above already lost
            current = (
                await self.db.execute(select(appointments.c.status).where(ownership))
            ).fetchone()
            if current is None:
                raise NotFoundException("Appointment not found or unauthorized")
            logger.info(
                "appointment_transition_refused",
                appointment_id=str(appointment_uuid),
                current_status=current.status,
                requested_status=target.value,
                terminal=is_terminal(AppointmentStatus(current.status)),
            )
            raise InvalidTransitionException(current.status, target.value)

        await self.db.commit()

        appointment = self._to_response(row)

        logger.info(
            "appointment_status_updated",
            appointment_id=str(appointment.id),
            doctor_id=caller.id,
            status=appointment.status.value,
        )

        self._emit(
            event_type_for(appointment.status),
            {
                "appointmentId": str(appointment.id),
                "patientId": appointment.patient_id,
                "patientName": appointment.patient_name,
                "doctorId": appointment.doctor_id,
                "doctorName": appointment.doctor_name,
                "status": appointment.status.value,
                "notes": appointment.notes,
            },
        )

        return appointment

    async def cancel_appointment(
        self,
        caller: Caller,
        appointment_id: str | UUID,
    ) -> AppointmentResponse:
        """
        Cancel a pending appointment.

        Missing, foreign and already-decided appointments are all reported
        as ``NotFoundException``.

        Args:
            caller: Authenticated patient
            appointment_id: Appointment ID

        Returns:
            Cancelled appointment
        """
        self._require(caller, Capability.CANCEL_APPOINTMENT)
        appointment_uuid = self._parse_id(appointment_id)

        stmt = (
            update(appointments)
            .where(
                appointments.c.id == appointment_uuid,
                appointments.c.patient_id == caller.id,
                appointments.c.status.in_(source_statuses(AppointmentStatus.CANCELLED)),
            )
            .values(status=AppointmentStatus.CANCELLED.value, updated_at=utcnow())
            .returning(appointments)
        )

        result = await self.db.execute(stmt)
        row = result.fetchone()

        if row is None:
            await self.db.rollback()
            raise NotFoundException("Appointment not found or cannot be cancelled")

        await self.db.commit()

        appointment = self._to_response(row)

        logger.info(
            "appointment_cancelled",
            appointment_id=str(appointment.id),
            patient_id=caller.id,
        )

        self._emit(
            EventType.CANCELLED,
            {
                "appointmentId": str(appointment.id),
                "patientId": appointment.patient_id,
                "patientName": appointment.patient_name,
                "doctorId": appointment.doctor_id,
                "doctorName": appointment.doctor_name,
            },
        )

        return appointment
