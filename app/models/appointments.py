"""Appointments table model using SQLAlchemy Core."""

from datetime import UTC, datetime
from uuid import uuid4

from sqlalchemy import (
    CheckConstraint,
    Column,
    DateTime,
    Index,
    MetaData,
    Table,
    Text,
    Uuid,
)


def utcnow() -> datetime:
    """Current time in UTC."""
    return datetime.now(UTC)


# Metadata for the appointment service database
metadata = MetaData()

# Appointments table
appointments = Table(
    "appointments",
    metadata,
    Column("id", Uuid(as_uuid=True), primary_key=True, default=uuid4),
    # Ownership (identity references, permanent)
    Column("patient_id", Text, nullable=False),
    Column("doctor_id", Text, nullable=False),
    # Snapshot fields (frozen at creation for audit fidelity)
    Column("patient_name", Text, nullable=False),
    Column("doctor_name", Text, nullable=False),
    # Appointment details
    Column("appointment_date", Text, nullable=False),
    Column("appointment_time", Text, nullable=False),
    Column("reason", Text, nullable=False),
    # Status management
    Column("status", Text, nullable=False, default="pending", server_default="pending"),
    Column("notes", Text, nullable=True),
    # Audit fields
    Column("created_at", DateTime(timezone=True), nullable=False, default=utcnow),
    Column("updated_at", DateTime(timezone=True), nullable=False, default=utcnow),
    # Constraints
    CheckConstraint(
        "status IN ('pending', 'approved', 'rejected', 'completed', 'cancelled')",
        name="appointments_status_check",
    ),
    Index("idx_appointments_patient_id", "patient_id"),
    Index("idx_appointments_doctor_id", "doctor_id"),
    Index("idx_appointments_status", "status"),
    Index("idx_appointments_created_at", "created_at"),
)
