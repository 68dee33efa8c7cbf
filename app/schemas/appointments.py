"""Appointment schemas for request/response validation."""

from datetime import datetime
from enum import Enum
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class AppointmentStatus(str, Enum):
    """Appointment status enumeration."""

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class CamelModel(BaseModel):
    """Base schema exchanging camelCase JSON."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        str_strip_whitespace=True,
    )


class AppointmentCreate(CamelModel):
    """Schema for creating a new appointment."""

    doctor_id: str = Field(..., min_length=1, max_length=200)
    doctor_name: str = Field(..., min_length=1, max_length=200)
    appointment_date: str = Field(..., min_length=1, max_length=50)
    appointment_time: str = Field(..., min_length=1, max_length=50)
    reason: str = Field(..., min_length=1, max_length=500)


class AppointmentStatusUpdate(CamelModel):
    """Schema for a doctor's decision on an appointment."""

    status: AppointmentStatus
    notes: str | None = Field(None, max_length=1000)


class AppointmentResponse(CamelModel):
    """Schema for appointment response."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    patient_id: str
    doctor_id: str
    patient_name: str
    doctor_name: str
    appointment_date: str
    appointment_time: str
    reason: str
    status: AppointmentStatus
    notes: str | None = None
    created_at: datetime
    updated_at: datetime


class AppointmentListResponse(CamelModel):
    """Schema for the caller's appointments, newest first."""

    total: int
    appointments: list[AppointmentResponse]
