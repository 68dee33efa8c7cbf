"""Role and capability checks for appointment operations."""

from dataclasses import dataclass
from enum import Enum


class UserRole(str, Enum):
    """Roles issued by the identity provider."""

    PATIENT = "patient"
    DOCTOR = "doctor"


class Capability(str, Enum):
    """Operations gated by role."""

    CREATE_APPOINTMENT = "create_appointment"
    LIST_APPOINTMENTS = "list_appointments"
    VIEW_APPOINTMENT = "view_appointment"
    DECIDE_APPOINTMENT = "decide_appointment"
    CANCEL_APPOINTMENT = "cancel_appointment"


ROLE_CAPABILITIES: dict[UserRole, frozenset[Capability]] = {
    UserRole.PATIENT: frozenset(
        {
            Capability.CREATE_APPOINTMENT,
            Capability.LIST_APPOINTMENTS,
            Capability.VIEW_APPOINTMENT,
            Capability.CANCEL_APPOINTMENT,
        }
    ),
    UserRole.DOCTOR: frozenset(
        {
            Capability.LIST_APPOINTMENTS,
            Capability.VIEW_APPOINTMENT,
            Capability.DECIDE_APPOINTMENT,
        }
    ),
}

CAPABILITY_DENIED_MESSAGES: dict[Capability, str] = {
    Capability.CREATE_APPOINTMENT: "Only patients can create appointments",
    Capability.LIST_APPOINTMENTS: "Invalid role",
    Capability.VIEW_APPOINTMENT: "Invalid role",
    Capability.DECIDE_APPOINTMENT: "Only doctors can update appointment status",
    Capability.CANCEL_APPOINTMENT: "Only patients can cancel appointments",
}


@dataclass(frozen=True)
class Caller:
    """Authenticated caller taken from a verified identity assertion."""

    id: str
    email: str | None
    role: UserRole | None
    token: str

    @classmethod
    def from_claims(cls, subject: str, claims: dict, token: str) -> "Caller":
        """Build a caller from verified token claims; unknown roles get no capabilities."""
        try:
            role: UserRole | None = UserRole(claims.get("role"))
        except ValueError:
            role = None
        return cls(id=subject, email=claims.get("email"), role=role, token=token)

    def can(self, capability: Capability) -> bool:
        """Check whether the caller's role grants a capability."""
        if self.role is None:
            return False
        return capability in ROLE_CAPABILITIES[self.role]
