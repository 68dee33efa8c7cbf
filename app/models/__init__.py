"""Database models."""

from app.models.appointments import appointments
from app.models.notifications import notifications

__all__ = [
    "appointments",
    "notifications",
]
