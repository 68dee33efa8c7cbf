"""Script to initialize the service databases."""

import asyncio

from app.database import engine, notification_engine
from app.models.appointments import metadata as appointments_metadata
from app.models.notifications import metadata as notifications_metadata


async def init_db() -> None:
    """Create the appointment and notification tables in their own databases."""
    async with engine.begin() as conn:
        await conn.run_sync(appointments_metadata.create_all)
    print("✓ Appointment database initialized successfully!")

    async with notification_engine.begin() as conn:
        await conn.run_sync(notifications_metadata.create_all)
    print("✓ Notification database initialized successfully!")

    await engine.dispose()
    await notification_engine.dispose()


if __name__ == "__main__":
    asyncio.run(init_db())
