"""Retention sweep for the notification ledger."""

import asyncio
from datetime import UTC, datetime, timedelta

import structlog
from sqlalchemy import delete
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.models.notifications import notifications

logger = structlog.get_logger(__name__)


class RetentionService:
    """Deletes read notifications older than the retention horizon."""

    def __init__(self, retention_days: int = 30):
        """Initialize with the retention horizon in days."""
        self.retention_days = retention_days

    def cutoff(self, now: datetime | None = None) -> datetime:
        """Creation time before which read notifications are eligible."""
        return (now or datetime.now(UTC)) - timedelta(days=self.retention_days)

    async def sweep(self, db: AsyncSession, now: datetime | None = None) -> int:
        """
        Delete read notifications created before the cutoff.

        Unread notifications are never touched, whatever their age.

        Args:
            db: Database session
            now: Reference time, defaults to the current time

        Returns:
            Number of notifications deleted
        """
        cutoff = self.cutoff(now)
        result = await db.execute(
            delete(notifications).where(
                notifications.c.read.is_(True),
                notifications.c.created_at < cutoff,
            )
        )
        await db.commit()

        deleted = result.rowcount or 0
        logger.info("notifications_swept", deleted_count=deleted, cutoff=cutoff.isoformat())
        return deleted

    async def run_periodically(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        interval_seconds: float,
    ) -> None:
        """Sweep on a fixed interval until cancelled."""
        while True:
            await asyncio.sleep(interval_seconds)
            try:
                async with session_factory() as db:
                    await self.sweep(db)
            except SQLAlchemyError as e:
                logger.error("notification_sweep_failed", error=str(e))
