#!/usr/bin/env python3
"""
Delete read notifications older than the retention horizon.

Usage:
    python scripts/cleanup_notifications.py
    python scripts/cleanup_notifications.py --days 60
    python scripts/cleanup_notifications.py --api-url http://localhost:3003

Without --api-url the sweep runs directly against NOTIFICATION_DATABASE_URL.
With --api-url it calls the running notification service instead.

Environment Variables:
    NOTIFICATION_DATABASE_URL: Notification database (direct mode)
    SERVICE_SHARED_SECRET: Sent as X-Service-Secret in API mode when set
    API_PREFIX: Route prefix of the notification service (default /api)
"""

import argparse
import asyncio
import os
import sys

import dotenv
import requests

dotenv.load_dotenv()


def sweep_via_api(api_url: str) -> int:
    """Trigger the sweep through the notification service."""
    from app.config import settings

    url = f"{api_url.rstrip('/')}{settings.notification_cleanup_path}"

    headers = {}
    secret = os.getenv("SERVICE_SHARED_SECRET")
    if secret:
        headers["X-Service-Secret"] = secret

    try:
        response = requests.delete(url, headers=headers, timeout=30)
        response.raise_for_status()
    except requests.exceptions.HTTPError as e:
        print(f"HTTP Error: {e}", file=sys.stderr)
        print(f"Response: {e.response.text}", file=sys.stderr)
        sys.exit(1)
    except requests.exceptions.RequestException as e:
        print(f"Request Error: {e}", file=sys.stderr)
        sys.exit(1)

    return response.json()["deletedCount"]


async def sweep_directly(days: int | None) -> int:
    """Run the sweep against the notification database."""
    from app.config import settings
    from app.database import NotificationSessionLocal, notification_engine
    from app.services.retention_service import RetentionService

    retention = RetentionService(retention_days=days or settings.notification_retention_days)
    try:
        async with NotificationSessionLocal() as db:
            return await retention.sweep(db)
    finally:
        await notification_engine.dispose()


def main():
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description="Delete read notifications older than the retention horizon",
    )
    parser.add_argument(
        "--days",
        type=int,
        help="Retention horizon in days (direct mode only, default from settings)",
    )
    parser.add_argument(
        "--api-url",
        help="Notification service base URL; sweeps through the API instead of the database",
    )

    args = parser.parse_args()

    if args.api_url:
        if args.days is not None:
            print("Error: --days cannot be combined with --api-url", file=sys.stderr)
            sys.exit(1)
        deleted = sweep_via_api(args.api_url)
    else:
        deleted = asyncio.run(sweep_directly(args.days))

    print(f"✓ Cleanup completed: {deleted} notification(s) deleted")


if __name__ == "__main__":
    main()
