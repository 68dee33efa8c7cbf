"""FastAPI application entry points for the appointment and notification services."""

import asyncio
import contextlib
from collections.abc import AsyncGenerator, Callable
from contextlib import AbstractAsyncContextManager, asynccontextmanager

import structlog
from fastapi import APIRouter, FastAPI
from fastapi.middleware.cors import CORSMiddleware
from prometheus_client import CollectorRegistry
from prometheus_fastapi_instrumentator import Instrumentator

from app import database
from app.api.v1.router import appointment_api_router, notification_api_router
from app.config import settings
from app.middleware.error_handler import register_exception_handlers
from app.middleware.logging import LoggingMiddleware, configure_logging
from app.services.retention_service import RetentionService

# Configure logging
configure_logging()
logger = structlog.get_logger()


@asynccontextmanager
async def appointment_lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Appointment service startup and shutdown."""
    logger.info("application_startup", service="appointments", environment=settings.environment)

    if await database.check_database_connection(database.engine):
        logger.info("database_connected")
    else:
        logger.error("database_connection_failed")

    yield

    logger.info("application_shutdown", service="appointments")
    await database.engine.dispose()
    logger.info("database_connections_closed")


@asynccontextmanager
async def notification_lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Notification service startup and shutdown.

    Starts the periodic retention sweep when an interval is configured.
    """
    logger.info("application_startup", service="notifications", environment=settings.environment)

    if await database.check_database_connection(database.notification_engine):
        logger.info("database_connected")
    else:
        logger.error("database_connection_failed")

    sweeper_task: asyncio.Task | None = None
    interval = settings.notification_cleanup_interval_seconds
    if interval > 0:
        retention = RetentionService(retention_days=settings.notification_retention_days)
        sweeper_task = asyncio.create_task(
            retention.run_periodically(database.NotificationSessionLocal, interval)
        )
        logger.info("retention_sweeper_started", interval_seconds=interval)

    yield

    logger.info("application_shutdown", service="notifications")

    if sweeper_task is not None:
        sweeper_task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await sweeper_task

    await database.notification_engine.dispose()
    logger.info("database_connections_closed")


def _create_app(
    service_name: str,
    title: str,
    description: str,
    router: APIRouter,
    lifespan: Callable[[FastAPI], AbstractAsyncContextManager[None]],
) -> FastAPI:
    """Build one service's application with the shared middleware and handlers."""
    application = FastAPI(
        title=title,
        version=settings.app_version,
        description=description,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    application.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=settings.cors_allow_credentials,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    application.add_middleware(LoggingMiddleware, service_name=service_name)

    register_exception_handlers(application)

    application.include_router(router, prefix=settings.api_prefix)

    # The in-progress gauge always lands in the global registry, so its name
    # must differ per service for both apps to run in one process
    Instrumentator(
        should_group_status_codes=True,
        should_ignore_untemplated=False,
        should_instrument_requests_inprogress=True,
        excluded_handlers=["/docs", "/redoc", "/openapi.json"],
        inprogress_name=f"{service_name}_http_requests_inprogress",
        inprogress_labels=True,
        registry=CollectorRegistry(),
    ).instrument(application).expose(application, endpoint="/metrics", include_in_schema=False)

    @application.get("/", tags=["Root"])
    async def root() -> dict[str, str]:
        """Welcome message."""
        return {
            "message": f"Welcome to {title}",
            "version": settings.app_version,
            "docs": "/docs",
        }

    return application


def create_appointment_app() -> FastAPI:
    """Appointment service: appointment records and their status lifecycle."""
    return _create_app(
        service_name="appointments",
        title=f"{settings.app_name} - Appointments",
        description="Appointment booking and status lifecycle for patients and doctors",
        router=appointment_api_router,
        lifespan=appointment_lifespan,
    )


def create_notification_app() -> FastAPI:
    """Notification service: event ingest and the notification ledger."""
    return _create_app(
        service_name="notifications",
        title=f"{settings.app_name} - Notifications",
        description="Appointment event ingest and per-recipient notification ledger",
        router=notification_api_router,
        lifespan=notification_lifespan,
    )


appointment_app = create_appointment_app()
notification_app = create_notification_app()

SERVICE_APPS = {
    "appointments": "app.main:appointment_app",
    "notifications": "app.main:notification_app",
}


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        SERVICE_APPS[settings.service],
        host=settings.host,
        port=settings.port,
        reload=settings.reload,
        log_level=settings.log_level.lower(),
    )
