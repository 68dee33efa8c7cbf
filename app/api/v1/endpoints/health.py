"""Health check endpoints, one set per service."""

from collections.abc import Callable

from fastapi import APIRouter, Response, status
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncEngine

from app.config import settings
from app.database import check_database_connection


class HealthResponse(BaseModel):
    """Liveness of one service."""

    status: str
    service: str
    version: str
    environment: str


class DetailedHealthResponse(HealthResponse):
    """Liveness plus reachability of the service's own database."""

    database: str


def build_health_router(service_name: str, get_engine: Callable[[], AsyncEngine]) -> APIRouter:
    """
    Health endpoints for one service.

    Args:
        service_name: Name reported in responses
        get_engine: Returns the engine whose database is checked; resolved
            per request so tests can swap the engine
    """
    router = APIRouter()

    def describe(state: str) -> dict[str, str]:
        return {
            "status": state,
            "service": service_name,
            "version": settings.app_version,
            "environment": settings.environment,
        }

    @router.get("/health", response_model=HealthResponse, summary="Basic health check")
    async def health_check() -> HealthResponse:
        return HealthResponse(**describe("healthy"))

    @router.get(
        "/health/detailed",
        response_model=DetailedHealthResponse,
        summary="Health check including the database",
        responses={status.HTTP_503_SERVICE_UNAVAILABLE: {"model": DetailedHealthResponse}},
    )
    async def detailed_health_check(response: Response) -> DetailedHealthResponse:
        """Reports ``degraded`` with 503 when the database cannot be reached."""
        db_healthy = await check_database_connection(get_engine())
        if not db_healthy:
            response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE

        return DetailedHealthResponse(
            **describe("healthy" if db_healthy else "degraded"),
            database="healthy" if db_healthy else "unhealthy",
        )

    @router.get("/ping", summary="Simple ping")
    async def ping() -> dict[str, str]:
        return {"message": "pong", "service": service_name}

    return router
