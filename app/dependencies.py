"""FastAPI dependencies."""

from typing import Annotated

from fastapi import Cookie, Depends, Header
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.config import settings
from app.core.exceptions import UnauthorizedException
from app.core.permissions import Caller
from app.core.security import claims_subject, verify_identity_token
from app.database import get_db, get_notification_db, get_notification_sessionmaker
from app.services.event_publisher import EventPublisher
from app.services.identity_client import IdentityClient
from app.services.retention_service import RetentionService

# Security
security = HTTPBearer(auto_error=False)


async def get_current_caller(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(security)],
    token_cookie: Annotated[str | None, Cookie(alias="token")] = None,
) -> Caller:
    """
    Extract the caller from the identity provider's signed token.

    The token is read from the ``Authorization: Bearer`` header, or from the
    ``token`` cookie set by the web client.

    Args:
        credentials: Bearer token credentials
        token_cookie: Token cookie

    Returns:
        Authenticated caller

    Raises:
        UnauthorizedException: If the token is missing, invalid or expired
    """
    token = credentials.credentials if credentials else token_cookie
    if not token:
        raise UnauthorizedException("Unauthorized - No token provided")

    claims = verify_identity_token(token)
    if claims is None:
        raise UnauthorizedException("Invalid or expired token")

    subject = claims_subject(claims)
    if subject is None:
        raise UnauthorizedException("Could not validate credentials")

    return Caller.from_claims(subject, claims, token)


def get_event_publisher() -> EventPublisher:
    """Publisher delivering appointment events to the notification service."""
    return EventPublisher(
        events_url=settings.events_url,
        timeout=settings.event_delivery_timeout,
        shared_secret=settings.service_shared_secret,
    )


def get_identity_client() -> IdentityClient:
    """Client for the identity provider's profile endpoint."""
    return IdentityClient(
        me_url=settings.identity_me_url,
        timeout=settings.identity_timeout,
    )


def get_retention_service() -> RetentionService:
    """Sweeper configured with the notification retention horizon."""
    return RetentionService(retention_days=settings.notification_retention_days)


async def verify_service_secret(
    x_service_secret: Annotated[str | None, Header()] = None,
) -> None:
    """
    Guard service-to-service endpoints.

    Only enforced when ``SERVICE_SHARED_SECRET`` is configured.

    Raises:
        UnauthorizedException: If the secret is configured and does not match
    """
    expected = settings.service_shared_secret
    if expected and x_service_secret != expected:
        raise UnauthorizedException("Invalid service secret")


# Type aliases for dependency injection
DatabaseSession = Annotated[AsyncSession, Depends(get_db)]
NotificationDatabaseSession = Annotated[AsyncSession, Depends(get_notification_db)]
NotificationSessionFactory = Annotated[
    async_sessionmaker[AsyncSession], Depends(get_notification_sessionmaker)
]
CurrentCaller = Annotated[Caller, Depends(get_current_caller)]
Publisher = Annotated[EventPublisher, Depends(get_event_publisher)]
Identity = Annotated[IdentityClient, Depends(get_identity_client)]
Retention = Annotated[RetentionService, Depends(get_retention_service)]
