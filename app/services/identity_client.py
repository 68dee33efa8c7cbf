"""Client for the identity provider's profile endpoint."""

from typing import Any

import httpx
import structlog

from app.core.exceptions import UpstreamUnavailableException

logger = structlog.get_logger(__name__)


class IdentityClient:
    """Looks up the caller's profile with the caller's own credential."""

    def __init__(
        self,
        me_url: str,
        timeout: float = 5.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        """Initialize client with the profile endpoint and request timeout."""
        self.me_url = me_url
        self.timeout = timeout
        self.transport = transport

    async def get_profile(self, token: str) -> dict[str, Any]:
        """
        Fetch ``{id, email, role, fullName}`` for the token's subject.

        Args:
            token: The caller's bearer token

        Returns:
            Profile data

        Raises:
            UpstreamUnavailableException: If the provider cannot be reached,
                answers with a non-2xx status or returns an unexpected body
        """
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                response = await client.get(
                    self.me_url,
                    headers={
                        "Authorization": f"Bearer {token}",
                        "Cookie": f"token={token}",
                    },
                )
                response.raise_for_status()
                body = response.json()
        except (httpx.HTTPError, ValueError) as e:
            raise UpstreamUnavailableException(f"Identity provider request failed: {e}") from e

        # The provider wraps the profile in a "user" object
        profile = body.get("user", body) if isinstance(body, dict) else None
        if not isinstance(profile, dict):
            raise UpstreamUnavailableException("Identity provider returned an unexpected body")

        return profile

    async def get_display_name(self, token: str) -> str:
        """Resolve the caller's full name."""
        profile = await self.get_profile(token)
        full_name = profile.get("fullName")
        if not isinstance(full_name, str) or not full_name.strip():
            raise UpstreamUnavailableException("Identity provider profile has no full name")
        return full_name
