"""Verification of identity assertions signed by the identity provider."""

from datetime import UTC, datetime, timedelta
from typing import Any

import structlog
from jose import ExpiredSignatureError, JWTError, jwt

from app.config import settings

logger = structlog.get_logger(__name__)

# The identity provider names the subject "userId"; standard JWTs use "sub"
SUBJECT_CLAIMS = ("userId", "sub")

ACCESS_TOKEN_TYPE = "access"


def issue_identity_token(
    user_id: str,
    role: str,
    email: str | None = None,
    expires_delta: timedelta | None = None,
) -> str:
    """
    Sign an assertion shaped like the identity provider's.

    The services never issue tokens in production; this is for local
    tooling and tests that need a token signed with the shared key.
    """
    issued_at = datetime.now(UTC)
    lifetime = expires_delta or timedelta(minutes=settings.access_token_expire_minutes)

    claims: dict[str, Any] = {
        "userId": user_id,
        "role": role,
        "iat": issued_at,
        "exp": issued_at + lifetime,
    }
    if email:
        claims["email"] = email

    return jwt.encode(claims, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)


def verify_identity_token(token: str) -> dict[str, Any] | None:
    """
    Check the signature and expiry of an identity assertion.

    Args:
        token: Encoded JWT from the Authorization header or token cookie

    Returns:
        Verified claims, or None if the token must not be trusted
    """
    try:
        claims = jwt.decode(token, settings.jwt_secret_key, algorithms=[settings.jwt_algorithm])
    except ExpiredSignatureError:
        logger.info("identity_token_expired")
        return None
    except JWTError as e:
        logger.info("identity_token_rejected", error=str(e))
        return None

    # Refresh tokens carry a type; assertions without one are access tokens
    token_type = claims.get("type", ACCESS_TOKEN_TYPE)
    if token_type != ACCESS_TOKEN_TYPE:
        logger.info("identity_token_wrong_type", token_type=token_type)
        return None

    return claims


def claims_subject(claims: dict[str, Any]) -> str | None:
    """User id named by verified claims, if any."""
    for key in SUBJECT_CLAIMS:
        subject = claims.get(key)
        if isinstance(subject, str) and subject:
            return subject
    return None
