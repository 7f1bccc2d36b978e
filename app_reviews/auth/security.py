"""JWT helpers for the reviews service.

Tokens are issued by the platform's identity service; this module only
verifies them. ``create_access_token`` exists for tooling and tests.
"""

from datetime import UTC, datetime, timedelta
from typing import Any

from jose import JWTError, jwt

from app_reviews.auth.schemas import Identity
from app_reviews.config.settings import get_settings
from app_reviews.core.logging import get_logger


logger = get_logger(__name__)


def create_access_token(
    data: dict[str, Any],
    expires_delta: timedelta | None = None,
) -> str:
    """Create a signed access token.

    Args:
        data: Claims, typically {"sub", "email", "name", "role"}
        expires_delta: Token lifetime (default from settings)

    Returns:
        Encoded JWT string with exp, iat and type="access" added
    """
    settings = get_settings()

    to_encode = data.copy()
    now = datetime.now(UTC)
    expire = now + (
        expires_delta or timedelta(minutes=settings.auth_access_token_expire_minutes)
    )
    to_encode.update({"exp": expire, "iat": now, "type": "access"})

    return jwt.encode(
        to_encode,
        settings.auth_secret_key,
        algorithm=settings.auth_algorithm,
    )


def decode_access_token(token: str) -> dict[str, Any]:
    """Decode and validate an access token.

    Validates signature, expiration and ``type == "access"``.

    Raises:
        JWTError: If token is invalid, expired, or wrong type
    """
    settings = get_settings()

    payload = jwt.decode(
        token,
        settings.auth_secret_key,
        algorithms=[settings.auth_algorithm],
    )

    if payload.get("type") != "access":
        msg = "Invalid token type: expected 'access'"
        raise JWTError(msg)

    return payload


def authenticate_token(token: str | None) -> Identity | None:
    """Resolve a raw token into an identity, or None if it does not verify."""
    if not token:
        return None
    try:
        return Identity.from_token_payload(decode_access_token(token))
    except JWTError as e:
        logger.warning("token_verification_failed", error=str(e))
    except ValueError as e:
        logger.warning("token_payload_invalid", error=str(e))
    return None
