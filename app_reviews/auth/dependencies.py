"""FastAPI dependencies for authentication.

Provides dependency injection for:
- Current identity extraction from the bearer JWT
- Admin-only access control
- Client info (user agent, address, session) for audit metadata
"""

from typing import Annotated

from fastapi import Depends, HTTPException, Request, status
from jose import JWTError

from app_reviews.auth.permissions import UserRole
from app_reviews.auth.schemas import Identity
from app_reviews.auth.security import decode_access_token
from app_reviews.core.context import set_user_id
from app_reviews.core.middleware import get_client_ip


def get_token_from_header(request: Request) -> str | None:
    """Extract Bearer token from Authorization header."""
    auth_header = request.headers.get("Authorization")
    if not auth_header:
        return None

    expected_parts = 2
    parts = auth_header.split()
    if len(parts) != expected_parts or parts[0].lower() != "bearer":
        return None

    return parts[1]


async def get_current_user(
    token: Annotated[str | None, Depends(get_token_from_header)],
) -> Identity:
    """Get the authenticated identity from the access token.

    Raises:
        HTTPException(401): If token is missing, invalid, or expired
        HTTPException(403): If the account is deactivated
    """
    if not token:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authentication required. No token provided.",
            headers={"WWW-Authenticate": "Bearer"},
        )

    try:
        identity = Identity.from_token_payload(decode_access_token(token))
    except (JWTError, ValueError) as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired authentication token",
            headers={"WWW-Authenticate": "Bearer"},
        ) from e

    if not identity.is_active:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Account is deactivated",
        )

    set_user_id(identity.id)
    return identity


async def get_current_user_optional(
    token: Annotated[str | None, Depends(get_token_from_header)],
) -> Identity | None:
    """Get the identity if a valid token was sent, None otherwise."""
    if not token:
        return None

    try:
        identity = Identity.from_token_payload(decode_access_token(token))
    except (JWTError, ValueError):
        return None

    set_user_id(identity.id)
    return identity


def require_role(*allowed_roles: UserRole):
    """Create dependency requiring one of the given roles."""

    async def role_checker(
        user: Annotated[Identity, Depends(get_current_user)],
    ) -> Identity:
        if user.role not in allowed_roles:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Administrator access required",
            )
        return user

    return role_checker


async def get_client_info(request: Request) -> tuple[str | None, str | None, str | None]:
    """Extract (user_agent, ip_address, session_id) for audit metadata."""
    return (
        request.headers.get("user-agent"),
        get_client_ip(request),
        request.headers.get("x-session-id"),
    )


CurrentUser = Annotated[Identity, Depends(get_current_user)]
OptionalUser = Annotated[Identity | None, Depends(get_current_user_optional)]
AdminUser = Annotated[Identity, Depends(require_role(UserRole.ADMIN))]
ClientInfo = Annotated[
    tuple[str | None, str | None, str | None], Depends(get_client_info)
]
