"""Identity schema produced by token verification."""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from app_reviews.auth.permissions import UserRole, parse_role
from app_reviews.auth.permissions import is_admin as role_is_admin


class Identity(BaseModel):
    """Authenticated caller as asserted by the access token."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(description="User ID (token subject)")
    email: str = Field(default="", description="User email")
    name: str = Field(default="", description="Display name")
    role: UserRole = Field(default=UserRole.STUDENT, description="User role")
    is_active: bool = Field(default=True, description="Account is active")

    @property
    def is_admin(self) -> bool:
        return role_is_admin(self.role)

    @property
    def display_name(self) -> str:
        """Name shown to moderators; falls back to the email local part."""
        if self.name:
            return self.name
        if self.email:
            return self.email.split("@")[0]
        return "User"

    @classmethod
    def from_token_payload(cls, payload: dict[str, Any]) -> "Identity":
        """Build an identity from decoded JWT claims.

        Accepts ``sub`` or the legacy ``id``/``userId`` claims for the subject.
        """
        subject = payload.get("sub") or payload.get("id") or payload.get("userId")
        if not subject:
            msg = "Token has no subject"
            raise ValueError(msg)
        return cls(
            id=str(subject),
            email=payload.get("email") or "",
            name=payload.get("name") or "",
            role=parse_role(payload.get("role")),
            is_active=payload.get("is_active", True),
        )
