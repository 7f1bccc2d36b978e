"""Roles known to the reviews service.

Only two capabilities matter here: any authenticated user may submit,
vote and share; ADMIN additionally moderates and reads analytics.
"""

from enum import Enum


class UserRole(str, Enum):
    """User roles issued by the identity provider."""

    USER = "user"
    STUDENT = "student"
    ADMIN = "admin"


def parse_role(role: UserRole | str | None) -> UserRole:
    """Coerce a token claim into a role, defaulting unknown values to STUDENT."""
    if isinstance(role, UserRole):
        return role
    try:
        return UserRole(role)
    except ValueError:
        return UserRole.STUDENT


def is_admin(role: UserRole | str) -> bool:
    """Check if role is ADMIN."""
    if isinstance(role, str):
        return role == UserRole.ADMIN.value
    return role == UserRole.ADMIN
