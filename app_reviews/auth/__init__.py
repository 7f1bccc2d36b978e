"""Authentication boundary.

Identity verification is a black box to the rest of the service: a bearer
JWT goes in, an ``Identity`` (id, display name, email, role) comes out.
"""

from app_reviews.auth.permissions import UserRole, is_admin
from app_reviews.auth.schemas import Identity


__all__ = ["Identity", "UserRole", "is_admin"]
