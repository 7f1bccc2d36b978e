"""Share analytics module.

Provides:
- Share event tracking
- Share counts grouped by day/month/year and platform

Note: Router is imported directly in main.py to avoid circular imports.
"""

from app_reviews.analytics.models import (
    ANALYTICS_TABLES_CQL,
    ShareEvent,
    SharePlatform,
)
from app_reviews.analytics.store import InMemoryShareStore, ShareStore


__all__ = [
    "ANALYTICS_TABLES_CQL",
    "InMemoryShareStore",
    "ShareEvent",
    "SharePlatform",
    "ShareStore",
]
