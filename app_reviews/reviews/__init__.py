"""App reviews module.

Provides:
- Review submission with per-user admission control
- Moderation state machine with submitter notifications
- Helpful/unhelpful votes and reports
- Public listing and aggregate statistics

Note: Router is imported directly in main.py to avoid circular imports.
"""

from app_reviews.reviews.models import (
    REVIEWS_TABLES_CQL,
    AppStore,
    Review,
    ReviewStatus,
)
from app_reviews.reviews.store import InMemoryReviewStore, ReviewStore


__all__ = [
    "REVIEWS_TABLES_CQL",
    "AppStore",
    "InMemoryReviewStore",
    "Review",
    "ReviewStatus",
    "ReviewStore",
]
