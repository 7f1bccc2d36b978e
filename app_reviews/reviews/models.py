"""Domain models for app reviews.

Cassandra table definitions for:
- app_reviews: Review records keyed by review_id
- app_reviews_by_user: Submission history per user (admission checks)
- app_reviews_by_status: Moderation queues and public listing
- app_review_counters: Helpful/unhelpful/report counters

Lifecycle: a review is created ``pending`` and only changes through an
admin decision, a counter increment or a flag append. Reviews are never
deleted by the service.
"""

from dataclasses import asdict, dataclass, field
from datetime import UTC, datetime
from enum import Enum
from typing import Any
from uuid import UUID, uuid4


# ==============================================================================
# Constants
# ==============================================================================

MIN_RATING = 1
MAX_RATING = 5
REVIEW_MAX_LENGTH = 2000
ADMIN_RESPONSE_MAX_LENGTH = 1000
FLAG_REASON_MAX_LENGTH = 500


class ReviewStatus(str, Enum):
    """Moderation status of a review."""

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class AppStore(str, Enum):
    """Distribution channel the review was submitted from."""

    GOOGLE_PLAY = "google-play"
    APPLE_STORE = "apple-store"
    HUAWEI = "huawei"
    SAMSUNG = "samsung"
    WEB = "web"


class ReviewCounter(str, Enum):
    """Counters maintained by the vote/report aggregator."""

    HELPFUL = "helpful_votes"
    UNHELPFUL = "unhelpful_votes"
    REPORTS = "report_count"


# ==============================================================================
# CQL Table Definitions
# ==============================================================================

REVIEW_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.app_reviews (
    review_id UUID PRIMARY KEY,
    user_id TEXT,
    user_name TEXT,
    user_email TEXT,
    rating TINYINT,
    review TEXT,
    app_store TEXT,
    status TEXT,
    is_featured BOOLEAN,
    admin_response_text TEXT,
    admin_responded_by TEXT,
    admin_responded_at TIMESTAMP,
    flags LIST<FROZEN<MAP<TEXT, TEXT>>>,
    device_info MAP<TEXT, TEXT>,
    metadata MAP<TEXT, TEXT>,
    created_at TIMESTAMP,
    updated_at TIMESTAMP
)
"""

# Submission history per user, newest first
REVIEWS_BY_USER_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.app_reviews_by_user (
    user_id TEXT,
    created_at TIMESTAMP,
    review_id UUID,
    status TEXT,
    PRIMARY KEY ((user_id), created_at, review_id)
) WITH CLUSTERING ORDER BY (created_at DESC, review_id ASC)
"""

# Moderation queues, one partition per status
REVIEWS_BY_STATUS_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.app_reviews_by_status (
    status TEXT,
    created_at TIMESTAMP,
    review_id UUID,
    PRIMARY KEY ((status), created_at, review_id)
) WITH CLUSTERING ORDER BY (created_at DESC, review_id ASC)
"""

REVIEW_COUNTERS_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.app_review_counters (
    review_id UUID PRIMARY KEY,
    helpful_votes COUNTER,
    unhelpful_votes COUNTER,
    report_count COUNTER
)
"""

REVIEWS_TABLES_CQL = [
    REVIEW_TABLE_CQL,
    REVIEWS_BY_USER_TABLE_CQL,
    REVIEWS_BY_STATUS_TABLE_CQL,
    REVIEW_COUNTERS_TABLE_CQL,
]


# ==============================================================================
# Entity Classes
# ==============================================================================


@dataclass(frozen=True)
class AdminResponse:
    """Moderator reply attached to a decision."""

    text: str
    responded_by: str
    responded_at: datetime

    def to_dict(self) -> dict[str, Any]:
        return {
            "text": self.text,
            "respondedBy": self.responded_by,
            "respondedAt": self.responded_at.isoformat(),
        }


@dataclass(frozen=True)
class ReviewFlag:
    """A user report against a review."""

    user_id: str
    reason: str
    created_at: datetime

    def to_map(self) -> dict[str, str]:
        return {
            "user_id": self.user_id,
            "reason": self.reason,
            "created_at": self.created_at.isoformat(),
        }

    @classmethod
    def from_map(cls, data: dict[str, str]) -> "ReviewFlag":
        return cls(
            user_id=data["user_id"],
            reason=data.get("reason", ""),
            created_at=datetime.fromisoformat(data["created_at"]),
        )


@dataclass(frozen=True)
class DeviceInfo:
    """Client device description supplied at submission."""

    device_type: str | None = None
    os: str | None = None
    browser: str | None = None
    user_agent: str | None = None

    def to_map(self) -> dict[str, str]:
        return {k: v for k, v in asdict(self).items() if v is not None}

    @classmethod
    def from_map(cls, data: dict[str, str] | None) -> "DeviceInfo":
        data = data or {}
        return cls(
            device_type=data.get("device_type"),
            os=data.get("os"),
            browser=data.get("browser"),
            user_agent=data.get("user_agent"),
        )


@dataclass(frozen=True)
class ReviewMetadata:
    """Request metadata captured when the review is created."""

    ip_address: str | None = None
    session_id: str | None = None
    country: str | None = None
    city: str | None = None
    region: str | None = None

    def to_map(self) -> dict[str, str]:
        return {k: v for k, v in asdict(self).items() if v is not None}

    @classmethod
    def from_map(cls, data: dict[str, str] | None) -> "ReviewMetadata":
        data = data or {}
        return cls(
            ip_address=data.get("ip_address"),
            session_id=data.get("session_id"),
            country=data.get("country"),
            city=data.get("city"),
            region=data.get("region"),
        )


@dataclass(frozen=True)
class Review:
    """Review entity.

    Immutable: every mutation produces a new instance via
    ``dataclasses.replace`` so stores never share half-updated objects.
    """

    review_id: UUID
    user_id: str
    user_name: str
    user_email: str
    rating: int
    review: str
    app_store: AppStore
    status: ReviewStatus
    is_featured: bool
    created_at: datetime
    updated_at: datetime
    helpful_votes: int = 0
    unhelpful_votes: int = 0
    report_count: int = 0
    admin_response: AdminResponse | None = None
    flags: tuple[ReviewFlag, ...] = field(default_factory=tuple)
    device_info: DeviceInfo = field(default_factory=DeviceInfo)
    metadata: ReviewMetadata = field(default_factory=ReviewMetadata)

    def counter(self, counter: ReviewCounter) -> int:
        return getattr(self, counter.value)

    @classmethod
    def from_row(cls, row: Any, counters: Any = None) -> "Review":
        """Create Review from Cassandra rows (record + optional counter row)."""
        admin_response = None
        if row.admin_response_text:
            admin_response = AdminResponse(
                text=row.admin_response_text,
                responded_by=row.admin_responded_by,
                responded_at=_as_utc(row.admin_responded_at),
            )

        return cls(
            review_id=row.review_id,
            user_id=row.user_id,
            user_name=row.user_name,
            user_email=row.user_email,
            rating=row.rating,
            review=row.review or "",
            app_store=AppStore(row.app_store or AppStore.WEB.value),
            status=ReviewStatus(row.status),
            is_featured=bool(row.is_featured),
            created_at=_as_utc(row.created_at),
            updated_at=_as_utc(row.updated_at or row.created_at),
            helpful_votes=(counters.helpful_votes or 0) if counters else 0,
            unhelpful_votes=(counters.unhelpful_votes or 0) if counters else 0,
            report_count=(counters.report_count or 0) if counters else 0,
            admin_response=admin_response,
            flags=tuple(ReviewFlag.from_map(dict(f)) for f in (row.flags or [])),
            device_info=DeviceInfo.from_map(row.device_info),
            metadata=ReviewMetadata.from_map(row.metadata),
        )

    def to_summary(self) -> dict[str, Any]:
        """Compact representation pushed to moderators on submission."""
        return {
            "reviewId": str(self.review_id),
            "userId": self.user_id,
            "userName": self.user_name,
            "rating": self.rating,
            "review": self.review,
            "appStore": self.app_store.value,
            "status": self.status.value,
            "createdAt": self.created_at.isoformat(),
        }


def _as_utc(value: datetime | None) -> datetime | None:
    """Cassandra returns naive UTC timestamps."""
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value


# ==============================================================================
# Factory Functions
# ==============================================================================


def create_review(
    user_id: str,
    user_name: str,
    user_email: str,
    rating: int,
    review: str | None = None,
    app_store: AppStore = AppStore.WEB,
    device_info: DeviceInfo | None = None,
    metadata: ReviewMetadata | None = None,
    now: datetime | None = None,
) -> Review:
    """Create a new pending review with default values."""
    created_at = now or datetime.now(UTC)
    return Review(
        review_id=uuid4(),
        user_id=user_id,
        user_name=user_name,
        user_email=user_email,
        rating=rating,
        review=(review or "").strip(),
        app_store=app_store,
        status=ReviewStatus.PENDING,
        is_featured=False,
        created_at=created_at,
        updated_at=created_at,
        device_info=device_info or DeviceInfo(),
        metadata=metadata or ReviewMetadata(),
    )
