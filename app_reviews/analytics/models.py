"""Share analytics models.

Cassandra table definitions for:
- share_analytics: Share events partitioned by UTC day
- share_analytics_days: Index of days that have at least one event

Share events are append-only and never updated.
"""

from dataclasses import asdict, dataclass, field
from datetime import UTC, datetime
from enum import Enum
from typing import Any
from uuid import UUID, uuid4


UNKNOWN_URL = "Unknown"
DAY_FORMAT = "%Y-%m-%d"
# Single partition holding the day index
DAYS_BUCKET = "all"


class SharePlatform(str, Enum):
    """Share target."""

    WHATSAPP = "whatsapp"
    FACEBOOK = "facebook"
    TWITTER = "twitter"
    INSTAGRAM = "instagram"
    LINKEDIN = "linkedin"
    TELEGRAM = "telegram"
    EMAIL = "email"
    SMS = "sms"
    BLUETOOTH = "bluetooth"
    CHROME = "chrome"
    FILES = "files"
    GMAIL = "gmail"
    QUICKSHARE = "quickshare"
    COPY = "copy"
    NATIVE_SHARE = "native-share"
    OTHER = "other"


class ShareMethod(str, Enum):
    JUST_ONCE = "just-once"
    ALWAYS = "always"


# ==============================================================================
# CQL Table Definitions
# ==============================================================================

SHARE_ANALYTICS_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.share_analytics (
    day TEXT,
    created_at TIMESTAMP,
    share_id UUID,
    user_id TEXT,
    user_name TEXT,
    user_email TEXT,
    platform TEXT,
    share_method TEXT,
    shared_url TEXT,
    device_info MAP<TEXT, TEXT>,
    location MAP<TEXT, TEXT>,
    session_id TEXT,
    referrer TEXT,
    campaign TEXT,
    tags LIST<TEXT>,
    success BOOLEAN,
    error TEXT,
    PRIMARY KEY ((day), created_at, share_id)
) WITH CLUSTERING ORDER BY (created_at DESC, share_id ASC)
"""

SHARE_ANALYTICS_DAYS_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.share_analytics_days (
    bucket TEXT,
    day TEXT,
    PRIMARY KEY ((bucket), day)
)
"""

ANALYTICS_TABLES_CQL = [
    SHARE_ANALYTICS_TABLE_CQL,
    SHARE_ANALYTICS_DAYS_TABLE_CQL,
]


# ==============================================================================
# Entity Classes
# ==============================================================================


def _compact(data: dict[str, Any]) -> dict[str, str]:
    return {k: v for k, v in data.items() if v is not None}


@dataclass(frozen=True)
class ShareDeviceInfo:
    device_type: str | None = None
    os: str | None = None
    browser: str | None = None
    screen_size: str | None = None
    user_agent: str | None = None

    def to_map(self) -> dict[str, str]:
        return _compact(asdict(self))

    @classmethod
    def from_map(cls, data: dict[str, str] | None) -> "ShareDeviceInfo":
        data = data or {}
        return cls(**{k: data.get(k) for k in cls.__dataclass_fields__})


@dataclass(frozen=True)
class ShareLocation:
    ip_address: str | None = None
    country: str | None = None
    city: str | None = None
    region: str | None = None

    def to_map(self) -> dict[str, str]:
        return _compact(asdict(self))

    @classmethod
    def from_map(cls, data: dict[str, str] | None) -> "ShareLocation":
        data = data or {}
        return cls(**{k: data.get(k) for k in cls.__dataclass_fields__})


@dataclass(frozen=True)
class ShareEvent:
    """One share action. Anonymous shares have no user fields."""

    share_id: UUID
    platform: SharePlatform
    shared_url: str
    created_at: datetime
    share_method: ShareMethod = ShareMethod.JUST_ONCE
    user_id: str | None = None
    user_name: str | None = None
    user_email: str | None = None
    device_info: ShareDeviceInfo = field(default_factory=ShareDeviceInfo)
    location: ShareLocation = field(default_factory=ShareLocation)
    session_id: str | None = None
    referrer: str | None = None
    campaign: str | None = None
    tags: tuple[str, ...] = ()
    success: bool = True
    error: str | None = None

    @property
    def day(self) -> str:
        return self.created_at.astimezone(UTC).strftime(DAY_FORMAT)

    @classmethod
    def from_row(cls, row: Any) -> "ShareEvent":
        """Create ShareEvent from Cassandra row."""
        created_at = row.created_at
        if created_at.tzinfo is None:
            created_at = created_at.replace(tzinfo=UTC)
        return cls(
            share_id=row.share_id,
            platform=SharePlatform(row.platform),
            shared_url=row.shared_url,
            created_at=created_at,
            share_method=ShareMethod(row.share_method or ShareMethod.JUST_ONCE.value),
            user_id=row.user_id,
            user_name=row.user_name,
            user_email=row.user_email,
            device_info=ShareDeviceInfo.from_map(row.device_info),
            location=ShareLocation.from_map(row.location),
            session_id=row.session_id,
            referrer=row.referrer,
            campaign=row.campaign,
            tags=tuple(row.tags or ()),
            success=row.success if row.success is not None else True,
            error=row.error,
        )


# ==============================================================================
# Factory Functions
# ==============================================================================


def create_share_event(
    platform: SharePlatform,
    shared_url: str | None = None,
    referrer: str | None = None,
    now: datetime | None = None,
    **kwargs: Any,
) -> ShareEvent:
    """Create a share event; the URL falls back to the referrer, then Unknown."""
    return ShareEvent(
        share_id=uuid4(),
        platform=platform,
        shared_url=shared_url or referrer or UNKNOWN_URL,
        referrer=referrer,
        created_at=now or datetime.now(UTC),
        **kwargs,
    )
