"""Pydantic schemas for share analytics."""

from enum import Enum

from pydantic import Field

from app_reviews.core.schemas import CamelModel

from .models import ShareDeviceInfo, ShareMethod, SharePlatform


class GroupBy(str, Enum):
    """Time bucket for aggregated share counts."""

    DAY = "day"
    MONTH = "month"
    YEAR = "year"


GROUP_FORMATS = {
    GroupBy.DAY: "%Y-%m-%d",
    GroupBy.MONTH: "%Y-%m",
    GroupBy.YEAR: "%Y",
}


class ShareDeviceInfoSchema(CamelModel):
    device_type: str | None = Field(None, max_length=100)
    os: str | None = Field(None, max_length=100)
    browser: str | None = Field(None, max_length=100)
    screen_size: str | None = Field(None, max_length=50)
    user_agent: str | None = Field(None, max_length=500)

    def to_domain(self) -> ShareDeviceInfo:
        return ShareDeviceInfo(**self.model_dump())


class ShareLocationSchema(CamelModel):
    """Client-reported location; the address always comes from the request."""

    country: str | None = Field(None, max_length=100)
    city: str | None = Field(None, max_length=100)
    region: str | None = Field(None, max_length=100)


class TrackShareRequest(CamelModel):
    """Request to record a share."""

    platform: SharePlatform
    share_method: ShareMethod = ShareMethod.JUST_ONCE
    shared_url: str | None = Field(None, max_length=2000)
    campaign: str | None = Field(None, max_length=200)
    tags: list[str] = Field(default_factory=list, max_length=20)
    device_info: ShareDeviceInfoSchema | None = None
    location: ShareLocationSchema | None = None
    success: bool = True
    error: str | None = Field(None, max_length=1000)


class ShareGroup(CamelModel):
    date: str
    platform: SharePlatform
    count: int
    unique_users: int


class ShareSummary(CamelModel):
    total_shares: int
    unique_users: int
    start_date: str
    end_date: str


class ShareAnalyticsResponse(CamelModel):
    success: bool = True
    analytics: list[ShareGroup]
    summary: ShareSummary
