"""Pydantic schemas for app reviews.

Request/Response models for:
- Review submission
- Public and moderation listings
- Status decisions
- Votes and reports
- Aggregate statistics
"""

from datetime import datetime
from enum import Enum
from typing import Annotated, Any
from uuid import UUID

from pydantic import Field, StringConstraints, field_validator

from app_reviews.core.schemas import CamelModel, MessageResponse, PaginationInfo

from .models import (
    ADMIN_RESPONSE_MAX_LENGTH,
    FLAG_REASON_MAX_LENGTH,
    MAX_RATING,
    MIN_RATING,
    REVIEW_MAX_LENGTH,
    AppStore,
    DeviceInfo,
    Review,
    ReviewStatus,
)


class SortField(str, Enum):
    """Sortable columns of the public listing."""

    CREATED_AT = "createdAt"
    RATING = "rating"
    HELPFUL_VOTES = "helpfulVotes"


class SortOrder(str, Enum):
    ASC = "asc"
    DESC = "desc"


# Trimmed before the length check
ReviewText = Annotated[
    str, StringConstraints(strip_whitespace=True, max_length=REVIEW_MAX_LENGTH)
]
AdminResponseText = Annotated[
    str,
    StringConstraints(strip_whitespace=True, max_length=ADMIN_RESPONSE_MAX_LENGTH),
]


# ==============================================================================
# Request Schemas
# ==============================================================================


class DeviceInfoSchema(CamelModel):
    """Client device description."""

    device_type: str | None = Field(None, max_length=100)
    os: str | None = Field(None, max_length=100)
    browser: str | None = Field(None, max_length=100)
    user_agent: str | None = Field(None, max_length=500)

    def to_domain(self) -> DeviceInfo:
        return DeviceInfo(**self.model_dump())


class SubmitReviewRequest(CamelModel):
    """Request to submit a review."""

    # strict: 2.5, "4", true and null are rejected rather than coerced
    rating: int = Field(..., ge=MIN_RATING, le=MAX_RATING, strict=True)
    review: ReviewText | None = None
    app_store: AppStore = AppStore.WEB
    device_info: DeviceInfoSchema | None = None

    @field_validator("rating", mode="before")
    @classmethod
    def integral_float_rating(cls, v: Any) -> Any:
        """Accept 4.0 as 4; 2.5 still fails the strict int check."""
        if isinstance(v, float) and v.is_integer():
            return int(v)
        return v


class UpdateStatusRequest(CamelModel):
    """Admin decision on a review.

    ``status`` is kept as a plain string so an unknown value reaches the
    state machine and fails there with the domain error.
    """

    status: str | None = None
    admin_response: AdminResponseText | None = None


class ReportReviewRequest(CamelModel):
    """Request to report a review."""

    reason: str | None = Field(None, max_length=FLAG_REASON_MAX_LENGTH)


# ==============================================================================
# Response Schemas
# ==============================================================================


class AdminResponseSchema(CamelModel):
    text: str
    responded_by: str
    responded_at: datetime


class FlagSchema(CamelModel):
    user_id: str
    reason: str
    created_at: datetime


class ReviewResponse(CamelModel):
    """Review as shown publicly."""

    id: UUID
    user_id: str
    user_name: str
    rating: int
    review: str
    app_store: AppStore
    status: ReviewStatus
    is_featured: bool
    helpful_votes: int
    unhelpful_votes: int
    admin_response: AdminResponseSchema | None = None
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_review(cls, review: Review) -> "ReviewResponse":
        return cls(
            id=review.review_id,
            user_id=review.user_id,
            user_name=review.user_name,
            rating=review.rating,
            review=review.review,
            app_store=review.app_store,
            status=review.status,
            is_featured=review.is_featured,
            helpful_votes=review.helpful_votes,
            unhelpful_votes=review.unhelpful_votes,
            admin_response=(
                AdminResponseSchema.model_validate(review.admin_response)
                if review.admin_response
                else None
            ),
            created_at=review.created_at,
            updated_at=review.updated_at,
        )


class ModerationReviewResponse(ReviewResponse):
    """Review with the fields only moderators see."""

    user_email: str
    report_count: int
    flags: list[FlagSchema] = Field(default_factory=list)
    device_info: dict[str, str] = Field(default_factory=dict)
    metadata: dict[str, str] = Field(default_factory=dict)

    @classmethod
    def from_review(cls, review: Review) -> "ModerationReviewResponse":
        base = ReviewResponse.from_review(review).model_dump()
        return cls(
            **base,
            user_email=review.user_email,
            report_count=review.report_count,
            flags=[FlagSchema.model_validate(f) for f in review.flags],
            device_info=review.device_info.to_map(),
            metadata=review.metadata.to_map(),
        )


class SubmittedReview(CamelModel):
    """Summary returned to the submitter."""

    id: UUID
    rating: int
    review: str
    status: ReviewStatus
    created_at: datetime


class SubmitReviewResponse(MessageResponse):
    review: SubmittedReview


class RatingStats(CamelModel):
    average_rating: float
    total_reviews: int
    rating_distribution: dict[str, int]


class PublicReviewsResponse(CamelModel):
    success: bool = True
    reviews: list[ReviewResponse]
    pagination: PaginationInfo
    stats: RatingStats


class PendingReviewsResponse(CamelModel):
    success: bool = True
    reviews: list[ModerationReviewResponse]
    pagination: PaginationInfo


class ReviewDecisionResponse(MessageResponse):
    review: ModerationReviewResponse


class HelpfulVoteResponse(MessageResponse):
    helpful_votes: int


class UnhelpfulVoteResponse(MessageResponse):
    unhelpful_votes: int


class ReportResponse(MessageResponse):
    report_count: int


class PlatformCount(CamelModel):
    app_store: AppStore
    count: int


class StatisticsSchema(CamelModel):
    total_reviews: int
    pending_reviews: int
    approved_reviews: int
    rejected_reviews: int
    average_rating: float
    rating_distribution: dict[str, int]
    recent_reviews: list[ReviewResponse]
    top_platforms: list[PlatformCount]


class StatisticsResponse(CamelModel):
    success: bool = True
    statistics: StatisticsSchema


def rating_distribution(reviews: list[Review]) -> dict[str, int]:
    """Count per star value, every value from 1 to 5 present."""
    distribution = {str(r): 0 for r in range(MIN_RATING, MAX_RATING + 1)}
    for review in reviews:
        distribution[str(review.rating)] += 1
    return distribution


def average_rating(reviews: list[Review], digits: int) -> float:
    if not reviews:
        return 0.0
    return round(sum(r.rating for r in reviews) / len(reviews), digits)

