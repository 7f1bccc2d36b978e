"""FastAPI dependencies for app reviews.

Provides dependency injection for:
- Review, moderation and vote services
- Transport rate limit on submissions
- Error handlers
"""

from typing import Annotated

from fastapi import Depends, HTTPException, Request, status

from app_reviews.auth.dependencies import OptionalUser
from app_reviews.config import get_settings
from app_reviews.core.logging import get_logger
from app_reviews.core.middleware import get_client_ip
from app_reviews.core.ratelimit import SlidingWindowRateLimiter

from .exceptions import ReviewError
from .moderation import ModerationService
from .service import ReviewService
from .votes import VoteAggregator


logger = get_logger(__name__)

GENERIC_ERROR_MESSAGE = "An unexpected error occurred. Please try again later."


def _from_state(request: Request, name: str):
    service = getattr(request.app.state, name, None)
    if service is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Review service not available",
        )
    return service


async def get_review_service(request: Request) -> ReviewService:
    """Get review service from app state."""
    return _from_state(request, "review_service")


async def get_moderation_service(request: Request) -> ModerationService:
    """Get moderation service from app state."""
    return _from_state(request, "moderation_service")


async def get_vote_aggregator(request: Request) -> VoteAggregator:
    """Get vote aggregator from app state."""
    return _from_state(request, "vote_aggregator")


ReviewServiceDep = Annotated[ReviewService, Depends(get_review_service)]
ModerationServiceDep = Annotated[ModerationService, Depends(get_moderation_service)]
VoteAggregatorDep = Annotated[VoteAggregator, Depends(get_vote_aggregator)]


_review_limiter: SlidingWindowRateLimiter | None = None


def get_review_limiter() -> SlidingWindowRateLimiter:
    """Per-address limiter for review submissions (built on first use)."""
    global _review_limiter  # noqa: PLW0603 - lazily bound to settings
    if _review_limiter is None:
        settings = get_settings()
        _review_limiter = SlidingWindowRateLimiter(
            scope="reviews",
            max_requests=settings.review_rate_limit_max,
            window_seconds=settings.review_rate_limit_window_seconds,
            message="Too many review submissions. Please try again later.",
        )
    return _review_limiter


async def review_rate_limit(
    request: Request,
    user: OptionalUser,
    limiter: Annotated[SlidingWindowRateLimiter, Depends(get_review_limiter)],
) -> None:
    """Enforce the submission limiter; admins are exempt."""
    if user is not None and user.is_admin:
        return
    await limiter.enforce(get_client_ip(request))


def handle_review_error(error: ReviewError) -> HTTPException:
    """Convert review errors to HTTP exceptions.

    Args:
        error: Review error

    Returns:
        HTTPException with appropriate status code
    """
    status_map = {
        "review_not_found": status.HTTP_404_NOT_FOUND,
        "invalid_status": status.HTTP_400_BAD_REQUEST,
        "duplicate_pending": status.HTTP_400_BAD_REQUEST,
        "rate_exceeded": status.HTTP_429_TOO_MANY_REQUESTS,
        "self_vote": status.HTTP_400_BAD_REQUEST,
    }

    status_code = status_map.get(error.code, status.HTTP_500_INTERNAL_SERVER_ERROR)
    if status_code >= status.HTTP_500_INTERNAL_SERVER_ERROR:
        logger.error("review_error", code=error.code, error=error.message)
        return HTTPException(status_code=status_code, detail=GENERIC_ERROR_MESSAGE)

    return HTTPException(status_code=status_code, detail=error.message)
