"""FastAPI dependencies for share analytics."""

from typing import Annotated

from fastapi import Depends, HTTPException, Request, status

from app_reviews.auth.dependencies import CurrentUser
from app_reviews.config import get_settings
from app_reviews.core.middleware import get_client_ip
from app_reviews.core.ratelimit import SlidingWindowRateLimiter

from .service import ShareAnalyticsService


async def get_share_service(request: Request) -> ShareAnalyticsService:
    """Get share analytics service from app state."""
    service = getattr(request.app.state, "share_service", None)
    if service is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Share analytics not available",
        )
    return service


ShareServiceDep = Annotated[ShareAnalyticsService, Depends(get_share_service)]


_share_limiter: SlidingWindowRateLimiter | None = None


def get_share_limiter() -> SlidingWindowRateLimiter:
    """Per-address limiter for share tracking (built on first use)."""
    global _share_limiter  # noqa: PLW0603 - lazily bound to settings
    if _share_limiter is None:
        settings = get_settings()
        _share_limiter = SlidingWindowRateLimiter(
            scope="shares",
            max_requests=settings.share_rate_limit_max,
            window_seconds=settings.share_rate_limit_window_seconds,
            message="Too many share attempts. Please try again later.",
        )
    return _share_limiter


async def share_rate_limit(
    request: Request,
    _user: CurrentUser,
    limiter: Annotated[SlidingWindowRateLimiter, Depends(get_share_limiter)],
) -> None:
    await limiter.enforce(get_client_ip(request))
