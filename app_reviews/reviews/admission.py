"""Submission admission control.

Identity-based checks that run before a review enters the store:

1. The submitter must not already have a pending review.
2. The submitter must have created fewer than ``daily_limit`` reviews
   (any status) within the trailing window.

The submission window is recomputed from the store on every check and is
never cached. Address-based throttling lives in ``ratelimit``.
"""

from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from enum import Enum

from app_reviews.core.logging import get_logger

from .exceptions import DuplicatePendingError, RateExceededError
from .store import ReviewStore


logger = get_logger(__name__)


class AdmissionRejection(str, Enum):
    """Reason a submission was refused."""

    DUPLICATE_PENDING = "duplicate_pending"
    RATE_EXCEEDED = "rate_exceeded"


@dataclass(frozen=True)
class AdmissionDecision:
    """Outcome of an admission check."""

    allowed: bool
    reason: AdmissionRejection | None = None

    @classmethod
    def allow(cls) -> "AdmissionDecision":
        return cls(allowed=True)

    @classmethod
    def reject(cls, reason: AdmissionRejection) -> "AdmissionDecision":
        return cls(allowed=False, reason=reason)


def _utcnow() -> datetime:
    return datetime.now(UTC)


class AdmissionGate:
    """Per-submitter duplicate and daily-volume gate."""

    def __init__(
        self,
        store: ReviewStore,
        daily_limit: int = 3,
        window: timedelta = timedelta(hours=24),
        clock: Callable[[], datetime] = _utcnow,
    ):
        self.store = store
        self.daily_limit = daily_limit
        self.window = window
        self._clock = clock

    async def admit(
        self, submitter_id: str, now: datetime | None = None
    ) -> AdmissionDecision:
        """Evaluate both checks in order; the first failure wins."""
        if await self.store.has_pending(submitter_id):
            return AdmissionDecision.reject(AdmissionRejection.DUPLICATE_PENDING)

        since = (now or self._clock()) - self.window
        recent = await self.store.count_created_since(submitter_id, since)
        if recent >= self.daily_limit:
            return AdmissionDecision.reject(AdmissionRejection.RATE_EXCEEDED)

        return AdmissionDecision.allow()

    async def check(self, submitter_id: str, now: datetime | None = None) -> None:
        """Raise the matching ReviewError when admission is refused."""
        decision = await self.admit(submitter_id, now)
        if decision.allowed:
            return

        logger.info(
            "review_admission_rejected",
            user_id=submitter_id,
            reason=decision.reason.value,
        )
        if decision.reason is AdmissionRejection.DUPLICATE_PENDING:
            raise DuplicatePendingError
        raise RateExceededError
