"""Review domain errors.

Each error carries a stable ``code``; routers translate codes to HTTP
statuses in one place (``dependencies.handle_review_error``).
"""


class ReviewError(Exception):
    """Base review error."""

    def __init__(self, message: str, code: str = "review_error"):
        self.message = message
        self.code = code
        super().__init__(message)


class ReviewNotFoundError(ReviewError):
    """Referenced review does not exist."""

    def __init__(self, message: str = "Review not found"):
        super().__init__(message, "review_not_found")


class InvalidStatusError(ReviewError):
    """Decision target is not approved/rejected."""

    def __init__(
        self, message: str = 'Invalid status. Must be "approved" or "rejected"'
    ):
        super().__init__(message, "invalid_status")


class DuplicatePendingError(ReviewError):
    """Submitter already has a review awaiting moderation."""

    def __init__(
        self,
        message: str = "You already have a pending review. Please wait for approval.",
    ):
        super().__init__(message, "duplicate_pending")


class RateExceededError(ReviewError):
    """Submitter hit the per-day review limit."""

    def __init__(
        self,
        message: str = "Too many review submissions. Please try again tomorrow.",
    ):
        super().__init__(message, "rate_exceeded")


class SelfVoteError(ReviewError):
    """Submitter tried to vote on or report their own review."""

    def __init__(self, message: str = "You cannot vote on your own review"):
        super().__init__(message, "self_vote")


class StoreUnavailableError(ReviewError):
    """Persistence layer could not be reached."""

    def __init__(self, message: str = "Review store unavailable"):
        super().__init__(message, "store_unavailable")
