# ruff: noqa: S608 - All CQL queries use keyspace from config, not user input
"""Cassandra-backed review store.

Writes fan out to the denormalized lookup tables (by user, by status);
counters live in their own counter table as Cassandra requires.
"""

from datetime import datetime
from typing import TYPE_CHECKING, Any
from uuid import UUID

from app_reviews.core.logging import get_logger

from .exceptions import StoreUnavailableError
from .models import Review, ReviewCounter, ReviewFlag, ReviewStatus


if TYPE_CHECKING:
    from cassandra.cluster import Session


logger = get_logger(__name__)


class CassandraReviewStore:
    """Review store over the ``app_reviews*`` tables."""

    def __init__(self, session: "Session", keyspace: str):
        self.session = session
        self.keyspace = keyspace
        self._prepare_statements()

    def _prepare_statements(self) -> None:
        """Prepare CQL statements for efficient queries."""
        self._insert_review = self.session.prepare(f"""
            INSERT INTO {self.keyspace}.app_reviews
            (review_id, user_id, user_name, user_email, rating, review, app_store,
             status, is_featured, admin_response_text, admin_responded_by,
             admin_responded_at, flags, device_info, metadata, created_at, updated_at)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
        """)

        self._insert_by_user = self.session.prepare(f"""
            INSERT INTO {self.keyspace}.app_reviews_by_user
            (user_id, created_at, review_id, status)
            VALUES (?, ?, ?, ?)
        """)

        self._insert_by_status = self.session.prepare(f"""
            INSERT INTO {self.keyspace}.app_reviews_by_status
            (status, created_at, review_id)
            VALUES (?, ?, ?)
        """)

        self._delete_by_status = self.session.prepare(f"""
            DELETE FROM {self.keyspace}.app_reviews_by_status
            WHERE status = ? AND created_at = ? AND review_id = ?
        """)

        self._get_review = self.session.prepare(f"""
            SELECT * FROM {self.keyspace}.app_reviews
            WHERE review_id = ?
        """)

        self._get_counters = self.session.prepare(f"""
            SELECT * FROM {self.keyspace}.app_review_counters
            WHERE review_id = ?
        """)

        self._update_decision = self.session.prepare(f"""
            UPDATE {self.keyspace}.app_reviews
            SET status = ?, is_featured = ?, admin_response_text = ?,
                admin_responded_by = ?, admin_responded_at = ?, updated_at = ?
            WHERE review_id = ?
        """)

        self._update_user_status = self.session.prepare(f"""
            UPDATE {self.keyspace}.app_reviews_by_user
            SET status = ?
            WHERE user_id = ? AND created_at = ? AND review_id = ?
        """)

        self._append_flag = self.session.prepare(f"""
            UPDATE {self.keyspace}.app_reviews
            SET flags = flags + ?
            WHERE review_id = ?
        """)

        self._increment = {
            counter: self.session.prepare(f"""
                UPDATE {self.keyspace}.app_review_counters
                SET {counter.value} = {counter.value} + ?
                WHERE review_id = ?
            """)
            for counter in ReviewCounter
        }

        self._get_user_statuses = self.session.prepare(f"""
            SELECT status FROM {self.keyspace}.app_reviews_by_user
            WHERE user_id = ?
        """)

        self._count_user_since = self.session.prepare(f"""
            SELECT COUNT(*) FROM {self.keyspace}.app_reviews_by_user
            WHERE user_id = ? AND created_at >= ?
        """)

        self._get_ids_by_status = self.session.prepare(f"""
            SELECT review_id FROM {self.keyspace}.app_reviews_by_status
            WHERE status = ?
        """)

    async def _execute(self, statement: Any, params: list[Any]) -> Any:
        try:
            return await self.session.aexecute(statement, params)
        except Exception as e:
            logger.error(
                "review_store_query_failed",
                error=str(e),
                error_type=type(e).__name__,
            )
            raise StoreUnavailableError from e

    # ==========================================================================
    # Writes
    # ==========================================================================

    async def insert(self, review: Review) -> None:
        """Insert a review into the main and lookup tables."""
        response = review.admin_response
        await self._execute(
            self._insert_review,
            [
                review.review_id,
                review.user_id,
                review.user_name,
                review.user_email,
                review.rating,
                review.review,
                review.app_store.value,
                review.status.value,
                review.is_featured,
                response.text if response else None,
                response.responded_by if response else None,
                response.responded_at if response else None,
                [flag.to_map() for flag in review.flags],
                review.device_info.to_map(),
                review.metadata.to_map(),
                review.created_at,
                review.updated_at,
            ],
        )
        await self._execute(
            self._insert_by_user,
            [review.user_id, review.created_at, review.review_id, review.status.value],
        )
        await self._execute(
            self._insert_by_status,
            [review.status.value, review.created_at, review.review_id],
        )

    async def save_decision(
        self, review: Review, previous_status: ReviewStatus
    ) -> None:
        """Write decision fields and move the review between status queues."""
        response = review.admin_response
        await self._execute(
            self._update_decision,
            [
                review.status.value,
                review.is_featured,
                response.text if response else None,
                response.responded_by if response else None,
                response.responded_at if response else None,
                review.updated_at,
                review.review_id,
            ],
        )
        await self._execute(
            self._update_user_status,
            [review.status.value, review.user_id, review.created_at, review.review_id],
        )
        if previous_status != review.status:
            await self._execute(
                self._delete_by_status,
                [previous_status.value, review.created_at, review.review_id],
            )
            await self._execute(
                self._insert_by_status,
                [review.status.value, review.created_at, review.review_id],
            )

    async def increment(
        self, review_id: UUID, counter: ReviewCounter, amount: int = 1
    ) -> int:
        """Atomically bump a counter and return its new value."""
        await self._execute(self._increment[counter], [amount, review_id])
        result = await self._execute(self._get_counters, [review_id])
        row = result.one()
        return (getattr(row, counter.value) or 0) if row else 0

    async def append_flag(self, review_id: UUID, flag: ReviewFlag) -> None:
        await self._execute(self._append_flag, [[flag.to_map()], review_id])

    # ==========================================================================
    # Reads
    # ==========================================================================

    async def get(self, review_id: UUID) -> Review | None:
        result = await self._execute(self._get_review, [review_id])
        row = result.one()
        if not row:
            return None
        counters = (await self._execute(self._get_counters, [review_id])).one()
        return Review.from_row(row, counters)

    async def has_pending(self, user_id: str) -> bool:
        rows = await self._execute(self._get_user_statuses, [user_id])
        return any(row.status == ReviewStatus.PENDING.value for row in rows)

    async def count_created_since(self, user_id: str, since: datetime) -> int:
        result = await self._execute(self._count_user_since, [user_id, since])
        row = result.one()
        return row.count if row else 0

    async def list_by_status(self, status: ReviewStatus) -> list[Review]:
        rows = await self._execute(self._get_ids_by_status, [status.value])
        reviews = []
        for row in rows:
            review = await self.get(row.review_id)
            # The queue row can outlive a concurrent re-decision
            if review and review.status == status:
                reviews.append(review)
        return reviews

    async def list_all(self) -> list[Review]:
        reviews: list[Review] = []
        for status in ReviewStatus:
            reviews.extend(await self.list_by_status(status))
        reviews.sort(key=lambda r: r.created_at, reverse=True)
        return reviews
