"""
repositories/renewal_repo.py
-----------------------------
Data access layer for renewal events.
Rows are append-only and keyed by (subscription_id, occurred_on); inserts
go through ON CONFLICT DO NOTHING so concurrent backfill runs can race
without producing duplicates.
"""

from datetime import date
from typing import Iterable, Optional

from psycopg2 import extras

from db.connection import get_connection, release_connection, transaction
from models.events import RenewalEvent
from models.subscription import Subscription
from utils.logger import get_logger

logger = get_logger(__name__)


class RenewalRepository:
    """Repository for the renewal_events table."""

    # ── READ ──────────────────────────────────────────────

    def get_latest(self, subscription_id: str) -> Optional[RenewalEvent]:
        """
        Fetch the most recent renewal event for a subscription.

        Returns:
            The event with the greatest occurred_on, or None if the
            subscription has never renewed.
        """
        sql = """
            SELECT id, subscription_id, user_id, occurred_on, amount, currency, created_at
            FROM renewal_events
            WHERE subscription_id = %s
            ORDER BY occurred_on DESC
            LIMIT 1;
        """
        conn = get_connection()
        try:
            with conn.cursor() as cur:
                cur.execute(sql, (subscription_id,))
                row = cur.fetchone()
                return self._row_to_event(row) if row else None
        finally:
            release_connection(conn)

    def get_last_occurrence(self, subscription_id: str) -> Optional[date]:
        """Date of the most recent renewal event, or None."""
        event = self.get_latest(subscription_id)
        return event.occurred_on if event else None

    # ── CREATE ────────────────────────────────────────────

    def add_many_if_absent(self, subscription: Subscription, dates: Iterable[date]) -> int:
        """
        Insert one renewal event per date, skipping dates already recorded.

        Amount and currency are snapshotted from the subscription as it is
        now. The whole batch is one transaction.

        Args:
            subscription: The subscription that renewed.
            dates: Occurrence dates to record.

        Returns:
            Number of events actually inserted (conflicts excluded).
        """
        rows = [
            (subscription.id, subscription.user_id, d, subscription.price, subscription.currency)
            for d in dates
        ]
        if not rows:
            return 0

        sql = """
            INSERT INTO renewal_events
                (subscription_id, user_id, occurred_on, amount, currency)
            VALUES %s
            ON CONFLICT (subscription_id, occurred_on) DO NOTHING
            RETURNING id;
        """
        try:
            with transaction() as cur:
                inserted = extras.execute_values(cur, sql, rows, page_size=len(rows), fetch=True)
        except Exception as e:
            logger.error(f"Failed to insert renewal events for subscription {subscription.id}: {e}")
            raise

        skipped = len(rows) - len(inserted)
        if skipped:
            logger.debug(f"Skipped {skipped} existing renewal(s) for subscription {subscription.id}")
        return len(inserted)

    # ── HELPERS ───────────────────────────────────────────

    @staticmethod
    def _row_to_event(row: tuple) -> RenewalEvent:
        """Convert a database row tuple to a RenewalEvent domain object."""
        return RenewalEvent(
            id=row[0],
            subscription_id=row[1],
            user_id=row[2],
            occurred_on=row[3],
            amount=row[4],
            currency=row[5],
            created_at=row[6],
        )
