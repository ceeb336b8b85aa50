"""
repositories/subscription_repo.py
----------------------------------
Read-only data access for subscriptions.
The scheduler never writes to the `subscriptions` table; the application
owns it.
"""

from db.connection import get_connection, release_connection
from models.subscription import NotificationPreferences, Recipient, Subscription
from utils.logger import get_logger

logger = get_logger(__name__)

_SUBSCRIPTION_COLUMNS = """
    s.id, s.user_id, s.service_id, sv.name, s.start_date, s.billing_cycle,
    s.price, s.currency, s.is_active, s.remind_days_before
"""


class SubscriptionRepository:
    """Repository for the active-subscription queries the jobs run."""

    def get_active(self) -> list[Subscription]:
        """
        Get every active subscription, oldest first.

        Raises:
            psycopg2.Error: Propagated; the calling job treats it as fatal.
        """
        sql = f"""
            SELECT {_SUBSCRIPTION_COLUMNS}
            FROM subscriptions s
            JOIN services sv ON sv.id = s.service_id
            WHERE s.is_active = TRUE
            ORDER BY s.start_date ASC, s.id ASC;
        """
        conn = get_connection()
        try:
            with conn.cursor() as cur:
                cur.execute(sql)
                return [self._row_to_subscription(r) for r in cur.fetchall()]
        finally:
            release_connection(conn)

    def get_active_with_recipients(self) -> list[tuple[Subscription, Recipient]]:
        """
        Get every active subscription joined with who should be reminded.

        Users without a user_settings row get default preferences.

        Returns:
            List of (Subscription, Recipient) pairs.
        """
        sql = f"""
            SELECT {_SUBSCRIPTION_COLUMNS},
                   u.email, u.telegram_id,
                   COALESCE(us.send_renewal_reminders, TRUE)
            FROM subscriptions s
            JOIN services sv ON sv.id = s.service_id
            JOIN users u ON u.id = s.user_id
            LEFT JOIN user_settings us ON us.user_id = s.user_id
            WHERE s.is_active = TRUE
            ORDER BY s.start_date ASC, s.id ASC;
        """
        conn = get_connection()
        try:
            with conn.cursor() as cur:
                cur.execute(sql)
                pairs = []
                for row in cur.fetchall():
                    subscription = self._row_to_subscription(row[:10])
                    recipient = Recipient(
                        user_id=subscription.user_id,
                        email=row[10],
                        telegram_id=row[11],
                        preferences=NotificationPreferences(send_renewal_reminders=bool(row[12])),
                    )
                    pairs.append((subscription, recipient))
                return pairs
        finally:
            release_connection(conn)

    # ── HELPERS ───────────────────────────────────────────

    @staticmethod
    def _row_to_subscription(row: tuple) -> Subscription:
        """Convert a database row tuple to a Subscription domain object."""
        return Subscription(
            id=row[0],
            user_id=row[1],
            service_id=row[2],
            service_name=row[3],
            start_date=row[4],
            billing_cycle=row[5],
            price=row[6],
            currency=row[7],
            is_active=row[8],
            remind_days_before=int(row[9] or 0),
        )
