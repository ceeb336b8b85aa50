"""
repositories/reminder_repo.py
------------------------------
Data access layer for the reminder log.
"""

from datetime import date

from db.connection import get_connection, release_connection, transaction
from models.events import ReminderLogEntry
from utils.logger import get_logger

logger = get_logger(__name__)


class ReminderRepository:
    """Repository for the reminder_log table."""

    def exists(self, subscription_id: str, reminder_date: date) -> bool:
        """Has a reminder already been logged for this subscription and date?"""
        sql = "SELECT 1 FROM reminder_log WHERE subscription_id = %s AND reminder_date = %s LIMIT 1;"
        conn = get_connection()
        try:
            with conn.cursor() as cur:
                cur.execute(sql, (subscription_id, reminder_date))
                return cur.fetchone() is not None
        finally:
            release_connection(conn)

    def add_if_absent(self, entry: ReminderLogEntry) -> bool:
        """
        Record that a reminder was sent.

        Uses ON CONFLICT so a second run that raced past `exists()` does not
        fail; it simply finds the row already there.

        Returns:
            True if this call inserted the row, False if it already existed.
        """
        sql = """
            INSERT INTO reminder_log (subscription_id, user_id, reminder_date)
            VALUES (%s, %s, %s)
            ON CONFLICT (subscription_id, reminder_date) DO NOTHING
            RETURNING id, created_at;
        """
        try:
            with transaction() as cur:
                cur.execute(sql, (entry.subscription_id, entry.user_id, entry.reminder_date))
                row = cur.fetchone()
        except Exception as e:
            logger.error(f"Failed to log reminder for subscription {entry.subscription_id}: {e}")
            raise

        if row is None:
            return False
        entry.id, entry.created_at = row[0], row[1]
        return True
