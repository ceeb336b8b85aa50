"""
services/renewal_service.py
---------------------------
Backfills renewal events for every billing-cycle boundary an active
subscription has crossed, including boundaries that passed while the
job was not running.

Re-running is always safe: each event is keyed by (subscription, date)
and inserted with ON CONFLICT DO NOTHING, so a second run with no time
passed creates nothing.
"""

from datetime import date
from itertools import islice
from typing import Optional

from config import RENEWAL_BATCH_SIZE
from models.job import JobResult
from models.subscription import Subscription
from repositories.renewal_repo import RenewalRepository
from repositories.subscription_repo import SubscriptionRepository
from services.renewal_clock import iter_missed_renewals
from utils.logger import get_logger
from utils.shutdown import ShutdownFlag

logger = get_logger(__name__)

JOB_NAME = "renewals"


class RenewalBackfillJob:
    """
    Records missed renewals for all active subscriptions.

    Responsibilities:
        - Find each subscription's last recorded renewal.
        - Compute every boundary between it and today.
        - Insert one renewal event per boundary, in batches.
    """

    def __init__(
        self,
        subscriptions: Optional[SubscriptionRepository] = None,
        renewals: Optional[RenewalRepository] = None,
        shutdown: Optional[ShutdownFlag] = None,
        batch_size: int = RENEWAL_BATCH_SIZE,
    ):
        self.subscriptions = subscriptions or SubscriptionRepository()
        self.renewals = renewals or RenewalRepository()
        self.shutdown = shutdown or ShutdownFlag()
        self.batch_size = max(1, batch_size)

    def run(self, today: Optional[date] = None) -> JobResult:
        """
        Process every active subscription once.

        Args:
            today: Reference date; defaults to the current date.

        Returns:
            JobResult with processed / renewed / error counts.

        Raises:
            Exception: If active subscriptions cannot be listed at all.
        """
        today = today or date.today()
        result = JobResult(job_name=JOB_NAME)
        logger.info("Starting subscription renewal process...")

        try:
            active = self.subscriptions.get_active()
        except Exception as e:
            logger.error(f"[{JOB_NAME}] Failed to list active subscriptions: {e}")
            raise

        logger.info(f"Found {len(active)} active subscriptions to process")

        for sub in active:
            if self.shutdown.requested:
                result.interrupted = True
                logger.warning(f"[{JOB_NAME}] Stopping early after {result.processed} subscription(s)")
                break

            result.processed += 1
            try:
                result.succeeded += self.backfill(sub, today)
            except Exception as e:
                result.errors += 1
                logger.error(f"[{JOB_NAME}] Error processing subscription {sub.id}: {e}")

        logger.info(f"Subscription renewal process completed. {result}")
        return result

    def backfill(self, sub: Subscription, today: date) -> int:
        """
        Insert the missing renewal events of one subscription.

        Returns:
            Number of events created.
        """
        if not sub.renews():
            logger.debug(f"Subscription {sub.id} is one-time, nothing to backfill")
            return 0

        last = self.renewals.get_last_occurrence(sub.id) or sub.start_date
        due = iter_missed_renewals(last, sub.cycle, today, anchor=sub.start_date)

        created = 0
        while True:
            batch = list(islice(due, self.batch_size))
            if not batch:
                break
            created += self.renewals.add_many_if_absent(sub, batch)

        if created:
            logger.info(f"Created {created} renewal(s) for subscription {sub.id}, {sub} (last: {last})")
        else:
            logger.debug(f"No renewals due for subscription {sub.id}")
        return created
