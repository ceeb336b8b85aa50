"""
services/reminder_service.py
----------------------------
Sends each user one reminder per upcoming renewal, `remind_days_before`
days ahead of it.

Per subscription and cycle the reminder moves NOT_YET_DUE -> DUE_UNSENT
-> SENT. SENT is recorded in reminder_log keyed by the reminder date, so
once the next renewal date moves forward the subscription starts over
at NOT_YET_DUE for the new date.
"""

import asyncio
from datetime import date, timedelta
from enum import Enum
from typing import Optional

from config import NOTIFICATION_TIMEOUT_SECONDS
from models.events import ReminderLogEntry
from models.job import JobResult
from models.subscription import Recipient, Subscription
from repositories.reminder_repo import ReminderRepository
from repositories.subscription_repo import SubscriptionRepository
from services.notifier import ReminderNotifier
from services.renewal_clock import next_renewal
from utils.logger import get_logger
from utils.shutdown import ShutdownFlag

logger = get_logger(__name__)

JOB_NAME = "reminders"


class ReminderState(str, Enum):
    NOT_YET_DUE = "not_yet_due"
    DUE_UNSENT = "due_unsent"
    SENT = "sent"
    EXPIRED = "expired"  # one-time purchase already behind us


class ReminderJob:
    """
    Handles the reminder run for all active subscriptions.

    Responsibilities:
        - Work out each subscription's next renewal and reminder date.
        - Hand due, unsent reminders to the notifier under a timeout.
        - Log a reminder only once the notifier confirms it was sent.
    """

    def __init__(
        self,
        notifier: ReminderNotifier,
        subscriptions: Optional[SubscriptionRepository] = None,
        reminders: Optional[ReminderRepository] = None,
        shutdown: Optional[ShutdownFlag] = None,
        timeout: float = NOTIFICATION_TIMEOUT_SECONDS,
    ):
        self.notifier = notifier
        self.subscriptions = subscriptions or SubscriptionRepository()
        self.reminders = reminders or ReminderRepository()
        self.shutdown = shutdown or ShutdownFlag()
        self.timeout = timeout

    @staticmethod
    def reminder_date_for(sub: Subscription, today: date) -> tuple[date, date]:
        """
        Returns:
            (renewal_date, reminder_date) for the renewal falling on or after
            today, so a zero lead time is due on the renewal day itself.
        """
        renewal = next_renewal(sub.start_date, sub.cycle, today - timedelta(days=1))
        return renewal, renewal - timedelta(days=max(0, sub.remind_days_before))

    def state_of(self, sub: Subscription, today: date) -> ReminderState:
        """Where this subscription's current cycle sits in the reminder lifecycle."""
        renewal, reminder_date = self.reminder_date_for(sub, today)
        if renewal < today:
            return ReminderState.EXPIRED
        if reminder_date > today:
            return ReminderState.NOT_YET_DUE
        if self.reminders.exists(sub.id, reminder_date):
            return ReminderState.SENT
        return ReminderState.DUE_UNSENT

    async def run(self, today: Optional[date] = None) -> JobResult:
        """
        Process every active subscription once.

        Args:
            today: Reference date; defaults to the current date.

        Returns:
            JobResult with processed / sent / error counts.

        Raises:
            Exception: If active subscriptions cannot be listed at all.
        """
        today = today or date.today()
        result = JobResult(job_name=JOB_NAME)
        logger.info("Starting reminder process...")

        try:
            active = self.subscriptions.get_active_with_recipients()
        except Exception as e:
            logger.error(f"[{JOB_NAME}] Failed to list active subscriptions: {e}")
            raise

        for sub, recipient in active:
            if self.shutdown.requested:
                result.interrupted = True
                logger.warning(f"[{JOB_NAME}] Stopping early after {result.processed} subscription(s)")
                break

            result.processed += 1
            try:
                if await self.remind(sub, recipient, today):
                    result.succeeded += 1
            except asyncio.TimeoutError:
                result.errors += 1
                logger.error(
                    f"[{JOB_NAME}] Notification for subscription {sub.id} timed out after {self.timeout}s"
                )
            except Exception as e:
                result.errors += 1
                logger.error(f"[{JOB_NAME}] Failed to send reminder for subscription {sub.id}: {e}")

        logger.info(f"Reminder process completed. {result}")
        return result

    async def remind(self, sub: Subscription, recipient: Recipient, today: date) -> bool:
        """
        Send and log the reminder for one subscription if it is due.

        Returns:
            True if a reminder was sent by this call.
        """
        state = self.state_of(sub, today)
        if state is not ReminderState.DUE_UNSENT:
            logger.debug(f"Subscription {sub.id}: {state.value}, nothing to send")
            return False

        renewal, reminder_date = self.reminder_date_for(sub, today)
        sent = await asyncio.wait_for(
            self.notifier.send(recipient, sub.service_name, renewal, recipient.preferences),
            timeout=self.timeout,
        )
        if not sent:
            # Not logged, so the reminder can still go out if preferences change.
            logger.info(f"Reminder for subscription {sub.id} suppressed by notifier")
            return False

        entry = ReminderLogEntry(subscription_id=sub.id, user_id=sub.user_id, reminder_date=reminder_date)
        if not self.reminders.add_if_absent(entry):
            logger.warning(f"Reminder for subscription {sub.id} on {reminder_date} was already logged by another run")
        logger.info(f"Sent reminder for subscription {sub.id} to {recipient.email} (renews {renewal})")
        return True
