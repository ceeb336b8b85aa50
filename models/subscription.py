"""
models/subscription.py
----------------------
Domain models for tracked subscriptions and the people they belong to.
"""

from dataclasses import dataclass, field
from functools import cached_property
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Optional

from utils.logger import get_logger

logger = get_logger(__name__)


class BillingCycle(str, Enum):
    """How often a subscription is charged."""

    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    QUARTERLY = "quarterly"
    YEARLY = "yearly"
    ONE_TIME = "one_time"

    @classmethod
    def parse(cls, value) -> "BillingCycle":
        """
        Convert a stored value to a BillingCycle.

        Unrecognized values fall back to MONTHLY with a warning instead of
        failing, so one bad row never stops a scheduler run.
        """
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            logger.warning(f"Unknown billing cycle: {value!r}, defaulting to monthly")
            return cls.MONTHLY


@dataclass
class Subscription:
    """
    A recurring charge tracked for a user.

    Attributes:
        id: Database primary key.
        user_id: Owning user's ID.
        service_id: The service being paid for.
        service_name: Display name of the service (joined in for reminders).
        start_date: First billing date; renewals are counted from here.
        billing_cycle: Raw cycle value as stored (see BillingCycle.parse).
        price: Amount charged per cycle.
        currency: ISO currency code.
        is_active: Inactive subscriptions are ignored by every job.
        remind_days_before: Reminder lead time in days.
    """
    id: str
    user_id: str
    service_id: str
    start_date: date
    billing_cycle: str
    price: Decimal
    service_name: str = ""
    currency: str = "EUR"
    is_active: bool = True
    remind_days_before: int = 3

    @cached_property
    def cycle(self) -> BillingCycle:
        return BillingCycle.parse(self.billing_cycle)

    def renews(self) -> bool:
        """One-time purchases never renew."""
        return self.cycle is not BillingCycle.ONE_TIME

    def __str__(self) -> str:
        status = "active" if self.is_active else "cancelled"
        return (
            f"{self.service_name or self.service_id}: {self.price} {self.currency} "
            f"({self.billing_cycle}, since {self.start_date}, {status})"
        )


@dataclass
class NotificationPreferences:
    """Per-user notification switches; a missing settings row means defaults."""
    send_renewal_reminders: bool = True


@dataclass
class Recipient:
    """Where a user's reminders go."""
    user_id: str
    email: str
    telegram_id: Optional[int] = None
    preferences: NotificationPreferences = field(default_factory=NotificationPreferences)
