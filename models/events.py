"""
models/events.py
----------------
Append-only records written by the scheduler jobs.
"""

from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from typing import Optional


@dataclass
class RenewalEvent:
    """
    One occurrence of a subscription renewing.

    At most one exists per (subscription_id, occurred_on); amount and
    currency are a snapshot of the subscription at insert time.
    """
    subscription_id: str
    user_id: str
    occurred_on: date
    amount: Decimal
    currency: str
    id: Optional[int] = None
    created_at: Optional[datetime] = None


@dataclass
class ReminderLogEntry:
    """Proof that a reminder went out for one (subscription, reminder date)."""
    subscription_id: str
    user_id: str
    reminder_date: date
    id: Optional[int] = None
    created_at: Optional[datetime] = None
