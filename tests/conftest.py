"""
Pytest configuration and shared fixtures for the renewal scheduler.

The jobs only talk to repositories and a notifier, so the fakes below
stand in for PostgreSQL and Telegram with the same idempotency rules
(unique (subscription, date) keys).
"""
import asyncio
import sys
from datetime import date
from decimal import Decimal
from pathlib import Path

import pytest

# Ensure the project root is importable
sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

from models.subscription import NotificationPreferences, Recipient, Subscription  # noqa: E402

TODAY = date(2023, 6, 15)


class FakeSubscriptionRepository:
    def __init__(self, subscriptions=None, recipients=None, fail=False):
        self.subscriptions = list(subscriptions or [])
        self.recipients = dict(recipients or {})
        self.fail = fail

    def get_active(self):
        if self.fail:
            raise ConnectionError("database unavailable")
        return [s for s in self.subscriptions if s.is_active]

    def get_active_with_recipients(self):
        return [
            (s, self.recipients.get(s.user_id) or Recipient(user_id=s.user_id, email=f"{s.user_id}@example.com", telegram_id=42))
            for s in self.get_active()
        ]


class FakeRenewalRepository:
    """In-memory renewal_events with the (subscription_id, occurred_on) unique key."""

    def __init__(self, failing_ids=()):
        self.events = {}
        self.batches = []
        self.failing_ids = set(failing_ids)

    def get_last_occurrence(self, subscription_id):
        if subscription_id in self.failing_ids:
            raise RuntimeError("connection reset")
        dates = [d for (sid, d) in self.events if sid == subscription_id]
        return max(dates) if dates else None

    def add_many_if_absent(self, subscription, dates):
        self.batches.append(list(dates))
        created = 0
        for d in dates:
            key = (subscription.id, d)
            if key not in self.events:
                self.events[key] = (subscription.price, subscription.currency)
                created += 1
        return created

    def dates_for(self, subscription_id):
        return sorted(d for (sid, d) in self.events if sid == subscription_id)


class FakeReminderRepository:
    """In-memory reminder_log with the (subscription_id, reminder_date) unique key."""

    def __init__(self):
        self.entries = {}

    def exists(self, subscription_id, reminder_date):
        return (subscription_id, reminder_date) in self.entries

    def add_if_absent(self, entry):
        key = (entry.subscription_id, entry.reminder_date)
        if key in self.entries:
            return False
        self.entries[key] = entry
        return True


class FakeNotifier:
    """Records calls; returns `result`, or raises `error`, after `delay` seconds."""

    def __init__(self, result=True, error=None, delay=0.0):
        self.result = result
        self.error = error
        self.delay = delay
        self.calls = []

    async def send(self, recipient, service_name, renewal_date, preferences):
        self.calls.append((recipient, service_name, renewal_date, preferences))
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return self.result


def make_subscription(
    id="sub-1",
    start_date=date(2023, 3, 10),
    billing_cycle="monthly",
    remind_days_before=3,
    price="9.99",
    is_active=True,
    user_id="user-1",
):
    return Subscription(
        id=id,
        user_id=user_id,
        service_id="svc-netflix",
        service_name="Netflix",
        start_date=start_date,
        billing_cycle=billing_cycle,
        price=Decimal(price),
        currency="EUR",
        is_active=is_active,
        remind_days_before=remind_days_before,
    )


@pytest.fixture
def today():
    return TODAY


@pytest.fixture
def renewals():
    return FakeRenewalRepository()


@pytest.fixture
def reminders():
    return FakeReminderRepository()


@pytest.fixture
def notifier():
    return FakeNotifier()


@pytest.fixture
def recipient():
    return Recipient(
        user_id="user-1",
        email="ada@example.com",
        telegram_id=1234,
        preferences=NotificationPreferences(send_renewal_reminders=True),
    )
