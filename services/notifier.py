"""
services/notifier.py
--------------------
Delivers renewal reminders to users.

A notifier answers one question for the reminder job: was the reminder
actually sent? ``True`` means delivered, ``False`` means deliberately
suppressed (preferences, no reachable address). Transport failures raise.
"""

from datetime import date
from typing import Protocol

from telegram import Bot
from telegram.constants import ParseMode
from telegram.helpers import escape_markdown

from config import APP_URL, TELEGRAM_BOT_TOKEN
from models.subscription import NotificationPreferences, Recipient
from utils.logger import get_logger

logger = get_logger(__name__)


class ReminderNotifier(Protocol):
    """Anything the reminder job can hand a due reminder to."""

    async def send(
        self,
        recipient: Recipient,
        service_name: str,
        renewal_date: date,
        preferences: NotificationPreferences,
    ) -> bool:
        ...


def format_renewal_date(renewal_date: date) -> str:
    """June 5, 2023 style, matching the reminder emails."""
    return f"{renewal_date:%B} {renewal_date.day}, {renewal_date.year}"


def build_reminder_text(service_name: str, renewal_date: date, app_url: str = APP_URL) -> str:
    """Compose the Markdown reminder message."""
    name = escape_markdown(service_name)
    return (
        f"⏰ *{name} subscription renews on {format_renewal_date(renewal_date)}*\n\n"
        f"Review or cancel it here: {app_url}/subscriptions"
    )


class TelegramNotifier:
    """
    Sends reminders as Telegram messages to the user's chat.

    Usage:
        async with TelegramNotifier() as notifier:
            sent = await notifier.send(recipient, "Netflix", renewal, prefs)
    """

    def __init__(self, token: str = TELEGRAM_BOT_TOKEN, bot: Bot | None = None):
        if bot is None and not token:
            raise ValueError("TELEGRAM_BOT_TOKEN is not set")
        self.bot = bot or Bot(token)

    async def __aenter__(self) -> "TelegramNotifier":
        await self.bot.initialize()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.bot.shutdown()

    async def send(
        self,
        recipient: Recipient,
        service_name: str,
        renewal_date: date,
        preferences: NotificationPreferences,
    ) -> bool:
        """
        Send one renewal reminder.

        Returns:
            True if Telegram accepted the message, False if it was skipped.

        Raises:
            telegram.error.TelegramError: On delivery failure.
        """
        if not preferences.send_renewal_reminders:
            logger.info(f"Skipping reminder for {recipient.email} (user disabled renewal reminders)")
            return False
        if recipient.telegram_id is None:
            logger.info(f"Skipping reminder for {recipient.email} (no Telegram chat linked)")
            return False

        await self.bot.send_message(
            chat_id=recipient.telegram_id,
            text=build_reminder_text(service_name, renewal_date),
            parse_mode=ParseMode.MARKDOWN,
        )
        return True
