"""
Unit tests for Telegram reminder delivery.
"""
from datetime import date
from unittest.mock import AsyncMock

import pytest
from telegram.constants import ParseMode
from telegram.error import NetworkError

from models.subscription import NotificationPreferences, Recipient
from services.notifier import TelegramNotifier, build_reminder_text, format_renewal_date

RENEWAL = date(2023, 6, 20)


class TestReminderText:
    """Message formatting."""

    def test_format_renewal_date(self):
        assert format_renewal_date(date(2023, 6, 5)) == "June 5, 2023"

    def test_text_names_service_date_and_link(self):
        text = build_reminder_text("Netflix", RENEWAL, app_url="https://example.com")
        assert "Netflix subscription renews on June 20, 2023" in text
        assert "https://example.com/subscriptions" in text

    def test_markdown_in_service_name_is_escaped(self):
        assert "my\\_service" in build_reminder_text("my_service", RENEWAL)


class TestTelegramNotifier:
    """send() returns True only when a message went out."""

    @pytest.mark.asyncio
    async def test_sends_to_linked_chat(self, recipient):
        bot = AsyncMock()
        sent = await TelegramNotifier(bot=bot).send(recipient, "Netflix", RENEWAL, recipient.preferences)

        assert sent is True
        bot.send_message.assert_awaited_once()
        kwargs = bot.send_message.call_args.kwargs
        assert kwargs["chat_id"] == 1234
        assert kwargs["parse_mode"] == ParseMode.MARKDOWN
        assert "June 20, 2023" in kwargs["text"]

    @pytest.mark.asyncio
    async def test_disabled_preferences_suppress(self, recipient):
        bot = AsyncMock()
        prefs = NotificationPreferences(send_renewal_reminders=False)
        sent = await TelegramNotifier(bot=bot).send(recipient, "Netflix", RENEWAL, prefs)

        assert sent is False
        bot.send_message.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_no_linked_chat_suppresses(self):
        bot = AsyncMock()
        unlinked = Recipient(user_id="u", email="u@example.com", telegram_id=None)
        sent = await TelegramNotifier(bot=bot).send(unlinked, "Netflix", RENEWAL, unlinked.preferences)

        assert sent is False
        bot.send_message.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_transport_errors_propagate(self, recipient):
        bot = AsyncMock()
        bot.send_message.side_effect = NetworkError("connection reset")
        with pytest.raises(NetworkError):
            await TelegramNotifier(bot=bot).send(recipient, "Netflix", RENEWAL, recipient.preferences)

    @pytest.mark.asyncio
    async def test_context_manager_initializes_and_shuts_down_bot(self):
        bot = AsyncMock()
        async with TelegramNotifier(bot=bot) as notifier:
            assert notifier.bot is bot
            bot.initialize.assert_awaited_once()
        bot.shutdown.assert_awaited_once()

    def test_requires_token(self):
        with pytest.raises(ValueError):
            TelegramNotifier(token="")
