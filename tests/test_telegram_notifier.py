"""Tests for src.adapters.telegram_notifier."""

import pytest
from unittest.mock import AsyncMock, MagicMock

from src.adapters.telegram_notifier import TelegramNotifier


class TestTelegramNotifier:
    @pytest.mark.asyncio
    async def test_error_sent_to_every_chat(self):
        bot = MagicMock()
        bot.send_message = AsyncMock()
        await TelegramNotifier(bot, [1, 2]).notify_error("Quota exceeded")

        assert bot.send_message.await_count == 2
        assert bot.send_message.await_args_list[0].kwargs == {"chat_id": 1, "text": "⚠️ Quota exceeded"}

    @pytest.mark.asyncio
    async def test_success_prefix(self):
        bot = MagicMock()
        bot.send_message = AsyncMock()
        await TelegramNotifier(bot, [7]).notify_success("Quote created successfully")

        bot.send_message.assert_awaited_once_with(chat_id=7, text="✅ Quote created successfully")
