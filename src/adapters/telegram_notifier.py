"""Telegram notification adapter — implements NotificationPort.

Wraps a telegram.Bot instance and forwards service notices to one or more
chats.
"""

from __future__ import annotations

import logging

from telegram import Bot

logger = logging.getLogger(__name__)


class TelegramNotifier:
    """Telegram implementation of NotificationPort."""

    def __init__(self, bot: Bot, chat_ids: list[int]) -> None:
        self._bot = bot
        self._chat_ids = list(chat_ids)

    async def _send(self, text: str) -> None:
        for chat_id in self._chat_ids:
            await self._bot.send_message(chat_id=chat_id, text=text)

    async def notify_error(self, text: str) -> None:
        await self._send(f"⚠️ {text}")

    async def notify_success(self, text: str) -> None:
        await self._send(f"✅ {text}")
