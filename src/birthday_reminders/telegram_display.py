from __future__ import annotations

import logging

from telegram import Bot

from birthday_reminders.scheduler import PERMISSION_DENIED, PERMISSION_GRANTED

LOGGER = logging.getLogger(__name__)


class TelegramNotificationDisplay:
    """Delivers polled reminders as chat messages to the configured owner."""

    def __init__(self, *, bot: Bot, chat_id: int | None) -> None:
        self._bot = bot
        self._chat_id = chat_id

    async def permission_state(self) -> str:
        return PERMISSION_GRANTED if self._chat_id is not None else PERMISSION_DENIED

    async def request_permission(self) -> str:
        return await self.permission_state()

    async def show(self, title: str, body: str, tag: str) -> None:
        if self._chat_id is None:
            return
        await self._bot.send_message(chat_id=self._chat_id, text=render_notification(title, body))
        LOGGER.debug("Sent notification %s", tag)


def render_notification(title: str, body: str) -> str:
    if not body:
        return title
    return f"{title}\n{body}"
