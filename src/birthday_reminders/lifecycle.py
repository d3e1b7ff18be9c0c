from __future__ import annotations

import logging

from birthday_reminders.birthday_store import BirthdayStorage
from birthday_reminders.scheduler import NotificationScheduler

LOGGER = logging.getLogger(__name__)


class NotificationLifecycle:
    def __init__(self, *, scheduler: NotificationScheduler, storage: BirthdayStorage) -> None:
        self._scheduler = scheduler
        self._storage = storage

    @property
    def scheduler(self) -> NotificationScheduler:
        return self._scheduler

    async def cancel(self, birthday_id: str, message_id: str) -> None:
        await self._scheduler.cancel(birthday_id, message_id)

    async def cancel_all_for_birthday(self, birthday_id: str) -> None:
        await self._scheduler.cancel_all_for_birthday(birthday_id)

    async def reschedule_all(self) -> int:
        """Drop every pending entry, then schedule each active message again.

        The cancel batch completes before the first schedule call so a stale
        entry can never survive next to its replacement.
        """
        await self._scheduler.cancel_all()

        scheduled = 0
        for birthday in await self._storage.get_all():
            for message in birthday.scheduled_messages:
                if not message.active:
                    continue
                if await self._scheduler.schedule(birthday, message):
                    scheduled += 1

        LOGGER.info("Rescheduled %s notifications", scheduled)
        return scheduled
