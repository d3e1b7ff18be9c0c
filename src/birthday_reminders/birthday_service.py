from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from datetime import datetime, timedelta
from typing import Callable, Protocol

from birthday_reminders.birthday_store import BirthdayStorage, with_message_replaced
from birthday_reminders.categories import normalize_category
from birthday_reminders.category_store import CategoryOverlayStore
from birthday_reminders.date_logic import DEFAULT_LEAP_DAY_RULE, next_fire_instant, parse_time_string
from birthday_reminders.diagnostics import report_failure
from birthday_reminders.identity import generate_id
from birthday_reminders.lifecycle import NotificationLifecycle
from birthday_reminders.models import (
    DEFAULT_SCHEDULED_TIME,
    MESSAGE_PRIORITIES,
    MESSAGE_TYPES,
    Birthday,
    ScheduledMessage,
)
from birthday_reminders.zodiac import zodiac_sign

LOGGER = logging.getLogger(__name__)


class CalendarSync(Protocol):
    def is_enabled(self) -> bool: ...

    async def create(self, birthday: Birthday) -> str: ...

    async def update(self, birthday: Birthday, event_id: str) -> None: ...

    async def delete(self, event_id: str) -> None: ...


@dataclass(frozen=True)
class UpcomingMessage:
    birthday: Birthday
    message: ScheduledMessage
    fire_at: datetime


def with_zodiac(birthday: Birthday) -> Birthday:
    if birthday.zodiac_sign:
        return birthday
    return replace(birthday, zodiac_sign=zodiac_sign(birthday.birth_date))


class BirthdayService:
    def __init__(
        self,
        *,
        storage: BirthdayStorage,
        categories: CategoryOverlayStore,
        lifecycle: NotificationLifecycle,
        clock: Callable[[], datetime],
        calendar: CalendarSync | None = None,
        id_factory: Callable[[], str] = generate_id,
        leap_day_rule: str = DEFAULT_LEAP_DAY_RULE,
    ) -> None:
        self._storage = storage
        self._categories = categories
        self._lifecycle = lifecycle
        self._clock = clock
        self._calendar = calendar
        self._id_factory = id_factory
        self._leap_day_rule = leap_day_rule

    @property
    def lifecycle(self) -> NotificationLifecycle:
        return self._lifecycle

    async def load_birthdays(self) -> list[Birthday]:
        return [with_zodiac(birthday) for birthday in await self._storage.get_all()]

    async def get_birthday(self, birthday_id: str) -> Birthday:
        for birthday in await self.load_birthdays():
            if birthday.id == birthday_id:
                return birthday
        raise KeyError(birthday_id)

    def _normalized(self, birthday: Birthday) -> Birthday:
        name = birthday.name.strip()
        if not name:
            raise ValueError("birthday name must not be empty")
        category = normalize_category(birthday.category, self._categories.visible_ids())
        return with_zodiac(replace(birthday, name=name, category=category))

    async def add_birthday(self, birthday: Birthday) -> Birthday:
        birthday_id = self._id_factory()
        created = self._normalized(
            replace(
                birthday,
                id=birthday_id,
                google_calendar_event_id=None,
                scheduled_messages=[
                    replace(message, birthday_id=birthday_id) for message in birthday.scheduled_messages
                ],
            )
        )

        event_id = await self._calendar_create(created)
        if event_id:
            created = replace(created, google_calendar_event_id=event_id)

        await self._storage.add(created)
        await self._schedule_messages(created)
        LOGGER.info("Added birthday %s (%s)", created.name, created.id)
        return created

    async def update_birthday(self, birthday: Birthday) -> Birthday:
        updated = self._normalized(birthday)
        await self._calendar_update(updated)
        await self._storage.update(updated)

        await self._lifecycle.cancel_all_for_birthday(updated.id)
        await self._schedule_messages(updated)
        return updated

    async def delete_birthday(self, birthday_id: str) -> None:
        birthday = await self.get_birthday(birthday_id)

        await self._lifecycle.cancel_all_for_birthday(birthday_id)
        if birthday.google_calendar_event_id:
            await self._calendar_delete(birthday.google_calendar_event_id)
        await self._storage.delete(birthday_id)
        LOGGER.info("Deleted birthday %s (%s)", birthday.name, birthday_id)

    async def clear_all(self) -> None:
        await self._storage.clear()
        await self._lifecycle.reschedule_all()

    async def import_birthdays(self, birthdays: list[Birthday]) -> list[Birthday]:
        existing_ids = {birthday.id for birthday in await self._storage.get_all()}

        imported: list[Birthday] = []
        for birthday in birthdays:
            birthday_id = birthday.id
            if not birthday_id or birthday_id in existing_ids:
                birthday_id = self._id_factory()
            existing_ids.add(birthday_id)

            record = self._normalized(
                replace(
                    birthday,
                    id=birthday_id,
                    scheduled_messages=[
                        replace(message, birthday_id=birthday_id) for message in birthday.scheduled_messages
                    ],
                )
            )
            await self._storage.add(record)
            imported.append(record)

        await self._lifecycle.reschedule_all()
        LOGGER.info("Imported %s birthdays", len(imported))
        return imported

    def create_message(
        self,
        birthday_id: str,
        *,
        title: str = "",
        message: str = "",
        scheduled_time: str = DEFAULT_SCHEDULED_TIME,
        active: bool = True,
        message_type: str = "text",
        priority: str = "normal",
    ) -> ScheduledMessage:
        hour, minute = parse_time_string(scheduled_time)
        if message_type not in MESSAGE_TYPES:
            raise ValueError(f"message_type must be one of {sorted(MESSAGE_TYPES)}")
        if priority not in MESSAGE_PRIORITIES:
            raise ValueError(f"priority must be one of {sorted(MESSAGE_PRIORITIES)}")

        return ScheduledMessage(
            id=self._id_factory(),
            birthday_id=birthday_id,
            title=title,
            message=message,
            scheduled_time=f"{hour:02d}:{minute:02d}",
            active=active,
            message_type=message_type,
            priority=priority,
            created_date=self._clock(),
        )

    async def add_message(self, birthday_id: str, message: ScheduledMessage) -> Birthday:
        birthday = await self.get_birthday(birthday_id)
        message = replace(message, birthday_id=birthday_id)
        updated = replace(birthday, scheduled_messages=[*birthday.scheduled_messages, message])
        await self._storage.update(updated)

        if message.active:
            await self._lifecycle.scheduler.schedule(updated, message)
        return updated

    async def update_message(self, birthday_id: str, message: ScheduledMessage) -> Birthday:
        birthday = await self.get_birthday(birthday_id)
        if not any(existing.id == message.id for existing in birthday.scheduled_messages):
            raise KeyError(message.id)

        updated = with_message_replaced(birthday, replace(message, birthday_id=birthday_id))
        await self._storage.update(updated)

        await self._lifecycle.cancel(birthday_id, message.id)
        if message.active:
            await self._lifecycle.scheduler.schedule(updated, message)
        return updated

    async def delete_message(self, birthday_id: str, message_id: str) -> Birthday:
        birthday = await self.get_birthday(birthday_id)
        remaining = [message for message in birthday.scheduled_messages if message.id != message_id]
        updated = replace(birthday, scheduled_messages=remaining)
        await self._storage.update(updated)

        await self._lifecycle.cancel(birthday_id, message_id)
        return updated

    async def get_upcoming(self, days: int = 7) -> list[UpcomingMessage]:
        now = self._clock()
        horizon = now + timedelta(days=days)

        upcoming: list[UpcomingMessage] = []
        for birthday in await self.load_birthdays():
            for message in birthday.scheduled_messages:
                if not message.active:
                    continue
                try:
                    fire_at = next_fire_instant(
                        birthday.birth_date, message.scheduled_time, now, self._leap_day_rule
                    )
                except ValueError:
                    continue
                if fire_at <= horizon:
                    upcoming.append(UpcomingMessage(birthday=birthday, message=message, fire_at=fire_at))

        upcoming.sort(key=lambda item: item.fire_at)
        return upcoming

    async def _schedule_messages(self, birthday: Birthday) -> None:
        for message in birthday.scheduled_messages:
            if message.active:
                await self._lifecycle.scheduler.schedule(birthday, message)

    async def _calendar_create(self, birthday: Birthday) -> str | None:
        if self._calendar is None or not self._calendar.is_enabled():
            return None
        try:
            return await self._calendar.create(birthday)
        except Exception:
            report_failure("Calendar sync failed for birthday %s", birthday.id)
            return None

    async def _calendar_update(self, birthday: Birthday) -> None:
        if not birthday.google_calendar_event_id:
            return
        if self._calendar is None or not self._calendar.is_enabled():
            return
        try:
            await self._calendar.update(birthday, birthday.google_calendar_event_id)
        except Exception:
            report_failure("Calendar update failed for birthday %s", birthday.id)

    async def _calendar_delete(self, event_id: str) -> None:
        if self._calendar is None or not self._calendar.is_enabled():
            return
        try:
            await self._calendar.delete(event_id)
        except Exception:
            report_failure("Calendar delete failed for event %s", event_id)
