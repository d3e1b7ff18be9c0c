from __future__ import annotations

import logging
from dataclasses import replace
from datetime import datetime, timedelta
from typing import Callable, Protocol

from telegram.ext import CallbackContext, Job, JobQueue

from birthday_reminders.birthday_store import BirthdayStorage, with_message_replaced
from birthday_reminders.date_logic import (
    DEFAULT_LEAP_DAY_RULE,
    fire_instant_for_year,
    next_fire_instant,
    same_calendar_day,
)
from birthday_reminders.diagnostics import report_failure
from birthday_reminders.identity import stable_notification_id
from birthday_reminders.message_format import format_message
from birthday_reminders.models import (
    DEFAULT_NOTIFICATION_TITLE,
    Birthday,
    PendingNotification,
    ScheduledMessage,
)

LOGGER = logging.getLogger(__name__)

PERMISSION_DEFAULT = "default"
PERMISSION_GRANTED = "granted"
PERMISSION_DENIED = "denied"

RUNTIME_NATIVE = "native"
RUNTIME_WEB = "web"

POLL_INTERVAL_SECONDS = 60
POLL_JOB_NAME = "birthday-reminder-poller"
CATCH_WINDOW = timedelta(seconds=120)

Clock = Callable[[], datetime]


class NativeNotificationPlatform(Protocol):
    async def request_permission(self) -> str: ...

    async def schedule(
        self, notification_id: int, title: str, body: str, at: datetime, metadata: dict[str, str]
    ) -> None: ...

    async def cancel(self, notification_ids: list[int]) -> None: ...

    async def list_pending(self) -> list[PendingNotification]: ...


class NotificationDisplay(Protocol):
    async def permission_state(self) -> str: ...

    async def request_permission(self) -> str: ...

    async def show(self, title: str, body: str, tag: str) -> None: ...


class NotificationScheduler(Protocol):
    async def schedule(self, birthday: Birthday, message: ScheduledMessage) -> bool: ...

    async def cancel(self, birthday_id: str, message_id: str) -> None: ...

    async def cancel_all_for_birthday(self, birthday_id: str) -> None: ...

    async def cancel_all(self) -> None: ...

    async def get_pending_notifications(self) -> list[PendingNotification]: ...

    async def get_scheduled_count(self) -> int: ...


def notification_tag(birthday_id: str, message_id: str) -> str:
    return f"birthday-{birthday_id}-{message_id}"


def _title_for(message: ScheduledMessage) -> str:
    return message.title or DEFAULT_NOTIFICATION_TITLE


class NativeNotificationScheduler:
    """Hands absolute fire instants to the OS, which owns the pending queue."""

    def __init__(
        self,
        *,
        platform: NativeNotificationPlatform,
        clock: Clock,
        leap_day_rule: str = DEFAULT_LEAP_DAY_RULE,
    ) -> None:
        self._platform = platform
        self._clock = clock
        self._leap_day_rule = leap_day_rule

    async def _has_permission(self) -> bool:
        try:
            return await self._platform.request_permission() == PERMISSION_GRANTED
        except Exception:
            report_failure("Native notification permission request failed")
            return False

    async def schedule(self, birthday: Birthday, message: ScheduledMessage) -> bool:
        if not message.active:
            return False

        now = self._clock()
        try:
            fire_at = next_fire_instant(birthday.birth_date, message.scheduled_time, now, self._leap_day_rule)
        except ValueError:
            report_failure("Cannot compute fire instant for message %s", message.id)
            return False

        if not await self._has_permission():
            return False

        notification_id = stable_notification_id(birthday.id, message.id)
        try:
            await self._platform.schedule(
                notification_id,
                _title_for(message),
                format_message(message.message, birthday, fire_at, self._leap_day_rule),
                fire_at,
                {"birthday_id": birthday.id, "message_id": message.id},
            )
        except Exception:
            report_failure("Failed to schedule notification %s for birthday %s", message.id, birthday.id)
            return False
        return True

    async def cancel(self, birthday_id: str, message_id: str) -> None:
        try:
            await self._platform.cancel([stable_notification_id(birthday_id, message_id)])
        except Exception:
            report_failure("Failed to cancel notification %s for birthday %s", message_id, birthday_id)

    async def cancel_all_for_birthday(self, birthday_id: str) -> None:
        pending = await self.get_pending_notifications()
        ids = [entry.id for entry in pending if entry.birthday_id == birthday_id]
        if not ids:
            return
        try:
            await self._platform.cancel(ids)
        except Exception:
            report_failure("Failed to cancel notifications for birthday %s", birthday_id)

    async def cancel_all(self) -> None:
        pending = await self.get_pending_notifications()
        if not pending:
            return
        try:
            await self._platform.cancel([entry.id for entry in pending])
        except Exception:
            report_failure("Failed to cancel %s pending notifications", len(pending))

    async def get_pending_notifications(self) -> list[PendingNotification]:
        try:
            return list(await self._platform.list_pending())
        except Exception:
            report_failure("Failed to list pending notifications")
            return []

    async def get_scheduled_count(self) -> int:
        return len(await self.get_pending_notifications())


class PollingNotificationScheduler:
    """Re-evaluates every active message on a fixed interval and shows due ones.

    Nothing is queued ahead of time, so schedule/cancel have no side effects;
    a message is due when its fire instant this year lies inside the catch
    window and it has not already been sent today. The interval itself is a
    repeating job on the bot's JobQueue.
    """

    def __init__(
        self,
        *,
        display: NotificationDisplay,
        storage: BirthdayStorage,
        clock: Clock,
        leap_day_rule: str = DEFAULT_LEAP_DAY_RULE,
        interval_seconds: float = POLL_INTERVAL_SECONDS,
    ) -> None:
        self._display = display
        self._storage = storage
        self._clock = clock
        self._leap_day_rule = leap_day_rule
        self._interval_seconds = interval_seconds
        self._job: Job | None = None

    @property
    def running(self) -> bool:
        return self._job is not None

    async def start(self, job_queue: JobQueue) -> None:
        if self.running:
            return

        try:
            if await self._display.permission_state() == PERMISSION_DEFAULT:
                await self._display.request_permission()
        except Exception:
            report_failure("Notification permission request failed")

        # first=0 runs the initial check right away; max_instances=1 keeps ticks from overlapping.
        self._job = job_queue.run_repeating(
            self.poll_tick,
            interval=self._interval_seconds,
            first=0,
            name=POLL_JOB_NAME,
            job_kwargs={"max_instances": 1},
        )

    def stop(self) -> None:
        job = self._job
        self._job = None
        if job is not None:
            job.schedule_removal()

    async def poll_tick(self, context: CallbackContext) -> None:
        try:
            await self.check_and_deliver()
        except Exception:
            LOGGER.exception("Scheduled message check failed")

    def should_fire(self, birthday: Birthday, message: ScheduledMessage, now: datetime) -> bool:
        if not message.active:
            return False
        try:
            fire_at = fire_instant_for_year(
                birthday.birth_date, message.scheduled_time, now.year, now.tzinfo, self._leap_day_rule
            )
        except ValueError:
            return False

        if fire_at > now or now - fire_at >= CATCH_WINDOW:
            return False
        return message.last_sent_date is None or not same_calendar_day(message.last_sent_date, now)

    async def check_and_deliver(self, now: datetime | None = None) -> int:
        try:
            if await self._display.permission_state() != PERMISSION_GRANTED:
                return 0
        except Exception:
            report_failure("Failed to read notification permission")
            return 0

        now = now or self._clock()
        delivered = 0
        for birthday in await self._storage.get_all():
            for message in birthday.scheduled_messages:
                if not self.should_fire(birthday, message, now):
                    continue
                if await self._deliver(birthday, message, now):
                    delivered += 1

        if delivered:
            LOGGER.info("Delivered %s scheduled messages at %s", delivered, now.isoformat())
        return delivered

    async def _deliver(self, birthday: Birthday, message: ScheduledMessage, now: datetime) -> bool:
        """Show one message, then persist its send date.

        A storage failure after a successful show propagates and leaves
        last_sent_date unset, so a later tick inside the catch window shows
        the message again.
        """
        try:
            await self._display.show(
                _title_for(message),
                format_message(message.message, birthday, now, self._leap_day_rule),
                notification_tag(birthday.id, message.id),
            )
        except Exception:
            report_failure("Failed to show message %s for birthday %s", message.id, birthday.id)
            return False

        await self._mark_sent(birthday.id, message.id, now)
        return True

    async def _mark_sent(self, birthday_id: str, message_id: str, now: datetime) -> None:
        for birthday in await self._storage.get_all():
            if birthday.id != birthday_id:
                continue
            for message in birthday.scheduled_messages:
                if message.id == message_id:
                    updated = with_message_replaced(birthday, replace(message, last_sent_date=now))
                    await self._storage.update(updated)
                    return
            return

    async def schedule(self, birthday: Birthday, message: ScheduledMessage) -> bool:
        return message.active

    async def cancel(self, birthday_id: str, message_id: str) -> None:
        return None

    async def cancel_all_for_birthday(self, birthday_id: str) -> None:
        return None

    async def cancel_all(self) -> None:
        return None

    async def get_pending_notifications(self) -> list[PendingNotification]:
        now = self._clock()
        pending: list[PendingNotification] = []
        for birthday in await self._storage.get_all():
            for message in birthday.scheduled_messages:
                if not message.active:
                    continue
                try:
                    fire_at = next_fire_instant(
                        birthday.birth_date, message.scheduled_time, now, self._leap_day_rule
                    )
                except ValueError:
                    continue
                pending.append(
                    PendingNotification(
                        id=stable_notification_id(birthday.id, message.id),
                        title=_title_for(message),
                        body=format_message(
                            message.message, birthday, fire_at, self._leap_day_rule
                        ),
                        fire_at=fire_at,
                        birthday_id=birthday.id,
                        message_id=message.id,
                    )
                )
        # sorted() is stable, so equal instants keep birthday/message order.
        return sorted(pending, key=lambda entry: entry.fire_at)

    async def get_scheduled_count(self) -> int:
        birthdays = await self._storage.get_all()
        return sum(1 for birthday in birthdays for message in birthday.scheduled_messages if message.active)


def select_scheduler(
    runtime: str,
    *,
    storage: BirthdayStorage,
    clock: Clock,
    leap_day_rule: str = DEFAULT_LEAP_DAY_RULE,
    platform: NativeNotificationPlatform | None = None,
    display: NotificationDisplay | None = None,
) -> NativeNotificationScheduler | PollingNotificationScheduler:
    if runtime == RUNTIME_NATIVE:
        if platform is None:
            raise ValueError("native runtime requires a notification platform")
        return NativeNotificationScheduler(platform=platform, clock=clock, leap_day_rule=leap_day_rule)
    if runtime == RUNTIME_WEB:
        if display is None:
            raise ValueError("web runtime requires a notification display")
        return PollingNotificationScheduler(
            display=display, storage=storage, clock=clock, leap_day_rule=leap_day_rule
        )
    raise ValueError(f"Unsupported notification runtime: {runtime}")
