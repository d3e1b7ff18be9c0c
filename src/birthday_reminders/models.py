from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime


DEFAULT_CATEGORY = "friends"
DEFAULT_SCHEDULED_TIME = "09:00"
DEFAULT_NOTIFICATION_TITLE = "🎂 Birthday Reminder"

MESSAGE_TYPES = {"text", "html"}
MESSAGE_PRIORITIES = {"low", "normal", "high"}


@dataclass(frozen=True)
class ScheduledMessage:
    id: str
    birthday_id: str
    title: str
    message: str
    scheduled_time: str
    active: bool = True
    message_type: str = "text"
    priority: str = "normal"
    created_date: datetime | None = None
    last_sent_date: datetime | None = None


@dataclass(frozen=True)
class Birthday:
    id: str
    name: str
    birth_date: date
    category: str | None = None
    zodiac_sign: str | None = None
    notes: str | None = None
    photo: str | None = None
    remember_photo: str | None = None
    google_calendar_event_id: str | None = None
    scheduled_messages: list[ScheduledMessage] = field(default_factory=list)


@dataclass(frozen=True)
class BirthdayCategory:
    id: str
    name: str
    icon: str
    color: str


@dataclass(frozen=True)
class PendingNotification:
    id: int
    title: str
    body: str
    fire_at: datetime
    birthday_id: str
    message_id: str


@dataclass(frozen=True)
class MessageTemplate:
    title: str
    message: str
