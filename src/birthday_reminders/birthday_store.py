from __future__ import annotations

import json
import os
import tempfile
from dataclasses import replace
from datetime import date, datetime
from pathlib import Path
from typing import Any, Protocol

from birthday_reminders.models import Birthday, ScheduledMessage

STORE_VERSION = 1


class BirthdayStorage(Protocol):
    async def get_all(self) -> list[Birthday]: ...

    async def add(self, birthday: Birthday) -> None: ...

    async def update(self, birthday: Birthday) -> None: ...

    async def delete(self, birthday_id: str) -> None: ...

    async def clear(self) -> None: ...


def _parse_datetime(value: Any) -> datetime | None:
    if value in (None, ""):
        return None
    return datetime.fromisoformat(str(value))


def _format_datetime(value: datetime | None) -> str | None:
    return value.isoformat() if value is not None else None


def message_from_dict(row: dict[str, Any], birthday_id: str) -> ScheduledMessage:
    return ScheduledMessage(
        id=str(row["id"]),
        birthday_id=str(row.get("birthday_id") or birthday_id),
        title=str(row.get("title", "")),
        message=str(row.get("message", "")),
        scheduled_time=str(row.get("scheduled_time", "")),
        active=bool(row.get("active", True)),
        message_type=str(row.get("message_type", "text")),
        priority=str(row.get("priority", "normal")),
        created_date=_parse_datetime(row.get("created_date")),
        last_sent_date=_parse_datetime(row.get("last_sent_date")),
    )


def message_to_dict(message: ScheduledMessage) -> dict[str, Any]:
    return {
        "id": message.id,
        "birthday_id": message.birthday_id,
        "title": message.title,
        "message": message.message,
        "scheduled_time": message.scheduled_time,
        "active": message.active,
        "message_type": message.message_type,
        "priority": message.priority,
        "created_date": _format_datetime(message.created_date),
        "last_sent_date": _format_datetime(message.last_sent_date),
    }


def birthday_from_dict(row: dict[str, Any]) -> Birthday:
    if not row.get("id"):
        raise ValueError("birthday id must not be empty")
    name = str(row.get("name", "")).strip()
    if not name:
        raise ValueError("birthday name must not be empty")

    raw_date = str(row.get("birth_date", ""))
    try:
        # Backups may carry full timestamps; only the calendar date matters.
        birth_date = date.fromisoformat(raw_date[:10])
    except ValueError as exc:
        raise ValueError(f"Invalid birth_date for {name}: {raw_date!r}") from exc

    birthday_id = str(row["id"])
    return Birthday(
        id=birthday_id,
        name=name,
        birth_date=birth_date,
        category=row.get("category") or None,
        zodiac_sign=row.get("zodiac_sign") or None,
        notes=row.get("notes"),
        photo=row.get("photo"),
        remember_photo=row.get("remember_photo"),
        google_calendar_event_id=row.get("google_calendar_event_id"),
        scheduled_messages=[
            message_from_dict(message_row, birthday_id) for message_row in row.get("scheduled_messages", [])
        ],
    )


def birthday_to_dict(birthday: Birthday) -> dict[str, Any]:
    return {
        "id": birthday.id,
        "name": birthday.name,
        "birth_date": birthday.birth_date.isoformat(),
        "category": birthday.category,
        "zodiac_sign": birthday.zodiac_sign,
        "notes": birthday.notes,
        "photo": birthday.photo,
        "remember_photo": birthday.remember_photo,
        "google_calendar_event_id": birthday.google_calendar_event_id,
        "scheduled_messages": [message_to_dict(message) for message in birthday.scheduled_messages],
    }


def load_birthdays(path: Path) -> list[Birthday]:
    if not path.exists():
        return []

    with path.open("r", encoding="utf-8") as file_obj:
        data = json.load(file_obj)

    rows = data.get("birthdays", [])
    if not isinstance(rows, list):
        raise ValueError(f"Birthday store is malformed: {path}")
    return [birthday_from_dict(row) for row in rows]


def save_birthdays_atomic(path: Path, birthdays: list[Birthday]) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    payload = {
        "version": STORE_VERSION,
        "birthdays": [birthday_to_dict(birthday) for birthday in birthdays],
    }

    with tempfile.NamedTemporaryFile(
        mode="w",
        encoding="utf-8",
        dir=path.parent,
        prefix=f".{path.name}.",
        delete=False,
    ) as temp_file:
        json.dump(payload, temp_file, indent=2, ensure_ascii=False)
        temp_file.write("\n")
        temp_name = temp_file.name

    os.replace(temp_name, path)


class JsonBirthdayStore:
    """Birthday records kept in a single JSON document, rewritten on every change."""

    def __init__(self, path: Path) -> None:
        self._path = path

    async def get_all(self) -> list[Birthday]:
        return load_birthdays(self._path)

    async def add(self, birthday: Birthday) -> None:
        birthdays = load_birthdays(self._path)
        if any(existing.id == birthday.id for existing in birthdays):
            raise ValueError(f"Birthday id already exists: {birthday.id}")
        save_birthdays_atomic(self._path, [*birthdays, birthday])

    async def update(self, birthday: Birthday) -> None:
        birthdays = load_birthdays(self._path)
        for index, existing in enumerate(birthdays):
            if existing.id == birthday.id:
                birthdays[index] = birthday
                save_birthdays_atomic(self._path, birthdays)
                return
        raise KeyError(birthday.id)

    async def delete(self, birthday_id: str) -> None:
        birthdays = load_birthdays(self._path)
        remaining = [birthday for birthday in birthdays if birthday.id != birthday_id]
        if len(remaining) == len(birthdays):
            raise KeyError(birthday_id)
        save_birthdays_atomic(self._path, remaining)

    async def clear(self) -> None:
        save_birthdays_atomic(self._path, [])


def with_message_replaced(birthday: Birthday, message: ScheduledMessage) -> Birthday:
    messages = [message if existing.id == message.id else existing for existing in birthday.scheduled_messages]
    return replace(birthday, scheduled_messages=messages)
