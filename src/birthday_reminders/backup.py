from __future__ import annotations

import csv
import io
import json
from datetime import datetime
from typing import Any

from birthday_reminders.birthday_store import birthday_from_dict, birthday_to_dict
from birthday_reminders.identity import generate_id
from birthday_reminders.models import Birthday

BACKUP_VERSION = 1
CSV_HEADERS = ("Name", "Birth Date", "Category", "Notes", "Zodiac Sign")


def export_json(birthdays: list[Birthday], now: datetime) -> str:
    payload = {
        "version": BACKUP_VERSION,
        "export_date": now.isoformat(),
        "birthdays": [birthday_to_dict(birthday) for birthday in birthdays],
    }
    return json.dumps(payload, indent=2, ensure_ascii=False) + "\n"


def export_csv(birthdays: list[Birthday]) -> str:
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow(CSV_HEADERS)
    for birthday in birthdays:
        writer.writerow(
            (
                birthday.name,
                birthday.birth_date.isoformat(),
                birthday.category or "",
                birthday.notes or "",
                birthday.zodiac_sign or "",
            )
        )
    return buffer.getvalue()


def backup_filename(now: datetime, extension: str) -> str:
    return f"birthday-backup-{now.date().isoformat()}.{extension}"


def import_json(text: str) -> list[Birthday]:
    try:
        data: Any = json.loads(text)
    except json.JSONDecodeError as exc:
        raise ValueError("Invalid backup file format") from exc

    rows = data.get("birthdays") if isinstance(data, dict) else None
    if not isinstance(rows, list):
        raise ValueError("Invalid backup file format")

    birthdays: list[Birthday] = []
    for row in rows:
        if not isinstance(row, dict):
            raise ValueError("Invalid backup file format")
        birthdays.append(birthday_from_dict({**row, "id": row.get("id") or generate_id()}))
    return birthdays
