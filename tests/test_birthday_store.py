import asyncio
from datetime import date, datetime
from pathlib import Path

import pytest

from birthday_reminders.birthday_store import JsonBirthdayStore, load_birthdays, save_birthdays_atomic
from birthday_reminders.models import Birthday, ScheduledMessage


def _alice() -> Birthday:
    return Birthday(
        id="b1",
        name="Alice",
        birth_date=date(1990, 3, 14),
        category="family",
        zodiac_sign="Pisces",
        notes="Likes tea",
        scheduled_messages=[
            ScheduledMessage(
                id="m1",
                birthday_id="b1",
                title="Party",
                message="Happy birthday {name}!",
                scheduled_time="09:00",
                created_date=datetime(2026, 1, 1, 12, 0),
                last_sent_date=datetime(2025, 3, 14, 9, 0, 30),
            )
        ],
    )


def test_roundtrip_birthdays(tmp_path: Path) -> None:
    path = tmp_path / "birthdays.json"
    save_birthdays_atomic(path, [_alice()])

    loaded = load_birthdays(path)

    assert loaded == [_alice()]


def test_missing_file_loads_empty(tmp_path: Path) -> None:
    assert load_birthdays(tmp_path / "absent.json") == []


def test_corrupt_birth_date_rejected(tmp_path: Path) -> None:
    path = tmp_path / "birthdays.json"
    path.write_text('{"birthdays": [{"id": "b1", "name": "Alice", "birth_date": "14/03/1990"}]}\n', encoding="utf-8")

    with pytest.raises(ValueError):
        load_birthdays(path)


def test_store_crud(tmp_path: Path) -> None:
    store = JsonBirthdayStore(tmp_path / "birthdays.json")
    bob = Birthday(id="b2", name="Bob", birth_date=date(1985, 8, 22))

    async def scenario() -> list[Birthday]:
        await store.add(_alice())
        await store.add(bob)
        await store.update(Birthday(id="b2", name="Bobby", birth_date=date(1985, 8, 23)))
        await store.delete("b1")
        return await store.get_all()

    remaining = asyncio.run(scenario())

    assert [birthday.name for birthday in remaining] == ["Bobby"]
    assert remaining[0].birth_date == date(1985, 8, 23)


def test_store_rejects_unknown_ids(tmp_path: Path) -> None:
    store = JsonBirthdayStore(tmp_path / "birthdays.json")

    with pytest.raises(KeyError):
        asyncio.run(store.update(_alice()))
    with pytest.raises(KeyError):
        asyncio.run(store.delete("nope"))


def test_store_rejects_duplicate_id(tmp_path: Path) -> None:
    store = JsonBirthdayStore(tmp_path / "birthdays.json")
    asyncio.run(store.add(_alice()))

    with pytest.raises(ValueError):
        asyncio.run(store.add(_alice()))


def test_clear_empties_store(tmp_path: Path) -> None:
    store = JsonBirthdayStore(tmp_path / "birthdays.json")
    asyncio.run(store.add(_alice()))
    asyncio.run(store.clear())

    assert asyncio.run(store.get_all()) == []
