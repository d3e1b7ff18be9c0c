from datetime import date, datetime, timedelta

import pytest

from birthday_reminders.date_logic import (
    age,
    days_until,
    next_fire_instant,
    next_occurrence,
    parse_time_string,
)


def test_days_until_future_date_same_year() -> None:
    assert days_until(date(1990, 3, 14), date(2026, 3, 1)) == 13


def test_days_until_next_year_after_passed() -> None:
    today = date(2026, 6, 1)
    assert days_until(date(1990, 1, 2), today) == (date(2027, 1, 2) - today).days


def test_next_occurrence_today_counts_as_upcoming() -> None:
    now = datetime(2026, 3, 14, 23, 59)
    assert next_occurrence(date(1990, 3, 14), now) == date(2026, 3, 14)
    assert days_until(date(1990, 3, 14), now) == 0


@pytest.mark.parametrize(
    "birth_date",
    [date(1990, 1, 1), date(1985, 6, 30), date(2000, 12, 31), date(1970, 10, 19), date(2004, 2, 29)],
)
def test_next_occurrence_is_never_in_the_past(birth_date: date) -> None:
    start = date(2026, 1, 1)
    for offset in range(0, 366, 7):
        today = start + timedelta(days=offset)
        nxt = next_occurrence(birth_date, today)
        assert nxt >= today
        assert nxt.year in (today.year, today.year + 1)
        assert days_until(birth_date, today) == (nxt - today).days >= 0


def test_feb_29_rolls_to_march_first_by_default() -> None:
    assert next_occurrence(date(2000, 2, 29), date(2025, 2, 27)) == date(2025, 3, 1)


def test_feb_29_maps_to_feb_28_when_configured() -> None:
    assert next_occurrence(date(2000, 2, 29), date(2025, 2, 27), "feb28") == date(2025, 2, 28)
    assert days_until(date(2000, 2, 29), date(2025, 2, 27), "feb28") == 1


def test_feb_29_keeps_date_on_leap_year() -> None:
    assert next_occurrence(date(2000, 2, 29), date(2028, 2, 27)) == date(2028, 2, 29)


def test_age_before_and_after_birthday() -> None:
    birth_date = date(1996, 1, 15)
    assert age(birth_date, date(2026, 1, 14)) == 29
    assert age(birth_date, date(2026, 1, 15)) == 30
    assert age(birth_date, datetime(2026, 7, 1, 8, 0)) == 30


def test_age_is_unavailable_for_future_birth_date() -> None:
    assert age(date(2030, 5, 1), date(2026, 5, 1)) is None


def test_age_on_birth_day_is_zero() -> None:
    assert age(date(2026, 5, 1), date(2026, 5, 1)) == 0


def test_next_fire_instant_later_today() -> None:
    now = datetime(2026, 3, 14, 8, 0)
    assert next_fire_instant(date(1990, 3, 14), "09:30", now) == datetime(2026, 3, 14, 9, 30)


def test_next_fire_instant_exactly_now_moves_to_next_year() -> None:
    now = datetime(2026, 3, 14, 9, 30)
    assert next_fire_instant(date(1990, 3, 14), "09:30", now) == datetime(2027, 3, 14, 9, 30)


def test_next_fire_instant_is_strictly_future() -> None:
    now = datetime(2026, 12, 31, 23, 59, 30)
    fire_at = next_fire_instant(date(1990, 12, 31), "23:59", now)
    assert fire_at > now
    assert fire_at == datetime(2027, 12, 31, 23, 59)


@pytest.mark.parametrize("value", ["9", "24:00", "12:60", "ab:cd", "1:2:3"])
def test_parse_time_string_rejects_invalid(value: str) -> None:
    with pytest.raises(ValueError):
        parse_time_string(value)


def test_parse_time_string_accepts_single_digit_hour() -> None:
    assert parse_time_string("7:05") == (7, 5)


def test_leap_day_age_completes_on_substituted_date() -> None:
    leap = date(2000, 2, 29)
    assert age(leap, date(2027, 2, 28), "feb28") == 27
    assert age(leap, date(2027, 2, 28), "mar1") == 26
    assert age(leap, date(2027, 3, 1), "mar1") == 27
    assert age(leap, date(2028, 2, 28), "feb28") == 27
    assert age(leap, date(2028, 2, 29), "feb28") == 28
