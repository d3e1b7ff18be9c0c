from __future__ import annotations

from datetime import date, datetime, time

DEFAULT_LEAP_DAY_RULE = "mar1"
ALLOWED_LEAP_DAY_RULES = {"feb28", "mar1"}


class InvalidBirthdayError(ValueError):
    pass


def is_leap_year(year: int) -> bool:
    return year % 4 == 0 and (year % 100 != 0 or year % 400 == 0)


def _as_date(value: date | datetime) -> date:
    if isinstance(value, datetime):
        return value.date()
    return value


def parse_time_string(value: str) -> tuple[int, int]:
    pieces = value.split(":")
    if len(pieces) != 2:
        raise ValueError("scheduled time must be in HH:MM format")

    hour, minute = (piece.strip() for piece in pieces)
    if not hour.isdigit() or not minute.isdigit():
        raise ValueError("scheduled time must contain numeric hour/minute")

    hour_i = int(hour)
    minute_i = int(minute)
    if hour_i < 0 or hour_i > 23 or minute_i < 0 or minute_i > 59:
        raise ValueError("scheduled time must be a valid 24-hour time")

    return hour_i, minute_i


def birthday_date_for_year(birth_date: date, year: int, leap_day_rule: str = DEFAULT_LEAP_DAY_RULE) -> date:
    if birth_date.month == 2 and birth_date.day == 29 and not is_leap_year(year):
        if leap_day_rule == "feb28":
            return date(year, 2, 28)
        if leap_day_rule == "mar1":
            return date(year, 3, 1)
        raise InvalidBirthdayError(f"Unsupported leap day rule: {leap_day_rule}")
    return date(year, birth_date.month, birth_date.day)


def next_occurrence(
    birth_date: date, now: date | datetime, leap_day_rule: str = DEFAULT_LEAP_DAY_RULE
) -> date:
    today = _as_date(now)
    this_year = birthday_date_for_year(birth_date, today.year, leap_day_rule)
    if this_year >= today:
        return this_year
    return birthday_date_for_year(birth_date, today.year + 1, leap_day_rule)


def days_until(birth_date: date, now: date | datetime, leap_day_rule: str = DEFAULT_LEAP_DAY_RULE) -> int:
    today = _as_date(now)
    return (next_occurrence(birth_date, today, leap_day_rule) - today).days


def age(birth_date: date, now: date | datetime, leap_day_rule: str = DEFAULT_LEAP_DAY_RULE) -> int | None:
    """Completed years at ``now``, or None when the birth date is still ahead.

    A year completes on the birthday as ``leap_day_rule`` places it, so a
    29 February birthday under "feb28" ages on 28 February of common years.
    """
    today = _as_date(now)
    if birth_date > today:
        return None

    years = today.year - birth_date.year
    if today < birthday_date_for_year(birth_date, today.year, leap_day_rule):
        years -= 1
    return years


def fire_instant_for_year(
    birth_date: date,
    time_of_day: str,
    year: int,
    tzinfo=None,
    leap_day_rule: str = DEFAULT_LEAP_DAY_RULE,
) -> datetime:
    hour, minute = parse_time_string(time_of_day)
    occurrence = birthday_date_for_year(birth_date, year, leap_day_rule)
    return datetime.combine(occurrence, time(hour=hour, minute=minute), tzinfo=tzinfo)


def next_fire_instant(
    birth_date: date,
    time_of_day: str,
    now: datetime,
    leap_day_rule: str = DEFAULT_LEAP_DAY_RULE,
) -> datetime:
    """Next instant strictly after ``now`` on the birthday at ``time_of_day``."""
    candidate = fire_instant_for_year(birth_date, time_of_day, now.year, now.tzinfo, leap_day_rule)
    if candidate <= now:
        candidate = fire_instant_for_year(birth_date, time_of_day, now.year + 1, now.tzinfo, leap_day_rule)
    return candidate


def same_calendar_day(first: datetime, second: datetime) -> bool:
    return (first.year, first.month, first.day) == (second.year, second.month, second.day)
