from __future__ import annotations

from datetime import date, datetime

from birthday_reminders.date_logic import DEFAULT_LEAP_DAY_RULE, age
from birthday_reminders.models import Birthday, MessageTemplate

DEFAULT_MESSAGE_TEMPLATES = (
    MessageTemplate(
        title="Simple Happy Birthday",
        message="Happy birthday {name}! Best wishes for your {age} years! 🎉",
    ),
    MessageTemplate(
        title="Formal Message",
        message="Dear {name}, I wish you a very happy birthday and a year full of satisfaction!",
    ),
    MessageTemplate(
        title="Fun Message",
        message="Hey {name}! Today you turn {age}... you're getting older! 😄 But you're still amazing! 🎂",
    ),
    MessageTemplate(
        title="Zodiac Message",
        message="Happy birthday {name}! As a typical {zodiac}, this will be a special year for you! 🌟",
    ),
)


def format_message(
    template: str, birthday: Birthday, now: date | datetime, leap_day_rule: str = DEFAULT_LEAP_DAY_RULE
) -> str:
    # str.format would choke on stray braces in user text, so substitute literally.
    years = age(birthday.birth_date, now, leap_day_rule)
    return (
        template.replace("{name}", birthday.name)
        .replace("{age}", str(years) if years is not None else "")
        .replace("{zodiac}", birthday.zodiac_sign or "")
    )
