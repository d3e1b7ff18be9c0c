from __future__ import annotations

from datetime import date

# (name, start month, start day); each sign runs until the next one starts.
ZODIAC_SIGNS: tuple[tuple[str, int, int], ...] = (
    ("Capricorn", 1, 1),
    ("Aquarius", 1, 20),
    ("Pisces", 2, 19),
    ("Aries", 3, 21),
    ("Taurus", 4, 20),
    ("Gemini", 5, 21),
    ("Cancer", 6, 21),
    ("Leo", 7, 23),
    ("Virgo", 8, 23),
    ("Libra", 9, 23),
    ("Scorpio", 10, 23),
    ("Sagittarius", 11, 22),
    ("Capricorn", 12, 22),
)


def zodiac_sign(birth_date: date) -> str:
    key = (birth_date.month, birth_date.day)
    current = ZODIAC_SIGNS[0][0]
    for name, month, day in ZODIAC_SIGNS:
        if key >= (month, day):
            current = name
        else:
            break
    return current
