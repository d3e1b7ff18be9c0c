from datetime import date

import pytest

from birthday_reminders.zodiac import zodiac_sign


@pytest.mark.parametrize(
    ("birth_date", "expected"),
    [
        (date(1990, 1, 1), "Capricorn"),
        (date(1990, 1, 19), "Capricorn"),
        (date(1990, 1, 20), "Aquarius"),
        (date(1990, 3, 21), "Aries"),
        (date(1990, 7, 22), "Cancer"),
        (date(1990, 7, 23), "Leo"),
        (date(1990, 12, 21), "Sagittarius"),
        (date(1990, 12, 22), "Capricorn"),
        (date(2000, 2, 29), "Pisces"),
    ],
)
def test_zodiac_sign_boundaries(birth_date: date, expected: str) -> None:
    assert zodiac_sign(birth_date) == expected
