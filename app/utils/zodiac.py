from datetime import date, datetime
from typing import Optional, Union

# Western zodiac by month: (sign up to and including the cutoff day, sign after it)
ZODIAC_SIGNS = {
    1: ("Capricorn", "Aquarius"),
    2: ("Aquarius", "Pisces"),
    3: ("Pisces", "Aries"),
    4: ("Aries", "Taurus"),
    5: ("Taurus", "Gemini"),
    6: ("Gemini", "Cancer"),
    7: ("Cancer", "Leo"),
    8: ("Leo", "Virgo"),
    9: ("Virgo", "Libra"),
    10: ("Libra", "Scorpio"),
    11: ("Scorpio", "Sagittarius"),
    12: ("Sagittarius", "Capricorn"),
}

ZODIAC_CUTOFFS = {
    1: 19,
    2: 18,
    3: 20,
    4: 19,
    5: 20,
    6: 20,
    7: 22,
    8: 22,
    9: 22,
    10: 22,
    11: 21,
    12: 21,
}


def parse_birth_date(value: Union[str, date, None]) -> Optional[date]:
    """Parse YYYY-MM-DD (or an ISO datetime); anything else gives None."""
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    text = str(value).strip()
    try:
        return datetime.strptime(text[:10], "%Y-%m-%d").date()
    except ValueError:
        return None


def zodiac_sign(birth_date: Union[str, date, None]) -> Optional[str]:
    """Zodiac sign for a birth date, or None when the date cannot be parsed."""
    parsed = parse_birth_date(birth_date)
    if parsed is None:
        return None
    first, second = ZODIAC_SIGNS[parsed.month]
    return first if parsed.day <= ZODIAC_CUTOFFS[parsed.month] else second
