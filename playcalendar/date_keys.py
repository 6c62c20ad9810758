import calendar
import re
from datetime import date
from typing import NamedTuple


_KEY_PATTERN = re.compile(r"([0-9]{4})-([0-9]{2})-([0-9]{2})")


class InvalidDateError(ValueError):
    """Raised when year/month/day do not name a real calendar day."""


class MalformedKeyError(ValueError):
    """Raised when a string is not a canonical YYYY-MM-DD date key."""


class DateParts(NamedTuple):
    year: int
    month: int
    day: int


def days_in_month(year: int, month: int) -> int:
    """Return the number of days in a month, raising on invalid months."""

    if not 1 <= month <= 12:
        raise InvalidDateError(f"month {month} is outside 1..12")
    return calendar.monthrange(year, month)[1]


def encode(year: int, month: int, day: int) -> str:
    """Build the canonical zero-padded date key for a calendar day."""

    if not 1 <= year <= 9999:
        raise InvalidDateError(f"year {year} is outside 1..9999")
    last_day = days_in_month(year, month)
    if not 1 <= day <= last_day:
        raise InvalidDateError(
            f"day {day} is outside 1..{last_day} for {year}-{month:02d}"
        )
    return f"{year:04d}-{month:02d}-{day:02d}"


def decode(key: str) -> DateParts:
    """Split a canonical date key back into its parts."""

    if not isinstance(key, str):
        raise MalformedKeyError(f"date key must be a string, got {type(key).__name__}")

    match = _KEY_PATTERN.fullmatch(key)
    if match is None:
        raise MalformedKeyError(f"{key!r} is not in YYYY-MM-DD form")

    year, month, day = (int(part) for part in match.groups())
    try:
        encode(year, month, day)
    except InvalidDateError as exc:
        raise MalformedKeyError(f"{key!r} does not name a calendar day") from exc
    return DateParts(year, month, day)


def from_date(value: date) -> str:
    return encode(value.year, value.month, value.day)

