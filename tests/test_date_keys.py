import pytest

from playcalendar.date_keys import DateParts
from playcalendar.date_keys import InvalidDateError
from playcalendar.date_keys import MalformedKeyError
from playcalendar.date_keys import days_in_month
from playcalendar.date_keys import decode
from playcalendar.date_keys import encode


def test_encode_zero_pads_month_and_day() -> None:
    assert encode(2024, 3, 5) == "2024-03-05"
    assert encode(2024, 12, 31) == "2024-12-31"


def test_decode_inverts_encode_across_a_leap_year() -> None:
    for month in range(1, 13):
        for day in range(1, days_in_month(2024, month) + 1):
            assert decode(encode(2024, month, day)) == (2024, month, day)


def test_decode_returns_named_parts() -> None:
    parts = decode("2023-11-14")

    assert parts == DateParts(year=2023, month=11, day=14)
    assert parts.month == 11


@pytest.mark.parametrize(
    ("year", "month", "day"),
    [(2024, 0, 1), (2024, 13, 1), (2024, 2, 30), (2023, 2, 29), (2024, 4, 0)],
)
def test_encode_rejects_impossible_days(year: int, month: int, day: int) -> None:
    with pytest.raises(InvalidDateError):
        encode(year, month, day)


@pytest.mark.parametrize(
    "key",
    ["2024-3-05", "2024/03/05", "20240305", "2024-02-30", "2024-03-05\n", "", "abcd-ef-gh"],
)
def test_decode_rejects_non_canonical_keys(key: str) -> None:
    with pytest.raises(MalformedKeyError):
        decode(key)


def test_days_in_month_handles_february() -> None:
    assert days_in_month(2024, 2) == 29
    assert days_in_month(2023, 2) == 28
    assert days_in_month(1900, 2) == 28
