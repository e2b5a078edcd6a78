"""Test HH:mm helpers."""
from datetime import date

import pytest

from clinic.timeutils import (
    end_time,
    format_hhmm,
    format_time12,
    format_time_range12,
    format_time_range24,
    parse_iso_date,
    split_hhmm,
    to_minutes,
)


@pytest.mark.parametrize("value,expected", [
    ("00:00", 0),
    ("09:30", 570),
    ("23:59", 1439),
])
def test_to_minutes(value, expected):
    assert to_minutes(value) == expected


def test_split_hhmm():
    assert split_hhmm("08:05") == (8, 5)


def test_format_hhmm_pads_and_wraps():
    assert format_hhmm(5) == "00:05"
    assert format_hhmm(600) == "10:00"
    assert format_hhmm(1440 + 15) == "00:15"


def test_end_time():
    assert end_time("09:30", 45) == "10:15"
    assert end_time("23:45", 30) == "00:15"


@pytest.mark.parametrize("value,expected", [
    ("09:30", "9:30 ص"),
    ("00:05", "12:05 ص"),
    ("12:00", "12:00 م"),
    ("15:00", "3:00 م"),
    ("23:59", "11:59 م"),
])
def test_format_time12(value, expected):
    assert format_time12(value) == expected


def test_time_ranges():
    assert format_time_range24("09:30", 30) == "09:30 - 10:00"
    assert format_time_range12("11:30", 60) == "11:30 ص - 12:30 م"


def test_parse_iso_date():
    assert parse_iso_date("2024-02-29") == date(2024, 2, 29)

    with pytest.raises(ValueError):
        parse_iso_date("2024-13-01")
