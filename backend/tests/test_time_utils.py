import pytest

from app.core.errors import ValidationError
from app.utils.time_utils import (
    format_24_to_12,
    from_minutes,
    half_hour_options,
    normalize_time,
    to_minutes,
)


def test_normalize_time_accepts_common_formats():
    assert normalize_time("09:00") == "09:00"
    assert normalize_time("9:05") == "09:05"
    assert normalize_time("9:30 pm") == "21:30"
    assert normalize_time("12:00 AM") == "00:00"
    assert normalize_time("12:15 PM") == "12:15"


def test_normalize_time_rejects_invalid_values():
    for bad in ["", "24:00", "10:60", "noon", "13:00 PM", "0:30 AM"]:
        with pytest.raises(ValidationError):
            normalize_time(bad)


def test_format_24_to_12_uses_twelve_for_midnight_and_noon():
    assert format_24_to_12("00:30") == "12:30 AM"
    assert format_24_to_12("12:00") == "12:00 PM"
    assert format_24_to_12("20:00") == "8:00 PM"
    assert normalize_time("8:00 PM") == "20:00"


def test_minutes_conversion():
    assert to_minutes("19:45") == 1185
    assert from_minutes(1185) == "19:45"
    with pytest.raises(ValidationError):
        from_minutes(24 * 60)


def test_half_hour_options_cover_the_day():
    options = half_hour_options()
    assert len(options) == 48
    assert options[0] == "12:00 AM"
    assert options[1] == "12:30 AM"
    assert options[-1] == "11:30 PM"
