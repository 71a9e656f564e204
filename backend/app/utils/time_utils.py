import re

from ..core.errors import ValidationError

TIME_PATTERN = re.compile(r"^\s*(\d{1,2}):(\d{2})\s*([AaPp][Mm])?\s*$")


def parse_time(value: str) -> tuple[int, int]:
    """Parse ``HH:MM``, ``H:MM`` or ``h:MM AM/PM`` into ``(hour, minute)``."""
    match = TIME_PATTERN.match(value or "")
    if not match:
        raise ValidationError(f"Invalid time: {value!r}")
    hour = int(match.group(1))
    minute = int(match.group(2))
    period = match.group(3)
    if period:
        if not 1 <= hour <= 12:
            raise ValidationError(f"Invalid 12-hour time: {value!r}")
        period = period.upper()
        if period == "PM" and hour < 12:
            hour += 12
        elif period == "AM" and hour == 12:
            hour = 0
    if not (0 <= hour <= 23 and 0 <= minute <= 59):
        raise ValidationError(f"Invalid time: {value!r}")
    return hour, minute


def normalize_time(value: str) -> str:
    hour, minute = parse_time(value)
    return f"{hour:02d}:{minute:02d}"


def to_minutes(value: str) -> int:
    hour, minute = parse_time(value)
    return hour * 60 + minute


def from_minutes(total: int) -> str:
    if not 0 <= total < 24 * 60:
        raise ValidationError(f"Minute offset out of range: {total}")
    return f"{total // 60:02d}:{total % 60:02d}"


def format_24_to_12(value: str) -> str:
    # 00:30 -> 12:30 AM, 13:05 -> 1:05 PM
    hour, minute = parse_time(value)
    period = "PM" if hour >= 12 else "AM"
    return f"{hour % 12 or 12}:{minute:02d} {period}"


def half_hour_options() -> list[str]:
    """Every ``h:00``/``h:30`` choice of the opening/closing time pickers."""
    return [format_24_to_12(from_minutes(m)) for m in range(0, 24 * 60, 30)]
