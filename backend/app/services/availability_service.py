from __future__ import annotations

import logging
from datetime import date, datetime
from zoneinfo import ZoneInfo

from ..core.config import get_settings
from ..schemas.business_hours import DAY_NUMBER_TO_NAME, DayHours, ServiceAvailability, WeeklySchedule
from ..utils.time_utils import from_minutes, to_minutes
from .business_hours_service import AvailabilityConfig

logger = logging.getLogger(__name__)

settings = get_settings()
SALON_TZ = ZoneInfo(settings.timezone)


def today(now: datetime | None = None) -> date:
    """The salon's local calendar date."""
    now = (now or datetime.now(SALON_TZ)).astimezone(SALON_TZ)
    return now.date()


def weekday_number(day: date) -> int:
    # Python weekday (Mon=0) to the Sunday-first convention used by daysOff
    return (day.weekday() + 1) % 7


def day_name(day: date) -> str:
    return DAY_NUMBER_TO_NAME[weekday_number(day)]


def day_hours(day: date, schedule: WeeklySchedule) -> DayHours | None:
    hours = schedule.days_open[day_name(day)]
    if not hours.open:
        return None
    return hours


def _within(minute: int, start: str, end: str, buffer: int) -> bool:
    return to_minutes(start) <= minute <= to_minutes(end) - buffer


def is_within_working_hours(day: date, time_value: str, schedule: WeeklySchedule) -> bool:
    """True when ``time_value`` on ``day`` can start an appointment.

    The last bookable minute is the closing time minus the appointment buffer.
    """
    hours = day_hours(day, schedule)
    if hours is None:
        return False
    return _within(to_minutes(time_value), hours.start, hours.end, schedule.appointment_buffer)


def _slots_between(start: str, end: str, buffer: int, slot_minutes: int) -> list[str]:
    if slot_minutes <= 0:
        raise ValueError("slot_minutes must be positive")
    last = to_minutes(end) - buffer
    return [from_minutes(m) for m in range(to_minutes(start), last + 1, slot_minutes)]


def bookable_slots(day: date, schedule: WeeklySchedule, slot_minutes: int | None = None) -> list[str]:
    hours = day_hours(day, schedule)
    if hours is None:
        return []
    slot_minutes = slot_minutes or get_settings().slot_duration_minutes
    return _slots_between(hours.start, hours.end, schedule.appointment_buffer, slot_minutes)


def service_slots(
    day: date,
    schedule: WeeklySchedule,
    availability: ServiceAvailability,
    slot_minutes: int | None = None,
) -> list[str]:
    hours = day_hours(day, schedule)
    if hours is None or weekday_number(day) not in availability.days_available:
        return []
    slot_minutes = slot_minutes or get_settings().slot_duration_minutes
    if availability.use_business_hours or availability.custom_hours is None:
        return _slots_between(hours.start, hours.end, schedule.appointment_buffer, slot_minutes)
    window = availability.custom_hours
    return _slots_between(window.start, window.end, schedule.appointment_buffer, slot_minutes)


class AvailabilityView:
    """Calendar-side reader that follows ``businessHoursChanged``.

    Keeps the latest schedule and caches slots per date until the next change.
    """

    def __init__(self, config: AvailabilityConfig, slot_minutes: int | None = None):
        self.slot_minutes = slot_minutes or get_settings().slot_duration_minutes
        self.schedule = config.schedule
        self._cache: dict[date, list[str]] = {}
        self._unsubscribe = config.subscribe(self.on_change)

    def on_change(self, schedule: WeeklySchedule) -> None:
        self.schedule = schedule
        self._cache.clear()
        logger.debug("Availability view refreshed, days off %s", schedule.working_hours.days_off)

    def slots(self, day: date) -> list[str]:
        if day not in self._cache:
            self._cache[day] = bookable_slots(day, self.schedule, self.slot_minutes)
        return list(self._cache[day])

    def is_open(self, day: date) -> bool:
        return weekday_number(day) not in self.schedule.working_hours.days_off

    def close(self) -> None:
        self._unsubscribe()
