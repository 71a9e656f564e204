from __future__ import annotations

import logging
import threading
from typing import Callable

from pydantic import ValidationError as SchemaValidationError

from ..core.config import Settings, get_settings
from ..core.errors import PersistenceError, ValidationError
from ..core.events import BUSINESS_HOURS_CHANGED, EventBus
from ..core.storage import KeyValueStorage
from ..schemas.business_hours import (
    DAY_NAME_TO_NUMBER,
    DAY_NUMBER_TO_NAME,
    WEEK_DAYS,
    DayHours,
    WeeklySchedule,
    WorkingHours,
)
from ..utils.time_utils import normalize_time, to_minutes

logger = logging.getLogger(__name__)

SCHEDULE_KEY = "businessHoursSettings"
REFRESH_FLAG_KEY = "appointmentListShouldRefresh"

CLEAN = "clean"
DIRTY = "dirty"

ScheduleListener = Callable[[WeeklySchedule], None]


def default_schedule(settings: Settings | None = None) -> WeeklySchedule:
    settings = settings or get_settings()
    start = normalize_time(settings.default_opening_time)
    end = normalize_time(settings.default_closing_time)
    days_open = {
        day: DayHours(open=DAY_NAME_TO_NUMBER[day] not in settings.default_days_off, start=start, end=end)
        for day in WEEK_DAYS
    }
    return WeeklySchedule(
        days_open=days_open,
        working_hours=WorkingHours(start=start, end=end, days_off=compute_days_off(days_open)),
        appointment_buffer=settings.appointment_buffer_minutes,
    )


def compute_days_off(days_open: dict[str, DayHours]) -> list[int]:
    return [number for number, day in enumerate(DAY_NUMBER_TO_NAME) if not days_open[day].open]


def _check_day(day: str) -> str:
    name = (day or "").strip().lower()
    if name not in DAY_NAME_TO_NUMBER:
        raise ValidationError(f"Unknown weekday: {day!r}")
    return name


def apply_shared_window(schedule: WeeklySchedule) -> WeeklySchedule:
    """Copy the shared opening/closing time onto every weekday.

    Custom per-day hours do not survive this step.
    """
    result = schedule.model_copy(deep=True)
    start = result.working_hours.start
    end = result.working_hours.end
    for hours in result.days_open.values():
        hours.start = start
        hours.end = end
    result.working_hours.days_off = compute_days_off(result.days_open)
    return result


def validate_schedule(schedule: WeeklySchedule) -> None:
    for day, hours in schedule.days_open.items():
        if hours.open and to_minutes(hours.start) >= to_minutes(hours.end):
            raise ValidationError(f"Opening time must be before closing time ({day}: {hours.start}-{hours.end})")


class AvailabilityConfig:
    """Owns the weekly business-hours schedule and its unsaved draft.

    ``load`` reads the persisted schedule (or the defaults), ``toggle_day`` and
    ``set_window`` edit the draft only, and ``save`` persists the draft and
    publishes it on ``businessHoursChanged``.

    One instance is shared by every request thread; draft edits wait while a
    save is writing to storage.
    """

    def __init__(
        self,
        storage: KeyValueStorage,
        bus: EventBus | None = None,
        settings: Settings | None = None,
    ):
        self.storage = storage
        self.bus = bus or EventBus()
        self.settings = settings or get_settings()
        self._lock = threading.RLock()
        self._schedule: WeeklySchedule | None = None
        self._draft: WeeklySchedule | None = None
        self._state = CLEAN

    @property
    def schedule(self) -> WeeklySchedule:
        with self._lock:
            if self._schedule is None:
                self.load()
            return self._schedule.model_copy(deep=True)

    @property
    def draft(self) -> WeeklySchedule:
        with self._lock:
            return self._ensure_draft().model_copy(deep=True)

    @property
    def state(self) -> str:
        return self._state

    @property
    def is_dirty(self) -> bool:
        return self._state == DIRTY

    def ensure_loaded(self) -> None:
        with self._lock:
            if self._schedule is None:
                self.load()

    def _ensure_draft(self) -> WeeklySchedule:
        if self._draft is None:
            self.load()
        return self._draft

    def _read_stored(self) -> WeeklySchedule | None:
        raw = self.storage.get_item(SCHEDULE_KEY)
        if raw is None:
            return None
        try:
            schedule = WeeklySchedule.model_validate_json(raw)
            validate_schedule(schedule)
        except (SchemaValidationError, ValidationError) as exc:
            logger.warning("Stored %s is invalid, falling back to defaults: %s", SCHEDULE_KEY, exc)
            return None
        return schedule

    def load(self) -> WeeklySchedule:
        with self._lock:
            try:
                stored = self._read_stored()
            except PersistenceError:
                raise
            except Exception as exc:
                raise PersistenceError(f"Could not read {SCHEDULE_KEY}: {exc}", key=SCHEDULE_KEY) from exc

            if stored is None:
                logger.info("No stored business hours, using defaults")
                schedule = default_schedule(self.settings)
            else:
                schedule = stored
                schedule.working_hours.days_off = compute_days_off(schedule.days_open)

            self._schedule = schedule
            self._draft = schedule.model_copy(deep=True)
            self._state = CLEAN
            return schedule.model_copy(deep=True)

    def toggle_day(self, day: str) -> WeeklySchedule:
        name = _check_day(day)
        with self._lock:
            draft = self._ensure_draft()
            draft.days_open[name].open = not draft.days_open[name].open
            self._state = DIRTY
            return draft.model_copy(deep=True)

    def set_window(self, start: str, end: str) -> WeeklySchedule:
        start = normalize_time(start)
        end = normalize_time(end)
        with self._lock:
            draft = self._ensure_draft()
            draft.working_hours.start = start
            draft.working_hours.end = end
            self._state = DIRTY
            return draft.model_copy(deep=True)

    def save(self, draft: WeeklySchedule | None = None) -> WeeklySchedule:
        with self._lock:
            schedule = self._persist(draft)
        # listeners run outside the lock so they may read this config
        self.bus.publish(BUSINESS_HOURS_CHANGED, schedule.model_copy(deep=True))
        return schedule.model_copy(deep=True)

    def _persist(self, draft: WeeklySchedule | None) -> WeeklySchedule:
        source = draft if draft is not None else self._ensure_draft()
        schedule = apply_shared_window(source)
        validate_schedule(schedule)

        try:
            self.storage.set_item(SCHEDULE_KEY, schedule.to_json())
        except PersistenceError:
            logger.warning("Saving business hours failed, draft kept")
            raise
        except Exception as exc:
            logger.warning("Saving business hours failed, draft kept: %s", exc)
            raise PersistenceError(f"Could not write {SCHEDULE_KEY}: {exc}", key=SCHEDULE_KEY) from exc

        try:
            self.storage.set_item(REFRESH_FLAG_KEY, "true")
        except Exception as exc:
            # Appointment lists only miss one refresh hint.
            logger.warning("Could not set %s: %s", REFRESH_FLAG_KEY, exc)

        self._schedule = schedule
        self._draft = schedule.model_copy(deep=True)
        self._state = CLEAN
        logger.info(
            "Business hours saved: %s-%s, days off %s",
            schedule.working_hours.start,
            schedule.working_hours.end,
            schedule.working_hours.days_off,
        )
        return schedule

    def discard(self) -> WeeklySchedule:
        return self.load()

    def subscribe(self, listener: ScheduleListener) -> Callable[[], None]:
        return self.bus.subscribe(BUSINESS_HOURS_CHANGED, listener)

    def unsubscribe(self, listener: ScheduleListener) -> None:
        self.bus.unsubscribe(BUSINESS_HOURS_CHANGED, listener)


def appointment_list_should_refresh(storage: KeyValueStorage) -> bool:
    return storage.get_item(REFRESH_FLAG_KEY) == "true"


def clear_appointment_list_refresh(storage: KeyValueStorage) -> None:
    storage.remove_item(REFRESH_FLAG_KEY)
