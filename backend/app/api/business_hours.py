from datetime import date

from fastapi import APIRouter, Depends, HTTPException, Query, status

from ..api.deps import get_admin_auth, get_availability_config
from ..core.errors import PersistenceError, ValidationError
from ..schemas.business_hours import BusinessHoursOut, RefreshFlagOut, SlotsOut, TimeWindow, WeeklySchedule
from ..services import availability_service
from ..services.business_hours_service import (
    AvailabilityConfig,
    appointment_list_should_refresh,
    clear_appointment_list_refresh,
)
from ..utils.time_utils import format_24_to_12, half_hour_options

router = APIRouter()


def _persistence_failed(exc: PersistenceError) -> HTTPException:
    return HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc))


def _load(config: AvailabilityConfig) -> None:
    try:
        config.ensure_loaded()
    except PersistenceError as exc:
        raise _persistence_failed(exc)


@router.get("/", response_model=BusinessHoursOut)
def get_business_hours(config: AvailabilityConfig = Depends(get_availability_config)):
    _load(config)
    return BusinessHoursOut(schedule=config.schedule, draft=config.draft, dirty=config.is_dirty)


@router.post("/days/{day}/toggle", response_model=WeeklySchedule, dependencies=[Depends(get_admin_auth)])
def toggle_day(day: str, config: AvailabilityConfig = Depends(get_availability_config)):
    _load(config)
    try:
        return config.toggle_day(day)
    except ValidationError as exc:
        raise HTTPException(status_code=400, detail=str(exc))


@router.put("/window", response_model=WeeklySchedule, dependencies=[Depends(get_admin_auth)])
def set_window(payload: TimeWindow, config: AvailabilityConfig = Depends(get_availability_config)):
    _load(config)
    return config.set_window(payload.start, payload.end)


@router.post("/save", response_model=WeeklySchedule, dependencies=[Depends(get_admin_auth)])
def save_business_hours(config: AvailabilityConfig = Depends(get_availability_config)):
    _load(config)
    try:
        return config.save()
    except ValidationError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    except PersistenceError as exc:
        raise _persistence_failed(exc)


@router.post("/discard", response_model=WeeklySchedule, dependencies=[Depends(get_admin_auth)])
def discard_draft(config: AvailabilityConfig = Depends(get_availability_config)):
    try:
        return config.discard()
    except PersistenceError as exc:
        raise _persistence_failed(exc)


@router.get("/slots", response_model=SlotsOut)
def get_slots(
    day: date | None = Query(
        default=None,
        description="Date to list bookable start times for (YYYY-MM-DD); defaults to today in the salon timezone",
    ),
    slot_minutes: int | None = Query(default=None, ge=5, le=240),
    config: AvailabilityConfig = Depends(get_availability_config),
):
    day = day or availability_service.today()
    _load(config)
    schedule = config.schedule
    slots = availability_service.bookable_slots(day, schedule, slot_minutes)
    return SlotsOut(
        day=day,
        day_name=availability_service.day_name(day),
        open=availability_service.day_hours(day, schedule) is not None,
        slots=slots,
        display=[format_24_to_12(s) for s in slots],
    )


@router.get("/refresh-flag", response_model=RefreshFlagOut)
def get_refresh_flag(config: AvailabilityConfig = Depends(get_availability_config)):
    try:
        return RefreshFlagOut(should_refresh=appointment_list_should_refresh(config.storage))
    except PersistenceError as exc:
        raise _persistence_failed(exc)


@router.delete("/refresh-flag", response_model=RefreshFlagOut, dependencies=[Depends(get_admin_auth)])
def clear_refresh_flag(config: AvailabilityConfig = Depends(get_availability_config)):
    try:
        clear_appointment_list_refresh(config.storage)
    except PersistenceError as exc:
        raise _persistence_failed(exc)
    return RefreshFlagOut(should_refresh=False)


@router.get("/time-options", response_model=list[str])
def get_time_options():
    return half_hour_options()
