from datetime import date
from typing import Annotated, Literal

from pydantic import AfterValidator, BaseModel, ConfigDict, Field, field_validator

from ..utils.time_utils import normalize_time

DayName = Literal["monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday"]

# Display order of the settings page
WEEK_DAYS: tuple[str, ...] = ("monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday")

# index = weekday number, 0 = Sunday
DAY_NUMBER_TO_NAME: tuple[str, ...] = ("sunday", "monday", "tuesday", "wednesday", "thursday", "friday", "saturday")
DAY_NAME_TO_NUMBER: dict[str, int] = {name: number for number, name in enumerate(DAY_NUMBER_TO_NAME)}

TimeOfDay = Annotated[str, AfterValidator(normalize_time)]


class DayHours(BaseModel):
    open: bool = True
    start: TimeOfDay = "10:00"
    end: TimeOfDay = "20:00"


class TimeWindow(BaseModel):
    start: TimeOfDay
    end: TimeOfDay


class WorkingHours(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    start: TimeOfDay
    end: TimeOfDay
    days_off: list[int] = Field(default_factory=list, alias="daysOff")


class WeeklySchedule(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    days_open: dict[DayName, DayHours] = Field(..., alias="daysOpen")
    working_hours: WorkingHours = Field(..., alias="workingHours")
    appointment_buffer: int = Field(15, ge=0, alias="appointmentBuffer")

    @field_validator("days_open")
    @classmethod
    def _all_seven_days(cls, value: dict[str, DayHours]) -> dict[str, DayHours]:
        missing = [day for day in WEEK_DAYS if day not in value]
        if missing:
            raise ValueError(f"daysOpen is missing: {', '.join(missing)}")
        return {day: value[day] for day in WEEK_DAYS}

    def to_json(self) -> str:
        return self.model_dump_json(by_alias=True)


class ServiceAvailability(BaseModel):
    use_business_hours: bool = True
    custom_hours: TimeWindow | None = None
    days_available: list[int] = Field(default_factory=lambda: [1, 2, 3, 4, 6, 0])

    @field_validator("days_available")
    @classmethod
    def _weekday_numbers(cls, value: list[int]) -> list[int]:
        for day in value:
            if not 0 <= day <= 6:
                raise ValueError("days_available must be integers between 0 and 6")
        return value


class BusinessHoursOut(BaseModel):
    schedule: WeeklySchedule
    draft: WeeklySchedule
    dirty: bool


class SlotsOut(BaseModel):
    day: date
    day_name: str
    open: bool
    slots: list[str]
    display: list[str]


class RefreshFlagOut(BaseModel):
    should_refresh: bool
