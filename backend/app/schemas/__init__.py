from .business_hours import (
    DayHours,
    TimeWindow,
    WorkingHours,
    WeeklySchedule,
    ServiceAvailability,
    BusinessHoursOut,
    SlotsOut,
    RefreshFlagOut,
)

__all__ = [
    "DayHours",
    "TimeWindow",
    "WorkingHours",
    "WeeklySchedule",
    "ServiceAvailability",
    "BusinessHoursOut",
    "SlotsOut",
    "RefreshFlagOut",
]
