from .business_hours_service import (
    AvailabilityConfig,
    default_schedule,
    compute_days_off,
    appointment_list_should_refresh,
    clear_appointment_list_refresh,
)
from .availability_service import (
    AvailabilityView,
    is_within_working_hours,
    bookable_slots,
    service_slots,
)

__all__ = [
    "AvailabilityConfig",
    "default_schedule",
    "compute_days_off",
    "appointment_list_should_refresh",
    "clear_appointment_list_refresh",
    "AvailabilityView",
    "is_within_working_hours",
    "bookable_slots",
    "service_slots",
]
