"""
Pydantic schemas for the Parla scheduling service.

Request models reject unknown fields; response models are built from ORM
rows through explicit ``from_*`` helpers or ``from_attributes``.
"""

# Availability schemas - weekly rules and bookable slots
from .availability import (
    AvailabilityRuleIn,
    AvailabilityRuleResponse,
    AvailabilityToggle,
    AvailableTeacher,
    AvailableTeachersResponse,
    BookableSlotsResponse,
    SlotRangeResponse,
    WeekAvailabilityResponse,
    WeekAvailabilityUpdate,
)

# Booking schemas
from .booking import (
    BookingCancel,
    BookingCreate,
    BookingDeletedResponse,
    BookingReschedule,
    BookingResponse,
    BookingStatsResponse,
    ClassAccessResponse,
    RescheduleEligibilityResponse,
    RescheduleOptionsResponse,
    ScheduleEntryResponse,
    ScheduleResponse,
)

__all__ = [
    # Availability
    "AvailabilityRuleIn",
    "AvailabilityRuleResponse",
    "AvailabilityToggle",
    "AvailableTeacher",
    "AvailableTeachersResponse",
    "BookableSlotsResponse",
    "SlotRangeResponse",
    "WeekAvailabilityResponse",
    "WeekAvailabilityUpdate",
    # Booking
    "BookingCancel",
    "BookingCreate",
    "BookingDeletedResponse",
    "BookingReschedule",
    "BookingResponse",
    "BookingStatsResponse",
    "ClassAccessResponse",
    "RescheduleEligibilityResponse",
    "RescheduleOptionsResponse",
    "ScheduleEntryResponse",
    "ScheduleResponse",
]
