# backend/app/schemas/booking.py
"""
Booking schemas for the Parla scheduling service.

Requests carry ``day``/``time_slot`` in the caller's zone together with an
explicit IANA ``timezone``. Responses show the booking in a viewer zone and
also echo the stored UTC identity so clients can de-duplicate.
"""

from datetime import datetime
import re
from typing import Dict, List, Optional

from pydantic import Field, field_validator

from ..core.constants import MAX_REASON_LENGTH
from ..models.booking import BookingStatus, ClassBooking
from ..services.timezone_service import TimezoneService
from ._strict_base import StrictModel, StrictRequestModel

DATE_ONLY_REGEX = re.compile(r"^\d{4}-\d{2}-\d{2}$")
TIME_SLOT_REGEX = re.compile(r"^\d{1,2}:\d{2}-\d{1,2}:\d{2}$")


def _ensure_date_only(value: str, field_name: str) -> str:
    candidate = value.strip()
    if not DATE_ONLY_REGEX.fullmatch(candidate):
        raise ValueError(f"{field_name} must be a YYYY-MM-DD date-only string")
    return candidate


def _ensure_time_slot(value: str) -> str:
    candidate = value.strip()
    if not TIME_SLOT_REGEX.fullmatch(candidate):
        raise ValueError("time_slot must look like HH:MM-HH:MM")
    return candidate


class BookingCreate(StrictRequestModel):
    """Book one slot; ``day`` and ``time_slot`` are wall-clock in ``timezone``."""

    student_id: str
    teacher_id: str
    day: str = Field(..., examples=["2026-11-02"])
    time_slot: str = Field(..., examples=["10:00-11:00"])
    timezone: str = Field(..., min_length=1, examples=["America/Lima"])
    course_id: Optional[str] = None
    admin_override: bool = False

    @field_validator("day")
    @classmethod
    def _validate_day(cls, v: str) -> str:
        return _ensure_date_only(v, "day")

    @field_validator("time_slot")
    @classmethod
    def _validate_slot(cls, v: str) -> str:
        return _ensure_time_slot(v)


class BookingReschedule(StrictRequestModel):
    day: str
    time_slot: str
    timezone: str = Field(..., min_length=1)
    admin_override: bool = False

    @field_validator("day")
    @classmethod
    def _validate_day(cls, v: str) -> str:
        return _ensure_date_only(v, "day")

    @field_validator("time_slot")
    @classmethod
    def _validate_slot(cls, v: str) -> str:
        return _ensure_time_slot(v)


class BookingCancel(StrictRequestModel):
    reason: Optional[str] = Field(None, max_length=MAX_REASON_LENGTH)


class BookingResponse(StrictModel):
    id: str
    student_id: str
    teacher_id: str
    course_id: Optional[str] = None
    day: str
    time_slot: str
    timezone: str
    utc_day: str
    utc_time_slot: str
    status: BookingStatus
    reschedule_count: int
    is_payable: bool
    created_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    cancelled_at: Optional[datetime] = None
    cancellation_reason: Optional[str] = None

    @classmethod
    def from_booking(cls, booking: ClassBooking, tz: Optional[str] = None) -> "BookingResponse":
        """Render ``booking`` in ``tz`` (default: the zone it was booked in)."""
        viewer_tz = tz or booking.timezone
        local_day, local_slot = TimezoneService.convert_time_slot_from_utc(
            booking.day, booking.time_slot, viewer_tz
        )
        return cls(
            id=booking.id,
            student_id=booking.student_id,
            teacher_id=booking.teacher_id,
            course_id=booking.course_id,
            day=local_day.isoformat(),
            time_slot=str(local_slot),
            timezone=viewer_tz,
            utc_day=booking.day,
            utc_time_slot=booking.time_slot,
            status=BookingStatus(booking.status),
            reschedule_count=booking.reschedule_count,
            is_payable=booking.is_payable,
            created_at=booking.created_at,
            completed_at=booking.completed_at,
            cancelled_at=booking.cancelled_at,
            cancellation_reason=booking.cancellation_reason,
        )


class RescheduleEligibilityResponse(StrictModel):
    can_reschedule: bool
    reason: Optional[str] = None
    message: Optional[str] = None
    reschedules_used: int
    reschedules_remaining: int
    max_reschedules: int
    hours_until_start: Optional[float] = None


class RescheduleOptionsResponse(StrictModel):
    booking_id: str
    day: str
    timezone: str
    eligibility: RescheduleEligibilityResponse
    slots: List[str]


class ClassAccessResponse(StrictModel):
    booking_id: str
    can_access: bool
    reason: Optional[str] = None
    minutes_until_start: int
    seconds_until_start: int
    minutes_until_end: int
    seconds_until_end: int
    show_end_warning: bool


class ScheduleEntryResponse(StrictModel):
    booking_id: str
    day: str
    time_slot: str
    timezone: str
    status: BookingStatus
    display_state: str
    role: str
    teacher_id: str
    student_id: str
    reschedule_count: int


class ScheduleResponse(StrictModel):
    user_id: str
    start_date: str
    end_date: str
    timezone: str
    entries: List[ScheduleEntryResponse]


class BookingStatsResponse(StrictModel):
    teacher_id: Optional[str] = None
    counts: Dict[str, int]
    total: int


class BookingDeletedResponse(StrictModel):
    booking_id: str
    deleted: bool = True
