"""Booking domain events sent to the notification system."""
from dataclasses import asdict, dataclass
from datetime import datetime
from typing import Any, ClassVar, Dict, Optional


@dataclass
class BookingCreated:
    """Fired after a booking is successfully created."""

    event_type: ClassVar[str] = "booking.created"

    booking_id: str
    student_id: str
    teacher_id: str
    day: str
    time_slot: str
    timezone: str
    created_at: datetime

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class BookingRescheduled:
    """Fired after a booking moves to a new slot."""

    event_type: ClassVar[str] = "booking.rescheduled"

    booking_id: str
    student_id: str
    teacher_id: str
    previous_day: str
    previous_time_slot: str
    day: str
    time_slot: str
    timezone: str
    reschedule_count: int
    admin_override: bool
    rescheduled_at: datetime

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class BookingCancelled:
    """Fired after a booking is cancelled."""

    event_type: ClassVar[str] = "booking.cancelled"

    booking_id: str
    student_id: str
    teacher_id: str
    cancelled_by: Optional[str]
    cancelled_at: datetime
    reason: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class BookingCompleted:
    """Fired after a booking is marked complete."""

    event_type: ClassVar[str] = "booking.completed"

    booking_id: str
    completed_at: datetime

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class BookingNoShow:
    """Fired after a booking is marked as a no-show."""

    event_type: ClassVar[str] = "booking.no_show"

    booking_id: str
    marked_at: datetime

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class BookingDeleted:
    """Fired after an administrator hard-deletes a booking."""

    event_type: ClassVar[str] = "booking.deleted"

    booking_id: str
    deleted_by: Optional[str]
    deleted_at: datetime

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)
