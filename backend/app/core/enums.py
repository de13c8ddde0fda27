"""
Core enums for the Parla scheduling service.

Every value here is persisted or sent over the wire, so members are
(str, Enum) with explicit values and consumers match on them exhaustively.
"""

from enum import Enum


class RoleName(str, Enum):
    """Roles an acting principal can hold."""

    ADMIN = "admin"
    TEACHER = "teacher"
    STUDENT = "student"


class DayOfWeek(str, Enum):
    """
    Canonical day-of-week key for availability rules.

    Declaration order follows ``date.isoweekday() % 7`` so that
    ``list(DayOfWeek)[n]`` is the day with number ``n`` (0 = Sunday).
    """

    SUNDAY = "sunday"
    MONDAY = "monday"
    TUESDAY = "tuesday"
    WEDNESDAY = "wednesday"
    THURSDAY = "thursday"
    FRIDAY = "friday"
    SATURDAY = "saturday"

    @property
    def number(self) -> int:
        return _DAY_NUMBERS[self]

    @classmethod
    def from_number(cls, number: int) -> "DayOfWeek":
        return list(cls)[number % 7]


_DAY_NUMBERS = {day: index for index, day in enumerate(DayOfWeek)}


class SchedulingErrorCode(str, Enum):
    """Closed set of reasons a scheduling request can be rejected."""

    SLOT_ALREADY_BOOKED = "SlotAlreadyBooked"
    SLOT_OUTSIDE_AVAILABILITY = "SlotOutsideAvailability"
    INVALID_DURATION = "InvalidDuration"
    INVALID_TIMEZONE = "InvalidTimezone"
    TEACHER_NOT_FOUND = "TeacherNotFound"
    STUDENT_NOT_FOUND = "StudentNotFound"
    BOOKING_NOT_FOUND = "BookingNotFound"
    ALREADY_COMPLETED = "AlreadyCompleted"
    ALREADY_CANCELLED = "AlreadyCancelled"
    TOO_CLOSE_TO_START = "TooCloseToStart"
    QUOTA_EXHAUSTED = "QuotaExhausted"
    INVALID_STATE_TRANSITION = "InvalidStateTransition"
