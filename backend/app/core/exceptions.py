# backend/app/core/exceptions.py
"""
Domain-specific exceptions for the Parla scheduling service.

These exceptions provide clear, business-focused error messages
that can be caught and handled appropriately at the API layer.

Scheduling rejections form a closed set (SchedulingErrorCode). Each code
has exactly one exception class below; the scheduling facade turns them
into failed results and the routes turn those back into HTTP errors.
"""

from typing import Any, Dict, Optional, Type

from fastapi import HTTPException, status

from .enums import SchedulingErrorCode

HTTP_422_UNPROCESSABLE: int = getattr(status, "HTTP_422_UNPROCESSABLE_CONTENT", 422)


class DomainException(Exception):
    """Base exception for all domain-specific errors."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.message = message
        self.code = code or self.__class__.__name__
        self.details = details or {}
        super().__init__(self.message)

    def to_http_exception(self) -> HTTPException:
        return HTTPException(
            status_code=self.status_code,
            detail={
                "message": self.message,
                "code": self.code,
                "details": self.details,
            },
        )


class ValidationException(DomainException):
    """Raised when input validation fails."""

    status_code = status.HTTP_400_BAD_REQUEST


class NotFoundException(DomainException):
    """Raised when a requested resource is not found."""

    status_code = status.HTTP_404_NOT_FOUND


class ConflictException(DomainException):
    """Raised when there's a conflict with existing data."""

    status_code = status.HTTP_409_CONFLICT


class BusinessRuleException(DomainException):
    """Raised when a business rule is violated."""

    status_code = HTTP_422_UNPROCESSABLE


class ForbiddenException(DomainException):
    """Raised when the acting user lacks permission for an action."""

    status_code = status.HTTP_403_FORBIDDEN


class ServiceException(DomainException):
    """Raised when a service operation fails."""

    def to_http_exception(self) -> HTTPException:
        return HTTPException(
            status_code=self.status_code,
            detail={
                "message": self.message or "An error occurred processing your request",
                "code": self.code,
                "details": self.details if self.details else {},
            },
        )


class RepositoryException(Exception):
    """
    Exception raised for repository layer errors.

    This exception is used when data access operations fail,
    such as database connection issues, query failures, or
    constraint violations.
    """


# Scheduling rejections


class SchedulingException(DomainException):
    """Base for the closed set of scheduling rejections."""

    error_code: SchedulingErrorCode
    default_message: str = "Scheduling request rejected"

    def __init__(
        self,
        message: Optional[str] = None,
        *,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(
            message=message or self.default_message,
            code=self.error_code.value,
            details=details or {},
        )


class SlotAlreadyBookedException(SchedulingException, ConflictException):
    error_code = SchedulingErrorCode.SLOT_ALREADY_BOOKED
    default_message = "This time slot is already booked"


class SlotOutsideAvailabilityException(SchedulingException, BusinessRuleException):
    error_code = SchedulingErrorCode.SLOT_OUTSIDE_AVAILABILITY
    default_message = "This time slot is not part of the teacher's availability"


class InvalidDurationException(SchedulingException, BusinessRuleException):
    error_code = SchedulingErrorCode.INVALID_DURATION
    default_message = "Class duration must be a positive number of minutes"


class InvalidTimezoneException(SchedulingException, ValidationException):
    error_code = SchedulingErrorCode.INVALID_TIMEZONE
    default_message = "Unknown timezone"


class TeacherNotFoundException(SchedulingException, NotFoundException):
    error_code = SchedulingErrorCode.TEACHER_NOT_FOUND
    default_message = "Teacher not found"


class StudentNotFoundException(SchedulingException, NotFoundException):
    error_code = SchedulingErrorCode.STUDENT_NOT_FOUND
    default_message = "Student not found"


class BookingNotFoundException(SchedulingException, NotFoundException):
    error_code = SchedulingErrorCode.BOOKING_NOT_FOUND
    default_message = "Booking not found"


class AlreadyCompletedException(SchedulingException, BusinessRuleException):
    error_code = SchedulingErrorCode.ALREADY_COMPLETED
    default_message = "This class has already taken place"


class AlreadyCancelledException(SchedulingException, BusinessRuleException):
    error_code = SchedulingErrorCode.ALREADY_CANCELLED
    default_message = "This class has been cancelled"


class TooCloseToStartException(SchedulingException, BusinessRuleException):
    error_code = SchedulingErrorCode.TOO_CLOSE_TO_START
    default_message = "This class starts too soon to be rescheduled"


class QuotaExhaustedException(SchedulingException, BusinessRuleException):
    error_code = SchedulingErrorCode.QUOTA_EXHAUSTED
    default_message = "No reschedules left for this class"


class InvalidStateTransitionException(SchedulingException, BusinessRuleException):
    error_code = SchedulingErrorCode.INVALID_STATE_TRANSITION
    default_message = "This change is not allowed for the class in its current state"


SCHEDULING_EXCEPTIONS: Dict[SchedulingErrorCode, Type[SchedulingException]] = {
    cls.error_code: cls
    for cls in (
        SlotAlreadyBookedException,
        SlotOutsideAvailabilityException,
        InvalidDurationException,
        InvalidTimezoneException,
        TeacherNotFoundException,
        StudentNotFoundException,
        BookingNotFoundException,
        AlreadyCompletedException,
        AlreadyCancelledException,
        TooCloseToStartException,
        QuotaExhaustedException,
        InvalidStateTransitionException,
    )
}


def scheduling_exception_for(
    code: SchedulingErrorCode,
    message: Optional[str] = None,
    details: Optional[Dict[str, Any]] = None,
) -> SchedulingException:
    """Rebuild the exception for a rejection code (used when rendering results)."""
    return SCHEDULING_EXCEPTIONS[code](message, details=details)
