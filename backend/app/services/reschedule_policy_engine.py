"""Reschedule eligibility rules for class bookings."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from app.core.config import settings
from app.core.enums import SchedulingErrorCode
from app.core.exceptions import SchedulingException, scheduling_exception_for
from app.models.booking import BookingStatus, ClassBooking
from app.services.timezone_service import TimezoneService

_MESSAGES = {
    SchedulingErrorCode.ALREADY_COMPLETED: "This class has already taken place",
    SchedulingErrorCode.ALREADY_CANCELLED: "This class has been cancelled",
    SchedulingErrorCode.QUOTA_EXHAUSTED: "No reschedules left for this class",
}


@dataclass(frozen=True)
class RescheduleEligibility:
    can_reschedule: bool
    reason: Optional[SchedulingErrorCode] = None
    message: Optional[str] = None
    reschedules_used: int = 0
    max_reschedules: int = 0
    hours_until_start: Optional[float] = None

    @property
    def reschedules_remaining(self) -> int:
        return max(0, self.max_reschedules - self.reschedules_used)

    def to_payload(self) -> Dict[str, Any]:
        return {
            "can_reschedule": self.can_reschedule,
            "reason": self.reason.value if self.reason else None,
            "message": self.message,
            "reschedules_used": self.reschedules_used,
            "reschedules_remaining": self.reschedules_remaining,
            "max_reschedules": self.max_reschedules,
            "hours_until_start": (
                round(self.hours_until_start, 2) if self.hours_until_start is not None else None
            ),
        }

    def to_exception(self) -> SchedulingException:
        if self.reason is None:
            raise ValueError("Eligible result has no rejection to raise")
        return scheduling_exception_for(self.reason, self.message, self.to_payload())


class ReschedulePolicyEngine:
    """
    Decides whether a booking may move.

    Checks run in a fixed order and the first failure wins: terminal status,
    cancellation, reschedule quota, then lead time before the start.
    """

    def __init__(
        self,
        max_reschedules: Optional[int] = None,
        min_lead_hours: Optional[float] = None,
    ):
        self.max_reschedules = (
            settings.max_reschedules if max_reschedules is None else max_reschedules
        )
        self.min_lead_hours = (
            settings.reschedule_min_lead_hours if min_lead_hours is None else min_lead_hours
        )

    def check_eligibility(
        self,
        booking: ClassBooking,
        now: Optional[datetime] = None,
        *,
        ignore_quota: bool = False,
    ) -> RescheduleEligibility:
        current = now or datetime.now(timezone.utc)
        used = int(booking.reschedule_count or 0)
        start_utc, _ = TimezoneService.utc_slot_bounds(booking.day, booking.time_slot)
        hours = TimezoneService.hours_until(start_utc, current)

        def _reject(code: SchedulingErrorCode, message: str) -> RescheduleEligibility:
            return RescheduleEligibility(
                can_reschedule=False,
                reason=code,
                message=message,
                reschedules_used=used,
                max_reschedules=self.max_reschedules,
                hours_until_start=hours,
            )

        status = BookingStatus(booking.status)
        if status in (BookingStatus.COMPLETED, BookingStatus.NO_SHOW):
            return _reject(
                SchedulingErrorCode.ALREADY_COMPLETED,
                _MESSAGES[SchedulingErrorCode.ALREADY_COMPLETED],
            )
        if status is BookingStatus.CANCELLED:
            return _reject(
                SchedulingErrorCode.ALREADY_CANCELLED,
                _MESSAGES[SchedulingErrorCode.ALREADY_CANCELLED],
            )
        if not ignore_quota and used >= self.max_reschedules:
            return _reject(
                SchedulingErrorCode.QUOTA_EXHAUSTED,
                _MESSAGES[SchedulingErrorCode.QUOTA_EXHAUSTED],
            )
        if hours <= self.min_lead_hours:
            return _reject(
                SchedulingErrorCode.TOO_CLOSE_TO_START,
                f"Classes can only be rescheduled more than {self.min_lead_hours:g} hours "
                "before they start",
            )

        return RescheduleEligibility(
            can_reschedule=True,
            reschedules_used=used,
            max_reschedules=self.max_reschedules,
            hours_until_start=hours,
        )
