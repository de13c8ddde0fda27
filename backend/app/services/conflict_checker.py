# backend/app/services/conflict_checker.py
"""
Booking Conflict Detector for the Parla scheduling service.

A teacher never holds two slot-holding bookings whose UTC intervals overlap.
The pre-check compares intervals, so a 30-minute class cannot be squeezed
into the middle of a 60-minute one. The partial unique index on
class_bookings decides races between concurrent writers of the same slot,
and its IntegrityError is mapped to the same SlotAlreadyBooked rejection.

Moves use compare-and-swap on (status, reschedule_count, day, time_slot). A
move that lost the race raises StaleBookingError so the caller can re-read
and retry.
"""

from datetime import date, timedelta
import logging
from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..core.exceptions import ServiceException, SlotAlreadyBookedException
from ..core.timezone_utils import format_day
from ..domain.time_slot import TimeSlot
from ..models.booking import ClassBooking
from ..monitoring.prometheus_metrics import prometheus_metrics
from ..repositories.factory import RepositoryFactory
from .base import BaseService
from .timezone_service import TimezoneService

logger = logging.getLogger(__name__)


class StaleBookingError(Exception):
    """The booking changed between read and compare-and-swap."""

    def __init__(self, booking_id: str):
        self.booking_id = booking_id
        super().__init__(f"Booking {booking_id} changed concurrently")


class ConflictChecker(BaseService):
    """Claims and moves slots without ever double-booking a teacher."""

    def __init__(self, db: Session, booking_repository=None):
        super().__init__(db)
        self.booking_repository = (
            booking_repository or RepositoryFactory.create_booking_repository(db)
        )

    def find_overlapping_booking(
        self,
        teacher_id: str,
        day: date,
        time_slot: TimeSlot,
        exclude_booking_id: Optional[str] = None,
    ) -> Optional[ClassBooking]:
        """The first slot-holding booking of the teacher whose UTC interval overlaps the slot."""
        start, end = TimezoneService.utc_slot_bounds(day, time_slot)
        nearby_days = [format_day(day + timedelta(days=offset)) for offset in (-1, 0, 1)]
        for booking in self.booking_repository.get_slot_holding_bookings(
            teacher_id, nearby_days, exclude_booking_id=exclude_booking_id
        ):
            held_start, held_end = TimezoneService.utc_slot_bounds(booking.day, booking.time_slot)
            if start < held_end and held_start < end:
                return booking
        return None

    def is_slot_taken(
        self,
        teacher_id: str,
        day: date,
        time_slot: TimeSlot,
        exclude_booking_id: Optional[str] = None,
    ) -> bool:
        return (
            self.find_overlapping_booking(
                teacher_id, day, time_slot, exclude_booking_id=exclude_booking_id
            )
            is not None
        )

    def _conflict(
        self, operation: str, detected_by: str, teacher_id: str, day: str, time_slot: str
    ) -> SlotAlreadyBookedException:
        prometheus_metrics.record_booking_conflict(operation, detected_by)
        self.logger.info(
            "Slot already booked",
            extra={
                "operation": operation,
                "detected_by": detected_by,
                "teacher_id": teacher_id,
                "day": day,
                "time_slot": time_slot,
            },
        )
        return SlotAlreadyBookedException(
            details={"teacher_id": teacher_id, "day": day, "time_slot": time_slot}
        )

    @BaseService.measure_operation("try_create")
    def try_create(
        self,
        *,
        teacher_id: str,
        student_id: str,
        day: date,
        time_slot: TimeSlot,
        timezone: str,
        course_id: Optional[str] = None,
        is_payable: bool = True,
    ) -> ClassBooking:
        """
        Insert a CONFIRMED booking for a UTC day and slot.

        Does not commit; the caller's transaction owns the write.

        Raises:
            SlotAlreadyBookedException: If the slot is held, whether found by
                the pre-check or by the unique index
        """
        day_str, slot_str = format_day(day), str(time_slot)
        if self.is_slot_taken(teacher_id, day, time_slot):
            raise self._conflict("create", "precheck", teacher_id, day_str, slot_str)

        try:
            return self.booking_repository.create(
                student_id=student_id,
                teacher_id=teacher_id,
                course_id=course_id,
                day=day_str,
                time_slot=slot_str,
                timezone=timezone,
                is_payable=is_payable,
            )
        except IntegrityError as exc:
            self.db.rollback()
            raise self._conflict("create", "constraint", teacher_id, day_str, slot_str) from exc

    @BaseService.measure_operation("try_move")
    def try_move(
        self,
        booking: ClassBooking,
        day: date,
        time_slot: TimeSlot,
        *,
        timezone: str,
        increment: bool = True,
    ) -> ClassBooking:
        """
        Move ``booking`` to a new UTC day and slot.

        Moving a booking onto the slot it already holds is a no-op and does
        not touch ``reschedule_count``.

        Raises:
            SlotAlreadyBookedException: If another booking holds the target slot
            StaleBookingError: If the booking changed since it was read
        """
        day_str, slot_str = format_day(day), str(time_slot)
        if booking.day == day_str and booking.time_slot == slot_str:
            return booking

        if self.is_slot_taken(booking.teacher_id, day, time_slot, exclude_booking_id=booking.id):
            raise self._conflict("move", "precheck", booking.teacher_id, day_str, slot_str)

        try:
            updated = self.booking_repository.move_if_unchanged(
                booking.id,
                booking.reschedule_count,
                expected_day=booking.day,
                expected_time_slot=booking.time_slot,
                new_day=day_str,
                new_time_slot=slot_str,
                timezone_str=timezone,
                increment=increment,
            )
        except IntegrityError as exc:
            self.db.rollback()
            raise self._conflict(
                "move", "constraint", booking.teacher_id, day_str, slot_str
            ) from exc

        if updated == 0:
            raise StaleBookingError(booking.id)

        moved = self.booking_repository.reload(booking.id)
        if moved is None:
            raise ServiceException(
                f"Booking {booking.id} disappeared during move", code="BOOKING_MOVE_FAILED"
            )
        return moved
