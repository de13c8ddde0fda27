# backend/app/repositories/booking_repository.py
"""
Booking Repository for the Parla scheduling service.

Data access for class bookings. All ``day``/``time_slot`` arguments here are
UTC strings exactly as stored; conversion happens in the service layer.

The two write paths that touch slot identity (``create`` via the base class
and ``move_if_unchanged``) rely on the partial unique index on
(teacher_id, day, time_slot) and surface IntegrityError to the caller.
"""

from datetime import datetime, timezone
import logging
from typing import Dict, Iterable, List, Optional, Tuple

from sqlalchemy import func, or_, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from ..core.exceptions import RepositoryException
from ..models.booking import (
    SLOT_HOLDING_STATUSES,
    BookingRescheduleLog,
    BookingStatus,
    ClassBooking,
)
from .base_repository import BaseRepository

logger = logging.getLogger(__name__)


class BookingRepository(BaseRepository[ClassBooking]):
    """Repository for class bookings and their reschedule history."""

    def __init__(self, db: Session):
        super().__init__(db, ClassBooking)

    def reload(self, booking_id: str) -> Optional[ClassBooking]:
        """Fetch a booking bypassing the identity map (sees concurrent commits)."""
        try:
            return self.db.get(ClassBooking, booking_id, populate_existing=True)
        except SQLAlchemyError as e:
            self.logger.error(f"Error reloading booking {booking_id}: {str(e)}")
            raise RepositoryException(f"Failed to reload booking: {str(e)}")

    # Conflict lookups

    def get_slot_holding_bookings(
        self,
        teacher_id: str,
        days: Iterable[str],
        exclude_booking_id: Optional[str] = None,
    ) -> List[ClassBooking]:
        """Slot-holding bookings of one teacher on the given UTC days."""
        day_list = sorted(set(days))
        if not day_list:
            return []
        try:
            query = self.db.query(ClassBooking).filter(
                ClassBooking.teacher_id == teacher_id,
                ClassBooking.day.in_(day_list),
                ClassBooking.status.in_(SLOT_HOLDING_STATUSES),
            )
            if exclude_booking_id:
                query = query.filter(ClassBooking.id != exclude_booking_id)
            return query.order_by(ClassBooking.day, ClassBooking.time_slot).all()
        except SQLAlchemyError as e:
            self.logger.error(f"Error loading bookings for teacher {teacher_id}: {str(e)}")
            raise RepositoryException(f"Failed to load bookings: {str(e)}")

    def get_busy_teacher_ids(self, days: Iterable[str]) -> Dict[str, List[Tuple[str, str]]]:
        """Map teacher id to the (day, time_slot) pairs they hold on the given UTC days."""
        day_list = sorted(set(days))
        busy: Dict[str, List[Tuple[str, str]]] = {}
        if not day_list:
            return busy
        try:
            rows = (
                self.db.query(ClassBooking.teacher_id, ClassBooking.day, ClassBooking.time_slot)
                .filter(
                    ClassBooking.day.in_(day_list),
                    ClassBooking.status.in_(SLOT_HOLDING_STATUSES),
                )
                .all()
            )
        except SQLAlchemyError as e:
            self.logger.error(f"Error loading busy teachers: {str(e)}")
            raise RepositoryException(f"Failed to load busy teachers: {str(e)}")
        for teacher_id, day, time_slot in rows:
            busy.setdefault(teacher_id, []).append((day, time_slot))
        return busy

    # Writes

    def move_if_unchanged(
        self,
        booking_id: str,
        expected_reschedule_count: int,
        *,
        expected_day: str,
        expected_time_slot: str,
        new_day: str,
        new_time_slot: str,
        timezone_str: str,
        increment: bool,
    ) -> int:
        """
        Compare-and-swap move of a confirmed booking.

        Succeeds only if the booking is still CONFIRMED on ``expected_day``
        and ``expected_time_slot`` with the expected ``reschedule_count``. Moves
        that leave the count alone are still detected by the slot. Returns the
        number of rows updated (0 or 1).

        Raises:
            IntegrityError: If the target slot is held by another booking
        """
        new_count = expected_reschedule_count + (1 if increment else 0)
        stmt = (
            update(ClassBooking)
            .where(
                ClassBooking.id == booking_id,
                ClassBooking.status == BookingStatus.CONFIRMED.value,
                ClassBooking.reschedule_count == expected_reschedule_count,
                ClassBooking.day == expected_day,
                ClassBooking.time_slot == expected_time_slot,
            )
            .values(
                day=new_day,
                time_slot=new_time_slot,
                timezone=timezone_str,
                reschedule_count=new_count,
                updated_at=datetime.now(timezone.utc),
            )
            .execution_options(synchronize_session=False)
        )
        try:
            result = self.db.execute(stmt)
        except IntegrityError:
            raise
        except SQLAlchemyError as e:
            self.logger.error(f"Error moving booking {booking_id}: {str(e)}")
            raise RepositoryException(f"Failed to move booking: {str(e)}")
        return int(result.rowcount or 0)

    def add_reschedule_log(self, **kwargs) -> BookingRescheduleLog:
        entry = BookingRescheduleLog(**kwargs)
        self.db.add(entry)
        self.db.flush()
        return entry

    def get_reschedule_history(self, booking_id: str) -> List[BookingRescheduleLog]:
        return (
            self.db.query(BookingRescheduleLog)
            .filter(BookingRescheduleLog.booking_id == booking_id)
            .order_by(BookingRescheduleLog.created_at, BookingRescheduleLog.id)
            .all()
        )

    # Listings

    def list_for_user(self, user_id: str, days: Iterable[str]) -> List[ClassBooking]:
        """Bookings where the user is the student or the teacher, on the given UTC days."""
        day_list = sorted(set(days))
        if not day_list:
            return []
        try:
            return (
                self.db.query(ClassBooking)
                .filter(
                    or_(ClassBooking.student_id == user_id, ClassBooking.teacher_id == user_id),
                    ClassBooking.day.in_(day_list),
                )
                .order_by(ClassBooking.day, ClassBooking.time_slot)
                .all()
            )
        except SQLAlchemyError as e:
            self.logger.error(f"Error listing bookings for user {user_id}: {str(e)}")
            raise RepositoryException(f"Failed to list bookings: {str(e)}")

    def count_by_status(self, teacher_id: Optional[str] = None) -> Dict[str, int]:
        """Number of bookings per status, zero-filled for every status."""
        try:
            query = self.db.query(ClassBooking.status, func.count(ClassBooking.id))
            if teacher_id:
                query = query.filter(ClassBooking.teacher_id == teacher_id)
            rows = query.group_by(ClassBooking.status).all()
        except SQLAlchemyError as e:
            self.logger.error(f"Error counting bookings: {str(e)}")
            raise RepositoryException(f"Failed to count bookings: {str(e)}")
        counts = {status.value: 0 for status in BookingStatus}
        for status, count in rows:
            counts[status] = int(count)
        return counts
