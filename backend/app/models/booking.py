# backend/app/models/booking.py
"""
Class booking model for the Parla scheduling service.

A booking occupies one time slot on one day for a teacher/student pair.
``day`` and ``time_slot`` are stored as the UTC rendering of the slot;
``timezone`` records the zone of whoever created or last moved it, so the
booking can be shown back in that person's wall clock.

Slot identity is (teacher_id, day, time_slot). The partial unique index
below is what makes double-booking impossible: only CONFIRMED and
COMPLETED rows take part in it, so cancelled and no-show rows never block
a new claim on the same slot.
"""

from datetime import datetime, timezone
from enum import Enum
import logging
from typing import Any, Optional

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    text,
)
from sqlalchemy.sql import func
import ulid

from ..database import Base

logger = logging.getLogger(__name__)


class BookingStatus(str, Enum):
    """Booking lifecycle statuses."""

    CONFIRMED = "CONFIRMED"  # Only initial state
    COMPLETED = "COMPLETED"  # Class took place
    CANCELLED = "CANCELLED"  # Freed the slot
    NO_SHOW = "NO_SHOW"  # Student didn't attend


# Statuses that hold a slot; everything else releases it
SLOT_HOLDING_STATUSES = (BookingStatus.CONFIRMED.value, BookingStatus.COMPLETED.value)
_SLOT_HOLDING_SQL = text("status IN ('CONFIRMED', 'COMPLETED')")


class ClassBooking(Base):
    """
    One booked class session.

    At most one slot-holding booking exists per (teacher_id, day, time_slot).
    """

    __tablename__ = "class_bookings"

    id = Column(String(26), primary_key=True, index=True, default=lambda: str(ulid.ULID()))

    student_id = Column(String(26), ForeignKey("users.id"), nullable=False, index=True)
    teacher_id = Column(String(26), ForeignKey("users.id"), nullable=False, index=True)
    course_id = Column(String(26), ForeignKey("courses.id"), nullable=True)

    # UTC slot identity
    day = Column(String(10), nullable=False, index=True)
    time_slot = Column(String(11), nullable=False)
    timezone = Column(String(50), nullable=False)

    status = Column(String(20), nullable=False, default=BookingStatus.CONFIRMED.value, index=True)
    reschedule_count = Column(Integer, nullable=False, default=0)
    is_payable = Column(Boolean, nullable=False, default=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())
    completed_at = Column(DateTime(timezone=True), nullable=True)
    cancelled_at = Column(DateTime(timezone=True), nullable=True)

    cancelled_by_id = Column(String(26), ForeignKey("users.id"), nullable=True)
    cancellation_reason = Column(Text, nullable=True)

    __table_args__ = (
        CheckConstraint(
            "status IN ('CONFIRMED', 'COMPLETED', 'CANCELLED', 'NO_SHOW')",
            name="ck_class_bookings_status",
        ),
        CheckConstraint("reschedule_count >= 0", name="check_reschedule_count_non_negative"),
        Index(
            "uq_class_bookings_teacher_slot_active",
            "teacher_id",
            "day",
            "time_slot",
            unique=True,
            sqlite_where=_SLOT_HOLDING_SQL,
            postgresql_where=_SLOT_HOLDING_SQL,
        ),
        Index("ix_class_bookings_teacher_day", "teacher_id", "day"),
        Index("ix_class_bookings_student_day", "student_id", "day"),
    )

    def __init__(self, **kwargs: Any) -> None:
        """Bookings are confirmed the moment they are created."""
        super().__init__(**kwargs)
        if not self.status:
            self.status = BookingStatus.CONFIRMED.value
        if self.reschedule_count is None:
            self.reschedule_count = 0

    def __repr__(self) -> str:
        """String representation for debugging."""
        return (
            f"<ClassBooking {self.id}: student={self.student_id}, "
            f"teacher={self.teacher_id}, day={self.day}, slot={self.time_slot}, "
            f"status={self.status}>"
        )

    @property
    def booking_status(self) -> BookingStatus:
        return BookingStatus(self.status)

    def cancel(self, cancelled_by_user_id: Optional[str], reason: Optional[str] = None) -> None:
        """Cancel this booking."""
        self.status = BookingStatus.CANCELLED.value
        self.cancelled_at = datetime.now(timezone.utc)
        self.cancelled_by_id = cancelled_by_user_id
        self.cancellation_reason = reason
        logger.info(f"Booking {self.id} cancelled by user {cancelled_by_user_id}")

    def complete(self) -> None:
        """Mark booking as completed."""
        self.status = BookingStatus.COMPLETED.value
        self.completed_at = datetime.now(timezone.utc)
        logger.info(f"Booking {self.id} marked as completed")

    def mark_no_show(self) -> None:
        """Mark booking as no-show."""
        self.status = BookingStatus.NO_SHOW.value
        self.completed_at = datetime.now(timezone.utc)
        logger.info(f"Booking {self.id} marked as no-show")

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for events and audit snapshots."""
        return {
            "id": self.id,
            "student_id": self.student_id,
            "teacher_id": self.teacher_id,
            "course_id": self.course_id,
            "day": self.day,
            "time_slot": self.time_slot,
            "timezone": self.timezone,
            "status": self.status,
            "reschedule_count": self.reschedule_count,
            "is_payable": self.is_payable,
            "completed_at": self.completed_at.isoformat() if self.completed_at else None,
            "cancelled_at": self.cancelled_at.isoformat() if self.cancelled_at else None,
            "cancellation_reason": self.cancellation_reason,
        }


class BookingRescheduleLog(Base):
    """Append-only record of every slot a booking was moved away from."""

    __tablename__ = "booking_reschedule_log"

    id = Column(String(26), primary_key=True, default=lambda: str(ulid.ULID()))
    booking_id = Column(
        String(26), ForeignKey("class_bookings.id", ondelete="CASCADE"), nullable=False, index=True
    )
    from_day = Column(String(10), nullable=False)
    from_time_slot = Column(String(11), nullable=False)
    to_day = Column(String(10), nullable=False)
    to_time_slot = Column(String(11), nullable=False)
    actor_id = Column(String(26), nullable=True)
    actor_role = Column(String(20), nullable=True)
    admin_override = Column(Boolean, nullable=False, default=False)
    created_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        server_default=func.now(),
    )

    def __repr__(self) -> str:
        return (
            f"<BookingRescheduleLog {self.booking_id}: "
            f"{self.from_day} {self.from_time_slot} -> {self.to_day} {self.to_time_slot}>"
        )
