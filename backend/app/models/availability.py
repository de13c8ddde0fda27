# backend/app/models/availability.py
"""
Recurring weekly availability for teachers.

Each row is one window on one day of the week, in the teacher's own
timezone. Rows carry no calendar date: the slot generator projects them
onto concrete days. A teacher's week is always replaced as a whole.
"""

from typing import Any

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    DateTime,
    ForeignKey,
    Index,
    String,
    UniqueConstraint,
)
from sqlalchemy.sql import func
import ulid

from ..core.enums import DayOfWeek
from ..core.timezone_utils import parse_time
from ..database import Base
from .base_enum import create_safe_enum


class AvailabilityRule(Base):
    """
    One recurring availability (or explicit block) window.

    Attributes:
        teacher_id: Owning teacher
        day_of_week: Lower-case English day name
        start_time: Local ``HH:MM`` start (inclusive)
        end_time: Local ``HH:MM`` end (exclusive); "24:00" means end of day
        is_available: False marks a block carved out of the open windows
    """

    __tablename__ = "availability_rules"

    id = Column(String(26), primary_key=True, default=lambda: str(ulid.ULID()))
    teacher_id = Column(
        String(26), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    day_of_week = Column(
        create_safe_enum(DayOfWeek, "day_of_week_enum", native_enum=False),
        nullable=False,
    )
    start_time = Column(String(5), nullable=False)
    end_time = Column(String(5), nullable=False)
    is_available = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    __table_args__ = (
        UniqueConstraint(
            "teacher_id",
            "day_of_week",
            "start_time",
            name="uq_availability_rules_teacher_day_start",
        ),
        # Zero-padded HH:MM strings compare in clock order
        CheckConstraint("start_time < end_time", name="check_availability_time_order"),
        Index("ix_availability_rules_teacher_day", "teacher_id", "day_of_week"),
    )

    @property
    def start_minutes(self) -> int:
        return parse_time(self.start_time)

    @property
    def end_minutes(self) -> int:
        return parse_time(self.end_time, is_end_time=True)

    def __repr__(self) -> str:
        state = "open" if self.is_available else "blocked"
        return (
            f"<AvailabilityRule {self.teacher_id} {self.day_of_week}: "
            f"{self.start_time}-{self.end_time} {state}>"
        )

    def to_dict(self) -> dict[str, Any]:
        day = self.day_of_week
        return {
            "id": self.id,
            "teacher_id": self.teacher_id,
            "day_of_week": day.value if isinstance(day, DayOfWeek) else day,
            "start_time": self.start_time,
            "end_time": self.end_time,
            "is_available": self.is_available,
        }
