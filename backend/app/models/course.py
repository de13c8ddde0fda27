# backend/app/models/course.py
"""
Course catalog model.

Owned by the academic admin screens; the scheduling engine only reads
``class_duration`` to know how long each bookable slot is.
"""

from sqlalchemy import CheckConstraint, Column, DateTime, Integer, String
from sqlalchemy.sql import func
import ulid

from ..database import Base


class Course(Base):
    """A course whose classes are booked through the scheduling engine."""

    __tablename__ = "courses"

    id = Column(String(26), primary_key=True, index=True, default=lambda: str(ulid.ULID()))
    title = Column(String(200), nullable=False)
    class_duration = Column(Integer, nullable=False, default=60)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    __table_args__ = (
        CheckConstraint("class_duration > 0", name="check_class_duration_positive"),
    )

    def __repr__(self) -> str:
        return f"<Course {self.id}: {self.title} ({self.class_duration} min)>"
