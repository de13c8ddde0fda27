# backend/app/repositories/course_repository.py
"""Read-only access to the course catalog."""

from typing import Optional

from sqlalchemy.orm import Session

from ..models.course import Course
from .base_repository import BaseRepository


class CourseRepository(BaseRepository[Course]):
    def __init__(self, db: Session):
        super().__init__(db, Course)

    def get_class_duration(self, course_id: str) -> Optional[int]:
        """Class length in minutes, or None for an unknown course."""
        course = self.get_by_id(course_id)
        return int(course.class_duration) if course is not None else None
