# backend/app/repositories/user_repository.py
"""
User lookups needed by the scheduling engine.

Teachers and students are owned by the account system; this repository
only answers "does this teacher/student exist and which zone are they in".
"""

import logging
from typing import List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..core.enums import RoleName
from ..core.exceptions import RepositoryException
from ..models.user import User
from .base_repository import BaseRepository

logger = logging.getLogger(__name__)


class UserRepository(BaseRepository[User]):
    """Repository for user role lookups."""

    def __init__(self, db: Session):
        super().__init__(db, User)

    def get_active_with_role(self, user_id: str, role: RoleName) -> Optional[User]:
        """Return the user only when it is active and holds ``role``."""
        user = self.get_by_id(user_id)
        if user is None or not user.is_active or user.role != role.value:
            return None
        return user

    def get_teacher(self, teacher_id: str) -> Optional[User]:
        return self.get_active_with_role(teacher_id, RoleName.TEACHER)

    def get_student(self, student_id: str) -> Optional[User]:
        return self.get_active_with_role(student_id, RoleName.STUDENT)

    def list_active_teachers(self) -> List[User]:
        try:
            return (
                self.db.query(User)
                .filter(User.role == RoleName.TEACHER.value, User.is_active.is_(True))
                .order_by(User.last_name, User.first_name)
                .all()
            )
        except SQLAlchemyError as e:
            self.logger.error(f"Error listing teachers: {str(e)}")
            raise RepositoryException(f"Failed to list teachers: {str(e)}")
