# backend/app/models/user.py
"""
User model for the Parla scheduling service.

Teachers, students and administrators share one table, differentiated by
``role``. The scheduling engine only reads users: it needs to know that a
teacher or student exists and which timezone they think in.
"""

import logging
from typing import Any

from sqlalchemy import Boolean, CheckConstraint, Column, DateTime, String
from sqlalchemy.sql import func
import ulid

from ..core.config import settings
from ..core.enums import RoleName
from ..database import Base

logger = logging.getLogger(__name__)


class User(Base):
    """
    Platform user.

    Attributes:
        id: ULID primary key
        email: Unique email address
        first_name: User's first name
        last_name: User's last name
        role: One of RoleName (student, teacher, admin)
        timezone: IANA zone the user's availability and schedule are shown in
        is_active: Inactive users cannot be booked
    """

    __tablename__ = "users"

    id = Column(String(26), primary_key=True, index=True, default=lambda: str(ulid.ULID()))
    email = Column(String, unique=True, index=True, nullable=False)
    first_name = Column(String(50), nullable=False)
    last_name = Column(String(50), nullable=False)
    role = Column(String(20), nullable=False, default=RoleName.STUDENT.value, index=True)
    timezone = Column(String(50), nullable=False, default=settings.default_timezone)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    __table_args__ = (
        CheckConstraint("role IN ('student', 'teacher', 'admin')", name="ck_users_role"),
    )

    def __repr__(self) -> str:
        return f"<User {self.id}: {self.email} role={self.role}>"

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    @property
    def is_teacher(self) -> bool:
        return self.role == RoleName.TEACHER.value

    @property
    def is_student(self) -> bool:
        return self.role == RoleName.STUDENT.value

    @property
    def is_admin(self) -> bool:
        return self.role == RoleName.ADMIN.value

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "email": self.email,
            "first_name": self.first_name,
            "last_name": self.last_name,
            "role": self.role,
            "timezone": self.timezone,
            "is_active": self.is_active,
        }
