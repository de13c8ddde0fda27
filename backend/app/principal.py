"""Principal abstraction for callers of the scheduling API."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional

from .core.enums import RoleName


@dataclass(frozen=True)
class ActorPrincipal:
    """Who is making a request; used for authorization and audit trails."""

    user_id: str
    role: RoleName

    @property
    def id(self) -> str:
        return self.user_id

    @property
    def is_admin(self) -> bool:
        return self.role is RoleName.ADMIN

    @property
    def is_teacher(self) -> bool:
        return self.role is RoleName.TEACHER

    def owns(self, user_id: Optional[str]) -> bool:
        return user_id is not None and self.user_id == user_id

    @classmethod
    def from_user(cls, user: Any) -> "ActorPrincipal":
        return cls(user_id=user.id, role=RoleName(user.role))
