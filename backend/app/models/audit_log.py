# backend/app/models/audit_log.py
"""
Audit logging model for administrative scheduling actions.

Admin overrides (booking outside availability, moving past the reschedule
quota) and hard deletes each leave one row with before/after snapshots.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any, Mapping

from sqlalchemy import Column, DateTime, String, Text
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.sql import func
from sqlalchemy.types import JSON
import ulid

from app.database import Base

if TYPE_CHECKING:
    from app.principal import ActorPrincipal


def _now_utc() -> datetime:
    return datetime.now(timezone.utc)


class AuditLog(Base):
    """One administrative change to a scheduling entity."""

    __tablename__ = "audit_log"

    id = Column(String(26), primary_key=True, default=lambda: str(ulid.ULID()))
    entity_type = Column(String(50), nullable=False)
    entity_id = Column(String(64), nullable=False, index=True)
    action = Column(String(30), nullable=False)
    actor_id = Column(String(26), nullable=True)
    actor_role = Column(String(30), nullable=True)
    occurred_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=_now_utc,
        server_default=func.now(),
    )
    before = Column(
        JSONB(astext_type=Text()).with_variant(JSON(), "sqlite"),
        nullable=True,
    )
    after = Column(
        JSONB(astext_type=Text()).with_variant(JSON(), "sqlite"),
        nullable=True,
    )

    @classmethod
    def from_change(
        cls,
        entity_type: str,
        entity_id: str,
        action: str,
        actor: ActorPrincipal | None,
        before: Mapping[str, Any] | None,
        after: Mapping[str, Any] | None,
    ) -> "AuditLog":
        """Build an unsaved audit row for one change made by ``actor``."""
        return cls(
            entity_type=entity_type,
            entity_id=entity_id,
            action=action,
            actor_id=actor.user_id if actor else None,
            actor_role=actor.role.value if actor else None,
            before=dict(before) if before is not None else None,
            after=dict(after) if after is not None else None,
        )
