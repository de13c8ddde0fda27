# backend/app/repositories/event_outbox_repository.py
"""
Repository for the booking event outbox.

Rows are inserted in the caller's transaction so an event exists if and
only if the booking change it describes was committed.
"""

from __future__ import annotations

import logging
from typing import Any, List, Optional

from sqlalchemy import select
from sqlalchemy.orm import Session
import ulid

from app.models.event_outbox import EventOutbox, EventOutboxStatus

logger = logging.getLogger(__name__)


class EventOutboxRepository:
    """Data access helpers for event outbox rows."""

    def __init__(self, db: Session):
        self.db = db

    def enqueue(
        self,
        event_type: str,
        aggregate_id: str,
        payload: Optional[dict[str, Any]] = None,
        idempotency_key: Optional[str] = None,
    ) -> EventOutbox:
        """Insert a pending outbox row (does not commit)."""
        key = idempotency_key or f"{event_type}:{aggregate_id}:{ulid.ULID()}"
        row = EventOutbox(
            event_type=event_type,
            aggregate_id=aggregate_id,
            payload=payload or {},
            idempotency_key=key,
            status=EventOutboxStatus.PENDING.value,
            attempt_count=0,
        )
        self.db.add(row)
        self.db.flush()
        logger.debug(
            "Queued outbox event",
            extra={"event_type": event_type, "aggregate_id": aggregate_id, "key": key},
        )
        return row

    def list_for_aggregate(self, aggregate_id: str) -> List[EventOutbox]:
        stmt = (
            select(EventOutbox)
            .where(EventOutbox.aggregate_id == aggregate_id)
            .order_by(EventOutbox.created_at, EventOutbox.id)
        )
        return list(self.db.execute(stmt).scalars())
