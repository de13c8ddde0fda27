"""Event publisher - writes domain events to the transactional outbox."""
from datetime import datetime
from typing import Any, Dict, Protocol

from app.repositories.event_outbox_repository import EventOutboxRepository


class Event(Protocol):
    """Protocol for event types."""

    event_type: str
    booking_id: str

    def to_dict(self) -> Dict[str, Any]:
        ...


class EventPublisher:
    """Publishes domain events to the outbox for async delivery."""

    def __init__(self, outbox_repository: EventOutboxRepository):
        self.outbox_repo = outbox_repository

    def publish(self, event: Event) -> None:
        """
        Queue an event in the current transaction.

        The row commits or rolls back together with the booking change, so
        the notification system never hears about a change that did not happen.
        """
        payload = event.to_dict()

        # Convert datetime objects to ISO strings for JSON serialization
        for key, value in payload.items():
            if isinstance(value, datetime):
                payload[key] = value.isoformat()

        self.outbox_repo.enqueue(
            event_type=event.event_type,
            aggregate_id=event.booking_id,
            payload=payload,
        )
