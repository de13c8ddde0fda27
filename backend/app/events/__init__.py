"""Booking domain events and their outbox publisher."""

from app.events.booking_events import (
    BookingCancelled,
    BookingCompleted,
    BookingCreated,
    BookingDeleted,
    BookingNoShow,
    BookingRescheduled,
)
from app.events.publisher import EventPublisher

__all__ = [
    "BookingCreated",
    "BookingRescheduled",
    "BookingCancelled",
    "BookingCompleted",
    "BookingNoShow",
    "BookingDeleted",
    "EventPublisher",
]
