# backend/app/models/__init__.py
"""
Database models for the Parla scheduling service.

Importing this package registers every table on ``Base.metadata``.
"""

from .audit_log import AuditLog
from .availability import AvailabilityRule
from .booking import SLOT_HOLDING_STATUSES, BookingRescheduleLog, BookingStatus, ClassBooking
from .course import Course
from .event_outbox import EventOutbox, EventOutboxStatus
from .user import User

__all__ = [
    "AuditLog",
    "AvailabilityRule",
    "BookingRescheduleLog",
    "BookingStatus",
    "ClassBooking",
    "Course",
    "EventOutbox",
    "EventOutboxStatus",
    "SLOT_HOLDING_STATUSES",
    "User",
]
