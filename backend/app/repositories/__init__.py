# backend/app/repositories/__init__.py
"""
Repository Pattern Implementation for the Parla scheduling service

This package provides the repository layer for data access,
separating business logic from database queries.

Key Components:
- BaseRepository: Foundation for all repositories with generic CRUD operations
- RepositoryFactory: Factory for creating repository instances
- AvailabilityRepository: Weekly availability rules (full-week replace)
- BookingRepository: Class bookings, overlap lookups, compare-and-swap moves
- UserRepository / CourseRepository: Read-only collaborator lookups
- AuditRepository / EventOutboxRepository: Append-only side records

Usage:
    from app.repositories import RepositoryFactory

    repository = RepositoryFactory.create_booking_repository(db)
    held = repository.get_slot_holding_bookings(teacher_id, ["2030-01-07"])
"""

from .audit_repository import AuditRepository
from .availability_repository import AvailabilityRepository
from .base_repository import BaseRepository
from .booking_repository import BookingRepository
from .course_repository import CourseRepository
from .event_outbox_repository import EventOutboxRepository
from .factory import RepositoryFactory
from .user_repository import UserRepository

__all__ = [
    "AuditRepository",
    "AvailabilityRepository",
    "BaseRepository",
    "BookingRepository",
    "CourseRepository",
    "EventOutboxRepository",
    "RepositoryFactory",
    "UserRepository",
]
