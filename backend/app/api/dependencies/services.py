# backend/app/api/dependencies/services.py
"""
Service layer dependencies for dependency injection.

This module provides factory functions that create service instances
with their required dependencies properly injected.
"""

from fastapi import Depends
from sqlalchemy.orm import Session

from ...services.availability_service import AvailabilityService
from ...services.scheduling_service import SchedulingService
from .database import get_db


def get_availability_service(db: Session = Depends(get_db)) -> AvailabilityService:
    return AvailabilityService(db)


def get_scheduling_service(
    db: Session = Depends(get_db),
    availability_service: AvailabilityService = Depends(get_availability_service),
) -> SchedulingService:
    """
    Get the scheduling facade for the request's session.

    The availability service shares the same session so a facade save and
    its follow-up reads see one unit of work.
    """
    return SchedulingService(db, availability_service=availability_service)
