"""
Central export point for all dependencies.

This module re-exports all dependencies from submodules
for convenient access throughout the application.
"""

from .auth import get_actor, get_actor_optional, require_admin
from .database import get_db
from .services import get_availability_service, get_scheduling_service

__all__ = [
    # Auth
    "get_actor",
    "get_actor_optional",
    "require_admin",
    # Database
    "get_db",
    # Services
    "get_availability_service",
    "get_scheduling_service",
]
