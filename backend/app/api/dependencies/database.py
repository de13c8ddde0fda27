"""
Session dependency for route handlers.

Tests swap this function out through ``app.dependency_overrides`` to bind
requests to their own session.
"""

from typing import Generator

from sqlalchemy.orm import Session

from ...database import get_db as session_scope


def get_db() -> Generator[Session, None, None]:
    """One session per request, closed when the response is sent."""
    yield from session_scope()
