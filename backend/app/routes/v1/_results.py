# backend/app/routes/v1/_results.py
"""Helpers shared by v1 routes for turning facade results into HTTP responses."""

from typing import NoReturn, TypeVar

from fastapi import HTTPException, status

from ...core.exceptions import DomainException
from ...domain.result import SchedulingResult

T = TypeVar("T")


def handle_domain_exception(exc: DomainException) -> NoReturn:
    """Convert domain exceptions to HTTP exceptions."""
    if hasattr(exc, "to_http_exception"):
        raise exc.to_http_exception()
    raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(exc))


def unwrap(result: SchedulingResult[T]) -> T:
    """Return the value of a successful result or raise the matching HTTP error."""
    if result.error is not None:
        handle_domain_exception(result.error.to_exception())
    return result.value  # type: ignore[return-value]
