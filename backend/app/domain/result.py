"""Discriminated success/failure result returned by the scheduling facade."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Generic, Optional, TypeVar

from app.core.enums import SchedulingErrorCode
from app.core.exceptions import SchedulingException, scheduling_exception_for

T = TypeVar("T")


@dataclass(frozen=True)
class SchedulingError:
    """Why a scheduling request was rejected, with data for rendering it."""

    code: SchedulingErrorCode
    message: str
    details: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_exception(cls, exc: SchedulingException) -> "SchedulingError":
        return cls(code=exc.error_code, message=exc.message, details=dict(exc.details))

    def to_exception(self) -> SchedulingException:
        return scheduling_exception_for(self.code, self.message, self.details)


@dataclass(frozen=True)
class SchedulingResult(Generic[T]):
    ok: bool
    value: Optional[T] = None
    error: Optional[SchedulingError] = None

    def __post_init__(self) -> None:
        if self.ok != (self.error is None):
            raise ValueError("A result carries an error exactly when it is not ok")

    @classmethod
    def success(cls, value: T) -> "SchedulingResult[T]":
        return cls(ok=True, value=value)

    @classmethod
    def failure(cls, error: SchedulingError) -> "SchedulingResult[T]":
        return cls(ok=False, error=error)

    @property
    def code(self) -> Optional[SchedulingErrorCode]:
        return self.error.code if self.error else None

    def unwrap(self) -> T:
        """Return the value or raise the rejection as its domain exception."""
        if self.error is not None:
            raise self.error.to_exception()
        return self.value  # type: ignore[return-value]
