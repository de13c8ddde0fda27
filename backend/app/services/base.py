# backend/app/services/base.py
"""
Base Service Pattern for the Parla scheduling service

Every service shares:
- A request-scoped SQLAlchemy session and a per-class logger
- ``transaction()``: commit on success, roll back on any exception
- ``measure_operation``: Prometheus timing plus slow-operation warnings
"""

from contextlib import contextmanager
from functools import wraps
import logging
import time
from typing import Any, Callable, Iterator, Optional, Tuple, TypeVar, cast

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..core.config import settings
from ..core.exceptions import ServiceException
from ..monitoring.prometheus_metrics import prometheus_metrics

logger = logging.getLogger(__name__)

F = TypeVar("F", bound=Callable[..., Any])


def _outcome(result: Any) -> Tuple[str, Optional[str]]:
    """Classify a returned value; a failed SchedulingResult counts as a rejection."""
    if getattr(result, "ok", True) is False:
        error = getattr(result, "error", None)
        code = getattr(error, "code", None)
        return "rejected", getattr(code, "value", None)
    return "success", None


class BaseService:
    """
    Base class for all service layer components.

    Services own the unit of work: repositories flush, services commit.
    """

    def __init__(self, db: Session):
        """
        Initialize base service.

        Args:
            db: Database session
        """
        self.db = db
        self.logger = logging.getLogger(self.__class__.__name__)

    @contextmanager
    def transaction(self) -> Iterator[Session]:
        """
        Commit the session when the block exits cleanly.

        Usage:
            with self.transaction():
                self.booking_repository.create(...)

        Domain exceptions and IntegrityError-derived rejections roll back
        and propagate unchanged; other SQLAlchemy errors are wrapped in
        ServiceException.
        """
        try:
            yield self.db
            self.db.commit()
            self.logger.debug("Transaction committed")
        except SQLAlchemyError as e:
            self.logger.error(f"Transaction failed: {str(e)}")
            self.db.rollback()
            raise ServiceException(f"Database operation failed: {str(e)}")
        except Exception:
            self.db.rollback()
            raise

    @staticmethod
    def measure_operation(operation_name: str) -> Callable[[F], F]:
        """
        Decorator to time a service operation.

        Usage:
            @BaseService.measure_operation("create_booking")
            def create_booking(self, ...):
                ...

        Exceptions are recorded as ``error``; a returned result with
        ``ok=False`` is recorded as ``rejected``.
        """

        def decorator(func: F) -> F:
            @wraps(func)
            def wrapper(self, *args, **kwargs):
                start_time = time.time()
                status = "error"
                error_type = None

                try:
                    result = func(self, *args, **kwargs)
                    status, error_type = _outcome(result)
                    return result
                except Exception as e:
                    error_type = type(e).__name__
                    raise
                finally:
                    elapsed = time.time() - start_time

                    # Only log if it's actually slow
                    if elapsed > settings.slow_operation_threshold_seconds:
                        self.logger.warning(
                            f"Slow operation detected: {operation_name} took {elapsed:.2f}s"
                        )

                    prometheus_metrics.record_service_operation(
                        service=self.__class__.__name__,
                        operation=operation_name,
                        duration=elapsed,
                        status=status,
                        error_type=error_type,
                    )

            wrapper._operation_name = operation_name  # type: ignore[attr-defined]
            return cast(F, wrapper)

        return decorator

    def log_operation(self, operation: str, **context: Any) -> None:
        """Info-level log line carrying ``context`` as structured extras."""
        self.logger.info(f"Operation: {operation}", extra={"operation": operation, **context})
