# backend/app/services/availability_service.py
"""
Availability Service for the Parla scheduling service.

Owns a teacher's recurring weekly rules. A save replaces the whole week in
one transaction: either every submitted rule is stored or none is.
"""

import logging
from typing import Any, Dict, Iterable, List, Optional, Set, Tuple

from sqlalchemy.orm import Session

from ..core.enums import DayOfWeek
from ..core.exceptions import (
    RepositoryException,
    TeacherNotFoundException,
    ValidationException,
)
from ..core.timezone_utils import format_minutes, parse_time
from ..models.availability import AvailabilityRule
from ..models.user import User
from ..repositories.factory import RepositoryFactory
from .base import BaseService

logger = logging.getLogger(__name__)


class AvailabilityService(BaseService):
    """Reads and replaces weekly availability rules."""

    def __init__(self, db: Session, availability_repository=None, user_repository=None):
        super().__init__(db)
        self.repository = (
            availability_repository or RepositoryFactory.create_availability_repository(db)
        )
        self.user_repository = user_repository or RepositoryFactory.create_user_repository(db)

    def get_teacher(self, teacher_id: str) -> User:
        teacher = self.user_repository.get_teacher(teacher_id)
        if teacher is None:
            raise TeacherNotFoundException(details={"teacher_id": teacher_id})
        return teacher

    @BaseService.measure_operation("get_week")
    def get_week(self, teacher_id: str) -> List[AvailabilityRule]:
        self.get_teacher(teacher_id)
        return self.repository.get_rules_for_teacher(teacher_id)

    @staticmethod
    def normalize_rule(rule: Any) -> Dict[str, Any]:
        """
        Validate one rule and return the column values to store.

        Accepts schema objects or plain dicts. Times are re-rendered
        zero-padded so string comparison in the database matches clock order.

        Raises:
            ValidationException: On unknown days, bad times or an empty window
        """
        get = rule.get if isinstance(rule, dict) else lambda key, default=None: getattr(
            rule, key, default
        )
        raw_day = get("day_of_week")
        try:
            day = raw_day if isinstance(raw_day, DayOfWeek) else DayOfWeek(str(raw_day).lower())
        except ValueError:
            raise ValidationException(
                f"Invalid day of week: {raw_day}",
                code="INVALID_DAY_OF_WEEK",
                details={"day_of_week": raw_day},
            )

        start = parse_time(str(get("start_time")))
        end = parse_time(str(get("end_time")), is_end_time=True)
        if end <= start:
            raise ValidationException(
                "Availability must end after it starts",
                code="INVALID_TIME_RANGE",
                details={
                    "day_of_week": day.value,
                    "start_time": get("start_time"),
                    "end_time": get("end_time"),
                },
            )

        return {
            "day_of_week": day,
            "start_time": format_minutes(start),
            "end_time": "24:00" if end == 24 * 60 else format_minutes(end),
            "is_available": bool(get("is_available", True)),
        }

    def _normalize_week(self, rules: Iterable[Any]) -> List[Dict[str, Any]]:
        normalized: List[Dict[str, Any]] = []
        seen: Set[Tuple[DayOfWeek, str]] = set()
        for rule in rules:
            data = self.normalize_rule(rule)
            key = (data["day_of_week"], data["start_time"])
            if key in seen:
                raise ValidationException(
                    "Two availability windows share the same day and start time",
                    code="DUPLICATE_AVAILABILITY",
                    details={"day_of_week": key[0].value, "start_time": key[1]},
                )
            seen.add(key)
            normalized.append(data)
        return normalized

    @BaseService.measure_operation("save_week")
    def save_week(self, teacher_id: str, rules: Iterable[Any]) -> List[AvailabilityRule]:
        """
        Replace every rule of the teacher with ``rules``.

        Raises:
            TeacherNotFoundException: If the teacher does not exist
            ValidationException: If any rule is malformed or duplicated
        """
        self.get_teacher(teacher_id)
        normalized = self._normalize_week(rules)
        try:
            with self.transaction():
                self.repository.replace_week(teacher_id, normalized)
        except RepositoryException as exc:
            raise ValidationException(
                "Availability could not be saved",
                code="INVALID_AVAILABILITY",
                details={"error": str(exc)},
            )

        self.log_operation("save_week", teacher_id=teacher_id, rule_count=len(normalized))
        return self.repository.get_rules_for_teacher(teacher_id)

    @BaseService.measure_operation("toggle_window")
    def toggle_window(
        self,
        teacher_id: str,
        day_of_week: DayOfWeek,
        start_time: str,
        end_time: str,
        is_available: bool,
    ) -> Optional[AvailabilityRule]:
        """
        Upsert one window keyed by (day, start).

        Returns the stored rule, or None when a block was requested for a
        window that was only ever open (the open window is removed instead).
        """
        self.get_teacher(teacher_id)
        data = self.normalize_rule(
            {
                "day_of_week": day_of_week,
                "start_time": start_time,
                "end_time": end_time,
                "is_available": is_available,
            }
        )
        with self.transaction():
            existing = self.repository.find_rule(
                teacher_id, data["day_of_week"], data["start_time"]
            )
            closes_open_window = (
                existing is not None
                and existing.is_available
                and not is_available
                and existing.end_time == data["end_time"]
            )
            if closes_open_window:
                self.db.delete(existing)
                self.db.flush()
                result = None
            elif existing is not None:
                existing.end_time = data["end_time"]
                existing.is_available = data["is_available"]
                self.db.flush()
                result = existing
            else:
                result = self.repository.create(teacher_id=teacher_id, **data)

        self.log_operation(
            "toggle_window",
            teacher_id=teacher_id,
            day_of_week=data["day_of_week"].value,
            start_time=data["start_time"],
            is_available=is_available,
        )
        return result
