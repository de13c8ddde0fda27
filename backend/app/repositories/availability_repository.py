# backend/app/repositories/availability_repository.py
"""
Availability Repository for the Parla scheduling service.

Data access for recurring weekly availability rules. The week is always
written as a whole: ``replace_week`` deletes the teacher's rules and inserts
the new set in the caller's transaction.
"""

import logging
from typing import Any, Dict, Iterable, List, Optional, Sequence

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from ..core.enums import DayOfWeek
from ..core.exceptions import RepositoryException
from ..models.availability import AvailabilityRule
from .base_repository import BaseRepository

logger = logging.getLogger(__name__)


class AvailabilityRepository(BaseRepository[AvailabilityRule]):
    """Repository for weekly availability rules."""

    def __init__(self, db: Session):
        super().__init__(db, AvailabilityRule)

    def get_rules_for_teacher(
        self,
        teacher_id: str,
        days_of_week: Optional[Iterable[DayOfWeek]] = None,
    ) -> List[AvailabilityRule]:
        """
        Rules for one teacher, ordered by day then start time.

        Args:
            teacher_id: Owning teacher
            days_of_week: Optional subset of days to load
        """
        try:
            query = self.db.query(AvailabilityRule).filter(
                AvailabilityRule.teacher_id == teacher_id
            )
            if days_of_week is not None:
                query = query.filter(AvailabilityRule.day_of_week.in_(list(days_of_week)))
            rules = query.all()
            return sorted(rules, key=lambda r: (DayOfWeek(r.day_of_week).number, r.start_time))
        except SQLAlchemyError as e:
            self.logger.error(f"Error loading availability for teacher {teacher_id}: {str(e)}")
            raise RepositoryException(f"Failed to load availability: {str(e)}")

    def get_rules_for_teachers(
        self, teacher_ids: Sequence[str], day_of_week: DayOfWeek
    ) -> Dict[str, List[AvailabilityRule]]:
        """Rules for several teachers on one day, grouped by teacher."""
        grouped: Dict[str, List[AvailabilityRule]] = {teacher_id: [] for teacher_id in teacher_ids}
        if not teacher_ids:
            return grouped
        try:
            rules = (
                self.db.query(AvailabilityRule)
                .filter(
                    AvailabilityRule.teacher_id.in_(list(teacher_ids)),
                    AvailabilityRule.day_of_week == day_of_week,
                )
                .all()
            )
        except SQLAlchemyError as e:
            self.logger.error(
                f"Error loading availability for {len(teacher_ids)} teachers: {str(e)}"
            )
            raise RepositoryException(f"Failed to load availability: {str(e)}")
        for rule in rules:
            grouped[rule.teacher_id].append(rule)
        return grouped

    def find_rule(
        self, teacher_id: str, day_of_week: DayOfWeek, start_time: str
    ) -> Optional[AvailabilityRule]:
        return self.find_one_by(
            teacher_id=teacher_id, day_of_week=day_of_week, start_time=start_time
        )

    def replace_week(self, teacher_id: str, rules: List[Dict[str, Any]]) -> List[AvailabilityRule]:
        """
        Delete every rule of the teacher and insert ``rules``.

        Does not commit. A duplicate (day_of_week, start_time) key surfaces as
        an IntegrityError and rolls the whole replace back with the caller's
        transaction.
        """
        try:
            deleted = (
                self.db.query(AvailabilityRule)
                .filter(AvailabilityRule.teacher_id == teacher_id)
                .delete(synchronize_session=False)
            )
            self.db.flush()
        except SQLAlchemyError as e:
            self.logger.error(f"Error clearing availability for teacher {teacher_id}: {str(e)}")
            raise RepositoryException(f"Failed to replace availability: {str(e)}")

        entities = [AvailabilityRule(teacher_id=teacher_id, **data) for data in rules]
        try:
            created = self.add_all(entities)
        except IntegrityError as e:
            self.logger.error(f"Duplicate availability rule for teacher {teacher_id}: {str(e)}")
            raise RepositoryException(f"Duplicate availability rule: {str(e)}")

        self.logger.debug(
            "Replaced weekly availability",
            extra={"teacher_id": teacher_id, "deleted": deleted, "created": len(created)},
        )
        return created
