# backend/app/services/slot_generator.py
"""
Slot Generator for the Parla scheduling service.

Turns a teacher's weekly rules into the concrete slots a student can book:

1. Coalesce the open windows of the weekday (touching windows merge)
2. Carve out blocked windows
3. Tile each remaining window into back-to-back classes of the requested
   duration, dropping a short tail
4. Drop every tile that overlaps a slot-holding booking

Everything here is in the teacher's own zone. Bookings are stored in UTC and
are converted into the teacher's zone before subtraction.
"""

from datetime import date, timedelta
import logging
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence

from sqlalchemy.orm import Session

from ..core.constants import MINUTES_PER_DAY
from ..core.enums import DayOfWeek
from ..core.exceptions import InvalidDurationException
from ..core.timezone_utils import DayLike, day_name, format_day, parse_day, parse_time
from ..domain.time_slot import Range, TimeSlot, merge_ranges, subtract_ranges, tile_window
from ..models.user import User
from ..repositories.factory import RepositoryFactory
from .base import BaseService
from .timezone_service import TimezoneService

logger = logging.getLogger(__name__)

SlotsByDay = Dict[date, List[TimeSlot]]


def _rule_day(rule: Any) -> DayOfWeek:
    value = rule.day_of_week
    return value if isinstance(value, DayOfWeek) else DayOfWeek(str(value).lower())


def _rule_range(rule: Any) -> Range:
    return parse_time(rule.start_time), parse_time(rule.end_time, is_end_time=True)


def open_windows(rules: Iterable[Any], weekday: DayOfWeek) -> List[Range]:
    """Open minutes of ``weekday``: merged available windows minus blocks."""
    day_rules = [rule for rule in rules if _rule_day(rule) == weekday]
    windows = merge_ranges(_rule_range(rule) for rule in day_rules if rule.is_available)
    blocks = [_rule_range(rule) for rule in day_rules if not rule.is_available]
    return subtract_ranges(windows, blocks)


def generate_slots(
    rules: Sequence[Any],
    duration: int,
    days: Iterable[DayLike],
    booked: Optional[Mapping[date, Iterable[TimeSlot]]] = None,
) -> SlotsByDay:
    """
    Bookable slots per day, sorted by start.

    Pure function: ``rules`` need ``day_of_week``, ``start_time``,
    ``end_time`` and ``is_available``; ``booked`` maps a day to the slots
    already taken on it. A day with no rules maps to an empty list.

    Raises:
        InvalidDurationException: If ``duration`` is not positive
    """
    if duration is None or duration <= 0:
        raise InvalidDurationException(details={"duration": duration})

    result: SlotsByDay = {}
    for raw_day in days:
        day = parse_day(raw_day)
        tiles: List[TimeSlot] = []
        for start, end in open_windows(rules, day_name(day)):
            tiles.extend(tile_window(start, end, duration))

        taken = list(booked.get(day, ())) if booked else []
        result[day] = sorted(
            slot for slot in tiles if not any(slot.overlaps(other) for other in taken)
        )
    return result


class SlotGenerator(BaseService):
    """Loads rules and bookings for a teacher and runs ``generate_slots``."""

    def __init__(self, db: Session, availability_repository=None, booking_repository=None):
        super().__init__(db)
        self.availability_repository = (
            availability_repository or RepositoryFactory.create_availability_repository(db)
        )
        self.booking_repository = (
            booking_repository or RepositoryFactory.create_booking_repository(db)
        )

    def _rules_for(self, teacher: User, days: Sequence[date]) -> list:
        weekdays = {day_name(day) for day in days}
        return self.availability_repository.get_rules_for_teacher(teacher.id, weekdays)

    @BaseService.measure_operation("candidate_slots")
    def candidate_slots(self, teacher: User, days: Sequence[DayLike], duration: int) -> SlotsByDay:
        """Tiles of the teacher's availability, ignoring bookings."""
        parsed = [parse_day(day) for day in days]
        return generate_slots(self._rules_for(teacher, parsed), duration, parsed)

    def booked_local_slots(
        self,
        teacher: User,
        days: Sequence[DayLike],
        exclude_booking_id: Optional[str] = None,
    ) -> SlotsByDay:
        """Slot-holding bookings of ``teacher`` re-expressed on the teacher's local days."""
        local_days = {parse_day(day) for day in days}
        utc_days = {
            format_day(day + timedelta(days=offset)) for day in local_days for offset in (-1, 0, 1)
        }
        booked: SlotsByDay = {day: [] for day in local_days}
        for booking in self.booking_repository.get_slot_holding_bookings(
            teacher.id, utc_days, exclude_booking_id=exclude_booking_id
        ):
            local_day, local_slot = TimezoneService.convert_time_slot_from_utc(
                booking.day, booking.time_slot, teacher.timezone
            )
            if local_day in booked:
                booked[local_day].append(local_slot)
            spill_day = local_day + timedelta(days=1)
            if local_slot.crosses_midnight and spill_day in booked:
                booked[spill_day].append(TimeSlot(0, local_slot.end - MINUTES_PER_DAY))
        return booked

    @BaseService.measure_operation("bookable_slots")
    def bookable_slots(
        self,
        teacher: User,
        days: Sequence[DayLike],
        duration: int,
        exclude_booking_id: Optional[str] = None,
    ) -> SlotsByDay:
        """Candidate slots minus every slot overlapping an existing booking."""
        parsed = [parse_day(day) for day in days]
        booked = self.booked_local_slots(teacher, parsed, exclude_booking_id=exclude_booking_id)
        return generate_slots(self._rules_for(teacher, parsed), duration, parsed, booked=booked)
