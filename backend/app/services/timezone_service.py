"""
Centralized timezone handling for the Parla scheduling service.

Rules:
- Availability rules: teacher's timezone (they declare their own week)
- All booking storage: UTC day + UTC time slot
- All comparisons: UTC
- API responses: viewer's timezone, converted here and nowhere else
"""

from datetime import date, datetime, time, timedelta, timezone
from typing import Optional, Tuple, Union

import pytz

from ..core.config import settings
from ..core.exceptions import InvalidTimezoneException
from ..core.timezone_utils import DayLike, format_minutes, parse_day, parse_time
from ..domain.time_slot import TimeSlot

SlotLike = Union[str, TimeSlot]


class TimezoneService:
    """Handles all timezone conversions consistently."""

    DEFAULT_TIMEZONE = settings.default_timezone

    @staticmethod
    def get_timezone(tz_str: Optional[str]) -> pytz.BaseTzInfo:
        """
        Resolve an IANA identifier.

        Raises:
            InvalidTimezoneException: If the identifier is empty or unknown
        """
        if not tz_str:
            raise InvalidTimezoneException("A timezone is required", details={"timezone": tz_str})
        try:
            return pytz.timezone(tz_str)
        except pytz.UnknownTimeZoneError:
            raise InvalidTimezoneException(
                f"Unknown timezone: {tz_str}", details={"timezone": tz_str}
            )

    @staticmethod
    def is_valid_timezone(tz_str: Optional[str]) -> bool:
        try:
            TimezoneService.get_timezone(tz_str)
        except InvalidTimezoneException:
            return False
        return True

    @staticmethod
    def local_to_utc(day: DayLike, start: Union[str, int, time], timezone_str: str) -> datetime:
        """
        Convert a local civil day and wall-clock time to an aware UTC instant.

        Uses the timezone rules valid on ``day`` (not today). Times repeated by
        a fall-back transition resolve to their first occurrence; times skipped
        by a spring-forward transition move forward by the size of the gap.
        """
        tz = TimezoneService.get_timezone(timezone_str)
        if isinstance(start, time):
            minutes = start.hour * 60 + start.minute
        elif isinstance(start, str):
            minutes = parse_time(start, is_end_time=True)
        else:
            minutes = start
        naive_dt = datetime.combine(parse_day(day), time.min) + timedelta(
            minutes=minutes
        )  # utc-naive-ok: Intentionally naive for pytz.localize()

        try:
            # is_dst=None raises exception for ambiguous/nonexistent times
            local_dt = tz.localize(naive_dt, is_dst=None)
        except pytz.exceptions.AmbiguousTimeError:
            # Fall back (time exists twice) - use first occurrence
            local_dt = tz.localize(naive_dt, is_dst=True)
        except pytz.exceptions.NonExistentTimeError:
            # Spring forward: interpret with the pre-transition offset
            local_dt = tz.normalize(tz.localize(naive_dt, is_dst=False))

        return local_dt.astimezone(timezone.utc)

    @staticmethod
    def utc_to_local(utc_dt: datetime, timezone_str: str) -> datetime:
        """Convert UTC datetime to local timezone."""
        if utc_dt.tzinfo is None:
            utc_dt = utc_dt.replace(tzinfo=timezone.utc)

        tz = TimezoneService.get_timezone(timezone_str)
        return utc_dt.astimezone(tz)

    @staticmethod
    def from_utc(instant: datetime, timezone_str: str) -> Tuple[date, str]:
        """Split an instant into the local civil day and ``HH:MM`` in ``timezone_str``."""
        local_dt = TimezoneService.utc_to_local(instant, timezone_str)
        return local_dt.date(), format_minutes(local_dt.hour * 60 + local_dt.minute)

    @staticmethod
    def slot_bounds(day: DayLike, slot: SlotLike, timezone_str: str) -> Tuple[datetime, datetime]:
        """UTC start and end instants of a local slot."""
        parsed = TimeSlot.parse(slot)
        return (
            TimezoneService.local_to_utc(day, parsed.start, timezone_str),
            TimezoneService.local_to_utc(day, parsed.end, timezone_str),
        )

    @staticmethod
    def utc_slot_bounds(day: DayLike, slot: SlotLike) -> Tuple[datetime, datetime]:
        """UTC start and end instants of a slot already stored in UTC."""
        parsed = TimeSlot.parse(slot)
        midnight = datetime.combine(parse_day(day), time.min, tzinfo=timezone.utc)
        return (
            midnight + timedelta(minutes=parsed.start),
            midnight + timedelta(minutes=parsed.end),
        )

    @staticmethod
    def convert_time_slot_to_utc(
        day: DayLike, slot: SlotLike, source_tz: str
    ) -> Tuple[date, TimeSlot]:
        """
        Convert a local slot to its UTC day and slot.

        The day is re-derived from the converted start, so a late local slot
        can land on the next UTC day (23:00-23:59 in America/Lima is
        04:00-04:59 UTC the following day).
        """
        start_utc, end_utc = TimezoneService.slot_bounds(day, slot, source_tz)
        return TimezoneService._slot_from_instants(start_utc, end_utc)

    @staticmethod
    def convert_time_slot_from_utc(
        day: DayLike, slot: SlotLike, target_tz: str
    ) -> Tuple[date, TimeSlot]:
        """Inverse of ``convert_time_slot_to_utc``."""
        TimezoneService.get_timezone(target_tz)
        start_utc, end_utc = TimezoneService.utc_slot_bounds(day, slot)
        return TimezoneService._slot_from_instants(
            TimezoneService.utc_to_local(start_utc, target_tz),
            TimezoneService.utc_to_local(end_utc, target_tz),
        )

    @staticmethod
    def convert_time_slot(
        day: DayLike, slot: SlotLike, source_tz: str, target_tz: str
    ) -> Tuple[date, TimeSlot]:
        """Re-express a local slot in another zone (through UTC)."""
        utc_day, utc_slot = TimezoneService.convert_time_slot_to_utc(day, slot, source_tz)
        return TimezoneService.convert_time_slot_from_utc(utc_day, utc_slot, target_tz)

    @staticmethod
    def local_today(timezone_str: str, now: Optional[datetime] = None) -> date:
        current = now or datetime.now(timezone.utc)
        return TimezoneService.utc_to_local(current, timezone_str).date()

    @staticmethod
    def hours_until(instant: datetime, now: Optional[datetime] = None) -> float:
        """Hours from ``now`` (default: current time) until ``instant``; negative if past."""
        current = now or datetime.now(timezone.utc)
        if current.tzinfo is None:
            current = current.replace(tzinfo=timezone.utc)
        if instant.tzinfo is None:
            instant = instant.replace(tzinfo=timezone.utc)
        return (instant - current).total_seconds() / 3600

    @staticmethod
    def _slot_from_instants(start: datetime, end: datetime) -> Tuple[date, TimeSlot]:
        return start.date(), TimeSlot.from_bounds(
            start.hour * 60 + start.minute, end.hour * 60 + end.minute
        )
