"""
Civil day and wall-clock helpers for the Parla scheduling service.

Every ``YYYY-MM-DD`` and ``HH:MM`` string that enters the system is parsed
here. Zone-aware conversions live in ``app.services.timezone_service``;
nothing else in the code base constructs dates or times from strings.
"""

from datetime import date, datetime, timedelta
from typing import Iterable, List, Union

from .constants import DAY_FORMAT, MINUTES_PER_DAY
from .enums import DayOfWeek
from .exceptions import ValidationException

DayLike = Union[str, date]


def parse_day(value: DayLike) -> date:
    """
    Parse a civil day.

    Accepts an existing ``date`` unchanged (but rejects ``datetime``, which
    would carry an implicit zone).

    Raises:
        ValidationException: If the value is not a valid ``YYYY-MM-DD`` day
    """
    if isinstance(value, datetime):
        raise ValidationException(
            "Expected a calendar day, got a datetime",
            code="INVALID_DAY",
            details={"value": value.isoformat()},
        )
    if isinstance(value, date):
        return value
    try:
        return datetime.strptime(value.strip(), DAY_FORMAT).date()
    except (AttributeError, ValueError):
        raise ValidationException(
            f"Invalid day '{value}', expected YYYY-MM-DD",
            code="INVALID_DAY",
            details={"value": str(value)},
        )


def format_day(day: date) -> str:
    return day.strftime(DAY_FORMAT)


def parse_time(value: str, *, is_end_time: bool = False) -> int:
    """
    Convert an ``HH:MM`` string to minutes since midnight.

    Args:
        value: Wall-clock time
        is_end_time: If True, "24:00" is accepted and returns 1440 (end of day)

    Raises:
        ValidationException: If the value is not a valid ``HH:MM`` time
    """
    text = value.strip() if isinstance(value, str) else ""
    parts = text.split(":")
    if len(parts) != 2 or not all(len(p) == 2 and p.isdigit() for p in parts):
        raise ValidationException(
            f"Invalid time '{value}', expected HH:MM",
            code="INVALID_TIME",
            details={"value": str(value)},
        )
    hours, minutes = int(parts[0]), int(parts[1])
    if is_end_time and hours == 24 and minutes == 0:
        return MINUTES_PER_DAY
    if hours > 23 or minutes > 59:
        raise ValidationException(
            f"Invalid time '{value}', expected HH:MM",
            code="INVALID_TIME",
            details={"value": value},
        )
    return hours * 60 + minutes


def format_minutes(minutes: int) -> str:
    """Render minutes since midnight as ``HH:MM`` (wrapping past midnight)."""
    minutes %= MINUTES_PER_DAY
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


def day_of_week(day: DayLike) -> int:
    """Day number with 0 = Sunday through 6 = Saturday."""
    return parse_day(day).isoweekday() % 7


def day_name(day: DayLike) -> DayOfWeek:
    return DayOfWeek.from_number(day_of_week(day))


def day_name_to_number(name: str) -> int:
    """Map a day name to its number; unknown names map to -1."""
    try:
        return DayOfWeek((name or "").strip().lower()).number
    except ValueError:
        return -1


def date_range(start: DayLike, end: DayLike) -> List[date]:
    """Inclusive list of days from ``start`` to ``end``; empty if reversed."""
    first, last = parse_day(start), parse_day(end)
    if first > last:
        return []
    return [first + timedelta(days=offset) for offset in range((last - first).days + 1)]


def filter_by_day_of_week(
    days: Iterable[DayLike], weekday: Union[int, DayOfWeek]
) -> List[date]:
    target = weekday.number if isinstance(weekday, DayOfWeek) else weekday
    return [parse_day(day) for day in days if day_of_week(day) == target]
