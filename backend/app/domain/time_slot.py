"""TimeSlot value type and the interval arithmetic built on it."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, List, Optional, Sequence, Tuple, Union

from app.core.constants import MINUTES_PER_DAY, TIME_SLOT_SEPARATOR
from app.core.exceptions import ValidationException
from app.core.timezone_utils import format_minutes, parse_time

Range = Tuple[int, int]


@dataclass(frozen=True, order=True)
class TimeSlot:
    """
    Closed-open wall-clock interval ``[start, end)`` in minutes since midnight.

    ``end`` may exceed 1440 when the slot runs past midnight, which happens
    for UTC renderings of late local classes ("23:30-00:30"). Rendering always
    folds back into a 24h clock.
    """

    start: int
    end: int

    def __post_init__(self) -> None:
        if not 0 <= self.start < MINUTES_PER_DAY:
            raise ValidationException(
                "Time slot must start within the day",
                code="INVALID_TIME_SLOT",
                details={"start": self.start},
            )
        if not self.start < self.end <= self.start + MINUTES_PER_DAY:
            raise ValidationException(
                "Time slot must end after it starts",
                code="INVALID_TIME_SLOT",
                details={"start": self.start, "end": self.end},
            )

    @classmethod
    def parse(cls, value: Union[str, "TimeSlot"]) -> "TimeSlot":
        """Parse ``HH:MM-HH:MM``; an end at or before the start wraps past midnight."""
        if isinstance(value, TimeSlot):
            return value
        parts = value.split(TIME_SLOT_SEPARATOR) if isinstance(value, str) else []
        if len(parts) != 2:
            raise ValidationException(
                f"Invalid time slot '{value}', expected HH:MM-HH:MM",
                code="INVALID_TIME_SLOT",
                details={"value": str(value)},
            )
        return cls.from_bounds(parse_time(parts[0]), parse_time(parts[1], is_end_time=True))

    @classmethod
    def from_bounds(cls, start: int, end: int) -> "TimeSlot":
        if end <= start:
            end += MINUTES_PER_DAY
        return cls(start, end)

    @classmethod
    def with_duration(cls, start: Union[str, int], minutes: int) -> "TimeSlot":
        """``with_duration("09:00", 40)`` is ``09:00-09:40``."""
        start_minutes = parse_time(start) if isinstance(start, str) else start
        return cls(start_minutes, start_minutes + minutes)

    @property
    def duration(self) -> int:
        return self.end - self.start

    @property
    def start_time(self) -> str:
        return format_minutes(self.start)

    @property
    def end_time(self) -> str:
        return format_minutes(self.end)

    @property
    def crosses_midnight(self) -> bool:
        return self.end > MINUTES_PER_DAY

    def overlaps(self, other: "TimeSlot") -> bool:
        return self.start < other.end and other.start < self.end

    def within(self, start: int, end: int) -> bool:
        return start <= self.start and self.end <= end

    def __str__(self) -> str:
        return f"{self.start_time}{TIME_SLOT_SEPARATOR}{self.end_time}"


def merge_ranges(ranges: Iterable[Range]) -> List[Range]:
    """Coalesce overlapping or touching ranges into sorted disjoint ranges."""
    merged: List[Range] = []
    for start, end in sorted(r for r in ranges if r[0] < r[1]):
        if merged and start <= merged[-1][1]:
            merged[-1] = (merged[-1][0], max(merged[-1][1], end))
        else:
            merged.append((start, end))
    return merged


def subtract_ranges(windows: Sequence[Range], blocks: Sequence[Range]) -> List[Range]:
    """Remove every block from the (disjoint, sorted) windows."""
    remaining = list(windows)
    for block_start, block_end in merge_ranges(blocks):
        next_remaining: List[Range] = []
        for start, end in remaining:
            if block_end <= start or end <= block_start:
                next_remaining.append((start, end))
                continue
            if start < block_start:
                next_remaining.append((start, block_start))
            if block_end < end:
                next_remaining.append((block_end, end))
        remaining = next_remaining
    return remaining


def tile_window(start: int, end: int, duration: int) -> List[TimeSlot]:
    """Cut ``[start, end)`` into consecutive slots, dropping the short tail."""
    slots = []
    cursor = start
    while cursor + duration <= end:
        slots.append(TimeSlot(cursor, cursor + duration))
        cursor += duration
    return slots


def is_slot_available_for_duration(
    start: Union[str, int], duration: int, windows: Iterable[Range]
) -> bool:
    """Whether a class of ``duration`` starting at ``start`` fits inside one window."""
    if duration <= 0:
        return False
    slot = TimeSlot.with_duration(start, duration)
    return any(slot.within(window_start, window_end) for window_start, window_end in windows)


def overlaps_any(
    slot: Union[str, TimeSlot], booked: Iterable[Optional[Union[str, TimeSlot]]]
) -> bool:
    """Whether ``slot`` overlaps any booked slot; unparseable entries are ignored."""
    candidate = TimeSlot.parse(slot)
    for entry in booked:
        if not entry:
            continue
        try:
            other = TimeSlot.parse(entry)
        except ValidationException:
            continue
        if candidate.overlaps(other):
            return True
    return False
