"""Join-window rules for live classes, shared by services and schemas."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
import math
from typing import Any, Dict, Optional


@dataclass(frozen=True)
class ClassAccess:
    can_access: bool
    reason: Optional[str]
    minutes_until_start: int
    seconds_until_start: int
    minutes_until_end: int
    seconds_until_end: int
    show_end_warning: bool = False

    def to_payload(self) -> Dict[str, Any]:
        return {
            "can_access": self.can_access,
            "reason": self.reason,
            "minutes_until_start": self.minutes_until_start,
            "seconds_until_start": self.seconds_until_start,
            "minutes_until_end": self.minutes_until_end,
            "seconds_until_end": self.seconds_until_end,
            "show_end_warning": self.show_end_warning,
        }


def should_show_end_warning(minutes_until_end: int, warning_minutes: int = 5) -> bool:
    """True during the last ``warning_minutes`` of a class (never after it ends)."""
    return 0 < minutes_until_end <= warning_minutes


def evaluate_class_access(
    start: datetime,
    end: datetime,
    now: datetime,
    *,
    early_minutes: int,
    warning_minutes: int = 5,
) -> ClassAccess:
    """
    Decide whether a participant may enter the classroom at ``now``.

    The room opens ``early_minutes`` before ``start`` and closes at ``end``.
    Minute counts round up, so 30 seconds before the start reads as 1 minute.
    """
    seconds_until_start = math.floor((start - now).total_seconds())
    seconds_until_end = math.floor((end - now).total_seconds())
    minutes_until_start = math.ceil(seconds_until_start / 60)
    minutes_until_end = math.ceil(seconds_until_end / 60)

    if seconds_until_end <= 0:
        can_access, reason = False, "Class has ended"
    elif seconds_until_start > early_minutes * 60:
        can_access = False
        if early_minutes:
            reason = f"Class opens {early_minutes} minutes before it starts"
        else:
            reason = "Class has not started yet"
    else:
        can_access, reason = True, None

    return ClassAccess(
        can_access=can_access,
        reason=reason,
        minutes_until_start=minutes_until_start,
        seconds_until_start=seconds_until_start,
        minutes_until_end=minutes_until_end,
        seconds_until_end=seconds_until_end,
        show_end_warning=can_access and should_show_end_warning(minutes_until_end, warning_minutes),
    )
