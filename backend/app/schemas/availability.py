# backend/app/schemas/availability.py
"""
Availability schemas for the Parla scheduling service.

Times travel as zero-padded ``HH:MM`` strings in the teacher's own zone;
"24:00" is accepted as an end time. Semantic checks (ordering, duplicates)
happen in AvailabilityService so the API and internal callers share them.
"""

from typing import Dict, List, Optional

from pydantic import ConfigDict, Field

from ..core.enums import DayOfWeek
from ._strict_base import StrictModel, StrictRequestModel

_TIME_PATTERN = r"^\d{1,2}:\d{2}$"


class AvailabilityRuleIn(StrictRequestModel):
    """One weekly window in a save request."""

    day_of_week: DayOfWeek
    start_time: str = Field(..., pattern=_TIME_PATTERN, examples=["09:00"])
    end_time: str = Field(..., pattern=_TIME_PATTERN, examples=["12:00"])
    is_available: bool = True


class WeekAvailabilityUpdate(StrictRequestModel):
    """Full replacement of a teacher's weekly rules."""

    rules: List[AvailabilityRuleIn] = Field(default_factory=list)


class AvailabilityToggle(StrictRequestModel):
    """Open or block a single window without resending the whole week."""

    day_of_week: DayOfWeek
    start_time: str = Field(..., pattern=_TIME_PATTERN)
    end_time: str = Field(..., pattern=_TIME_PATTERN)
    is_available: bool


class AvailabilityRuleResponse(StrictModel):
    model_config = ConfigDict(extra="forbid", from_attributes=True)

    id: str
    day_of_week: DayOfWeek
    start_time: str
    end_time: str
    is_available: bool


class WeekAvailabilityResponse(StrictModel):
    teacher_id: str
    timezone: str
    rules: List[AvailabilityRuleResponse]


class BookableSlotsResponse(StrictModel):
    teacher_id: str
    day: str
    timezone: str
    duration: int
    slots: List[str]


class SlotRangeResponse(StrictModel):
    teacher_id: str
    start_date: str
    end_date: str
    timezone: str
    duration: int
    days: Dict[str, List[str]]


class AvailableTeacher(StrictModel):
    id: str
    full_name: str
    timezone: str
    local_day: str
    local_time_slot: str


class AvailableTeachersResponse(StrictModel):
    day: str
    time_slot: str
    timezone: str
    teachers: List[AvailableTeacher]
    total: int = 0
    message: Optional[str] = None
