# backend/app/routes/v1/availability.py
"""
Teacher availability and slot routes - API v1

Endpoints:
    GET /teachers/available - Teachers free at a given slot
    GET /teachers/{teacher_id}/availability - Weekly rules
    PUT /teachers/{teacher_id}/availability - Replace the weekly rules
    POST /teachers/{teacher_id}/availability/toggle - Open or block one window
    GET /teachers/{teacher_id}/slots - Bookable slots on one day
    GET /teachers/{teacher_id}/slots/range - Bookable slots over a date range
"""

import asyncio
import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query

from ...api.dependencies import get_actor, get_scheduling_service
from ...core.config import settings
from ...core.timezone_utils import format_day
from ...principal import ActorPrincipal
from ...schemas.availability import (
    AvailabilityRuleResponse,
    AvailabilityToggle,
    AvailableTeacher,
    AvailableTeachersResponse,
    BookableSlotsResponse,
    SlotRangeResponse,
    WeekAvailabilityResponse,
    WeekAvailabilityUpdate,
)
from ...services.scheduling_service import SchedulingService
from ._results import unwrap

logger = logging.getLogger(__name__)

router = APIRouter(tags=["availability-v1"])


def _week_response(
    service: SchedulingService, teacher_id: str, rules: list
) -> WeekAvailabilityResponse:
    teacher = service.availability_service.get_teacher(teacher_id)
    return WeekAvailabilityResponse(
        teacher_id=teacher_id,
        timezone=teacher.timezone,
        rules=[AvailabilityRuleResponse.model_validate(rule) for rule in rules],
    )


def _slot_duration(service: SchedulingService, course_id: Optional[str]) -> int:
    if not course_id:
        return settings.default_class_duration
    duration = service.course_repository.get_class_duration(course_id)
    return duration or settings.default_class_duration


@router.get("/teachers/available", response_model=AvailableTeachersResponse)
async def get_available_teachers(
    day: str = Query(..., description="YYYY-MM-DD in tz"),
    time_slot: str = Query(..., description="HH:MM-HH:MM in tz"),
    tz: str = Query(..., description="IANA timezone of day/time_slot"),
    service: SchedulingService = Depends(get_scheduling_service),
) -> AvailableTeachersResponse:
    """Teachers whose availability covers the slot and who have no class then."""
    matches = unwrap(await asyncio.to_thread(service.get_available_teachers, day, time_slot, tz))
    teachers = [
        AvailableTeacher(
            id=match.teacher.id,
            full_name=match.teacher.full_name,
            timezone=match.teacher.timezone,
            local_day=format_day(match.local_day),
            local_time_slot=str(match.local_slot),
        )
        for match in matches
    ]
    return AvailableTeachersResponse(
        day=day,
        time_slot=time_slot,
        timezone=tz,
        teachers=teachers,
        total=len(teachers),
        message=None if teachers else "No teachers are available at this time",
    )


@router.get("/teachers/{teacher_id}/availability", response_model=WeekAvailabilityResponse)
async def get_week_availability(
    teacher_id: str,
    service: SchedulingService = Depends(get_scheduling_service),
) -> WeekAvailabilityResponse:
    rules = unwrap(await asyncio.to_thread(service.get_availability, teacher_id))
    return _week_response(service, teacher_id, rules)


@router.put("/teachers/{teacher_id}/availability", response_model=WeekAvailabilityResponse)
async def save_week_availability(
    teacher_id: str,
    payload: WeekAvailabilityUpdate,
    actor: ActorPrincipal = Depends(get_actor),
    service: SchedulingService = Depends(get_scheduling_service),
) -> WeekAvailabilityResponse:
    """Replace the teacher's week; the whole list is stored or nothing is."""
    rules = unwrap(
        await asyncio.to_thread(service.save_availability, teacher_id, payload.rules, actor=actor)
    )
    return _week_response(service, teacher_id, rules)


@router.post("/teachers/{teacher_id}/availability/toggle", response_model=WeekAvailabilityResponse)
async def toggle_window(
    teacher_id: str,
    payload: AvailabilityToggle,
    actor: ActorPrincipal = Depends(get_actor),
    service: SchedulingService = Depends(get_scheduling_service),
) -> WeekAvailabilityResponse:
    unwrap(
        await asyncio.to_thread(
            service.toggle_availability,
            teacher_id,
            payload.day_of_week,
            payload.start_time,
            payload.end_time,
            payload.is_available,
            actor=actor,
        )
    )
    rules = unwrap(await asyncio.to_thread(service.get_availability, teacher_id))
    return _week_response(service, teacher_id, rules)


@router.get("/teachers/{teacher_id}/slots", response_model=BookableSlotsResponse)
async def get_bookable_slots(
    teacher_id: str,
    day: str = Query(..., description="YYYY-MM-DD in the viewer's zone"),
    tz: Optional[str] = Query(None, description="Viewer zone; defaults to the teacher's"),
    course_id: Optional[str] = Query(None),
    service: SchedulingService = Depends(get_scheduling_service),
) -> BookableSlotsResponse:
    slots = unwrap(
        await asyncio.to_thread(service.query_bookable_slots, teacher_id, day, tz, course_id)
    )
    teacher = service.availability_service.get_teacher(teacher_id)
    return BookableSlotsResponse(
        teacher_id=teacher_id,
        day=day,
        timezone=tz or teacher.timezone,
        duration=_slot_duration(service, course_id),
        slots=slots,
    )


@router.get("/teachers/{teacher_id}/slots/range", response_model=SlotRangeResponse)
async def get_bookable_slots_range(
    teacher_id: str,
    start: str = Query(..., description="First day, YYYY-MM-DD"),
    end: str = Query(..., description="Last day (inclusive), YYYY-MM-DD"),
    tz: Optional[str] = Query(None),
    course_id: Optional[str] = Query(None),
    service: SchedulingService = Depends(get_scheduling_service),
) -> SlotRangeResponse:
    days = unwrap(
        await asyncio.to_thread(
            service.query_bookable_slots_range, teacher_id, start, end, tz, course_id
        )
    )
    teacher = service.availability_service.get_teacher(teacher_id)
    return SlotRangeResponse(
        teacher_id=teacher_id,
        start_date=start,
        end_date=end,
        timezone=tz or teacher.timezone,
        duration=_slot_duration(service, course_id),
        days=days,
    )
