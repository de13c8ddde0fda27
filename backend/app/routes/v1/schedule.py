# backend/app/routes/v1/schedule.py
"""
Schedule listing and booking statistics - API v1

Endpoints:
    GET /schedule - A student's or teacher's classes over a date range
    GET /stats/bookings - Booking counts per status
"""

import asyncio
import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query

from ...api.dependencies import get_scheduling_service
from ...core.timezone_utils import format_day
from ...schemas.booking import BookingStatsResponse, ScheduleEntryResponse, ScheduleResponse
from ...services.scheduling_service import SchedulingService
from ._results import unwrap

logger = logging.getLogger(__name__)

router = APIRouter(tags=["schedule-v1"])


@router.get("/schedule", response_model=ScheduleResponse)
async def list_schedule(
    user_id: str = Query(...),
    start: str = Query(..., description="First day, YYYY-MM-DD"),
    end: str = Query(..., description="Last day (inclusive), YYYY-MM-DD"),
    tz: Optional[str] = Query(None, description="Viewer zone; defaults to the user's"),
    service: SchedulingService = Depends(get_scheduling_service),
) -> ScheduleResponse:
    entries = unwrap(await asyncio.to_thread(service.list_schedule, user_id, start, end, tz))
    viewer_tz = entries[0].timezone if entries else tz
    if viewer_tz is None:
        user = service.user_repository.get_by_id(user_id)
        viewer_tz = user.timezone if user else ""
    return ScheduleResponse(
        user_id=user_id,
        start_date=start,
        end_date=end,
        timezone=viewer_tz,
        entries=[
            ScheduleEntryResponse(
                booking_id=entry.booking.id,
                day=format_day(entry.day),
                time_slot=entry.time_slot,
                timezone=entry.timezone,
                status=entry.booking.status,
                display_state=entry.display_state,
                role=entry.viewer_role,
                teacher_id=entry.booking.teacher_id,
                student_id=entry.booking.student_id,
                reschedule_count=entry.booking.reschedule_count,
            )
            for entry in entries
        ],
    )


@router.get("/stats/bookings", response_model=BookingStatsResponse)
async def get_booking_stats(
    teacher_id: Optional[str] = Query(None),
    service: SchedulingService = Depends(get_scheduling_service),
) -> BookingStatsResponse:
    counts = unwrap(await asyncio.to_thread(service.get_booking_stats, teacher_id))
    return BookingStatsResponse(teacher_id=teacher_id, counts=counts, total=sum(counts.values()))
