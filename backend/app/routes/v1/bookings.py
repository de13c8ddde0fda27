# backend/app/routes/v1/bookings.py
"""
Class booking routes - API v1

Versioned booking endpoints under /api/v1/bookings.
All business logic delegated to SchedulingService.

Endpoints:
    POST / - Book a slot
    GET /{booking_id} - Booking details in the viewer's zone
    GET /{booking_id}/reschedule-eligibility - Can this booking still move?
    GET /{booking_id}/reschedule-options - Eligibility plus free slots on a day
    POST /{booking_id}/reschedule - Move a booking (participant or admin)
    POST /{booking_id}/cancel - Cancel a booking (participant or admin)
    POST /{booking_id}/complete - Mark booking as completed (teacher or admin)
    POST /{booking_id}/no-show - Mark booking as no-show (teacher or admin)
    DELETE /{booking_id} - Hard delete (admin only)
    GET /{booking_id}/access - Join-window check for the classroom
"""

import asyncio
import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query, status

from ...api.dependencies import get_actor, get_actor_optional, get_scheduling_service, require_admin
from ...core.timezone_utils import format_day
from ...principal import ActorPrincipal
from ...schemas.booking import (
    BookingCancel,
    BookingCreate,
    BookingDeletedResponse,
    BookingReschedule,
    BookingResponse,
    ClassAccessResponse,
    RescheduleEligibilityResponse,
    RescheduleOptionsResponse,
)
from ...services.scheduling_service import SchedulingService
from ._results import unwrap

logger = logging.getLogger(__name__)

# V1 router - no prefix here, will be added when mounting in main.py
router = APIRouter(tags=["bookings-v1"])


@router.post("", response_model=BookingResponse, status_code=status.HTTP_201_CREATED)
async def create_booking(
    payload: BookingCreate,
    actor: Optional[ActorPrincipal] = Depends(get_actor_optional),
    service: SchedulingService = Depends(get_scheduling_service),
) -> BookingResponse:
    """Book a slot. ``day``/``time_slot`` are read in ``timezone``."""
    booking = unwrap(
        await asyncio.to_thread(
            service.create_booking,
            payload.student_id,
            payload.teacher_id,
            payload.day,
            payload.time_slot,
            payload.timezone,
            course_id=payload.course_id,
            actor=actor,
            admin_override=payload.admin_override,
        )
    )
    return BookingResponse.from_booking(booking, payload.timezone)


@router.get("/{booking_id}", response_model=BookingResponse)
async def get_booking(
    booking_id: str,
    tz: Optional[str] = Query(None, description="Viewer zone; defaults to the booking's"),
    service: SchedulingService = Depends(get_scheduling_service),
) -> BookingResponse:
    booking = unwrap(await asyncio.to_thread(service.get_booking, booking_id))
    return BookingResponse.from_booking(booking, tz)


@router.get("/{booking_id}/reschedule-eligibility", response_model=RescheduleEligibilityResponse)
async def get_reschedule_eligibility(
    booking_id: str,
    service: SchedulingService = Depends(get_scheduling_service),
) -> RescheduleEligibilityResponse:
    eligibility = unwrap(
        await asyncio.to_thread(service.check_reschedule_eligibility, booking_id)
    )
    return RescheduleEligibilityResponse(**eligibility.to_payload())


@router.get("/{booking_id}/reschedule-options", response_model=RescheduleOptionsResponse)
async def get_reschedule_options(
    booking_id: str,
    day: str = Query(..., description="Target day, YYYY-MM-DD in tz"),
    tz: Optional[str] = Query(None),
    service: SchedulingService = Depends(get_scheduling_service),
) -> RescheduleOptionsResponse:
    options = unwrap(await asyncio.to_thread(service.get_reschedule_options, booking_id, day, tz))
    return RescheduleOptionsResponse(
        booking_id=booking_id,
        day=format_day(options.day),
        timezone=options.timezone,
        eligibility=RescheduleEligibilityResponse(**options.eligibility.to_payload()),
        slots=options.slots,
    )


@router.post("/{booking_id}/reschedule", response_model=BookingResponse)
async def reschedule_booking(
    booking_id: str,
    payload: BookingReschedule,
    actor: ActorPrincipal = Depends(get_actor),
    service: SchedulingService = Depends(get_scheduling_service),
) -> BookingResponse:
    booking = unwrap(
        await asyncio.to_thread(
            service.reschedule_booking,
            booking_id,
            payload.day,
            payload.time_slot,
            payload.timezone,
            actor=actor,
            admin_override=payload.admin_override,
        )
    )
    return BookingResponse.from_booking(booking, payload.timezone)


@router.post("/{booking_id}/cancel", response_model=BookingResponse)
async def cancel_booking(
    booking_id: str,
    payload: Optional[BookingCancel] = None,
    actor: ActorPrincipal = Depends(get_actor),
    service: SchedulingService = Depends(get_scheduling_service),
) -> BookingResponse:
    reason = payload.reason if payload else None
    booking = unwrap(
        await asyncio.to_thread(service.cancel_booking, booking_id, reason, actor=actor)
    )
    return BookingResponse.from_booking(booking)


@router.post("/{booking_id}/complete", response_model=BookingResponse)
async def complete_booking(
    booking_id: str,
    actor: ActorPrincipal = Depends(get_actor),
    service: SchedulingService = Depends(get_scheduling_service),
) -> BookingResponse:
    booking = unwrap(await asyncio.to_thread(service.complete_booking, booking_id, actor=actor))
    return BookingResponse.from_booking(booking)


@router.post("/{booking_id}/no-show", response_model=BookingResponse)
async def mark_no_show(
    booking_id: str,
    actor: ActorPrincipal = Depends(get_actor),
    service: SchedulingService = Depends(get_scheduling_service),
) -> BookingResponse:
    booking = unwrap(await asyncio.to_thread(service.mark_no_show, booking_id, actor=actor))
    return BookingResponse.from_booking(booking)


@router.delete("/{booking_id}", response_model=BookingDeletedResponse)
async def delete_booking(
    booking_id: str,
    actor: ActorPrincipal = Depends(require_admin),
    service: SchedulingService = Depends(get_scheduling_service),
) -> BookingDeletedResponse:
    """Hard delete, distinct from cancellation. Audited."""
    deleted_id = unwrap(await asyncio.to_thread(service.admin_delete_booking, booking_id, actor))
    return BookingDeletedResponse(booking_id=deleted_id)


@router.get("/{booking_id}/access", response_model=ClassAccessResponse)
async def check_class_access(
    booking_id: str,
    actor: ActorPrincipal = Depends(get_actor),
    service: SchedulingService = Depends(get_scheduling_service),
) -> ClassAccessResponse:
    access = unwrap(await asyncio.to_thread(service.check_class_access, booking_id, actor))
    return ClassAccessResponse(booking_id=booking_id, **access.to_payload())
