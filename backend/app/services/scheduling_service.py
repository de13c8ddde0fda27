# backend/app/services/scheduling_service.py
"""
Scheduling Service for the Parla scheduling service.

The single entry point the API (and any other caller) uses to read and change
the schedule. It composes the time codec, the slot generator, the conflict
checker and the reschedule policy engine.

Every public operation returns a SchedulingResult. Business rejections (slot
taken, quota used up, unknown booking) come back as failures carrying a
SchedulingErrorCode; malformed input and authorization problems still raise.
"""

from dataclasses import dataclass, field
from datetime import date, datetime, timedelta, timezone
import logging
import time
from typing import Any, Callable, Dict, List, Optional, Sequence, TypeVar

from sqlalchemy.orm import Session

from ..core.config import settings
from ..core.constants import MAX_REASON_LENGTH, MAX_SCHEDULE_RANGE_DAYS, MAX_SLOT_RANGE_DAYS
from ..core.exceptions import (
    BookingNotFoundException,
    ForbiddenException,
    InvalidStateTransitionException,
    NotFoundException,
    SchedulingException,
    ServiceException,
    SlotOutsideAvailabilityException,
    StudentNotFoundException,
    TeacherNotFoundException,
    ValidationException,
)
from ..core.timezone_utils import DayLike, date_range, day_name, format_day, parse_day
from ..domain.class_access import ClassAccess, evaluate_class_access
from ..domain.result import SchedulingError, SchedulingResult
from ..domain.time_slot import TimeSlot
from ..events import (
    BookingCancelled,
    BookingCompleted,
    BookingCreated,
    BookingDeleted,
    BookingNoShow,
    BookingRescheduled,
    EventPublisher,
)
from ..models.audit_log import AuditLog
from ..models.availability import AvailabilityRule
from ..models.booking import BookingStatus, ClassBooking
from ..models.user import User
from ..monitoring.prometheus_metrics import prometheus_metrics
from ..principal import ActorPrincipal
from ..repositories.factory import RepositoryFactory
from .availability_service import AvailabilityService
from .base import BaseService
from .conflict_checker import ConflictChecker, StaleBookingError
from .reschedule_policy_engine import RescheduleEligibility, ReschedulePolicyEngine
from .slot_generator import SlotGenerator, SlotsByDay, open_windows
from .timezone_service import TimezoneService

logger = logging.getLogger(__name__)

T = TypeVar("T")

BOOKING_ENTITY = "class_booking"


@dataclass(frozen=True)
class RescheduleOptions:
    eligibility: RescheduleEligibility
    day: date
    timezone: str
    slots: List[str] = field(default_factory=list)


@dataclass(frozen=True)
class AvailableTeacherMatch:
    teacher: User
    local_day: date
    local_slot: TimeSlot


@dataclass(frozen=True)
class ScheduleEntry:
    booking: ClassBooking
    day: date
    time_slot: str
    timezone: str
    display_state: str
    viewer_role: str


class SchedulingService(BaseService):
    """
    Facade over booking creation, rescheduling, cancellation and queries.

    Storage is UTC; availability rules are in the teacher's zone; callers
    always say which zone their ``day``/``time_slot`` are in.
    """

    def __init__(
        self,
        db: Session,
        *,
        availability_service: Optional[AvailabilityService] = None,
        slot_generator: Optional[SlotGenerator] = None,
        conflict_checker: Optional[ConflictChecker] = None,
        policy_engine: Optional[ReschedulePolicyEngine] = None,
        event_publisher: Optional[EventPublisher] = None,
    ):
        super().__init__(db)
        self.user_repository = RepositoryFactory.create_user_repository(db)
        self.course_repository = RepositoryFactory.create_course_repository(db)
        self.booking_repository = RepositoryFactory.create_booking_repository(db)
        self.availability_repository = RepositoryFactory.create_availability_repository(db)
        self.audit_repository = RepositoryFactory.create_audit_repository(db)
        self.availability_service = availability_service or AvailabilityService(db)
        self.slot_generator = slot_generator or SlotGenerator(
            db,
            availability_repository=self.availability_repository,
            booking_repository=self.booking_repository,
        )
        self.conflict_checker = conflict_checker or ConflictChecker(
            db, booking_repository=self.booking_repository
        )
        self.policy_engine = policy_engine or ReschedulePolicyEngine()
        self.event_publisher = event_publisher or EventPublisher(
            RepositoryFactory.create_event_outbox_repository(db)
        )

    # Result plumbing

    def _as_result(self, operation: str, func: Callable[[], T]) -> SchedulingResult[T]:
        try:
            return SchedulingResult.success(func())
        except SchedulingException as exc:
            prometheus_metrics.record_scheduling_rejection(operation, exc.code)
            self.logger.info(
                f"{operation} rejected: {exc.code}",
                extra={"operation": operation, "code": exc.code, "details": exc.details},
            )
            return SchedulingResult.failure(SchedulingError.from_exception(exc))

    # Lookups

    def _require_teacher(self, teacher_id: str) -> User:
        teacher = self.user_repository.get_teacher(teacher_id)
        if teacher is None:
            raise TeacherNotFoundException(details={"teacher_id": teacher_id})
        return teacher

    def _require_student(self, student_id: str) -> User:
        student = self.user_repository.get_student(student_id)
        if student is None:
            raise StudentNotFoundException(details={"student_id": student_id})
        return student

    def _require_booking(self, booking_id: str) -> ClassBooking:
        booking = self.booking_repository.reload(booking_id)
        if booking is None:
            raise BookingNotFoundException(details={"booking_id": booking_id})
        return booking

    def _class_duration(self, course_id: Optional[str]) -> int:
        if not course_id:
            return settings.default_class_duration
        duration = self.course_repository.get_class_duration(course_id)
        if duration is None:
            raise NotFoundException("Course not found", details={"course_id": course_id})
        return duration

    @staticmethod
    def _override_allowed(actor: Optional[ActorPrincipal], admin_override: bool) -> bool:
        if not admin_override:
            return False
        if actor is None or not actor.is_admin:
            raise ForbiddenException(
                "Only administrators can override scheduling rules", code="ADMIN_OVERRIDE_FORBIDDEN"
            )
        return True

    @staticmethod
    def _ensure_can_edit_availability(actor: Optional[ActorPrincipal], teacher_id: str) -> None:
        if actor is not None and not (actor.is_admin or actor.owns(teacher_id)):
            raise ForbiddenException(
                "Only the teacher or an administrator can edit this availability",
                code="AVAILABILITY_FORBIDDEN",
            )

    @staticmethod
    def _ensure_participant(
        actor: Optional[ActorPrincipal], booking: ClassBooking, *, students_allowed: bool = True
    ) -> None:
        """Only the booking's teacher, its student (when allowed) or an admin may act on it."""
        if actor is None or actor.is_admin or actor.owns(booking.teacher_id):
            return
        if students_allowed and actor.owns(booking.student_id):
            return
        raise ForbiddenException(
            "You are not allowed to change this class", code="NOT_A_PARTICIPANT"
        )

    # Slot math

    def _bookable_in_zone(
        self,
        teacher: User,
        days: Sequence[date],
        duration: int,
        viewer_tz: str,
        exclude_booking_id: Optional[str] = None,
    ) -> SlotsByDay:
        """Bookable slots on the viewer's ``days``, rendered in ``viewer_tz``."""
        if viewer_tz == teacher.timezone:
            return self.slot_generator.bookable_slots(
                teacher, days, duration, exclude_booking_id=exclude_booking_id
            )

        # A viewer day can overlap up to three of the teacher's local days
        teacher_days = sorted(
            {day + timedelta(days=offset) for day in days for offset in (-1, 0, 1)}
        )
        generated = self.slot_generator.bookable_slots(
            teacher, teacher_days, duration, exclude_booking_id=exclude_booking_id
        )
        result: SlotsByDay = {day: [] for day in days}
        for teacher_day, slots in generated.items():
            for slot in slots:
                viewer_day, viewer_slot = TimezoneService.convert_time_slot(
                    teacher_day, slot, teacher.timezone, viewer_tz
                )
                if viewer_day in result:
                    result[viewer_day].append(viewer_slot)
        return {day: sorted(slots) for day, slots in result.items()}

    def _ensure_within_availability(
        self, teacher: User, utc_day: date, utc_slot: TimeSlot, duration: int
    ) -> None:
        local_day, local_slot = TimezoneService.convert_time_slot_from_utc(
            utc_day, utc_slot, teacher.timezone
        )
        candidates = self.slot_generator.candidate_slots(teacher, [local_day], duration)
        if local_slot not in candidates.get(local_day, []):
            raise SlotOutsideAvailabilityException(
                details={
                    "teacher_id": teacher.id,
                    "day": format_day(local_day),
                    "time_slot": str(local_slot),
                    "timezone": teacher.timezone,
                    "duration": duration,
                }
            )

    # Queries

    @BaseService.measure_operation("query_bookable_slots")
    def query_bookable_slots(
        self,
        teacher_id: str,
        day: DayLike,
        tz: Optional[str] = None,
        course_id: Optional[str] = None,
    ) -> SchedulingResult[List[str]]:
        """Free slots of one teacher on ``day`` as seen from ``tz`` (default: the teacher's)."""

        def _query() -> List[str]:
            target = parse_day(day)
            teacher = self._require_teacher(teacher_id)
            viewer_tz = tz or teacher.timezone
            TimezoneService.get_timezone(viewer_tz)
            duration = self._class_duration(course_id)
            slots = self._bookable_in_zone(teacher, [target], duration, viewer_tz)
            return [str(slot) for slot in slots[target]]

        return self._as_result("query_bookable_slots", _query)

    @BaseService.measure_operation("query_bookable_slots_range")
    def query_bookable_slots_range(
        self,
        teacher_id: str,
        start: DayLike,
        end: DayLike,
        tz: Optional[str] = None,
        course_id: Optional[str] = None,
    ) -> SchedulingResult[Dict[str, List[str]]]:
        def _query() -> Dict[str, List[str]]:
            days = date_range(start, end)
            if not days:
                raise ValidationException(
                    "End date must not be before start date", code="INVALID_RANGE"
                )
            if len(days) > MAX_SLOT_RANGE_DAYS:
                raise ValidationException(
                    f"Date range cannot exceed {MAX_SLOT_RANGE_DAYS} days",
                    code="INVALID_RANGE",
                    details={"days": len(days)},
                )
            teacher = self._require_teacher(teacher_id)
            viewer_tz = tz or teacher.timezone
            TimezoneService.get_timezone(viewer_tz)
            duration = self._class_duration(course_id)
            slots = self._bookable_in_zone(teacher, days, duration, viewer_tz)
            return {format_day(day): [str(slot) for slot in slots[day]] for day in days}

        return self._as_result("query_bookable_slots_range", _query)

    def get_booking(self, booking_id: str) -> SchedulingResult[ClassBooking]:
        return self._as_result("get_booking", lambda: self._require_booking(booking_id))

    def get_reschedule_history(self, booking_id: str) -> SchedulingResult[list]:
        def _history() -> list:
            self._require_booking(booking_id)
            return self.booking_repository.get_reschedule_history(booking_id)

        return self._as_result("get_reschedule_history", _history)

    # Booking lifecycle

    @BaseService.measure_operation("create_booking")
    def create_booking(
        self,
        student_id: str,
        teacher_id: str,
        day: DayLike,
        time_slot: str,
        tz: str,
        *,
        course_id: Optional[str] = None,
        actor: Optional[ActorPrincipal] = None,
        admin_override: bool = False,
    ) -> SchedulingResult[ClassBooking]:
        """
        Book ``time_slot`` on ``day`` (both in ``tz``) for a student with a teacher.

        Student-initiated bookings must match one of the teacher's generated
        slots; an admin override skips that check and is audited.
        """
        local_day = parse_day(day)
        slot = TimeSlot.parse(time_slot)
        override = self._override_allowed(actor, admin_override)

        def _create() -> ClassBooking:
            utc_day, utc_slot = TimezoneService.convert_time_slot_to_utc(local_day, slot, tz)
            with self.transaction():
                teacher = self._require_teacher(teacher_id)
                self._require_student(student_id)
                if not override:
                    duration = self._class_duration(course_id)
                    self._ensure_within_availability(teacher, utc_day, utc_slot, duration)

                booking = self.conflict_checker.try_create(
                    teacher_id=teacher_id,
                    student_id=student_id,
                    day=utc_day,
                    time_slot=utc_slot,
                    timezone=tz,
                    course_id=course_id,
                )
                self.event_publisher.publish(
                    BookingCreated(
                        booking_id=booking.id,
                        student_id=student_id,
                        teacher_id=teacher_id,
                        day=booking.day,
                        time_slot=booking.time_slot,
                        timezone=tz,
                        created_at=datetime.now(timezone.utc),
                    )
                )
                if override:
                    self.audit_repository.write(
                        AuditLog.from_change(
                            BOOKING_ENTITY,
                            booking.id,
                            "override_create",
                            actor,
                            before=None,
                            after=booking.to_dict(),
                        )
                    )

            self.log_operation(
                "create_booking",
                booking_id=booking.id,
                teacher_id=teacher_id,
                utc_day=booking.day,
                utc_time_slot=booking.time_slot,
                admin_override=override,
            )
            return booking

        return self._as_result("create_booking", _create)

    @BaseService.measure_operation("reschedule_booking")
    def reschedule_booking(
        self,
        booking_id: str,
        new_day: DayLike,
        new_time_slot: str,
        tz: str,
        *,
        actor: Optional[ActorPrincipal] = None,
        admin_override: bool = False,
    ) -> SchedulingResult[ClassBooking]:
        """
        Move a booking to ``new_time_slot`` on ``new_day`` (both in ``tz``).

        Eligibility is re-read and re-checked inside the same transaction as
        the compare-and-swap move. Losing a race to another writer of the same
        booking re-runs the whole sequence against fresh state.
        """
        target_day = parse_day(new_day)
        slot = TimeSlot.parse(new_time_slot)
        override = self._override_allowed(actor, admin_override)

        def _reschedule() -> ClassBooking:
            utc_day, utc_slot = TimezoneService.convert_time_slot_to_utc(target_day, slot, tz)
            attempts = max(1, settings.reschedule_retry_attempts)
            attempt = 0
            while True:
                attempt += 1
                try:
                    with self.transaction():
                        return self._reschedule_once(
                            booking_id, utc_day, utc_slot, tz, actor, override
                        )
                except StaleBookingError:
                    prometheus_metrics.record_reschedule_retry()
                    self.logger.info(
                        "Booking changed during reschedule, retrying",
                        extra={"booking_id": booking_id, "attempt": attempt},
                    )
                    if attempt >= attempts:
                        raise ServiceException(
                            "Booking is being changed by another request, please retry",
                            code="RESCHEDULE_CONTENTION",
                        )
                    time.sleep(settings.reschedule_retry_backoff_seconds * attempt)

        return self._as_result("reschedule_booking", _reschedule)

    def _reschedule_once(
        self,
        booking_id: str,
        utc_day: date,
        utc_slot: TimeSlot,
        tz: str,
        actor: Optional[ActorPrincipal],
        override: bool,
    ) -> ClassBooking:
        booking = self._require_booking(booking_id)
        self._ensure_participant(actor, booking)
        eligibility = self.policy_engine.check_eligibility(booking, ignore_quota=override)
        if not eligibility.can_reschedule:
            raise eligibility.to_exception()

        if booking.day == format_day(utc_day) and booking.time_slot == str(utc_slot):
            return booking

        teacher = self._require_teacher(booking.teacher_id)
        if not override:
            duration = TimeSlot.parse(booking.time_slot).duration
            self._ensure_within_availability(teacher, utc_day, utc_slot, duration)

        before = booking.to_dict()
        previous_day, previous_slot = booking.day, booking.time_slot
        moved = self.conflict_checker.try_move(
            booking, utc_day, utc_slot, timezone=tz, increment=not override
        )
        self.booking_repository.add_reschedule_log(
            booking_id=moved.id,
            from_day=previous_day,
            from_time_slot=previous_slot,
            to_day=moved.day,
            to_time_slot=moved.time_slot,
            actor_id=actor.id if actor else None,
            actor_role=actor.role.value if actor else None,
            admin_override=override,
        )
        self.event_publisher.publish(
            BookingRescheduled(
                booking_id=moved.id,
                student_id=moved.student_id,
                teacher_id=moved.teacher_id,
                previous_day=previous_day,
                previous_time_slot=previous_slot,
                day=moved.day,
                time_slot=moved.time_slot,
                timezone=tz,
                reschedule_count=moved.reschedule_count,
                admin_override=override,
                rescheduled_at=datetime.now(timezone.utc),
            )
        )
        if override:
            self.audit_repository.write(
                AuditLog.from_change(
                    BOOKING_ENTITY,
                    moved.id,
                    "override_reschedule",
                    actor,
                    before=before,
                    after=moved.to_dict(),
                )
            )
        self.log_operation(
            "reschedule_booking",
            booking_id=moved.id,
            from_slot=f"{previous_day} {previous_slot}",
            to_slot=f"{moved.day} {moved.time_slot}",
            reschedule_count=moved.reschedule_count,
            admin_override=override,
        )
        return moved

    @BaseService.measure_operation("cancel_booking")
    def cancel_booking(
        self,
        booking_id: str,
        reason: Optional[str] = None,
        *,
        actor: Optional[ActorPrincipal] = None,
    ) -> SchedulingResult[ClassBooking]:
        """Cancel a confirmed booking; cancelling twice returns the cancelled booking."""
        if reason is not None and len(reason) > MAX_REASON_LENGTH:
            raise ValidationException(
                f"Cancellation reason cannot exceed {MAX_REASON_LENGTH} characters",
                code="REASON_TOO_LONG",
            )

        def _cancel() -> ClassBooking:
            with self.transaction():
                booking = self._require_booking(booking_id)
                self._ensure_participant(actor, booking)
                status = booking.booking_status
                if status is BookingStatus.CANCELLED:
                    return booking
                if status is not BookingStatus.CONFIRMED:
                    raise InvalidStateTransitionException(
                        details={"from": status.value, "to": BookingStatus.CANCELLED.value}
                    )
                booking.cancel(actor.id if actor else None, reason)
                self.booking_repository.flush()
                self.event_publisher.publish(
                    BookingCancelled(
                        booking_id=booking.id,
                        student_id=booking.student_id,
                        teacher_id=booking.teacher_id,
                        cancelled_by=actor.id if actor else None,
                        cancelled_at=booking.cancelled_at,
                        reason=reason,
                    )
                )
            self.log_operation("cancel_booking", booking_id=booking.id)
            return booking

        return self._as_result("cancel_booking", _cancel)

    def _finish(
        self,
        operation: str,
        booking_id: str,
        target: BookingStatus,
        actor: Optional[ActorPrincipal],
    ) -> SchedulingResult[ClassBooking]:
        def _transition() -> ClassBooking:
            with self.transaction():
                booking = self._require_booking(booking_id)
                self._ensure_participant(actor, booking, students_allowed=False)
                status = booking.booking_status
                if status is not BookingStatus.CONFIRMED:
                    raise InvalidStateTransitionException(
                        details={"from": status.value, "to": target.value}
                    )
                if target is BookingStatus.COMPLETED:
                    booking.complete()
                    event: Any = BookingCompleted(
                        booking_id=booking.id, completed_at=booking.completed_at
                    )
                else:
                    booking.mark_no_show()
                    event = BookingNoShow(booking_id=booking.id, marked_at=booking.completed_at)
                self.booking_repository.flush()
                self.event_publisher.publish(event)
            self.log_operation(operation, booking_id=booking.id, status=target.value)
            return booking

        return self._as_result(operation, _transition)

    @BaseService.measure_operation("complete_booking")
    def complete_booking(
        self, booking_id: str, *, actor: Optional[ActorPrincipal] = None
    ) -> SchedulingResult[ClassBooking]:
        """Mark a confirmed class as held. Only its teacher or an admin may do this."""
        return self._finish("complete_booking", booking_id, BookingStatus.COMPLETED, actor)

    @BaseService.measure_operation("mark_no_show")
    def mark_no_show(
        self, booking_id: str, *, actor: Optional[ActorPrincipal] = None
    ) -> SchedulingResult[ClassBooking]:
        return self._finish("mark_no_show", booking_id, BookingStatus.NO_SHOW, actor)

    @BaseService.measure_operation("admin_delete_booking")
    def admin_delete_booking(
        self, booking_id: str, actor: Optional[ActorPrincipal]
    ) -> SchedulingResult[str]:
        """
        Physically remove a booking. Administrators only; always audited.

        Raises:
            ForbiddenException: If ``actor`` is not an administrator
        """
        if actor is None or not actor.is_admin:
            raise ForbiddenException(
                "Only administrators can delete bookings", code="DELETE_FORBIDDEN"
            )

        def _delete() -> str:
            with self.transaction():
                booking = self._require_booking(booking_id)
                self.audit_repository.write(
                    AuditLog.from_change(
                        BOOKING_ENTITY,
                        booking.id,
                        "delete",
                        actor,
                        before=booking.to_dict(),
                        after=None,
                    )
                )
                self.event_publisher.publish(
                    BookingDeleted(
                        booking_id=booking.id,
                        deleted_by=actor.id,
                        deleted_at=datetime.now(timezone.utc),
                    )
                )
                self.booking_repository.delete(booking.id)
            self.logger.warning(
                f"Booking {booking_id} deleted by admin {actor.id}",
                extra={"booking_id": booking_id, "actor_id": actor.id},
            )
            return booking_id

        return self._as_result("admin_delete_booking", _delete)

    # Reschedule helpers

    def check_reschedule_eligibility(
        self, booking_id: str, now: Optional[datetime] = None
    ) -> SchedulingResult[RescheduleEligibility]:
        """Read-only eligibility; a non-eligible booking is still a successful answer."""
        return self._as_result(
            "check_reschedule_eligibility",
            lambda: self.policy_engine.check_eligibility(self._require_booking(booking_id), now),
        )

    @BaseService.measure_operation("get_reschedule_options")
    def get_reschedule_options(
        self, booking_id: str, day: DayLike, tz: Optional[str] = None
    ) -> SchedulingResult[RescheduleOptions]:
        def _options() -> RescheduleOptions:
            target = parse_day(day)
            booking = self._require_booking(booking_id)
            teacher = self._require_teacher(booking.teacher_id)
            viewer_tz = tz or booking.timezone
            TimezoneService.get_timezone(viewer_tz)
            eligibility = self.policy_engine.check_eligibility(booking)
            slots: List[str] = []
            if eligibility.can_reschedule:
                duration = TimeSlot.parse(booking.time_slot).duration
                found = self._bookable_in_zone(
                    teacher, [target], duration, viewer_tz, exclude_booking_id=booking.id
                )
                slots = [str(slot) for slot in found[target]]
            return RescheduleOptions(
                eligibility=eligibility, day=target, timezone=viewer_tz, slots=slots
            )

        return self._as_result("get_reschedule_options", _options)

    # Discovery and listings

    @BaseService.measure_operation("get_available_teachers")
    def get_available_teachers(
        self, day: DayLike, time_slot: str, tz: str
    ) -> SchedulingResult[List[AvailableTeacherMatch]]:
        """Active teachers whose availability covers the slot and who are not booked during it."""
        local_day = parse_day(day)
        slot = TimeSlot.parse(time_slot)

        def _available() -> List[AvailableTeacherMatch]:
            start_utc, end_utc = TimezoneService.slot_bounds(local_day, slot, tz)
            utc_day = start_utc.date()
            busy = self.booking_repository.get_busy_teacher_ids(
                format_day(utc_day + timedelta(days=offset)) for offset in (-1, 0, 1)
            )

            matches: List[AvailableTeacherMatch] = []
            for teacher in self.user_repository.list_active_teachers():
                if any(
                    self._overlaps_utc(booked_day, booked_slot, start_utc, end_utc)
                    for booked_day, booked_slot in busy.get(teacher.id, [])
                ):
                    continue
                teacher_day, teacher_slot = TimezoneService.convert_time_slot(
                    local_day, slot, tz, teacher.timezone
                )
                weekday = day_name(teacher_day)
                rules = self.availability_repository.get_rules_for_teacher(teacher.id, [weekday])
                windows = open_windows(rules, weekday)
                if any(teacher_slot.within(start, end) for start, end in windows):
                    matches.append(AvailableTeacherMatch(teacher, teacher_day, teacher_slot))
            return matches

        return self._as_result("get_available_teachers", _available)

    @staticmethod
    def _overlaps_utc(day: str, slot: str, start: datetime, end: datetime) -> bool:
        booked_start, booked_end = TimezoneService.utc_slot_bounds(day, slot)
        return booked_start < end and start < booked_end

    @staticmethod
    def _display_state(booking: ClassBooking, now: datetime) -> str:
        status = booking.booking_status
        if status is not BookingStatus.CONFIRMED:
            return status.value.lower()
        start, end = TimezoneService.utc_slot_bounds(booking.day, booking.time_slot)
        if now < start:
            return "upcoming"
        if now < end:
            return "in_progress"
        return "ended"

    @BaseService.measure_operation("list_schedule")
    def list_schedule(
        self,
        user_id: str,
        start: DayLike,
        end: DayLike,
        tz: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> SchedulingResult[List[ScheduleEntry]]:
        """Bookings of a student or teacher between two local days (inclusive)."""
        days = date_range(start, end)
        if not days:
            raise ValidationException(
                "End date must not be before start date", code="INVALID_RANGE"
            )
        if len(days) > MAX_SCHEDULE_RANGE_DAYS:
            raise ValidationException(
                f"Date range cannot exceed {MAX_SCHEDULE_RANGE_DAYS} days",
                code="INVALID_RANGE",
                details={"days": len(days)},
            )

        def _list() -> List[ScheduleEntry]:
            user = self.user_repository.get_by_id(user_id)
            if user is None:
                raise NotFoundException("User not found", details={"user_id": user_id})
            viewer_tz = tz or user.timezone
            TimezoneService.get_timezone(viewer_tz)
            current = now or datetime.now(timezone.utc)

            utc_days = [format_day(days[0] - timedelta(days=1))]
            utc_days += [format_day(day) for day in days]
            utc_days.append(format_day(days[-1] + timedelta(days=1)))

            entries: List[ScheduleEntry] = []
            for booking in self.booking_repository.list_for_user(user_id, utc_days):
                local_day, local_slot = TimezoneService.convert_time_slot_from_utc(
                    booking.day, booking.time_slot, viewer_tz
                )
                if not days[0] <= local_day <= days[-1]:
                    continue
                entries.append(
                    ScheduleEntry(
                        booking=booking,
                        day=local_day,
                        time_slot=str(local_slot),
                        timezone=viewer_tz,
                        display_state=self._display_state(booking, current),
                        viewer_role="teacher" if booking.teacher_id == user_id else "student",
                    )
                )
            return sorted(entries, key=lambda entry: (entry.day, entry.time_slot))

        return self._as_result("list_schedule", _list)

    def get_booking_stats(
        self, teacher_id: Optional[str] = None
    ) -> SchedulingResult[Dict[str, int]]:
        def _stats() -> Dict[str, int]:
            if teacher_id:
                self._require_teacher(teacher_id)
            return self.booking_repository.count_by_status(teacher_id)

        return self._as_result("get_booking_stats", _stats)

    # Class access

    def check_class_access(
        self,
        booking_id: str,
        actor: ActorPrincipal,
        now: Optional[datetime] = None,
    ) -> SchedulingResult[ClassAccess]:
        """
        Whether ``actor`` may enter the classroom now.

        Teachers (and admins) get the early-join allowance; students join at
        the start. Non-participants are refused outright.
        """

        def _access() -> ClassAccess:
            booking = self._require_booking(booking_id)
            is_teacher = actor.is_admin or actor.owns(booking.teacher_id)
            if not is_teacher and not actor.owns(booking.student_id):
                raise ForbiddenException(
                    "You are not a participant of this class", code="NOT_A_PARTICIPANT"
                )

            start, end = TimezoneService.utc_slot_bounds(booking.day, booking.time_slot)
            current = now or datetime.now(timezone.utc)
            access = evaluate_class_access(
                start,
                end,
                current,
                early_minutes=(
                    settings.teacher_join_early_minutes
                    if is_teacher
                    else settings.student_join_early_minutes
                ),
                warning_minutes=settings.end_warning_minutes,
            )
            if booking.booking_status is not BookingStatus.CONFIRMED:
                return ClassAccess(
                    can_access=False,
                    reason=f"Class is {booking.booking_status.value.lower()}",
                    minutes_until_start=access.minutes_until_start,
                    seconds_until_start=access.seconds_until_start,
                    minutes_until_end=access.minutes_until_end,
                    seconds_until_end=access.seconds_until_end,
                )
            return access

        return self._as_result("check_class_access", _access)

    # Availability editing

    def get_availability(self, teacher_id: str) -> SchedulingResult[List[AvailabilityRule]]:
        return self._as_result(
            "get_availability", lambda: self.availability_service.get_week(teacher_id)
        )

    def save_availability(
        self,
        teacher_id: str,
        rules: Sequence[Any],
        *,
        actor: Optional[ActorPrincipal] = None,
    ) -> SchedulingResult[List[AvailabilityRule]]:
        """Replace the teacher's whole week; the editor calls this directly."""
        self._ensure_can_edit_availability(actor, teacher_id)
        return self._as_result(
            "save_availability", lambda: self.availability_service.save_week(teacher_id, rules)
        )

    def toggle_availability(
        self,
        teacher_id: str,
        day_of_week: Any,
        start_time: str,
        end_time: str,
        is_available: bool,
        *,
        actor: Optional[ActorPrincipal] = None,
    ) -> SchedulingResult[Optional[AvailabilityRule]]:
        self._ensure_can_edit_availability(actor, teacher_id)
        return self._as_result(
            "toggle_availability",
            lambda: self.availability_service.toggle_window(
                teacher_id, day_of_week, start_time, end_time, is_available
            ),
        )
