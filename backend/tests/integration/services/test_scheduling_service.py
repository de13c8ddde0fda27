"""
Integration tests for SchedulingService against a real (SQLite) database.

The teacher fixture lives in America/Lima (UTC-5, no DST) and is open on
Mondays 09:00-11:00, so local slots map to UTC by adding five hours.
"""

from datetime import date, datetime, timedelta, timezone

import pytest

from app.core.enums import DayOfWeek, RoleName, SchedulingErrorCode
from app.core.exceptions import (
    ForbiddenException,
    NotFoundException,
    ValidationException,
)
from app.models import Course
from app.models.booking import BookingStatus
from app.principal import ActorPrincipal
from app.repositories.audit_repository import AuditRepository
from app.repositories.event_outbox_repository import EventOutboxRepository
from app.services.scheduling_service import BOOKING_ENTITY, SchedulingService
from app.services.timezone_service import TimezoneService

pytestmark = pytest.mark.integration

LIMA = "America/Lima"


def _book(service, student, teacher, day, slot="09:00-10:00", tz=LIMA, **kwargs):
    return service.create_booking(student.id, teacher.id, day, slot, tz, **kwargs)


@pytest.mark.usefixtures("monday_morning")
class TestBookableSlots:
    def test_teacher_zone(self, service: SchedulingService, teacher, course, next_monday: date):
        result = service.query_bookable_slots(teacher.id, next_monday, course_id=course.id)
        assert result.ok
        assert result.value == ["09:00-10:00", "10:00-11:00"]

    def test_viewer_zone(self, service: SchedulingService, teacher, next_monday: date):
        result = service.query_bookable_slots(teacher.id, next_monday, tz="UTC")
        assert result.value == ["14:00-15:00", "15:00-16:00"]

    def test_other_weekday_is_empty(self, service: SchedulingService, teacher, next_monday):
        result = service.query_bookable_slots(teacher.id, next_monday + timedelta(days=1))
        assert result.ok
        assert result.value == []

    def test_booked_slot_disappears(
        self, service: SchedulingService, teacher, student, next_monday: date
    ):
        assert _book(service, student, teacher, next_monday).ok
        result = service.query_bookable_slots(teacher.id, next_monday)
        assert result.value == ["10:00-11:00"]

    def test_range(self, service: SchedulingService, teacher, next_monday: date):
        end = next_monday + timedelta(days=7)
        result = service.query_bookable_slots_range(teacher.id, next_monday, end)
        assert result.ok
        assert len(result.value) == 8
        assert result.value[next_monday.isoformat()] == ["09:00-10:00", "10:00-11:00"]
        assert result.value[end.isoformat()] == ["09:00-10:00", "10:00-11:00"]
        assert result.value[(next_monday + timedelta(days=3)).isoformat()] == []

    def test_range_limits(self, service: SchedulingService, teacher, next_monday: date):
        with pytest.raises(ValidationException):
            service.query_bookable_slots_range(
                teacher.id, next_monday, next_monday - timedelta(days=1)
            )
        with pytest.raises(ValidationException):
            service.query_bookable_slots_range(
                teacher.id, next_monday, next_monday + timedelta(days=60)
            )

    def test_unknown_teacher(self, service: SchedulingService, student, next_monday: date):
        result = service.query_bookable_slots(student.id, next_monday)
        assert result.code is SchedulingErrorCode.TEACHER_NOT_FOUND

    def test_unknown_timezone(self, service: SchedulingService, teacher, next_monday: date):
        result = service.query_bookable_slots(teacher.id, next_monday, tz="Mars/Olympus")
        assert result.code is SchedulingErrorCode.INVALID_TIMEZONE

    def test_unknown_course(self, service: SchedulingService, teacher, next_monday: date):
        with pytest.raises(NotFoundException):
            service.query_bookable_slots(teacher.id, next_monday, course_id="nope")

    def test_malformed_day(self, service: SchedulingService, teacher):
        with pytest.raises(ValidationException):
            service.query_bookable_slots(teacher.id, "2030-02-30")


class TestLateLocalSlots:
    def test_late_window_shows_on_next_utc_day(
        self, service: SchedulingService, teacher, rule_factory, next_monday: date
    ):
        rule_factory(teacher, DayOfWeek.MONDAY, "22:00", "24:00")
        tuesday = next_monday + timedelta(days=1)

        assert service.query_bookable_slots(teacher.id, next_monday, tz="UTC").value == []
        assert service.query_bookable_slots(teacher.id, tuesday, tz="UTC").value == [
            "03:00-04:00",
            "04:00-05:00",
        ]

    def test_booking_stored_across_utc_midnight(
        self, service: SchedulingService, teacher, student, rule_factory, next_monday: date
    ):
        rule_factory(teacher, DayOfWeek.MONDAY, "18:00", "20:00")
        first = _book(service, student, teacher, next_monday, "18:00-19:00").unwrap()
        second = _book(service, student, teacher, next_monday, "19:00-20:00").unwrap()

        assert (first.day, first.time_slot) == (next_monday.isoformat(), "23:00-00:00")
        tuesday = (next_monday + timedelta(days=1)).isoformat()
        assert (second.day, second.time_slot) == (tuesday, "00:00-01:00")
        assert service.query_bookable_slots(teacher.id, next_monday).value == []


@pytest.mark.usefixtures("monday_morning")
class TestCreateBooking:
    def test_stores_utc_identity(
        self, service: SchedulingService, teacher, student, course, next_monday: date
    ):
        result = _book(service, student, teacher, next_monday, course_id=course.id)

        assert result.ok
        booking = result.value
        assert booking.day == next_monday.isoformat()
        assert booking.time_slot == "14:00-15:00"
        assert booking.timezone == LIMA
        assert booking.booking_status is BookingStatus.CONFIRMED
        assert booking.reschedule_count == 0

    def test_booking_from_another_zone(
        self, service: SchedulingService, teacher, student, next_monday: date
    ):
        result = _book(service, student, teacher, next_monday, "15:00-16:00", tz="UTC")
        assert result.ok
        assert result.value.time_slot == "15:00-16:00"
        local_day, local_slot = TimezoneService.convert_time_slot_from_utc(
            result.value.day, result.value.time_slot, LIMA
        )
        assert (local_day, str(local_slot)) == (next_monday, "10:00-11:00")

    def test_double_booking_rejected(
        self, service: SchedulingService, teacher, student, other_student, next_monday: date
    ):
        assert _book(service, student, teacher, next_monday).ok
        result = _book(service, other_student, teacher, next_monday)
        assert result.ok is False
        assert result.code is SchedulingErrorCode.SLOT_ALREADY_BOOKED

    def test_same_instant_from_other_zone_is_the_same_slot(
        self, service: SchedulingService, teacher, student, other_student, next_monday: date
    ):
        assert _book(service, student, teacher, next_monday).ok
        result = _book(service, other_student, teacher, next_monday, "14:00-15:00", tz="UTC")
        assert result.code is SchedulingErrorCode.SLOT_ALREADY_BOOKED

    @pytest.mark.parametrize("slot", ["09:30-10:30", "11:00-12:00", "09:00-09:30"])
    def test_outside_availability(
        self, service: SchedulingService, teacher, student, next_monday: date, slot: str
    ):
        result = _book(service, student, teacher, next_monday, slot)
        assert result.code is SchedulingErrorCode.SLOT_OUTSIDE_AVAILABILITY

    def test_unknown_student(self, service: SchedulingService, teacher, next_monday: date):
        result = service.create_booking("missing", teacher.id, next_monday, "09:00-10:00", LIMA)
        assert result.code is SchedulingErrorCode.STUDENT_NOT_FOUND

    def test_inactive_teacher(
        self, service: SchedulingService, teacher, student, db, next_monday: date
    ):
        teacher.is_active = False
        db.commit()
        result = _book(service, student, teacher, next_monday)
        assert result.code is SchedulingErrorCode.TEACHER_NOT_FOUND

    def test_invalid_timezone(self, service: SchedulingService, teacher, student, next_monday):
        result = _book(service, student, teacher, next_monday, tz="Not/AZone")
        assert result.code is SchedulingErrorCode.INVALID_TIMEZONE

    def test_malformed_slot_raises(self, service: SchedulingService, teacher, student):
        with pytest.raises(ValidationException):
            _book(service, student, teacher, "2030-01-07", "nine to ten")

    def test_publishes_created_event(
        self, service: SchedulingService, teacher, student, db, next_monday: date
    ):
        booking = _book(service, student, teacher, next_monday).unwrap()
        events = EventOutboxRepository(db).list_for_aggregate(booking.id)
        assert [event.event_type for event in events] == ["booking.created"]
        assert events[0].payload["time_slot"] == "14:00-15:00"

    def test_override_requires_admin(
        self, service: SchedulingService, teacher, student, next_monday: date
    ):
        actor = ActorPrincipal(user_id=student.id, role=RoleName.STUDENT)
        with pytest.raises(ForbiddenException):
            _book(service, student, teacher, next_monday, actor=actor, admin_override=True)

    def test_admin_override_skips_availability_and_is_audited(
        self, service: SchedulingService, teacher, student, admin, db, next_monday: date
    ):
        result = _book(
            service, student, teacher, next_monday, "17:00-18:00", actor=admin, admin_override=True
        )

        assert result.ok
        audits = AuditRepository(db).list_for_entity(BOOKING_ENTITY, result.value.id)
        assert [a.action for a in audits] == ["override_create"]
        assert audits[0].actor_id == admin.id
        assert audits[0].actor_role == "admin"
        assert audits[0].after["time_slot"] == "22:00-23:00"

    def test_admin_override_still_respects_conflicts(
        self, service: SchedulingService, teacher, student, other_student, admin, next_monday
    ):
        assert _book(service, student, teacher, next_monday).ok
        result = _book(
            service, other_student, teacher, next_monday, actor=admin, admin_override=True
        )
        assert result.code is SchedulingErrorCode.SLOT_ALREADY_BOOKED

    def test_shorter_class_cannot_overlap_held_slot(
        self, service: SchedulingService, teacher, student, other_student, course, db, next_monday
    ):
        short = Course(title="Quick review", class_duration=30)
        db.add(short)
        db.commit()
        assert _book(service, student, teacher, next_monday, course_id=course.id).ok
        bookable = service.query_bookable_slots(teacher.id, next_monday, course_id=short.id)
        assert bookable.value == ["10:00-10:30", "10:30-11:00"]

        result = _book(
            service, other_student, teacher, next_monday, "09:30-10:00", course_id=short.id
        )

        assert result.code is SchedulingErrorCode.SLOT_ALREADY_BOOKED
        assert result.error.details["time_slot"] == "14:30-15:00"

    def test_off_grid_override_blocks_overlapping_slots(
        self, service: SchedulingService, teacher, student, other_student, admin, next_monday
    ):
        assert _book(
            service, student, teacher, next_monday, "09:30-10:30", actor=admin, admin_override=True
        ).ok
        assert service.query_bookable_slots(teacher.id, next_monday).value == []

        for slot in ("09:00-10:00", "10:00-11:00"):
            result = _book(service, other_student, teacher, next_monday, slot)
            assert result.code is SchedulingErrorCode.SLOT_ALREADY_BOOKED


@pytest.mark.usefixtures("monday_morning")
class TestReschedule:
    def test_moves_and_counts(
        self, service: SchedulingService, teacher, student, db, next_monday: date
    ):
        booking = _book(service, student, teacher, next_monday).unwrap()

        result = service.reschedule_booking(booking.id, next_monday, "10:00-11:00", LIMA)

        assert result.ok
        moved = result.value
        assert moved.time_slot == "15:00-16:00"
        assert moved.reschedule_count == 1
        assert service.query_bookable_slots(teacher.id, next_monday).value == ["09:00-10:00"]

        history = service.get_reschedule_history(booking.id).unwrap()
        assert [(h.from_time_slot, h.to_time_slot) for h in history] == [
            ("14:00-15:00", "15:00-16:00")
        ]
        events = EventOutboxRepository(db).list_for_aggregate(booking.id)
        assert [e.event_type for e in events] == ["booking.created", "booking.rescheduled"]

    def test_same_slot_is_noop(self, service: SchedulingService, teacher, student, next_monday):
        booking = _book(service, student, teacher, next_monday).unwrap()
        result = service.reschedule_booking(booking.id, next_monday, "09:00-10:00", LIMA)
        assert result.ok
        assert result.value.reschedule_count == 0
        assert service.get_reschedule_history(booking.id).value == []

    def test_quota(self, service: SchedulingService, teacher, student, next_monday: date):
        booking = _book(service, student, teacher, next_monday).unwrap()
        assert service.reschedule_booking(booking.id, next_monday, "10:00-11:00", LIMA).ok
        assert service.reschedule_booking(booking.id, next_monday, "09:00-10:00", LIMA).ok

        result = service.reschedule_booking(booking.id, next_monday, "10:00-11:00", LIMA)

        assert result.code is SchedulingErrorCode.QUOTA_EXHAUSTED
        assert result.error.details["reschedules_remaining"] == 0

    def test_admin_override_ignores_quota_without_counting(
        self, service: SchedulingService, teacher, student, admin, db, next_monday: date
    ):
        booking = _book(service, student, teacher, next_monday).unwrap()
        service.reschedule_booking(booking.id, next_monday, "10:00-11:00", LIMA).unwrap()
        service.reschedule_booking(booking.id, next_monday, "09:00-10:00", LIMA).unwrap()

        result = service.reschedule_booking(
            booking.id, next_monday, "16:00-17:00", LIMA, actor=admin, admin_override=True
        )

        assert result.ok
        assert result.value.reschedule_count == 2
        assert result.value.time_slot == "21:00-22:00"
        audits = AuditRepository(db).list_for_entity(BOOKING_ENTITY, booking.id)
        assert [a.action for a in audits] == ["override_reschedule"]
        assert audits[0].before["time_slot"] == "14:00-15:00"
        history = service.get_reschedule_history(booking.id).unwrap()
        assert history[-1].admin_override is True
        assert history[-1].actor_id == admin.id

    def test_target_taken(
        self, service: SchedulingService, teacher, student, other_student, next_monday: date
    ):
        booking = _book(service, student, teacher, next_monday).unwrap()
        assert _book(service, other_student, teacher, next_monday, "10:00-11:00").ok

        result = service.reschedule_booking(booking.id, next_monday, "10:00-11:00", LIMA)

        assert result.code is SchedulingErrorCode.SLOT_ALREADY_BOOKED
        assert service.get_booking(booking.id).value.time_slot == "14:00-15:00"

    def test_target_overlapping_off_grid_booking(
        self, service: SchedulingService, teacher, student, other_student, admin, next_monday
    ):
        booking = _book(service, student, teacher, next_monday).unwrap()
        override = _book(
            service,
            other_student,
            teacher,
            next_monday,
            "10:30-11:30",
            actor=admin,
            admin_override=True,
        )
        assert override.ok

        result = service.reschedule_booking(booking.id, next_monday, "10:00-11:00", LIMA)

        assert result.code is SchedulingErrorCode.SLOT_ALREADY_BOOKED
        assert service.get_booking(booking.id).value.reschedule_count == 0

    def test_outsider_cannot_reschedule(
        self, service: SchedulingService, teacher, student, other_student, next_monday: date
    ):
        booking = _book(service, student, teacher, next_monday).unwrap()
        outsider = ActorPrincipal.from_user(other_student)

        with pytest.raises(ForbiddenException) as exc_info:
            service.reschedule_booking(
                booking.id, next_monday, "10:00-11:00", LIMA, actor=outsider
            )

        assert exc_info.value.code == "NOT_A_PARTICIPANT"
        assert service.get_booking(booking.id).value.time_slot == "14:00-15:00"

    def test_target_outside_availability(
        self, service: SchedulingService, teacher, student, next_monday: date
    ):
        booking = _book(service, student, teacher, next_monday).unwrap()
        result = service.reschedule_booking(
            booking.id, next_monday + timedelta(days=1), "09:00-10:00", LIMA
        )
        assert result.code is SchedulingErrorCode.SLOT_OUTSIDE_AVAILABILITY

    def test_too_close_to_start(
        self, service: SchedulingService, teacher, student, admin, next_monday: date
    ):
        start = (datetime.now(timezone.utc) + timedelta(hours=3)).replace(
            minute=0, second=0, microsecond=0
        )
        slot = f"{start:%H:%M}-{start + timedelta(hours=1):%H:%M}"
        booking = _book(
            service, student, teacher, start.date(), slot, "UTC", actor=admin, admin_override=True
        ).unwrap()

        result = service.reschedule_booking(booking.id, next_monday, "10:00-11:00", LIMA)

        assert result.code is SchedulingErrorCode.TOO_CLOSE_TO_START
        eligibility = service.check_reschedule_eligibility(booking.id).unwrap()
        assert eligibility.can_reschedule is False
        assert eligibility.reason is SchedulingErrorCode.TOO_CLOSE_TO_START

    def test_cancelled_booking(self, service: SchedulingService, teacher, student, next_monday):
        booking = _book(service, student, teacher, next_monday).unwrap()
        service.cancel_booking(booking.id).unwrap()
        result = service.reschedule_booking(booking.id, next_monday, "10:00-11:00", LIMA)
        assert result.code is SchedulingErrorCode.ALREADY_CANCELLED

    def test_completed_booking(self, service: SchedulingService, teacher, student, next_monday):
        booking = _book(service, student, teacher, next_monday).unwrap()
        service.complete_booking(booking.id).unwrap()
        result = service.reschedule_booking(booking.id, next_monday, "10:00-11:00", LIMA)
        assert result.code is SchedulingErrorCode.ALREADY_COMPLETED

    def test_unknown_booking(self, service: SchedulingService, next_monday: date):
        result = service.reschedule_booking("missing", next_monday, "10:00-11:00", LIMA)
        assert result.code is SchedulingErrorCode.BOOKING_NOT_FOUND

    def test_options_include_own_slot(
        self, service: SchedulingService, teacher, student, other_student, next_monday: date
    ):
        booking = _book(service, student, teacher, next_monday).unwrap()
        options = service.get_reschedule_options(booking.id, next_monday).unwrap()
        assert options.eligibility.can_reschedule
        assert options.timezone == LIMA
        assert options.slots == ["09:00-10:00", "10:00-11:00"]

        assert _book(service, other_student, teacher, next_monday, "10:00-11:00").ok
        options = service.get_reschedule_options(booking.id, next_monday).unwrap()
        assert options.slots == ["09:00-10:00"]

    def test_options_empty_when_not_eligible(
        self, service: SchedulingService, teacher, student, next_monday: date
    ):
        booking = _book(service, student, teacher, next_monday).unwrap()
        service.cancel_booking(booking.id).unwrap()
        options = service.get_reschedule_options(booking.id, next_monday).unwrap()
        assert options.eligibility.reason is SchedulingErrorCode.ALREADY_CANCELLED
        assert options.slots == []


@pytest.mark.usefixtures("monday_morning")
class TestLifecycle:
    def test_cancel_frees_slot_and_is_idempotent(
        self, service: SchedulingService, teacher, student, other_student, next_monday: date
    ):
        booking = _book(service, student, teacher, next_monday).unwrap()
        actor = ActorPrincipal.from_user(student)

        first = service.cancel_booking(booking.id, "Sick", actor=actor)
        second = service.cancel_booking(booking.id, "Again", actor=actor)

        assert first.value.booking_status is BookingStatus.CANCELLED
        assert second.ok
        assert second.value.cancellation_reason == "Sick"
        assert second.value.cancelled_by_id == student.id
        assert service.query_bookable_slots(teacher.id, next_monday).value == [
            "09:00-10:00",
            "10:00-11:00",
        ]
        assert _book(service, other_student, teacher, next_monday).ok

    def test_outsider_cannot_cancel(
        self, service: SchedulingService, teacher, student, other_student, next_monday: date
    ):
        booking = _book(service, student, teacher, next_monday).unwrap()

        with pytest.raises(ForbiddenException) as exc_info:
            service.cancel_booking(booking.id, actor=ActorPrincipal.from_user(other_student))

        assert exc_info.value.code == "NOT_A_PARTICIPANT"
        assert service.get_booking(booking.id).value.booking_status is BookingStatus.CONFIRMED

    def test_teacher_can_cancel(self, service: SchedulingService, teacher, student, next_monday):
        booking = _book(service, student, teacher, next_monday).unwrap()
        result = service.cancel_booking(booking.id, actor=ActorPrincipal.from_user(teacher))
        assert result.value.cancelled_by_id == teacher.id

    def test_only_teacher_or_admin_finishes_class(
        self, service: SchedulingService, teacher, student, admin, next_monday: date
    ):
        first = _book(service, student, teacher, next_monday).unwrap()
        second = _book(service, student, teacher, next_monday, "10:00-11:00").unwrap()
        as_student = ActorPrincipal.from_user(student)

        with pytest.raises(ForbiddenException):
            service.complete_booking(first.id, actor=as_student)
        with pytest.raises(ForbiddenException):
            service.mark_no_show(first.id, actor=as_student)

        completed = service.complete_booking(first.id, actor=ActorPrincipal.from_user(teacher))
        no_show = service.mark_no_show(second.id, actor=admin)
        assert completed.value.booking_status is BookingStatus.COMPLETED
        assert no_show.value.booking_status is BookingStatus.NO_SHOW

    def test_reason_too_long(self, service: SchedulingService, teacher, student, next_monday):
        booking = _book(service, student, teacher, next_monday).unwrap()
        with pytest.raises(ValidationException) as exc_info:
            service.cancel_booking(booking.id, "x" * 256)
        assert exc_info.value.code == "REASON_TOO_LONG"

    def test_completed_keeps_slot(self, service: SchedulingService, teacher, student, next_monday):
        booking = _book(service, student, teacher, next_monday).unwrap()
        completed = service.complete_booking(booking.id).unwrap()

        assert completed.booking_status is BookingStatus.COMPLETED
        assert completed.completed_at is not None
        assert service.query_bookable_slots(teacher.id, next_monday).value == ["10:00-11:00"]

    def test_terminal_states_are_final(
        self, service: SchedulingService, teacher, student, next_monday: date
    ):
        booking = _book(service, student, teacher, next_monday).unwrap()
        service.mark_no_show(booking.id).unwrap()

        assert service.complete_booking(booking.id).code is (
            SchedulingErrorCode.INVALID_STATE_TRANSITION
        )
        assert service.cancel_booking(booking.id).code is (
            SchedulingErrorCode.INVALID_STATE_TRANSITION
        )

    def test_no_show_releases_slot(
        self, service: SchedulingService, teacher, student, next_monday: date
    ):
        booking = _book(service, student, teacher, next_monday).unwrap()
        service.mark_no_show(booking.id).unwrap()
        assert "09:00-10:00" in service.query_bookable_slots(teacher.id, next_monday).value

    def test_admin_delete(
        self, service: SchedulingService, teacher, student, admin, db, next_monday: date
    ):
        booking = _book(service, student, teacher, next_monday).unwrap()
        service.reschedule_booking(booking.id, next_monday, "10:00-11:00", LIMA).unwrap()

        result = service.admin_delete_booking(booking.id, admin)

        assert result.value == booking.id
        assert service.get_booking(booking.id).code is SchedulingErrorCode.BOOKING_NOT_FOUND
        audits = AuditRepository(db).list_for_entity(BOOKING_ENTITY, booking.id)
        assert [a.action for a in audits] == ["delete"]
        assert audits[0].before["time_slot"] == "15:00-16:00"
        assert audits[0].after is None

    def test_delete_requires_admin(
        self, service: SchedulingService, teacher, student, next_monday: date
    ):
        booking = _book(service, student, teacher, next_monday).unwrap()
        actor = ActorPrincipal(user_id=teacher.id, role=RoleName.TEACHER)
        with pytest.raises(ForbiddenException):
            service.admin_delete_booking(booking.id, actor)
        assert service.get_booking(booking.id).ok

    def test_stats(
        self, service: SchedulingService, teacher, student, other_student, next_monday: date
    ):
        first = _book(service, student, teacher, next_monday).unwrap()
        _book(service, other_student, teacher, next_monday, "10:00-11:00").unwrap()
        service.cancel_booking(first.id).unwrap()

        counts = service.get_booking_stats(teacher.id).unwrap()

        assert counts == {"CONFIRMED": 1, "COMPLETED": 0, "CANCELLED": 1, "NO_SHOW": 0}
        assert service.get_booking_stats(student.id).code is (
            SchedulingErrorCode.TEACHER_NOT_FOUND
        )


@pytest.mark.usefixtures("monday_morning")
class TestDiscoveryAndSchedule:
    def test_available_teachers(
        self, service: SchedulingService, teacher, student, next_monday: date
    ):
        matches = service.get_available_teachers(next_monday, "14:00-15:00", "UTC").unwrap()
        assert [m.teacher.id for m in matches] == [teacher.id]
        assert str(matches[0].local_slot) == "09:00-10:00"
        assert matches[0].local_day == next_monday

        _book(service, student, teacher, next_monday).unwrap()
        assert service.get_available_teachers(next_monday, "09:00-10:00", LIMA).value == []

    def test_overlapping_booking_makes_teacher_busy(
        self, service: SchedulingService, teacher, student, admin, next_monday: date
    ):
        _book(
            service, student, teacher, next_monday, "09:30-10:30", actor=admin, admin_override=True
        ).unwrap()
        assert service.get_available_teachers(next_monday, "10:00-11:00", LIMA).value == []

    def test_schedule_for_both_sides(
        self, service: SchedulingService, teacher, student, next_monday: date
    ):
        booking = _book(service, student, teacher, next_monday).unwrap()

        student_view = service.list_schedule(
            student.id, next_monday, next_monday, tz=LIMA
        ).unwrap()
        teacher_view = service.list_schedule(teacher.id, next_monday, next_monday).unwrap()

        assert [(e.booking.id, e.time_slot) for e in student_view] == [
            (booking.id, "09:00-10:00")
        ]
        assert student_view[0].viewer_role == "student"
        assert student_view[0].display_state == "upcoming"
        assert teacher_view[0].viewer_role == "teacher"
        assert teacher_view[0].timezone == LIMA

    def test_schedule_in_viewer_zone(
        self, service: SchedulingService, teacher, student, next_monday: date
    ):
        _book(service, student, teacher, next_monday).unwrap()
        entries = service.list_schedule(
            student.id, next_monday, next_monday, tz="Pacific/Kiritimati"
        ).unwrap()
        assert entries == []
        tuesday = next_monday + timedelta(days=1)
        entries = service.list_schedule(
            student.id, tuesday, tuesday, tz="Pacific/Kiritimati"
        ).unwrap()
        # UTC+14: 14:00 UTC on Monday is 04:00 on Tuesday
        assert [e.time_slot for e in entries] == ["04:00-05:00"]

    def test_display_states(self, service: SchedulingService, teacher, student, next_monday):
        booking = _book(service, student, teacher, next_monday).unwrap()
        start, end = TimezoneService.utc_slot_bounds(booking.day, booking.time_slot)

        def state_at(now):
            return service.list_schedule(
                student.id, next_monday, next_monday, tz=LIMA, now=now
            ).unwrap()[0].display_state

        assert state_at(start + timedelta(minutes=5)) == "in_progress"
        assert state_at(end) == "ended"
        service.cancel_booking(booking.id).unwrap()
        assert state_at(start) == "cancelled"

    def test_schedule_limits(self, service: SchedulingService, student, next_monday: date):
        with pytest.raises(ValidationException):
            service.list_schedule(student.id, next_monday, next_monday + timedelta(days=120))
        with pytest.raises(NotFoundException):
            service.list_schedule("missing", next_monday, next_monday)


@pytest.mark.usefixtures("monday_morning")
class TestClassAccess:
    def test_join_windows(self, service: SchedulingService, teacher, student, next_monday):
        booking = _book(service, student, teacher, next_monday).unwrap()
        start, _ = TimezoneService.utc_slot_bounds(booking.day, booking.time_slot)
        now = start - timedelta(minutes=5)
        as_student = ActorPrincipal(user_id=student.id, role=RoleName.STUDENT)
        as_teacher = ActorPrincipal(user_id=teacher.id, role=RoleName.TEACHER)

        student_access = service.check_class_access(booking.id, as_student, now).unwrap()
        teacher_access = service.check_class_access(booking.id, as_teacher, now).unwrap()

        assert student_access.can_access is False
        assert student_access.reason == "Class has not started yet"
        assert teacher_access.can_access is True

    def test_non_participant(
        self, service: SchedulingService, teacher, student, other_student, next_monday: date
    ):
        booking = _book(service, student, teacher, next_monday).unwrap()
        stranger = ActorPrincipal(user_id=other_student.id, role=RoleName.STUDENT)
        with pytest.raises(ForbiddenException):
            service.check_class_access(booking.id, stranger)

    def test_cancelled_class_is_closed(
        self, service: SchedulingService, teacher, student, next_monday: date
    ):
        booking = _book(service, student, teacher, next_monday).unwrap()
        service.cancel_booking(booking.id).unwrap()
        start, _ = TimezoneService.utc_slot_bounds(booking.day, booking.time_slot)
        as_student = ActorPrincipal(user_id=student.id, role=RoleName.STUDENT)

        access = service.check_class_access(booking.id, as_student, start).unwrap()

        assert access.can_access is False
        assert access.reason == "Class is cancelled"


class TestAvailabilityEditing:
    def test_save_week_replaces_rules(
        self, service: SchedulingService, teacher, monday_morning, next_monday: date
    ):
        rules = [
            {"day_of_week": "tuesday", "start_time": "08:00", "end_time": "10:00"},
            {
                "day_of_week": "tuesday",
                "start_time": "08:30",
                "end_time": "09:00",
                "is_available": False,
            },
        ]
        saved = service.save_availability(teacher.id, rules).unwrap()

        assert [(r.day_of_week, r.start_time) for r in saved] == [
            (DayOfWeek.TUESDAY, "08:00"),
            (DayOfWeek.TUESDAY, "08:30"),
        ]
        assert service.query_bookable_slots(teacher.id, next_monday).value == []
        tuesday = next_monday + timedelta(days=1)
        assert service.query_bookable_slots(teacher.id, tuesday).value == ["09:00-10:00"]
        thirty = service.slot_generator.candidate_slots(teacher, [tuesday], 30)
        assert [str(s) for s in thirty[tuesday]] == ["08:00-08:30", "09:00-09:30", "09:30-10:00"]

    def test_duplicate_rules_rejected_atomically(
        self, service: SchedulingService, teacher, monday_morning
    ):
        rules = [
            {"day_of_week": "monday", "start_time": "13:00", "end_time": "14:00"},
            {"day_of_week": "monday", "start_time": "13:00", "end_time": "15:00"},
        ]
        with pytest.raises(ValidationException) as exc_info:
            service.save_availability(teacher.id, rules)
        assert exc_info.value.code == "DUPLICATE_AVAILABILITY"
        assert len(service.get_availability(teacher.id).unwrap()) == 1

    @pytest.mark.parametrize(
        "rule, code",
        [
            (
                {"day_of_week": "funday", "start_time": "09:00", "end_time": "10:00"},
                "INVALID_DAY_OF_WEEK",
            ),
            (
                {"day_of_week": "monday", "start_time": "10:00", "end_time": "09:00"},
                "INVALID_TIME_RANGE",
            ),
            (
                {"day_of_week": "monday", "start_time": "10:00", "end_time": "25:00"},
                "INVALID_TIME",
            ),
        ],
    )
    def test_invalid_rules(self, service: SchedulingService, teacher, rule, code):
        with pytest.raises(ValidationException) as exc_info:
            service.save_availability(teacher.id, [rule])
        assert exc_info.value.code == code

    def test_only_owner_or_admin_edits(
        self, service: SchedulingService, teacher, user_factory, admin
    ):
        other = user_factory(RoleName.TEACHER, "pedro.diaz@example.com")
        intruder = ActorPrincipal(user_id=other.id, role=RoleName.TEACHER)
        rules = [{"day_of_week": "friday", "start_time": "09:00", "end_time": "10:00"}]

        with pytest.raises(ForbiddenException):
            service.save_availability(teacher.id, rules, actor=intruder)
        assert service.save_availability(teacher.id, rules, actor=admin).ok
        owner = ActorPrincipal.from_user(teacher)
        assert service.save_availability(teacher.id, [], actor=owner).value == []

    def test_unknown_teacher(self, service: SchedulingService, student):
        result = service.save_availability(student.id, [])
        assert result.code is SchedulingErrorCode.TEACHER_NOT_FOUND

    def test_toggle(self, service: SchedulingService, teacher, monday_morning, next_monday):
        blocked = service.toggle_availability(
            teacher.id, DayOfWeek.MONDAY, "10:00", "11:00", False
        ).unwrap()
        assert blocked.is_available is False
        assert service.query_bookable_slots(teacher.id, next_monday).value == ["09:00-10:00"]

        opened = service.toggle_availability(
            teacher.id, DayOfWeek.TUESDAY, "09:00", "10:00", True
        ).unwrap()
        assert opened.is_available is True
        removed = service.toggle_availability(
            teacher.id, DayOfWeek.TUESDAY, "09:00", "10:00", False
        )
        assert removed.ok and removed.value is None
        rules = service.get_availability(teacher.id).unwrap()
        assert [r for r in rules if r.day_of_week == DayOfWeek.TUESDAY] == []
