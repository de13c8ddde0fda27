"""Tests for reschedule eligibility rules."""

from datetime import datetime, timedelta, timezone
from types import SimpleNamespace

import pytest

from app.core.enums import SchedulingErrorCode
from app.core.exceptions import QuotaExhaustedException, TooCloseToStartException
from app.models.booking import BookingStatus
from app.services.reschedule_policy_engine import RescheduleEligibility, ReschedulePolicyEngine

NOW = datetime(2030, 1, 1, 12, 0, tzinfo=timezone.utc)


def _booking(hours_ahead: float, status=BookingStatus.CONFIRMED, reschedule_count: int = 0):
    start = NOW + timedelta(hours=hours_ahead)
    end = start + timedelta(hours=1)
    return SimpleNamespace(
        day=start.strftime("%Y-%m-%d"),
        time_slot=f"{start:%H:%M}-{end:%H:%M}",
        status=status.value,
        reschedule_count=reschedule_count,
    )


@pytest.fixture
def engine() -> ReschedulePolicyEngine:
    return ReschedulePolicyEngine(max_reschedules=2, min_lead_hours=24)


@pytest.mark.unit
class TestCheckEligibility:
    def test_eligible(self, engine: ReschedulePolicyEngine) -> None:
        result = engine.check_eligibility(_booking(48), NOW)
        assert result.can_reschedule is True
        assert result.reason is None
        assert result.reschedules_remaining == 2
        assert result.hours_until_start == pytest.approx(48)

    @pytest.mark.parametrize(
        "status, reason",
        [
            (BookingStatus.COMPLETED, SchedulingErrorCode.ALREADY_COMPLETED),
            (BookingStatus.NO_SHOW, SchedulingErrorCode.ALREADY_COMPLETED),
            (BookingStatus.CANCELLED, SchedulingErrorCode.ALREADY_CANCELLED),
        ],
    )
    def test_terminal_statuses(
        self, engine: ReschedulePolicyEngine, status: BookingStatus, reason
    ) -> None:
        result = engine.check_eligibility(_booking(48, status=status), NOW)
        assert result.can_reschedule is False
        assert result.reason is reason

    def test_status_wins_over_quota_and_lead_time(self, engine: ReschedulePolicyEngine) -> None:
        booking = _booking(1, status=BookingStatus.CANCELLED, reschedule_count=5)
        result = engine.check_eligibility(booking, NOW)
        assert result.reason is SchedulingErrorCode.ALREADY_CANCELLED

    def test_quota_checked_before_lead_time(self, engine: ReschedulePolicyEngine) -> None:
        result = engine.check_eligibility(_booking(1, reschedule_count=2), NOW)
        assert result.reason is SchedulingErrorCode.QUOTA_EXHAUSTED
        assert result.reschedules_remaining == 0

    def test_lead_time_boundary_is_exclusive(self, engine: ReschedulePolicyEngine) -> None:
        at_boundary = engine.check_eligibility(_booking(24), NOW)
        assert at_boundary.reason is SchedulingErrorCode.TOO_CLOSE_TO_START
        assert engine.check_eligibility(_booking(24.5), NOW).can_reschedule is True

    def test_started_class_is_too_close(self, engine: ReschedulePolicyEngine) -> None:
        result = engine.check_eligibility(_booking(-2), NOW)
        assert result.reason is SchedulingErrorCode.TOO_CLOSE_TO_START
        assert result.hours_until_start < 0

    def test_ignore_quota(self, engine: ReschedulePolicyEngine) -> None:
        booking = _booking(48, reschedule_count=2)
        assert engine.check_eligibility(booking, NOW, ignore_quota=True).can_reschedule is True

    def test_ignore_quota_keeps_lead_time(self, engine: ReschedulePolicyEngine) -> None:
        booking = _booking(2, reschedule_count=2)
        result = engine.check_eligibility(booking, NOW, ignore_quota=True)
        assert result.reason is SchedulingErrorCode.TOO_CLOSE_TO_START

    def test_defaults_come_from_settings(self) -> None:
        from app.core.config import settings

        engine = ReschedulePolicyEngine()
        assert engine.max_reschedules == settings.max_reschedules
        assert engine.min_lead_hours == settings.reschedule_min_lead_hours


@pytest.mark.unit
class TestRescheduleEligibility:
    def test_payload(self) -> None:
        result = RescheduleEligibility(
            can_reschedule=False,
            reason=SchedulingErrorCode.QUOTA_EXHAUSTED,
            message="No reschedules left for this class",
            reschedules_used=2,
            max_reschedules=2,
            hours_until_start=30.123456,
        )
        payload = result.to_payload()
        assert payload["reason"] == "QuotaExhausted"
        assert payload["reschedules_remaining"] == 0
        assert payload["hours_until_start"] == 30.12

    def test_to_exception(self, engine: ReschedulePolicyEngine) -> None:
        exc = engine.check_eligibility(_booking(48, reschedule_count=2), NOW).to_exception()
        assert isinstance(exc, QuotaExhaustedException)
        assert exc.status_code == 422
        exc = engine.check_eligibility(_booking(3), NOW).to_exception()
        assert isinstance(exc, TooCloseToStartException)

    def test_eligible_result_has_no_exception(self) -> None:
        with pytest.raises(ValueError):
            RescheduleEligibility(can_reschedule=True).to_exception()
