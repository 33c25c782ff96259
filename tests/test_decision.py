"""Initial-status decision and transition rules."""

import pytest

from api.middleware.error_handler import InvalidTransitionError, ValidationAPIError
from api.models import ApplicationStatus
from api.services.decision import (
    PENDING_REVIEW,
    decide,
    ensure_can_approve,
    ensure_can_reject,
    is_repeat_approval,
)
from roster.base import RosterCheckResult, RosterCheckStatus, RosterMember


def found(ref="7"):
    return RosterCheckResult(
        status=RosterCheckStatus.FOUND,
        matched_member_ref=ref,
        member=RosterMember(full_name="Ayşe Yılmaz", student_number="2021001"),
    )


class TestDecide:
    def test_roster_disabled_is_pending(self):
        assert decide(False, found()) == PENDING_REVIEW
        assert decide(False, None) == PENDING_REVIEW

    def test_no_check_is_pending(self):
        assert decide(True, None) == PENDING_REVIEW

    def test_found_auto_approves(self):
        decision = decide(True, found("7"))
        assert decision.status == ApplicationStatus.APPROVED
        assert decision.auto_approved is True
        assert "2021001" in decision.auto_approval_reason
        assert "7" in decision.auto_approval_reason
        assert len(decision.auto_approval_reason) <= 200

    def test_found_without_reference_is_pending(self):
        assert decide(True, found(ref=None)) == PENDING_REVIEW

    def test_not_found_refuses_submission(self):
        with pytest.raises(ValidationAPIError) as exc:
            decide(True, RosterCheckResult(status=RosterCheckStatus.NOT_FOUND))
        assert "not found in roster" in exc.value.message

    def test_error_defers_to_review(self):
        result = RosterCheckResult(status=RosterCheckStatus.ERROR, message="timeout")
        decision = decide(True, result)
        assert decision.status == ApplicationStatus.PENDING
        assert decision.auto_approved is False

    def test_deterministic(self):
        assert decide(True, found("3")) == decide(True, found("3"))


class TestTransitions:
    def test_only_pending_can_be_approved(self):
        ensure_can_approve(ApplicationStatus.PENDING)
        with pytest.raises(InvalidTransitionError):
            ensure_can_approve(ApplicationStatus.REJECTED)
        with pytest.raises(InvalidTransitionError):
            ensure_can_approve(ApplicationStatus.APPROVED)

    def test_only_pending_can_be_rejected(self):
        ensure_can_reject(ApplicationStatus.PENDING)
        with pytest.raises(InvalidTransitionError) as exc:
            ensure_can_reject(ApplicationStatus.APPROVED)
        assert exc.value.from_status == "APPROVED"
        assert exc.value.code == "INVALID_TRANSITION"

    def test_repeat_approval(self):
        approved = ApplicationStatus.APPROVED
        assert is_repeat_approval(approved, "admin-1", "ok", "admin-1", None)
        assert is_repeat_approval(approved, "admin-1", "ok", "admin-1", "ok")
        assert not is_repeat_approval(approved, "admin-1", "ok", "admin-1", "different")
        assert not is_repeat_approval(approved, "admin-1", "ok", "admin-2", None)
        assert not is_repeat_approval(approved, None, "Auto-approved", "admin-1", None)
        assert not is_repeat_approval(ApplicationStatus.PENDING, None, None, "admin-1", None)
