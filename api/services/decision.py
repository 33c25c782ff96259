"""Approval decisions for membership applications.

decide() sets the initial status of a new application from the roster
result. The transition helpers encode which admin actions are allowed from
which status; PENDING is the only non-terminal status.
"""

from dataclasses import dataclass
from typing import Optional

from api.middleware.error_handler import ValidationAPIError, InvalidTransitionError
from api.models.membership_applications import (
    ApplicationStatus,
    AUTO_APPROVAL_REASON_MAX,
)
from roster.base import RosterCheckResult, RosterCheckStatus

DEFAULT_ADMIN_APPROVAL_REASON = "Approved by administrator"


@dataclass(frozen=True)
class Decision:
    """Initial status for a new application."""

    status: ApplicationStatus
    auto_approved: bool = False
    auto_approval_reason: Optional[str] = None


PENDING_REVIEW = Decision(status=ApplicationStatus.PENDING)


def auto_approval_reason(result: RosterCheckResult) -> str:
    """System text recorded when a roster match approves an application."""
    if result.member and result.member.student_number:
        reason = (
            f"Auto-approved: student number {result.member.student_number} "
            f"found in community roster (member {result.matched_member_ref})"
        )
    else:
        reason = f"Auto-approved: matched community member {result.matched_member_ref}"
    return reason[:AUTO_APPROVAL_REASON_MAX]


def decide(roster_enabled: bool, roster_result: Optional[RosterCheckResult]) -> Decision:
    """
    Decide the initial status of an application.

    Args:
        roster_enabled: Whether roster integration is switched on
        roster_result: Result of the roster check, None if it did not run

    Returns:
        Decision

    Raises:
        ValidationAPIError: Roster integration is on and the applicant is not
            in the roster; the application must not be created
    """
    if not roster_enabled or roster_result is None:
        return PENDING_REVIEW

    if roster_result.status == RosterCheckStatus.FOUND and roster_result.matched_member_ref:
        return Decision(
            status=ApplicationStatus.APPROVED,
            auto_approved=True,
            auto_approval_reason=auto_approval_reason(roster_result),
        )

    if roster_result.status == RosterCheckStatus.NOT_FOUND:
        raise ValidationAPIError(
            "Applicant not found in roster: please join the community before applying",
            field="student_number",
        )

    # ERROR, or FOUND without a usable member reference
    return PENDING_REVIEW


def ensure_can_approve(status: ApplicationStatus) -> None:
    """Raise unless an approval may be applied from this status."""
    if status != ApplicationStatus.PENDING:
        raise InvalidTransitionError(status.value, "approve")


def ensure_can_reject(status: ApplicationStatus) -> None:
    """Raise unless a rejection may be applied from this status."""
    if status != ApplicationStatus.PENDING:
        raise InvalidTransitionError(status.value, "reject")


def is_repeat_approval(
    status: ApplicationStatus,
    current_reviewer: Optional[str],
    current_reason: Optional[str],
    reviewer: str,
    reason: Optional[str],
) -> bool:
    """
    Whether an approve request repeats an approval that already happened.

    Same reviewer and no different reason counts as the same intent.
    """
    if status != ApplicationStatus.APPROVED:
        return False
    if current_reviewer != reviewer:
        return False
    return reason is None or reason == current_reason
