"""Membership application workflow.

Submission validates identity, optionally consults the roster, decides the
initial status and stores the application in a single commit. Admin
approve/reject are guarded transitions out of PENDING. Approved
applications are handed to registered approval listeners (for example the
account provisioning job) after the commit.
"""

from dataclasses import dataclass
from typing import Callable, List, Optional

import structlog
from sqlalchemy import func
from sqlalchemy.orm import Session

from api.middleware.error_handler import (
    ConflictError,
    InvalidTransitionError,
    ValidationAPIError,
)
from api.models import (
    ApplicationDecision,
    ApplicationSource,
    ApplicationStatus,
    MembershipApplication,
)
from api.models.base import utcnow
from api.models.membership_applications import (
    AUTO_APPROVAL_REASON_MAX,
    REJECTION_REASON_MAX,
)
from api.schemas.applications import ApplicationCreate
from api.services.application_store import (
    assign_created_account,
    get_application,
    insert_application,
    set_once,
    transition_from_pending,
)
from api.services.decision import (
    DEFAULT_ADMIN_APPROVAL_REASON,
    decide,
    ensure_can_approve,
    ensure_can_reject,
    is_repeat_approval,
)
from api.services.identity import (
    check_uniqueness,
    find_by_identification,
    normalize_email,
    normalize_identifier,
    validate_contact_format,
    validate_identification_format,
)
from api.services.roster_checker import RosterChecker
from roster.base import RosterCheckResult, RosterCheckStatus

logger = structlog.get_logger()

ApprovalListener = Callable[[MembershipApplication], None]

_approval_listeners: List[ApprovalListener] = []


def register_approval_listener(listener: ApprovalListener) -> None:
    """Subscribe to APPROVED transitions (automatic and manual)."""
    if listener not in _approval_listeners:
        _approval_listeners.append(listener)


def unregister_approval_listener(listener: ApprovalListener) -> None:
    if listener in _approval_listeners:
        _approval_listeners.remove(listener)


def _notify_approved(application: MembershipApplication) -> None:
    # The approval is already committed; a failing listener must not undo it.
    for listener in list(_approval_listeners):
        try:
            listener(application)
        except Exception:
            logger.exception(
                "Approval listener failed",
                application_id=application.id,
                listener=getattr(listener, "__name__", repr(listener)),
            )


def _required_name(value: Optional[str], field: str, label: str) -> str:
    value = (value or "").strip()
    if not value:
        raise ValidationAPIError(f"{label} is required", field=field)
    return value


async def submit_application(
    db: Session,
    data: ApplicationCreate,
    *,
    roster_enabled: bool,
    roster_checker: Optional[RosterChecker] = None,
    source: ApplicationSource = ApplicationSource.WEBSITE,
    ip_address: Optional[str] = None,
    user_agent: Optional[str] = None,
) -> MembershipApplication:
    """
    Validate and store a new membership application.

    Args:
        db: Database session
        data: Submitted fields
        roster_enabled: Roster integration toggle
        roster_checker: Roster lookup, used only when the toggle is on and a
            student number was given
        source: WEBSITE or ADMIN
        ip_address: Client address, for audit
        user_agent: Client user agent, for audit

    Returns:
        The stored application, PENDING or auto-APPROVED

    Raises:
        ValidationAPIError: Malformed input, or applicant not in the roster
        ConflictError: Email, national ID or student number already taken
    """
    first_name = _required_name(data.first_name, "first_name", "First name")
    last_name = _required_name(data.last_name, "last_name", "Last name")
    email = normalize_email(data.email)
    national_id = normalize_identifier(data.national_id)
    student_number = normalize_identifier(data.student_number)
    phone = normalize_identifier(data.phone)

    validate_identification_format(national_id, student_number)
    validate_contact_format(email, phone)
    check_uniqueness(db, email, national_id=national_id, student_number=student_number)

    roster_result: Optional[RosterCheckResult] = None
    if roster_enabled and student_number:
        if roster_checker is None:
            roster_result = RosterCheckResult(
                status=RosterCheckStatus.ERROR,
                message="Roster checker unavailable",
            )
        else:
            roster_result = await roster_checker.check_student_number(student_number)

    try:
        decision = decide(roster_enabled, roster_result)
    except ValidationAPIError:
        db.rollback()
        logger.warning(
            "Application refused: applicant not in roster",
            email=email,
            student_number=student_number,
            national_id=national_id,
            source=source.value,
        )
        raise

    now = utcnow()
    application = MembershipApplication(
        first_name=first_name,
        last_name=last_name,
        email=email,
        national_id=national_id,
        student_number=student_number,
        phone=phone,
        department=normalize_identifier(data.department),
        roster_check_status=roster_result.status if roster_result else RosterCheckStatus.NOT_CHECKED,
        roster_checked_at=now if roster_result else None,
        matched_member_ref=(
            roster_result.matched_member_ref
            if roster_result and roster_result.status == RosterCheckStatus.FOUND
            else None
        ),
        status=decision.status,
        auto_approved=decision.auto_approved,
        auto_approval_reason=decision.auto_approval_reason,
        approval_date=now if decision.status == ApplicationStatus.APPROVED else None,
        source=source,
        submitted_at=now,
        ip_address=ip_address,
        user_agent=user_agent[:512] if user_agent else None,
        processing_notes=getattr(data, "processing_notes", None),
    )

    audit = None
    if decision.auto_approved:
        audit = ApplicationDecision(
            action="auto_approve",
            from_status=ApplicationStatus.PENDING.value,
            to_status=ApplicationStatus.APPROVED.value,
            reason=decision.auto_approval_reason,
        )

    application = insert_application(db, application, audit)

    logger.info(
        "Application submitted",
        application_id=application.id,
        status=application.status.value,
        auto_approved=application.auto_approved,
        roster_check_status=application.roster_check_status.value,
        source=source.value,
    )

    if application.status == ApplicationStatus.APPROVED:
        _notify_approved(application)

    return application


@dataclass(frozen=True)
class Eligibility:
    """Outcome of the pre-submission eligibility check."""

    eligible: bool
    auto_approval: bool
    already_applied: bool
    roster_check_status: RosterCheckStatus
    message: str


async def check_eligibility(
    db: Session,
    student_number: Optional[str],
    *,
    roster_enabled: bool,
    roster_checker: Optional[RosterChecker] = None,
) -> Eligibility:
    """
    Tell an applicant what submitting would lead to, without storing anything.

    Raises:
        ValidationAPIError: Missing or malformed student number
    """
    student_number = normalize_identifier(student_number)
    if not student_number:
        raise ValidationAPIError("Student number is required", field="student_number")
    validate_identification_format(None, student_number)

    if find_by_identification(db, student_number=student_number):
        return Eligibility(
            eligible=False,
            auto_approval=False,
            already_applied=True,
            roster_check_status=RosterCheckStatus.NOT_CHECKED,
            message="An application with this student number already exists",
        )

    if not roster_enabled:
        return Eligibility(
            eligible=True,
            auto_approval=False,
            already_applied=False,
            roster_check_status=RosterCheckStatus.NOT_CHECKED,
            message="Applications are reviewed by an administrator",
        )

    if roster_checker is None:
        status = RosterCheckStatus.ERROR
    else:
        result = await roster_checker.check_student_number(student_number, mirror=False)
        status = result.status

    logger.info("Eligibility checked", student_number=student_number, roster_check_status=status.value)

    if status == RosterCheckStatus.NOT_FOUND:
        return Eligibility(
            eligible=False,
            auto_approval=False,
            already_applied=False,
            roster_check_status=status,
            message="Student number not found in the community roster",
        )
    if status == RosterCheckStatus.FOUND:
        message = "Found in the community roster: the application will be approved automatically"
    else:
        message = "The roster could not be checked: the application will be reviewed by an administrator"
    return Eligibility(
        eligible=True,
        auto_approval=status == RosterCheckStatus.FOUND,
        already_applied=False,
        roster_check_status=status,
        message=message,
    )


def approve_application(
    db: Session,
    application_id: int,
    reviewer_id: str,
    reason: Optional[str] = None,
) -> MembershipApplication:
    """
    Approve a pending application.

    Approving again with the same reviewer and no new reason returns the
    application unchanged.

    Raises:
        NotFoundError: Unknown application
        ConflictError: Already approved by someone else or for another reason
        InvalidTransitionError: Application is rejected, or a concurrent
            decision won the race
    """
    reason = normalize_identifier(reason)
    if reason and len(reason) > AUTO_APPROVAL_REASON_MAX:
        raise ValidationAPIError(
            f"Approval reason must be at most {AUTO_APPROVAL_REASON_MAX} characters",
            field="reason",
        )

    application = get_application(db, application_id)
    _check_approvable(application, reviewer_id, reason)
    if application.status == ApplicationStatus.APPROVED:
        logger.info("Repeated approval ignored", application_id=application_id, reviewer=reviewer_id)
        return application

    approval_reason = reason or DEFAULT_ADMIN_APPROVAL_REASON
    applied = transition_from_pending(
        db,
        application_id,
        {
            "status": ApplicationStatus.APPROVED,
            "reviewer_ref": reviewer_id,
            "auto_approved": False,
            "auto_approval_reason": approval_reason,
            "approval_date": set_once(MembershipApplication.approval_date, utcnow()),
        },
        ApplicationDecision(
            application_id=application_id,
            action="approve",
            from_status=ApplicationStatus.PENDING.value,
            to_status=ApplicationStatus.APPROVED.value,
            reason=approval_reason,
            reviewer_ref=reviewer_id,
        ),
    )

    application = get_application(db, application_id, refresh=True)
    if not applied:
        logger.info(
            "Approval lost to a concurrent decision",
            application_id=application_id,
            status=application.status.value,
        )
        if is_repeat_approval(
            application.status,
            application.reviewer_ref,
            application.auto_approval_reason,
            reviewer_id,
            reason,
        ):
            return application
        raise InvalidTransitionError(application.status.value, "approve")

    logger.info("Application approved", application_id=application_id, reviewer=reviewer_id)
    _notify_approved(application)
    return application


def _check_approvable(
    application: MembershipApplication,
    reviewer_id: str,
    reason: Optional[str],
) -> None:
    """Raise unless the application is PENDING or this is a repeat approval."""
    if application.status == ApplicationStatus.APPROVED:
        if is_repeat_approval(
            application.status,
            application.reviewer_ref,
            application.auto_approval_reason,
            reviewer_id,
            reason,
        ):
            return
        raise ConflictError(
            "Application is already approved",
            field="status",
        )
    ensure_can_approve(application.status)


def reject_application(
    db: Session,
    application_id: int,
    reviewer_id: str,
    reason: str,
) -> MembershipApplication:
    """
    Reject a pending application.

    Raises:
        ValidationAPIError: Missing or too long reason
        NotFoundError: Unknown application
        InvalidTransitionError: Application is no longer PENDING
    """
    reason = normalize_identifier(reason)
    if not reason:
        raise ValidationAPIError("Rejection reason is required", field="reason")
    if len(reason) > REJECTION_REASON_MAX:
        raise ValidationAPIError(
            f"Rejection reason must be at most {REJECTION_REASON_MAX} characters",
            field="reason",
        )

    application = get_application(db, application_id)
    ensure_can_reject(application.status)

    applied = transition_from_pending(
        db,
        application_id,
        {
            "status": ApplicationStatus.REJECTED,
            "reviewer_ref": reviewer_id,
            "rejection_reason": reason,
            "rejected_at": set_once(MembershipApplication.rejected_at, utcnow()),
        },
        ApplicationDecision(
            application_id=application_id,
            action="reject",
            from_status=ApplicationStatus.PENDING.value,
            to_status=ApplicationStatus.REJECTED.value,
            reason=reason,
            reviewer_ref=reviewer_id,
        ),
    )

    application = get_application(db, application_id, refresh=True)
    if not applied:
        logger.info(
            "Rejection lost to a concurrent decision",
            application_id=application_id,
            status=application.status.value,
        )
        raise InvalidTransitionError(application.status.value, "reject")

    logger.info("Application rejected", application_id=application_id, reviewer=reviewer_id)
    return application


def record_created_account(
    db: Session,
    application_id: int,
    account_ref: str,
) -> MembershipApplication:
    """
    Record the login account created for an approved application.

    Recording the same account twice is a no-op.

    Raises:
        NotFoundError: Unknown application
        InvalidTransitionError: Application is not APPROVED
        ConflictError: A different account is already recorded
    """
    account_ref = normalize_identifier(account_ref)
    if not account_ref:
        raise ValidationAPIError("Account reference is required", field="account_ref")

    application = get_application(db, application_id)
    if _account_already_recorded(application, account_ref):
        return application

    assign_created_account(db, application_id, account_ref, utcnow())

    application = get_application(db, application_id, refresh=True)
    if application.created_account_ref != account_ref:
        # Lost a race against another account, or status is not APPROVED
        _account_already_recorded(application, account_ref)

    logger.info("Account recorded for application", application_id=application_id, account_ref=account_ref)
    return application


def _account_already_recorded(application: MembershipApplication, account_ref: str) -> bool:
    """True if this account is already recorded; raises on any other state."""
    if application.status != ApplicationStatus.APPROVED:
        raise InvalidTransitionError(application.status.value, "record account for")
    if application.created_account_ref is None:
        return False
    if application.created_account_ref == account_ref:
        return True
    raise ConflictError(
        "A different account is already recorded for this application",
        field="account_ref",
    )


def list_applications(
    db: Session,
    status: Optional[ApplicationStatus] = None,
    roster_check_status: Optional[RosterCheckStatus] = None,
    auto_approved: Optional[bool] = None,
    page: int = 1,
    per_page: int = 20,
) -> tuple[List[MembershipApplication], int]:
    """
    List applications, newest first.

    Returns:
        Tuple of (page items, total matching count)
    """
    query = db.query(MembershipApplication)

    if status is not None:
        query = query.filter(MembershipApplication.status == status)
    if roster_check_status is not None:
        query = query.filter(MembershipApplication.roster_check_status == roster_check_status)
    if auto_approved is not None:
        query = query.filter(MembershipApplication.auto_approved.is_(auto_approved))

    total = query.count()

    offset = (page - 1) * per_page
    items = (
        query.order_by(MembershipApplication.created_at.desc(), MembershipApplication.id.desc())
        .offset(offset)
        .limit(per_page)
        .all()
    )

    return items, total


def application_stats(db: Session) -> dict:
    """Counts per status, per roster status, and auto-approvals."""
    by_status = dict(
        db.query(MembershipApplication.status, func.count(MembershipApplication.id))
        .group_by(MembershipApplication.status)
        .all()
    )
    by_roster_status = dict(
        db.query(MembershipApplication.roster_check_status, func.count(MembershipApplication.id))
        .group_by(MembershipApplication.roster_check_status)
        .all()
    )
    auto_approved = (
        db.query(func.count(MembershipApplication.id))
        .filter(MembershipApplication.auto_approved.is_(True))
        .scalar()
    )

    return {
        "total": sum(by_status.values()),
        "pending": by_status.get(ApplicationStatus.PENDING, 0),
        "approved": by_status.get(ApplicationStatus.APPROVED, 0),
        "rejected": by_status.get(ApplicationStatus.REJECTED, 0),
        "auto_approved": auto_approved or 0,
        "roster": {status.value: by_roster_status.get(status, 0) for status in RosterCheckStatus},
    }
