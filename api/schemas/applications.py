"""Pydantic schemas for membership application endpoints."""

from datetime import datetime
from typing import Optional, Any

from pydantic import Field, field_validator

from api.models.membership_applications import (
    ApplicationSource,
    ApplicationStatus,
    PROCESSING_NOTES_MAX,
)
from roster.base import RosterCheckStatus
from .base import CamelModel


STATUS_LABELS = {
    ApplicationStatus.PENDING: "Pending review",
    ApplicationStatus.APPROVED: "Approved",
    ApplicationStatus.REJECTED: "Rejected",
}

ROSTER_STATUS_LABELS = {
    RosterCheckStatus.NOT_CHECKED: "Not checked",
    RosterCheckStatus.FOUND: "Found in roster",
    RosterCheckStatus.NOT_FOUND: "Not in roster",
    RosterCheckStatus.ERROR: "Roster check failed",
}


def full_name(first_name: Optional[str], last_name: Optional[str]) -> str:
    return " ".join(part for part in (first_name, last_name) if part)


def identification(national_id: Optional[str], student_number: Optional[str]) -> tuple[Optional[str], Optional[str]]:
    """
    Identifier shown for an applicant.

    Returns:
        Tuple of (number, type); type is NATIONAL_ID, STUDENT or None
    """
    if national_id:
        return national_id, "NATIONAL_ID"
    if student_number:
        return student_number, "STUDENT"
    return None, None


def status_label(status: ApplicationStatus) -> str:
    return STATUS_LABELS.get(status, str(status))


def roster_status_label(status: RosterCheckStatus) -> str:
    return ROSTER_STATUS_LABELS.get(status, str(status))


def display_fields(application: Any) -> dict[str, Any]:
    """Derived, non-stored fields for an application."""
    number, id_type = identification(application.national_id, application.student_number)
    return {
        "full_name": full_name(application.first_name, application.last_name),
        "identification_number": number,
        "identification_type": id_type,
        "status_display": status_label(application.status),
        "roster_status_display": roster_status_label(application.roster_check_status),
    }


class ApplicationCreate(CamelModel):
    """Schema for a public membership application."""

    first_name: str = Field(max_length=100)
    last_name: str = Field(max_length=100)
    email: str = Field(max_length=255)
    national_id: Optional[str] = None
    student_number: Optional[str] = Field(default=None, max_length=50)
    phone: Optional[str] = None
    department: Optional[str] = Field(default=None, max_length=255)


class AdminApplicationCreate(ApplicationCreate):
    """Schema for an application entered by an admin."""

    processing_notes: Optional[str] = Field(default=None, max_length=PROCESSING_NOTES_MAX)


class ApplicationListItem(CamelModel):
    """Schema for application in list response."""

    id: int
    first_name: str
    last_name: str
    email: str
    national_id: Optional[str] = None
    student_number: Optional[str] = None
    department: Optional[str] = None
    status: ApplicationStatus
    roster_check_status: RosterCheckStatus
    auto_approved: bool = False
    source: ApplicationSource
    submitted_at: datetime
    created_at: datetime

    # Derived
    full_name: str = ""
    identification_number: Optional[str] = None
    identification_type: Optional[str] = None
    status_display: str = ""
    roster_status_display: str = ""

    @field_validator("auto_approved", mode="before")
    @classmethod
    def coerce_bool(cls, v: Any) -> bool:
        return bool(v)

    @classmethod
    def from_application(cls, application):
        return cls.model_validate(application).model_copy(update=display_fields(application))


class ApplicationResponse(ApplicationListItem):
    """Schema for full application response."""

    phone: Optional[str] = None

    roster_checked_at: Optional[datetime] = None
    matched_member_ref: Optional[str] = None

    auto_approval_reason: Optional[str] = None
    rejection_reason: Optional[str] = None
    approval_date: Optional[datetime] = None
    rejected_at: Optional[datetime] = None
    reviewer_ref: Optional[str] = None

    created_account_ref: Optional[str] = None
    account_created_at: Optional[datetime] = None

    ip_address: Optional[str] = None
    user_agent: Optional[str] = None
    processing_notes: Optional[str] = None
    updated_at: Optional[datetime] = None


class SubmissionResponse(CamelModel):
    """Schema returned to the applicant after submitting."""

    id: int
    status: ApplicationStatus
    status_display: str
    auto_approved: bool
    message: str

    @classmethod
    def from_application(cls, application):
        if application.status == ApplicationStatus.APPROVED:
            message = "Your membership application has been approved"
        else:
            message = "Your membership application has been received and is awaiting review"
        return cls(
            id=application.id,
            status=application.status,
            status_display=status_label(application.status),
            auto_approved=bool(application.auto_approved),
            message=message,
        )


class ApplicationStatusResponse(CamelModel):
    """Public status summary of an application."""

    id: int
    status: ApplicationStatus
    status_display: str
    submitted_at: datetime
    approval_date: Optional[datetime] = None
    rejected_at: Optional[datetime] = None

    @classmethod
    def from_application(cls, application):
        return cls(
            id=application.id,
            status=application.status,
            status_display=status_label(application.status),
            submitted_at=application.submitted_at,
            approval_date=application.approval_date,
            rejected_at=application.rejected_at,
        )


class ApproveRequest(CamelModel):
    """Schema for approving an application."""

    reason: Optional[str] = None


class RejectRequest(CamelModel):
    """Schema for rejecting an application."""

    reason: str


class AccountLinkRequest(CamelModel):
    """Schema for recording the account created for an application."""

    account_ref: str = Field(max_length=64)


class ApplicationDecisionItem(CamelModel):
    """Schema for one entry of an application's decision history."""

    id: int
    action: str
    from_status: str
    to_status: str
    reason: Optional[str] = None
    reviewer_ref: Optional[str] = None
    created_at: datetime


class ApplicationStats(CamelModel):
    """Schema for application counts."""

    total: int
    pending: int
    approved: int
    rejected: int
    auto_approved: int
    roster: dict[str, int] = {}


class ApplicationLookupResponse(CamelModel):
    """Schema for an identification lookup."""

    found: bool
    application: Optional[ApplicationListItem] = None


class EligibilityRequest(CamelModel):
    """Schema for the pre-submission eligibility check."""

    student_number: str = Field(max_length=50)


class EligibilityResponse(CamelModel):
    """What submitting with this student number would lead to."""

    eligible: bool
    auto_approval: bool
    already_applied: bool
    roster_check_status: RosterCheckStatus
    roster_status_display: str = ""
    message: str

    @classmethod
    def from_eligibility(cls, eligibility):
        return cls(
            eligible=eligibility.eligible,
            auto_approval=eligibility.auto_approval,
            already_applied=eligibility.already_applied,
            roster_check_status=eligibility.roster_check_status,
            roster_status_display=roster_status_label(eligibility.roster_check_status),
            message=eligibility.message,
        )
