"""MembershipApplication model for self-submitted membership requests."""

import enum

from sqlalchemy import Column, Integer, String, Boolean, DateTime, Enum
from sqlalchemy import CheckConstraint, Index, UniqueConstraint
from sqlalchemy.orm import relationship

from api.config.database import Base
from roster.base import RosterCheckStatus
from .base import TimestampMixin, utcnow


class ApplicationStatus(str, enum.Enum):
    """Application lifecycle. PENDING is initial, the others are terminal."""

    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"


class ApplicationSource(str, enum.Enum):
    """Where the application was entered."""

    WEBSITE = "WEBSITE"
    ADMIN = "ADMIN"


TERMINAL_STATUSES = {ApplicationStatus.APPROVED, ApplicationStatus.REJECTED}

# Field limits shared with the request schemas
AUTO_APPROVAL_REASON_MAX = 200
REJECTION_REASON_MAX = 500
PROCESSING_NOTES_MAX = 1000


class MembershipApplication(TimestampMixin, Base):
    """
    Membership application submitted through the website or by an admin.

    matched_member_ref, reviewer_ref and created_account_ref are lookup keys
    only. They carry no foreign keys so deleting the referenced member or
    account leaves the application intact.
    """

    __tablename__ = "membership_applications"

    id = Column(Integer, primary_key=True, autoincrement=True)

    # Identity
    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=False)
    email = Column(String(255), nullable=False)
    national_id = Column(String(11), nullable=True)
    student_number = Column(String(50), nullable=True)

    # Contact / profile
    phone = Column(String(11), nullable=True)
    department = Column(String(255), nullable=True)

    # Roster check
    roster_check_status = Column(
        Enum(RosterCheckStatus, native_enum=False, length=20, create_constraint=True,
             name="ck_membership_applications_roster_status"),
        nullable=False,
        default=RosterCheckStatus.NOT_CHECKED,
    )
    roster_checked_at = Column(DateTime, nullable=True)
    matched_member_ref = Column(String(64), nullable=True)

    # Decision
    status = Column(
        Enum(ApplicationStatus, native_enum=False, length=20, create_constraint=True,
             name="ck_membership_applications_status"),
        nullable=False,
        default=ApplicationStatus.PENDING,
    )
    auto_approved = Column(Boolean, nullable=False, default=False)
    auto_approval_reason = Column(String(AUTO_APPROVAL_REASON_MAX), nullable=True)
    rejection_reason = Column(String(REJECTION_REASON_MAX), nullable=True)
    approval_date = Column(DateTime, nullable=True)  # Set once
    rejected_at = Column(DateTime, nullable=True)  # Set once
    reviewer_ref = Column(String(64), nullable=True)  # Admin who approved/rejected

    # Account created after approval
    created_account_ref = Column(String(64), nullable=True)
    account_created_at = Column(DateTime, nullable=True)  # Set once

    # Audit
    source = Column(
        Enum(ApplicationSource, native_enum=False, length=20, create_constraint=True,
             name="ck_membership_applications_source"),
        nullable=False,
        default=ApplicationSource.WEBSITE,
    )
    submitted_at = Column(DateTime, nullable=False, default=utcnow)
    ip_address = Column(String(64), nullable=True)
    user_agent = Column(String(512), nullable=True)
    processing_notes = Column(String(PROCESSING_NOTES_MAX), nullable=True)

    __table_args__ = (
        UniqueConstraint("email", name="uq_membership_applications_email"),
        UniqueConstraint("student_number", name="uq_membership_applications_student_number"),
        UniqueConstraint("national_id", name="uq_membership_applications_national_id"),
        CheckConstraint(
            "national_id IS NOT NULL OR student_number IS NOT NULL",
            name="ck_membership_applications_identification",
        ),
        Index("ix_membership_applications_identification", "national_id", "student_number"),
        Index("ix_membership_applications_status_created", "status", "created_at"),
        Index("ix_membership_applications_roster_status", "roster_check_status"),
        Index("ix_membership_applications_auto_approved", "auto_approved"),
    )

    # Relationships
    decisions = relationship(
        "ApplicationDecision",
        back_populates="application",
        order_by="ApplicationDecision.created_at.desc()",
    )

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES

    def __repr__(self) -> str:
        return f"<MembershipApplication(id={self.id}, email={self.email}, status={self.status})>"
