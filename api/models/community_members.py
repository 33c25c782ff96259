"""CommunityMember model mirroring the community roster."""

import enum

from sqlalchemy import Column, Integer, String, Boolean, DateTime, Enum, Index
from sqlalchemy import UniqueConstraint

from api.config.database import Base
from .base import TimestampMixin


class MemberStatus(str, enum.Enum):
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"


class MemberSource(str, enum.Enum):
    WEBSITE = "WEBSITE"
    GOOGLE_FORM = "GOOGLE_FORM"
    MANUAL = "MANUAL"
    OTHER = "OTHER"


class CommunityMember(TimestampMixin, Base):
    """
    Known community members.

    Rows are entered manually or mirrored from the roster spreadsheet when an
    applicant matches a roster row.
    """

    __tablename__ = "community_members"

    id = Column(Integer, primary_key=True, autoincrement=True)

    # Identity
    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=False, default="")
    national_id = Column(String(11), nullable=True)
    student_number = Column(String(50), nullable=False)

    # Profile
    department = Column(String(255), nullable=True)
    phone = Column(String(20), nullable=True)

    status = Column(
        Enum(MemberStatus, native_enum=False, length=20),
        nullable=False,
        default=MemberStatus.APPROVED,
    )
    source = Column(
        Enum(MemberSource, native_enum=False, length=20),
        nullable=False,
        default=MemberSource.WEBSITE,
    )
    is_active = Column(Boolean, nullable=False, default=True)

    # Roster mirror bookkeeping
    roster_synced_at = Column(DateTime, nullable=True)

    __table_args__ = (
        UniqueConstraint("student_number", name="uq_community_members_student_number"),
        Index("ix_community_members_status", "status"),
    )

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    def __repr__(self) -> str:
        return f"<CommunityMember(id={self.id}, student_number={self.student_number})>"
