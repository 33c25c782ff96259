"""ApplicationDecision model for audit trail of membership decisions."""

from sqlalchemy import Column, Integer, String, DateTime, Text, ForeignKey, Index
from sqlalchemy.orm import relationship

from api.config.database import Base
from .base import utcnow


# Decision actions
DECISION_ACTIONS = {
    "auto_approve",  # Roster match at submission time
    "approve",       # Admin approval
    "reject",        # Admin rejection
}


class ApplicationDecision(Base):
    """
    Audit trail for membership decisions.

    One row per status change, automatic or by an admin.
    """

    __tablename__ = "application_decisions"

    id = Column(Integer, primary_key=True, autoincrement=True)
    application_id = Column(
        Integer,
        ForeignKey("membership_applications.id", ondelete="CASCADE"),
        nullable=False,
    )

    # Decision details
    action = Column(String(20), nullable=False)
    from_status = Column(String(20), nullable=False)
    to_status = Column(String(20), nullable=False)
    reason = Column(Text, nullable=True)

    # Who made the decision (None for automatic decisions)
    reviewer_ref = Column(String(64), nullable=True)

    # Metadata
    created_at = Column(DateTime, default=utcnow, nullable=False)

    __table_args__ = (
        Index("ix_application_decisions_application", "application_id"),
        Index("ix_application_decisions_reviewer", "reviewer_ref"),
        Index("ix_application_decisions_created", "created_at"),
    )

    # Relationships
    application = relationship("MembershipApplication", back_populates="decisions")

    def __repr__(self) -> str:
        return f"<ApplicationDecision(id={self.id}, action={self.action}, to={self.to_status})>"
