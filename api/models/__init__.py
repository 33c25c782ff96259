"""SQLAlchemy ORM models for the membership service.

All models are imported here to ensure they're registered with Base.metadata
before any database operations.
"""

# Import base first
from api.config.database import Base

# Core models
from .membership_applications import (
    MembershipApplication,
    ApplicationStatus,
    ApplicationSource,
    TERMINAL_STATUSES,
)
from .community_members import CommunityMember, MemberStatus, MemberSource
from .users import User

# Configuration models
from .settings import Setting, DEFAULT_SETTINGS

# Audit models
from .application_decisions import ApplicationDecision, DECISION_ACTIONS

__all__ = [
    "Base",
    # Core
    "MembershipApplication",
    "ApplicationStatus",
    "ApplicationSource",
    "TERMINAL_STATUSES",
    "CommunityMember",
    "MemberStatus",
    "MemberSource",
    "User",
    # Configuration
    "Setting",
    "DEFAULT_SETTINGS",
    # Audit
    "ApplicationDecision",
    "DECISION_ACTIONS",
]
