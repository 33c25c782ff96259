"""Pydantic schemas for API request/response validation.

All schemas use CamelCase for JSON field names (via alias_generator).
"""

from .base import CamelModel, PaginatedResponse, PaginationMeta, ErrorResponse

# Re-export all schemas
from .applications import (
    ApplicationCreate,
    AdminApplicationCreate,
    ApplicationListItem,
    ApplicationResponse,
    SubmissionResponse,
    ApplicationStatusResponse,
    ApproveRequest,
    RejectRequest,
    AccountLinkRequest,
    ApplicationDecisionItem,
    ApplicationStats,
    ApplicationLookupResponse,
    EligibilityRequest,
    EligibilityResponse,
)
from .settings import (
    RosterSettingsResponse,
    RosterSettingsUpdate,
    RosterTestResponse,
    RosterMemberItem,
    RosterMemberLookupResponse,
)

__all__ = [
    # Base
    "CamelModel",
    "PaginatedResponse",
    "PaginationMeta",
    "ErrorResponse",
    # Applications
    "ApplicationCreate",
    "AdminApplicationCreate",
    "ApplicationListItem",
    "ApplicationResponse",
    "SubmissionResponse",
    "ApplicationStatusResponse",
    "ApproveRequest",
    "RejectRequest",
    "AccountLinkRequest",
    "ApplicationDecisionItem",
    "ApplicationStats",
    "ApplicationLookupResponse",
    "EligibilityRequest",
    "EligibilityResponse",
    # Settings
    "RosterSettingsResponse",
    "RosterSettingsUpdate",
    "RosterTestResponse",
    "RosterMemberItem",
    "RosterMemberLookupResponse",
]
