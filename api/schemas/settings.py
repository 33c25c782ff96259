"""Pydantic schemas for Settings endpoints."""

from typing import Optional, Any

from .base import CamelModel


class RosterSettingsResponse(CamelModel):
    """Schema for the effective roster settings."""

    enabled: bool = False
    spreadsheet: str = ""
    spreadsheet_id: Optional[str] = None
    range: str = "A:Z"
    configured: bool = False

    # Environment only
    service_account_configured: bool = False
    timeout_seconds: float = 10.0
    cache_ttl_seconds: int = 300


class RosterSettingsUpdate(CamelModel):
    """Schema for updating roster settings (all fields optional)."""

    enabled: Optional[bool] = None
    spreadsheet: Optional[str] = None
    range: Optional[str] = None


class RosterTestResponse(CamelModel):
    """Schema for a roster connection test."""

    healthy: bool
    message: str
    details: dict[str, Any] = {}


class RosterMemberItem(CamelModel):
    """A member row as read from the roster spreadsheet."""

    full_name: str
    student_number: str
    national_id: Optional[str] = None
    phone: Optional[str] = None
    department: Optional[str] = None
    joined_on: Optional[str] = None
    row_number: Optional[int] = None


class RosterMemberLookupResponse(CamelModel):
    found: bool
    member: Optional[RosterMemberItem] = None
