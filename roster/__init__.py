"""Community roster integrations."""

from .base import (
    RosterProvider,
    RosterMember,
    RosterCheckResult,
    RosterCheckStatus,
    RosterHealthStatus,
    RosterServiceError,
)

__all__ = [
    "RosterProvider",
    "RosterMember",
    "RosterCheckResult",
    "RosterCheckStatus",
    "RosterHealthStatus",
    "RosterServiceError",
]
