"""Base interface for roster providers."""

import enum
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import List, Optional


class RosterCheckStatus(str, enum.Enum):
    """Outcome of looking an applicant up in the roster."""

    NOT_CHECKED = "NOT_CHECKED"
    FOUND = "FOUND"
    NOT_FOUND = "NOT_FOUND"
    ERROR = "ERROR"


@dataclass
class RosterMember:
    """Standardized member row from the roster source."""

    full_name: str
    student_number: str
    national_id: Optional[str] = None
    phone: Optional[str] = None
    department: Optional[str] = None
    joined_on: Optional[str] = None
    row_number: Optional[int] = None  # 1-based sheet row, header is row 1

    @property
    def first_name(self) -> str:
        parts = self.full_name.split()
        return parts[0] if parts else ""

    @property
    def last_name(self) -> str:
        parts = self.full_name.split()
        return " ".join(parts[1:]) if len(parts) > 1 else ""


@dataclass
class RosterCheckResult:
    """Tri-state result consumed by the approval decision."""

    status: RosterCheckStatus
    matched_member_ref: Optional[str] = None
    member: Optional[RosterMember] = None
    message: Optional[str] = None


@dataclass
class RosterHealthStatus:
    """Health status from the roster source."""

    healthy: bool
    message: str
    details: dict = field(default_factory=dict)


class RosterProvider(ABC):
    """Abstract base class for roster providers."""

    provider_name: str = "base"

    @abstractmethod
    async def initialize(self) -> None:
        """Initialize the provider (load credentials, build clients)."""
        pass

    @abstractmethod
    async def close(self) -> None:
        """Close connections and clean up resources."""
        pass

    @abstractmethod
    async def health_check(self) -> RosterHealthStatus:
        """Check if the roster source is reachable."""
        pass

    @abstractmethod
    async def get_members(self) -> List[RosterMember]:
        """Fetch all member rows from the roster.

        Raises:
            RosterServiceError: If the source is unreachable or misconfigured
        """
        pass

    async def find_member(self, student_number: str) -> Optional[RosterMember]:
        """Find a member row by student number.

        Args:
            student_number: Student number as entered by the applicant

        Returns:
            RosterMember or None if no row matches
        """
        wanted = student_number.strip()
        for member in await self.get_members():
            if member.student_number.strip() == wanted:
                return member
        return None


class RosterServiceError(Exception):
    """Raised when the roster source is unreachable or misconfigured."""

    pass
