"""Roster checks for membership applicants.

The internal community member table is consulted first; the roster
spreadsheet is only read when no active, approved member has the student
number. A roster hit is mirrored into the member table in the caller's
session, so it is committed together with the application or not at all.
"""

import asyncio
from typing import Optional

import structlog
from fastapi import Depends
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from api.config.database import get_db
from api.models import CommunityMember, MemberSource, MemberStatus
from api.models.base import utcnow
from api.services.application_store import conflict_from_integrity_error
from api.services.identity import NATIONAL_ID_PATTERN
from api.services.system_settings import RosterSettings, get_roster_settings
from roster.base import (
    RosterCheckResult,
    RosterCheckStatus,
    RosterMember,
    RosterProvider,
    RosterServiceError,
)
from roster.providers.google_sheets import GoogleSheetsConfig, GoogleSheetsProvider

logger = structlog.get_logger()


class RosterChecker:
    """Looks up student numbers in the member table and the roster."""

    def __init__(self, db: Session, provider: Optional[RosterProvider], timeout: float):
        """
        Args:
            db: Session of the submission request
            provider: Roster source, None if not configured
            timeout: Seconds to wait for the roster source
        """
        self.db = db
        self.provider = provider
        self.timeout = timeout

    async def check_student_number(self, student_number: str, mirror: bool = True) -> RosterCheckResult:
        """
        Check a student number.

        Args:
            student_number: Normalized student number
            mirror: Store a spreadsheet hit in the member table; without it a
                spreadsheet hit carries no member reference

        Returns:
            FOUND, NOT_FOUND, or ERROR when the roster could not be
            consulted (unconfigured, failing, timed out)

        Raises:
            ConflictError: If a concurrent submission mirrored the same member
        """
        member = self._find_member(student_number)
        if member:
            logger.info("Roster match in member table", member_id=member.id)
            return RosterCheckResult(
                status=RosterCheckStatus.FOUND,
                matched_member_ref=str(member.id),
                member=_as_roster_member(member),
            )

        if self.provider is None:
            logger.warning("Roster check skipped: provider not configured")
            return RosterCheckResult(
                status=RosterCheckStatus.ERROR,
                message="Roster provider not configured",
            )

        try:
            row = await asyncio.wait_for(self.provider.find_member(student_number), timeout=self.timeout)
        except asyncio.TimeoutError:
            logger.warning("Roster check timed out", timeout=self.timeout)
            return RosterCheckResult(
                status=RosterCheckStatus.ERROR,
                message=f"Roster check timed out after {self.timeout}s",
            )
        except RosterServiceError as e:
            logger.error("Roster check failed", error=str(e))
            return RosterCheckResult(status=RosterCheckStatus.ERROR, message=str(e))

        if row is None:
            return RosterCheckResult(status=RosterCheckStatus.NOT_FOUND)

        if not mirror:
            return RosterCheckResult(status=RosterCheckStatus.FOUND, member=row)

        mirrored = self._mirror_member(row)
        logger.info("Roster match in spreadsheet", member_id=mirrored.id, row=row.row_number)
        return RosterCheckResult(
            status=RosterCheckStatus.FOUND,
            matched_member_ref=str(mirrored.id),
            member=row,
        )

    def _find_member(self, student_number: str) -> Optional[CommunityMember]:
        return (
            self.db.query(CommunityMember)
            .filter(
                CommunityMember.student_number == student_number,
                CommunityMember.status == MemberStatus.APPROVED,
                CommunityMember.is_active.is_(True),
            )
            .first()
        )

    def _member_by_student_number(self, student_number: str) -> Optional[CommunityMember]:
        return (
            self.db.query(CommunityMember)
            .filter(CommunityMember.student_number == student_number)
            .first()
        )

    def _mirror_member(self, row: RosterMember) -> CommunityMember:
        """
        Create or refresh the member row for a roster hit (flushed, not committed).

        The roster is authoritative: an inactive or unapproved row for the
        same student number is reactivated.

        Raises:
            ConflictError: If a concurrent submission mirrored the same
                member first
        """
        member = self._member_by_student_number(row.student_number)
        if member is None:
            member = CommunityMember(
                student_number=row.student_number,
                status=MemberStatus.APPROVED,
                source=MemberSource.GOOGLE_FORM,
            )
            self.db.add(member)
        elif member.status != MemberStatus.APPROVED or not member.is_active:
            logger.info(
                "Roster hit reactivates member",
                member_id=member.id,
                previous_status=member.status.value,
                was_active=member.is_active,
            )
            member.status = MemberStatus.APPROVED
            member.is_active = True

        member.first_name = row.first_name or member.first_name or row.student_number
        member.last_name = row.last_name or member.last_name or ""
        if row.national_id and NATIONAL_ID_PATTERN.match(row.national_id):
            member.national_id = row.national_id
        if row.phone:
            member.phone = row.phone
        if row.department:
            member.department = row.department
        member.roster_synced_at = utcnow()

        try:
            self.db.flush()
        except IntegrityError as e:
            self.db.rollback()
            logger.info("Roster member mirror rejected by unique index", error=str(e.orig))
            raise conflict_from_integrity_error(e) from e
        return member


def _as_roster_member(member: CommunityMember) -> RosterMember:
    return RosterMember(
        full_name=member.full_name,
        student_number=member.student_number,
        national_id=member.national_id,
        phone=member.phone,
        department=member.department,
    )


# One provider per configuration, so the row cache outlives a request
_providers: dict[GoogleSheetsConfig, GoogleSheetsProvider] = {}


def _provider_for(config: GoogleSheetsConfig) -> GoogleSheetsProvider:
    provider = _providers.get(config)
    if provider is None:
        provider = _providers[config] = GoogleSheetsProvider(config)
    return provider


async def close_roster_providers() -> None:
    """Close every cached provider (application shutdown)."""
    providers = list(_providers.values())
    _providers.clear()
    for provider in providers:
        await provider.close()


def build_roster_provider(roster: RosterSettings) -> Optional[RosterProvider]:
    """Provider for the effective roster settings, None if unconfigured."""
    if not roster.configured:
        return None
    return _provider_for(
        GoogleSheetsConfig(
            spreadsheet=roster.spreadsheet,
            range=roster.range,
            service_account_file=roster.service_account_file,
            cache_ttl=roster.cache_ttl,
        )
    )


def get_roster_provider(db: Session = Depends(get_db)) -> Optional[RosterProvider]:
    """
    Dependency that provides the configured roster provider.

    Usage:
        @router.post("/apply")
        async def apply(provider: Optional[RosterProvider] = Depends(get_roster_provider)):
            ...
    """
    return build_roster_provider(get_roster_settings(db))
