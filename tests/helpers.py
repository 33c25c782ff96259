"""Test doubles and record builders."""

import asyncio
from typing import List, Optional

from api.models import CommunityMember, MemberSource, MemberStatus, User
from api.schemas.applications import ApplicationCreate
from roster.base import RosterHealthStatus, RosterMember, RosterProvider


class FakeRosterProvider(RosterProvider):
    """In-memory roster for tests."""

    provider_name = "fake"

    def __init__(self, members: Optional[List[RosterMember]] = None):
        self.members = list(members or [])
        self.error: Optional[Exception] = None
        self.delay = 0.0
        self.calls = 0

    def add(self, full_name: str, student_number: str, **kwargs) -> RosterMember:
        member = RosterMember(full_name=full_name, student_number=student_number, **kwargs)
        self.members.append(member)
        return member

    async def initialize(self) -> None:
        pass

    async def close(self) -> None:
        pass

    async def health_check(self) -> RosterHealthStatus:
        if self.error:
            return RosterHealthStatus(healthy=False, message=str(self.error))
        return RosterHealthStatus(healthy=True, message="ok", details={"rows": len(self.members)})

    async def get_members(self) -> List[RosterMember]:
        self.calls += 1
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error:
            raise self.error
        return list(self.members)


def make_application(**overrides) -> ApplicationCreate:
    fields = {
        "first_name": "Ayşe",
        "last_name": "Yılmaz",
        "email": "ayse@example.com",
        "national_id": "12345678901",
        "student_number": "2021001",
        "phone": "05551234567",
        "department": "Computer Engineering",
    }
    fields.update(overrides)
    return ApplicationCreate(**fields)


def application_payload(**overrides) -> dict:
    """camelCase JSON body for the submission endpoints."""
    return make_application(**overrides).model_dump(by_alias=True)


def add_member(db, student_number: str, **overrides) -> CommunityMember:
    fields = {
        "first_name": "Mehmet",
        "last_name": "Demir",
        "student_number": student_number,
        "status": MemberStatus.APPROVED,
        "source": MemberSource.MANUAL,
        "is_active": True,
    }
    fields.update(overrides)
    member = CommunityMember(**fields)
    db.add(member)
    db.commit()
    db.refresh(member)
    return member


def add_user(db, email: str, **overrides) -> User:
    user = User(first_name="Existing", last_name="User", email=email, **overrides)
    db.add(user)
    db.commit()
    db.refresh(user)
    return user
