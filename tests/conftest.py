"""Shared fixtures: in-memory database, API client, fake roster."""

import os

# Settings are read at import time
os.environ.setdefault("DEBUG", "false")
os.environ.setdefault("ROSTER_ENABLED", "false")
os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ.setdefault("STUDENT_NUMBER_PATTERN", "")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from api import models  # noqa: F401
from api.config.database import Base, get_db
from api.main import app
from api.services.roster_checker import get_roster_provider
from api.services.system_settings import set_setting_value
from api.services.token import create_token
from tests.helpers import FakeRosterProvider

ROSTER_URL = "https://docs.google.com/spreadsheets/d/1AbCdEfGhIjKlMnOpQrStUvWxYz/edit#gid=0"


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def roster():
    return FakeRosterProvider()


@pytest.fixture
def client(session_factory, roster):
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_roster_provider] = lambda: roster

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()


def _auth_headers(sub: str, role: str) -> dict:
    token = create_token({"sub": sub, "email": f"{sub}@example.com", "role": role})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def admin_headers():
    return _auth_headers("admin-1", "admin")


@pytest.fixture
def other_admin_headers():
    return _auth_headers("admin-2", "admin")


@pytest.fixture
def member_headers():
    return _auth_headers("42", "user")


@pytest.fixture
def enable_roster(db):
    """Switch roster integration on through the settings table."""
    def _enable(spreadsheet: str = ROSTER_URL):
        set_setting_value(db, "roster_enabled", "true")
        set_setting_value(db, "roster_spreadsheet", spreadsheet)
        db.commit()
    return _enable
