"""Session token validation and rolling refresh."""

import time
from datetime import timedelta

import pytest

from api.services.token import TokenError, create_token, decode_token, should_refresh_token


def test_round_trip_keeps_claims():
    payload = decode_token(create_token({"sub": "admin-1", "role": "admin"}))

    assert payload["sub"] == "admin-1"
    assert payload["role"] == "admin"
    assert payload["exp"] > payload["iat"]


def test_expired_token():
    token = create_token({"sub": "admin-1"}, expires_delta=timedelta(seconds=-5))

    with pytest.raises(TokenError, match="expired"):
        decode_token(token)


def test_foreign_signature():
    with pytest.raises(TokenError):
        decode_token(create_token({"sub": "admin-1"}) + "x")


def test_refresh_after_half_lifetime():
    now = int(time.time())

    assert should_refresh_token({"iat": now - 700, "exp": now + 500}) is True
    assert should_refresh_token({"iat": now - 100, "exp": now + 1100}) is False
    assert should_refresh_token({"sub": "admin-1"}) is False
