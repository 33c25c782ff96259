"""HS256 session tokens shared with the account service.

The account service signs the tokens admins log in with; this service only
validates them and rolls the session cookie forward.
"""

from datetime import datetime, timedelta, timezone
from typing import Any, Optional

from jose import jwt, JWTError

from api.config.settings import settings

# Fraction of the lifetime after which a cookie session is reissued
REFRESH_AFTER = 0.5


class TokenError(Exception):
    """Token is malformed, expired or signed with another key."""


def create_token(claims: dict[str, Any], expires_delta: Optional[timedelta] = None) -> str:
    """
    Sign a token carrying the given claims (sub, email, role).

    exp and iat are always set here, overriding any passed in.
    """
    issued_at = datetime.now(timezone.utc)
    lifetime = expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    payload = {**claims, "iat": issued_at, "exp": issued_at + lifetime}
    return jwt.encode(payload, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def decode_token(token: str) -> dict[str, Any]:
    """
    Validate a token and return its claims.

    Raises:
        TokenError: with a message suitable for a 401 response
    """
    try:
        return jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
    except jwt.ExpiredSignatureError as e:
        raise TokenError("Token has expired") from e
    except jwt.JWTClaimsError as e:
        raise TokenError(f"Invalid token claims: {e}") from e
    except JWTError as e:
        raise TokenError(f"Invalid token: {e}") from e


def should_refresh_token(payload: dict[str, Any]) -> bool:
    exp = payload.get("exp")
    iat = payload.get("iat")
    if not exp or not iat:
        return False

    elapsed = datetime.now(timezone.utc).timestamp() - iat
    return elapsed > (exp - iat) * REFRESH_AFTER
