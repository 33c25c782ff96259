"""JWT authentication for the admin API.

Public membership endpoints, health probes and docs are open. Everything
else needs a token issued by the account service, sent as the session
cookie or as a Bearer header.
"""

import re
from typing import Optional

from fastapi import Request
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response

from api.config.settings import settings
from api.middleware.error_handler import error_response
from api.services.token import decode_token, create_token, should_refresh_token, TokenError


# Paths that don't require authentication
PUBLIC_PATHS = [
    r"^/api/v1/public/",
    r"^/api/v1/health",
    r"^/health",
    r"^/$",
    r"^/api/docs",
    r"^/api/openapi\.json",
    r"^/api/redoc",
]

PUBLIC_PATTERNS = [re.compile(p) for p in PUBLIC_PATHS]


def is_public_path(path: str) -> bool:
    return any(pattern.match(path) for pattern in PUBLIC_PATTERNS)


def get_token_from_request(request: Request) -> tuple[Optional[str], bool]:
    """
    Extract the JWT from the session cookie or Authorization header.

    Returns:
        Tuple of (token, from_cookie)
    """
    token = request.cookies.get(settings.COOKIE_NAME)
    if token:
        return token, True

    auth_header = request.headers.get("Authorization", "")
    scheme, _, credentials = auth_header.partition(" ")
    if scheme.lower() == "bearer" and credentials:
        return credentials.strip(), False

    return None, False


def _unauthorized(message: str) -> JSONResponse:
    return error_response(401, "UNAUTHORIZED", message)


def _refresh_cookie(response: Response, payload: dict) -> None:
    """Reissue the session cookie once half its lifetime has passed."""
    claims = {k: v for k, v in payload.items() if k not in ("exp", "iat")}
    response.set_cookie(
        key=settings.COOKIE_NAME,
        value=create_token(claims),
        httponly=True,
        secure=settings.COOKIE_SECURE,
        samesite=settings.COOKIE_SAMESITE,
        domain=settings.COOKIE_DOMAIN,
        max_age=settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60,
    )


class AuthMiddleware(BaseHTTPMiddleware):
    """Validates JWT tokens on protected routes and exposes the claims."""

    async def dispatch(self, request: Request, call_next) -> Response:
        if is_public_path(request.url.path):
            return await call_next(request)

        token, from_cookie = get_token_from_request(request)
        if not token:
            return _unauthorized("Not authenticated")

        try:
            payload = decode_token(token)
        except TokenError as e:
            return _unauthorized(str(e))

        if not payload.get("sub"):
            return _unauthorized("Token has no subject")

        # Claims for rbac dependencies and request logging
        request.state.user = payload
        request.state.user_id = str(payload["sub"])
        request.state.user_email = payload.get("email")
        request.state.user_role = payload.get("role", "user")

        response = await call_next(request)

        # Header tokens belong to API clients; only browser sessions roll
        if from_cookie and should_refresh_token(payload):
            _refresh_cookie(response, payload)

        return response
