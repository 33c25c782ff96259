"""Role checks for admin endpoints.

Tokens carry a single `role` claim. Admins review applications; members
and plain users only reach the public endpoints.
"""

from typing import Any, Callable

from fastapi import Depends, HTTPException, Request
import structlog

logger = structlog.get_logger()


# Role hierarchy - higher roles include permissions of lower roles
ROLE_HIERARCHY = {
    "admin": ["admin", "member", "user"],
    "member": ["member", "user"],
    "user": ["user"],
}

DEFAULT_ROLE = "user"


def has_role(user_role: str, required_role: str) -> bool:
    """Check if user_role grants required_role."""
    return required_role in ROLE_HIERARCHY.get(user_role, [])


def get_current_user(request: Request) -> dict[str, Any]:
    """
    Get current user (token claims) from request state.

    Raises:
        HTTPException: 401 if the auth middleware did not authenticate
    """
    user = getattr(request.state, "user", None)
    if not user:
        raise HTTPException(status_code=401, detail="Not authenticated")
    return user


def require_role(allowed_roles: list[str]) -> Callable:
    """
    Dependency that requires user to have one of the specified roles.

    Usage:
        @router.get("/applications")
        def list_all(user: dict = Depends(require_role(["admin"]))):
            ...
    """
    def check_role(request: Request) -> dict[str, Any]:
        user = get_current_user(request)
        user_role = user.get("role", DEFAULT_ROLE)

        if any(has_role(user_role, role) for role in allowed_roles):
            return user

        logger.warning(
            "Role check failed",
            user=user.get("sub"),
            required=allowed_roles,
            user_role=user_role,
        )
        raise HTTPException(
            status_code=403,
            detail="You don't have permission to access this resource",
        )

    return check_role


def require_admin(request: Request) -> dict[str, Any]:
    """Dependency that requires admin role."""
    return require_role(["admin"])(request)


def get_reviewer_id(user: dict = Depends(require_admin)) -> str:
    """Reviewer reference recorded on decisions: the admin's token subject."""
    subject = user.get("sub")
    if not subject:
        raise HTTPException(status_code=401, detail="Token has no subject")
    return str(subject)
