"""Business logic services for the membership API."""

from .token import TokenError, create_token, decode_token, should_refresh_token
from .rbac import require_role, require_admin, get_current_user

__all__ = [
    "TokenError",
    "create_token",
    "decode_token",
    "should_refresh_token",
    "require_role",
    "require_admin",
    "get_current_user",
]
