"""API endpoints for the membership service."""

from fastapi import APIRouter

from api.schemas.base import ErrorResponse
from .health import router as health_router
from .membership import router as membership_router
from .applications import router as applications_router
from .settings import router as settings_router

# Documented error envelopes (see api.middleware.error_handler)
PUBLIC_ERRORS = {
    404: {"model": ErrorResponse},
    409: {"model": ErrorResponse},
    422: {"model": ErrorResponse},
}
ADMIN_ERRORS = {
    **PUBLIC_ERRORS,
    401: {"model": ErrorResponse},
}

# Create main API router
api_router = APIRouter()

# Include all routers
api_router.include_router(health_router, prefix="/health", tags=["Health"])
api_router.include_router(
    membership_router,
    prefix="/public/membership",
    tags=["Public Membership"],
    responses=PUBLIC_ERRORS,
)
api_router.include_router(
    applications_router,
    prefix="/applications",
    tags=["Applications"],
    responses=ADMIN_ERRORS,
)
api_router.include_router(settings_router, prefix="/settings", tags=["Settings"], responses=ADMIN_ERRORS)

__all__ = ["api_router"]
