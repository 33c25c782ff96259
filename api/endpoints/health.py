"""Health probes for the load balancer and monitoring."""

from datetime import datetime, timezone
from typing import Optional

import structlog
from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from api.config.settings import settings
from api.config.database import get_db
from api.services.system_settings import get_roster_settings

logger = structlog.get_logger()
router = APIRouter()


class HealthResponse(BaseModel):
    status: str
    version: str
    timestamp: str
    database: str
    roster: str


class DetailedHealthResponse(HealthResponse):
    database_error: Optional[str] = None
    roster_timeout_seconds: float
    roster_cache_ttl_seconds: int


def check_database(db: Session) -> Optional[str]:
    """Run a trivial query; returns the error message, None when reachable."""
    try:
        db.execute(text("SELECT 1")).scalar()
    except SQLAlchemyError as e:
        logger.error("Database health check failed", error=str(e))
        return str(e)
    return None


def check_roster(db: Session) -> str:
    """
    Roster integration state from the stored settings.

    No network call is made; POST /settings/roster/test reads the sheet.
    """
    try:
        roster = get_roster_settings(db)
    except SQLAlchemyError:
        return "unknown"
    if not roster.enabled:
        return "disabled"
    return "enabled" if roster.configured else "not_configured"


def _check_components(db: Session) -> tuple[Optional[str], dict]:
    db_error = check_database(db)
    fields = {
        "status": "healthy" if db_error is None else "unhealthy",
        "version": settings.APP_VERSION,
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "database": "connected" if db_error is None else "disconnected",
        "roster": check_roster(db) if db_error is None else "unknown",
    }
    return db_error, fields


@router.get("", response_model=HealthResponse)
@router.get("/", response_model=HealthResponse)
async def health_check(db: Session = Depends(get_db)) -> HealthResponse:
    _, fields = _check_components(db)
    return HealthResponse(**fields)


@router.get("/detailed", response_model=DetailedHealthResponse)
async def detailed_health_check(db: Session = Depends(get_db)) -> DetailedHealthResponse:
    db_error, fields = _check_components(db)
    return DetailedHealthResponse(
        **fields,
        database_error=db_error,
        roster_timeout_seconds=settings.ROSTER_TIMEOUT_SECONDS,
        roster_cache_ttl_seconds=settings.ROSTER_CACHE_TTL_SECONDS,
    )


@router.get("/ready")
async def readiness_check(db: Session = Depends(get_db)) -> dict:
    """Ready once the database answers."""
    if check_database(db) is not None:
        return {"ready": False, "reason": "Database not connected"}
    return {"ready": True}


@router.get("/live")
async def liveness_check() -> dict:
    return {"alive": True}
