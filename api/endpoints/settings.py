"""System settings endpoints."""

import asyncio
from typing import Optional

import structlog
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from api.config.database import get_db
from api.config.settings import settings
from api.middleware.error_handler import APIError, ValidationAPIError
from api.models import Setting, DEFAULT_SETTINGS
from api.schemas.settings import (
    RosterMemberItem,
    RosterMemberLookupResponse,
    RosterSettingsResponse,
    RosterSettingsUpdate,
    RosterTestResponse,
)
from api.services.rbac import require_admin
from api.services.roster_checker import get_roster_provider
from api.services.system_settings import get_roster_settings, set_setting_value
from roster.base import RosterProvider, RosterServiceError
from roster.providers.google_sheets import extract_spreadsheet_id

logger = structlog.get_logger()
router = APIRouter()


def _roster_response(db: Session) -> RosterSettingsResponse:
    roster = get_roster_settings(db)
    return RosterSettingsResponse(
        enabled=roster.enabled,
        spreadsheet=roster.spreadsheet,
        spreadsheet_id=extract_spreadsheet_id(roster.spreadsheet),
        range=roster.range,
        configured=roster.configured,
        service_account_configured=bool(settings.GOOGLE_SERVICE_ACCOUNT_FILE),
        timeout_seconds=roster.timeout,
        cache_ttl_seconds=roster.cache_ttl,
    )


@router.get("/roster", response_model=RosterSettingsResponse)
async def get_roster_configuration(
    db: Session = Depends(get_db),
    user: dict = Depends(require_admin),
):
    """Get the effective roster integration settings."""
    return _roster_response(db)


@router.patch("/roster", response_model=RosterSettingsResponse)
async def update_roster_configuration(
    data: RosterSettingsUpdate,
    db: Session = Depends(get_db),
    user: dict = Depends(require_admin),
):
    """Update roster integration settings."""
    update_data = data.model_dump(exclude_unset=True)

    spreadsheet = update_data.get("spreadsheet")
    if spreadsheet and not extract_spreadsheet_id(spreadsheet):
        raise ValidationAPIError("Not a Google Sheets URL or spreadsheet ID", field="spreadsheet")

    for key, value in update_data.items():
        if value is None:
            continue
        if isinstance(value, bool):
            value = "true" if value else "false"
        set_setting_value(db, f"roster_{key}", str(value).strip())

    db.commit()

    logger.info("Roster settings updated", keys=list(update_data.keys()), admin=user.get("sub"))
    return _roster_response(db)


@router.post("/roster/test", response_model=RosterTestResponse)
async def test_roster_connection(
    provider: Optional[RosterProvider] = Depends(get_roster_provider),
    user: dict = Depends(require_admin),
):
    """Check that the roster spreadsheet can be read."""
    if provider is None:
        return RosterTestResponse(healthy=False, message="Roster spreadsheet is not configured")

    health = await provider.health_check()
    return RosterTestResponse(healthy=health.healthy, message=health.message, details=health.details)


@router.get("/roster/members/{student_number}", response_model=RosterMemberLookupResponse)
async def lookup_roster_member(
    student_number: str,
    db: Session = Depends(get_db),
    provider: Optional[RosterProvider] = Depends(get_roster_provider),
    user: dict = Depends(require_admin),
):
    """Look a student number up in the roster spreadsheet (read-only)."""
    if provider is None:
        raise APIError(
            "Roster spreadsheet is not configured",
            code="ROSTER_NOT_CONFIGURED",
            status_code=400,
        )

    timeout = get_roster_settings(db).timeout
    try:
        member = await asyncio.wait_for(provider.find_member(student_number.strip()), timeout=timeout)
    except asyncio.TimeoutError:
        raise APIError(
            f"Roster did not answer within {timeout}s",
            code="ROSTER_UNAVAILABLE",
            status_code=502,
        )
    except RosterServiceError as e:
        raise APIError(str(e), code="ROSTER_UNAVAILABLE", status_code=502) from e

    if member is None:
        return RosterMemberLookupResponse(found=False)
    return RosterMemberLookupResponse(found=True, member=RosterMemberItem.model_validate(member))


@router.post("/seed")
async def seed_settings(
    db: Session = Depends(get_db),
    user: dict = Depends(require_admin),
):
    """Seed default settings if not present."""
    for setting_key, (value, description) in DEFAULT_SETTINGS.items():
        existing = db.query(Setting).filter(Setting.key == setting_key).first()
        if not existing:
            setting = Setting(key=setting_key, value=value, description=description)
            db.add(setting)

    db.commit()
    logger.info("Settings seeded")
    return {"message": "Settings seeded successfully"}
