"""Public membership application endpoints (no authentication)."""

from typing import Optional

import structlog
from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from api.config.database import get_db
from api.models import ApplicationSource
from api.schemas.applications import (
    ApplicationCreate,
    ApplicationStatusResponse,
    EligibilityRequest,
    EligibilityResponse,
    SubmissionResponse,
)
from api.services.application_store import get_application
from api.services.membership import check_eligibility, submit_application
from api.services.request_info import get_client_ip, get_user_agent
from api.services.roster_checker import RosterChecker, get_roster_provider
from api.services.system_settings import get_roster_settings
from roster.base import RosterProvider

logger = structlog.get_logger()
router = APIRouter()


@router.post("/apply", response_model=SubmissionResponse, status_code=201)
async def apply(
    data: ApplicationCreate,
    request: Request,
    db: Session = Depends(get_db),
    provider: Optional[RosterProvider] = Depends(get_roster_provider),
):
    """
    Submit a membership application.

    With roster integration on, applicants found in the roster are approved
    immediately and applicants missing from it are turned away.
    """
    roster = get_roster_settings(db)
    application = await submit_application(
        db,
        data,
        roster_enabled=roster.enabled,
        roster_checker=RosterChecker(db, provider, roster.timeout),
        source=ApplicationSource.WEBSITE,
        ip_address=get_client_ip(request),
        user_agent=get_user_agent(request),
    )
    return SubmissionResponse.from_application(application)


@router.post("/check-eligibility", response_model=EligibilityResponse)
async def check_application_eligibility(
    data: EligibilityRequest,
    db: Session = Depends(get_db),
    provider: Optional[RosterProvider] = Depends(get_roster_provider),
):
    """
    Check a student number before applying.

    Reports whether the applicant is in the roster (and so would be approved
    automatically). Nothing is stored.
    """
    roster = get_roster_settings(db)
    eligibility = await check_eligibility(
        db,
        data.student_number,
        roster_enabled=roster.enabled,
        roster_checker=RosterChecker(db, provider, roster.timeout),
    )
    return EligibilityResponse.from_eligibility(eligibility)


@router.get("/status/{application_id}", response_model=ApplicationStatusResponse)
async def get_application_status(
    application_id: int,
    db: Session = Depends(get_db),
):
    """Get the status of a submitted application."""
    application = get_application(db, application_id)
    return ApplicationStatusResponse.from_application(application)
