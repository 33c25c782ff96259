"""Admin endpoints for reviewing membership applications."""

from typing import Optional, List

import structlog
from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.orm import Session

from api.config.database import get_db
from api.models import ApplicationDecision, ApplicationSource, ApplicationStatus
from api.schemas.applications import (
    AdminApplicationCreate,
    ApplicationListItem,
    ApplicationResponse,
    ApplicationLookupResponse,
    ApplicationStats,
    ApproveRequest,
    RejectRequest,
    AccountLinkRequest,
    ApplicationDecisionItem,
)
from api.schemas.base import PaginatedResponse, PaginationMeta
from api.services.application_store import get_application
from api.services.identity import find_by_identification, normalize_identifier
from api.services.membership import (
    application_stats,
    approve_application,
    list_applications,
    record_created_account,
    reject_application,
    submit_application,
)
from api.services.rbac import get_reviewer_id, require_admin
from api.services.request_info import get_client_ip, get_user_agent
from api.services.roster_checker import RosterChecker, get_roster_provider
from api.services.system_settings import get_roster_settings
from roster.base import RosterCheckStatus, RosterProvider

logger = structlog.get_logger()
router = APIRouter()


@router.get("", response_model=PaginatedResponse[ApplicationListItem])
async def list_membership_applications(
    db: Session = Depends(get_db),
    page: int = Query(1, ge=1),
    per_page: int = Query(20, ge=1, le=100, alias="perPage"),
    status: Optional[ApplicationStatus] = Query(None),
    roster_check_status: Optional[RosterCheckStatus] = Query(None, alias="rosterCheckStatus"),
    auto_approved: Optional[bool] = Query(None, alias="autoApproved"),
    user: dict = Depends(require_admin),
):
    """List membership applications, newest first."""
    items, total = list_applications(
        db,
        status=status,
        roster_check_status=roster_check_status,
        auto_approved=auto_approved,
        page=page,
        per_page=per_page,
    )

    return PaginatedResponse[ApplicationListItem](
        data=[ApplicationListItem.from_application(a) for a in items],
        meta=PaginationMeta.build(page, per_page, total),
    )


@router.post("", response_model=ApplicationResponse, status_code=201)
async def create_membership_application(
    data: AdminApplicationCreate,
    request: Request,
    db: Session = Depends(get_db),
    provider: Optional[RosterProvider] = Depends(get_roster_provider),
    user: dict = Depends(require_admin),
):
    """Enter an application on behalf of an applicant."""
    roster = get_roster_settings(db)
    application = await submit_application(
        db,
        data,
        roster_enabled=roster.enabled,
        roster_checker=RosterChecker(db, provider, roster.timeout),
        source=ApplicationSource.ADMIN,
        ip_address=get_client_ip(request),
        user_agent=get_user_agent(request),
    )

    logger.info("Application entered by admin", application_id=application.id, admin=user.get("sub"))
    return ApplicationResponse.from_application(application)


@router.get("/stats", response_model=ApplicationStats)
async def get_application_stats(
    db: Session = Depends(get_db),
    user: dict = Depends(require_admin),
):
    """Get application counts by status."""
    return ApplicationStats(**application_stats(db))


@router.get("/lookup", response_model=ApplicationLookupResponse)
async def lookup_application(
    db: Session = Depends(get_db),
    national_id: Optional[str] = Query(None, alias="nationalId"),
    student_number: Optional[str] = Query(None, alias="studentNumber"),
    user: dict = Depends(require_admin),
):
    """Find an application by national ID or student number."""
    application = find_by_identification(
        db,
        national_id=normalize_identifier(national_id),
        student_number=normalize_identifier(student_number),
    )
    if not application:
        return ApplicationLookupResponse(found=False)
    return ApplicationLookupResponse(
        found=True,
        application=ApplicationListItem.from_application(application),
    )


@router.get("/{application_id}", response_model=ApplicationResponse)
async def get_membership_application(
    application_id: int,
    db: Session = Depends(get_db),
    user: dict = Depends(require_admin),
):
    """Get application details."""
    return ApplicationResponse.from_application(get_application(db, application_id))


@router.get("/{application_id}/decisions", response_model=List[ApplicationDecisionItem])
async def get_application_decisions(
    application_id: int,
    db: Session = Depends(get_db),
    user: dict = Depends(require_admin),
):
    """Get decision history for an application."""
    get_application(db, application_id)

    decisions = (
        db.query(ApplicationDecision)
        .filter(ApplicationDecision.application_id == application_id)
        .order_by(ApplicationDecision.created_at.desc(), ApplicationDecision.id.desc())
        .all()
    )
    return [ApplicationDecisionItem.model_validate(d) for d in decisions]


@router.post("/{application_id}/approve", response_model=ApplicationResponse)
async def approve(
    application_id: int,
    data: Optional[ApproveRequest] = None,
    db: Session = Depends(get_db),
    reviewer_id: str = Depends(get_reviewer_id),
):
    """Approve a pending application."""
    application = approve_application(
        db,
        application_id,
        reviewer_id=reviewer_id,
        reason=data.reason if data else None,
    )
    return ApplicationResponse.from_application(application)


@router.post("/{application_id}/reject", response_model=ApplicationResponse)
async def reject(
    application_id: int,
    data: RejectRequest,
    db: Session = Depends(get_db),
    reviewer_id: str = Depends(get_reviewer_id),
):
    """Reject a pending application. A reason is required."""
    application = reject_application(
        db,
        application_id,
        reviewer_id=reviewer_id,
        reason=data.reason,
    )
    return ApplicationResponse.from_application(application)


@router.post("/{application_id}/account", response_model=ApplicationResponse)
async def link_account(
    application_id: int,
    data: AccountLinkRequest,
    db: Session = Depends(get_db),
    user: dict = Depends(require_admin),
):
    """Record the login account created for an approved application."""
    application = record_created_account(db, application_id, data.account_ref)
    return ApplicationResponse.from_application(application)
