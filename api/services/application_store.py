"""Persistence for membership applications.

Writes are single statements or single commits so an application is stored
fully formed or not at all. Status changes use a conditional UPDATE guarded
on the current status, and write-once timestamps are assigned with
COALESCE so a retried or racing write never replaces the first value.
"""

from datetime import datetime
from typing import Any, Optional

import structlog
from sqlalchemy import func, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from api.middleware.error_handler import ConflictError, NotFoundError
from api.models import ApplicationDecision, ApplicationStatus, MembershipApplication
from api.services.identity import FIELD_LABELS

logger = structlog.get_logger()


def conflict_from_integrity_error(exc: IntegrityError) -> ConflictError:
    """Translate a unique index violation into a field-level ConflictError."""
    message = str(exc.orig) if exc.orig is not None else str(exc)
    for field_name, label in FIELD_LABELS.items():
        if field_name in message:
            return ConflictError(f"{label} is already registered", field=field_name)
    return ConflictError("Application conflicts with an existing record")


def get_application(db: Session, application_id: int, refresh: bool = False) -> MembershipApplication:
    """
    Load an application by id.

    Args:
        refresh: Reload attributes even if the row is already in the session

    Raises:
        NotFoundError: If no application has this id
    """
    query = db.query(MembershipApplication).filter(MembershipApplication.id == application_id)
    if refresh:
        query = query.populate_existing()
    application = query.first()
    if not application:
        raise NotFoundError("Application", application_id)
    return application


def insert_application(
    db: Session,
    application: MembershipApplication,
    audit: Optional[ApplicationDecision] = None,
) -> MembershipApplication:
    """
    Insert a new application (and its audit row) in one commit.

    Pending changes already in the session, such as a roster member mirror,
    are committed with it.

    Raises:
        ConflictError: If a unique index rejects the row
    """
    db.add(application)
    try:
        db.flush()
        if audit is not None:
            audit.application_id = application.id
            db.add(audit)
        db.commit()
    except IntegrityError as e:
        db.rollback()
        logger.info("Application insert rejected by unique index", error=str(e.orig))
        raise conflict_from_integrity_error(e) from e

    db.refresh(application)
    return application


def set_once(column, value: datetime):
    """SQL expression that keeps the existing value and only fills NULL."""
    return func.coalesce(column, value)


def transition_from_pending(
    db: Session,
    application_id: int,
    values: dict[str, Any],
    audit: ApplicationDecision,
) -> bool:
    """
    Apply a status change only if the application is still PENDING.

    Args:
        values: Column values to set; use set_once() for write-once columns
        audit: Decision row committed together with the change

    Returns:
        True if this call performed the transition, False if the application
        was no longer PENDING (nothing is written in that case)
    """
    stmt = (
        update(MembershipApplication)
        .where(
            MembershipApplication.id == application_id,
            MembershipApplication.status == ApplicationStatus.PENDING,
        )
        .values(**values)
        .execution_options(synchronize_session=False)
    )
    result = db.execute(stmt)

    if result.rowcount != 1:
        db.rollback()
        return False

    db.add(audit)
    db.commit()
    return True


def assign_created_account(
    db: Session,
    application_id: int,
    account_ref: str,
    now: datetime,
) -> bool:
    """
    Record the login account created for an approved application.

    Only fills an empty created_account_ref; account_created_at is write-once.

    Returns:
        True if the reference was stored by this call
    """
    stmt = (
        update(MembershipApplication)
        .where(
            MembershipApplication.id == application_id,
            MembershipApplication.status == ApplicationStatus.APPROVED,
            MembershipApplication.created_account_ref.is_(None),
        )
        .values(
            created_account_ref=account_ref,
            account_created_at=set_once(MembershipApplication.account_created_at, now),
        )
        .execution_options(synchronize_session=False)
    )
    result = db.execute(stmt)

    if result.rowcount != 1:
        db.rollback()
        return False

    db.commit()
    return True
