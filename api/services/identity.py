"""Identification format and uniqueness checks for membership applications.

Applicants identify themselves with a national ID number, a student number,
or both. Every check here is read-only.
"""

import re
from typing import Optional

import structlog
from sqlalchemy import or_
from sqlalchemy.orm import Session

from api.config.settings import settings
from api.middleware.error_handler import ConflictError, ValidationAPIError
from api.models import MembershipApplication, User

logger = structlog.get_logger()

NATIONAL_ID_PATTERN = re.compile(r"^[1-9][0-9]{10}$")
PHONE_PATTERN = re.compile(r"^[0-9]{10,11}$")
EMAIL_PATTERN = re.compile(r"^[\w.+-]+@([\w-]+\.)+[\w-]{2,}$")

# Human-readable field names for conflict messages
FIELD_LABELS = {
    "email": "Email",
    "national_id": "National ID",
    "student_number": "Student number",
}


def normalize_email(email: Optional[str]) -> Optional[str]:
    return email.strip().lower() if email else email


def normalize_identifier(value: Optional[str]) -> Optional[str]:
    """Strip whitespace; blank strings count as absent."""
    if value is None:
        return None
    value = value.strip()
    return value or None


def validate_identification_format(
    national_id: Optional[str],
    student_number: Optional[str],
    student_number_pattern: Optional[str] = None,
) -> None:
    """
    Check identification presence and format.

    Args:
        national_id: 11 digits, first digit non-zero
        student_number: Any non-empty string unless a policy pattern is given
        student_number_pattern: Optional regex the student number must match;
            defaults to the STUDENT_NUMBER_PATTERN setting

    Raises:
        ValidationAPIError: If both are missing or either is malformed
    """
    if not national_id and not student_number:
        raise ValidationAPIError(
            "Missing identification: provide a national ID or a student number",
            field="identification",
        )

    if national_id is not None and not NATIONAL_ID_PATTERN.match(national_id):
        raise ValidationAPIError(
            "National ID format is invalid: it must be exactly 11 digits and cannot start with 0",
            field="national_id",
        )

    if student_number is not None:
        if not student_number.strip():
            raise ValidationAPIError("Student number cannot be empty", field="student_number")

        pattern = student_number_pattern if student_number_pattern is not None else settings.STUDENT_NUMBER_PATTERN
        if pattern and not re.fullmatch(pattern, student_number):
            raise ValidationAPIError("Student number format is invalid", field="student_number")


def validate_contact_format(email: str, phone: Optional[str]) -> None:
    """Check email and optional phone format."""
    if not email or not EMAIL_PATTERN.match(email):
        raise ValidationAPIError("A valid email address is required", field="email")

    if phone and not PHONE_PATTERN.match(phone):
        raise ValidationAPIError("Phone number must be 10 or 11 digits", field="phone")


def check_uniqueness(
    db: Session,
    email: str,
    national_id: Optional[str] = None,
    student_number: Optional[str] = None,
) -> None:
    """
    Ensure none of the identity fields is already taken.

    Each field is checked independently against existing applications and
    existing user accounts; a single collision is enough to fail.

    Raises:
        ConflictError: Naming the first colliding field
    """
    candidates = {
        "email": email,
        "national_id": national_id,
        "student_number": student_number,
    }

    for field_name, value in candidates.items():
        if not value:
            continue

        application_taken = db.query(MembershipApplication.id).filter(
            getattr(MembershipApplication, field_name) == value
        ).first()
        account_taken = db.query(User.id).filter(
            getattr(User, field_name) == value
        ).first()

        if application_taken or account_taken:
            logger.info(
                "Identity collision",
                field=field_name,
                on="application" if application_taken else "account",
            )
            raise ConflictError(
                f"{FIELD_LABELS[field_name]} is already registered",
                field=field_name,
            )


def find_by_identification(
    db: Session,
    national_id: Optional[str] = None,
    student_number: Optional[str] = None,
) -> Optional[MembershipApplication]:
    """
    Find the first application matching the national ID OR the student number.

    Returns:
        MembershipApplication, or None if neither identifier is given or
        nothing matches
    """
    conditions = []
    if national_id:
        conditions.append(MembershipApplication.national_id == national_id)
    if student_number:
        conditions.append(MembershipApplication.student_number == student_number)

    if not conditions:
        return None

    return (
        db.query(MembershipApplication)
        .filter(or_(*conditions))
        .order_by(MembershipApplication.id)
        .first()
    )
