"""Identification format and uniqueness checks."""

import pytest

from api.middleware.error_handler import ConflictError, ValidationAPIError
from api.models import MembershipApplication
from api.services.identity import (
    check_uniqueness,
    find_by_identification,
    normalize_email,
    normalize_identifier,
    validate_contact_format,
    validate_identification_format,
)
from tests.helpers import add_user


def _store(db, **fields) -> MembershipApplication:
    values = {"first_name": "Ali", "last_name": "Kaya", "email": "ali@example.com"}
    values.update(fields)
    application = MembershipApplication(**values)
    db.add(application)
    db.commit()
    db.refresh(application)
    return application


class TestIdentificationFormat:
    def test_national_id_only_is_accepted(self):
        validate_identification_format("12345678901", None)

    def test_student_number_only_is_accepted(self):
        validate_identification_format(None, "2021001")

    def test_both_missing_is_rejected(self):
        with pytest.raises(ValidationAPIError) as exc:
            validate_identification_format(None, None)
        assert exc.value.field == "identification"
        assert "Missing identification" in exc.value.message

    @pytest.mark.parametrize("national_id", ["01234567890", "1234567890", "123456789012", "1234567890a"])
    def test_malformed_national_id_is_rejected(self, national_id):
        with pytest.raises(ValidationAPIError) as exc:
            validate_identification_format(national_id, "2021001")
        assert exc.value.field == "national_id"
        assert "11 digits" in exc.value.message

    def test_student_number_policy_pattern(self):
        validate_identification_format(None, "2021001", student_number_pattern=r"\d{7}")
        with pytest.raises(ValidationAPIError) as exc:
            validate_identification_format(None, "AB-12", student_number_pattern=r"\d{7}")
        assert exc.value.field == "student_number"


class TestContactFormat:
    def test_valid_contact(self):
        validate_contact_format("ayse@example.com", "05551234567")
        validate_contact_format("ayse@example.com", None)

    def test_bad_email(self):
        with pytest.raises(ValidationAPIError) as exc:
            validate_contact_format("not-an-email", None)
        assert exc.value.field == "email"

    def test_bad_phone(self):
        with pytest.raises(ValidationAPIError) as exc:
            validate_contact_format("ayse@example.com", "555-1234")
        assert exc.value.field == "phone"


def test_normalizers():
    assert normalize_email("  Ayse@Example.COM ") == "ayse@example.com"
    assert normalize_identifier("  2021001 ") == "2021001"
    assert normalize_identifier("   ") is None
    assert normalize_identifier(None) is None


class TestUniqueness:
    def test_no_collision(self, db):
        _store(db, student_number="2021001")
        check_uniqueness(db, "new@example.com", national_id="12345678901", student_number="2021002")

    def test_email_taken_by_application(self, db):
        _store(db, student_number="2021001")
        with pytest.raises(ConflictError) as exc:
            check_uniqueness(db, "ali@example.com", student_number="2021002")
        assert exc.value.field == "email"

    def test_student_number_taken_by_application(self, db):
        _store(db, student_number="2021001")
        with pytest.raises(ConflictError) as exc:
            check_uniqueness(db, "new@example.com", student_number="2021001")
        assert exc.value.field == "student_number"
        assert exc.value.message == "Student number is already registered"

    def test_national_id_taken_by_account(self, db):
        add_user(db, "user@example.com", national_id="12345678901")
        with pytest.raises(ConflictError) as exc:
            check_uniqueness(db, "new@example.com", national_id="12345678901")
        assert exc.value.field == "national_id"

    def test_email_taken_by_account(self, db):
        add_user(db, "user@example.com")
        with pytest.raises(ConflictError):
            check_uniqueness(db, "user@example.com", student_number="2021002")


class TestFindByIdentification:
    def test_matches_either_identifier(self, db):
        by_national_id = _store(db, email="a@example.com", national_id="12345678901")
        by_student_number = _store(db, email="b@example.com", student_number="2021001")

        assert find_by_identification(db, national_id="12345678901").id == by_national_id.id
        assert find_by_identification(db, student_number="2021001").id == by_student_number.id
        # OR semantics: first match wins
        assert find_by_identification(db, "12345678901", "2021001").id == by_national_id.id

    def test_no_identifiers(self, db):
        assert find_by_identification(db) is None

    def test_no_match(self, db):
        assert find_by_identification(db, student_number="9999999") is None
