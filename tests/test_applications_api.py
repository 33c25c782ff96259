"""HTTP endpoints: public submission, admin review, roster settings."""

from api.main import app
from api.services.roster_checker import get_roster_provider
from roster.base import RosterServiceError
from tests.helpers import application_payload

APPLY = "/api/v1/public/membership/apply"
APPLICATIONS = "/api/v1/applications"


def apply(client, **overrides):
    return client.post(APPLY, json=application_payload(**overrides))


class TestPublicSubmission:
    def test_submit_goes_to_review(self, client):
        response = apply(client)

        assert response.status_code == 201
        body = response.json()
        assert body["status"] == "PENDING"
        assert body["statusDisplay"] == "Pending review"
        assert body["autoApproved"] is False

    def test_status_lookup(self, client):
        application_id = apply(client).json()["id"]

        response = client.get(f"/api/v1/public/membership/status/{application_id}")

        assert response.status_code == 200
        assert response.json()["status"] == "PENDING"
        assert "email" not in response.json()

    def test_unknown_status(self, client):
        response = client.get("/api/v1/public/membership/status/999")
        assert response.status_code == 404
        assert response.json()["error"]["code"] == "NOT_FOUND"

    def test_invalid_national_id(self, client):
        response = apply(client, national_id="123")

        assert response.status_code == 422
        error = response.json()["error"]
        assert error["code"] == "VALIDATION_ERROR"
        assert error["details"]["field"] == "national_id"

    def test_missing_required_field(self, client):
        payload = application_payload()
        del payload["email"]

        response = client.post(APPLY, json=payload)

        assert response.status_code == 422
        assert response.json()["error"]["details"]["field"] == "email"

    def test_duplicate_email(self, client):
        apply(client)

        response = apply(client, national_id="22345678901", student_number="2021002")

        assert response.status_code == 409
        error = response.json()["error"]
        assert error["code"] == "CONFLICT"
        assert error["details"]["field"] == "email"

    def test_roster_match_auto_approves(self, client, roster, enable_roster):
        enable_roster()
        roster.add("Ayşe Yılmaz", "2021001")

        response = apply(client)

        assert response.status_code == 201
        assert response.json()["status"] == "APPROVED"
        assert response.json()["autoApproved"] is True

    def test_roster_miss_is_refused(self, client, roster, enable_roster):
        enable_roster()

        response = apply(client)

        assert response.status_code == 422
        assert "not found in roster" in response.json()["error"]["message"]

    def test_captures_client_details(self, client, admin_headers):
        application_id = client.post(
            APPLY,
            json=application_payload(),
            headers={"User-Agent": "membership-form/1.0"},
        ).json()["id"]

        detail = client.get(f"{APPLICATIONS}/{application_id}", headers=admin_headers).json()

        assert detail["userAgent"] == "membership-form/1.0"
        assert detail["source"] == "WEBSITE"
        assert detail["ipAddress"]


class TestAdminAccess:
    def test_requires_token(self, client):
        response = client.get(APPLICATIONS)
        assert response.status_code == 401
        assert response.json()["error"]["code"] == "UNAUTHORIZED"

    def test_requires_admin_role(self, client, member_headers):
        response = client.get(APPLICATIONS, headers=member_headers)
        assert response.status_code == 403

    def test_bad_token(self, client):
        response = client.get(APPLICATIONS, headers={"Authorization": "Bearer not-a-token"})
        assert response.status_code == 401


class TestAdminReview:
    def test_reject_then_approve(self, client, admin_headers, other_admin_headers):
        application_id = apply(client).json()["id"]

        rejected = client.post(
            f"{APPLICATIONS}/{application_id}/reject",
            json={"reason": "incomplete info"},
            headers=admin_headers,
        )
        assert rejected.status_code == 200
        assert rejected.json()["status"] == "REJECTED"
        assert rejected.json()["reviewerRef"] == "admin-1"
        assert rejected.json()["rejectedAt"]

        approved = client.post(f"{APPLICATIONS}/{application_id}/approve", headers=other_admin_headers)
        assert approved.status_code == 409
        error = approved.json()["error"]
        assert error["code"] == "INVALID_TRANSITION"
        assert error["details"]["fromStatus"] == "REJECTED"

        detail = client.get(f"{APPLICATIONS}/{application_id}", headers=admin_headers).json()
        assert detail["status"] == "REJECTED"
        assert detail["rejectionReason"] == "incomplete info"

    def test_approve_and_repeat(self, client, admin_headers):
        application_id = apply(client).json()["id"]

        first = client.post(
            f"{APPLICATIONS}/{application_id}/approve",
            json={"reason": "Known from events"},
            headers=admin_headers,
        )
        second = client.post(f"{APPLICATIONS}/{application_id}/approve", headers=admin_headers)

        assert first.status_code == 200
        assert first.json()["autoApprovalReason"] == "Known from events"
        assert first.json()["autoApproved"] is False
        assert second.status_code == 200
        assert second.json()["approvalDate"] == first.json()["approvalDate"]

    def test_reject_requires_reason(self, client, admin_headers):
        application_id = apply(client).json()["id"]

        response = client.post(f"{APPLICATIONS}/{application_id}/reject", json={}, headers=admin_headers)

        assert response.status_code == 422

    def test_decision_history(self, client, admin_headers):
        application_id = apply(client).json()["id"]
        client.post(f"{APPLICATIONS}/{application_id}/approve", headers=admin_headers)

        response = client.get(f"{APPLICATIONS}/{application_id}/decisions", headers=admin_headers)

        assert response.status_code == 200
        history = response.json()
        assert len(history) == 1
        assert history[0]["action"] == "approve"
        assert history[0]["fromStatus"] == "PENDING"
        assert history[0]["toStatus"] == "APPROVED"
        assert history[0]["reviewerRef"] == "admin-1"

    def test_record_account(self, client, admin_headers):
        application_id = apply(client).json()["id"]
        client.post(f"{APPLICATIONS}/{application_id}/approve", headers=admin_headers)

        response = client.post(
            f"{APPLICATIONS}/{application_id}/account",
            json={"accountRef": "user-77"},
            headers=admin_headers,
        )

        assert response.status_code == 200
        assert response.json()["createdAccountRef"] == "user-77"
        assert response.json()["accountCreatedAt"]

    def test_unknown_application(self, client, admin_headers):
        response = client.post(f"{APPLICATIONS}/999/approve", headers=admin_headers)
        assert response.status_code == 404


class TestAdminQueries:
    def test_list_and_filter(self, client, admin_headers):
        first = apply(client, email="a@example.com", national_id=None, student_number="1").json()["id"]
        apply(client, email="b@example.com", national_id=None, student_number="2")
        client.post(f"{APPLICATIONS}/{first}/approve", headers=admin_headers)

        everything = client.get(APPLICATIONS, headers=admin_headers).json()
        assert everything["meta"]["total"] == 2

        approved = client.get(APPLICATIONS, params={"status": "APPROVED"}, headers=admin_headers).json()
        assert [item["id"] for item in approved["data"]] == [first]
        assert approved["data"][0]["identificationType"] == "STUDENT"
        assert approved["data"][0]["fullName"] == "Ayşe Yılmaz"

        paged = client.get(APPLICATIONS, params={"page": 2, "perPage": 1}, headers=admin_headers).json()
        assert len(paged["data"]) == 1
        assert paged["meta"]["totalPages"] == 2

    def test_stats(self, client, admin_headers):
        apply(client)

        stats = client.get(f"{APPLICATIONS}/stats", headers=admin_headers).json()

        assert stats["total"] == 1
        assert stats["pending"] == 1
        assert stats["roster"]["NOT_CHECKED"] == 1

    def test_lookup(self, client, admin_headers):
        application_id = apply(client).json()["id"]

        found = client.get(
            f"{APPLICATIONS}/lookup",
            params={"nationalId": "12345678901"},
            headers=admin_headers,
        ).json()
        missing = client.get(
            f"{APPLICATIONS}/lookup",
            params={"studentNumber": "0000"},
            headers=admin_headers,
        ).json()

        assert found["found"] is True
        assert found["application"]["id"] == application_id
        assert found["application"]["identificationType"] == "NATIONAL_ID"
        assert missing == {"found": False, "application": None}

    def test_admin_entry(self, client, admin_headers):
        payload = application_payload()
        payload["processingNotes"] = "Signed up at the stand"

        response = client.post(APPLICATIONS, json=payload, headers=admin_headers)

        assert response.status_code == 201
        assert response.json()["source"] == "ADMIN"
        assert response.json()["processingNotes"] == "Signed up at the stand"


class TestRosterSettings:
    def test_defaults(self, client, admin_headers):
        body = client.get("/api/v1/settings/roster", headers=admin_headers).json()
        assert body["enabled"] is False
        assert body["configured"] is False

    def test_update(self, client, admin_headers):
        response = client.patch(
            "/api/v1/settings/roster",
            json={
                "enabled": True,
                "spreadsheet": "https://docs.google.com/spreadsheets/d/1AbCdEfGhIjKlMnOpQrStUvWxYz/edit",
            },
            headers=admin_headers,
        )

        assert response.status_code == 200
        body = response.json()
        assert body["enabled"] is True
        assert body["configured"] is True
        assert body["spreadsheetId"] == "1AbCdEfGhIjKlMnOpQrStUvWxYz"

    def test_rejects_non_sheet_url(self, client, admin_headers):
        response = client.patch(
            "/api/v1/settings/roster",
            json={"spreadsheet": "https://example.com/roster.xlsx"},
            headers=admin_headers,
        )
        assert response.status_code == 422

    def test_connection_test(self, client, admin_headers, roster):
        roster.add("Ayşe Yılmaz", "2021001")

        response = client.post("/api/v1/settings/roster/test", headers=admin_headers)

        assert response.status_code == 200
        assert response.json()["healthy"] is True


def test_health(client):
    assert client.get("/health").json()["status"] == "ok"
    body = client.get("/api/v1/health").json()
    assert body["database"] == "connected"
    assert body["roster"] == "disabled"


def test_health_detailed_and_probes(client):
    body = client.get("/api/v1/health/detailed").json()
    assert body["status"] == "healthy"
    assert body["database_error"] is None
    assert body["roster"] == "disabled"
    assert client.get("/api/v1/health/ready").json() == {"ready": True}
    assert client.get("/api/v1/health/live").json() == {"alive": True}


class TestEligibilityCheck:
    URL = "/api/v1/public/membership/check-eligibility"

    def test_listed_student(self, client, roster, enable_roster):
        enable_roster()
        roster.add("Ayşe Yılmaz", "2021001")

        response = client.post(self.URL, json={"studentNumber": "2021001"})

        assert response.status_code == 200
        body = response.json()
        assert body["eligible"] is True
        assert body["autoApproval"] is True
        assert body["rosterCheckStatus"] == "FOUND"
        assert body["rosterStatusDisplay"] == "Found in roster"

    def test_unlisted_student(self, client, enable_roster):
        enable_roster()

        body = client.post(self.URL, json={"studentNumber": "2021001"}).json()

        assert body["eligible"] is False
        assert body["rosterCheckStatus"] == "NOT_FOUND"

    def test_student_number_required(self, client):
        response = client.post(self.URL, json={})
        assert response.status_code == 422
        assert response.json()["error"]["details"]["field"] == "studentNumber"


class TestRosterMemberLookup:
    URL = "/api/v1/settings/roster/members"

    def test_found(self, client, admin_headers, roster):
        roster.add("Ayşe Yılmaz", "2021001", department="Physics", row_number=2)

        response = client.get(f"{self.URL}/2021001", headers=admin_headers)

        assert response.status_code == 200
        body = response.json()
        assert body["found"] is True
        assert body["member"]["fullName"] == "Ayşe Yılmaz"
        assert body["member"]["department"] == "Physics"
        assert body["member"]["rowNumber"] == 2

    def test_not_found(self, client, admin_headers):
        body = client.get(f"{self.URL}/9999999", headers=admin_headers).json()
        assert body == {"found": False, "member": None}

    def test_roster_failure(self, client, admin_headers, roster):
        roster.error = RosterServiceError("Spreadsheet not found")

        response = client.get(f"{self.URL}/2021001", headers=admin_headers)

        assert response.status_code == 502
        assert response.json()["error"]["code"] == "ROSTER_UNAVAILABLE"

    def test_unconfigured(self, client, admin_headers):
        app.dependency_overrides[get_roster_provider] = lambda: None

        response = client.get(f"{self.URL}/2021001", headers=admin_headers)

        assert response.status_code == 400
        assert response.json()["error"]["code"] == "ROSTER_NOT_CONFIGURED"

    def test_requires_admin(self, client, member_headers):
        response = client.get(f"{self.URL}/2021001", headers=member_headers)
        assert response.status_code == 403
