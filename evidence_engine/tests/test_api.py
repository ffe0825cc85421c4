"""
Tests for the Report API
========================

HTTP contract of the /api/pdf endpoints against a temporary SQLite database
and local file storage.
"""

import sys
from datetime import datetime, timedelta
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).parent.parent.parent))

from fastapi.testclient import TestClient

from evidence_engine.api import app, get_object_storage
from evidence_engine.auth import create_access_token
from evidence_engine.db import models as db
from evidence_engine.db.session import get_db_session, init_db, reset_engine
from evidence_engine.storage import LocalStorage
from evidence_engine.tests.support import make_jpeg

SEEDED_AT = datetime(2025, 1, 10, 9, 0)
OWNER_HEADERS = {"X-User-Id": "user-1", "X-User-Email": "tenant@example.com"}


# =============================================================================
# Fixtures
# =============================================================================

@pytest.fixture
def storage(tmp_path):
    return LocalStorage(str(tmp_path / "files"), "http://testserver", "test-signing-secret")


@pytest.fixture
def database(tmp_path, monkeypatch):
    monkeypatch.setenv("DATABASE_URL", f"sqlite:///{tmp_path / 'evidence.db'}")
    reset_engine()
    init_db()
    yield
    reset_engine()


def seed_case(session, storage, case_id, stay_type="long_term", hashed=True, purchases=("checkin",)):
    session.add(db.Case(
        case_id=case_id,
        user_id="user-1",
        label="Flat 3B",
        address="12 Harbour Street, Bristol",
        stay_type=stay_type,
        checkin_completed_at=SEEDED_AT + timedelta(days=1),
        meter_readings={"electricity": {"value": "12345", "unit": "kWh"}},
    ))
    session.add(db.Room(room_id=f"{case_id}-kitchen", case_id=case_id, name="Kitchen", created_at=SEEDED_AT))
    for i in range(3):
        path = f"cases/{case_id}/photos/p{i}.jpg"
        storage.put(path, make_jpeg(), "image/jpeg")
        session.add(db.Asset(
            asset_id=f"{case_id}-p{i}",
            case_id=case_id,
            room_id=f"{case_id}-kitchen",
            type="checkin_photo",
            storage_path=path,
            file_hash_server=("a" * 64) if hashed or i else None,
            created_at=SEEDED_AT + timedelta(minutes=i),
        ))
    for pack_type in purchases:
        session.add(db.Purchase(case_id=case_id, user_id="user-1", pack_type=pack_type))


@pytest.fixture
def client(database, storage):
    with get_db_session() as session:
        seed_case(session, storage, "case-1")
        seed_case(session, storage, "case-unhashed", hashed=False)

    app.dependency_overrides[get_object_storage] = lambda: storage
    yield TestClient(app)
    app.dependency_overrides.clear()


def output_rows():
    with get_db_session() as session:
        return [(row.case_id, row.type, row.payload, row.storage_path) for row in session.query(db.Output).all()]


def assert_error(response, status, code):
    assert response.status_code == status
    body = response.json()
    assert body["error"]["code"] == code
    assert body["error"]["message"]


# =============================================================================
# Health
# =============================================================================

class TestHealthEndpoint:
    """Tests for /health"""

    def test_health(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert "version" in data
        assert "storage_backend" in data

    def test_security_headers(self, client):
        response = client.get("/health")
        assert response.headers["X-Content-Type-Options"] == "nosniff"
        assert response.headers["Referrer-Policy"] == "no-referrer"


# =============================================================================
# Report endpoints
# =============================================================================

class TestCheckinReportEndpoint:
    """POST /api/pdf/checkin-report"""

    def test_success_returns_url_and_records_output(self, client):
        response = client.post("/api/pdf/checkin-report", json={"caseId": "case-1"}, headers=OWNER_HEADERS)

        assert response.status_code == 200
        assert response.json()["url"].startswith("http://testserver/files/")
        assert response.headers["Cache-Control"] == "no-store"

        [(case_id, report_type, payload, storage_path)] = output_rows()
        assert case_id == "case-1"
        assert report_type == "checkin_report"
        assert payload["photo_count"] == 3
        assert payload["rooms_count"] == 1
        assert storage_path.startswith("cases/case-1/generated/")

    def test_download_link_serves_pdf(self, client):
        url = client.post("/api/pdf/checkin-report", json={"caseId": "case-1"},
                          headers=OWNER_HEADERS).json()["url"]

        response = client.get(url)

        assert response.status_code == 200
        assert response.headers["content-type"] == "application/pdf"
        assert response.headers["content-disposition"] == (
            'attachment; filename="RentVault_Check-in_Report_case-1.pdf"'
        )
        assert response.content.startswith(b"%PDF")

    def test_preview_link_is_inline(self, client):
        url = client.post("/api/pdf/checkin-report", json={"caseId": "case-1", "forPreview": True},
                          headers=OWNER_HEADERS).json()["url"]
        assert "content-disposition" not in client.get(url).headers

    def test_bearer_token(self, client):
        token = create_access_token({"sub": "user-1", "email": "tenant@example.com"})
        response = client.post("/api/pdf/checkin-report", json={"caseId": "case-1"},
                               headers={"Authorization": f"Bearer {token}"})
        assert response.status_code == 200

    def test_per_request_timeout_accepted(self, client):
        response = client.post("/api/pdf/checkin-report", json={"caseId": "case-1", "timeoutSeconds": 10},
                               headers=OWNER_HEADERS)
        assert response.status_code == 200

    def test_custom_sections_accepted(self, client):
        body = {
            "caseId": "case-1",
            "customSections": {"personalNotes": "Keys left with concierge", "propertyRating": 4},
        }
        response = client.post("/api/pdf/checkin-report", json=body, headers=OWNER_HEADERS)
        assert response.status_code == 200


class TestErrorResponses:
    """Every failure uses the {"error": {code, message, details}} shape"""

    def test_unauthenticated(self, client):
        response = client.post("/api/pdf/checkin-report", json={"caseId": "case-1"})
        assert_error(response, 401, "UNAUTHORIZED")

    def test_invalid_bearer_token(self, client):
        response = client.post("/api/pdf/checkin-report", json={"caseId": "case-1"},
                               headers={"Authorization": "Bearer not-a-jwt", **OWNER_HEADERS})
        assert_error(response, 401, "UNAUTHORIZED")

    def test_missing_case_id(self, client):
        response = client.post("/api/pdf/checkin-report", json={}, headers=OWNER_HEADERS)
        assert_error(response, 400, "VALIDATION")

    def test_malformed_body(self, client):
        response = client.post("/api/pdf/checkin-report", json={"caseId": "case-1", "forPreview": "maybe"},
                               headers=OWNER_HEADERS)
        assert_error(response, 400, "VALIDATION")

    def test_timeout_must_be_positive(self, client):
        response = client.post("/api/pdf/checkin-report", json={"caseId": "case-1", "timeoutSeconds": 0},
                               headers=OWNER_HEADERS)
        assert_error(response, 400, "VALIDATION")

    def test_other_users_case(self, client):
        response = client.post("/api/pdf/checkin-report", json={"caseId": "case-1"},
                               headers={"X-User-Id": "user-2"})
        assert_error(response, 404, "NOT_FOUND")

    def test_unhashed_evidence(self, client):
        response = client.post("/api/pdf/checkin-report", json={"caseId": "case-unhashed"},
                               headers=OWNER_HEADERS)

        assert_error(response, 422, "HASH_VERIFICATION_INCOMPLETE")
        details = response.json()["error"]["details"]
        assert details["missingCount"] == 1
        assert details["missingAssetIds"] == ["case-unhashed-p0"]
        assert output_rows() == []

    def test_short_stay_on_long_term_case(self, client):
        response = client.post("/api/pdf/short-stay", json={"caseId": "case-1"}, headers=OWNER_HEADERS)
        assert_error(response, 400, "VALIDATION")

    def test_deposit_pack_needs_purchase(self, client):
        response = client.post("/api/pdf/deposit-pack", json={"caseId": "case-1"}, headers=OWNER_HEADERS)
        assert_error(response, 403, "FORBIDDEN")

    def test_deposit_pack_preview_allowed(self, client):
        response = client.post("/api/pdf/deposit-pack", json={"caseId": "case-1", "forPreview": True},
                               headers=OWNER_HEADERS)
        assert response.status_code == 200

    def test_tampered_download_link(self, client):
        assert_error(client.get("/files/not-a-token"), 404, "NOT_FOUND")
