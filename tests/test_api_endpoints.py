"""Tests for the /gdpr HTTP endpoints."""

from __future__ import annotations

from typing import Any, Dict

import pytest
from fastapi.testclient import TestClient

from edu_gdpr.main import app
import edu_gdpr.main as main_mod


client = TestClient(app)


@pytest.fixture(autouse=True)
def injected_coordinator(monkeypatch, coordinator):
    monkeypatch.setattr(main_mod, "coordinator", coordinator)
    return coordinator


def _request_token(subject_id: int, request_type: str) -> Dict[str, Any]:
    response = client.post("/gdpr/consent/request", json={
        "subject_id": subject_id,
        "request_type": request_type,
        "contact_email": "parent@example.com",
        "details": {"reason": "parent request"},
    })
    assert response.status_code == 201
    body = response.json()
    assert body["success"] is True
    return body["data"]


def test_submit_and_verify_consent(subject_id) -> None:
    created = _request_token(subject_id, "DATA_ACCESS")
    assert len(created["token"]) == 64
    assert created["status"] == "PENDING"

    response = client.get(f"/gdpr/consent/verify/{created['token']}")

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["request_id"] == created["request_id"]
    assert data["subject_id"] == subject_id
    assert data["request_type"] == "DATA_ACCESS"
    assert data["status"] == "VERIFIED"
    assert "token" not in data


def test_verify_unknown_token_is_404() -> None:
    response = client.get(f"/gdpr/consent/verify/{'a' * 64}")

    assert response.status_code == 404
    body = response.json()
    assert body["success"] is False
    assert body["error"]["code"] == "CONSENT_INVALID"


def test_submit_for_unknown_subject_is_404() -> None:
    response = client.post("/gdpr/consent/request", json={
        "subject_id": 999,
        "request_type": "DATA_DELETION",
        "contact_email": "parent@example.com",
    })

    assert response.status_code == 404
    assert response.json()["error"]["code"] == "INVALID_SUBJECT"


def test_submit_with_bad_payload_is_400() -> None:
    response = client.post("/gdpr/consent/request", json={
        "subject_id": 1,
        "request_type": "DATA_SELLING",
        "contact_email": "parent@example.com",
    })

    assert response.status_code == 400
    assert response.json()["error"]["code"] == "VALIDATION_ERROR"


def test_export_csv_attachment(subject_id) -> None:
    token = _request_token(subject_id, "DATA_PORTABILITY")["token"]

    response = client.get(f"/gdpr/data/export/{subject_id}",
                          params={"format": "csv", "token": token})

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/csv")
    assert f"subject_{subject_id}_data.csv" in response.headers["content-disposition"]
    assert response.text.startswith("Table,Field,Value\n")
    assert '"student","given_name","Lina"' in response.text


def test_export_json_attachment(subject_id) -> None:
    token = _request_token(subject_id, "DATA_ACCESS")["token"]

    response = client.get(f"/gdpr/data/export/{subject_id}", params={"token": token})

    assert response.status_code == 200
    assert f"subject_{subject_id}_data.json" in response.headers["content-disposition"]
    payload = response.json()
    assert payload["student"]["id"] == subject_id
    assert len(payload["progress"]) == 2


def test_export_with_wrong_token_is_403(subject_id) -> None:
    response = client.get(f"/gdpr/data/export/{subject_id}", params={"token": "b" * 64})

    assert response.status_code == 403
    body = response.json()
    assert body["error"] == {"code": "CONSENT_INVALID", "message": "Consent token is invalid"}


def test_export_with_unknown_format_is_400(subject_id) -> None:
    response = client.get(f"/gdpr/data/export/{subject_id}", params={"format": "xml"})
    assert response.status_code == 400


def test_delete_anonymizes_by_default(subject_id) -> None:
    token = _request_token(subject_id, "DATA_DELETION")["token"]

    response = client.request("DELETE", f"/gdpr/data/delete/{subject_id}", json={"token": token})

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["mode"] == "ANONYMIZE"
    assert data["affected_records"] == 4
    assert data["deleted_at"]


@pytest.mark.parametrize("mode", ["ANONYMIZE", "anonymize"])
def test_delete_accepts_mode_in_any_case(subject_id, mode) -> None:
    token = _request_token(subject_id, "DATA_DELETION")["token"]

    response = client.request("DELETE", f"/gdpr/data/delete/{subject_id}",
                              json={"token": token, "mode": mode})

    assert response.status_code == 200
    assert response.json()["data"]["mode"] == "ANONYMIZE"


def test_delete_with_unknown_mode_is_400(subject_id) -> None:
    token = _request_token(subject_id, "DATA_DELETION")["token"]

    response = client.request("DELETE", f"/gdpr/data/delete/{subject_id}",
                              json={"token": token, "mode": "SHRED"})

    assert response.status_code == 400
    assert response.json()["error"]["code"] == "VALIDATION_ERROR"

def test_hard_delete_then_export_is_404(subject_id) -> None:
    access = _request_token(subject_id, "DATA_ACCESS")["token"]
    deletion = _request_token(subject_id, "DATA_DELETION")["token"]

    response = client.request("DELETE", f"/gdpr/data/delete/{subject_id}",
                              json={"token": deletion, "mode": "HARD"})
    assert response.status_code == 200

    response = client.get(f"/gdpr/data/export/{subject_id}", params={"token": access})
    assert response.status_code == 404
    assert response.json()["error"]["code"] == "SUBJECT_NOT_FOUND"


def test_audit_log_is_paginated(subject_id) -> None:
    for request_type in ("DATA_ACCESS", "DATA_PORTABILITY", "DATA_DELETION"):
        _request_token(subject_id, request_type)

    response = client.get(f"/gdpr/audit/log/{subject_id}", params={"limit": 2})

    assert response.status_code == 200
    data = response.json()["data"]
    assert len(data["entries"]) == 2
    assert data["pagination"] == {"limit": 2, "offset": 0, "total": 3, "has_more": True}
    assert data["entries"][0]["action"] == "CREATE"
    assert len(data["entries"][0]["checksum"]) == 64

    filtered = client.get(f"/gdpr/audit/log/{subject_id}", params={"action": "EXPORT"})
    assert filtered.json()["data"]["pagination"]["total"] == 0


def test_audit_log_limit_is_capped(subject_id) -> None:
    response = client.get(f"/gdpr/audit/log/{subject_id}", params={"limit": 10000})
    assert response.status_code == 400


def test_sweep_endpoint(subject_id, clock) -> None:
    _request_token(subject_id, "DATA_ACCESS")
    clock.advance(days=45)

    response = client.post("/gdpr/consent/sweep")

    assert response.status_code == 200
    assert response.json()["data"] == {"removed": 1}


def test_health_endpoint() -> None:
    response = client.get("/gdpr/health")

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["status"] == "healthy"
    assert data["service"] == "edu-gdpr-lifecycle"


def test_routes_return_503_when_coordinator_missing(monkeypatch) -> None:
    monkeypatch.setattr(main_mod, "coordinator", None)

    response = client.get("/gdpr/audit/log/1")
    assert response.status_code == 503
    assert response.json()["error"]["code"] == "STORAGE_UNAVAILABLE"

    health = client.get("/gdpr/health")
    assert health.status_code == 503
