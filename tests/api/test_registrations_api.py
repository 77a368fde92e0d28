# tests/api/test_registrations_api.py

from unittest.mock import MagicMock

from fastapi.testclient import TestClient

from campus_attendance.core.exceptions import OutsiderQuotaExceededError
from tests.utils.event import create_random_event, individual_payload


def test_register_member(db, test_client_e2e: TestClient, monkeypatch):
    monkeypatch.setattr(
        "campus_attendance.services.registration_service.registration_service.user_lookup",
        lambda email: None,
    )
    event = create_random_event(db)

    response = test_client_e2e.post("/api/register", json=individual_payload(event.id))

    assert response.status_code == 201
    data = response.json()
    assert data["message"] == "Registration successful"
    registration = data["registration"]
    assert registration["event_id"] == event.id
    assert registration["organization_class"] == "member"
    assert registration["qr_code_data"]["registrationId"] == registration["id"]
    assert set(registration["qr_code_data"]) == {
        "registrationId",
        "eventId",
        "participantEmail",
        "timestamp",
        "expiryTime",
        "hash",
    }


def test_register_duplicate(db, test_client_e2e: TestClient):
    event = create_random_event(db)
    payload = individual_payload(event.id)

    assert test_client_e2e.post("/api/register", json=payload).status_code == 201
    response = test_client_e2e.post("/api/register", json=payload)

    assert response.status_code == 409
    assert response.json()["detail"]["error_code"] == "DUPLICATE_REGISTRATION"


def test_register_outsider_blocked(db, test_client_e2e: TestClient):
    event = create_random_event(db, outsider_allowed=False)

    response = test_client_e2e.post(
        "/api/register", json=individual_payload(event.id, register_number="VIS0001")
    )

    assert response.status_code == 403
    assert response.json()["detail"]["error_code"] == "OUTSIDER_NOT_ALLOWED"


def test_register_unknown_event(test_client_e2e: TestClient):
    response = test_client_e2e.post("/api/register", json=individual_payload("evt_missing"))

    assert response.status_code == 404
    assert response.json()["detail"]["error_code"] == "EVENT_NOT_FOUND"


def test_register_invalid_body(test_client_e2e: TestClient):
    response = test_client_e2e.post("/api/register", json={"eventId": "evt_1", "teammates": []})

    assert response.status_code == 400
    assert response.json()["detail"]["error_code"] == "VALIDATION_ERROR"


def test_register_quota_exceeded(monkeypatch, test_client: TestClient):
    service_mock = MagicMock()
    service_mock.register.side_effect = OutsiderQuotaExceededError("evt_1", 2, 2, 1)
    monkeypatch.setattr(
        "campus_attendance.api.v1.endpoints.registrations.registration_service", service_mock
    )

    response = test_client.post("/api/register", json=individual_payload("evt_1"))

    assert response.status_code == 403
    assert response.json()["detail"]["error_code"] == "QUOTA_EXCEEDED"


def test_register_unexpected_error(monkeypatch, test_client: TestClient):
    service_mock = MagicMock()
    service_mock.register.side_effect = RuntimeError("database exploded")
    monkeypatch.setattr(
        "campus_attendance.api.v1.endpoints.registrations.registration_service", service_mock
    )

    response = test_client.post("/api/register", json=individual_payload("evt_1"))

    assert response.status_code == 500
    assert response.json()["detail"]["error_code"] == "INTERNAL_ERROR"


def test_list_get_and_delete(db, test_client_e2e: TestClient):
    event = create_random_event(db)
    created = test_client_e2e.post("/api/register", json=individual_payload(event.id)).json()
    registration_id = created["registration"]["id"]

    listing = test_client_e2e.get("/api/registrations", params={"event_id": event.id})
    assert listing.status_code == 200
    assert listing.json()["count"] == 1

    detail = test_client_e2e.get(f"/api/registrations/{registration_id}")
    assert detail.status_code == 200
    assert detail.json()["registration"]["id"] == registration_id

    qr = test_client_e2e.get(f"/api/registrations/{registration_id}/qr-code")
    assert qr.status_code == 200
    assert qr.json()["eventId"] == event.id
    assert qr.json()["qrCodeImage"].startswith("data:image/png;base64,")

    deleted = test_client_e2e.delete(f"/api/registrations/{registration_id}")
    assert deleted.status_code == 200

    assert test_client_e2e.get(f"/api/registrations/{registration_id}").status_code == 404


def test_list_requires_event_id(test_client_e2e: TestClient):
    response = test_client_e2e.get("/api/registrations")
    assert response.status_code == 400


def test_user_registered_events(db, test_client_e2e: TestClient):
    event = create_random_event(db, title="Debate")
    test_client_e2e.post("/api/register", json=individual_payload(event.id, register_number="2345678"))

    response = test_client_e2e.get("/api/registrations/user/2345678/events")

    assert response.status_code == 200
    data = response.json()
    assert data["count"] == 1
    assert data["events"][0]["name"] == "Debate"
