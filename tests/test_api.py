"""
HTTP surface tests.
"""

import pytest
from fastapi.testclient import TestClient

from healthflow.adapters.external.email_service_simulated import SimulatedEmailService
from healthflow.adapters.external.extraction_service_openai import OpenAIExtractionService
from healthflow.adapters.external.summary_service_openai import OpenAISummaryService
from healthflow.api import deps
from healthflow.app import create_app
from healthflow.core.exceptions import CapacityExceededError

from conftest import FakeAIClient, FakeAPIError, FakeSleep, make_details, make_prescription
from test_extraction_service import VALID_RESPONSE

PATIENT = {
    "name": "Asha Rao",
    "age": 34,
    "gender": "Female",
    "phone": "9876543210",
    "email": "asha@example.com",
    "allergies": "Penicillin",
}


@pytest.fixture
def ai_client():
    return FakeAIClient()


@pytest.fixture
def client(repository, ai_client):
    """Create a test client with fake AI and an in-memory record store."""
    sleep = FakeSleep()
    app = create_app()
    registry = deps.SessionRegistry()
    app.dependency_overrides[deps.get_record_repository] = lambda: repository
    app.dependency_overrides[deps.get_session_registry] = lambda: registry
    app.dependency_overrides[deps.get_extraction_service] = lambda: OpenAIExtractionService(
        ai_client=ai_client, max_retries=2, initial_delay=0, sleep=sleep
    )
    app.dependency_overrides[deps.get_summary_service] = lambda: OpenAISummaryService(
        ai_client=ai_client, max_retries=2, initial_delay=0, sleep=sleep
    )
    app.dependency_overrides[deps.get_email_service] = lambda: SimulatedEmailService(delay_seconds=0)
    return TestClient(app)


def test_health_endpoint(client):
    response = client.get("/health")
    assert response.status_code == 200
    data = response.json()["data"]
    assert data["status"] == "healthy"
    assert data["service"] == "HealthFlow"
    assert data["records"] == 0


def test_root_endpoint(client):
    response = client.get("/")
    assert response.status_code == 200
    assert response.json()["status"] == "running"


def test_consultation_round_trip(client, ai_client, repository):
    ai_client.responses.append(VALID_RESPONSE)

    created = client.post("/sessions")
    assert created.status_code == 201
    session = created.json()["data"]
    sid, upid = session["session_id"], session["upid"]
    assert session["screen"] == "intake"

    response = client.post(f"/sessions/{sid}/patient", json=PATIENT)
    assert response.status_code == 200
    assert response.json()["data"]["screen"] == "voice_capture"

    response = client.post(f"/sessions/{sid}/extract", json={"transcription": "Sore throat ..."})
    assert response.status_code == 200
    prescription = response.json()["data"]["prescription"]
    assert response.json()["data"]["screen"] == "review"
    assert prescription["medications"][0]["frequency_code"] == "1-1-1"
    assert prescription["medications"][1]["frequency_code"] == "-"

    response = client.patch(f"/sessions/{sid}/prescription", json={"follow_up": "After 1 week"})
    assert response.json()["data"]["prescription"]["follow_up"] == "After 1 week"

    added = client.post(f"/sessions/{sid}/medications").json()["data"]
    response = client.patch(f"/sessions/{sid}/medications/{added['id']}", json={"name": "Zinc", "frequency": "BD"})
    assert response.json()["data"]["frequency"] == "Twice Daily (BD)"
    response = client.delete(f"/sessions/{sid}/medications/{added['id']}")
    assert len(response.json()["data"]["prescription"]["medications"]) == 2

    response = client.post(f"/sessions/{sid}/finalize")
    assert response.json()["data"]["screen"] == "final"
    assert response.json()["data"]["prescription"]["date"] is not None

    receipt = client.post(f"/sessions/{sid}/send").json()["data"]
    assert receipt["success"] is True
    assert receipt["message_id"].startswith("msg_")

    record = client.get(f"/records/{upid.lower()}").json()["data"]
    assert record["upid"] == upid
    assert len(record["history"]) == 1
    assert record["details"]["allergy_list"] == ["Penicillin"]

    recent = client.get("/records/recent").json()["data"]
    assert [r["upid"] for r in recent] == [upid]


def test_invalid_patient_details_return_field_errors(client):
    sid = client.post("/sessions").json()["data"]["session_id"]
    response = client.post(f"/sessions/{sid}/patient", json={**PATIENT, "phone": "123", "email": "not-an-email"})

    assert response.status_code == 422
    body = response.json()
    assert body["error"] == "INVALID_PATIENT_DATA"
    assert body["details"]["field_errors"] == {
        "phone": "Enter a valid 10-digit phone number",
        "email": "Enter a valid email address",
    }


def test_unknown_session_is_404(client):
    response = client.get("/sessions/does-not-exist")
    assert response.status_code == 404
    assert response.json()["error"] == "SESSION_NOT_FOUND"


def test_illegal_transition_is_409(client):
    sid = client.post("/sessions").json()["data"]["session_id"]
    response = client.post(f"/sessions/{sid}/finalize")
    assert response.status_code == 409
    assert response.json()["error"] == "INVALID_TRANSITION"


def test_capacity_exhaustion_is_429(client, ai_client):
    ai_client.responses.extend([FakeAPIError(429), FakeAPIError(429)])
    sid = client.post("/sessions").json()["data"]["session_id"]
    client.post(f"/sessions/{sid}/patient", json=PATIENT)

    response = client.post(f"/sessions/{sid}/extract", json={"transcription": "dictation"})
    assert response.status_code == 429
    assert response.json()["message"] == CapacityExceededError.USER_MESSAGE

    session = client.get(f"/sessions/{sid}").json()["data"]
    assert session["screen"] == "voice_capture"
    assert session["last_error"] == CapacityExceededError.USER_MESSAGE


def test_malformed_extraction_is_502(client, ai_client):
    ai_client.responses.append("not json")
    sid = client.post("/sessions").json()["data"]["session_id"]
    client.post(f"/sessions/{sid}/patient", json=PATIENT)

    response = client.post(f"/sessions/{sid}/extract", json={"transcription": "dictation"})
    assert response.status_code == 502
    assert response.json()["error"] == "EXTRACTION_FAILED"


def test_blank_transcription_is_422(client):
    sid = client.post("/sessions").json()["data"]["session_id"]
    client.post(f"/sessions/{sid}/patient", json=PATIENT)
    response = client.post(f"/sessions/{sid}/extract", json={"transcription": "  "})
    assert response.status_code == 422


def test_history_view_and_summary(client, ai_client, repository):
    repository.commit_session(make_details(upid="AAAAAAAAAAAA"), make_prescription("Fever"))
    ai_client.responses.append("Single febrile episode. Treated. Resolved.")

    sid = client.post("/sessions").json()["data"]["session_id"]
    response = client.post(f"/sessions/{sid}/history/AAAAAAAAAAAA/0")
    assert response.status_code == 200
    assert response.json()["data"]["screen"] == "final"
    assert len(repository.lookup("AAAAAAAAAAAA").history) == 1

    response = client.post("/records/AAAAAAAAAAAA/summary", params={"session_id": sid})
    assert response.status_code == 200
    assert response.json()["data"]["summary"] == "Single febrile episode. Treated. Resolved."
    assert response.json()["data"]["patient_name"] == "Asha Rao"

    assert client.get("/records/BBBBBBBBBBBB").status_code == 404


def test_delete_requires_confirmation(client, repository):
    repository.commit_session(make_details(upid="AAAAAAAAAAAA"), make_prescription())

    response = client.delete("/records/AAAAAAAAAAAA")
    assert response.status_code == 400
    assert response.json()["error"] == "CONFIRMATION_REQUIRED"

    response = client.delete("/records/AAAAAAAAAAAA", params={"confirm": "true"})
    assert response.status_code == 200
    assert repository.lookup("AAAAAAAAAAAA") is None
    assert client.delete("/records/AAAAAAAAAAAA", params={"confirm": "true"}).status_code == 404
