"""
Shared fixtures: fake AI client, fake clock and sleep, in-memory record store.
"""

from datetime import datetime, timedelta, timezone
from typing import List

import pytest

from healthflow.adapters.db.local.record_repository import LocalRecordRepository
from healthflow.adapters.storage.key_value_store import InMemoryKeyValueStore
from healthflow.core.config import reset_settings
from healthflow.domain.entities.patient import PatientDetails
from healthflow.domain.entities.prescription import Medication, PrescriptionData
from healthflow.domain.enums.frequency import Frequency

BASE_TIME = datetime(2024, 3, 1, 9, 0, 0, tzinfo=timezone.utc)


class FakeAPIError(Exception):
    """Stands in for an SDK error carrying an HTTP status."""

    def __init__(self, status_code: int, message: str = ""):
        super().__init__(message or f"Error code: {status_code}")
        self.status_code = status_code


class FakeAIClient:
    """Returns queued responses in order; queued exceptions are raised."""

    def __init__(self, *responses):
        self.responses = list(responses)
        self.calls: List[dict] = []

    async def complete_text(self, prompt, **kwargs):
        self.calls.append({"prompt": prompt, **kwargs})
        if not self.responses:
            raise AssertionError("FakeAIClient ran out of responses")
        response = self.responses.pop(0)
        if isinstance(response, BaseException):
            raise response
        return response


class FakeSleep:
    def __init__(self):
        self.delays: List[float] = []

    async def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)


class FakeClock:
    def __init__(self, start: datetime = BASE_TIME):
        self.now = start

    def advance(self, seconds: float) -> None:
        self.now = self.now + timedelta(seconds=seconds)

    def __call__(self) -> datetime:
        return self.now


def make_details(**overrides) -> PatientDetails:
    values = dict(
        name="Asha Rao",
        age=34,
        gender="Female",
        upid="",
        phone="9876543210",
        email="asha@example.com",
        allergies="Penicillin",
    )
    values.update(overrides)
    return PatientDetails(**values)


def make_prescription(diagnosis: str = "Viral fever", date=None) -> PrescriptionData:
    return PrescriptionData(
        diagnosis=diagnosis,
        medications=[
            Medication(name="Paracetamol", dosage="500mg", frequency=Frequency.TDS, duration="5 days",
                       instructions="After food"),
        ],
        advice="Rest\nDrink fluids",
        follow_up="After 5 days",
        date=date,
    )


@pytest.fixture(autouse=True)
def _fresh_settings(monkeypatch, tmp_path):
    monkeypatch.setenv("STORE_PATH", str(tmp_path / "store"))
    monkeypatch.setenv("EMAIL_SIMULATED_DELAY_SECONDS", "0")
    reset_settings()
    yield
    reset_settings()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def fake_sleep():
    return FakeSleep()


@pytest.fixture
def kv_store():
    return InMemoryKeyValueStore()


@pytest.fixture
def repository(kv_store, clock):
    return LocalRecordRepository(kv_store, clock=clock)
