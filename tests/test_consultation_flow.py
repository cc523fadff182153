"""
Screen flow: transitions, commits and in-flight guards.
"""

import asyncio

import pytest

from healthflow.adapters.external.email_service_simulated import SimulatedEmailService
from healthflow.adapters.external.extraction_service_openai import OpenAIExtractionService
from healthflow.adapters.external.summary_service_openai import OpenAISummaryService
from healthflow.application.ports.services.extraction_service import ExtractionService
from healthflow.application.use_cases.consultation_flow import ConsultationFlowUseCase
from healthflow.core.exceptions import CapacityExceededError, ExtractionFailedError
from healthflow.domain.enums.frequency import Frequency
from healthflow.domain.enums.workflow import Screen
from healthflow.domain.errors import (
    ConfirmationRequiredError,
    HistoryEntryNotFoundError,
    InvalidTransitionError,
    MedicationNotFoundError,
    PatientNotFoundError,
    PatientValidationError,
)

from conftest import FakeAIClient, FakeAPIError, FakeSleep, make_details, make_prescription
from test_extraction_service import VALID_RESPONSE


class BlockingExtraction(ExtractionService):
    """Extraction that waits until released, to observe in-flight behaviour."""

    def __init__(self):
        self.release = asyncio.Event()
        self.calls = 0

    async def extract_prescription(self, transcription):
        self.calls += 1
        await self.release.wait()
        return make_prescription()


def build_flow(repository, clock, ai_client=None, extraction=None):
    sleep = FakeSleep()
    ai_client = ai_client or FakeAIClient()
    return ConsultationFlowUseCase(
        repository,
        extraction or OpenAIExtractionService(ai_client=ai_client, max_retries=3, initial_delay=1.0, sleep=sleep),
        OpenAISummaryService(ai_client=ai_client, max_retries=3, initial_delay=1.0, sleep=sleep),
        SimulatedEmailService(delay_seconds=0, sleep=sleep),
        clock=clock,
    )


async def to_review(flow, session):
    flow.submit_patient_details(session, make_details())
    await flow.extract(session, "Sore throat for three days ...")


@pytest.mark.asyncio
async def test_full_consultation_commits_once(repository, clock):
    flow = build_flow(repository, clock, FakeAIClient(VALID_RESPONSE))
    session = flow.start_session()
    assert session.screen is Screen.INTAKE

    await to_review(flow, session)
    assert session.screen is Screen.REVIEW
    assert session.details.upid == session.upid

    flow.finalize(session)
    assert session.screen is Screen.FINAL
    assert session.prescription.date == clock.now

    record = repository.lookup(session.upid)
    assert len(record.history) == 1
    assert record.history[0].diagnosis.startswith("Acute pharyngitis")

    clock.advance(120)
    flow.back(session)
    assert session.screen is Screen.INTAKE
    assert len(repository.lookup(session.upid).history) == 1


@pytest.mark.asyncio
async def test_invalid_details_block_progress(repository, clock):
    flow = build_flow(repository, clock)
    session = flow.start_session()
    with pytest.raises(PatientValidationError) as exc_info:
        flow.submit_patient_details(session, make_details(phone="123", email="not-an-email"))

    assert set(exc_info.value.field_errors) == {"phone", "email"}
    assert session.screen is Screen.INTAKE
    assert session.details is None


@pytest.mark.asyncio
async def test_returning_patient_keeps_record_upid(repository, clock):
    repository.commit_session(make_details(upid="AAAAAAAAAAAA"), make_prescription())
    flow = build_flow(repository, clock)
    session = flow.start_session()
    flow.submit_patient_details(session, make_details(upid="aaaaaaaaaaaa"))
    assert session.upid == "AAAAAAAAAAAA"
    assert session.details.upid == "AAAAAAAAAAAA"


@pytest.mark.asyncio
async def test_rejected_intake_leaves_session_untouched(repository, clock):
    repository.commit_session(make_details(upid="AAAAAAAAAAAA"), make_prescription())
    flow = build_flow(repository, clock)
    session = flow.start_session()
    original_upid = session.upid
    with pytest.raises(PatientValidationError):
        flow.submit_patient_details(session, make_details(upid="AAAAAAAAAAAA", phone="123"))
    assert session.upid == original_upid
    assert session.details is None
    assert session.screen is Screen.INTAKE


@pytest.mark.asyncio
async def test_unknown_upid_in_details_is_replaced(repository, clock):
    flow = build_flow(repository, clock)
    session = flow.start_session()
    flow.submit_patient_details(session, make_details(upid="ZZZZZZZZZZZZ"))
    assert session.details.upid == session.upid != "ZZZZZZZZZZZZ"


@pytest.mark.asyncio
async def test_failed_extraction_stays_on_voice_capture(repository, clock):
    flow = build_flow(repository, clock, FakeAIClient(*[FakeAPIError(429)] * 3))
    session = flow.start_session()
    flow.submit_patient_details(session, make_details())

    with pytest.raises(ExtractionFailedError):
        await flow.extract(session, "dictation")
    assert session.screen is Screen.VOICE_CAPTURE
    assert session.prescription is None
    assert session.last_error == CapacityExceededError.USER_MESSAGE
    assert not session.in_flight
    assert len(repository) == 0


@pytest.mark.asyncio
async def test_second_extraction_while_running_is_ignored(repository, clock):
    extraction = BlockingExtraction()
    flow = build_flow(repository, clock, extraction=extraction)
    session = flow.start_session()
    flow.submit_patient_details(session, make_details())

    first = asyncio.ensure_future(flow.extract(session, "dictation"))
    await asyncio.sleep(0)
    assert await flow.extract(session, "dictation again") is None

    extraction.release.set()
    assert (await first) is not None
    assert extraction.calls == 1
    assert session.screen is Screen.REVIEW


@pytest.mark.asyncio
async def test_result_is_discarded_after_reset(repository, clock):
    extraction = BlockingExtraction()
    flow = build_flow(repository, clock, extraction=extraction)
    session = flow.start_session()
    flow.submit_patient_details(session, make_details())

    pending = asyncio.ensure_future(flow.extract(session, "dictation"))
    await asyncio.sleep(0)
    flow.reset(session)
    extraction.release.set()

    assert await pending is None
    assert session.screen is Screen.INTAKE
    assert session.prescription is None


@pytest.mark.asyncio
async def test_review_edits(repository, clock):
    flow = build_flow(repository, clock, FakeAIClient(VALID_RESPONSE))
    session = flow.start_session()
    await to_review(flow, session)

    flow.update_prescription_fields(session, follow_up="After 1 week")
    added = flow.add_medication(session)
    assert added.frequency is Frequency.OD and added.name == ""

    flow.update_medication(session, added.id, {"name": "Ibuprofen", "frequency": "prn"})
    assert session.prescription.get_medication(added.id).frequency is Frequency.PRN

    flow.update_medication(session, added.id, {"frequency": "Every 6 hours"})
    med = session.prescription.get_medication(added.id)
    assert med.frequency is Frequency.CUSTOM and med.custom_frequency == "Every 6 hours"

    first_id = session.prescription.medications[0].id
    flow.remove_medication(session, first_id)
    assert session.prescription.get_medication(first_id) is None
    assert session.prescription.follow_up == "After 1 week"

    with pytest.raises(MedicationNotFoundError):
        flow.remove_medication(session, "med-missing")
    with pytest.raises(ValueError):
        flow.update_medication(session, added.id, {"colour": "red"})


@pytest.mark.asyncio
async def test_history_view_never_commits(repository, clock):
    repository.commit_session(make_details(upid="AAAAAAAAAAAA"), make_prescription("Old visit"))
    stored = repository.lookup("AAAAAAAAAAAA").history[0]
    clock.advance(3600)

    flow = build_flow(repository, clock)
    session = flow.start_session()
    shown = flow.open_history(session, "AAAAAAAAAAAA", 0)

    assert session.screen is Screen.FINAL
    assert shown.date == stored.date
    assert len(repository.lookup("AAAAAAAAAAAA").history) == 1

    flow.back(session)
    flow.open_history(session, "AAAAAAAAAAAA", 0)
    assert len(repository.lookup("AAAAAAAAAAAA").history) == 1

    flow.back(session)
    with pytest.raises(HistoryEntryNotFoundError):
        flow.open_history(session, "AAAAAAAAAAAA", 5)
    with pytest.raises(PatientNotFoundError):
        flow.open_history(session, "BBBBBBBBBBBB", 0)


@pytest.mark.asyncio
async def test_illegal_transitions(repository, clock):
    flow = build_flow(repository, clock)
    session = flow.start_session()

    with pytest.raises(InvalidTransitionError):
        flow.finalize(session)
    with pytest.raises(InvalidTransitionError):
        await flow.extract(session, "dictation")
    with pytest.raises(InvalidTransitionError):
        await flow.send_prescription(session)
    with pytest.raises(InvalidTransitionError):
        flow.back(session)


@pytest.mark.asyncio
async def test_back_walks_screens(repository, clock):
    flow = build_flow(repository, clock, FakeAIClient(VALID_RESPONSE))
    session = flow.start_session()
    await to_review(flow, session)

    assert flow.back(session) is Screen.VOICE_CAPTURE
    assert flow.back(session) is Screen.INTAKE
    assert session.details is not None


@pytest.mark.asyncio
async def test_reset_issues_new_upid(repository, clock):
    flow = build_flow(repository, clock, FakeAIClient(VALID_RESPONSE))
    session = flow.start_session()
    original = session.upid
    await to_review(flow, session)

    flow.reset(session)
    assert session.screen is Screen.INTAKE
    assert session.upid != original
    assert session.details is None and session.prescription is None


@pytest.mark.asyncio
async def test_send_prescription_from_final(repository, clock):
    flow = build_flow(repository, clock, FakeAIClient(VALID_RESPONSE))
    session = flow.start_session()
    await to_review(flow, session)
    flow.finalize(session)

    receipt = await flow.send_prescription(session)
    assert receipt.success
    assert receipt.recipient == "asha@example.com"
    assert not session.in_flight


@pytest.mark.asyncio
async def test_summary_and_delete(repository, clock):
    repository.commit_session(make_details(upid="AAAAAAAAAAAA"), make_prescription())
    flow = build_flow(repository, clock, FakeAIClient("Stable patient. Improving. No concerns."))
    session = flow.start_session()

    assert await flow.generate_summary("AAAAAAAAAAAA", session) == "Stable patient. Improving. No concerns."
    assert not session.in_flight

    with pytest.raises(ConfirmationRequiredError):
        flow.delete_record("AAAAAAAAAAAA", session=session)
    assert repository.lookup("AAAAAAAAAAAA") is not None

    before = session.upid
    flow.delete_record("AAAAAAAAAAAA", confirmed=True, session=session)
    assert repository.lookup("AAAAAAAAAAAA") is None
    assert session.upid != before
    with pytest.raises(PatientNotFoundError):
        flow.delete_record("AAAAAAAAAAAA", confirmed=True)

