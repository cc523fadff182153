"""
History summary client.
"""

import pytest

from healthflow.adapters.external.summary_service_openai import (
    SUMMARY_UNAVAILABLE,
    OpenAISummaryService,
    build_history_digest,
)
from healthflow.application.ports.services.summary_service import NO_HISTORY_MESSAGE
from healthflow.core.exceptions import CapacityExceededError, SummaryFailedError

from conftest import BASE_TIME, FakeAIClient, FakeAPIError, make_prescription


def make_service(client, fake_sleep):
    return OpenAISummaryService(ai_client=client, max_retries=2, initial_delay=1.0, sleep=fake_sleep)


@pytest.mark.asyncio
async def test_empty_history_skips_ai_call(fake_sleep):
    client = FakeAIClient()
    summary = await make_service(client, fake_sleep).generate_history_summary("Asha", [])
    assert summary == NO_HISTORY_MESSAGE
    assert client.calls == []


@pytest.mark.asyncio
async def test_summary_prompt_lists_history(fake_sleep):
    client = FakeAIClient("  Recurring throat infections. Responds to antibiotics. Stable.  ")
    history = [make_prescription("Pharyngitis", date=BASE_TIME), make_prescription("Tonsillitis")]
    summary = await make_service(client, fake_sleep).generate_history_summary("Asha", history)

    assert summary == "Recurring throat infections. Responds to antibiotics. Stable."
    prompt = client.calls[0]["prompt"]
    assert "patient Asha" in prompt
    assert "3-sentence" in prompt
    assert "Diagnosis: Pharyngitis" in prompt
    assert "Date: Unknown" in prompt


@pytest.mark.asyncio
async def test_empty_answer_is_reported_as_unavailable(fake_sleep):
    client = FakeAIClient("   ")
    summary = await make_service(client, fake_sleep).generate_history_summary("Asha", [make_prescription()])
    assert summary == SUMMARY_UNAVAILABLE


@pytest.mark.asyncio
async def test_capacity_exhaustion_raises_summary_error(fake_sleep):
    client = FakeAIClient(FakeAPIError(429), FakeAPIError(429))
    with pytest.raises(SummaryFailedError) as exc_info:
        await make_service(client, fake_sleep).generate_history_summary("Asha", [make_prescription()])
    assert isinstance(exc_info.value.cause, CapacityExceededError)
    assert fake_sleep.delays == [1.0]


@pytest.mark.asyncio
async def test_other_failures_use_generic_message(fake_sleep):
    client = FakeAIClient(FakeAPIError(401, "invalid key"))
    with pytest.raises(SummaryFailedError) as exc_info:
        await make_service(client, fake_sleep).generate_history_summary("Asha", [make_prescription()])
    assert exc_info.value.user_message == "Failed to generate AI summary."


def test_history_digest_format():
    digest = build_history_digest([make_prescription("Fever", date=BASE_TIME)])
    assert digest == f"Date: {BASE_TIME.isoformat()}, Diagnosis: Fever, Medications: Paracetamol"
