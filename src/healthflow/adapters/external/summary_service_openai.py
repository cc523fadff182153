"""
Azure OpenAI implementation of SummaryService.
"""

import logging
from typing import Awaitable, Callable, Optional, Sequence

from healthflow.application.ports.services.summary_service import (
    NO_HISTORY_MESSAGE,
    SummaryService,
)
from healthflow.core.ai_client import AzureAIClient
from healthflow.core.ai_factory import get_ai_client
from healthflow.core.config import get_settings
from healthflow.core.exceptions import SummaryFailedError
from healthflow.core.retry import call_with_retry
from healthflow.domain.entities.prescription import PrescriptionData

SUMMARY_UNAVAILABLE = "Summary unavailable."


def build_history_digest(history: Sequence[PrescriptionData]) -> str:
    """One line per prescription: date, diagnosis and medication names."""
    lines = []
    for entry in history:
        date = entry.date.isoformat() if entry.date else "Unknown"
        names = ", ".join(m.name for m in entry.medications)
        lines.append(f"Date: {date}, Diagnosis: {entry.diagnosis}, Medications: {names}")
    return "\n".join(lines)


class OpenAISummaryService(SummaryService):
    """Azure OpenAI implementation of SummaryService."""

    def __init__(
        self,
        ai_client: Optional[AzureAIClient] = None,
        max_retries: Optional[int] = None,
        initial_delay: Optional[float] = None,
        sleep: Optional[Callable[[float], Awaitable[None]]] = None,
    ):
        self._settings = get_settings()
        self._client = ai_client
        self._max_retries = max_retries or self._settings.retry.max_retries
        self._initial_delay = (
            initial_delay if initial_delay is not None else self._settings.retry.initial_delay_seconds
        )
        self._sleep = sleep
        self._logger = logging.getLogger("healthflow")

    def _get_client(self) -> AzureAIClient:
        if self._client is None:
            self._client = get_ai_client()
        return self._client

    async def generate_history_summary(
        self, patient_name: str, history: Sequence[PrescriptionData]
    ) -> str:
        if not history:
            return NO_HISTORY_MESSAGE

        prompt = (
            f"Based on the following medical history for patient {patient_name}, provide a concise, "
            f"professional 3-sentence clinical summary of their progress and recurring issues:\n\n"
            f"{build_history_digest(history)}"
        )

        async def _call() -> str:
            return await self._get_client().complete_text(
                prompt,
                temperature=self._settings.openai.temperature,
                max_tokens=self._settings.openai.max_tokens,
            )

        try:
            text = await call_with_retry(
                _call,
                max_retries=self._max_retries,
                initial_delay=self._initial_delay,
                sleep=self._sleep,
            )
        except Exception as e:
            self._logger.error(f"[SummaryService] AI call failed: {e}")
            raise SummaryFailedError(e) from e

        return text.strip() or SUMMARY_UNAVAILABLE
