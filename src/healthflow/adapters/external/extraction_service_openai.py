"""
Azure OpenAI implementation of ExtractionService.
"""

import json
import logging
from typing import Awaitable, Callable, List, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from healthflow.application.ports.services.extraction_service import ExtractionService
from healthflow.core.ai_client import AzureAIClient
from healthflow.core.ai_factory import get_ai_client
from healthflow.core.config import get_settings
from healthflow.core.exceptions import ExtractionFailedError
from healthflow.core.retry import call_with_retry
from healthflow.domain.entities.prescription import Medication, PrescriptionData
from healthflow.domain.enums.frequency import Frequency

_FREQUENCY_CHOICES = ", ".join(f.value for f in Frequency)

SYSTEM_PROMPT = f"""You extract clinical prescription details from a doctor's dictation.
Respond with a single JSON object and nothing else, using exactly these keys:
- "diagnosis": string, one clinical finding per line
- "medications": array of objects, each with string fields "name", "dosage",
  "frequency", "duration", "instructions"
- "advice": string, one instruction per line
- "followUp": string
"frequency" must be one of: {_FREQUENCY_CHOICES}.
Use empty strings for anything the dictation does not mention."""


class ExtractedMedication(BaseModel):
    """Medication as returned by the model, before normalization."""
    name: str
    dosage: str
    frequency: str
    duration: str
    instructions: str


class ExtractionPayload(BaseModel):
    """Required shape of the model's JSON answer."""
    model_config = ConfigDict(populate_by_name=True)

    diagnosis: str
    medications: List[ExtractedMedication]
    advice: str
    follow_up: str = Field(..., alias="followUp")


class OpenAIExtractionService(ExtractionService):
    """Azure OpenAI implementation of ExtractionService."""

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
        # Created on first use so the service can be wired without AI credentials
        if self._client is None:
            self._client = get_ai_client()
        return self._client

    async def extract_prescription(self, transcription: str) -> PrescriptionData:
        if not transcription or not transcription.strip():
            raise ValueError("Transcription cannot be empty")

        prompt = f'Extract clinical prescription details from this doctor\'s transcription: "{transcription.strip()}"'

        async def _call() -> str:
            return await self._get_client().complete_text(
                prompt,
                system_prompt=SYSTEM_PROMPT,
                json_mode=True,
                temperature=self._settings.openai.temperature,
                max_tokens=self._settings.openai.max_tokens,
            )

        try:
            raw = await call_with_retry(
                _call,
                max_retries=self._max_retries,
                initial_delay=self._initial_delay,
                sleep=self._sleep,
            )
        except Exception as e:
            self._logger.error(f"[ExtractionService] AI call failed: {e}")
            raise ExtractionFailedError(e) from e

        prescription = self.parse_response(raw)
        self._logger.info(
            f"[ExtractionService] Extracted {len(prescription.medications)} medications"
        )
        return prescription

    def parse_response(self, raw: str) -> PrescriptionData:
        """Validate the model's JSON and build a draft prescription.

        Each medication gets a fresh id; unknown frequency labels become CUSTOM.
        """
        try:
            payload = ExtractionPayload.model_validate(json.loads(raw or ""))
        except (json.JSONDecodeError, ValidationError) as e:
            self._logger.error(f"[ExtractionService] Malformed extraction response: {e}")
            raise ExtractionFailedError(e, {"raw_response": (raw or "")[:500]}) from e

        medications = [
            Medication.from_label(
                name=m.name,
                dosage=m.dosage,
                frequency_label=m.frequency,
                duration=m.duration,
                instructions=m.instructions,
            )
            for m in payload.medications
        ]
        return PrescriptionData(
            diagnosis=payload.diagnosis,
            medications=medications,
            advice=payload.advice,
            follow_up=payload.follow_up,
        )
