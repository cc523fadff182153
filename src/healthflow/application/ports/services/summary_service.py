"""
Summary service interface for patient history overviews.
"""

from abc import ABC, abstractmethod
from typing import Sequence

from ....domain.entities.prescription import PrescriptionData

NO_HISTORY_MESSAGE = "No prior history available for analysis."


class SummaryService(ABC):
    """Abstract service summarizing a patient's prescription history."""

    @abstractmethod
    async def generate_history_summary(
        self, patient_name: str, history: Sequence[PrescriptionData]
    ) -> str:
        """
        Produce a short clinical summary of past prescriptions.

        Returns NO_HISTORY_MESSAGE without calling the AI service when
        ``history`` is empty.

        Raises:
            SummaryFailedError: the AI call failed
        """
        pass
