"""
Extraction service interface for turning dictation into a prescription.
"""

from abc import ABC, abstractmethod

from ....domain.entities.prescription import PrescriptionData


class ExtractionService(ABC):
    """Abstract service extracting structured prescriptions from free text."""

    @abstractmethod
    async def extract_prescription(self, transcription: str) -> PrescriptionData:
        """
        Extract diagnosis, medications, advice and follow-up from dictation.

        Args:
            transcription: Non-empty doctor's dictation

        Returns:
            Draft prescription (no completion timestamp); every medication
            carries a fresh id and a normalized frequency

        Raises:
            ValueError: transcription is blank
            ExtractionFailedError: the AI call failed or returned malformed data
        """
        pass
