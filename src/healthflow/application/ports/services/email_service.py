"""
Email service interface for sending a finalized prescription to the patient.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime

from ....domain.entities.patient import PatientDetails
from ....domain.entities.prescription import PrescriptionData


@dataclass(frozen=True)
class EmailReceipt:
    """Outcome of a prescription email."""

    success: bool
    message_id: str
    sender: str
    recipient: str
    timestamp: datetime


class EmailService(ABC):
    """Abstract prescription email transport."""

    @abstractmethod
    async def send_prescription(
        self, patient: PatientDetails, prescription: PrescriptionData
    ) -> EmailReceipt:
        """Send ``prescription`` to the patient's email address."""
        pass
