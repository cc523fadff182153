"""
Simulated EmailService.

No mail leaves the process: the transmission is logged after an artificial
delay and a receipt is returned. A real SMTP or API transport would implement
the same port.
"""

import asyncio
import logging
import secrets
import string
from typing import Awaitable, Callable, Optional

from healthflow.application.ports.services.email_service import EmailReceipt, EmailService
from healthflow.core.config import get_settings
from healthflow.core.utils.datetime_utils import get_current_timestamp
from healthflow.domain.entities.patient import PatientDetails
from healthflow.domain.entities.prescription import PrescriptionData

_MESSAGE_ID_ALPHABET = string.digits + string.ascii_lowercase


def generate_message_id() -> str:
    return "msg_" + "".join(secrets.choice(_MESSAGE_ID_ALPHABET) for _ in range(9))


class SimulatedEmailService(EmailService):
    """EmailService that only pretends to send."""

    def __init__(
        self,
        sender: Optional[str] = None,
        delay_seconds: Optional[float] = None,
        sleep: Optional[Callable[[float], Awaitable[None]]] = None,
    ):
        settings = get_settings()
        self._sender = sender or settings.email.sender
        self._delay = delay_seconds if delay_seconds is not None else settings.email.simulated_delay_seconds
        self._sleep = sleep or asyncio.sleep
        self._logger = logging.getLogger("healthflow")

    async def send_prescription(
        self, patient: PatientDetails, prescription: PrescriptionData
    ) -> EmailReceipt:
        if self._delay > 0:
            await self._sleep(self._delay)
        receipt = EmailReceipt(
            success=True,
            message_id=generate_message_id(),
            sender=self._sender,
            recipient=patient.email,
            timestamp=get_current_timestamp(),
        )
        self._logger.info(
            f"[EmailService] Transmission from {self._sender} to {patient.email} completed "
            f"({len(prescription.medications)} medications, id={receipt.message_id})"
        )
        return receipt
