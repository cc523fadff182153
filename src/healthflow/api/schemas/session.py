"""
Pydantic schemas for consultation sessions.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from ...application.ports.services.email_service import EmailReceipt
from ...domain.entities.session import ConsultationSession
from .patient import PatientDetailsSchema
from .prescription import PrescriptionSchema


class SessionSchema(BaseModel):
    """Current screen and everything the session holds."""

    session_id: str
    upid: str
    screen: str
    details: Optional[PatientDetailsSchema] = None
    transcription: str = ""
    prescription: Optional[PrescriptionSchema] = None
    last_error: Optional[str] = None
    busy: bool = Field(False, description="True while an AI or email action is outstanding")
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_domain(cls, session: ConsultationSession) -> "SessionSchema":
        return cls(
            session_id=session.session_id,
            upid=session.upid,
            screen=session.screen.value,
            details=PatientDetailsSchema.from_domain(session.details) if session.details else None,
            transcription=session.transcription,
            prescription=PrescriptionSchema.from_domain(session.prescription) if session.prescription else None,
            last_error=session.last_error,
            busy=bool(session.in_flight),
            created_at=session.created_at,
            updated_at=session.updated_at,
        )


class ExtractRequest(BaseModel):
    transcription: str = Field(..., description="Dictated consultation text")


class EmailReceiptSchema(BaseModel):
    success: bool
    message_id: str
    sender: str
    recipient: str
    timestamp: datetime

    @classmethod
    def from_domain(cls, receipt: EmailReceipt) -> "EmailReceiptSchema":
        return cls(
            success=receipt.success,
            message_id=receipt.message_id,
            sender=receipt.sender,
            recipient=receipt.recipient,
            timestamp=receipt.timestamp,
        )
