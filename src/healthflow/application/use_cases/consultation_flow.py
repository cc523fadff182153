"""Consultation flow use case: the four-screen state machine.

Screens run ``INTAKE -> VOICE_CAPTURE -> REVIEW -> FINAL``, with a direct
``INTAKE -> FINAL`` path for viewing a stored prescription. The session
object is passed in explicitly; the record repository is the only durable
state.
"""

import logging
from typing import Callable, Dict, List, Optional

from ...core.exceptions import ExtractionFailedError, SummaryFailedError
from ...core.utils.datetime_utils import get_current_timestamp
from ...domain.entities.patient import PatientDetails, PatientRecord
from ...domain.entities.prescription import Medication, PrescriptionData
from ...domain.entities.session import ConsultationSession
from ...domain.enums.frequency import Frequency
from ...domain.enums.workflow import Screen
from ...domain.errors import (
    ConfirmationRequiredError,
    HistoryEntryNotFoundError,
    InvalidTransitionError,
    MedicationNotFoundError,
    PatientNotFoundError,
    PatientValidationError,
)
from ..ports.repositories.record_repo import RecordRepository
from ..ports.services.email_service import EmailReceipt, EmailService
from ..ports.services.extraction_service import ExtractionService
from ..ports.services.summary_service import SummaryService

logger = logging.getLogger(__name__)

EXTRACT = "extract"
SUMMARY = "summary"
SEND = "send"

_EDITABLE_MEDICATION_FIELDS = {"name", "dosage", "frequency", "duration", "instructions"}

_BACK = {
    Screen.VOICE_CAPTURE: Screen.INTAKE,
    Screen.REVIEW: Screen.VOICE_CAPTURE,
    Screen.FINAL: Screen.INTAKE,
}


class ConsultationFlowUseCase:
    """Drives a consultation session through its screens."""

    def __init__(
        self,
        record_repository: RecordRepository,
        extraction_service: ExtractionService,
        summary_service: SummaryService,
        email_service: EmailService,
        clock: Callable = get_current_timestamp,
    ):
        self._records = record_repository
        self._extraction_service = extraction_service
        self._summary_service = summary_service
        self._email_service = email_service
        self._clock = clock

    # ------------------------------------------------------------------
    # Session lifecycle
    # ------------------------------------------------------------------

    def start_session(self) -> ConsultationSession:
        """New session on the intake screen with a fresh UPID."""
        session = ConsultationSession(upid=self._records.new_upid())
        logger.info(f"Started session {session.session_id} for UPID {session.upid}")
        return session

    def reset(self, session: ConsultationSession) -> None:
        """Discard everything in the session and return to intake."""
        session.clear(self._records.new_upid())
        logger.info(f"Reset session {session.session_id}, new UPID {session.upid}")

    def back(self, session: ConsultationSession) -> Screen:
        target = _BACK.get(session.screen)
        if target is None:
            raise InvalidTransitionError("go back", session.screen.value)
        session.move_to(target)
        return target

    # ------------------------------------------------------------------
    # Intake
    # ------------------------------------------------------------------

    def submit_patient_details(
        self, session: ConsultationSession, details: PatientDetails
    ) -> None:
        """Validate intake details and move to voice capture.

        Details naming an existing record keep that record's UPID so the new
        prescription joins its history; otherwise the session UPID is used.
        """
        self._require(session, Screen.INTAKE, "submit patient details")

        errors = details.validate()
        if errors:
            raise PatientValidationError(errors)

        if details.upid and self._records.lookup(details.upid) is not None:
            session.upid = details.upid.strip().upper()
        details.upid = session.upid

        session.details = details
        session.last_error = None
        session.move_to(Screen.VOICE_CAPTURE)

    def lookup_record(self, upid: str) -> PatientRecord:
        record = self._records.lookup(upid)
        if record is None:
            raise PatientNotFoundError(upid.strip().upper())
        return record

    def recent_records(self, limit: int = 3) -> List[PatientRecord]:
        return self._records.recent_records(limit)

    def open_history(
        self, session: ConsultationSession, upid: str, index: int = 0
    ) -> PrescriptionData:
        """Show a stored prescription on the final screen without committing."""
        self._require(session, Screen.INTAKE, "open a past prescription")
        record = self.lookup_record(upid)
        prescription = record.get_prescription(index)
        if prescription is None:
            raise HistoryEntryNotFoundError(record.upid, index)

        session.upid = record.upid
        session.details = record.details
        session.prescription = prescription
        self._enter_final(session)
        return prescription

    def delete_record(
        self,
        upid: str,
        confirmed: bool = False,
        session: Optional[ConsultationSession] = None,
    ) -> None:
        """Permanently delete a patient's record, then reset the session if given."""
        if not confirmed:
            raise ConfirmationRequiredError("delete record")
        if not self._records.delete_record(upid):
            raise PatientNotFoundError(upid.strip().upper())
        if session is not None:
            self.reset(session)

    async def generate_summary(
        self, upid: str, session: Optional[ConsultationSession] = None
    ) -> Optional[str]:
        """AI summary of a patient's history.

        With a session, only one summary runs at a time and a second request
        returns None.
        """
        record = self.lookup_record(upid)
        if session is not None and not session.try_begin(SUMMARY):
            logger.info(f"Summary already in progress for session {session.session_id}")
            return None
        try:
            return await self._summary_service.generate_history_summary(
                record.details.name, record.history
            )
        except SummaryFailedError as e:
            if session is not None:
                session.last_error = e.user_message
            raise
        finally:
            if session is not None:
                session.finish(SUMMARY)

    # ------------------------------------------------------------------
    # Voice capture
    # ------------------------------------------------------------------

    async def extract(
        self, session: ConsultationSession, transcription: str
    ) -> Optional[PrescriptionData]:
        """Extract a draft prescription and move to review.

        Returns None when an extraction is already running for the session.
        On failure the session stays on voice capture with ``last_error`` set.
        """
        self._require(session, Screen.VOICE_CAPTURE, "extract a prescription")
        if not session.try_begin(EXTRACT):
            logger.info(f"Extraction already in progress for session {session.session_id}")
            return None

        upid = session.upid
        session.transcription = transcription
        session.last_error = None
        try:
            prescription = await self._extraction_service.extract_prescription(transcription)
        except ExtractionFailedError as e:
            session.last_error = e.user_message
            raise
        except ValueError as e:
            session.last_error = str(e)
            raise
        finally:
            session.finish(EXTRACT)

        if session.upid != upid or session.screen is not Screen.VOICE_CAPTURE:
            logger.warning(f"Session {session.session_id} changed during extraction; result discarded")
            return None

        session.prescription = prescription
        session.move_to(Screen.REVIEW)
        return prescription

    # ------------------------------------------------------------------
    # Review
    # ------------------------------------------------------------------

    def update_prescription_fields(
        self,
        session: ConsultationSession,
        diagnosis: Optional[str] = None,
        advice: Optional[str] = None,
        follow_up: Optional[str] = None,
    ) -> PrescriptionData:
        prescription = self._draft(session, "edit the prescription")
        if diagnosis is not None:
            prescription.diagnosis = diagnosis
        if advice is not None:
            prescription.advice = advice
        if follow_up is not None:
            prescription.follow_up = follow_up
        return prescription

    def add_medication(self, session: ConsultationSession) -> Medication:
        prescription = self._draft(session, "add a medication")
        medication = Medication(frequency=Frequency.OD)
        prescription.medications.append(medication)
        return medication

    def update_medication(
        self, session: ConsultationSession, medication_id: str, changes: Dict[str, str]
    ) -> Medication:
        prescription = self._draft(session, "edit a medication")
        medication = prescription.get_medication(medication_id)
        if medication is None:
            raise MedicationNotFoundError(medication_id)

        unknown = set(changes) - _EDITABLE_MEDICATION_FIELDS
        if unknown:
            raise ValueError(f"Unknown medication fields: {sorted(unknown)}")

        for name, value in changes.items():
            if name == "frequency":
                updated = Medication.from_label("", "", value, "", "")
                medication.frequency = updated.frequency
                medication.custom_frequency = updated.custom_frequency
            else:
                setattr(medication, name, value)
        return medication

    def remove_medication(self, session: ConsultationSession, medication_id: str) -> None:
        prescription = self._draft(session, "remove a medication")
        if prescription.get_medication(medication_id) is None:
            raise MedicationNotFoundError(medication_id)
        prescription.medications = [m for m in prescription.medications if m.id != medication_id]

    def finalize(self, session: ConsultationSession) -> PrescriptionData:
        """Move from review to the final screen, committing the prescription."""
        self._draft(session, "finalize the prescription")
        self._enter_final(session)
        return session.prescription

    # ------------------------------------------------------------------
    # Final
    # ------------------------------------------------------------------

    async def send_prescription(self, session: ConsultationSession) -> Optional[EmailReceipt]:
        """Email the final prescription; None if a send is already running."""
        self._require(session, Screen.FINAL, "send the prescription")
        if not session.try_begin(SEND):
            logger.info(f"Send already in progress for session {session.session_id}")
            return None
        try:
            return await self._email_service.send_prescription(session.details, session.prescription)
        finally:
            session.finish(SEND)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _enter_final(self, session: ConsultationSession) -> None:
        """Entering FINAL commits exactly once: only unstamped prescriptions are saved."""
        if session.prescription is not None and not session.prescription.is_finalized:
            stamped = session.prescription.stamped(self._clock())
            committed = self._records.commit_session(session.details, stamped)
            session.prescription = stamped
            if not committed:
                logger.info(f"Commit for {session.upid} skipped as a duplicate")
        session.move_to(Screen.FINAL)

    def _draft(self, session: ConsultationSession, action: str) -> PrescriptionData:
        self._require(session, Screen.REVIEW, action)
        if session.prescription is None:
            raise InvalidTransitionError(action, session.screen.value)
        return session.prescription

    @staticmethod
    def _require(session: ConsultationSession, screen: Screen, action: str) -> None:
        if session.screen is not screen:
            raise InvalidTransitionError(action, session.screen.value)
