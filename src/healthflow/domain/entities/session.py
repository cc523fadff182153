"""Consultation session: the transient context carried between screens."""

import uuid
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional, Set

from ..enums.workflow import Screen
from .patient import PatientDetails
from .prescription import PrescriptionData
from ...core.utils.datetime_utils import get_current_timestamp


@dataclass
class ConsultationSession:
    """Everything one consultation holds before it is committed."""

    upid: str
    session_id: str = field(default_factory=lambda: uuid.uuid4().hex)
    screen: Screen = Screen.INTAKE
    details: Optional[PatientDetails] = None
    transcription: str = ""
    prescription: Optional[PrescriptionData] = None
    last_error: Optional[str] = None
    in_flight: Set[str] = field(default_factory=set)
    created_at: datetime = field(default_factory=get_current_timestamp)
    updated_at: datetime = field(default_factory=get_current_timestamp)

    def try_begin(self, action: str) -> bool:
        """Mark ``action`` as outstanding; False if it already is."""
        if action in self.in_flight:
            return False
        self.in_flight.add(action)
        return True

    def finish(self, action: str) -> None:
        self.in_flight.discard(action)

    def move_to(self, screen: Screen) -> None:
        self.screen = screen
        self.updated_at = get_current_timestamp()

    def clear(self, upid: str) -> None:
        """Drop all consultation data and start over under a new UPID."""
        self.upid = upid
        self.details = None
        self.transcription = ""
        self.prescription = None
        self.last_error = None
        self.move_to(Screen.INTAKE)
