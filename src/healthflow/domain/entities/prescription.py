"""Prescription domain entities."""

import copy
import uuid
from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import List, Optional, Tuple

from ..enums.frequency import Frequency


def new_medication_id() -> str:
    """Identifier unique within a consultation session."""
    return f"med-{uuid.uuid4().hex[:12]}"


@dataclass
class Medication:
    """One prescribed medication line."""

    name: str = ""
    dosage: str = ""
    frequency: Frequency = Frequency.OD
    duration: str = ""
    instructions: str = ""
    id: str = field(default_factory=new_medication_id)
    # Free text kept when frequency is CUSTOM
    custom_frequency: Optional[str] = None

    @classmethod
    def from_label(
        cls,
        name: str,
        dosage: str,
        frequency_label: Optional[str],
        duration: str,
        instructions: str,
        medication_id: Optional[str] = None,
    ) -> "Medication":
        """Build a medication from a raw frequency label, normalizing it."""
        frequency = Frequency.parse(frequency_label)
        custom = None
        if frequency is Frequency.CUSTOM and frequency_label and frequency_label.strip() != Frequency.CUSTOM.value:
            custom = frequency_label.strip()
        return cls(
            name=name,
            dosage=dosage,
            frequency=frequency,
            duration=duration,
            instructions=instructions,
            id=medication_id or new_medication_id(),
            custom_frequency=custom,
        )

    @property
    def frequency_label(self) -> str:
        """Label as shown to the doctor; custom text wins for CUSTOM."""
        if self.frequency is Frequency.CUSTOM and self.custom_frequency:
            return self.custom_frequency
        return self.frequency.value

    def frequency_display(self) -> Tuple[str, str]:
        return self.frequency.display(self.custom_frequency)


@dataclass
class PrescriptionData:
    """A prescription draft, or a finalized one once ``date`` is set.

    A prescription carrying a ``date`` is part of a patient's history and is
    not edited again.
    """

    diagnosis: str = ""
    medications: List[Medication] = field(default_factory=list)
    advice: str = ""
    follow_up: str = ""
    date: Optional[datetime] = None

    @property
    def is_finalized(self) -> bool:
        return self.date is not None

    @property
    def diagnosis_lines(self) -> List[str]:
        return _lines(self.diagnosis)

    @property
    def advice_lines(self) -> List[str]:
        return _lines(self.advice)

    def get_medication(self, medication_id: str) -> Optional[Medication]:
        for medication in self.medications:
            if medication.id == medication_id:
                return medication
        return None

    def stamped(self, when: datetime) -> "PrescriptionData":
        """Independent copy carrying the completion timestamp."""
        return replace(self.clone(), date=when)

    def clone(self) -> "PrescriptionData":
        return copy.deepcopy(self)


def _lines(text: str) -> List[str]:
    return [line.strip() for line in (text or "").split("\n") if line.strip()]
