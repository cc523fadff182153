"""Patient domain entities: intake details and the stored patient record."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, List, Optional, Union

from ..enums.gender import Gender
from .prescription import PrescriptionData

PHONE_PATTERN = re.compile(r"^(?:\+91|0)?[6-9]\d{9}$")
EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
NO_ALLERGIES = "none"


@dataclass
class PatientDetails:
    """Patient details captured on the intake screen.

    Values are kept as entered; ``validate`` reports what is wrong with them
    instead of raising, so every failing field can be shown at once.
    """

    name: str = ""
    age: Union[int, str, None] = None
    gender: Union[Gender, str] = Gender.MALE
    upid: str = ""
    phone: str = ""
    email: str = ""
    allergies: str = ""

    def __post_init__(self) -> None:
        if isinstance(self.gender, str) and not isinstance(self.gender, Gender):
            try:
                self.gender = Gender(self.gender)
            except ValueError:
                # Left as text; reported by validate()
                pass
        if isinstance(self.age, str) and self.age.strip().isdigit():
            self.age = int(self.age.strip())

    def validate(self) -> Dict[str, str]:
        """Return a field -> message map; empty when the details are valid."""
        errors: Dict[str, str] = {}

        if not (self.name or "").strip():
            errors["name"] = "Patient name is required"

        if self.age is None or self.age == "":
            errors["age"] = "Age is required"
        elif isinstance(self.age, bool) or not isinstance(self.age, int) or not 1 <= self.age <= 120:
            errors["age"] = "Enter a valid age (1-120)"

        if not isinstance(self.gender, Gender):
            errors["gender"] = "Select a valid gender"

        if not PHONE_PATTERN.match(self.phone or ""):
            errors["phone"] = "Enter a valid 10-digit phone number"

        if not EMAIL_PATTERN.match(self.email or ""):
            errors["email"] = "Enter a valid email address"

        return errors

    def is_valid(self) -> bool:
        return not self.validate()

    @property
    def allergy_list(self) -> List[str]:
        """Individual allergies, without blanks or the 'none' sentinel."""
        items = [a.strip() for a in (self.allergies or "").split(",")]
        return [a for a in items if a and a.lower() != NO_ALLERGIES]

    @property
    def has_allergies(self) -> bool:
        return bool(self.allergy_list)


@dataclass
class PatientRecord:
    """Stored patient: latest details snapshot plus prescription history.

    History is ordered newest first.
    """

    details: PatientDetails
    history: List[PrescriptionData] = field(default_factory=list)

    @property
    def upid(self) -> str:
        return self.details.upid

    @property
    def last_visit(self) -> Optional[datetime]:
        """Timestamp of the most recent prescription, if any."""
        if self.history and self.history[0].date:
            return self.history[0].date
        return None

    def get_prescription(self, index: int) -> Optional[PrescriptionData]:
        if 0 <= index < len(self.history):
            return self.history[index]
        return None
