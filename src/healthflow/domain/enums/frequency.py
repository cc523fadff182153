"""
Medication dosing frequency.

The six labels are the only values the extraction prompt allows. Anything
else coming back from the model is kept as free text under ``CUSTOM``.
"""

from enum import Enum
from typing import Optional, Tuple


class Frequency(str, Enum):
    """Dosing frequency labels."""
    OD = "Once Daily (OD)"
    BD = "Twice Daily (BD)"
    TDS = "Thrice Daily (TDS)"
    QID = "Four times daily (QID)"
    PRN = "As needed (PRN)"
    CUSTOM = "Custom"

    @classmethod
    def parse(cls, label: Optional[str]) -> "Frequency":
        """Map a label (or bare abbreviation such as ``bd``) to a frequency.

        Unrecognized or empty labels map to ``CUSTOM`` instead of failing.
        """
        if not label:
            return cls.CUSTOM
        text = label.strip()
        for member in cls:
            if text == member.value:
                return member
        upper = text.upper()
        if upper in cls.__members__ and upper != "CUSTOM":
            return cls[upper]
        return cls.CUSTOM

    def display(self, custom_text: Optional[str] = None) -> Tuple[str, str]:
        """(code, text) pair printed on the prescription."""
        if self is Frequency.CUSTOM:
            return "-", custom_text or self.value
        return _DISPLAY[self]


_DISPLAY = {
    Frequency.OD: ("1-0-0", "One tablet in morning"),
    Frequency.BD: ("1-0-1", "One tablet morning and night"),
    Frequency.TDS: ("1-1-1", "One tablet thrice daily"),
    Frequency.QID: ("1-1-1-1", "One tablet four times daily"),
    Frequency.PRN: ("As needed", "Take when required"),
}
