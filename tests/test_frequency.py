"""
Frequency normalization and medication display.
"""

import pytest

from healthflow.domain.entities.prescription import Medication
from healthflow.domain.enums.frequency import Frequency


@pytest.mark.parametrize(
    "label, expected",
    [
        ("Once Daily (OD)", Frequency.OD),
        ("Twice Daily (BD)", Frequency.BD),
        ("Thrice Daily (TDS)", Frequency.TDS),
        ("Four times daily (QID)", Frequency.QID),
        ("As needed (PRN)", Frequency.PRN),
        ("Custom", Frequency.CUSTOM),
        ("bd", Frequency.BD),
        (" PRN ", Frequency.PRN),
        ("every other Tuesday", Frequency.CUSTOM),
        ("", Frequency.CUSTOM),
        (None, Frequency.CUSTOM),
    ],
)
def test_parse(label, expected):
    assert Frequency.parse(label) is expected


def test_display_codes():
    assert Frequency.BD.display() == ("1-0-1", "One tablet morning and night")
    assert Frequency.PRN.display() == ("As needed", "Take when required")
    assert Frequency.CUSTOM.display("Alternate days") == ("-", "Alternate days")
    assert Frequency.CUSTOM.display() == ("-", "Custom")


def test_unknown_label_is_kept_as_custom_text():
    med = Medication.from_label("Vitamin D", "60000 IU", "Once a week", "8 weeks", "")
    assert med.frequency is Frequency.CUSTOM
    assert med.custom_frequency == "Once a week"
    assert med.frequency_label == "Once a week"
    assert med.frequency_display() == ("-", "Once a week")


def test_known_label_has_no_custom_text():
    med = Medication.from_label("Cetirizine", "10mg", "Once Daily (OD)", "3 days", "At night")
    assert med.frequency is Frequency.OD
    assert med.custom_frequency is None
    assert med.id.startswith("med-")
