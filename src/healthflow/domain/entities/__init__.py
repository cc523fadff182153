"""
Domain entities package.
"""

from .patient import PatientDetails, PatientRecord
from .prescription import Medication, PrescriptionData, new_medication_id
from .session import ConsultationSession

__all__ = [
    "PatientDetails",
    "PatientRecord",
    "Medication",
    "PrescriptionData",
    "ConsultationSession",
    "new_medication_id",
]
