"""
API schemas package.
"""

from .common import ApiResponse, ErrorResponse
from .patient import (
    PatientDetailsRequest,
    PatientDetailsSchema,
    PatientRecordSchema,
    RecordSummaryResponse,
)
from .prescription import (
    MedicationSchema,
    PrescriptionSchema,
    UpdateMedicationRequest,
    UpdatePrescriptionRequest,
)
from .session import EmailReceiptSchema, ExtractRequest, SessionSchema

__all__ = [
    "ApiResponse",
    "ErrorResponse",
    "PatientDetailsRequest",
    "PatientDetailsSchema",
    "PatientRecordSchema",
    "RecordSummaryResponse",
    "MedicationSchema",
    "PrescriptionSchema",
    "UpdateMedicationRequest",
    "UpdatePrescriptionRequest",
    "EmailReceiptSchema",
    "ExtractRequest",
    "SessionSchema",
]
