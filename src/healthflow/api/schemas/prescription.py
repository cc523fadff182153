"""
Pydantic schemas for prescription-related API endpoints.
"""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from ...domain.entities.prescription import Medication, PrescriptionData


class MedicationSchema(BaseModel):
    """One medication line as shown on the review and final screens."""

    id: str = Field(..., description="Medication ID, unique within the session")
    name: str = Field("", description="Name of the medicine")
    dosage: str = Field("", description="Dosage information")
    frequency: str = Field(..., description="Frequency label")
    frequency_code: str = Field(..., description="Printed dosing code, e.g. 1-0-1")
    frequency_text: str = Field(..., description="Printed dosing description")
    duration: str = Field("", description="Duration of treatment")
    instructions: str = Field("", description="Instructions for taking the medicine")

    @classmethod
    def from_domain(cls, medication: Medication) -> "MedicationSchema":
        code, text = medication.frequency_display()
        return cls(
            id=medication.id,
            name=medication.name,
            dosage=medication.dosage,
            frequency=medication.frequency_label,
            frequency_code=code,
            frequency_text=text,
            duration=medication.duration,
            instructions=medication.instructions,
        )


class PrescriptionSchema(BaseModel):
    diagnosis: str = Field("", description="Diagnosis, one finding per line")
    diagnosis_lines: List[str] = Field(default_factory=list)
    medications: List[MedicationSchema] = Field(default_factory=list)
    advice: str = Field("", description="Advice, one instruction per line")
    advice_lines: List[str] = Field(default_factory=list)
    follow_up: str = Field("", description="Follow-up instructions")
    date: Optional[datetime] = Field(None, description="Completion timestamp; set once finalized")

    @classmethod
    def from_domain(cls, prescription: PrescriptionData) -> "PrescriptionSchema":
        return cls(
            diagnosis=prescription.diagnosis,
            diagnosis_lines=prescription.diagnosis_lines,
            medications=[MedicationSchema.from_domain(m) for m in prescription.medications],
            advice=prescription.advice,
            advice_lines=prescription.advice_lines,
            follow_up=prescription.follow_up,
            date=prescription.date,
        )


class UpdatePrescriptionRequest(BaseModel):
    """Partial edit of the draft's free-text fields; omitted fields are kept."""

    diagnosis: Optional[str] = None
    advice: Optional[str] = None
    follow_up: Optional[str] = None


class UpdateMedicationRequest(BaseModel):
    name: Optional[str] = None
    dosage: Optional[str] = None
    frequency: Optional[str] = Field(None, description="Frequency label or abbreviation; anything else is kept as custom text")
    duration: Optional[str] = None
    instructions: Optional[str] = None
