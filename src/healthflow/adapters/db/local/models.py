"""
Pydantic models describing the persisted records blob.

The blob is one JSON object mapping UPID to ``{"details": ..., "history": ...}``.
Field names follow the stored format (``followUp``), not the Python names.
"""

from datetime import datetime
from typing import List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field


class MedicationDocument(BaseModel):
    """Stored medication line."""
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: str = Field(..., description="Medication ID")
    name: str = Field(default="")
    dosage: str = Field(default="")
    frequency: str = Field(default="Custom", description="Frequency label")
    duration: str = Field(default="")
    instructions: str = Field(default="")
    custom_frequency: Optional[str] = Field(
        default=None, alias="customFrequency", description="Free text for Custom frequency"
    )


class PrescriptionDocument(BaseModel):
    """Stored prescription; ``date`` is the completion timestamp."""
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    diagnosis: str = Field(default="")
    medications: List[MedicationDocument] = Field(default_factory=list)
    advice: str = Field(default="")
    follow_up: str = Field(default="", alias="followUp")
    date: Optional[datetime] = None


class PatientDetailsDocument(BaseModel):
    """Stored patient details snapshot."""
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    name: str = Field(default="")
    # Older blobs may hold "" for an unset age
    age: Union[int, str, None] = None
    gender: str = Field(default="Male")
    upid: str = Field(...)
    phone: str = Field(default="")
    email: str = Field(default="")
    allergies: str = Field(default="")


class PatientRecordDocument(BaseModel):
    """Stored patient record."""
    model_config = ConfigDict(extra="ignore")

    details: PatientDetailsDocument
    history: List[PrescriptionDocument] = Field(default_factory=list)
