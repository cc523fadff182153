"""
Pydantic schemas for patient intake and stored records.
"""

from datetime import datetime
from typing import List, Optional, Union

from pydantic import BaseModel, Field

from ...domain.entities.patient import PatientDetails, PatientRecord
from .prescription import PrescriptionSchema


class PatientDetailsRequest(BaseModel):
    """Intake form. Values are checked by the intake rules, not here, so every
    failing field is reported together."""

    name: str = Field("", description="Patient name")
    age: Optional[Union[int, str]] = Field(None, description="Age in years (1-120)")
    gender: str = Field("Male", description="Male, Female or Other")
    upid: str = Field("", description="Existing UPID to add this visit to a stored record")
    phone: str = Field("", description="10-digit mobile number, optional +91 or 0 prefix")
    email: str = Field("", description="Email address")
    allergies: str = Field("", description="Comma separated allergies")

    def to_domain(self) -> PatientDetails:
        return PatientDetails(
            name=self.name,
            age=self.age,
            gender=self.gender,
            upid=self.upid,
            phone=self.phone,
            email=self.email,
            allergies=self.allergies,
        )


class PatientDetailsSchema(BaseModel):
    name: str
    age: Optional[Union[int, str]] = None
    gender: str
    upid: str
    phone: str
    email: str
    allergies: str
    allergy_list: List[str] = Field(default_factory=list)

    @classmethod
    def from_domain(cls, details: PatientDetails) -> "PatientDetailsSchema":
        return cls(
            name=details.name,
            age=details.age,
            gender=getattr(details.gender, "value", details.gender),
            upid=details.upid,
            phone=details.phone,
            email=details.email,
            allergies=details.allergies,
            allergy_list=details.allergy_list,
        )


class PatientRecordSchema(BaseModel):
    """Stored patient with prescription history, newest first."""

    upid: str
    details: PatientDetailsSchema
    history: List[PrescriptionSchema] = Field(default_factory=list)
    last_visit: Optional[datetime] = None

    @classmethod
    def from_domain(cls, record: PatientRecord) -> "PatientRecordSchema":
        return cls(
            upid=record.upid,
            details=PatientDetailsSchema.from_domain(record.details),
            history=[PrescriptionSchema.from_domain(p) for p in record.history],
            last_visit=record.last_visit,
        )


class RecordSummaryResponse(BaseModel):
    upid: str
    patient_name: str
    summary: Optional[str] = Field(None, description="Null when a summary is already being generated")
