from pydantic import BaseModel, Field
from typing import List, Optional
import datetime as dt

from ..models.appointment import AppointmentStatus
from .common import ORMModel, PatchModel, NonBlankStr

class PrescriptionItem(BaseModel):
    medication: NonBlankStr
    dosage: NonBlankStr
    frequency: NonBlankStr
    duration: NonBlankStr

class Attachment(BaseModel):
    name: Optional[str] = None
    url: Optional[str] = None
    type: Optional[str] = None

class MedicalRecordCreate(BaseModel):
    patient_id: int
    # Ignored for doctors, who always author their own records
    doctor_id: Optional[int] = None
    appointment_id: Optional[int] = None
    diagnosis: NonBlankStr
    prescription: List[PrescriptionItem] = Field(default_factory=list)
    notes: Optional[str] = None
    attachments: List[Attachment] = Field(default_factory=list)

class MedicalRecordUpdate(PatchModel):
    non_nullable = frozenset({"patient_id", "doctor_id", "diagnosis", "prescription", "attachments"})

    patient_id: Optional[int] = None
    doctor_id: Optional[int] = None
    appointment_id: Optional[int] = None
    diagnosis: Optional[NonBlankStr] = None
    prescription: Optional[List[PrescriptionItem]] = None
    notes: Optional[str] = None
    attachments: Optional[List[Attachment]] = None

class PatientBrief(ORMModel):
    id: int
    name: str
    email: str

class DoctorBrief(ORMModel):
    id: int
    name: str
    specialization: Optional[str] = None

class AppointmentBrief(ORMModel):
    id: int
    date: dt.date
    time: str
    status: AppointmentStatus
    reason: str

class MedicalRecordResponse(ORMModel):
    id: int
    patient_id: int
    doctor_id: int
    appointment_id: Optional[int] = None
    patient: Optional[PatientBrief] = None
    doctor: Optional[DoctorBrief] = None
    appointment: Optional[AppointmentBrief] = None
    diagnosis: str
    prescription: List[PrescriptionItem] = Field(default_factory=list)
    notes: Optional[str] = None
    attachments: List[Attachment] = Field(default_factory=list)
    created_at: Optional[dt.datetime] = None
    updated_at: Optional[dt.datetime] = None
