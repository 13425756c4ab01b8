from pydantic import BaseModel, Field
from typing import Optional
import datetime as dt

from ..models.appointment import AppointmentStatus
from .common import ORMModel, PatchModel, PatientSummary, DoctorSummary, NonBlankStr

class AppointmentCreate(BaseModel):
    # Defaults to the caller when a patient books for themselves
    patient_id: Optional[int] = None
    doctor_id: int
    date: dt.date
    time: NonBlankStr = Field(..., max_length=20)
    reason: NonBlankStr
    notes: Optional[str] = None

class AppointmentUpdate(PatchModel):
    non_nullable = frozenset({"patient_id", "doctor_id", "date", "time", "status", "reason"})

    patient_id: Optional[int] = None
    doctor_id: Optional[int] = None
    date: Optional[dt.date] = None
    time: Optional[NonBlankStr] = Field(None, max_length=20)
    status: Optional[AppointmentStatus] = None
    reason: Optional[NonBlankStr] = None
    notes: Optional[str] = None

class AppointmentResponse(ORMModel):
    id: int
    patient_id: int
    doctor_id: int
    patient: Optional[PatientSummary] = None
    doctor: Optional[DoctorSummary] = None
    date: dt.date
    time: str
    status: AppointmentStatus
    reason: str
    notes: Optional[str] = None
    created_at: Optional[dt.datetime] = None
    updated_at: Optional[dt.datetime] = None
