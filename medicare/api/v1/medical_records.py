from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from ...core.database import get_db
from ...core.policies import Actor
from ...api.deps import get_current_actor
from ...services.medical_record_service import MedicalRecordService
from ...schemas.medical_record import (
    MedicalRecordCreate, MedicalRecordUpdate, MedicalRecordResponse
)
from ...schemas.common import ok, ok_list

router = APIRouter(prefix="/medical-records", tags=["Medical Records"])

@router.post("", status_code=status.HTTP_201_CREATED)
async def create_medical_record(
    data: MedicalRecordCreate,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_current_actor)
):
    """Create a medical record (doctor or admin)."""
    record = MedicalRecordService(db).create(actor, data)
    return ok(MedicalRecordResponse.model_validate(record))

@router.get("")
async def list_medical_records(
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_current_actor)
):
    records = MedicalRecordService(db).list(actor)
    return ok_list([MedicalRecordResponse.model_validate(r) for r in records])

@router.get("/{record_id}")
async def get_medical_record(
    record_id: int,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_current_actor)
):
    record = MedicalRecordService(db).get(actor, record_id)
    return ok(MedicalRecordResponse.model_validate(record))

@router.put("/{record_id}")
async def update_medical_record(
    record_id: int,
    data: MedicalRecordUpdate,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_current_actor)
):
    """Update a medical record (authoring doctor or admin)."""
    record = MedicalRecordService(db).update(actor, record_id, data)
    return ok(MedicalRecordResponse.model_validate(record))

@router.delete("/{record_id}")
async def delete_medical_record(
    record_id: int,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_current_actor)
):
    """Delete a medical record (admin only)."""
    MedicalRecordService(db).delete(actor, record_id)
    return ok({})
