from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from ...core.database import get_db
from ...core.policies import Actor
from ...api.deps import get_current_actor
from ...services.appointment_service import AppointmentService
from ...schemas.appointment import AppointmentCreate, AppointmentUpdate, AppointmentResponse
from ...schemas.common import ok, ok_list

router = APIRouter(prefix="/appointments", tags=["Appointments"])

@router.post("", status_code=status.HTTP_201_CREATED)
async def create_appointment(
    data: AppointmentCreate,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_current_actor)
):
    """Book an appointment. Patients booking for themselves may omit patient_id."""
    appointment = AppointmentService(db).create(actor, data)
    return ok(AppointmentResponse.model_validate(appointment))

@router.get("")
async def list_appointments(
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_current_actor)
):
    """Patients see their own, doctors their own, admins all."""
    appointments = AppointmentService(db).list(actor)
    return ok_list([AppointmentResponse.model_validate(a) for a in appointments])

@router.get("/{appointment_id}")
async def get_appointment(
    appointment_id: int,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_current_actor)
):
    appointment = AppointmentService(db).get(actor, appointment_id)
    return ok(AppointmentResponse.model_validate(appointment))

@router.put("/{appointment_id}")
async def update_appointment(
    appointment_id: int,
    data: AppointmentUpdate,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_current_actor)
):
    """Doctors and admins may edit any field; patients may only cancel."""
    appointment = AppointmentService(db).update(actor, appointment_id, data)
    return ok(AppointmentResponse.model_validate(appointment))

@router.delete("/{appointment_id}")
async def delete_appointment(
    appointment_id: int,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_current_actor)
):
    """Delete an appointment (admin only)."""
    AppointmentService(db).delete(actor, appointment_id)
    return ok({})
