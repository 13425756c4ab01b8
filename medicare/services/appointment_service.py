from sqlalchemy.orm import Session
from typing import List
import logging

from ..core.errors import NotFound, Forbidden, ValidationError
from ..core.policies import (
    Action, Actor, Resource, can_access, ensure_allowed, list_scope,
    disallowed_fields
)
from ..core.security import UserRole
from ..core.store import RecordStore
from ..models.appointment import Appointment, AppointmentStatus
from ..models.medical_record import MedicalRecord
from ..schemas.appointment import AppointmentCreate, AppointmentUpdate
from .user_service import require_user_with_role

logger = logging.getLogger(__name__)

POPULATE = ("patient", "doctor")

def check_patient_change(current: AppointmentStatus, patch: dict) -> None:
    """Patients may only move their own upcoming appointment to cancelled."""
    disallowed = disallowed_fields(patch, Resource.APPOINTMENT, UserRole.PATIENT)
    if disallowed or patch.get("status") != AppointmentStatus.CANCELLED:
        raise Forbidden("Patients can only cancel appointments")
    if current != AppointmentStatus.UPCOMING:
        raise Forbidden("Only upcoming appointments can be cancelled")

class AppointmentService:
    def __init__(self, db: Session):
        self.db = db
        self.store = RecordStore(db, Appointment)

    def create(self, actor: Actor, data: AppointmentCreate) -> Appointment:
        """Book an appointment; it always starts as upcoming."""
        ensure_allowed(can_access(actor.role, actor.id, Resource.APPOINTMENT, Action.CREATE))

        fields = data.model_dump()
        if fields["patient_id"] is None:
            if actor.role != UserRole.PATIENT:
                raise ValidationError("Patient is required")
            fields["patient_id"] = actor.id

        require_user_with_role(self.db, fields["doctor_id"], UserRole.DOCTOR, "Invalid doctor selected")
        require_user_with_role(self.db, fields["patient_id"], UserRole.PATIENT, "Invalid patient selected")

        fields["status"] = AppointmentStatus.UPCOMING
        appointment = self.store.create(fields)
        logger.info(
            f"Appointment {appointment.id} booked for patient {appointment.patient_id} "
            f"with doctor {appointment.doctor_id} by user {actor.id}"
        )
        return self.store.find_by_id(appointment.id, populate=POPULATE)

    def list(self, actor: Actor) -> List[Appointment]:
        ensure_allowed(can_access(actor.role, actor.id, Resource.APPOINTMENT, Action.LIST))
        return self.store.find(
            list_scope(actor.role, actor.id, Resource.APPOINTMENT),
            populate=POPULATE,
            order_by=(Appointment.date, Appointment.time, Appointment.id),
        )

    def get(self, actor: Actor, appointment_id: int) -> Appointment:
        appointment = self._get_or_404(appointment_id)
        self._authorize(actor, Action.READ, appointment)
        return appointment

    def update(self, actor: Actor, appointment_id: int, data: AppointmentUpdate) -> Appointment:
        appointment = self._get_or_404(appointment_id)
        self._authorize(actor, Action.UPDATE, appointment)

        patch = data.submitted()
        if actor.role == UserRole.PATIENT:
            check_patient_change(appointment.status, patch)
        else:
            # Doctors and admins may set any status, including re-opening
            if "doctor_id" in patch and patch["doctor_id"] != appointment.doctor_id:
                require_user_with_role(self.db, patch["doctor_id"], UserRole.DOCTOR, "Invalid doctor selected")
            if "patient_id" in patch and patch["patient_id"] != appointment.patient_id:
                require_user_with_role(self.db, patch["patient_id"], UserRole.PATIENT, "Invalid patient selected")

        if not patch:
            return appointment

        previous_status = appointment.status
        self.store.update_by_id(appointment_id, patch)
        updated = self.store.find_by_id(appointment_id, populate=POPULATE)
        if updated.status != previous_status:
            logger.info(
                f"Appointment {appointment_id} status {previous_status.value} -> "
                f"{updated.status.value} by user {actor.id}"
            )
        else:
            logger.info(f"Appointment {appointment_id} updated by user {actor.id}")
        return updated

    def delete(self, actor: Actor, appointment_id: int) -> None:
        appointment = self._get_or_404(appointment_id)
        self._authorize(actor, Action.DELETE, appointment)
        # Linked medical records outlive the appointment
        self.store.delete_by_id(appointment_id, nullify=(MedicalRecord.appointment_id,))
        logger.info(f"Appointment {appointment_id} deleted by user {actor.id}")

    def _get_or_404(self, appointment_id: int) -> Appointment:
        appointment = self.store.find_by_id(appointment_id, populate=POPULATE)
        if not appointment:
            raise NotFound(f"No appointment found with id {appointment_id}")
        return appointment

    def _authorize(self, actor: Actor, action: Action, appointment: Appointment) -> None:
        decision = can_access(actor.role, actor.id, Resource.APPOINTMENT, action, appointment)
        if not decision:
            logger.warning(f"User {actor.id} denied {action.value} on appointment {appointment.id}")
        ensure_allowed(decision)
