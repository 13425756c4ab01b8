from sqlalchemy.orm import Session
from typing import List
import logging

from ..core.errors import NotFound, InvalidReference, ValidationError
from ..core.policies import (
    Action, Actor, Resource, can_access, ensure_allowed, list_scope, restrict_patch
)
from ..core.security import UserRole
from ..core.store import RecordStore
from ..models.appointment import Appointment
from ..models.medical_record import MedicalRecord
from ..schemas.medical_record import MedicalRecordCreate, MedicalRecordUpdate
from .user_service import require_user_with_role

logger = logging.getLogger(__name__)

POPULATE = ("patient", "doctor", "appointment")

class MedicalRecordService:
    def __init__(self, db: Session):
        self.db = db
        self.store = RecordStore(db, MedicalRecord)

    def create(self, actor: Actor, data: MedicalRecordCreate) -> MedicalRecord:
        """Create a record. A doctor is always recorded as its author."""
        ensure_allowed(can_access(actor.role, actor.id, Resource.MEDICAL_RECORD, Action.CREATE))

        fields = data.model_dump()
        if actor.role == UserRole.DOCTOR:
            fields["doctor_id"] = actor.id
        elif fields["doctor_id"] is None:
            raise ValidationError("Doctor is required")

        self._check_references(fields)

        record = self.store.create(fields)
        logger.info(
            f"Medical record {record.id} created for patient {record.patient_id} "
            f"by user {actor.id}"
        )
        return self.store.find_by_id(record.id, populate=POPULATE)

    def list(self, actor: Actor) -> List[MedicalRecord]:
        ensure_allowed(can_access(actor.role, actor.id, Resource.MEDICAL_RECORD, Action.LIST))
        return self.store.find(
            list_scope(actor.role, actor.id, Resource.MEDICAL_RECORD),
            populate=POPULATE,
            order_by=(MedicalRecord.created_at.desc(), MedicalRecord.id.desc()),
        )

    def get(self, actor: Actor, record_id: int) -> MedicalRecord:
        record = self._get_or_404(record_id)
        self._authorize(actor, Action.READ, record)
        return record

    def update(self, actor: Actor, record_id: int, data: MedicalRecordUpdate) -> MedicalRecord:
        record = self._get_or_404(record_id)
        self._authorize(actor, Action.UPDATE, record)

        # Doctors cannot reassign a record to another patient or author
        patch = restrict_patch(data.submitted(), Resource.MEDICAL_RECORD, actor.role)
        self._check_references(patch)

        if not patch:
            return record

        self.store.update_by_id(record_id, patch)
        logger.info(f"Medical record {record_id} updated by user {actor.id}: {sorted(patch)}")
        return self.store.find_by_id(record_id, populate=POPULATE)

    def delete(self, actor: Actor, record_id: int) -> None:
        record = self._get_or_404(record_id)
        self._authorize(actor, Action.DELETE, record)
        self.store.delete_by_id(record_id)
        logger.info(f"Medical record {record_id} deleted by user {actor.id}")

    def _check_references(self, fields: dict) -> None:
        if fields.get("doctor_id") is not None:
            require_user_with_role(self.db, fields["doctor_id"], UserRole.DOCTOR, "Invalid doctor selected")
        if fields.get("patient_id") is not None:
            require_user_with_role(self.db, fields["patient_id"], UserRole.PATIENT, "Invalid patient selected")
        if fields.get("appointment_id") is not None:
            exists = self.db.query(Appointment.id).filter(Appointment.id == fields["appointment_id"]).first()
            if not exists:
                raise InvalidReference("Invalid appointment selected")

    def _get_or_404(self, record_id: int) -> MedicalRecord:
        record = self.store.find_by_id(record_id, populate=POPULATE)
        if not record:
            raise NotFound(f"No medical record found with id {record_id}")
        return record

    def _authorize(self, actor: Actor, action: Action, record: MedicalRecord) -> None:
        decision = can_access(actor.role, actor.id, Resource.MEDICAL_RECORD, action, record)
        if not decision:
            logger.warning(f"User {actor.id} denied {action.value} on medical record {record.id}")
        ensure_allowed(decision)
