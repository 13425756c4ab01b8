from sqlalchemy.orm import Session
from typing import List
import logging

from ..core.errors import NotFound, InvalidReference, InvalidState, ValidationError
from ..core.policies import Action, Actor, Resource, can_access, ensure_allowed, restrict_patch
from ..core.security import UserRole
from ..core.store import RecordStore
from ..models.user import User, RefreshToken
from ..models.appointment import Appointment
from ..models.medical_record import MedicalRecord
from ..models.utility_request import UtilityRequest
from ..schemas.user import UserUpdate

logger = logging.getLogger(__name__)

def require_user_with_role(db: Session, user_id: int, role: UserRole, message: str) -> User:
    """Resolve a reference field, which must point at a user holding ``role``."""
    user = db.query(User).filter(User.id == user_id).first()
    if not user or user.role != role:
        raise InvalidReference(message)
    return user

class UserService:
    def __init__(self, db: Session):
        self.db = db
        self.store = RecordStore(db, User)

    def list_users(self, actor: Actor) -> List[User]:
        ensure_allowed(can_access(actor.role, actor.id, Resource.USER, Action.LIST))
        return self.store.find()

    def list_doctors(self, actor: Actor, verified: bool = None) -> List[User]:
        """All doctors, or only those with the given verification state."""
        action = Action.LIST_UNVERIFIED if verified is False else Action.LIST_DOCTORS
        ensure_allowed(can_access(actor.role, actor.id, Resource.USER, action))

        filters = {"role": UserRole.DOCTOR}
        if verified is not None:
            filters["is_verified"] = verified
        return self.store.find(filters)

    def get(self, actor: Actor, user_id: int) -> User:
        user = self._get_or_404(user_id)
        ensure_allowed(can_access(actor.role, actor.id, Resource.USER, Action.READ, user))
        return user

    def update(self, actor: Actor, user_id: int, data: UserUpdate) -> User:
        user = self._get_or_404(user_id)
        ensure_allowed(can_access(actor.role, actor.id, Resource.USER, Action.UPDATE, user))

        # Non-admins lose any submitted role; password is not part of UserUpdate
        patch = restrict_patch(data.submitted(), Resource.USER, actor.role)

        if "email" in patch and patch["email"] != user.email:
            taken = self.db.query(User).filter(User.email == patch["email"]).first()
            if taken:
                raise ValidationError("Email already registered")

        # References on existing records must keep resolving to the right role
        if "role" in patch and patch["role"] != user.role and self._has_related_records(user_id):
            raise InvalidState(
                "Cannot change the role of a user with appointments, medical records or utility requests"
            )

        if not patch:
            return user

        updated = self.store.update_by_id(user_id, patch)
        logger.info(f"User {user_id} updated by user {actor.id}: {sorted(patch)}")
        return updated

    def verify_doctor(self, actor: Actor, user_id: int) -> User:
        user = self.store.find_by_id(user_id)
        if not user:
            raise NotFound("Doctor not found")
        ensure_allowed(can_access(actor.role, actor.id, Resource.USER, Action.VERIFY, user))

        if user.role != UserRole.DOCTOR:
            raise InvalidState("User is not a doctor")

        if user.is_verified:
            return user

        verified = self.store.update_by_id(user_id, {"is_verified": True})
        logger.info(f"Doctor {user_id} verified by admin {actor.id}")
        return verified

    def delete(self, actor: Actor, user_id: int) -> None:
        user = self._get_or_404(user_id)
        ensure_allowed(can_access(actor.role, actor.id, Resource.USER, Action.DELETE, user))
        if user.id == actor.id:
            raise InvalidState("Admins cannot delete their own account")
        if self._has_related_records(user_id):
            raise InvalidState("User has appointments, medical records or utility requests")

        role = user.role
        self.store.delete_by_id(user_id, cascade=(RefreshToken.user_id,))
        logger.info(f"User {user_id} ({role.value}) deleted by admin {actor.id}")

    def _has_related_records(self, user_id: int) -> bool:
        for model in (Appointment, MedicalRecord):
            query = self.db.query(model.id).filter(
                (model.patient_id == user_id) | (model.doctor_id == user_id)
            )
            if query.first():
                return True
        return self.db.query(UtilityRequest.id).filter(UtilityRequest.doctor_id == user_id).first() is not None

    def _get_or_404(self, user_id: int) -> User:
        user = self.store.find_by_id(user_id)
        if not user:
            raise NotFound(f"No user found with id {user_id}")
        return user
