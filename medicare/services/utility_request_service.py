from sqlalchemy.orm import Session
from typing import Dict, FrozenSet, List
import logging

from ..core.errors import NotFound, InvalidState, ValidationError
from ..core.policies import (
    Action, Actor, Resource, can_access, ensure_allowed, list_scope, restrict_patch
)
from ..core.store import RecordStore
from ..models.utility_request import UtilityRequest, UtilityRequestStatus
from ..schemas.utility_request import UtilityRequestCreate, UtilityRequestStatusUpdate

logger = logging.getLogger(__name__)

POPULATE = ("doctor",)

# Review outcomes may be reconsidered, but a reviewed request never goes back to pending
TRANSITIONS: Dict[UtilityRequestStatus, FrozenSet[UtilityRequestStatus]] = {
    UtilityRequestStatus.PENDING: frozenset({UtilityRequestStatus.APPROVED, UtilityRequestStatus.REJECTED}),
    UtilityRequestStatus.APPROVED: frozenset({UtilityRequestStatus.REJECTED}),
    UtilityRequestStatus.REJECTED: frozenset({UtilityRequestStatus.APPROVED}),
}

def check_transition(current: UtilityRequestStatus, new: UtilityRequestStatus) -> None:
    if new == current:
        return
    if new not in TRANSITIONS[current]:
        raise InvalidState(f"Cannot change a {current.value} request to {new.value}")

class UtilityRequestService:
    def __init__(self, db: Session):
        self.db = db
        self.store = RecordStore(db, UtilityRequest)

    def create(self, actor: Actor, data: UtilityRequestCreate) -> UtilityRequest:
        ensure_allowed(can_access(actor.role, actor.id, Resource.UTILITY_REQUEST, Action.CREATE))

        fields = data.model_dump()
        # The requester is always the caller
        fields["doctor_id"] = actor.id
        fields["status"] = UtilityRequestStatus.PENDING

        request = self.store.create(fields)
        logger.info(
            f"Utility request {request.id} ({request.quantity} x {request.item_name}, "
            f"{request.urgency.value}) submitted by user {actor.id}"
        )
        return self.store.find_by_id(request.id, populate=POPULATE)

    def list(self, actor: Actor) -> List[UtilityRequest]:
        decision = can_access(actor.role, actor.id, Resource.UTILITY_REQUEST, Action.LIST)
        if not decision:
            logger.warning(f"User {actor.id} ({actor.role.value}) denied utility request listing")
        ensure_allowed(decision)
        return self.store.find(
            list_scope(actor.role, actor.id, Resource.UTILITY_REQUEST),
            populate=POPULATE,
            order_by=(UtilityRequest.created_at.desc(), UtilityRequest.id.desc()),
        )

    def get(self, actor: Actor, request_id: int) -> UtilityRequest:
        request = self._get_or_404(request_id)
        ensure_allowed(can_access(actor.role, actor.id, Resource.UTILITY_REQUEST, Action.READ, request))
        return request

    def update_status(self, actor: Actor, request_id: int, data: UtilityRequestStatusUpdate) -> UtilityRequest:
        """Admin review: only status and admin_notes are ever written."""
        request = self._get_or_404(request_id)
        ensure_allowed(can_access(actor.role, actor.id, Resource.UTILITY_REQUEST, Action.UPDATE, request))

        patch = restrict_patch(data.model_dump(exclude_unset=True), Resource.UTILITY_REQUEST, actor.role)
        if patch.get("status") is None:
            patch.pop("status", None)

        new_status = patch.get("status", request.status)
        check_transition(request.status, new_status)

        notes = patch.get("admin_notes", request.admin_notes)
        if new_status == UtilityRequestStatus.REJECTED and not (notes or "").strip():
            raise ValidationError("Please provide a reason for rejection")

        if not patch:
            return request

        previous_status = request.status
        self.store.update_by_id(request_id, patch)
        logger.info(
            f"Utility request {request_id} {previous_status.value} -> {new_status.value} "
            f"by admin {actor.id}"
        )
        return self.store.find_by_id(request_id, populate=POPULATE)

    def delete(self, actor: Actor, request_id: int) -> None:
        request = self._get_or_404(request_id)
        ensure_allowed(can_access(actor.role, actor.id, Resource.UTILITY_REQUEST, Action.DELETE, request))
        self.store.delete_by_id(request_id)
        logger.info(f"Utility request {request_id} deleted by user {actor.id}")

    def _get_or_404(self, request_id: int) -> UtilityRequest:
        request = self.store.find_by_id(request_id, populate=POPULATE)
        if not request:
            raise NotFound(f"No utility request found with id {request_id}")
        return request
