from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from ...core.database import get_db
from ...core.policies import Actor
from ...api.deps import get_current_actor
from ...services.utility_request_service import UtilityRequestService
from ...schemas.utility_request import (
    UtilityRequestCreate, UtilityRequestStatusUpdate, UtilityRequestResponse
)
from ...schemas.common import ok, ok_list

router = APIRouter(prefix="/utility-requests", tags=["Utility Requests"])

@router.post("", status_code=status.HTTP_201_CREATED)
async def create_utility_request(
    data: UtilityRequestCreate,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_current_actor)
):
    """Request equipment, medicine or other supplies (doctors)."""
    request = UtilityRequestService(db).create(actor, data)
    return ok(UtilityRequestResponse.model_validate(request))

@router.get("")
async def list_utility_requests(
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_current_actor)
):
    requests = UtilityRequestService(db).list(actor)
    return ok_list([UtilityRequestResponse.model_validate(r) for r in requests])

@router.get("/{request_id}")
async def get_utility_request(
    request_id: int,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_current_actor)
):
    request = UtilityRequestService(db).get(actor, request_id)
    return ok(UtilityRequestResponse.model_validate(request))

@router.put("/{request_id}")
async def update_utility_request_status(
    request_id: int,
    data: UtilityRequestStatusUpdate,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_current_actor)
):
    """Approve or reject a request (admin only)."""
    request = UtilityRequestService(db).update_status(actor, request_id, data)
    return ok(UtilityRequestResponse.model_validate(request))

@router.delete("/{request_id}")
async def delete_utility_request(
    request_id: int,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_current_actor)
):
    """Delete a utility request (admin only)."""
    UtilityRequestService(db).delete(actor, request_id)
    return ok({})
