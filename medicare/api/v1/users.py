from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ...core.database import get_db
from ...core.policies import Actor
from ...api.deps import get_current_actor
from ...services.user_service import UserService
from ...schemas.auth import UserResponse
from ...schemas.user import UserUpdate
from ...schemas.common import ok, ok_list

router = APIRouter(prefix="/users", tags=["Users"])

def _users(users):
    return ok_list([UserResponse.model_validate(u) for u in users])

@router.get("")
async def list_users(
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_current_actor)
):
    """List all users (admin only)."""
    return _users(UserService(db).list_users(actor))

# Doctor routes are declared before /{user_id} so "doctors" is not parsed as an id
@router.get("/doctors")
async def list_doctors(
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_current_actor)
):
    return _users(UserService(db).list_doctors(actor))

@router.get("/doctors/verified")
async def list_verified_doctors(
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_current_actor)
):
    """Doctors patients can book with."""
    return _users(UserService(db).list_doctors(actor, verified=True))

@router.get("/doctors/unverified")
async def list_unverified_doctors(
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_current_actor)
):
    """Verification queue (admin only)."""
    return _users(UserService(db).list_doctors(actor, verified=False))

@router.put("/doctors/{user_id}/verify")
async def verify_doctor(
    user_id: int,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_current_actor)
):
    """Mark a doctor as verified (admin only)."""
    user = UserService(db).verify_doctor(actor, user_id)
    return ok(UserResponse.model_validate(user))

@router.get("/{user_id}")
async def get_user(
    user_id: int,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_current_actor)
):
    return ok(UserResponse.model_validate(UserService(db).get(actor, user_id)))

@router.put("/{user_id}")
async def update_user(
    user_id: int,
    data: UserUpdate,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_current_actor)
):
    """Update a profile (self or admin). Role changes are admin only."""
    user = UserService(db).update(actor, user_id, data)
    return ok(UserResponse.model_validate(user))

@router.delete("/{user_id}")
async def delete_user(
    user_id: int,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_current_actor)
):
    """Delete a user, e.g. to reject a doctor application (admin only)."""
    UserService(db).delete(actor, user_id)
    return ok({})
