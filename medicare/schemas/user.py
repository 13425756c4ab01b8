from pydantic import EmailStr, Field
from typing import Optional

from ..core.security import UserRole
from .common import PatchModel

class UserUpdate(PatchModel):
    """Profile changes. Passwords change through /auth/change-password only."""
    non_nullable = frozenset({"name", "email", "role"})

    name: Optional[str] = Field(None, min_length=1, max_length=100)
    email: Optional[EmailStr] = None
    phone: Optional[str] = Field(None, max_length=20)
    gender: Optional[str] = Field(None, max_length=20)
    address: Optional[str] = Field(None, max_length=255)
    specialization: Optional[str] = Field(None, max_length=100)
    experience: Optional[str] = Field(None, max_length=50)
    role: Optional[UserRole] = None
