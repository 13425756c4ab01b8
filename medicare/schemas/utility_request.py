from pydantic import BaseModel, Field
from typing import Optional
import datetime as dt

from ..models.utility_request import ItemType, Urgency, UtilityRequestStatus
from .common import ORMModel, DoctorSummary, NonBlankStr

class UtilityRequestCreate(BaseModel):
    item_name: NonBlankStr = Field(..., max_length=255)
    item_type: ItemType
    quantity: int = Field(..., gt=0, strict=True)
    urgency: Urgency = Urgency.MEDIUM
    reason: NonBlankStr

class UtilityRequestStatusUpdate(BaseModel):
    """Admin review. Any other submitted field is ignored."""
    status: Optional[UtilityRequestStatus] = None
    admin_notes: Optional[str] = None

class UtilityRequestResponse(ORMModel):
    id: int
    doctor_id: int
    doctor: Optional[DoctorSummary] = None
    item_name: str
    item_type: ItemType
    quantity: int
    urgency: Urgency
    reason: str
    status: UtilityRequestStatus
    admin_notes: Optional[str] = None
    created_at: Optional[dt.datetime] = None
    updated_at: Optional[dt.datetime] = None
