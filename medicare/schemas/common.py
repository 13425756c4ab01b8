from fastapi.encoders import jsonable_encoder
from pydantic import AfterValidator, BaseModel, ConfigDict, model_validator
from typing import Annotated, Any, ClassVar, FrozenSet, Optional

class ORMModel(BaseModel):
    model_config = ConfigDict(from_attributes=True)

# Populated references. Only these fields of a referenced user are exposed.
class PatientSummary(ORMModel):
    id: int
    name: str
    email: str
    phone: Optional[str] = None

class DoctorSummary(ORMModel):
    id: int
    name: str
    email: str
    specialization: Optional[str] = None

# Response envelope: {success, data?, count?, message?}
def envelope(
    success: bool = True,
    data: Any = None,
    count: Optional[int] = None,
    message: Optional[str] = None,
) -> dict:
    body = {"success": success}
    if data is not None:
        body["data"] = jsonable_encoder(data)
    if count is not None:
        body["count"] = count
    if message is not None:
        body["message"] = message
    return body

def ok(data: Any = None, message: Optional[str] = None) -> dict:
    return envelope(data=data, message=message)

def ok_list(items: list) -> dict:
    return envelope(data=items, count=len(items))

def error(message: str) -> dict:
    return envelope(success=False, message=message)

class PatchModel(BaseModel):
    """Partial update body; only fields the client actually sent are applied."""

    # Fields that may be omitted but never sent as null
    non_nullable: ClassVar[FrozenSet[str]] = frozenset()

    @model_validator(mode="after")
    def reject_nulls(self):
        for name in sorted(self.model_fields_set & self.non_nullable):
            if getattr(self, name) is None:
                raise ValueError(f"{name} cannot be null")
        return self

    def submitted(self) -> dict:
        return self.model_dump(exclude_unset=True)

def _not_blank(v: str) -> str:
    if not v.strip():
        raise ValueError("must not be empty")
    return v

NonBlankStr = Annotated[str, AfterValidator(_not_blank)]
