from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, FrozenSet, Optional

from .errors import Forbidden
from .security import UserRole


class Resource(str, Enum):
    APPOINTMENT = "appointment"
    MEDICAL_RECORD = "medical_record"
    UTILITY_REQUEST = "utility_request"
    USER = "user"


class Action(str, Enum):
    CREATE = "create"
    LIST = "list"
    READ = "read"
    UPDATE = "update"
    DELETE = "delete"
    VERIFY = "verify"
    LIST_DOCTORS = "list_doctors"
    LIST_UNVERIFIED = "list_unverified"


@dataclass(frozen=True)
class Actor:
    """The authenticated caller, as supplied by the auth boundary."""

    id: int
    role: UserRole


@dataclass(frozen=True)
class Decision:
    allowed: bool
    reason: Optional[str] = None

    def __bool__(self):
        return self.allowed


ALLOW = Decision(True)


def deny(reason: str) -> Decision:
    return Decision(False, reason)


def ensure_allowed(decision: Decision) -> None:
    """Raise ``Forbidden`` carrying the denial reason."""
    if not decision.allowed:
        raise Forbidden(decision.reason)


def _ref(record: Any, field: str) -> Optional[int]:
    if record is None:
        return None
    if isinstance(record, dict):
        return record.get(field)
    return getattr(record, field, None)


# Appointments

def _appointment_rule(role: UserRole, actor_id: int, action: Action, record) -> Decision:
    if action in (Action.CREATE, Action.LIST):
        return ALLOW

    if action in (Action.READ, Action.UPDATE):
        if role == UserRole.ADMIN:
            return ALLOW
        if actor_id in (_ref(record, "patient_id"), _ref(record, "doctor_id")):
            return ALLOW
        verb = "access" if action == Action.READ else "update"
        return deny(f"Not authorized to {verb} this appointment")

    if action == Action.DELETE:
        if role == UserRole.ADMIN:
            return ALLOW
        return deny("Only admins can delete appointments")

    return deny(f"Action '{action.value}' is not supported on appointments")


# Medical records

def _medical_record_rule(role: UserRole, actor_id: int, action: Action, record) -> Decision:
    if action == Action.CREATE:
        if role in (UserRole.DOCTOR, UserRole.ADMIN):
            return ALLOW
        return deny("Only doctors can create medical records")

    if action == Action.LIST:
        return ALLOW

    if action == Action.READ:
        if role == UserRole.ADMIN:
            return ALLOW
        if actor_id in (_ref(record, "patient_id"), _ref(record, "doctor_id")):
            return ALLOW
        return deny("Not authorized to access this medical record")

    if action == Action.UPDATE:
        if role == UserRole.ADMIN:
            return ALLOW
        if role == UserRole.DOCTOR and actor_id == _ref(record, "doctor_id"):
            return ALLOW
        return deny("Not authorized to update this medical record")

    if action == Action.DELETE:
        if role == UserRole.ADMIN:
            return ALLOW
        return deny("Only admins can delete medical records")

    return deny(f"Action '{action.value}' is not supported on medical records")


# Utility requests

def _utility_request_rule(role: UserRole, actor_id: int, action: Action, record) -> Decision:
    if action == Action.CREATE:
        if role in (UserRole.DOCTOR, UserRole.ADMIN):
            return ALLOW
        return deny("Only doctors can create utility requests")

    if action == Action.LIST:
        if role in (UserRole.DOCTOR, UserRole.ADMIN):
            return ALLOW
        return deny("Not authorized to view utility requests")

    if action == Action.READ:
        if role == UserRole.ADMIN:
            return ALLOW
        if role == UserRole.DOCTOR and actor_id == _ref(record, "doctor_id"):
            return ALLOW
        return deny("Not authorized to access this utility request")

    if action == Action.UPDATE:
        if role == UserRole.ADMIN:
            return ALLOW
        return deny("Only admins can update utility request status")

    if action == Action.DELETE:
        if role == UserRole.ADMIN:
            return ALLOW
        return deny("Only admins can delete utility requests")

    return deny(f"Action '{action.value}' is not supported on utility requests")


# Users

def _user_rule(role: UserRole, actor_id: int, action: Action, record) -> Decision:
    if action in (Action.READ, Action.LIST_DOCTORS):
        return ALLOW

    if action == Action.UPDATE:
        if role == UserRole.ADMIN or actor_id == _ref(record, "id"):
            return ALLOW
        return deny("Not authorized to update this user")

    if action in (Action.LIST, Action.LIST_UNVERIFIED, Action.VERIFY, Action.DELETE, Action.CREATE):
        if role == UserRole.ADMIN:
            return ALLOW
        return deny("Admin access required")

    return deny(f"Action '{action.value}' is not supported on users")


_RULES: Dict[Resource, Callable[[UserRole, int, Action, Any], Decision]] = {
    Resource.APPOINTMENT: _appointment_rule,
    Resource.MEDICAL_RECORD: _medical_record_rule,
    Resource.UTILITY_REQUEST: _utility_request_rule,
    Resource.USER: _user_rule,
}


def can_access(
    actor_role: UserRole,
    actor_id: int,
    resource: Resource,
    action: Action,
    record: Any = None,
) -> Decision:
    """Decide whether the actor may perform ``action`` on ``resource``.

    ``record`` is the target row (or a mapping with the same reference
    fields) for single-record actions and ``None`` for create and list.
    """
    return _RULES[Resource(resource)](UserRole(actor_role), actor_id, Action(action), record)


def list_scope(actor_role: UserRole, actor_id: int, resource: Resource) -> Dict[str, int]:
    """Equality filter that restricts a list query to what the actor may see.

    Callers must check ``can_access(..., Action.LIST)`` first; this only
    narrows an allowed listing.
    """
    role = UserRole(actor_role)
    if role == UserRole.ADMIN:
        return {}

    resource = Resource(resource)
    if resource in (Resource.APPOINTMENT, Resource.MEDICAL_RECORD):
        field = "patient_id" if role == UserRole.PATIENT else "doctor_id"
        return {field: actor_id}
    if resource == Resource.UTILITY_REQUEST:
        return {"doctor_id": actor_id}
    return {}


# Patch shapes

_APPOINTMENT_STAFF_FIELDS = frozenset(
    {"patient_id", "doctor_id", "date", "time", "status", "reason", "notes"}
)
_MEDICAL_RECORD_DOCTOR_FIELDS = frozenset(
    {"appointment_id", "diagnosis", "prescription", "notes", "attachments"}
)
_USER_SELF_FIELDS = frozenset(
    {"name", "email", "phone", "gender", "address", "specialization", "experience"}
)

_WRITABLE_FIELDS: Dict[Resource, Dict[UserRole, FrozenSet[str]]] = {
    Resource.APPOINTMENT: {
        UserRole.PATIENT: frozenset({"status"}),
        UserRole.DOCTOR: _APPOINTMENT_STAFF_FIELDS,
        UserRole.ADMIN: _APPOINTMENT_STAFF_FIELDS,
    },
    Resource.MEDICAL_RECORD: {
        UserRole.DOCTOR: _MEDICAL_RECORD_DOCTOR_FIELDS,
        UserRole.ADMIN: _MEDICAL_RECORD_DOCTOR_FIELDS | {"patient_id", "doctor_id"},
    },
    Resource.UTILITY_REQUEST: {
        UserRole.ADMIN: frozenset({"status", "admin_notes"}),
    },
    Resource.USER: {
        UserRole.PATIENT: _USER_SELF_FIELDS,
        UserRole.DOCTOR: _USER_SELF_FIELDS,
        UserRole.ADMIN: _USER_SELF_FIELDS | {"role"},
    },
}


def writable_fields(resource: Resource, actor_role: UserRole) -> FrozenSet[str]:
    """Fields ``actor_role`` may change on ``resource``; empty means none."""
    return _WRITABLE_FIELDS[Resource(resource)].get(UserRole(actor_role), frozenset())


def restrict_patch(patch: Dict[str, Any], resource: Resource, actor_role: UserRole) -> Dict[str, Any]:
    """Drop every submitted field outside the actor's patch shape."""
    allowed = writable_fields(resource, actor_role)
    return {field: value for field, value in patch.items() if field in allowed}


def disallowed_fields(patch: Dict[str, Any], resource: Resource, actor_role: UserRole) -> FrozenSet[str]:
    return frozenset(patch) - writable_fields(resource, actor_role)
