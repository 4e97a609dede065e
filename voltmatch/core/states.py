from enum import Enum
from typing import Type, TypeVar

from voltmatch.core.errors import ValidationError


class BatteryKind(str, Enum):
    alkaline = "alkaline"
    lithium_ion = "lithium-ion"
    rechargeable = "rechargeable"
    button_cell = "button-cell"


class Urgency(str, Enum):
    low = "low"
    medium = "medium"
    high = "high"
    urgent = "urgent"


class HealthStatus(str, Enum):
    unknown = "unknown"
    reusable = "reusable"
    needs_recharge = "needs-recharge"
    recycle_asap = "recycle-asap"


class DonationStatus(str, Enum):
    available = "available"
    reserved = "reserved"
    completed = "completed"
    cancelled = "cancelled"


class RequestStatus(str, Enum):
    active = "active"
    matched = "matched"
    completed = "completed"
    cancelled = "cancelled"


class MatchStatus(str, Enum):
    pending = "pending"
    accepted = "accepted"
    completed = "completed"
    cancelled = "cancelled"


# (src, dst) -> event that drives it
DONATION_TRANSITIONS = {
    (DonationStatus.available, DonationStatus.reserved):  "match_accepted",
    (DonationStatus.reserved,  DonationStatus.completed): "match_completed",
    (DonationStatus.available, DonationStatus.cancelled): "owner_cancelled",
}

REQUEST_TRANSITIONS = {
    (RequestStatus.active,  RequestStatus.matched):   "match_accepted",
    (RequestStatus.matched, RequestStatus.completed): "match_completed",
    (RequestStatus.active,  RequestStatus.cancelled): "owner_cancelled",
}

MATCH_TRANSITIONS = {
    (MatchStatus.pending,  MatchStatus.accepted):  "accept",
    (MatchStatus.accepted, MatchStatus.completed): "complete",
    (MatchStatus.pending,  MatchStatus.cancelled): "cancel",
    (MatchStatus.accepted, MatchStatus.cancelled): "cancel",
}

TERMINAL = {
    DonationStatus.completed, DonationStatus.cancelled,
    RequestStatus.completed, RequestStatus.cancelled,
    MatchStatus.completed, MatchStatus.cancelled,
}

_TABLES = {
    DonationStatus: DONATION_TRANSITIONS,
    RequestStatus: REQUEST_TRANSITIONS,
    MatchStatus: MATCH_TRANSITIONS,
}

E = TypeVar("E", bound=Enum)


def can_transition(src: Enum, dst: Enum) -> bool:
    table = _TABLES.get(type(src))
    if table is None:
        return False
    return (src, dst) in table


def is_terminal(status: Enum) -> bool:
    return status in TERMINAL


def parse_enum(enum_cls: Type[E], value) -> E:
    """Coerce a raw value into ``enum_cls``, raising ValidationError if it isn't one."""
    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(value)
    except ValueError:
        allowed = [m.value for m in enum_cls]
        raise ValidationError(f"invalid {enum_cls.__name__}: {value!r} (allowed: {allowed})") from None
