# voltmatch/schemas.py
import uuid
from typing import Optional, List
from datetime import datetime, timezone

from pydantic import BaseModel, Field

from voltmatch.core.states import (
    BatteryKind, Urgency, HealthStatus,
    DonationStatus, RequestStatus, MatchStatus,
)

def new_id() -> str:
    return uuid.uuid4().hex

def utcnow() -> datetime:
    return datetime.now(timezone.utc)

# --------------------------
# Shared Submodels
# --------------------------
class LatLng(BaseModel):
    lat: float
    lng: float

class Battery(BaseModel):
    """Classified battery record handed over by the identification subsystem."""
    model: str
    kind: BatteryKind
    manufacturer: str = ""
    capacity_mah: Optional[float] = None
    voltage: Optional[float] = None
    charge_cycles: Optional[int] = None
    health_status: HealthStatus = HealthStatus.unknown
    has_physical_damage: bool = False
    barcode: Optional[str] = None

# --------------------------
# Records
# --------------------------
class Donation(BaseModel):
    id: str = Field(default_factory=new_id)
    owner_id: str
    owner_display_name: str
    battery_kind: BatteryKind
    quantity: int
    location: LatLng
    notes: Optional[str] = None
    battery: Optional[Battery] = None
    status: DonationStatus = DonationStatus.available
    created_at: datetime = Field(default_factory=utcnow)

class Request(BaseModel):
    id: str = Field(default_factory=new_id)
    owner_id: str
    owner_display_name: str
    battery_kind: BatteryKind
    quantity: int
    location: LatLng
    urgency: Urgency = Urgency.medium
    notes: Optional[str] = None
    status: RequestStatus = RequestStatus.active
    created_at: datetime = Field(default_factory=utcnow)

class Match(BaseModel):
    id: str = Field(default_factory=new_id)
    # references and quantity are fixed when the match is built
    request_id: str = Field(frozen=True)
    donation_id: str = Field(frozen=True)
    request_owner_id: str
    donation_owner_id: str
    request_owner_name: str
    donation_owner_name: str
    battery_kind: BatteryKind
    quantity: int = Field(frozen=True)
    distance_km: float = Field(frozen=True)
    status: MatchStatus = MatchStatus.pending
    created_at: datetime = Field(default_factory=utcnow)
    completed_at: Optional[datetime] = None

# --------------------------
# API payloads
# --------------------------
class DonationIn(BaseModel):
    battery_kind: BatteryKind
    quantity: int = Field(gt=0)
    location: LatLng
    notes: Optional[str] = None
    battery: Optional[Battery] = None

class RequestIn(BaseModel):
    battery_kind: BatteryKind
    quantity: int = Field(gt=0)
    location: LatLng
    urgency: Urgency = Urgency.medium
    notes: Optional[str] = None

class RequestCreated(BaseModel):
    request: Request
    matches: List[Match]
