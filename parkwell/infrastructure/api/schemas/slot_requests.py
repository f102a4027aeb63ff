from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from parkwell.domain.common import SlotRequestStatus
from parkwell.infrastructure.api.schemas.parking_slots import ParkingSlotResponse
from parkwell.infrastructure.api.schemas.vehicles import VehicleResponse


class SlotRequestCreate(BaseModel):
    vehicle_id: int
    parking_slot_id: int
    expected_duration_hours: int = Field(..., gt=0)


class SlotRequestUpdate(BaseModel):
    vehicle_id: Optional[int] = None
    status: Optional[SlotRequestStatus] = None


class SlotRequestResolve(BaseModel):
    status: SlotRequestStatus
    admin_notes: Optional[str] = Field(default=None, max_length=500)
    parking_slot_id: Optional[int] = None


class RequesterSummary(BaseModel):
    id: int
    first_name: str
    last_name: str
    email: str

    model_config = ConfigDict(from_attributes=True)


class SlotRequestResponse(BaseModel):
    id: int
    user_id: int
    vehicle_id: int
    parking_slot_id: Optional[int] = None
    expected_duration_hours: int
    calculated_cost: Decimal
    status: SlotRequestStatus
    admin_notes: Optional[str] = None
    requested_at: Optional[datetime] = None
    resolved_at: Optional[datetime] = None
    user: Optional[RequesterSummary] = None
    vehicle: Optional[VehicleResponse] = None
    parking_slot: Optional[ParkingSlotResponse] = None

    model_config = ConfigDict(from_attributes=True)
