from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from parkwell.domain.common import ParkingSlotStatus, SlotLocation, VehicleSize, VehicleType


class ParkingSlotCreate(BaseModel):
    slot_number: str = Field(..., min_length=1, max_length=10)
    size: VehicleSize
    vehicle_type: VehicleType
    location: Optional[SlotLocation] = None
    status: Optional[ParkingSlotStatus] = None
    cost_per_hour: Optional[Decimal] = Field(default=None, ge=0)

    @field_validator('slot_number')
    def validate_slot_number(cls, v):  # pylint: disable=no-self-argument
        return v.upper().strip()


class ParkingSlotBulkCreate(BaseModel):
    count: int = Field(..., ge=1, le=500)
    size: VehicleSize
    vehicle_type: VehicleType
    prefix: str = Field(default="PS", max_length=6)
    start_number: int = Field(default=1, ge=0)
    location: Optional[SlotLocation] = None
    cost_per_hour: Optional[Decimal] = Field(default=None, ge=0)


class ParkingSlotUpdate(BaseModel):
    slot_number: Optional[str] = Field(default=None, min_length=1, max_length=10)
    size: Optional[VehicleSize] = None
    vehicle_type: Optional[VehicleType] = None
    location: Optional[SlotLocation] = None
    status: Optional[ParkingSlotStatus] = None
    cost_per_hour: Optional[Decimal] = Field(default=None, ge=0)

    @field_validator('slot_number')
    def validate_slot_number(cls, v):  # pylint: disable=no-self-argument
        return v.upper().strip() if v is not None else v


class ParkingSlotResponse(BaseModel):
    id: int
    slot_number: str
    size: VehicleSize
    vehicle_type: VehicleType
    status: ParkingSlotStatus
    location: Optional[SlotLocation] = None
    cost_per_hour: Optional[Decimal] = None
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class BulkCreateResponse(BaseModel):
    message: str
    count: int
    slots: List[ParkingSlotResponse]
