from datetime import datetime
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from parkwell.domain.common import VehicleSize, VehicleType


class VehicleCreate(BaseModel):
    plate_number: str = Field(..., min_length=1, max_length=20)
    vehicle_type: VehicleType
    size: VehicleSize
    other_attributes: Optional[Dict[str, Any]] = None

    @field_validator('plate_number')
    def validate_plate_number(cls, v):  # pylint: disable=no-self-argument
        return v.upper().strip()


class VehicleUpdate(BaseModel):
    plate_number: Optional[str] = Field(default=None, min_length=1, max_length=20)
    vehicle_type: Optional[VehicleType] = None
    size: Optional[VehicleSize] = None
    other_attributes: Optional[Dict[str, Any]] = None

    @field_validator('plate_number')
    def validate_plate_number(cls, v):  # pylint: disable=no-self-argument
        return v.upper().strip() if v is not None else v


class VehicleResponse(BaseModel):
    id: int
    user_id: int
    plate_number: str
    vehicle_type: VehicleType
    size: VehicleSize
    other_attributes: Optional[Dict[str, Any]] = None
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)
