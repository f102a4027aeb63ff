from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class ParkingCreate(BaseModel):
    code: str = Field(..., min_length=1, max_length=10)
    name: str = Field(..., min_length=1, max_length=100)
    total_spaces: int = Field(..., gt=0)
    charge_per_hour: Decimal = Field(..., ge=0)
    location: Optional[str] = Field(default=None, max_length=200)

    @field_validator('code')
    def validate_code(cls, v):  # pylint: disable=no-self-argument
        return v.upper().strip()


class ParkingUpdate(BaseModel):
    code: Optional[str] = Field(default=None, min_length=1, max_length=10)
    name: Optional[str] = Field(default=None, max_length=100)
    total_spaces: Optional[int] = Field(default=None, gt=0)
    charge_per_hour: Optional[Decimal] = Field(default=None, ge=0)
    location: Optional[str] = Field(default=None, max_length=200)
    occupied_spaces: Optional[int] = Field(default=None, ge=0)

    @field_validator('code')
    def validate_code(cls, v):  # pylint: disable=no-self-argument
        return v.upper().strip() if v is not None else v


class ParkingResponse(BaseModel):
    id: int
    code: str
    name: str
    total_spaces: int
    occupied_spaces: int
    available_spaces: int
    location: Optional[str] = None
    charge_per_hour: Decimal
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class SelectableParkingResponse(BaseModel):
    id: int
    code: str
    name: str
    total_spaces: int
    occupied_spaces: int
    available_spaces: int

    model_config = ConfigDict(from_attributes=True)


class ParkingSummary(BaseModel):
    id: int
    code: str
    name: str
    charge_per_hour: Decimal

    model_config = ConfigDict(from_attributes=True)
