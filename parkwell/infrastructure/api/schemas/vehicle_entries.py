from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from parkwell.domain.common import VehicleEntryStatus
from parkwell.infrastructure.api.schemas.parkings import ParkingSummary, SelectableParkingResponse


class VehicleEntryCreate(BaseModel):
    plate_number: str = Field(..., min_length=1, max_length=20)
    parking_id: int

    @field_validator('plate_number')
    def validate_plate_number(cls, v):  # pylint: disable=no-self-argument
        return v.upper().strip()


class VehicleEntryResponse(BaseModel):
    id: int
    plate_number: str
    parking_id: int
    entry_time: datetime
    exit_time: Optional[datetime] = None
    ticket_number: str
    status: VehicleEntryStatus
    calculated_duration_minutes: Optional[int] = None
    charged_amount: Decimal
    recorded_by_id: Optional[int] = None
    recorded_by_name: Optional[str] = None
    parking: Optional[ParkingSummary] = None

    model_config = ConfigDict(from_attributes=True)


class EntryRecordedResponse(BaseModel):
    message: str
    entry: VehicleEntryResponse
    parking: SelectableParkingResponse


class ExitRecordedResponse(BaseModel):
    message: str
    entry: VehicleEntryResponse
