from decimal import Decimal
from typing import List

from pydantic import BaseModel

from parkwell.infrastructure.api.schemas.common import Pagination
from parkwell.infrastructure.api.schemas.vehicle_entries import VehicleEntryResponse


class EnteredSummary(BaseModel):
    totalVehiclesEntered: int


class ExitedSummary(BaseModel):
    totalVehiclesExited: int
    totalRevenue: Decimal


class EnteredVehiclesReport(BaseModel):
    data: List[VehicleEntryResponse]
    pagination: Pagination
    summary: EnteredSummary


class ExitedVehiclesReport(BaseModel):
    data: List[VehicleEntryResponse]
    pagination: Pagination
    summary: ExitedSummary
