import math
from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, Generic, List, Optional, TypeVar

from parkwell.domain.common import (
    ParkingSlotStatus,
    RoleName,
    SlotLocation,
    SlotRequestStatus,
    VehicleEntryStatus,
    VehicleSize,
    VehicleType,
)

T = TypeVar("T")


class Role:
    def __init__(
        self, name: RoleName, description: Optional[str] = None, permissions: Optional[List[str]] = None,
        id: Optional[int] = None
    ):
        self.id = id
        self.name = name
        self.description = description
        self.permissions = permissions or []


class Permission:
    def __init__(self, name: str, description: Optional[str] = None, id: Optional[int] = None):
        self.id = id
        self.name = name
        self.description = description


class User:
    def __init__(
        self,
        first_name: str,
        last_name: str,
        email: str,
        password_hash: str,
        role_id: int,
        id: Optional[int] = None,
        role_name: Optional[RoleName] = None,
        email_verified: bool = False,
        email_verification_code: Optional[str] = None,
        reset_token: Optional[str] = None,
        reset_token_expires: Optional[datetime] = None,
        balance: Decimal = Decimal("0.00"),
        created_at: Optional[datetime] = None,
        updated_at: Optional[datetime] = None,
    ):
        self.id = id
        self.first_name = first_name
        self.last_name = last_name
        self.email = email
        self.password_hash = password_hash
        self.role_id = role_id
        self.role_name = role_name
        self.email_verified = email_verified
        self.email_verification_code = email_verification_code
        self.reset_token = reset_token
        self.reset_token_expires = reset_token_expires
        self.balance = balance
        self.created_at = created_at
        self.updated_at = updated_at

    @property
    def full_name(self) -> str:
        return f"{self.first_name or ''} {self.last_name or ''}".strip()


class Parking:
    def __init__(
        self,
        code: str,
        name: str,
        total_spaces: int,
        charge_per_hour: Decimal,
        occupied_spaces: int = 0,
        location: Optional[str] = None,
        id: Optional[int] = None,
        created_at: Optional[datetime] = None,
    ):
        self.id = id
        self.code = code
        self.name = name
        self.total_spaces = total_spaces
        self.occupied_spaces = occupied_spaces
        self.location = location
        self.charge_per_hour = charge_per_hour
        self.created_at = created_at

    @property
    def available_spaces(self) -> int:
        return self.total_spaces - self.occupied_spaces

    @property
    def is_full(self) -> bool:
        return self.occupied_spaces >= self.total_spaces


class ParkingSlot:
    def __init__(
        self,
        slot_number: str,
        size: VehicleSize,
        vehicle_type: VehicleType,
        status: ParkingSlotStatus = ParkingSlotStatus.AVAILABLE,
        location: Optional[SlotLocation] = None,
        cost_per_hour: Optional[Decimal] = None,
        id: Optional[int] = None,
        created_at: Optional[datetime] = None,
    ):
        self.id = id
        self.slot_number = slot_number
        self.size = size
        self.vehicle_type = vehicle_type
        self.status = status
        self.location = location
        self.cost_per_hour = cost_per_hour
        self.created_at = created_at


class Vehicle:
    def __init__(
        self,
        user_id: int,
        plate_number: str,
        vehicle_type: VehicleType,
        size: VehicleSize,
        other_attributes: Optional[Dict[str, Any]] = None,
        id: Optional[int] = None,
        created_at: Optional[datetime] = None,
    ):
        self.id = id
        self.user_id = user_id
        self.plate_number = plate_number
        self.vehicle_type = vehicle_type
        self.size = size
        self.other_attributes = other_attributes
        self.created_at = created_at


class VehicleEntry:
    def __init__(
        self,
        plate_number: str,
        parking_id: int,
        entry_time: datetime,
        ticket_number: str,
        status: VehicleEntryStatus = VehicleEntryStatus.PARKED,
        id: Optional[int] = None,
        exit_time: Optional[datetime] = None,
        calculated_duration_minutes: Optional[int] = None,
        charged_amount: Decimal = Decimal("0.00"),
        recorded_by_id: Optional[int] = None,
        parking: Optional[Parking] = None,
        recorded_by_name: Optional[str] = None,
    ):
        self.id = id
        self.plate_number = plate_number
        self.parking_id = parking_id
        self.entry_time = entry_time
        self.exit_time = exit_time
        self.ticket_number = ticket_number
        self.status = status
        self.calculated_duration_minutes = calculated_duration_minutes
        self.charged_amount = charged_amount
        self.recorded_by_id = recorded_by_id
        self.parking = parking
        self.recorded_by_name = recorded_by_name


class SlotRequest:
    def __init__(
        self,
        user_id: int,
        vehicle_id: int,
        parking_slot_id: Optional[int],
        expected_duration_hours: int,
        calculated_cost: Decimal,
        status: SlotRequestStatus = SlotRequestStatus.PENDING,
        admin_notes: Optional[str] = None,
        id: Optional[int] = None,
        requested_at: Optional[datetime] = None,
        resolved_at: Optional[datetime] = None,
        user: Optional[User] = None,
        vehicle: Optional[Vehicle] = None,
        parking_slot: Optional[ParkingSlot] = None,
    ):
        self.id = id
        self.user_id = user_id
        self.vehicle_id = vehicle_id
        self.parking_slot_id = parking_slot_id
        self.expected_duration_hours = expected_duration_hours
        self.calculated_cost = calculated_cost
        self.status = status
        self.admin_notes = admin_notes
        self.requested_at = requested_at
        self.resolved_at = resolved_at
        self.user = user
        self.vehicle = vehicle
        self.parking_slot = parking_slot


class AuditLog:
    def __init__(
        self,
        action: str,
        user_id: Optional[int] = None,
        entity_type: Optional[str] = None,
        entity_id: Optional[int] = None,
        details: Optional[Dict[str, Any]] = None,
        id: Optional[int] = None,
        timestamp: Optional[datetime] = None,
    ):
        self.id = id
        self.user_id = user_id
        self.action = action
        self.entity_type = entity_type
        self.entity_id = entity_id
        self.details = details
        self.timestamp = timestamp


class Page(Generic[T]):
    """One page of a listing plus the totals needed for pagination links."""

    def __init__(self, items: List[T], total: int, page: int, limit: int):
        self.items = items
        self.total = total
        self.page = page
        self.limit = limit

    @property
    def total_pages(self) -> int:
        return math.ceil(self.total / self.limit) if self.limit else 0

    def pagination(self) -> Dict[str, int]:
        return {
            "currentPage": self.page,
            "totalPages": self.total_pages,
            "totalItems": self.total,
            "itemsPerPage": self.limit,
        }
