import re
from abc import ABC, abstractmethod
from datetime import datetime
from decimal import Decimal
from typing import Dict, List, Optional, Set

from parkwell.domain.common import ParkingSlotStatus, RoleName, SlotRequestStatus
from parkwell.domain.entities import (
    AuditLog,
    Page,
    Parking,
    ParkingSlot,
    Permission,
    Role,
    SlotRequest,
    User,
    Vehicle,
    VehicleEntry,
)


class ListQuery:
    """Paging, free-text search and ordering shared by every listing."""

    def __init__(
        self,
        page: int = 1,
        limit: int = 10,
        search: Optional[str] = None,
        sort_by: Optional[str] = None,
        order: str = "desc",
    ):
        self.page = max(1, page)
        self.limit = max(1, limit)
        self.search = search.strip() if search and search.strip() else None
        self.sort_by = re.sub(r"(?<!^)(?=[A-Z])", "_", sort_by).lower() if sort_by else None
        self.order = "asc" if str(order).lower() == "asc" else "desc"

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit


class AbstractRepository(ABC):
    @abstractmethod
    async def commit(self):
        pass

    @abstractmethod
    async def rollback(self):
        pass


class AbstractRoleRepository(AbstractRepository):
    @abstractmethod
    async def get_by_id(self, role_id: int) -> Optional[Role]:
        pass

    @abstractmethod
    async def get_by_name(self, name: RoleName) -> Optional[Role]:
        pass

    @abstractmethod
    async def get_all(self) -> List[Role]:
        pass

    @abstractmethod
    async def get_all_permissions(self) -> List[Permission]:
        pass

    @abstractmethod
    async def get_permission_names(self, role_id: int) -> List[str]:
        pass


class AbstractUserRepository(AbstractRepository):
    @abstractmethod
    async def get_by_id(self, user_id: int) -> Optional[User]:
        pass

    @abstractmethod
    async def get_by_email(self, email: str) -> Optional[User]:
        pass

    @abstractmethod
    async def add(self, user: User) -> User:
        pass

    @abstractmethod
    async def update(self, user: User) -> User:
        pass

    @abstractmethod
    async def delete(self, user_id: int) -> bool:
        pass

    @abstractmethod
    async def list(self, query: ListQuery, role_name: Optional[RoleName] = None) -> Page[User]:
        pass

    @abstractmethod
    async def deduct_balance(self, user_id: int, amount: Decimal) -> bool:
        """Subtract `amount` only if the balance covers it. False when it does not."""
        pass

    @abstractmethod
    async def set_balance(self, user_id: int, amount: Decimal) -> bool:
        pass


class AbstractParkingRepository(AbstractRepository):
    @abstractmethod
    async def get_by_id(self, parking_id: int) -> Optional[Parking]:
        pass

    @abstractmethod
    async def get_by_code(self, code: str) -> Optional[Parking]:
        pass

    @abstractmethod
    async def add(self, parking: Parking) -> Parking:
        pass

    @abstractmethod
    async def update(self, parking: Parking) -> Parking:
        pass

    @abstractmethod
    async def delete(self, parking_id: int) -> bool:
        pass

    @abstractmethod
    async def list(self, query: ListQuery) -> Page[Parking]:
        pass

    @abstractmethod
    async def get_selectable(self) -> List[Parking]:
        pass

    @abstractmethod
    async def increment_occupied(self, parking_id: int) -> bool:
        """Take one space. False when the parking is already full."""
        pass

    @abstractmethod
    async def decrement_occupied(self, parking_id: int) -> bool:
        """Release one space. False when occupied_spaces is already 0."""
        pass

    @abstractmethod
    async def set_capacity(
        self, parking_id: int, total_spaces: Optional[int] = None, occupied_spaces: Optional[int] = None
    ) -> bool:
        """Change total and/or occupied spaces. False when the result would leave occupied > total."""
        pass


class AbstractParkingSlotRepository(AbstractRepository):
    @abstractmethod
    async def get_by_id(self, slot_id: int) -> Optional[ParkingSlot]:
        pass

    @abstractmethod
    async def get_by_number(self, slot_number: str) -> Optional[ParkingSlot]:
        pass

    @abstractmethod
    async def get_existing_numbers(self, slot_numbers: List[str]) -> Set[str]:
        pass

    @abstractmethod
    async def add(self, slot: ParkingSlot) -> ParkingSlot:
        pass

    @abstractmethod
    async def add_many(self, slots: List[ParkingSlot]) -> List[ParkingSlot]:
        pass

    @abstractmethod
    async def update(self, slot: ParkingSlot) -> ParkingSlot:
        pass

    @abstractmethod
    async def delete(self, slot_id: int) -> bool:
        pass

    @abstractmethod
    async def list(self, query: ListQuery, filters: Optional[Dict] = None) -> Page[ParkingSlot]:
        pass

    @abstractmethod
    async def set_status(
        self, slot_id: int, status: ParkingSlotStatus, expected: Optional[ParkingSlotStatus] = None
    ) -> bool:
        """Change the slot status, optionally only when it currently equals `expected`."""
        pass


class AbstractVehicleRepository(AbstractRepository):
    @abstractmethod
    async def get_by_id(self, vehicle_id: int) -> Optional[Vehicle]:
        pass

    @abstractmethod
    async def get_by_plate_number(self, plate_number: str) -> Optional[Vehicle]:
        pass

    @abstractmethod
    async def add(self, vehicle: Vehicle) -> Vehicle:
        pass

    @abstractmethod
    async def update(self, vehicle: Vehicle) -> Vehicle:
        pass

    @abstractmethod
    async def delete(self, vehicle_id: int) -> bool:
        pass

    @abstractmethod
    async def list_for_user(self, user_id: int, query: ListQuery) -> Page[Vehicle]:
        pass


class AbstractVehicleEntryRepository(AbstractRepository):
    @abstractmethod
    async def get_by_id(self, entry_id: int) -> Optional[VehicleEntry]:
        pass

    @abstractmethod
    async def get_parked_by_plate_number(self, plate_number: str) -> Optional[VehicleEntry]:
        pass

    @abstractmethod
    async def ticket_number_exists(self, ticket_number: str) -> bool:
        pass

    @abstractmethod
    async def add(self, entry: VehicleEntry) -> VehicleEntry:
        pass

    @abstractmethod
    async def mark_exited(
        self, entry_id: int, exit_time: datetime, duration_minutes: int, charged_amount: Decimal
    ) -> bool:
        """PARKED -> EXITED. False when the entry is no longer PARKED."""
        pass

    @abstractmethod
    async def list(self, query: ListQuery, filters: Optional[Dict] = None) -> Page[VehicleEntry]:
        pass

    @abstractmethod
    async def count_for_parking(self, parking_id: int, parked_only: bool = False) -> int:
        pass

    @abstractmethod
    async def list_entered_between(
        self, start: Optional[datetime], end: Optional[datetime], query: ListQuery, parking_id: Optional[int] = None
    ) -> Page[VehicleEntry]:
        pass

    @abstractmethod
    async def list_exited_between(
        self, start: Optional[datetime], end: Optional[datetime], query: ListQuery, parking_id: Optional[int] = None
    ) -> Page[VehicleEntry]:
        pass

    @abstractmethod
    async def total_charged_between(
        self, start: Optional[datetime], end: Optional[datetime], parking_id: Optional[int] = None
    ) -> Decimal:
        pass


class AbstractSlotRequestRepository(AbstractRepository):
    @abstractmethod
    async def get_by_id(self, request_id: int) -> Optional[SlotRequest]:
        pass

    @abstractmethod
    async def add(self, slot_request: SlotRequest) -> SlotRequest:
        pass

    @abstractmethod
    async def change_vehicle(self, request_id: int, vehicle_id: int) -> bool:
        """Swap the vehicle of a PENDING request. False when it already left PENDING."""
        pass

    @abstractmethod
    async def list(self, query: ListQuery, filters: Optional[Dict] = None) -> Page[SlotRequest]:
        pass

    @abstractmethod
    async def has_active_for_vehicle(self, vehicle_id: int, exclude_request_id: Optional[int] = None) -> bool:
        pass

    @abstractmethod
    async def has_approved_for_slot(self, slot_id: int) -> bool:
        pass

    @abstractmethod
    async def has_approved_for_user(self, user_id: int) -> bool:
        pass

    @abstractmethod
    async def resolve(
        self,
        request_id: int,
        status: SlotRequestStatus,
        resolved_at: datetime,
        admin_notes: Optional[str] = None,
        parking_slot_id: Optional[int] = None,
    ) -> bool:
        """Move a PENDING request to `status`. False when it already left PENDING."""
        pass


class AbstractAuditLogRepository(AbstractRepository):
    @abstractmethod
    async def add(self, audit_log: AuditLog) -> AuditLog:
        pass

    @abstractmethod
    async def list(self, query: ListQuery, filters: Optional[Dict] = None) -> Page[AuditLog]:
        pass
