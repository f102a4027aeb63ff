import re
from decimal import InvalidOperation
from typing import List, Optional

from loguru import logger

from parkwell.application.repositories import (
    AbstractParkingSlotRepository,
    AbstractSlotRequestRepository,
    ListQuery,
)
from parkwell.domain.common import (
    SLOT_NUMBER_PATTERN,
    ParkingSlotStatus,
    SlotLocation,
    VehicleSize,
    VehicleType,
    parse_enum,
)
from parkwell.domain.entities import Page, ParkingSlot
from parkwell.domain.exceptions import ConflictError, NotFoundError, ValidationError
from parkwell.shared.custom_types import to_money

MAX_BULK_SLOTS = 500


def _parse_slot_number(slot_number: str) -> str:
    slot_number = (slot_number or "").strip().upper()
    if not re.match(SLOT_NUMBER_PATTERN, slot_number):
        raise ValidationError("Invalid slot number format. Use 2-10 uppercase letters, digits or hyphens.")
    return slot_number


def _parse_cost(cost_per_hour):
    if cost_per_hour is None:
        return None
    try:
        cost = to_money(cost_per_hour)
    except (InvalidOperation, ValueError):
        raise ValidationError("Cost per hour must be a non-negative number.")
    if cost < 0:
        raise ValidationError("Cost per hour must be a non-negative number.")
    return cost


def bulk_slot_numbers(prefix: str, start_number: int, count: int) -> List[str]:
    """PS001, PS002, ... : prefix upper-cased, number zero-padded to 3 digits."""
    prefix = (prefix or "PS").strip().upper()
    return [f"{prefix}{start_number + i:03d}" for i in range(count)]


class ParkingSlotService:
    def __init__(self, slot_repo: AbstractParkingSlotRepository, slot_request_repo: AbstractSlotRequestRepository):
        self.slot_repo = slot_repo
        self.slot_request_repo = slot_request_repo

    async def create_slot(
        self,
        slot_number: str,
        size,
        vehicle_type,
        location=None,
        status=None,
        cost_per_hour=None,
    ) -> ParkingSlot:
        slot_number = _parse_slot_number(slot_number)
        slot = ParkingSlot(
            slot_number=slot_number,
            size=parse_enum(VehicleSize, size, "size"),
            vehicle_type=parse_enum(VehicleType, vehicle_type, "vehicle_type"),
            location=parse_enum(SlotLocation, location, "location") if location else None,
            status=parse_enum(ParkingSlotStatus, status, "status") if status else ParkingSlotStatus.AVAILABLE,
            cost_per_hour=_parse_cost(cost_per_hour),
        )

        if await self.slot_repo.get_by_number(slot_number):
            raise ConflictError("Slot number already exists.")

        slot = await self.slot_repo.add(slot)
        await self.slot_repo.commit()
        logger.info(f"Parking slot {slot.slot_number} created")
        return slot

    async def bulk_create_slots(
        self,
        count: int,
        size,
        vehicle_type,
        prefix: str = "PS",
        start_number: int = 1,
        location=None,
        cost_per_hour=None,
    ) -> List[ParkingSlot]:
        if not count or count <= 0 or count > MAX_BULK_SLOTS:
            raise ValidationError(f"Invalid count. Must be between 1 and {MAX_BULK_SLOTS}.")
        if start_number is None or start_number < 0:
            raise ValidationError("Start number must be a non-negative integer.")
        size = parse_enum(VehicleSize, size, "size")
        vehicle_type = parse_enum(VehicleType, vehicle_type, "vehicle_type")
        location = parse_enum(SlotLocation, location, "location") if location else None
        cost = _parse_cost(cost_per_hour)

        numbers = bulk_slot_numbers(prefix, start_number, count)
        for number in numbers:
            _parse_slot_number(number)

        existing = await self.slot_repo.get_existing_numbers(numbers)
        if existing:
            logger.warning(f"Skipping {len(existing)} existing slot number(s) during bulk create")
        to_create = [
            ParkingSlot(slot_number=number, size=size, vehicle_type=vehicle_type, location=location, cost_per_hour=cost)
            for number in numbers
            if number not in existing
        ]
        if not to_create:
            raise ValidationError("No new slots to create (all provided numbers already exist).")

        created = await self.slot_repo.add_many(to_create)
        await self.slot_repo.commit()
        logger.info(f"{len(created)} parking slots created via bulk operation")
        return created

    async def get_slot(self, slot_id: int) -> ParkingSlot:
        slot = await self.slot_repo.get_by_id(slot_id)
        if not slot:
            raise NotFoundError("Parking slot not found.")
        return slot

    async def list_slots(
        self,
        query: ListQuery,
        can_view_all: bool = False,
        status=None,
        size=None,
        vehicle_type=None,
        location=None,
    ) -> Page[ParkingSlot]:
        """Staff with full access may filter on any status; everyone else only sees AVAILABLE slots."""
        filters = {
            "size": parse_enum(VehicleSize, size, "size") if size else None,
            "vehicle_type": parse_enum(VehicleType, vehicle_type, "vehicle_type") if vehicle_type else None,
            "location": parse_enum(SlotLocation, location, "location") if location else None,
        }
        if can_view_all:
            filters["status"] = parse_enum(ParkingSlotStatus, status, "status") if status else None
        else:
            filters["status"] = ParkingSlotStatus.AVAILABLE
        if query.sort_by is None:
            query.sort_by = "slot_number"
            query.order = "asc"
        return await self.slot_repo.list(query, filters)

    async def update_slot(
        self,
        slot_id: int,
        slot_number: Optional[str] = None,
        size=None,
        vehicle_type=None,
        location=None,
        status=None,
        cost_per_hour=None,
    ) -> ParkingSlot:
        slot = await self.get_slot(slot_id)

        if all(v is None for v in (slot_number, size, vehicle_type, location, status, cost_per_hour)):
            raise ValidationError("No update data provided.")

        if slot_number is not None:
            new_number = _parse_slot_number(slot_number)
            if new_number != slot.slot_number:
                if await self.slot_repo.get_by_number(new_number):
                    raise ConflictError("New slot number already exists.")
                slot.slot_number = new_number
        if size is not None:
            slot.size = parse_enum(VehicleSize, size, "size")
        if vehicle_type is not None:
            slot.vehicle_type = parse_enum(VehicleType, vehicle_type, "vehicle_type")
        if location is not None:
            slot.location = parse_enum(SlotLocation, location, "location") if location else None
        if cost_per_hour is not None:
            slot.cost_per_hour = _parse_cost(cost_per_hour)
        if status is not None:
            new_status = parse_enum(ParkingSlotStatus, status, "status")
            if new_status == ParkingSlotStatus.AVAILABLE and slot.status != ParkingSlotStatus.AVAILABLE:
                if await self.slot_request_repo.has_approved_for_slot(slot.id):
                    raise ValidationError(
                        "Cannot set slot to AVAILABLE. It is assigned to an approved request. "
                        "Reject/complete the request first."
                    )
            slot.status = new_status

        slot = await self.slot_repo.update(slot)
        await self.slot_repo.commit()
        return slot

    async def delete_slot(self, slot_id: int) -> None:
        slot = await self.get_slot(slot_id)
        if await self.slot_request_repo.has_approved_for_slot(slot.id):
            raise ValidationError("Cannot delete slot. It is currently assigned to an approved request.")
        await self.slot_repo.delete(slot.id)
        await self.slot_repo.commit()
        logger.info(f"Parking slot {slot.slot_number} deleted")
