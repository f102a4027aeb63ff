import re
from decimal import Decimal, InvalidOperation
from typing import List, Optional

from loguru import logger

from parkwell.application.repositories import (
    AbstractParkingRepository,
    AbstractVehicleEntryRepository,
    ListQuery,
)
from parkwell.domain.common import PARKING_CODE_PATTERN
from parkwell.domain.entities import Page, Parking
from parkwell.domain.exceptions import ConflictError, NotFoundError, ValidationError
from parkwell.shared.custom_types import to_money


def _parse_code(code: str) -> str:
    code = (code or "").strip().upper()
    if not re.match(PARKING_CODE_PATTERN, code):
        raise ValidationError("Parking code must be 1-10 alphanumeric characters, underscores, or hyphens.")
    return code


def _parse_charge(charge_per_hour) -> Decimal:
    try:
        charge = to_money(charge_per_hour)
    except (InvalidOperation, ValueError):
        raise ValidationError("Charge per hour must be a non-negative number.")
    if charge < 0:
        raise ValidationError("Charge per hour must be a non-negative number.")
    return charge


class ParkingService:
    """Parking facilities: capacity, hourly rate and the live occupancy counter."""

    def __init__(self, parking_repo: AbstractParkingRepository, vehicle_entry_repo: AbstractVehicleEntryRepository):
        self.parking_repo = parking_repo
        self.vehicle_entry_repo = vehicle_entry_repo

    async def create_parking(
        self, code: str, name: str, total_spaces: int, charge_per_hour, location: Optional[str] = None
    ) -> Parking:
        code = _parse_code(code)
        if not name or not name.strip():
            raise ValidationError("Code, name, total spaces, and charge per hour are required.")
        if total_spaces is None or int(total_spaces) <= 0:
            raise ValidationError("Total spaces must be a positive number.")
        charge = _parse_charge(charge_per_hour)

        if await self.parking_repo.get_by_code(code):
            raise ConflictError(f"Parking facility with code '{code}' already exists.")

        parking = await self.parking_repo.add(Parking(
            code=code,
            name=name.strip(),
            total_spaces=int(total_spaces),
            charge_per_hour=charge,
            location=location.strip() if location else None,
        ))
        await self.parking_repo.commit()
        logger.info(f"Parking {code} created with {parking.total_spaces} spaces")
        return parking

    async def get_parking(self, parking_id: int) -> Parking:
        parking = await self.parking_repo.get_by_id(parking_id)
        if not parking:
            raise NotFoundError("Parking facility not found")
        return parking

    async def list_parkings(self, query: ListQuery) -> Page[Parking]:
        return await self.parking_repo.list(query)

    async def list_selectable(self) -> List[Parking]:
        return await self.parking_repo.get_selectable()

    async def update_parking(
        self,
        parking_id: int,
        code: Optional[str] = None,
        name: Optional[str] = None,
        total_spaces: Optional[int] = None,
        charge_per_hour=None,
        location: Optional[str] = None,
        occupied_spaces: Optional[int] = None,
    ) -> Parking:
        parking = await self.get_parking(parking_id)

        if all(v is None for v in (code, name, total_spaces, charge_per_hour, location, occupied_spaces)):
            raise ValidationError("No update data provided")

        if code is not None:
            new_code = _parse_code(code)
            if new_code != parking.code:
                if await self.parking_repo.get_by_code(new_code):
                    raise ConflictError(f"Parking facility code '{new_code}' already in use.")
                parking.code = new_code
        if name is not None:
            if not name.strip():
                raise ValidationError("Name cannot be empty.")
            parking.name = name.strip()
        if location is not None:
            parking.location = location.strip() or None
        if charge_per_hour is not None:
            parking.charge_per_hour = _parse_charge(charge_per_hour)

        if total_spaces is not None:
            total_spaces = int(total_spaces)
            if total_spaces <= 0:
                raise ValidationError("Total spaces must be a positive number.")
        if occupied_spaces is not None:
            occupied_spaces = int(occupied_spaces)
            if occupied_spaces < 0:
                raise ValidationError("Occupied spaces must be a non-negative number.")
            if total_spaces is not None and occupied_spaces > total_spaces:
                raise ValidationError(
                    f"Occupied spaces ({occupied_spaces}) cannot exceed total spaces ({total_spaces})."
                )

        await self.parking_repo.update(parking)

        # Occupancy is never written back from the snapshot read above
        if total_spaces is not None or occupied_spaces is not None:
            if not await self.parking_repo.set_capacity(parking.id, total_spaces, occupied_spaces):
                await self.parking_repo.rollback()
                current = await self.get_parking(parking.id)
                if occupied_spaces is None:
                    raise ValidationError(
                        f"Total spaces ({total_spaces}) cannot be less than currently occupied spaces "
                        f"({current.occupied_spaces})."
                    )
                raise ValidationError(
                    f"Occupied spaces ({occupied_spaces}) cannot exceed total spaces ({current.total_spaces})."
                )

        await self.parking_repo.commit()
        parking = await self.get_parking(parking.id)
        logger.info(f"Parking {parking.code} updated")
        return parking

    async def delete_parking(self, parking_id: int) -> None:
        parking = await self.get_parking(parking_id)

        parked = await self.vehicle_entry_repo.count_for_parking(parking.id, parked_only=True)
        if parked:
            raise ValidationError(
                f"Cannot delete parking facility. There are {parked} vehicle(s) currently parked here. "
                "Please ensure all vehicles exit first."
            )
        if await self.vehicle_entry_repo.count_for_parking(parking.id):
            raise ValidationError(
                "Cannot delete parking facility. It may still have historical vehicle entries associated."
            )

        await self.parking_repo.delete(parking.id)
        await self.parking_repo.commit()
        logger.info(f"Parking {parking.code} deleted")
