import re
from typing import Any, Dict, Optional

from loguru import logger

from parkwell.application.repositories import AbstractSlotRequestRepository, AbstractVehicleRepository, ListQuery
from parkwell.domain.common import PLATE_NUMBER_PATTERN, VehicleSize, VehicleType, parse_enum
from parkwell.domain.entities import Page, Vehicle
from parkwell.domain.exceptions import ConflictError, NotFoundError, PermissionDeniedError, ValidationError


def normalize_plate_number(plate_number: str) -> str:
    """Upper-case and validate a licence plate."""
    plate = (plate_number or "").strip().upper()
    if not re.match(PLATE_NUMBER_PATTERN, plate):
        raise ValidationError(
            "Invalid plate number format. Use 3-15 uppercase letters, digits or hyphens."
        )
    return plate


class VehicleService:
    def __init__(self, vehicle_repo: AbstractVehicleRepository, slot_request_repo: AbstractSlotRequestRepository):
        self.vehicle_repo = vehicle_repo
        self.slot_request_repo = slot_request_repo

    async def add_vehicle(
        self,
        user_id: int,
        plate_number: str,
        vehicle_type,
        size,
        other_attributes: Optional[Dict[str, Any]] = None,
    ) -> Vehicle:
        plate = normalize_plate_number(plate_number)
        vehicle_type = parse_enum(VehicleType, vehicle_type, "vehicle_type")
        size = parse_enum(VehicleSize, size, "size")

        if await self.vehicle_repo.get_by_plate_number(plate):
            raise ConflictError("Plate number already registered.")

        vehicle = await self.vehicle_repo.add(Vehicle(
            user_id=user_id,
            plate_number=plate,
            vehicle_type=vehicle_type,
            size=size,
            other_attributes=other_attributes,
        ))
        await self.vehicle_repo.commit()
        logger.info(f"Vehicle {plate} added for user {user_id}")
        return vehicle

    async def get_vehicle(self, user_id: int, vehicle_id: int) -> Vehicle:
        vehicle = await self.vehicle_repo.get_by_id(vehicle_id)
        if not vehicle:
            raise NotFoundError("Vehicle not found.")
        if vehicle.user_id != user_id:
            raise PermissionDeniedError("Forbidden: You do not own this vehicle.")
        return vehicle

    async def list_vehicles(self, user_id: int, query: ListQuery) -> Page[Vehicle]:
        return await self.vehicle_repo.list_for_user(user_id, query)

    async def update_vehicle(
        self,
        user_id: int,
        vehicle_id: int,
        plate_number: Optional[str] = None,
        vehicle_type=None,
        size=None,
        other_attributes: Optional[Dict[str, Any]] = None,
    ) -> Vehicle:
        vehicle = await self.get_vehicle(user_id, vehicle_id)

        if plate_number is None and vehicle_type is None and size is None and other_attributes is None:
            raise ValidationError("No update data provided.")

        if plate_number is not None:
            plate = normalize_plate_number(plate_number)
            if plate != vehicle.plate_number:
                if await self.vehicle_repo.get_by_plate_number(plate):
                    raise ConflictError("New plate number is already registered.")
                vehicle.plate_number = plate
        if vehicle_type is not None:
            vehicle.vehicle_type = parse_enum(VehicleType, vehicle_type, "vehicle_type")
        if size is not None:
            vehicle.size = parse_enum(VehicleSize, size, "size")
        if other_attributes is not None:
            vehicle.other_attributes = other_attributes

        vehicle = await self.vehicle_repo.update(vehicle)
        await self.vehicle_repo.commit()
        return vehicle

    async def delete_vehicle(self, user_id: int, vehicle_id: int) -> None:
        vehicle = await self.get_vehicle(user_id, vehicle_id)
        if await self.slot_request_repo.has_active_for_vehicle(vehicle.id):
            raise ValidationError(
                "Cannot delete vehicle. It has pending or approved slot requests. Please cancel them first."
            )
        await self.vehicle_repo.delete(vehicle.id)
        await self.vehicle_repo.commit()
        logger.info(f"Vehicle {vehicle.plate_number} deleted by user {user_id}")
