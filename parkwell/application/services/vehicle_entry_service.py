import math
import secrets
import string
import time
from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Optional, Tuple

from loguru import logger

from parkwell.application.repositories import (
    AbstractParkingRepository,
    AbstractVehicleEntryRepository,
    ListQuery,
)
from parkwell.application.services.audit_service import AuditService
from parkwell.application.services.date_range import day_bounds
from parkwell.application.services.documents import render_entry_ticket, render_exit_bill
from parkwell.application.services.vehicle_service import normalize_plate_number
from parkwell.domain.common import VehicleEntryStatus, parse_enum
from parkwell.domain.entities import Page, Parking, VehicleEntry
from parkwell.domain.exceptions import NotFoundError, ValidationError
from parkwell.shared.custom_types import to_money

TICKET_ALPHABET = string.ascii_uppercase + string.digits
TICKET_ATTEMPTS = 5


def calculate_charge(entry_time: datetime, exit_time: datetime, charge_per_hour) -> Tuple[int, Decimal]:
    """Return (duration in minutes, amount charged).

    Any started minute counts, the minimum stay is one minute, and billing is
    per started hour with a minimum of one hour.
    """
    elapsed_seconds = (exit_time - entry_time).total_seconds()
    duration_minutes = max(1, math.ceil(elapsed_seconds / 60))
    billed_hours = max(1, math.ceil(duration_minutes / 60))
    return duration_minutes, to_money(to_money(charge_per_hour) * billed_hours)


def generate_ticket_number() -> str:
    """TKT- + last 6 digits of the epoch millis + 4 random upper-case alphanumerics."""
    millis = str(int(time.time() * 1000))[-6:]
    suffix = "".join(secrets.choice(TICKET_ALPHABET) for _ in range(4))
    return f"TKT-{millis}{suffix}"


class VehicleEntryService:
    def __init__(
        self,
        parking_repo: AbstractParkingRepository,
        vehicle_entry_repo: AbstractVehicleEntryRepository,
        audit_service: Optional[AuditService] = None,
    ):
        self.parking_repo = parking_repo
        self.vehicle_entry_repo = vehicle_entry_repo
        self.audit_service = audit_service

    async def _new_ticket_number(self) -> str:
        for _ in range(TICKET_ATTEMPTS):
            ticket_number = generate_ticket_number()
            if not await self.vehicle_entry_repo.ticket_number_exists(ticket_number):
                return ticket_number
        raise ValidationError("Ticket number generation conflict. Please try again.")

    async def record_entry(
        self, plate_number: str, parking_id: int, recorded_by_id: Optional[int] = None
    ) -> Tuple[VehicleEntry, Parking]:
        plate = normalize_plate_number(plate_number)

        parking = await self.parking_repo.get_by_id(parking_id)
        if not parking:
            raise NotFoundError("Selected parking facility not found.")
        if parking.is_full:
            raise ValidationError(f"Parking facility '{parking.name}' is full.")

        if await self.vehicle_entry_repo.get_parked_by_plate_number(plate):
            raise ValidationError(f"Vehicle with plate {plate} is already marked as PARKED.")

        ticket_number = await self._new_ticket_number()

        # Guarded increment; loses the race when another entry took the last space
        if not await self.parking_repo.increment_occupied(parking.id):
            await self.parking_repo.rollback()
            raise ValidationError(f"Parking facility '{parking.name}' is full.")

        entry = await self.vehicle_entry_repo.add(VehicleEntry(
            plate_number=plate,
            parking_id=parking.id,
            entry_time=datetime.now(timezone.utc),
            ticket_number=ticket_number,
            recorded_by_id=recorded_by_id,
        ))
        if self.audit_service:
            await self.audit_service.record(
                "Vehicle entered",
                user_id=recorded_by_id,
                entity_type="VehicleEntry",
                entity_id=entry.id,
                details={"plate_number": plate, "parking_id": parking.id, "ticket_number": ticket_number},
            )
        await self.vehicle_entry_repo.commit()

        parking = await self.parking_repo.get_by_id(parking.id)
        logger.info(
            f"Vehicle {plate} entered {parking.code}: {parking.occupied_spaces}/{parking.total_spaces} occupied"
        )
        return entry, parking

    async def record_exit(self, entry_id: int, recorded_by_id: Optional[int] = None) -> VehicleEntry:
        entry = await self.vehicle_entry_repo.get_by_id(entry_id)
        if not entry:
            raise NotFoundError("Active vehicle entry not found.")
        if entry.status != VehicleEntryStatus.PARKED:
            raise ValidationError(f"Vehicle is not currently PARKED. Status: {entry.status.value}")
        if entry.parking is None or entry.parking.charge_per_hour is None:
            raise RuntimeError("Parking facility details or charge rate missing for this entry.")

        exit_time = datetime.now(timezone.utc)
        duration_minutes, charged_amount = calculate_charge(
            entry.entry_time, exit_time, entry.parking.charge_per_hour
        )

        if not await self.vehicle_entry_repo.mark_exited(entry.id, exit_time, duration_minutes, charged_amount):
            await self.vehicle_entry_repo.rollback()
            raise ValidationError("Vehicle is not currently PARKED. Status: EXITED")

        if not await self.parking_repo.decrement_occupied(entry.parking_id):
            logger.warning(f"Parking {entry.parking_id} already had 0 occupied spaces on exit of {entry.plate_number}")

        if self.audit_service:
            await self.audit_service.record(
                "Vehicle exited",
                user_id=recorded_by_id,
                entity_type="VehicleEntry",
                entity_id=entry.id,
                details={"plate_number": entry.plate_number, "charged_amount": str(charged_amount)},
            )
        await self.vehicle_entry_repo.commit()

        entry = await self.vehicle_entry_repo.get_by_id(entry.id)
        logger.info(f"Vehicle {entry.plate_number} exited after {duration_minutes} min. Amount: {charged_amount}")
        return entry

    async def get_entry(self, entry_id: int) -> VehicleEntry:
        entry = await self.vehicle_entry_repo.get_by_id(entry_id)
        if not entry:
            raise NotFoundError("Vehicle entry record not found.")
        return entry

    async def list_entries(
        self,
        query: ListQuery,
        status=None,
        parking_id: Optional[int] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> Page[VehicleEntry]:
        start, end = day_bounds(start_date, end_date)
        filters = {
            "status": parse_enum(VehicleEntryStatus, status, "status") if status else None,
            "parking_id": parking_id,
            "start": start,
            "end": end,
        }
        return await self.vehicle_entry_repo.list(query, filters)

    async def entry_ticket(self, entry_id: int) -> Tuple[str, str]:
        entry = await self.get_entry(entry_id)
        return f"entry-ticket-{entry.ticket_number}.txt", render_entry_ticket(entry)

    async def exit_bill(self, entry_id: int) -> Tuple[str, str]:
        entry = await self.get_entry(entry_id)
        if entry.status != VehicleEntryStatus.EXITED or entry.exit_time is None:
            raise ValidationError(
                "Exit bill can only be generated for fully exited vehicles with a charged amount and exit time."
            )
        return f"exit-bill-{entry.ticket_number}.txt", render_exit_bill(entry)
