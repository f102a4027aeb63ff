from datetime import datetime, timezone
from typing import Optional, Tuple

from loguru import logger

from parkwell.application.repositories import (
    AbstractParkingSlotRepository,
    AbstractSlotRequestRepository,
    AbstractUserRepository,
    AbstractVehicleRepository,
    ListQuery,
)
from parkwell.application.services.audit_service import AuditService
from parkwell.application.services.documents import render_slot_request_ticket
from parkwell.domain.common import ParkingSlotStatus, SlotRequestStatus, parse_enum
from parkwell.domain.entities import Page, SlotRequest
from parkwell.domain.exceptions import (
    InsufficientBalanceError,
    NotFoundError,
    PermissionDeniedError,
    ValidationError,
)
from parkwell.shared.custom_types import to_money

RESOLUTION_STATUSES = (SlotRequestStatus.APPROVED, SlotRequestStatus.REJECTED)


class SlotRequestService:
    """User reservations of a specific slot and their admin approval.

    A request leaves PENDING exactly once: through the owner cancelling it or
    an admin approving/rejecting it. Approval charges the user's balance and
    takes the slot out of circulation.
    """

    def __init__(
        self,
        slot_request_repo: AbstractSlotRequestRepository,
        vehicle_repo: AbstractVehicleRepository,
        slot_repo: AbstractParkingSlotRepository,
        user_repo: AbstractUserRepository,
        audit_service: Optional[AuditService] = None,
        email_sender=None,
    ):
        self.slot_request_repo = slot_request_repo
        self.vehicle_repo = vehicle_repo
        self.slot_repo = slot_repo
        self.user_repo = user_repo
        self.audit_service = audit_service
        self.email_sender = email_sender

    async def _own_vehicle(self, user_id: int, vehicle_id: int, message: str):
        vehicle = await self.vehicle_repo.get_by_id(vehicle_id)
        if not vehicle or vehicle.user_id != user_id:
            raise NotFoundError(message)
        return vehicle

    async def create_request(
        self, user_id: int, vehicle_id: int, parking_slot_id: int, expected_duration_hours: int
    ) -> SlotRequest:
        if not expected_duration_hours or int(expected_duration_hours) <= 0:
            raise ValidationError("Expected duration must be a positive number of hours.")
        hours = int(expected_duration_hours)

        user = await self.user_repo.get_by_id(user_id)
        if not user:
            raise NotFoundError("User not found.")
        vehicle = await self._own_vehicle(user_id, vehicle_id, "Vehicle not found or does not belong to you.")

        slot = await self.slot_repo.get_by_id(parking_slot_id)
        if not slot:
            raise NotFoundError("Selected parking slot not found.")
        if slot.status != ParkingSlotStatus.AVAILABLE:
            raise ValidationError(f"Slot {slot.slot_number} is no longer available.")
        if slot.cost_per_hour is None:
            raise ValidationError(f"Slot {slot.slot_number} does not have a defined cost. Cannot request.")

        cost = to_money(slot.cost_per_hour * hours)
        if user.balance < cost:
            raise InsufficientBalanceError(
                f"Insufficient balance. Required: ${cost}, Available: ${user.balance}. Please top up your account."
            )

        if await self.slot_request_repo.has_active_for_vehicle(vehicle.id):
            raise ValidationError(
                "You already have an active request for this vehicle. Please resolve it before making a new one."
            )

        slot_request = await self.slot_request_repo.add(SlotRequest(
            user_id=user_id,
            vehicle_id=vehicle.id,
            parking_slot_id=slot.id,
            expected_duration_hours=hours,
            calculated_cost=cost,
        ))
        if self.audit_service:
            await self.audit_service.record(
                "Slot request created",
                user_id=user_id,
                entity_type="SlotRequest",
                entity_id=slot_request.id,
                details={"slot_number": slot.slot_number, "plate_number": vehicle.plate_number},
            )
        await self.slot_request_repo.commit()
        logger.info(f"Slot request {slot_request.id} for {slot.slot_number} submitted by user {user_id}")
        return slot_request

    async def get_request(self, request_id: int) -> SlotRequest:
        slot_request = await self.slot_request_repo.get_by_id(request_id)
        if not slot_request:
            raise NotFoundError("Slot request not found.")
        return slot_request

    async def list_requests(
        self, query: ListQuery, user_id: int, can_manage_all: bool = False, status=None
    ) -> Page[SlotRequest]:
        filters = {"status": parse_enum(SlotRequestStatus, status, "status") if status else None}
        if not can_manage_all:
            filters["user_id"] = user_id
        return await self.slot_request_repo.list(query, filters)

    async def update_own_request(
        self, user_id: int, request_id: int, vehicle_id: Optional[int] = None, status=None
    ) -> SlotRequest:
        slot_request = await self.get_request(request_id)
        if slot_request.user_id != user_id:
            raise PermissionDeniedError("Forbidden: You can only update your own requests.")
        if slot_request.status != SlotRequestStatus.PENDING:
            raise ValidationError(f"Cannot update request. Status is already {slot_request.status.value}.")
        if vehicle_id is None and status is None:
            raise ValidationError("No update data provided.")

        new_status = None
        if status is not None:
            new_status = parse_enum(SlotRequestStatus, status, "status")
            if new_status != SlotRequestStatus.CANCELLED:
                raise ValidationError("You can only cancel your request.")

        if vehicle_id is not None and vehicle_id != slot_request.vehicle_id:
            vehicle = await self._own_vehicle(user_id, vehicle_id, "New vehicle not found or does not belong to you.")
            if await self.slot_request_repo.has_active_for_vehicle(vehicle.id, exclude_request_id=slot_request.id):
                raise ValidationError("The selected vehicle already has an active slot request.")
            if not await self.slot_request_repo.change_vehicle(slot_request.id, vehicle.id):
                await self.slot_request_repo.rollback()
                raise ValidationError("Cannot update request. It has already been resolved.")

        if new_status is not None:
            if not await self.slot_request_repo.resolve(
                slot_request.id, new_status, datetime.now(timezone.utc), admin_notes=slot_request.admin_notes
            ):
                await self.slot_request_repo.rollback()
                raise ValidationError("Cannot update request. It has already been resolved.")
            if self.audit_service:
                await self.audit_service.record(
                    "Slot request cancelled", user_id=user_id, entity_type="SlotRequest", entity_id=slot_request.id
                )

        await self.slot_request_repo.commit()
        return await self.slot_request_repo.get_by_id(slot_request.id)

    async def resolve_request(
        self,
        admin_id: int,
        request_id: int,
        status,
        admin_notes: Optional[str] = None,
        parking_slot_id: Optional[int] = None,
    ) -> SlotRequest:
        try:
            new_status = parse_enum(SlotRequestStatus, status, "status")
        except ValidationError:
            new_status = None
        if new_status not in RESOLUTION_STATUSES:
            raise ValidationError("Invalid status. Must be APPROVED or REJECTED.")

        slot_request = await self.get_request(request_id)
        if slot_request.status != SlotRequestStatus.PENDING:
            raise ValidationError(f"Request already resolved with status: {slot_request.status.value}.")

        slot = None
        if new_status == SlotRequestStatus.APPROVED:
            slot_id = parking_slot_id or slot_request.parking_slot_id
            if not slot_id:
                raise ValidationError("Cannot approve: No parking slot was associated with this request.")
            slot = await self.slot_repo.get_by_id(slot_id)
            if not slot:
                raise NotFoundError("Parking slot not found.")
            if slot.status != ParkingSlotStatus.AVAILABLE:
                raise ValidationError(f"Cannot approve: Slot {slot.slot_number} is not available.")

        resolved = await self.slot_request_repo.resolve(
            slot_request.id,
            new_status,
            datetime.now(timezone.utc),
            admin_notes=admin_notes,
            parking_slot_id=slot.id if slot else None,
        )
        if not resolved:
            await self.slot_request_repo.rollback()
            raise ValidationError("Request already resolved.")

        if new_status == SlotRequestStatus.APPROVED:
            cost = slot_request.calculated_cost
            if not await self.user_repo.deduct_balance(slot_request.user_id, cost):
                await self.slot_request_repo.rollback()
                user = await self.user_repo.get_by_id(slot_request.user_id)
                available = user.balance if user else to_money(0)
                raise ValidationError(
                    f"Cannot approve: User's balance (${available}) is less than cost (${cost})."
                )
            if not await self.slot_repo.set_status(
                slot.id, ParkingSlotStatus.UNAVAILABLE, expected=ParkingSlotStatus.AVAILABLE
            ):
                await self.slot_request_repo.rollback()
                raise ValidationError(f"Cannot approve: Slot {slot.slot_number} is not available.")

        if self.audit_service:
            await self.audit_service.record(
                f"Slot request {new_status.value.lower()}",
                user_id=admin_id,
                entity_type="SlotRequest",
                entity_id=slot_request.id,
                details={"admin_notes": admin_notes, "parking_slot_id": slot.id if slot else None},
            )
        await self.slot_request_repo.commit()

        slot_request = await self.slot_request_repo.get_by_id(slot_request.id)
        logger.info(f"Slot request {slot_request.id} {new_status.value} by admin {admin_id}")

        if new_status == SlotRequestStatus.APPROVED and self.email_sender and slot_request.user:
            await self.email_sender.send_slot_approval(
                slot_request.user.email,
                slot_request.user.first_name,
                slot_request.parking_slot.slot_number,
                slot_request.vehicle.plate_number,
                slot_request.expected_duration_hours,
                slot_request.calculated_cost,
            )
        return slot_request

    async def request_ticket(self, request_id: int, user_id: int, can_manage_all: bool = False) -> Tuple[str, str]:
        slot_request = await self.get_request(request_id)
        if slot_request.user_id != user_id and not can_manage_all:
            raise PermissionDeniedError("Forbidden: You are not authorized to download this ticket.")
        if slot_request.status != SlotRequestStatus.APPROVED or not slot_request.parking_slot:
            raise ValidationError("Ticket can only be generated for approved and assigned requests.")
        return f"slot-ticket-{slot_request.id}.txt", render_slot_request_ticket(slot_request)
