from typing import Optional

from fastapi import APIRouter, Depends, Query, status

from parkwell.application.repositories import ListQuery
from parkwell.application.services.parking_slot_service import ParkingSlotService
from parkwell.infrastructure.api.dependencies import (
    CurrentUser,
    get_parking_slot_service,
    list_query,
    require_any_permission,
    require_permission,
)
from parkwell.infrastructure.api.schemas.common import MessageResponse, PaginatedResponse, paginated
from parkwell.infrastructure.api.schemas.parking_slots import (
    BulkCreateResponse,
    ParkingSlotBulkCreate,
    ParkingSlotCreate,
    ParkingSlotResponse,
    ParkingSlotUpdate,
)

router = APIRouter(prefix="/parking-slots", tags=["parking-slots"])

view_slots = require_any_permission("view_available_parking_slots", "view_all_parking_slots")


@router.post(
    "",
    response_model=ParkingSlotResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_permission("manage_parking_slots"))],
)
async def create_slot(data: ParkingSlotCreate, service: ParkingSlotService = Depends(get_parking_slot_service)):
    return await service.create_slot(
        data.slot_number,
        data.size,
        data.vehicle_type,
        location=data.location,
        status=data.status,
        cost_per_hour=data.cost_per_hour,
    )


@router.post(
    "/bulk",
    response_model=BulkCreateResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_permission("manage_parking_slots"))],
)
async def bulk_create_slots(
    data: ParkingSlotBulkCreate, service: ParkingSlotService = Depends(get_parking_slot_service)
):
    created = await service.bulk_create_slots(
        data.count,
        data.size,
        data.vehicle_type,
        prefix=data.prefix,
        start_number=data.start_number,
        location=data.location,
        cost_per_hour=data.cost_per_hour,
    )
    return {
        "message": f"{len(created)} parking slots created successfully.",
        "count": len(created),
        "slots": [ParkingSlotResponse.model_validate(slot) for slot in created],
    }


@router.get("", response_model=PaginatedResponse[ParkingSlotResponse])
async def list_slots(
    query: ListQuery = Depends(list_query),
    slot_status: Optional[str] = Query(None, alias="status"),
    size: Optional[str] = Query(None),
    vehicle_type: Optional[str] = Query(None, alias="vehicleType"),
    location: Optional[str] = Query(None),
    current_user: CurrentUser = Depends(view_slots),
    service: ParkingSlotService = Depends(get_parking_slot_service),
):
    page = await service.list_slots(
        query,
        can_view_all=current_user.has_permission("view_all_parking_slots"),
        status=slot_status,
        size=size,
        vehicle_type=vehicle_type,
        location=location,
    )
    return paginated(page, ParkingSlotResponse)


@router.get("/{slot_id}", response_model=ParkingSlotResponse, dependencies=[Depends(view_slots)])
async def get_slot(slot_id: int, service: ParkingSlotService = Depends(get_parking_slot_service)):
    return await service.get_slot(slot_id)


@router.put(
    "/{slot_id}",
    response_model=ParkingSlotResponse,
    dependencies=[Depends(require_permission("manage_parking_slots"))],
)
async def update_slot(
    slot_id: int, data: ParkingSlotUpdate, service: ParkingSlotService = Depends(get_parking_slot_service)
):
    return await service.update_slot(slot_id, **data.model_dump(exclude_unset=True))


@router.delete(
    "/{slot_id}",
    response_model=MessageResponse,
    dependencies=[Depends(require_permission("manage_parking_slots"))],
)
async def delete_slot(slot_id: int, service: ParkingSlotService = Depends(get_parking_slot_service)):
    await service.delete_slot(slot_id)
    return {"message": "Parking slot deleted successfully."}
