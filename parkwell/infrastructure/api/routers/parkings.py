from typing import List

from fastapi import APIRouter, Depends, status

from parkwell.application.repositories import ListQuery
from parkwell.application.services.parking_service import ParkingService
from parkwell.infrastructure.api.dependencies import get_parking_service, list_query, require_permission
from parkwell.infrastructure.api.schemas.common import MessageResponse, PaginatedResponse, paginated
from parkwell.infrastructure.api.schemas.parkings import (
    ParkingCreate,
    ParkingResponse,
    ParkingUpdate,
    SelectableParkingResponse,
)

router = APIRouter(prefix="/admin/parkings", tags=["parkings"])


@router.post(
    "",
    response_model=ParkingResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_permission("manage_parkings"))],
)
async def create_parking(data: ParkingCreate, service: ParkingService = Depends(get_parking_service)):
    return await service.create_parking(
        data.code, data.name, data.total_spaces, data.charge_per_hour, location=data.location
    )


@router.get(
    "",
    response_model=PaginatedResponse[ParkingResponse],
    dependencies=[Depends(require_permission("view_all_parkings_details"))],
)
async def list_parkings(
    query: ListQuery = Depends(list_query),
    service: ParkingService = Depends(get_parking_service),
):
    page = await service.list_parkings(query)
    return paginated(page, ParkingResponse)


@router.get(
    "/selectable",
    response_model=List[SelectableParkingResponse],
    dependencies=[Depends(require_permission("list_selectable_parkings"))],
)
async def list_selectable_parkings(service: ParkingService = Depends(get_parking_service)):
    return await service.list_selectable()


@router.get(
    "/{parking_id}",
    response_model=ParkingResponse,
    dependencies=[Depends(require_permission("view_all_parkings_details"))],
)
async def get_parking(parking_id: int, service: ParkingService = Depends(get_parking_service)):
    return await service.get_parking(parking_id)


@router.put(
    "/{parking_id}",
    response_model=ParkingResponse,
    dependencies=[Depends(require_permission("manage_parkings"))],
)
async def update_parking(
    parking_id: int, data: ParkingUpdate, service: ParkingService = Depends(get_parking_service)
):
    return await service.update_parking(parking_id, **data.model_dump(exclude_unset=True))


@router.delete(
    "/{parking_id}",
    response_model=MessageResponse,
    dependencies=[Depends(require_permission("manage_parkings"))],
)
async def delete_parking(parking_id: int, service: ParkingService = Depends(get_parking_service)):
    await service.delete_parking(parking_id)
    return {"message": "Parking facility deleted successfully"}
