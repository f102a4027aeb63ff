from fastapi import APIRouter, Depends, status

from parkwell.application.repositories import ListQuery
from parkwell.application.services.vehicle_service import VehicleService
from parkwell.infrastructure.api.dependencies import (
    CurrentUser,
    get_vehicle_service,
    list_query,
    require_any_permission,
    require_permission,
)
from parkwell.infrastructure.api.schemas.common import MessageResponse, PaginatedResponse, paginated
from parkwell.infrastructure.api.schemas.vehicles import VehicleCreate, VehicleResponse, VehicleUpdate

router = APIRouter(prefix="/vehicles", tags=["vehicles"])


@router.post("", response_model=VehicleResponse, status_code=status.HTTP_201_CREATED)
async def add_vehicle(
    data: VehicleCreate,
    current_user: CurrentUser = Depends(require_permission("manage_own_vehicles")),
    service: VehicleService = Depends(get_vehicle_service),
):
    return await service.add_vehicle(
        current_user.id, data.plate_number, data.vehicle_type, data.size, data.other_attributes
    )


@router.get("", response_model=PaginatedResponse[VehicleResponse])
async def list_vehicles(
    query: ListQuery = Depends(list_query),
    current_user: CurrentUser = Depends(require_permission("list_own_vehicles")),
    service: VehicleService = Depends(get_vehicle_service),
):
    page = await service.list_vehicles(current_user.id, query)
    return paginated(page, VehicleResponse)


@router.get("/{vehicle_id}", response_model=VehicleResponse)
async def get_vehicle(
    vehicle_id: int,
    current_user: CurrentUser = Depends(require_any_permission("list_own_vehicles", "manage_own_vehicles")),
    service: VehicleService = Depends(get_vehicle_service),
):
    return await service.get_vehicle(current_user.id, vehicle_id)


@router.put("/{vehicle_id}", response_model=VehicleResponse)
async def update_vehicle(
    vehicle_id: int,
    data: VehicleUpdate,
    current_user: CurrentUser = Depends(require_permission("manage_own_vehicles")),
    service: VehicleService = Depends(get_vehicle_service),
):
    return await service.update_vehicle(
        current_user.id,
        vehicle_id,
        plate_number=data.plate_number,
        vehicle_type=data.vehicle_type,
        size=data.size,
        other_attributes=data.other_attributes,
    )


@router.delete("/{vehicle_id}", response_model=MessageResponse)
async def delete_vehicle(
    vehicle_id: int,
    current_user: CurrentUser = Depends(require_permission("manage_own_vehicles")),
    service: VehicleService = Depends(get_vehicle_service),
):
    await service.delete_vehicle(current_user.id, vehicle_id)
    return {"message": "Vehicle deleted successfully"}
