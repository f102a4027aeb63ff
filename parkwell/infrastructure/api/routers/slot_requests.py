from typing import Optional

from fastapi import APIRouter, Depends, Query, status

from parkwell.application.repositories import ListQuery
from parkwell.application.services.slot_request_service import SlotRequestService
from parkwell.infrastructure.api.dependencies import (
    CurrentUser,
    get_slot_request_service,
    list_query,
    require_any_permission,
    require_permission,
)
from parkwell.infrastructure.api.routers.downloads import text_attachment
from parkwell.infrastructure.api.schemas.common import PaginatedResponse, paginated
from parkwell.infrastructure.api.schemas.slot_requests import (
    SlotRequestCreate,
    SlotRequestResolve,
    SlotRequestResponse,
    SlotRequestUpdate,
)

router = APIRouter(prefix="/slot-requests", tags=["slot-requests"])


@router.post("", response_model=SlotRequestResponse, status_code=status.HTTP_201_CREATED)
async def create_request(
    data: SlotRequestCreate,
    current_user: CurrentUser = Depends(require_permission("request_parking_slot")),
    service: SlotRequestService = Depends(get_slot_request_service),
):
    slot_request = await service.create_request(
        current_user.id, data.vehicle_id, data.parking_slot_id, data.expected_duration_hours
    )
    return await service.get_request(slot_request.id)


@router.get("", response_model=PaginatedResponse[SlotRequestResponse])
async def list_requests(
    query: ListQuery = Depends(list_query),
    request_status: Optional[str] = Query(None, alias="status"),
    current_user: CurrentUser = Depends(
        require_any_permission("list_own_slot_requests", "manage_all_slot_requests")
    ),
    service: SlotRequestService = Depends(get_slot_request_service),
):
    page = await service.list_requests(
        query,
        current_user.id,
        can_manage_all=current_user.has_permission("manage_all_slot_requests"),
        status=request_status,
    )
    return paginated(page, SlotRequestResponse)


@router.put("/{request_id}", response_model=SlotRequestResponse)
async def update_request(
    request_id: int,
    data: SlotRequestUpdate,
    current_user: CurrentUser = Depends(require_permission("manage_own_slot_requests")),
    service: SlotRequestService = Depends(get_slot_request_service),
):
    return await service.update_own_request(
        current_user.id, request_id, vehicle_id=data.vehicle_id, status=data.status
    )


@router.patch("/{request_id}/resolve", response_model=SlotRequestResponse)
async def resolve_request(
    request_id: int,
    data: SlotRequestResolve,
    current_user: CurrentUser = Depends(require_permission("manage_all_slot_requests")),
    service: SlotRequestService = Depends(get_slot_request_service),
):
    return await service.resolve_request(
        current_user.id,
        request_id,
        data.status,
        admin_notes=data.admin_notes,
        parking_slot_id=data.parking_slot_id,
    )


@router.get("/{request_id}/ticket/download")
async def download_ticket(
    request_id: int,
    current_user: CurrentUser = Depends(
        require_any_permission("manage_own_slot_requests", "manage_all_slot_requests")
    ),
    service: SlotRequestService = Depends(get_slot_request_service),
):
    filename, content = await service.request_ticket(
        request_id, current_user.id, can_manage_all=current_user.has_permission("manage_all_slot_requests")
    )
    return text_attachment(filename, content)
