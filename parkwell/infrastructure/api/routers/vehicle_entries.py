from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query, status

from parkwell.application.repositories import ListQuery
from parkwell.application.services.vehicle_entry_service import VehicleEntryService
from parkwell.domain.common import VehicleEntryStatus
from parkwell.infrastructure.api.dependencies import (
    CurrentUser,
    get_vehicle_entry_service,
    list_query,
    require_any_permission,
    require_permission,
)
from parkwell.infrastructure.api.routers.downloads import text_attachment
from parkwell.infrastructure.api.schemas.common import PaginatedResponse, paginated
from parkwell.infrastructure.api.schemas.vehicle_entries import (
    EntryRecordedResponse,
    ExitRecordedResponse,
    VehicleEntryCreate,
    VehicleEntryResponse,
)

router = APIRouter(prefix="/vehicle-entries", tags=["vehicle-entries"])


@router.post("/enter", response_model=EntryRecordedResponse, status_code=status.HTTP_201_CREATED)
async def record_entry(
    data: VehicleEntryCreate,
    current_user: CurrentUser = Depends(require_permission("record_vehicle_entry")),
    service: VehicleEntryService = Depends(get_vehicle_entry_service),
):
    entry, parking = await service.record_entry(data.plate_number, data.parking_id, current_user.id)
    return {
        "message": f"Vehicle {entry.plate_number} entered {parking.name}. Ticket: {entry.ticket_number}",
        "entry": await service.get_entry(entry.id),
        "parking": parking,
    }


@router.post("/{entry_id}/exit", response_model=ExitRecordedResponse)
async def record_exit(
    entry_id: int,
    current_user: CurrentUser = Depends(require_permission("record_vehicle_exit")),
    service: VehicleEntryService = Depends(get_vehicle_entry_service),
):
    entry = await service.record_exit(entry_id, current_user.id)
    return {
        "message": f"Vehicle {entry.plate_number} exited. Amount charged: {entry.charged_amount}",
        "entry": entry,
    }


@router.get("", response_model=PaginatedResponse[VehicleEntryResponse])
async def list_entries(
    query: ListQuery = Depends(list_query),
    entry_status: Optional[str] = Query(None, alias="status"),
    parking_id: Optional[int] = Query(None, alias="parkingId"),
    start_date: Optional[date] = Query(None, alias="startDate"),
    end_date: Optional[date] = Query(None, alias="endDate"),
    current_user: CurrentUser = Depends(
        require_any_permission("view_all_vehicle_entries", "view_current_parked_vehicles")
    ),
    service: VehicleEntryService = Depends(get_vehicle_entry_service),
):
    # Without full history access only currently parked vehicles are listed
    if not current_user.has_permission("view_all_vehicle_entries"):
        entry_status = VehicleEntryStatus.PARKED
    page = await service.list_entries(
        query, status=entry_status, parking_id=parking_id, start_date=start_date, end_date=end_date
    )
    return paginated(page, VehicleEntryResponse)


@router.get(
    "/{entry_id}/entry-ticket",
    dependencies=[Depends(require_any_permission("record_vehicle_entry", "view_all_vehicle_entries"))],
)
async def download_entry_ticket(
    entry_id: int, service: VehicleEntryService = Depends(get_vehicle_entry_service)
):
    filename, content = await service.entry_ticket(entry_id)
    return text_attachment(filename, content)


@router.get(
    "/{entry_id}/exit-bill",
    dependencies=[Depends(require_any_permission("record_vehicle_exit", "view_all_vehicle_entries"))],
)
async def download_exit_bill(
    entry_id: int, service: VehicleEntryService = Depends(get_vehicle_entry_service)
):
    filename, content = await service.exit_bill(entry_id)
    return text_attachment(filename, content)
