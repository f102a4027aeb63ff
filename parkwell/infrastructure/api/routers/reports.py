from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query

from parkwell.application.repositories import ListQuery
from parkwell.application.services.report_service import ReportService
from parkwell.infrastructure.api.dependencies import get_report_service, list_query, require_permission
from parkwell.infrastructure.api.schemas.common import paginated
from parkwell.infrastructure.api.schemas.reports import EnteredVehiclesReport, ExitedVehiclesReport
from parkwell.infrastructure.api.schemas.vehicle_entries import VehicleEntryResponse

router = APIRouter(
    prefix="/admin/reports",
    tags=["reports"],
    dependencies=[Depends(require_permission("view_system_reports"))],
)


@router.get("/entered-vehicles", response_model=EnteredVehiclesReport)
async def entered_vehicles(
    query: ListQuery = Depends(list_query),
    start_date: Optional[date] = Query(None, alias="startDate"),
    end_date: Optional[date] = Query(None, alias="endDate"),
    parking_id: Optional[int] = Query(None, alias="parkingId"),
    service: ReportService = Depends(get_report_service),
):
    page, summary = await service.entered_vehicles(query, start_date, end_date, parking_id)
    return {**paginated(page, VehicleEntryResponse), "summary": summary}


@router.get("/exited-vehicles", response_model=ExitedVehiclesReport)
async def exited_vehicles(
    query: ListQuery = Depends(list_query),
    start_date: Optional[date] = Query(None, alias="startDate"),
    end_date: Optional[date] = Query(None, alias="endDate"),
    parking_id: Optional[int] = Query(None, alias="parkingId"),
    service: ReportService = Depends(get_report_service),
):
    page, summary = await service.exited_vehicles(query, start_date, end_date, parking_id)
    return {**paginated(page, VehicleEntryResponse), "summary": summary}
