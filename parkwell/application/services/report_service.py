from datetime import date
from typing import Dict, Optional, Tuple

from parkwell.application.repositories import AbstractVehicleEntryRepository, ListQuery
from parkwell.application.services.date_range import day_bounds
from parkwell.domain.entities import Page, VehicleEntry


class ReportService:
    def __init__(self, vehicle_entry_repo: AbstractVehicleEntryRepository):
        self.vehicle_entry_repo = vehicle_entry_repo

    async def entered_vehicles(
        self,
        query: ListQuery,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        parking_id: Optional[int] = None,
    ) -> Tuple[Page[VehicleEntry], Dict]:
        start, end = day_bounds(start_date, end_date)
        page = await self.vehicle_entry_repo.list_entered_between(start, end, query, parking_id)
        return page, {"totalVehiclesEntered": page.total}

    async def exited_vehicles(
        self,
        query: ListQuery,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        parking_id: Optional[int] = None,
    ) -> Tuple[Page[VehicleEntry], Dict]:
        start, end = day_bounds(start_date, end_date)
        page = await self.vehicle_entry_repo.list_exited_between(start, end, query, parking_id)
        revenue = await self.vehicle_entry_repo.total_charged_between(start, end, parking_id)
        return page, {"totalVehiclesExited": page.total, "totalRevenue": revenue}
