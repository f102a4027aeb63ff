from datetime import date, datetime, timedelta, timezone
from decimal import Decimal

import pytest
from freezegun import freeze_time

from parkwell.application.repositories import ListQuery
from parkwell.domain.exceptions import ValidationError

DAY_ONE = datetime(2024, 5, 1, 8, 0, tzinfo=timezone.utc)
DAY_TWO = datetime(2024, 5, 2, 9, 0, tzinfo=timezone.utc)


@pytest.fixture
async def second_parking(parking_service):
    return await parking_service.create_parking("P2", "Riverside", 5, "4.00")


@pytest.fixture
async def traffic(vehicle_entry_service, parking, second_parking, attendant_user):
    """Three entries over two days; two of them leave."""
    with freeze_time(DAY_ONE):
        first, _ = await vehicle_entry_service.record_entry("AAA111", parking.id, attendant_user.id)
    with freeze_time(DAY_ONE + timedelta(minutes=90)):
        await vehicle_entry_service.record_exit(first.id, attendant_user.id)

    with freeze_time(DAY_TWO):
        second, _ = await vehicle_entry_service.record_entry("BBB222", second_parking.id, attendant_user.id)
        await vehicle_entry_service.record_entry("CCC333", parking.id, attendant_user.id)
    with freeze_time(DAY_TWO + timedelta(minutes=30)):
        await vehicle_entry_service.record_exit(second.id, attendant_user.id)


class TestReportService:
    """Test the entered and exited vehicle reports."""

    async def test_entered_vehicles(self, report_service, traffic):
        page, summary = await report_service.entered_vehicles(ListQuery(), date(2024, 5, 1), date(2024, 5, 2))
        assert summary == {"totalVehiclesEntered": 3}
        # Newest entries first
        assert page.items[-1].plate_number == "AAA111"

        page, summary = await report_service.entered_vehicles(ListQuery(), date(2024, 5, 2), date(2024, 5, 2))
        assert {e.plate_number for e in page.items} == {"BBB222", "CCC333"}
        assert summary["totalVehiclesEntered"] == 2

    async def test_exited_vehicles_revenue(self, report_service, traffic):
        page, summary = await report_service.exited_vehicles(ListQuery(), date(2024, 5, 1), date(2024, 5, 2))
        # 90 minutes at 2.50 bills two hours, 30 minutes at 4.00 bills one
        assert summary["totalVehiclesExited"] == 2
        assert summary["totalRevenue"] == Decimal("9.00")
        assert [e.plate_number for e in page.items] == ["BBB222", "AAA111"]

    async def test_parking_filter(self, report_service, traffic, parking):
        page, summary = await report_service.exited_vehicles(ListQuery(), parking_id=parking.id)
        assert [e.plate_number for e in page.items] == ["AAA111"]
        assert summary["totalRevenue"] == Decimal("5.00")

        _, summary = await report_service.entered_vehicles(ListQuery(), parking_id=parking.id)
        assert summary["totalVehiclesEntered"] == 2

    async def test_empty_range(self, report_service, traffic):
        page, summary = await report_service.exited_vehicles(ListQuery(), date(2024, 6, 1), date(2024, 6, 30))
        assert page.items == []
        assert summary == {"totalVehiclesExited": 0, "totalRevenue": Decimal("0.00")}

    async def test_query_is_not_modified(self, report_service, traffic):
        query = ListQuery()
        page, _ = await report_service.exited_vehicles(query)
        assert query.sort_by is None
        assert [e.plate_number for e in page.items] == ["BBB222", "AAA111"]

    async def test_reversed_range(self, report_service):
        with pytest.raises(ValidationError):
            await report_service.entered_vehicles(ListQuery(), date(2024, 5, 2), date(2024, 5, 1))

    async def test_pagination(self, report_service, traffic):
        page, summary = await report_service.entered_vehicles(ListQuery(page=2, limit=2))
        assert len(page.items) == 1
        assert page.pagination() == {"currentPage": 2, "totalPages": 2, "totalItems": 3, "itemsPerPage": 2}
        assert summary["totalVehiclesEntered"] == 3
