from decimal import Decimal

import pytest

from parkwell.application.repositories import ListQuery
from parkwell.application.services.parking_slot_service import bulk_slot_numbers
from parkwell.domain.common import ParkingSlotStatus, SlotLocation, VehicleSize, VehicleType
from parkwell.domain.exceptions import ConflictError, NotFoundError, ValidationError


def test_bulk_slot_numbers_are_zero_padded():
    assert bulk_slot_numbers("ps", 8, 3) == ["PS008", "PS009", "PS010"]
    assert bulk_slot_numbers(None, 1, 1) == ["PS001"]


class TestCreateSlots:
    """Test single and bulk slot creation."""

    async def test_create(self, parking_slot_service):
        slot = await parking_slot_service.create_slot(
            "a-10", "small", "motorcycle", location="north_wing", cost_per_hour="1.5"
        )
        assert slot.slot_number == "A-10"
        assert slot.size == VehicleSize.SMALL
        assert slot.vehicle_type == VehicleType.MOTORCYCLE
        assert slot.location == SlotLocation.NORTH_WING
        assert slot.status == ParkingSlotStatus.AVAILABLE
        assert slot.cost_per_hour == Decimal("1.50")

    async def test_duplicate_and_invalid(self, parking_slot_service, slot):
        with pytest.raises(ConflictError):
            await parking_slot_service.create_slot("a-01", VehicleSize.SMALL, VehicleType.CAR)
        with pytest.raises(ValidationError):
            await parking_slot_service.create_slot("X", VehicleSize.SMALL, VehicleType.CAR)
        with pytest.raises(ValidationError):
            await parking_slot_service.create_slot("X-1", "tiny", VehicleType.CAR)
        with pytest.raises(ValidationError):
            await parking_slot_service.create_slot("X-1", VehicleSize.SMALL, VehicleType.CAR, cost_per_hour=-2)

    async def test_bulk_create_skips_existing(self, parking_slot_service):
        await parking_slot_service.create_slot("PS002", VehicleSize.SMALL, VehicleType.CAR)
        created = await parking_slot_service.bulk_create_slots(
            4, "large", "truck", prefix="ps", start_number=1, cost_per_hour=7
        )
        assert [s.slot_number for s in created] == ["PS001", "PS003", "PS004"]
        assert all(s.vehicle_type == VehicleType.TRUCK for s in created)
        assert all(s.cost_per_hour == Decimal("7.00") for s in created)

        with pytest.raises(ValidationError) as exc_info:
            await parking_slot_service.bulk_create_slots(2, "large", "truck", prefix="PS", start_number=1)
        assert "No new slots" in str(exc_info.value)

    @pytest.mark.parametrize("count", [0, 501])
    async def test_bulk_count_bounds(self, parking_slot_service, count):
        with pytest.raises(ValidationError):
            await parking_slot_service.bulk_create_slots(count, "small", "car")


class TestListSlots:
    """Test slot visibility and filters."""

    async def test_non_staff_only_see_available(self, parking_slot_service, slot):
        await parking_slot_service.create_slot("A-02", "small", "car", status="MAINTENANCE")

        public = await parking_slot_service.list_slots(ListQuery(), can_view_all=False, status="MAINTENANCE")
        assert [s.slot_number for s in public.items] == ["A-01"]

        staff = await parking_slot_service.list_slots(ListQuery(), can_view_all=True)
        assert [s.slot_number for s in staff.items] == ["A-01", "A-02"]

        maintenance = await parking_slot_service.list_slots(ListQuery(), can_view_all=True, status="maintenance")
        assert [s.slot_number for s in maintenance.items] == ["A-02"]

    async def test_filters_and_search(self, parking_slot_service, slot):
        await parking_slot_service.create_slot("B-01", "large", "truck", location="LEVEL_2")

        trucks = await parking_slot_service.list_slots(ListQuery(), can_view_all=True, vehicle_type="truck")
        assert [s.slot_number for s in trucks.items] == ["B-01"]

        level = await parking_slot_service.list_slots(ListQuery(), can_view_all=True, location="level_2")
        assert level.total == 1

        searched = await parking_slot_service.list_slots(ListQuery(search="a-"), can_view_all=True)
        assert [s.slot_number for s in searched.items] == ["A-01"]

        with pytest.raises(ValidationError):
            await parking_slot_service.list_slots(ListQuery(), size="gigantic")


class TestUpdateAndDelete:
    """Test slot changes guarded by approved requests."""

    async def test_update(self, parking_slot_service, slot):
        updated = await parking_slot_service.update_slot(slot.id, slot_number="a-99", cost_per_hour="6")
        assert updated.slot_number == "A-99"
        assert updated.cost_per_hour == Decimal("6.00")
        with pytest.raises(ValidationError):
            await parking_slot_service.update_slot(slot.id)
        with pytest.raises(NotFoundError):
            await parking_slot_service.update_slot(999, status="AVAILABLE")

    async def test_approved_request_holds_slot(
        self, parking_slot_service, slot_request_service, admin_user, regular_user, vehicle, slot
    ):
        request = await slot_request_service.create_request(regular_user.id, vehicle.id, slot.id, 1)
        await slot_request_service.resolve_request(admin_user.id, request.id, "APPROVED")

        with pytest.raises(ValidationError) as exc_info:
            await parking_slot_service.update_slot(slot.id, status="AVAILABLE")
        assert "assigned to an approved request" in str(exc_info.value)

        with pytest.raises(ValidationError):
            await parking_slot_service.delete_slot(slot.id)

        maintenance = await parking_slot_service.update_slot(slot.id, status="MAINTENANCE")
        assert maintenance.status == ParkingSlotStatus.MAINTENANCE

    async def test_delete(self, parking_slot_service, slot):
        await parking_slot_service.delete_slot(slot.id)
        with pytest.raises(NotFoundError):
            await parking_slot_service.get_slot(slot.id)
