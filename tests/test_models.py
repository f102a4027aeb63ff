import pytest
from datetime import datetime, timezone
from decimal import Decimal
from sqlalchemy import create_engine, text
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import sessionmaker
from parkwell.infrastructure.persistence.models.models import (
    Base, Parking, ParkingSlot, Role, User, Vehicle, VehicleEntry,
)


@pytest.fixture(scope="function")
def db_session():
    engine = create_engine("sqlite:///:memory:")
    Base.metadata.create_all(engine)
    Session = sessionmaker(bind=engine)
    session = Session()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(engine)


@pytest.fixture
def user(db_session):
    role = Role(name="USER", description="Regular user")
    db_session.add(role)
    db_session.flush()
    user = User(first_name="Dana", last_name="Driver", email="driver@example.com", password="x", role=role)
    db_session.add(user)
    db_session.commit()
    return user


def test_parking_model(db_session):
    parking = Parking(code="P1", name="Main Lot", total_spaces=10, charge_per_hour=Decimal("2.50"))
    db_session.add(parking)
    db_session.commit()
    db_session.refresh(parking)

    assert parking.id is not None
    assert parking.occupied_spaces == 0
    assert parking.charge_per_hour == Decimal("2.50")
    assert parking.created_at.tzinfo is not None

    stored = db_session.execute(text("SELECT charge_per_hour FROM parkings")).scalar()
    assert stored == 250


def test_parking_code_is_unique(db_session):
    db_session.add(Parking(code="P1", name="Main Lot", total_spaces=10, charge_per_hour=Decimal("1")))
    db_session.commit()
    db_session.add(Parking(code="P1", name="Other", total_spaces=5, charge_per_hour=Decimal("1")))
    with pytest.raises(IntegrityError):
        db_session.commit()


def test_parking_slot_defaults(db_session):
    slot = ParkingSlot(slot_number="A-01", size="MEDIUM", vehicle_type="CAR")
    db_session.add(slot)
    db_session.commit()

    assert slot.status == "AVAILABLE"
    assert slot.cost_per_hour is None


def test_vehicle_belongs_to_user(db_session, user):
    vehicle = Vehicle(
        user_id=user.id, plate_number="RAB123C", vehicle_type="CAR", size="MEDIUM",
        other_attributes={"color": "red"},
    )
    db_session.add(vehicle)
    db_session.commit()
    db_session.refresh(user)

    assert [v.plate_number for v in user.vehicles] == ["RAB123C"]
    assert vehicle.other_attributes == {"color": "red"}
    assert user.balance == Decimal("0.00")


def test_vehicle_entry_model(db_session, user):
    parking = Parking(code="P1", name="Main Lot", total_spaces=10, charge_per_hour=Decimal("2.50"))
    db_session.add(parking)
    db_session.flush()

    entry = VehicleEntry(
        plate_number="RAB123C",
        parking_id=parking.id,
        ticket_number="TKT-123456ABCD",
        entry_time=datetime(2024, 5, 1, 8, 0, tzinfo=timezone.utc),
        recorded_by_id=user.id,
    )
    db_session.add(entry)
    db_session.commit()
    db_session.refresh(entry)

    assert entry.status == "PARKED"
    assert entry.exit_time is None
    assert entry.charged_amount == Decimal("0.00")
    assert entry.parking.code == "P1"
    assert entry.recorded_by.email == "driver@example.com"
