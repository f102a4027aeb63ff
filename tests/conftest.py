import os
import tempfile

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

from parkwell.application.services.audit_service import AuditService
from parkwell.application.services.auth_service import AuthService
from parkwell.application.services.parking_service import ParkingService
from parkwell.application.services.parking_slot_service import ParkingSlotService
from parkwell.application.services.report_service import ReportService
from parkwell.application.services.slot_request_service import SlotRequestService
from parkwell.application.services.user_admin_service import UserAdminService
from parkwell.application.services.vehicle_entry_service import VehicleEntryService
from parkwell.application.services.vehicle_service import VehicleService
from parkwell.domain.common import RoleName, VehicleSize, VehicleType
from parkwell.domain.entities import User
from parkwell.infrastructure.api.dependencies import get_email_sender
from parkwell.infrastructure.api.main import app
from parkwell.infrastructure.persistence.database import (
    enable_sqlite_foreign_keys,
    get_async_db,
    seed_reference_data,
)
from parkwell.infrastructure.persistence.models.models import Base
from parkwell.infrastructure.persistence.sqlalchemy_repositories import (
    SQLAlchemyAuditLogRepository,
    SQLAlchemyParkingRepository,
    SQLAlchemyParkingSlotRepository,
    SQLAlchemyRoleRepository,
    SQLAlchemySlotRequestRepository,
    SQLAlchemyUserRepository,
    SQLAlchemyVehicleEntryRepository,
    SQLAlchemyVehicleRepository,
)
from parkwell.infrastructure.security import create_access_token, hash_password
from parkwell.shared.custom_types import to_money

TEST_PASSWORD = "secret123"


class RecordingEmailSender:
    """Stands in for EmailSender and keeps every message it was asked to send."""

    def __init__(self):
        self.sent = []

    async def send_verification_code(self, to, first_name, code):
        self.sent.append({"kind": "verification", "to": to, "code": code})
        return True

    async def send_password_reset(self, to, first_name, otp):
        self.sent.append({"kind": "password_reset", "to": to, "code": otp})
        return True

    async def send_slot_approval(self, to, first_name, slot_number, plate_number, hours, cost):
        self.sent.append({"kind": "slot_approval", "to": to, "slot_number": slot_number, "cost": cost})
        return True

    def last(self, kind):
        messages = [m for m in self.sent if m["kind"] == kind]
        return messages[-1] if messages else None


@pytest.fixture(scope="function")
async def test_db():
    """Create a test database with the reference data for each test function."""
    with tempfile.NamedTemporaryFile(suffix=".db", delete=False) as tmp_file:
        test_db_path = tmp_file.name

    engine = create_async_engine(
        f"sqlite+aiosqlite:///{test_db_path}",
        poolclass=NullPool,
        echo=False
    )
    enable_sqlite_foreign_keys(engine.sync_engine)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
        await conn.run_sync(seed_reference_data)

    async_session_maker = async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False
    )

    yield async_session_maker

    await engine.dispose()
    os.unlink(test_db_path)


@pytest.fixture
async def db_session(test_db):
    """Create a database session for a test."""
    async with test_db() as session:
        yield session
        await session.rollback()


@pytest.fixture
def email_sender():
    return RecordingEmailSender()


@pytest.fixture
def audit_service(db_session):
    return AuditService(SQLAlchemyAuditLogRepository(db_session))


@pytest.fixture
def auth_service(db_session, audit_service, email_sender):
    return AuthService(
        user_repo=SQLAlchemyUserRepository(db_session),
        role_repo=SQLAlchemyRoleRepository(db_session),
        audit_service=audit_service,
        email_sender=email_sender,
    )


@pytest.fixture
def user_admin_service(db_session, audit_service, email_sender):
    return UserAdminService(
        user_repo=SQLAlchemyUserRepository(db_session),
        role_repo=SQLAlchemyRoleRepository(db_session),
        audit_service=audit_service,
        email_sender=email_sender,
        slot_request_repo=SQLAlchemySlotRequestRepository(db_session),
    )


@pytest.fixture
def vehicle_service(db_session):
    return VehicleService(
        vehicle_repo=SQLAlchemyVehicleRepository(db_session),
        slot_request_repo=SQLAlchemySlotRequestRepository(db_session),
    )


@pytest.fixture
def parking_service(db_session):
    return ParkingService(
        parking_repo=SQLAlchemyParkingRepository(db_session),
        vehicle_entry_repo=SQLAlchemyVehicleEntryRepository(db_session),
    )


@pytest.fixture
def parking_slot_service(db_session):
    return ParkingSlotService(
        slot_repo=SQLAlchemyParkingSlotRepository(db_session),
        slot_request_repo=SQLAlchemySlotRequestRepository(db_session),
    )


@pytest.fixture
def vehicle_entry_service(db_session, audit_service):
    return VehicleEntryService(
        parking_repo=SQLAlchemyParkingRepository(db_session),
        vehicle_entry_repo=SQLAlchemyVehicleEntryRepository(db_session),
        audit_service=audit_service,
    )


@pytest.fixture
def slot_request_service(db_session, audit_service, email_sender):
    return SlotRequestService(
        slot_request_repo=SQLAlchemySlotRequestRepository(db_session),
        vehicle_repo=SQLAlchemyVehicleRepository(db_session),
        slot_repo=SQLAlchemyParkingSlotRepository(db_session),
        user_repo=SQLAlchemyUserRepository(db_session),
        audit_service=audit_service,
        email_sender=email_sender,
    )


@pytest.fixture
def report_service(db_session):
    return ReportService(SQLAlchemyVehicleEntryRepository(db_session))


@pytest.fixture
def make_user(db_session):
    """Factory inserting a user with the given role straight through the repository."""
    async def _make_user(
        email="user@example.com",
        role=RoleName.USER,
        balance="0.00",
        verified=True,
        password=TEST_PASSWORD,
        first_name="Test",
        last_name="User",
    ):
        role_obj = await SQLAlchemyRoleRepository(db_session).get_by_name(role)
        user = await SQLAlchemyUserRepository(db_session).add(User(
            first_name=first_name,
            last_name=last_name,
            email=email,
            password_hash=hash_password(password),
            role_id=role_obj.id,
            email_verified=verified,
            balance=to_money(balance),
        ))
        await db_session.commit()
        return user
    return _make_user


@pytest.fixture
async def admin_user(make_user):
    return await make_user(email="admin@example.com", role=RoleName.ADMIN, first_name="Ada", last_name="Admin")


@pytest.fixture
async def attendant_user(make_user):
    return await make_user(
        email="attendant@example.com", role=RoleName.PARKING_ATTENDANT, first_name="Sam", last_name="Gate"
    )


@pytest.fixture
async def regular_user(make_user):
    return await make_user(email="driver@example.com", balance="100.00", first_name="Dana", last_name="Driver")


@pytest.fixture
async def parking(parking_service):
    return await parking_service.create_parking("P1", "Main Lot", 2, "2.50", location="Downtown")


@pytest.fixture
async def slot(parking_slot_service):
    return await parking_slot_service.create_slot("A-01", VehicleSize.MEDIUM, VehicleType.CAR, cost_per_hour="5.00")


@pytest.fixture
async def vehicle(vehicle_service, regular_user):
    return await vehicle_service.add_vehicle(regular_user.id, "rab123c", VehicleType.CAR, VehicleSize.MEDIUM)


@pytest.fixture
def auth_headers():
    def _auth_headers(user):
        token = create_access_token({
            "user_id": user.id,
            "role_id": user.role_id,
            "role_name": user.role_name.value if user.role_name else None,
        })
        return {"Authorization": f"Bearer {token}"}
    return _auth_headers


@pytest.fixture
async def client(test_db, email_sender):
    """httpx client bound to the app, with the database pointed at the test file."""
    async def override_get_async_db():
        async with test_db() as session:
            yield session

    app.dependency_overrides[get_async_db] = override_get_async_db
    app.dependency_overrides[get_email_sender] = lambda: email_sender
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()
