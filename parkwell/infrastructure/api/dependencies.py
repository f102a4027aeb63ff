from typing import List, Optional

from fastapi import Depends, Query
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.ext.asyncio import AsyncSession

from parkwell.application.repositories import ListQuery
from parkwell.application.services.audit_service import AuditService
from parkwell.application.services.auth_service import AuthService
from parkwell.application.services.parking_service import ParkingService
from parkwell.application.services.parking_slot_service import ParkingSlotService
from parkwell.application.services.report_service import ReportService
from parkwell.application.services.slot_request_service import SlotRequestService
from parkwell.application.services.user_admin_service import UserAdminService
from parkwell.application.services.vehicle_entry_service import VehicleEntryService
from parkwell.application.services.vehicle_service import VehicleService
from parkwell.config.settings_env import settings
from parkwell.domain.common import RoleName
from parkwell.domain.entities import User
from parkwell.domain.exceptions import AuthenticationError, PermissionDeniedError
from parkwell.infrastructure.notifications.email_sender import EmailSender
from parkwell.infrastructure.persistence.database import get_async_db
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
from parkwell.infrastructure.security import decode_access_token

oauth2_scheme = OAuth2PasswordBearer(tokenUrl=f"{settings.API_PREFIX}/auth/login", auto_error=False)


class CurrentUser:
    """The authenticated caller with the permission names of their role."""

    def __init__(self, user: User, permissions: List[str]):
        self.user = user
        self.permissions = set(permissions)

    @property
    def id(self) -> int:
        return self.user.id

    @property
    def role_name(self) -> Optional[RoleName]:
        return self.user.role_name

    def has_permission(self, name: str) -> bool:
        return name in self.permissions


def get_email_sender() -> EmailSender:
    return EmailSender()


def list_query(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    search: Optional[str] = Query(None, max_length=100),
    sortBy: Optional[str] = Query(None, max_length=50),
    order: str = Query("desc"),
) -> ListQuery:
    return ListQuery(page=page, limit=limit, search=search, sort_by=sortBy, order=order)


def get_audit_service(db: AsyncSession = Depends(get_async_db)) -> AuditService:
    return AuditService(SQLAlchemyAuditLogRepository(db))


def get_auth_service(
    db: AsyncSession = Depends(get_async_db),
    audit_service: AuditService = Depends(get_audit_service),
    email_sender: EmailSender = Depends(get_email_sender),
) -> AuthService:
    return AuthService(SQLAlchemyUserRepository(db), SQLAlchemyRoleRepository(db), audit_service, email_sender)


def get_vehicle_service(db: AsyncSession = Depends(get_async_db)) -> VehicleService:
    return VehicleService(SQLAlchemyVehicleRepository(db), SQLAlchemySlotRequestRepository(db))


def get_parking_service(db: AsyncSession = Depends(get_async_db)) -> ParkingService:
    return ParkingService(SQLAlchemyParkingRepository(db), SQLAlchemyVehicleEntryRepository(db))


def get_parking_slot_service(db: AsyncSession = Depends(get_async_db)) -> ParkingSlotService:
    return ParkingSlotService(SQLAlchemyParkingSlotRepository(db), SQLAlchemySlotRequestRepository(db))


def get_slot_request_service(
    db: AsyncSession = Depends(get_async_db),
    audit_service: AuditService = Depends(get_audit_service),
    email_sender: EmailSender = Depends(get_email_sender),
) -> SlotRequestService:
    return SlotRequestService(
        SQLAlchemySlotRequestRepository(db),
        SQLAlchemyVehicleRepository(db),
        SQLAlchemyParkingSlotRepository(db),
        SQLAlchemyUserRepository(db),
        audit_service,
        email_sender,
    )


def get_vehicle_entry_service(
    db: AsyncSession = Depends(get_async_db),
    audit_service: AuditService = Depends(get_audit_service),
) -> VehicleEntryService:
    return VehicleEntryService(SQLAlchemyParkingRepository(db), SQLAlchemyVehicleEntryRepository(db), audit_service)


def get_user_admin_service(
    db: AsyncSession = Depends(get_async_db),
    audit_service: AuditService = Depends(get_audit_service),
    email_sender: EmailSender = Depends(get_email_sender),
) -> UserAdminService:
    return UserAdminService(
        SQLAlchemyUserRepository(db),
        SQLAlchemyRoleRepository(db),
        audit_service,
        email_sender,
        slot_request_repo=SQLAlchemySlotRequestRepository(db),
    )


def get_report_service(db: AsyncSession = Depends(get_async_db)) -> ReportService:
    return ReportService(SQLAlchemyVehicleEntryRepository(db))


async def get_current_user(
    token: Optional[str] = Depends(oauth2_scheme),
    db: AsyncSession = Depends(get_async_db),
) -> CurrentUser:
    if not token:
        raise AuthenticationError("Not authorized, no token")
    payload = decode_access_token(token)

    user = await SQLAlchemyUserRepository(db).get_by_id(payload["user_id"])
    if not user:
        raise AuthenticationError("Not authorized, user not found")
    permissions = await SQLAlchemyRoleRepository(db).get_permission_names(user.role_id)
    return CurrentUser(user, permissions)


def require_role(*role_names: RoleName):
    async def checker(current_user: CurrentUser = Depends(get_current_user)) -> CurrentUser:
        if current_user.role_name not in role_names:
            raise PermissionDeniedError("Forbidden: You do not have the required role.")
        return current_user
    return checker


def require_permission(name: str):
    async def checker(current_user: CurrentUser = Depends(get_current_user)) -> CurrentUser:
        if not current_user.has_permission(name):
            raise PermissionDeniedError(f"Forbidden: Missing permission '{name}'.")
        return current_user
    return checker


def require_any_permission(*names: str):
    async def checker(current_user: CurrentUser = Depends(get_current_user)) -> CurrentUser:
        if not any(current_user.has_permission(name) for name in names):
            raise PermissionDeniedError("Forbidden: You do not have any of the required permissions.")
        return current_user
    return checker
