from .sqlalchemy_repositories import (
    SQLAlchemyRoleRepository,
    SQLAlchemyUserRepository,
    SQLAlchemyParkingRepository,
    SQLAlchemyParkingSlotRepository,
    SQLAlchemyVehicleRepository,
    SQLAlchemyVehicleEntryRepository,
    SQLAlchemySlotRequestRepository,
    SQLAlchemyAuditLogRepository,
)

__all__ = [
    "SQLAlchemyRoleRepository",
    "SQLAlchemyUserRepository",
    "SQLAlchemyParkingRepository",
    "SQLAlchemyParkingSlotRepository",
    "SQLAlchemyVehicleRepository",
    "SQLAlchemyVehicleEntryRepository",
    "SQLAlchemySlotRequestRepository",
    "SQLAlchemyAuditLogRepository",
]
