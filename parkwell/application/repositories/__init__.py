from .abstract_repositories import (
    ListQuery,
    AbstractRoleRepository,
    AbstractUserRepository,
    AbstractParkingRepository,
    AbstractParkingSlotRepository,
    AbstractVehicleRepository,
    AbstractVehicleEntryRepository,
    AbstractSlotRequestRepository,
    AbstractAuditLogRepository,
)

__all__ = [
    "ListQuery",
    "AbstractRoleRepository",
    "AbstractUserRepository",
    "AbstractParkingRepository",
    "AbstractParkingSlotRepository",
    "AbstractVehicleRepository",
    "AbstractVehicleEntryRepository",
    "AbstractSlotRequestRepository",
    "AbstractAuditLogRepository",
]
