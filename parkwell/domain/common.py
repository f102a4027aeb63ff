from enum import Enum

from parkwell.domain.exceptions import ValidationError


class RoleName(str, Enum):
    ADMIN = "ADMIN"
    PARKING_ATTENDANT = "PARKING_ATTENDANT"
    USER = "USER"


class VehicleType(str, Enum):
    CAR = "CAR"
    MOTORCYCLE = "MOTORCYCLE"
    TRUCK = "TRUCK"
    BICYCLE = "BICYCLE"


class VehicleSize(str, Enum):
    SMALL = "SMALL"
    MEDIUM = "MEDIUM"
    LARGE = "LARGE"
    EXTRA_LARGE = "EXTRA_LARGE"


class SlotLocation(str, Enum):
    NORTH_WING = "NORTH_WING"
    SOUTH_WING = "SOUTH_WING"
    EAST_WING = "EAST_WING"
    WEST_WING = "WEST_WING"
    LEVEL_1 = "LEVEL_1"
    LEVEL_2 = "LEVEL_2"


class ParkingSlotStatus(str, Enum):
    AVAILABLE = "AVAILABLE"
    UNAVAILABLE = "UNAVAILABLE"
    MAINTENANCE = "MAINTENANCE"


class VehicleEntryStatus(str, Enum):
    PARKED = "PARKED"
    EXITED = "EXITED"


class SlotRequestStatus(str, Enum):
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"
    CANCELLED = "CANCELLED"


ACTIVE_SLOT_REQUEST_STATUSES = (SlotRequestStatus.PENDING, SlotRequestStatus.APPROVED)

PLATE_NUMBER_PATTERN = r"^[A-Z0-9-]{3,15}$"
PARKING_CODE_PATTERN = r"^[A-Z0-9_-]{1,10}$"
SLOT_NUMBER_PATTERN = r"^[A-Z0-9-]{2,10}$"


def parse_enum(enum_cls, value, field_name: str):
    """Case-insensitive enum lookup raising a readable ValidationError."""
    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(str(value).strip().upper())
    except ValueError:
        valid = ", ".join(member.value for member in enum_cls)
        raise ValidationError(f"Invalid {field_name}. Valid are: {valid}")
