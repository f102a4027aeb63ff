from datetime import datetime, timezone
from sqlalchemy import Column, Integer, String, Boolean, ForeignKey, JSON, Text, UniqueConstraint
from sqlalchemy.orm import declarative_base, relationship

from parkwell.shared.custom_types import UTCDateTime, Money

Base = declarative_base()


def utcnow():
    return datetime.now(timezone.utc)


class Role(Base):
    __tablename__ = "roles"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(32), unique=True, nullable=False)  # ADMIN, PARKING_ATTENDANT, USER
    description = Column(String(255), nullable=True)

    users = relationship("User", back_populates="role")
    permissions = relationship("RolePermission", back_populates="role")


class Permission(Base):
    __tablename__ = "permissions"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(64), unique=True, nullable=False)
    description = Column(String(255), nullable=True)

    roles = relationship("RolePermission", back_populates="permission")


class RolePermission(Base):
    __tablename__ = "role_permissions"
    __table_args__ = (UniqueConstraint("role_id", "permission_id", name="uq_role_permission"),)

    id = Column(Integer, primary_key=True)
    role_id = Column(Integer, ForeignKey("roles.id", ondelete="CASCADE"), nullable=False)
    permission_id = Column(Integer, ForeignKey("permissions.id", ondelete="CASCADE"), nullable=False)

    role = relationship("Role", back_populates="permissions")
    permission = relationship("Permission", back_populates="roles")


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=False, default="")
    email = Column(String(254), unique=True, index=True, nullable=False)
    password = Column(String(255), nullable=False)
    role_id = Column(Integer, ForeignKey("roles.id"), nullable=False)
    email_verified = Column(Boolean, default=False, nullable=False)
    email_verification_code = Column(String(6), nullable=True)
    reset_token = Column(String(64), nullable=True)
    reset_token_expires = Column(UTCDateTime, nullable=True)
    balance = Column(Money, default=0, nullable=False)
    created_at = Column(UTCDateTime, default=utcnow)
    updated_at = Column(UTCDateTime, default=utcnow, onupdate=utcnow)

    role = relationship("Role", back_populates="users")
    vehicles = relationship("Vehicle", back_populates="user", passive_deletes=True)
    slot_requests = relationship("SlotRequest", back_populates="user", passive_deletes=True)


class Parking(Base):
    __tablename__ = "parkings"

    id = Column(Integer, primary_key=True, index=True)
    code = Column(String(10), unique=True, index=True, nullable=False)
    name = Column(String(255), nullable=False)
    total_spaces = Column(Integer, nullable=False)
    occupied_spaces = Column(Integer, default=0, nullable=False)
    location = Column(String(255), nullable=True)
    charge_per_hour = Column(Money, nullable=False)
    created_at = Column(UTCDateTime, default=utcnow)
    updated_at = Column(UTCDateTime, default=utcnow, onupdate=utcnow)

    vehicle_entries = relationship("VehicleEntry", back_populates="parking")


class ParkingSlot(Base):
    __tablename__ = "parking_slots"

    id = Column(Integer, primary_key=True, index=True)
    slot_number = Column(String(10), unique=True, index=True, nullable=False)
    size = Column(String(16), nullable=False)
    vehicle_type = Column(String(16), nullable=False)
    location = Column(String(16), nullable=True)
    status = Column(String(16), default="AVAILABLE", nullable=False)  # AVAILABLE, UNAVAILABLE, MAINTENANCE
    cost_per_hour = Column(Money, nullable=True)
    created_at = Column(UTCDateTime, default=utcnow)
    updated_at = Column(UTCDateTime, default=utcnow, onupdate=utcnow)

    slot_requests = relationship("SlotRequest", back_populates="parking_slot", passive_deletes=True)


class Vehicle(Base):
    __tablename__ = "vehicles"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    plate_number = Column(String(15), unique=True, index=True, nullable=False)
    vehicle_type = Column(String(16), nullable=False)
    size = Column(String(16), nullable=False)
    other_attributes = Column(JSON, nullable=True)
    created_at = Column(UTCDateTime, default=utcnow)
    updated_at = Column(UTCDateTime, default=utcnow, onupdate=utcnow)

    user = relationship("User", back_populates="vehicles")
    slot_requests = relationship("SlotRequest", back_populates="vehicle", passive_deletes=True)


class VehicleEntry(Base):
    __tablename__ = "vehicle_entries"

    id = Column(Integer, primary_key=True, index=True)
    plate_number = Column(String(15), index=True, nullable=False)
    parking_id = Column(Integer, ForeignKey("parkings.id"), nullable=False, index=True)
    entry_time = Column(UTCDateTime, default=utcnow, nullable=False)
    exit_time = Column(UTCDateTime, nullable=True)
    ticket_number = Column(String(20), unique=True, nullable=False)
    status = Column(String(16), default="PARKED", nullable=False)  # PARKED, EXITED
    calculated_duration_minutes = Column(Integer, nullable=True)
    charged_amount = Column(Money, default=0, nullable=False)
    recorded_by_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)

    parking = relationship("Parking", back_populates="vehicle_entries")
    recorded_by = relationship("User")


class SlotRequest(Base):
    __tablename__ = "slot_requests"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    vehicle_id = Column(Integer, ForeignKey("vehicles.id", ondelete="CASCADE"), nullable=False)
    parking_slot_id = Column(Integer, ForeignKey("parking_slots.id", ondelete="SET NULL"), nullable=True)
    expected_duration_hours = Column(Integer, nullable=False)
    calculated_cost = Column(Money, nullable=False)
    status = Column(String(16), default="PENDING", nullable=False)  # PENDING, APPROVED, REJECTED, CANCELLED
    admin_notes = Column(Text, nullable=True)
    requested_at = Column(UTCDateTime, default=utcnow, nullable=False)
    resolved_at = Column(UTCDateTime, nullable=True)
    created_at = Column(UTCDateTime, default=utcnow)

    user = relationship("User", back_populates="slot_requests")
    vehicle = relationship("Vehicle", back_populates="slot_requests")
    parking_slot = relationship("ParkingSlot", back_populates="slot_requests")


class AuditLog(Base):
    __tablename__ = "audit_logs"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True)
    action = Column(String(255), nullable=False)
    entity_type = Column(String(50), nullable=True)
    entity_id = Column(Integer, nullable=True)
    details = Column(JSON, nullable=True)
    timestamp = Column(UTCDateTime, default=utcnow, nullable=False, index=True)

    user = relationship("User")
