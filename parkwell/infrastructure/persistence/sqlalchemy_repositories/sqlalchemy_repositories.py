from datetime import datetime
from decimal import Decimal
from typing import Dict, List, Optional, Set

from sqlalchemy import and_, delete, func, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from parkwell.application.repositories import (
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
from parkwell.domain.common import (
    ACTIVE_SLOT_REQUEST_STATUSES,
    ParkingSlotStatus,
    RoleName,
    SlotLocation,
    SlotRequestStatus,
    VehicleEntryStatus,
    VehicleSize,
    VehicleType,
)
from parkwell.domain.entities import (
    AuditLog,
    Page,
    Parking,
    ParkingSlot,
    Permission,
    Role,
    SlotRequest,
    User,
    Vehicle,
    VehicleEntry,
)
from parkwell.infrastructure.persistence.models.models import (
    AuditLog as ORMAuditLog,
    Parking as ORMParking,
    ParkingSlot as ORMParkingSlot,
    Permission as ORMPermission,
    Role as ORMRole,
    RolePermission as ORMRolePermission,
    SlotRequest as ORMSlotRequest,
    User as ORMUser,
    Vehicle as ORMVehicle,
    VehicleEntry as ORMVehicleEntry,
)


def _user_from_orm(orm_user: ORMUser) -> User:
    return User(
        id=orm_user.id,
        first_name=orm_user.first_name,
        last_name=orm_user.last_name,
        email=orm_user.email,
        password_hash=orm_user.password,
        role_id=orm_user.role_id,
        role_name=RoleName(orm_user.role.name) if orm_user.role else None,
        email_verified=orm_user.email_verified,
        email_verification_code=orm_user.email_verification_code,
        reset_token=orm_user.reset_token,
        reset_token_expires=orm_user.reset_token_expires,
        balance=orm_user.balance,
        created_at=orm_user.created_at,
        updated_at=orm_user.updated_at,
    )


def _parking_from_orm(orm_parking: ORMParking) -> Parking:
    return Parking(
        id=orm_parking.id,
        code=orm_parking.code,
        name=orm_parking.name,
        total_spaces=orm_parking.total_spaces,
        occupied_spaces=orm_parking.occupied_spaces,
        location=orm_parking.location,
        charge_per_hour=orm_parking.charge_per_hour,
        created_at=orm_parking.created_at,
    )


def _slot_from_orm(orm_slot: ORMParkingSlot) -> ParkingSlot:
    return ParkingSlot(
        id=orm_slot.id,
        slot_number=orm_slot.slot_number,
        size=VehicleSize(orm_slot.size),
        vehicle_type=VehicleType(orm_slot.vehicle_type),
        status=ParkingSlotStatus(orm_slot.status),
        location=SlotLocation(orm_slot.location) if orm_slot.location else None,
        cost_per_hour=orm_slot.cost_per_hour,
        created_at=orm_slot.created_at,
    )


def _vehicle_from_orm(orm_vehicle: ORMVehicle) -> Vehicle:
    return Vehicle(
        id=orm_vehicle.id,
        user_id=orm_vehicle.user_id,
        plate_number=orm_vehicle.plate_number,
        vehicle_type=VehicleType(orm_vehicle.vehicle_type),
        size=VehicleSize(orm_vehicle.size),
        other_attributes=orm_vehicle.other_attributes,
        created_at=orm_vehicle.created_at,
    )


def _entry_from_orm(orm_entry: ORMVehicleEntry) -> VehicleEntry:
    recorded_by = orm_entry.recorded_by
    return VehicleEntry(
        id=orm_entry.id,
        plate_number=orm_entry.plate_number,
        parking_id=orm_entry.parking_id,
        entry_time=orm_entry.entry_time,
        exit_time=orm_entry.exit_time,
        ticket_number=orm_entry.ticket_number,
        status=VehicleEntryStatus(orm_entry.status),
        calculated_duration_minutes=orm_entry.calculated_duration_minutes,
        charged_amount=orm_entry.charged_amount,
        recorded_by_id=orm_entry.recorded_by_id,
        parking=_parking_from_orm(orm_entry.parking) if orm_entry.parking else None,
        recorded_by_name=f"{recorded_by.first_name} {recorded_by.last_name}".strip() if recorded_by else None,
    )


def _slot_request_from_orm(orm_request: ORMSlotRequest) -> SlotRequest:
    return SlotRequest(
        id=orm_request.id,
        user_id=orm_request.user_id,
        vehicle_id=orm_request.vehicle_id,
        parking_slot_id=orm_request.parking_slot_id,
        expected_duration_hours=orm_request.expected_duration_hours,
        calculated_cost=orm_request.calculated_cost,
        status=SlotRequestStatus(orm_request.status),
        admin_notes=orm_request.admin_notes,
        requested_at=orm_request.requested_at,
        resolved_at=orm_request.resolved_at,
        user=_user_from_orm(orm_request.user) if orm_request.user else None,
        vehicle=_vehicle_from_orm(orm_request.vehicle) if orm_request.vehicle else None,
        parking_slot=_slot_from_orm(orm_request.parking_slot) if orm_request.parking_slot else None,
    )


def _audit_log_from_orm(orm_log: ORMAuditLog) -> AuditLog:
    return AuditLog(
        id=orm_log.id,
        user_id=orm_log.user_id,
        action=orm_log.action,
        entity_type=orm_log.entity_type,
        entity_id=orm_log.entity_id,
        details=orm_log.details,
        timestamp=orm_log.timestamp,
    )


def _value(member):
    return member.value if member is not None and hasattr(member, "value") else member


class SQLAlchemyRepository:
    """Shared session handling, paging and ordering."""

    sortable_columns: Dict = {}
    default_sort = None

    def __init__(self, session: AsyncSession):
        self.session = session

    async def commit(self):
        await self.session.commit()

    async def rollback(self):
        await self.session.rollback()

    def _ordered(self, stmt, query: ListQuery, default_sort: Optional[str] = None):
        column = self.sortable_columns.get(query.sort_by) if query.sort_by else None
        if column is None:
            column = self.sortable_columns.get(default_sort or self.default_sort)
        if column is None:
            return stmt
        return stmt.order_by(column.asc() if query.order == "asc" else column.desc())

    async def _paginate(self, stmt, query: ListQuery, converter, default_sort: Optional[str] = None) -> Page:
        count_stmt = select(func.count()).select_from(stmt.order_by(None).subquery())
        total = (await self.session.execute(count_stmt)).scalar() or 0

        stmt = self._ordered(stmt, query, default_sort).offset(query.offset).limit(query.limit)
        result = await self.session.execute(stmt)
        items = [converter(row) for row in result.scalars().unique().all()]
        return Page(items=items, total=total, page=query.page, limit=query.limit)


class SQLAlchemyRoleRepository(SQLAlchemyRepository, AbstractRoleRepository):
    async def get_by_id(self, role_id: int) -> Optional[Role]:
        orm_role = await self.session.get(ORMRole, role_id)
        if orm_role:
            return Role(id=orm_role.id, name=RoleName(orm_role.name), description=orm_role.description)
        return None

    async def get_by_name(self, name: RoleName) -> Optional[Role]:
        result = await self.session.execute(select(ORMRole).where(ORMRole.name == _value(name)))
        orm_role = result.scalars().first()
        if orm_role:
            return Role(id=orm_role.id, name=RoleName(orm_role.name), description=orm_role.description)
        return None

    async def get_all(self) -> List[Role]:
        result = await self.session.execute(
            select(ORMRole)
            .options(selectinload(ORMRole.permissions).selectinload(ORMRolePermission.permission))
            .order_by(ORMRole.id)
        )
        return [
            Role(
                id=r.id,
                name=RoleName(r.name),
                description=r.description,
                permissions=sorted(rp.permission.name for rp in r.permissions),
            )
            for r in result.scalars().all()
        ]

    async def get_all_permissions(self) -> List[Permission]:
        result = await self.session.execute(select(ORMPermission).order_by(ORMPermission.name))
        return [Permission(id=p.id, name=p.name, description=p.description) for p in result.scalars().all()]

    async def get_permission_names(self, role_id: int) -> List[str]:
        result = await self.session.execute(
            select(ORMPermission.name)
            .join(ORMRolePermission, ORMRolePermission.permission_id == ORMPermission.id)
            .where(ORMRolePermission.role_id == role_id)
            .order_by(ORMPermission.name)
        )
        return list(result.scalars().all())


class SQLAlchemyUserRepository(SQLAlchemyRepository, AbstractUserRepository):
    sortable_columns = {
        "created_at": ORMUser.created_at,
        "first_name": ORMUser.first_name,
        "last_name": ORMUser.last_name,
        "email": ORMUser.email,
    }
    default_sort = "created_at"

    async def get_by_id(self, user_id: int) -> Optional[User]:
        result = await self.session.execute(
            select(ORMUser)
            .options(selectinload(ORMUser.role))
            .where(ORMUser.id == user_id)
            .execution_options(populate_existing=True)
        )
        orm_user = result.scalars().first()
        return _user_from_orm(orm_user) if orm_user else None

    async def get_by_email(self, email: str) -> Optional[User]:
        result = await self.session.execute(
            select(ORMUser).options(selectinload(ORMUser.role)).where(ORMUser.email == email.strip().lower())
        )
        orm_user = result.scalars().first()
        return _user_from_orm(orm_user) if orm_user else None

    async def add(self, user: User) -> User:
        orm_user = ORMUser(
            first_name=user.first_name,
            last_name=user.last_name,
            email=user.email,
            password=user.password_hash,
            role_id=user.role_id,
            email_verified=user.email_verified,
            email_verification_code=user.email_verification_code,
            balance=user.balance,
        )
        self.session.add(orm_user)
        await self.session.flush()
        return await self.get_by_id(orm_user.id)

    async def update(self, user: User) -> User:
        orm_user = await self.session.get(ORMUser, user.id)
        if not orm_user:
            raise ValueError(f"User with ID {user.id} not found.")
        orm_user.first_name = user.first_name
        orm_user.last_name = user.last_name
        orm_user.email = user.email
        orm_user.password = user.password_hash
        orm_user.role_id = user.role_id
        orm_user.email_verified = user.email_verified
        orm_user.email_verification_code = user.email_verification_code
        orm_user.reset_token = user.reset_token
        orm_user.reset_token_expires = user.reset_token_expires
        await self.session.flush()
        return await self.get_by_id(orm_user.id)

    async def delete(self, user_id: int) -> bool:
        result = await self.session.execute(delete(ORMUser).where(ORMUser.id == user_id))
        return result.rowcount > 0

    async def list(self, query: ListQuery, role_name: Optional[RoleName] = None) -> Page[User]:
        stmt = select(ORMUser).options(selectinload(ORMUser.role))
        if role_name:
            stmt = stmt.join(ORMRole, ORMUser.role_id == ORMRole.id).where(ORMRole.name == _value(role_name))
        if query.search:
            pattern = f"%{query.search}%"
            stmt = stmt.where(or_(
                ORMUser.first_name.ilike(pattern),
                ORMUser.last_name.ilike(pattern),
                ORMUser.email.ilike(pattern),
            ))
        return await self._paginate(stmt, query, _user_from_orm)

    async def deduct_balance(self, user_id: int, amount: Decimal) -> bool:
        result = await self.session.execute(
            update(ORMUser)
            .where(and_(ORMUser.id == user_id, ORMUser.balance >= amount))
            .values(balance=ORMUser.balance - amount)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1

    async def set_balance(self, user_id: int, amount: Decimal) -> bool:
        result = await self.session.execute(
            update(ORMUser)
            .where(ORMUser.id == user_id)
            .values(balance=amount)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1


class SQLAlchemyParkingRepository(SQLAlchemyRepository, AbstractParkingRepository):
    sortable_columns = {
        "created_at": ORMParking.created_at,
        "name": ORMParking.name,
        "code": ORMParking.code,
        "total_spaces": ORMParking.total_spaces,
        "occupied_spaces": ORMParking.occupied_spaces,
        "charge_per_hour": ORMParking.charge_per_hour,
    }
    default_sort = "created_at"

    async def get_by_id(self, parking_id: int) -> Optional[Parking]:
        orm_parking = await self.session.get(ORMParking, parking_id, populate_existing=True)
        return _parking_from_orm(orm_parking) if orm_parking else None

    async def get_by_code(self, code: str) -> Optional[Parking]:
        result = await self.session.execute(select(ORMParking).where(ORMParking.code == code.upper()))
        orm_parking = result.scalars().first()
        return _parking_from_orm(orm_parking) if orm_parking else None

    async def add(self, parking: Parking) -> Parking:
        orm_parking = ORMParking(
            code=parking.code,
            name=parking.name,
            total_spaces=parking.total_spaces,
            occupied_spaces=parking.occupied_spaces,
            location=parking.location,
            charge_per_hour=parking.charge_per_hour,
        )
        self.session.add(orm_parking)
        await self.session.flush()
        await self.session.refresh(orm_parking)
        return _parking_from_orm(orm_parking)

    async def update(self, parking: Parking) -> Parking:
        orm_parking = await self.session.get(ORMParking, parking.id)
        if not orm_parking:
            raise ValueError(f"Parking with ID {parking.id} not found.")
        orm_parking.code = parking.code
        orm_parking.name = parking.name
        orm_parking.location = parking.location
        orm_parking.charge_per_hour = parking.charge_per_hour
        await self.session.flush()
        await self.session.refresh(orm_parking)
        return _parking_from_orm(orm_parking)

    async def delete(self, parking_id: int) -> bool:
        result = await self.session.execute(delete(ORMParking).where(ORMParking.id == parking_id))
        return result.rowcount > 0

    async def list(self, query: ListQuery) -> Page[Parking]:
        stmt = select(ORMParking)
        if query.search:
            pattern = f"%{query.search}%"
            stmt = stmt.where(or_(
                ORMParking.name.ilike(pattern),
                ORMParking.code.ilike(pattern),
                ORMParking.location.ilike(pattern),
            ))
        return await self._paginate(stmt, query, _parking_from_orm)

    async def get_selectable(self) -> List[Parking]:
        result = await self.session.execute(select(ORMParking).order_by(ORMParking.name))
        return [_parking_from_orm(p) for p in result.scalars().all()]

    async def increment_occupied(self, parking_id: int) -> bool:
        result = await self.session.execute(
            update(ORMParking)
            .where(and_(ORMParking.id == parking_id, ORMParking.occupied_spaces < ORMParking.total_spaces))
            .values(occupied_spaces=ORMParking.occupied_spaces + 1)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1

    async def decrement_occupied(self, parking_id: int) -> bool:
        result = await self.session.execute(
            update(ORMParking)
            .where(and_(ORMParking.id == parking_id, ORMParking.occupied_spaces > 0))
            .values(occupied_spaces=ORMParking.occupied_spaces - 1)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1

    async def set_capacity(
        self, parking_id: int, total_spaces: Optional[int] = None, occupied_spaces: Optional[int] = None
    ) -> bool:
        values = {}
        conditions = [ORMParking.id == parking_id]
        if total_spaces is not None:
            values["total_spaces"] = total_spaces
        if occupied_spaces is not None:
            values["occupied_spaces"] = occupied_spaces
        if total_spaces is not None and occupied_spaces is None:
            conditions.append(ORMParking.occupied_spaces <= total_spaces)
        elif occupied_spaces is not None and total_spaces is None:
            conditions.append(ORMParking.total_spaces >= occupied_spaces)
        if not values:
            return False
        result = await self.session.execute(
            update(ORMParking)
            .where(and_(*conditions))
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1


class SQLAlchemyParkingSlotRepository(SQLAlchemyRepository, AbstractParkingSlotRepository):
    sortable_columns = {
        "slot_number": ORMParkingSlot.slot_number,
        "created_at": ORMParkingSlot.created_at,
        "status": ORMParkingSlot.status,
        "size": ORMParkingSlot.size,
        "vehicle_type": ORMParkingSlot.vehicle_type,
        "cost_per_hour": ORMParkingSlot.cost_per_hour,
    }
    default_sort = "slot_number"

    async def get_by_id(self, slot_id: int) -> Optional[ParkingSlot]:
        orm_slot = await self.session.get(ORMParkingSlot, slot_id, populate_existing=True)
        return _slot_from_orm(orm_slot) if orm_slot else None

    async def get_by_number(self, slot_number: str) -> Optional[ParkingSlot]:
        result = await self.session.execute(
            select(ORMParkingSlot).where(ORMParkingSlot.slot_number == slot_number.upper())
        )
        orm_slot = result.scalars().first()
        return _slot_from_orm(orm_slot) if orm_slot else None

    async def get_existing_numbers(self, slot_numbers: List[str]) -> Set[str]:
        if not slot_numbers:
            return set()
        result = await self.session.execute(
            select(ORMParkingSlot.slot_number).where(ORMParkingSlot.slot_number.in_(slot_numbers))
        )
        return set(result.scalars().all())

    def _to_orm(self, slot: ParkingSlot) -> ORMParkingSlot:
        return ORMParkingSlot(
            slot_number=slot.slot_number,
            size=_value(slot.size),
            vehicle_type=_value(slot.vehicle_type),
            location=_value(slot.location),
            status=_value(slot.status),
            cost_per_hour=slot.cost_per_hour,
        )

    async def add(self, slot: ParkingSlot) -> ParkingSlot:
        orm_slot = self._to_orm(slot)
        self.session.add(orm_slot)
        await self.session.flush()
        await self.session.refresh(orm_slot)
        return _slot_from_orm(orm_slot)

    async def add_many(self, slots: List[ParkingSlot]) -> List[ParkingSlot]:
        orm_slots = [self._to_orm(slot) for slot in slots]
        self.session.add_all(orm_slots)
        await self.session.flush()
        return [_slot_from_orm(s) for s in orm_slots]

    async def update(self, slot: ParkingSlot) -> ParkingSlot:
        orm_slot = await self.session.get(ORMParkingSlot, slot.id)
        if not orm_slot:
            raise ValueError(f"Parking slot with ID {slot.id} not found.")
        orm_slot.slot_number = slot.slot_number
        orm_slot.size = _value(slot.size)
        orm_slot.vehicle_type = _value(slot.vehicle_type)
        orm_slot.location = _value(slot.location)
        orm_slot.status = _value(slot.status)
        orm_slot.cost_per_hour = slot.cost_per_hour
        await self.session.flush()
        await self.session.refresh(orm_slot)
        return _slot_from_orm(orm_slot)

    async def delete(self, slot_id: int) -> bool:
        result = await self.session.execute(delete(ORMParkingSlot).where(ORMParkingSlot.id == slot_id))
        return result.rowcount > 0

    async def list(self, query: ListQuery, filters: Optional[Dict] = None) -> Page[ParkingSlot]:
        filters = filters or {}
        stmt = select(ORMParkingSlot)
        for key in ("status", "size", "vehicle_type", "location"):
            if filters.get(key):
                stmt = stmt.where(getattr(ORMParkingSlot, key) == _value(filters[key]))
        if query.search:
            stmt = stmt.where(ORMParkingSlot.slot_number.ilike(f"%{query.search}%"))
        return await self._paginate(stmt, query, _slot_from_orm)

    async def set_status(
        self, slot_id: int, status: ParkingSlotStatus, expected: Optional[ParkingSlotStatus] = None
    ) -> bool:
        conditions = [ORMParkingSlot.id == slot_id]
        if expected is not None:
            conditions.append(ORMParkingSlot.status == _value(expected))
        result = await self.session.execute(
            update(ORMParkingSlot)
            .where(and_(*conditions))
            .values(status=_value(status))
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1


class SQLAlchemyVehicleRepository(SQLAlchemyRepository, AbstractVehicleRepository):
    sortable_columns = {
        "created_at": ORMVehicle.created_at,
        "plate_number": ORMVehicle.plate_number,
        "vehicle_type": ORMVehicle.vehicle_type,
        "size": ORMVehicle.size,
    }
    default_sort = "created_at"

    async def get_by_id(self, vehicle_id: int) -> Optional[Vehicle]:
        orm_vehicle = await self.session.get(ORMVehicle, vehicle_id, populate_existing=True)
        return _vehicle_from_orm(orm_vehicle) if orm_vehicle else None

    async def get_by_plate_number(self, plate_number: str) -> Optional[Vehicle]:
        result = await self.session.execute(
            select(ORMVehicle).where(ORMVehicle.plate_number == plate_number.upper())
        )
        orm_vehicle = result.scalars().first()
        return _vehicle_from_orm(orm_vehicle) if orm_vehicle else None

    async def add(self, vehicle: Vehicle) -> Vehicle:
        orm_vehicle = ORMVehicle(
            user_id=vehicle.user_id,
            plate_number=vehicle.plate_number,
            vehicle_type=_value(vehicle.vehicle_type),
            size=_value(vehicle.size),
            other_attributes=vehicle.other_attributes,
        )
        self.session.add(orm_vehicle)
        await self.session.flush()
        await self.session.refresh(orm_vehicle)
        return _vehicle_from_orm(orm_vehicle)

    async def update(self, vehicle: Vehicle) -> Vehicle:
        orm_vehicle = await self.session.get(ORMVehicle, vehicle.id)
        if not orm_vehicle:
            raise ValueError(f"Vehicle with ID {vehicle.id} not found.")
        orm_vehicle.plate_number = vehicle.plate_number
        orm_vehicle.vehicle_type = _value(vehicle.vehicle_type)
        orm_vehicle.size = _value(vehicle.size)
        orm_vehicle.other_attributes = vehicle.other_attributes
        await self.session.flush()
        await self.session.refresh(orm_vehicle)
        return _vehicle_from_orm(orm_vehicle)

    async def delete(self, vehicle_id: int) -> bool:
        result = await self.session.execute(delete(ORMVehicle).where(ORMVehicle.id == vehicle_id))
        return result.rowcount > 0

    async def list_for_user(self, user_id: int, query: ListQuery) -> Page[Vehicle]:
        stmt = select(ORMVehicle).where(ORMVehicle.user_id == user_id)
        if query.search:
            search = query.search.upper()
            conditions = [ORMVehicle.plate_number.ilike(f"%{search}%")]
            if search in VehicleType.__members__:
                conditions.append(ORMVehicle.vehicle_type == search)
            stmt = stmt.where(or_(*conditions))
        return await self._paginate(stmt, query, _vehicle_from_orm)


class SQLAlchemyVehicleEntryRepository(SQLAlchemyRepository, AbstractVehicleEntryRepository):
    sortable_columns = {
        "entry_time": ORMVehicleEntry.entry_time,
        "exit_time": ORMVehicleEntry.exit_time,
        "plate_number": ORMVehicleEntry.plate_number,
        "charged_amount": ORMVehicleEntry.charged_amount,
        "calculated_duration_minutes": ORMVehicleEntry.calculated_duration_minutes,
        "status": ORMVehicleEntry.status,
    }
    default_sort = "entry_time"

    def _select(self):
        return select(ORMVehicleEntry).options(
            selectinload(ORMVehicleEntry.parking),
            selectinload(ORMVehicleEntry.recorded_by),
        )

    async def get_by_id(self, entry_id: int) -> Optional[VehicleEntry]:
        result = await self.session.execute(
            self._select()
            .where(ORMVehicleEntry.id == entry_id)
            .execution_options(populate_existing=True)
        )
        orm_entry = result.scalars().first()
        return _entry_from_orm(orm_entry) if orm_entry else None

    async def get_parked_by_plate_number(self, plate_number: str) -> Optional[VehicleEntry]:
        result = await self.session.execute(
            self._select().where(and_(
                ORMVehicleEntry.plate_number == plate_number.upper(),
                ORMVehicleEntry.status == VehicleEntryStatus.PARKED.value,
            ))
        )
        orm_entry = result.scalars().first()
        return _entry_from_orm(orm_entry) if orm_entry else None

    async def ticket_number_exists(self, ticket_number: str) -> bool:
        result = await self.session.execute(
            select(func.count(ORMVehicleEntry.id)).where(ORMVehicleEntry.ticket_number == ticket_number)
        )
        return (result.scalar() or 0) > 0

    async def add(self, entry: VehicleEntry) -> VehicleEntry:
        orm_entry = ORMVehicleEntry(
            plate_number=entry.plate_number,
            parking_id=entry.parking_id,
            entry_time=entry.entry_time,
            ticket_number=entry.ticket_number,
            status=_value(entry.status),
            charged_amount=entry.charged_amount,
            recorded_by_id=entry.recorded_by_id,
        )
        self.session.add(orm_entry)
        await self.session.flush()
        return await self.get_by_id(orm_entry.id)

    async def mark_exited(
        self, entry_id: int, exit_time: datetime, duration_minutes: int, charged_amount: Decimal
    ) -> bool:
        result = await self.session.execute(
            update(ORMVehicleEntry)
            .where(and_(
                ORMVehicleEntry.id == entry_id,
                ORMVehicleEntry.status == VehicleEntryStatus.PARKED.value,
            ))
            .values(
                status=VehicleEntryStatus.EXITED.value,
                exit_time=exit_time,
                calculated_duration_minutes=duration_minutes,
                charged_amount=charged_amount,
            )
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1

    async def list(self, query: ListQuery, filters: Optional[Dict] = None) -> Page[VehicleEntry]:
        filters = filters or {}
        stmt = self._select()
        if filters.get("status"):
            stmt = stmt.where(ORMVehicleEntry.status == _value(filters["status"]))
        if filters.get("parking_id"):
            stmt = stmt.where(ORMVehicleEntry.parking_id == filters["parking_id"])
        if filters.get("start"):
            stmt = stmt.where(ORMVehicleEntry.entry_time >= filters["start"])
        if filters.get("end"):
            stmt = stmt.where(ORMVehicleEntry.entry_time <= filters["end"])
        if query.search:
            pattern = f"%{query.search}%"
            stmt = stmt.where(or_(
                ORMVehicleEntry.plate_number.ilike(pattern),
                ORMVehicleEntry.ticket_number.ilike(pattern),
            ))
        return await self._paginate(stmt, query, _entry_from_orm)

    async def count_for_parking(self, parking_id: int, parked_only: bool = False) -> int:
        stmt = select(func.count(ORMVehicleEntry.id)).where(ORMVehicleEntry.parking_id == parking_id)
        if parked_only:
            stmt = stmt.where(ORMVehicleEntry.status == VehicleEntryStatus.PARKED.value)
        result = await self.session.execute(stmt)
        return result.scalar() or 0

    async def list_entered_between(
        self,
        start: Optional[datetime],
        end: Optional[datetime],
        query: ListQuery,
        parking_id: Optional[int] = None,
    ) -> Page[VehicleEntry]:
        stmt = self._select()
        if start:
            stmt = stmt.where(ORMVehicleEntry.entry_time >= start)
        if end:
            stmt = stmt.where(ORMVehicleEntry.entry_time <= end)
        if parking_id:
            stmt = stmt.where(ORMVehicleEntry.parking_id == parking_id)
        return await self._paginate(stmt, query, _entry_from_orm)

    def _exited_conditions(self, start: Optional[datetime], end: Optional[datetime], parking_id: Optional[int]):
        conditions = [
            ORMVehicleEntry.status == VehicleEntryStatus.EXITED.value,
            ORMVehicleEntry.exit_time.is_not(None),
        ]
        if start:
            conditions.append(ORMVehicleEntry.exit_time >= start)
        if end:
            conditions.append(ORMVehicleEntry.exit_time <= end)
        if parking_id:
            conditions.append(ORMVehicleEntry.parking_id == parking_id)
        return and_(*conditions)

    async def list_exited_between(
        self,
        start: Optional[datetime],
        end: Optional[datetime],
        query: ListQuery,
        parking_id: Optional[int] = None,
    ) -> Page[VehicleEntry]:
        stmt = self._select().where(self._exited_conditions(start, end, parking_id))
        return await self._paginate(stmt, query, _entry_from_orm, default_sort="exit_time")

    async def total_charged_between(
        self, start: Optional[datetime], end: Optional[datetime], parking_id: Optional[int] = None
    ) -> Decimal:
        result = await self.session.execute(
            select(func.sum(ORMVehicleEntry.charged_amount))
            .where(self._exited_conditions(start, end, parking_id))
        )
        return result.scalar() or Decimal("0.00")


class SQLAlchemySlotRequestRepository(SQLAlchemyRepository, AbstractSlotRequestRepository):
    sortable_columns = {
        "requested_at": ORMSlotRequest.requested_at,
        "created_at": ORMSlotRequest.created_at,
        "status": ORMSlotRequest.status,
        "calculated_cost": ORMSlotRequest.calculated_cost,
        "expected_duration_hours": ORMSlotRequest.expected_duration_hours,
    }
    default_sort = "requested_at"

    def _select(self):
        return select(ORMSlotRequest).options(
            selectinload(ORMSlotRequest.user).selectinload(ORMUser.role),
            selectinload(ORMSlotRequest.vehicle),
            selectinload(ORMSlotRequest.parking_slot),
        )

    async def get_by_id(self, request_id: int) -> Optional[SlotRequest]:
        result = await self.session.execute(
            self._select()
            .where(ORMSlotRequest.id == request_id)
            .execution_options(populate_existing=True)
        )
        orm_request = result.scalars().first()
        return _slot_request_from_orm(orm_request) if orm_request else None

    async def add(self, slot_request: SlotRequest) -> SlotRequest:
        orm_request = ORMSlotRequest(
            user_id=slot_request.user_id,
            vehicle_id=slot_request.vehicle_id,
            parking_slot_id=slot_request.parking_slot_id,
            expected_duration_hours=slot_request.expected_duration_hours,
            calculated_cost=slot_request.calculated_cost,
            status=_value(slot_request.status),
            admin_notes=slot_request.admin_notes,
        )
        if slot_request.requested_at:
            orm_request.requested_at = slot_request.requested_at
        self.session.add(orm_request)
        await self.session.flush()
        return await self.get_by_id(orm_request.id)

    async def change_vehicle(self, request_id: int, vehicle_id: int) -> bool:
        result = await self.session.execute(
            update(ORMSlotRequest)
            .where(and_(
                ORMSlotRequest.id == request_id,
                ORMSlotRequest.status == SlotRequestStatus.PENDING.value,
            ))
            .values(vehicle_id=vehicle_id)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1

    async def list(self, query: ListQuery, filters: Optional[Dict] = None) -> Page[SlotRequest]:
        filters = filters or {}
        stmt = self._select()
        if filters.get("user_id"):
            stmt = stmt.where(ORMSlotRequest.user_id == filters["user_id"])
        if filters.get("status"):
            stmt = stmt.where(ORMSlotRequest.status == _value(filters["status"]))
        if query.search:
            pattern = f"%{query.search}%"
            stmt = (
                stmt.join(ORMVehicle, ORMSlotRequest.vehicle_id == ORMVehicle.id)
                .join(ORMUser, ORMSlotRequest.user_id == ORMUser.id)
                .where(or_(
                    ORMVehicle.plate_number.ilike(pattern),
                    ORMUser.first_name.ilike(pattern),
                    ORMUser.last_name.ilike(pattern),
                    ORMUser.email.ilike(pattern),
                ))
            )
        return await self._paginate(stmt, query, _slot_request_from_orm)

    async def has_active_for_vehicle(self, vehicle_id: int, exclude_request_id: Optional[int] = None) -> bool:
        stmt = select(func.count(ORMSlotRequest.id)).where(and_(
            ORMSlotRequest.vehicle_id == vehicle_id,
            ORMSlotRequest.status.in_([s.value for s in ACTIVE_SLOT_REQUEST_STATUSES]),
        ))
        if exclude_request_id is not None:
            stmt = stmt.where(ORMSlotRequest.id != exclude_request_id)
        result = await self.session.execute(stmt)
        return (result.scalar() or 0) > 0

    async def has_approved_for_slot(self, slot_id: int) -> bool:
        result = await self.session.execute(
            select(func.count(ORMSlotRequest.id)).where(and_(
                ORMSlotRequest.parking_slot_id == slot_id,
                ORMSlotRequest.status == SlotRequestStatus.APPROVED.value,
            ))
        )
        return (result.scalar() or 0) > 0

    async def has_approved_for_user(self, user_id: int) -> bool:
        result = await self.session.execute(
            select(func.count(ORMSlotRequest.id)).where(and_(
                ORMSlotRequest.user_id == user_id,
                ORMSlotRequest.status == SlotRequestStatus.APPROVED.value,
            ))
        )
        return (result.scalar() or 0) > 0

    async def resolve(
        self,
        request_id: int,
        status: SlotRequestStatus,
        resolved_at: datetime,
        admin_notes: Optional[str] = None,
        parking_slot_id: Optional[int] = None,
    ) -> bool:
        values = {"status": _value(status), "resolved_at": resolved_at, "admin_notes": admin_notes}
        if parking_slot_id is not None:
            values["parking_slot_id"] = parking_slot_id
        result = await self.session.execute(
            update(ORMSlotRequest)
            .where(and_(
                ORMSlotRequest.id == request_id,
                ORMSlotRequest.status == SlotRequestStatus.PENDING.value,
            ))
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1


class SQLAlchemyAuditLogRepository(SQLAlchemyRepository, AbstractAuditLogRepository):
    sortable_columns = {
        "timestamp": ORMAuditLog.timestamp,
        "action": ORMAuditLog.action,
    }
    default_sort = "timestamp"

    async def add(self, audit_log: AuditLog) -> AuditLog:
        orm_log = ORMAuditLog(
            user_id=audit_log.user_id,
            action=audit_log.action,
            entity_type=audit_log.entity_type,
            entity_id=audit_log.entity_id,
            details=audit_log.details,
        )
        if audit_log.timestamp:
            orm_log.timestamp = audit_log.timestamp
        self.session.add(orm_log)
        await self.session.flush()
        await self.session.refresh(orm_log)
        return _audit_log_from_orm(orm_log)

    async def list(self, query: ListQuery, filters: Optional[Dict] = None) -> Page[AuditLog]:
        filters = filters or {}
        stmt = select(ORMAuditLog)
        if filters.get("user_id"):
            stmt = stmt.where(ORMAuditLog.user_id == filters["user_id"])
        if filters.get("entity_type"):
            stmt = stmt.where(func.lower(ORMAuditLog.entity_type) == filters["entity_type"].lower())
        if filters.get("entity_id"):
            stmt = stmt.where(ORMAuditLog.entity_id == filters["entity_id"])
        if filters.get("start"):
            stmt = stmt.where(ORMAuditLog.timestamp >= filters["start"])
        if filters.get("end"):
            stmt = stmt.where(ORMAuditLog.timestamp <= filters["end"])
        if query.search:
            stmt = stmt.where(ORMAuditLog.action.ilike(f"%{query.search}%"))
        return await self._paginate(stmt, query, _audit_log_from_orm)
