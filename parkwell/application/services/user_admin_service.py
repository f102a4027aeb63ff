from typing import List, Optional

from loguru import logger

from parkwell.application.repositories import (
    AbstractRoleRepository,
    AbstractSlotRequestRepository,
    AbstractUserRepository,
    ListQuery,
)
from parkwell.application.services.audit_service import AuditService
from parkwell.domain.common import RoleName, parse_enum
from parkwell.domain.entities import Page, Permission, Role, User
from parkwell.domain.exceptions import ConflictError, NotFoundError, ValidationError
from parkwell.infrastructure.security import generate_numeric_code, hash_password
from parkwell.shared.custom_types import to_money

MIN_PASSWORD_LENGTH = 6


class UserAdminService:
    """Account management for administrators."""

    def __init__(
        self,
        user_repo: AbstractUserRepository,
        role_repo: AbstractRoleRepository,
        audit_service: Optional[AuditService] = None,
        email_sender=None,
        slot_request_repo: Optional[AbstractSlotRequestRepository] = None,
    ):
        self.user_repo = user_repo
        self.role_repo = role_repo
        self.audit_service = audit_service
        self.email_sender = email_sender
        self.slot_request_repo = slot_request_repo

    async def _role(self, role_name) -> Role:
        name = parse_enum(RoleName, role_name, "role")
        role = await self.role_repo.get_by_name(name)
        if not role:
            raise ValidationError(f"Role '{name.value}' not found in database.")
        return role

    async def _audit(self, action: str, admin_id: int, user_id: int, details=None):
        if self.audit_service:
            await self.audit_service.record(
                action, user_id=admin_id, entity_type="User", entity_id=user_id, details=details
            )

    async def list_users(self, query: ListQuery, role_name=None) -> Page[User]:
        role = parse_enum(RoleName, role_name, "role") if role_name else None
        return await self.user_repo.list(query, role)

    async def get_user(self, user_id: int) -> User:
        user = await self.user_repo.get_by_id(user_id)
        if not user:
            raise NotFoundError("User not found")
        return user

    async def create_user(
        self,
        admin_id: int,
        first_name: str,
        last_name: str,
        email: str,
        password: str,
        role_name=RoleName.USER,
        balance=None,
    ) -> User:
        email = email.strip().lower()
        if not password or len(password) < MIN_PASSWORD_LENGTH:
            raise ValidationError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters")
        if await self.user_repo.get_by_email(email):
            raise ConflictError("Email already in use")
        role = await self._role(role_name or RoleName.USER)

        code = generate_numeric_code()
        user = await self.user_repo.add(User(
            first_name=first_name.strip(),
            last_name=(last_name or "").strip(),
            email=email,
            password_hash=hash_password(password),
            role_id=role.id,
            email_verification_code=code,
            balance=to_money(balance) if balance is not None else to_money(0),
        ))
        await self._audit("User created by admin", admin_id, user.id, {"role": role.name.value})
        await self.user_repo.commit()
        logger.info(f"Admin {admin_id} created user {email} with role {role.name.value}")

        if self.email_sender:
            await self.email_sender.send_verification_code(email, user.first_name, code)
        return user

    async def update_user(
        self,
        admin_id: int,
        user_id: int,
        first_name: Optional[str] = None,
        last_name: Optional[str] = None,
        email: Optional[str] = None,
        role_name=None,
        email_verified: Optional[bool] = None,
        new_password: Optional[str] = None,
        balance=None,
    ) -> User:
        user = await self.get_user(user_id)

        if all(v is None for v in (first_name, last_name, email, role_name, email_verified, new_password, balance)):
            raise ValidationError("No valid update data provided")

        if role_name is not None:
            role = await self._role(role_name)
            if admin_id == user.id and user.role_name == RoleName.ADMIN and role.name != RoleName.ADMIN:
                raise ValidationError("Admin cannot change their own role from ADMIN.")
            user.role_id = role.id

        if first_name is not None and first_name.strip():
            user.first_name = first_name.strip()
        if last_name is not None:
            user.last_name = last_name.strip()
        if email is not None:
            new_email = email.strip().lower()
            if new_email != user.email:
                if await self.user_repo.get_by_email(new_email):
                    raise ConflictError("Email address is already in use by another user")
                user.email = new_email
        if email_verified is not None:
            user.email_verified = bool(email_verified)
            if user.email_verified:
                user.email_verification_code = None
        if new_password is not None:
            if len(new_password) < MIN_PASSWORD_LENGTH:
                raise ValidationError(f"New password must be at least {MIN_PASSWORD_LENGTH} characters")
            user.password_hash = hash_password(new_password)
        if balance is not None:
            balance = to_money(balance)
            if balance < 0:
                raise ValidationError("Balance must be a non-negative number.")

        await self.user_repo.update(user)
        if balance is not None:
            await self.user_repo.set_balance(user.id, balance)
        user = await self.user_repo.get_by_id(user.id)
        await self._audit("User updated by admin", admin_id, user.id)
        await self.user_repo.commit()
        return user

    async def delete_user(self, admin_id: int, user_id: int) -> None:
        if admin_id == user_id:
            raise ValidationError("Admin cannot delete their own account")
        user = await self.get_user(user_id)
        if self.slot_request_repo and await self.slot_request_repo.has_approved_for_user(user.id):
            raise ValidationError("Cannot delete user. They have an approved slot request holding a parking slot.")
        await self.user_repo.delete(user.id)
        await self._audit("User deleted by admin", admin_id, user.id, {"email": user.email})
        await self.user_repo.commit()
        logger.info(f"Admin {admin_id} deleted user {user.email}")

    async def list_roles(self) -> List[Role]:
        return await self.role_repo.get_all()

    async def list_permissions(self) -> List[Permission]:
        return await self.role_repo.get_all_permissions()
