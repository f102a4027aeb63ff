from datetime import datetime, timedelta, timezone
from typing import List, Optional, Tuple

from loguru import logger

from parkwell.application.repositories import AbstractRoleRepository, AbstractUserRepository
from parkwell.application.services.audit_service import AuditService
from parkwell.config.settings_env import settings
from parkwell.domain.common import RoleName
from parkwell.domain.entities import User
from parkwell.domain.exceptions import (
    AuthenticationError,
    ConflictError,
    NotFoundError,
    PermissionDeniedError,
    ValidationError,
)
from parkwell.infrastructure.security import (
    create_access_token,
    generate_numeric_code,
    hash_password,
    verify_password,
)

MIN_PASSWORD_LENGTH = 6
MIN_PROFILE_PASSWORD_LENGTH = 8


class AuthService:
    def __init__(
        self,
        user_repo: AbstractUserRepository,
        role_repo: AbstractRoleRepository,
        audit_service: Optional[AuditService] = None,
        email_sender=None,
    ):
        self.user_repo = user_repo
        self.role_repo = role_repo
        self.audit_service = audit_service
        self.email_sender = email_sender

    async def _audit(self, action: str, user_id: int):
        if self.audit_service:
            await self.audit_service.record(action, user_id=user_id, entity_type="User", entity_id=user_id)

    async def register(self, first_name: str, last_name: str, email: str, password: str) -> User:
        email = email.strip().lower()
        if not password or len(password) < MIN_PASSWORD_LENGTH:
            raise ValidationError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters long.")

        if await self.user_repo.get_by_email(email):
            raise ConflictError("Email already in use")

        role = await self.role_repo.get_by_name(RoleName.USER)
        if not role:
            raise RuntimeError("USER role not found in database. Run init_database first.")

        code = generate_numeric_code()
        user = await self.user_repo.add(User(
            first_name=first_name.strip(),
            last_name=(last_name or "").strip(),
            email=email,
            password_hash=hash_password(password),
            role_id=role.id,
            email_verification_code=code,
        ))
        await self._audit("User registered", user.id)
        await self.user_repo.commit()
        logger.info(f"User {email} registered")

        if self.email_sender:
            await self.email_sender.send_verification_code(email, user.first_name, code)
        return user

    async def verify_email(self, email: str, code: str) -> User:
        user = await self.user_repo.get_by_email(email)
        if not user:
            raise NotFoundError("User not found")
        if user.email_verified:
            raise ValidationError("Email already verified")
        if not code or user.email_verification_code != code.strip():
            raise ValidationError("Invalid verification code")

        user.email_verified = True
        user.email_verification_code = None
        user = await self.user_repo.update(user)
        await self._audit("Email verified", user.id)
        await self.user_repo.commit()
        logger.info(f"User {user.email} verified their e-mail")
        return user

    async def login(self, email: str, password: str) -> Tuple[str, User, List[str]]:
        user = await self.user_repo.get_by_email(email)
        if not user or not verify_password(password, user.password_hash):
            raise AuthenticationError("Invalid email or password")
        if not user.email_verified:
            raise PermissionDeniedError("Email not verified. Please verify your email first.")

        token = create_access_token({
            "user_id": user.id,
            "role_id": user.role_id,
            "role_name": user.role_name.value if user.role_name else None,
        })
        permissions = await self.role_repo.get_permission_names(user.role_id)
        await self._audit("User logged in", user.id)
        await self.user_repo.commit()
        logger.info(f"User {user.email} logged in")
        return token, user, permissions

    async def forgot_password(self, email: str) -> None:
        """Issue a reset OTP. Silent when the address is unknown."""
        user = await self.user_repo.get_by_email(email)
        if not user:
            logger.info(f"Password reset requested for unknown e-mail {email}")
            return

        otp = generate_numeric_code()
        user.reset_token = otp
        user.reset_token_expires = datetime.now(timezone.utc) + timedelta(minutes=settings.RESET_OTP_EXPIRES_MINUTES)
        await self.user_repo.update(user)
        await self._audit("Password reset requested", user.id)
        await self.user_repo.commit()

        if self.email_sender:
            await self.email_sender.send_password_reset(user.email, user.first_name, otp)

    async def reset_password(self, email: str, otp: str, new_password: str) -> None:
        if not new_password or len(new_password) < MIN_PASSWORD_LENGTH:
            raise ValidationError(f"New password must be at least {MIN_PASSWORD_LENGTH} characters long")

        user = await self.user_repo.get_by_email(email)
        now = datetime.now(timezone.utc)
        if (
            not user
            or not user.reset_token
            or user.reset_token != (otp or "").strip()
            or not user.reset_token_expires
            or user.reset_token_expires < now
        ):
            raise ValidationError("Invalid or expired OTP")

        user.password_hash = hash_password(new_password)
        user.reset_token = None
        user.reset_token_expires = None
        await self.user_repo.update(user)
        await self._audit("Password reset", user.id)
        await self.user_repo.commit()
        logger.info(f"Password reset for {user.email}")

    async def get_profile(self, user_id: int) -> Tuple[User, List[str]]:
        user = await self.user_repo.get_by_id(user_id)
        if not user:
            raise NotFoundError("User not found")
        permissions = await self.role_repo.get_permission_names(user.role_id)
        return user, permissions

    async def update_profile(
        self,
        user_id: int,
        first_name: Optional[str] = None,
        last_name: Optional[str] = None,
        current_password: Optional[str] = None,
        new_password: Optional[str] = None,
    ) -> User:
        user = await self.user_repo.get_by_id(user_id)
        if not user:
            raise NotFoundError("User not found.")

        changed = False
        if first_name and first_name.strip() and first_name.strip() != user.first_name:
            user.first_name = first_name.strip()
            changed = True
        if last_name and last_name.strip() and last_name.strip() != user.last_name:
            user.last_name = last_name.strip()
            changed = True

        if new_password:
            if not current_password:
                raise ValidationError("Current password is required to set a new password.")
            if not verify_password(current_password, user.password_hash):
                raise ValidationError("Incorrect current password.")
            if len(new_password) < MIN_PROFILE_PASSWORD_LENGTH:
                raise ValidationError(
                    f"New password must be at least {MIN_PROFILE_PASSWORD_LENGTH} characters long."
                )
            user.password_hash = hash_password(new_password)
            changed = True
        elif current_password:
            raise ValidationError("Please provide a new password if you intend to change it.")

        if not changed:
            raise ValidationError("No changes provided to update.")

        user = await self.user_repo.update(user)
        await self._audit("Profile updated", user.id)
        await self.user_repo.commit()
        return user
