from decimal import Decimal

import pytest

from parkwell.application.repositories import ListQuery
from parkwell.domain.common import RoleName
from parkwell.domain.exceptions import ConflictError, NotFoundError, ValidationError
from parkwell.infrastructure.persistence.sqlalchemy_repositories import SQLAlchemyUserRepository


class TestUserAdminService:
    """Test account management by administrators."""

    async def test_create_user_with_role(self, user_admin_service, admin_user, email_sender):
        user = await user_admin_service.create_user(
            admin_user.id, "Gate", "Keeper", "Gate@Example.com", "secret123",
            role_name="PARKING_ATTENDANT", balance="12.5",
        )
        assert user.email == "gate@example.com"
        assert user.role_name == RoleName.PARKING_ATTENDANT
        assert user.balance == Decimal("12.50")
        assert user.email_verified is False
        assert email_sender.last("verification")["to"] == "gate@example.com"

    async def test_create_user_rejects_duplicates_and_bad_roles(self, user_admin_service, admin_user, regular_user):
        with pytest.raises(ConflictError):
            await user_admin_service.create_user(admin_user.id, "Dup", "User", "driver@example.com", "secret123")
        with pytest.raises(ValidationError):
            await user_admin_service.create_user(
                admin_user.id, "Bad", "Role", "bad@example.com", "secret123", role_name="SUPERUSER"
            )
        with pytest.raises(ValidationError):
            await user_admin_service.create_user(admin_user.id, "Short", "Pw", "short@example.com", "123")

    async def test_update_user(self, user_admin_service, admin_user, regular_user):
        updated = await user_admin_service.update_user(
            admin_user.id, regular_user.id, role_name=RoleName.PARKING_ATTENDANT, balance="40", email_verified=True
        )
        assert updated.role_name == RoleName.PARKING_ATTENDANT
        assert updated.balance == Decimal("40.00")

    async def test_update_user_validation(self, user_admin_service, admin_user, regular_user, attendant_user):
        with pytest.raises(ValidationError):
            await user_admin_service.update_user(admin_user.id, regular_user.id)
        with pytest.raises(ValidationError):
            await user_admin_service.update_user(admin_user.id, regular_user.id, balance="-1")
        with pytest.raises(ConflictError):
            await user_admin_service.update_user(admin_user.id, regular_user.id, email="attendant@example.com")
        with pytest.raises(NotFoundError):
            await user_admin_service.update_user(admin_user.id, 9999, first_name="Nobody")

    async def test_admin_cannot_demote_self(self, user_admin_service, admin_user):
        with pytest.raises(ValidationError) as exc_info:
            await user_admin_service.update_user(admin_user.id, admin_user.id, role_name=RoleName.USER)
        assert "own role" in str(exc_info.value)

    async def test_new_password_allows_login(self, user_admin_service, auth_service, admin_user, regular_user):
        await user_admin_service.update_user(admin_user.id, regular_user.id, new_password="changed1")
        token, _, _ = await auth_service.login("driver@example.com", "changed1")
        assert token

    async def test_delete_user(self, user_admin_service, admin_user, regular_user):
        with pytest.raises(ValidationError):
            await user_admin_service.delete_user(admin_user.id, admin_user.id)

        await user_admin_service.delete_user(admin_user.id, regular_user.id)
        with pytest.raises(NotFoundError):
            await user_admin_service.get_user(regular_user.id)

    async def test_list_users_by_role(self, user_admin_service, admin_user, attendant_user, regular_user):
        everyone = await user_admin_service.list_users(ListQuery())
        assert everyone.total == 3

        attendants = await user_admin_service.list_users(ListQuery(), role_name="PARKING_ATTENDANT")
        assert [u.email for u in attendants.items] == ["attendant@example.com"]

        found = await user_admin_service.list_users(ListQuery(search="dana"))
        assert [u.email for u in found.items] == ["driver@example.com"]

    async def test_roles_and_permissions(self, user_admin_service):
        roles = await user_admin_service.list_roles()
        assert {r.name for r in roles} == set(RoleName)
        admin = next(r for r in roles if r.name == RoleName.ADMIN)
        assert "manage_all_users" in admin.permissions

        permissions = await user_admin_service.list_permissions()
        assert "view_audit_logs" in {p.name for p in permissions}


class TestAuditLogs:
    """Test the audit trail written by account operations."""

    async def test_admin_actions_are_logged(self, user_admin_service, audit_service, admin_user, regular_user):
        await user_admin_service.update_user(admin_user.id, regular_user.id, first_name="Danny")
        await user_admin_service.delete_user(admin_user.id, regular_user.id)

        logs = await audit_service.list_logs(ListQuery(), user_id=admin_user.id, entity_type="user")
        actions = {log.action for log in logs.items}
        assert actions == {"User updated by admin", "User deleted by admin"}

        deleted = await audit_service.list_logs(ListQuery(search="deleted"), entity_id=regular_user.id)
        assert deleted.items[0].details == {"email": "driver@example.com"}


class TestBalanceAndHeldSlots:
    """Test balance writes and deletes against live slot requests."""

    async def test_profile_edit_keeps_deduction_from_other_session(self, test_db, regular_user):
        async with test_db() as session_a, test_db() as session_b:
            repo_a = SQLAlchemyUserRepository(session_a)
            stale = await repo_a.get_by_id(regular_user.id)
            assert stale.balance == Decimal("100.00")

            repo_b = SQLAlchemyUserRepository(session_b)
            assert await repo_b.deduct_balance(regular_user.id, Decimal("15.00"))
            await repo_b.commit()

            stale.first_name = "Danielle"
            await repo_a.update(stale)
            await repo_a.commit()

            fresh = await repo_a.get_by_id(regular_user.id)
            assert fresh.first_name == "Danielle"
            assert fresh.balance == Decimal("85.00")

    async def test_admin_balance_is_set_explicitly(self, user_admin_service, admin_user, regular_user):
        updated = await user_admin_service.update_user(admin_user.id, regular_user.id, balance="7.5")
        assert updated.balance == Decimal("7.50")

        renamed = await user_admin_service.update_user(admin_user.id, regular_user.id, last_name="Doe")
        assert renamed.balance == Decimal("7.50")

    async def test_delete_refused_while_slot_is_held(
        self, user_admin_service, slot_request_service, parking_slot_service, admin_user, regular_user, vehicle, slot
    ):
        slot_request = await slot_request_service.create_request(regular_user.id, vehicle.id, slot.id, 2)
        await slot_request_service.resolve_request(admin_user.id, slot_request.id, "APPROVED")

        with pytest.raises(ValidationError) as exc_info:
            await user_admin_service.delete_user(admin_user.id, regular_user.id)
        assert "approved slot request" in str(exc_info.value)

        assert (await user_admin_service.get_user(regular_user.id)).id == regular_user.id
        held = await parking_slot_service.get_slot(slot.id)
        assert held.status.value == "UNAVAILABLE"

    async def test_delete_allowed_with_pending_request(
        self, user_admin_service, slot_request_service, admin_user, regular_user, vehicle, slot
    ):
        await slot_request_service.create_request(regular_user.id, vehicle.id, slot.id, 2)
        await user_admin_service.delete_user(admin_user.id, regular_user.id)
        with pytest.raises(NotFoundError):
            await user_admin_service.get_user(regular_user.id)
