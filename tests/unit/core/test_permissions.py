import pytest

from slotkeeper.core.enums import PermissionName, RoleName
from slotkeeper.core.exceptions import ForbiddenException
from slotkeeper.core.permissions import Actor, ensure_owner, ensure_permission


class TestRolePermissions:
    def test_admin_holds_every_permission(self):
        admin = Actor(role=RoleName.ADMIN, user_id="a")
        assert all(admin.has_permission(permission) for permission in PermissionName)

    def test_guest_can_book_and_pay_but_not_use_credits(self):
        guest = Actor.guest()
        assert guest.has_permission(PermissionName.CREATE_RESERVATION)
        assert guest.has_permission(PermissionName.START_CHECKOUT)
        assert not guest.has_permission(PermissionName.PAY_WITH_CREDITS)
        assert not guest.has_permission(PermissionName.CONFIRM_PAYMENT)

    def test_teacher_can_unbook_but_not_confirm(self):
        teacher = Actor(role=RoleName.TEACHER, user_id="t")
        assert teacher.has_permission(PermissionName.UNBOOK_RESERVATION)
        assert not teacher.has_permission(PermissionName.CONFIRM_PAYMENT)
        assert not teacher.has_permission(PermissionName.MOVE_RESERVATION)

    def test_ensure_permission_raises_forbidden(self):
        with pytest.raises(ForbiddenException) as exc:
            ensure_permission(Actor.guest(), PermissionName.CONFIRM_PAYMENT)
        assert exc.value.code == "PERMISSION_DENIED"
        assert exc.value.to_http_exception().status_code == 403

    def test_system_actor_is_admin(self):
        assert Actor.system().is_admin


class TestOwnership:
    def test_owner_passes(self):
        ensure_owner(Actor(role=RoleName.STUDENT, user_id="s1"), "s1")

    def test_other_customer_is_rejected(self):
        with pytest.raises(ForbiddenException) as exc:
            ensure_owner(Actor(role=RoleName.STUDENT, user_id="s2"), "s1")
        assert exc.value.code == "NOT_RESERVATION_OWNER"

    def test_staff_and_guest_reservations_are_not_owner_restricted(self):
        ensure_owner(Actor(role=RoleName.ADMIN, user_id="a"), "s1")
        ensure_owner(Actor(role=RoleName.TEACHER, user_id="t"), "s1")
        ensure_owner(Actor.guest(), None)
