# slotkeeper/core/permissions.py
"""
Role based capability gate.

Authentication happens upstream; callers reach the services as an ``Actor``
carrying the role the identity layer resolved. Every mutating operation
checks its capability here before touching state.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, FrozenSet, Optional

from .enums import PermissionName, RoleName
from .exceptions import ForbiddenException

_CUSTOMER_BASE = frozenset(
    {
        PermissionName.VIEW_AVAILABILITY,
        PermissionName.CREATE_RESERVATION,
        PermissionName.VIEW_RESERVATION,
        PermissionName.REPORT_MANUAL_PAYMENT,
        PermissionName.START_CHECKOUT,
    }
)

ROLE_PERMISSIONS: Dict[RoleName, FrozenSet[PermissionName]] = {
    RoleName.GUEST: _CUSTOMER_BASE,
    RoleName.STUDENT: _CUSTOMER_BASE
    | {
        PermissionName.CANCEL_OWN_RESERVATION,
        PermissionName.PAY_WITH_CREDITS,
        PermissionName.PURCHASE_PACKAGE,
    },
    RoleName.TEACHER: frozenset(
        {
            PermissionName.VIEW_AVAILABILITY,
            PermissionName.VIEW_RESERVATION,
            PermissionName.COMPLETE_RESERVATION,
            PermissionName.UNBOOK_RESERVATION,
        }
    ),
    RoleName.ADMIN: frozenset(PermissionName),
}


@dataclass(frozen=True)
class Actor:
    """The caller of a service operation."""

    role: RoleName
    user_id: Optional[str] = None

    @classmethod
    def guest(cls) -> "Actor":
        return cls(role=RoleName.GUEST)

    @classmethod
    def system(cls) -> "Actor":
        """Actor used by scheduled jobs."""
        return cls(role=RoleName.ADMIN, user_id=None)

    @property
    def is_admin(self) -> bool:
        return self.role == RoleName.ADMIN

    def has_permission(self, permission: PermissionName) -> bool:
        return permission in ROLE_PERMISSIONS.get(self.role, frozenset())


def ensure_permission(actor: Actor, permission: PermissionName) -> None:
    """Raise ForbiddenException unless ``actor`` holds ``permission``."""
    if not actor.has_permission(permission):
        raise ForbiddenException(
            f"Role '{actor.role.value}' is not allowed to {permission.value.replace('_', ' ')}",
            code="PERMISSION_DENIED",
            details={"role": actor.role.value, "permission": permission.value},
        )


def ensure_owner(actor: Actor, owner_id: Optional[str]) -> None:
    """
    Customers may only act on their own reservations.

    Guest reservations have no owner and are addressed by their unguessable id.
    Admins and teachers are not owner-restricted.
    """
    if actor.role in (RoleName.ADMIN, RoleName.TEACHER) or owner_id is None:
        return
    if actor.user_id != owner_id:
        raise ForbiddenException(
            "You can only act on your own reservations",
            code="NOT_RESERVATION_OWNER",
        )
