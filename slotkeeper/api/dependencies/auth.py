# slotkeeper/api/dependencies/auth.py
"""
Caller identity and shared-secret dependencies.

Authentication happens upstream; the identity layer forwards the caller as
``X-User-Id`` / ``X-User-Role`` headers. A request without a role is a guest.
"""

import hmac
import logging
from typing import Optional

from fastapi import Header, HTTPException, status

from ...core.config import settings
from ...core.enums import RoleName
from ...core.permissions import Actor

logger = logging.getLogger(__name__)


def get_actor(
    x_user_id: Optional[str] = Header(default=None),
    x_user_role: Optional[str] = Header(default=None),
) -> Actor:
    if not x_user_role:
        return Actor.guest()
    try:
        role = RoleName(x_user_role.strip().lower())
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={"message": f"Unknown role '{x_user_role}'", "code": "UNKNOWN_ROLE"},
        )
    if role != RoleName.GUEST and not x_user_id:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail={"message": "X-User-Id is required for this role", "code": "MISSING_USER_ID"},
        )
    return Actor(role=role, user_id=x_user_id if role != RoleName.GUEST else None)


def require_reaper_secret(authorization: Optional[str] = Header(default=None)) -> None:
    """Guard for the externally triggered reaper endpoint."""
    secret = settings.reaper_secret.get_secret_value()
    if not secret:
        logger.warning("Reaper endpoint called but REAPER_SECRET is not configured")
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Unauthorized")
    scheme, _, token = (authorization or "").partition(" ")
    if scheme.lower() != "bearer" or not hmac.compare_digest(token.strip(), secret):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Unauthorized")
