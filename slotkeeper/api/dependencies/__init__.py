from ...database import get_db
from .auth import get_actor, require_reaper_secret
from .services import (
    get_availability_service,
    get_checkout_client,
    get_clock,
    get_credit_service,
    get_hold_reaper_service,
    get_package_service,
    get_payment_reconciliation_service,
    get_reservation_service,
    get_schedule_service,
)

__all__ = [
    "get_actor",
    "get_availability_service",
    "get_checkout_client",
    "get_clock",
    "get_credit_service",
    "get_db",
    "get_hold_reaper_service",
    "get_package_service",
    "get_payment_reconciliation_service",
    "get_reservation_service",
    "get_schedule_service",
    "require_reaper_secret",
]
