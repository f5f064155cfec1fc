# slotkeeper/api/dependencies/services.py
"""
Service layer dependencies for dependency injection.

This module provides factory functions that create service instances
with their required dependencies properly injected.
"""

import logging
from typing import Optional

from fastapi import Depends
from sqlalchemy.orm import Session

from ...core.clock import Clock, system_clock
from ...core.config import settings
from ...database import get_db
from ...integrations.checkout_client import CheckoutClient
from ...services.availability_service import AvailabilityService
from ...services.credit_service import CreditService
from ...services.hold_reaper_service import HoldReaperService
from ...services.package_service import PackageService
from ...services.payment_reconciliation_service import PaymentReconciliationService
from ...services.reservation_service import ReservationService
from ...services.schedule_service import ScheduleService

logger = logging.getLogger(__name__)


def get_clock() -> Clock:
    return system_clock


def get_checkout_client() -> Optional[CheckoutClient]:
    """Checkout client, or None when the provider is not configured."""
    api_key = settings.checkout_api_key.get_secret_value()
    if not api_key:
        return None
    return CheckoutClient(
        api_key=api_key,
        base_url=settings.checkout_api_url,
        timeout=settings.checkout_timeout_seconds,
    )


def get_availability_service(
    db: Session = Depends(get_db), clock: Clock = Depends(get_clock)
) -> AvailabilityService:
    return AvailabilityService(db, clock)


def get_reservation_service(
    db: Session = Depends(get_db), clock: Clock = Depends(get_clock)
) -> ReservationService:
    return ReservationService(db, clock)


def get_payment_reconciliation_service(
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
    checkout_client: Optional[CheckoutClient] = Depends(get_checkout_client),
) -> PaymentReconciliationService:
    return PaymentReconciliationService(db, clock, checkout_client=checkout_client)


def get_hold_reaper_service(
    db: Session = Depends(get_db), clock: Clock = Depends(get_clock)
) -> HoldReaperService:
    return HoldReaperService(db, clock)


def get_credit_service(
    db: Session = Depends(get_db), clock: Clock = Depends(get_clock)
) -> CreditService:
    return CreditService(db, clock)


def get_package_service(
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
    checkout_client: Optional[CheckoutClient] = Depends(get_checkout_client),
) -> PackageService:
    return PackageService(db, clock, checkout_client=checkout_client)


def get_schedule_service(
    db: Session = Depends(get_db), clock: Clock = Depends(get_clock)
) -> ScheduleService:
    return ScheduleService(db, clock)
