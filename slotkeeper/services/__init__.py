"""Service layer: business operations and transaction boundaries."""

from .availability_service import AvailabilityService, Slot
from .credit_service import CreditService
from .hold_reaper_service import HoldReaperService
from .invoice_service import InvoiceService, format_invoice_number
from .package_service import PackageService
from .payment_reconciliation_service import (
    PaymentReconciliationService,
    PaymentSignal,
    ReconciliationOutcome,
    ReconciliationResult,
)
from .reservation_service import ReservationService
from .schedule_service import ScheduleService, WindowSpec

__all__ = [
    "AvailabilityService",
    "CreditService",
    "HoldReaperService",
    "InvoiceService",
    "PackageService",
    "PaymentReconciliationService",
    "PaymentSignal",
    "ReconciliationOutcome",
    "ReconciliationResult",
    "ReservationService",
    "ScheduleService",
    "Slot",
    "WindowSpec",
    "format_invoice_number",
]
