"""Data access layer."""

from .base_repository import BaseRepository
from .credit_repository import (
    CreditBalanceRepository,
    CreditPackageRepository,
    PackagePurchaseRepository,
)
from .invoice_repository import InvoiceRepository
from .reservation_repository import ReservationRepository
from .resource_repository import ResourceRepository
from .webhook_event_repository import WebhookEventRepository

__all__ = [
    "BaseRepository",
    "CreditBalanceRepository",
    "CreditPackageRepository",
    "InvoiceRepository",
    "PackagePurchaseRepository",
    "ReservationRepository",
    "ResourceRepository",
    "WebhookEventRepository",
]
