# slotkeeper/models/__init__.py
"""
ORM models.

Importing this package registers every table on ``Base.metadata``.
"""

from .credit import CreditBalance, CreditPackage, PackagePurchase
from .invoice import Invoice, InvoiceSequence
from .reservation import Reservation
from .resource import AvailabilityWindow, BlockedRange, ExtraSlot, Resource
from .webhook_event import WebhookEvent

__all__ = [
    "AvailabilityWindow",
    "BlockedRange",
    "CreditBalance",
    "CreditPackage",
    "ExtraSlot",
    "Invoice",
    "InvoiceSequence",
    "PackagePurchase",
    "Reservation",
    "Resource",
    "WebhookEvent",
]
