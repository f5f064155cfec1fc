# slotkeeper/services/invoice_service.py
"""
Invoice numbering and linkage.

Invoice numbers look like ``INV-202501-1000``: prefix, issue month and a
counter value that never repeats. The counter is global, not per month.

Every method here runs inside the caller's transaction; none of them commit.
Invoice status is only changed together with the linked payment status.
"""

from datetime import datetime, timedelta
from typing import Optional

from sqlalchemy.orm import Session

from ..core.clock import Clock
from ..core.config import settings
from ..core.enums import InvoiceStatus
from ..models.credit import PackagePurchase
from ..models.invoice import Invoice
from ..models.reservation import Reservation
from ..monitoring.prometheus_metrics import prometheus_metrics
from ..repositories.invoice_repository import InvoiceRepository
from .base import BaseService


def format_invoice_number(sequence_value: int, issued_at: datetime, prefix: str = "INV") -> str:
    return f"{prefix}-{issued_at:%Y%m}-{sequence_value:04d}"


class InvoiceService(BaseService):
    def __init__(
        self,
        db: Session,
        clock: Optional[Clock] = None,
        invoice_repository: Optional[InvoiceRepository] = None,
    ):
        super().__init__(db, clock)
        self.repository = invoice_repository or InvoiceRepository(db)

    def next_invoice_number(self, issued_at: Optional[datetime] = None) -> str:
        value = self.repository.next_sequence_value()
        return format_invoice_number(value, issued_at or self.now(), settings.invoice_prefix)

    def issue_for_reservation(self, reservation: Reservation) -> Invoice:
        issued_at = self.now()
        invoice = self.repository.create(
            invoice_number=self.next_invoice_number(issued_at),
            reservation_id=reservation.id,
            customer_id=reservation.customer_id,
            customer_email=reservation.guest_email,
            description=(
                f"Reservation {reservation.booking_date.isoformat()} "
                f"{reservation.start_time:%H:%M}-{reservation.end_time:%H:%M}"
            ),
            amount=reservation.amount,
            currency=reservation.currency,
            status=InvoiceStatus.PENDING.value,
            payment_method=reservation.payment_method,
            issued_at=issued_at,
            due_date=(issued_at + timedelta(days=settings.invoice_due_days)).date(),
        )
        prometheus_metrics.inc_invoice_issued("reservation")
        self.logger.info(
            "Issued invoice %s for reservation %s", invoice.invoice_number, reservation.id
        )
        return invoice

    def issue_for_package_purchase(self, purchase: PackagePurchase, description: str) -> Invoice:
        issued_at = self.now()
        invoice = self.repository.create(
            invoice_number=self.next_invoice_number(issued_at),
            package_purchase_id=purchase.id,
            customer_id=purchase.customer_id,
            description=description,
            amount=purchase.amount,
            currency=purchase.currency,
            status=InvoiceStatus.PENDING.value,
            payment_method="checkout",
            issued_at=issued_at,
            due_date=(issued_at + timedelta(days=settings.invoice_due_days)).date(),
        )
        prometheus_metrics.inc_invoice_issued("package")
        return invoice

    def lock_for_reservation(self, reservation_id: str) -> Optional[Invoice]:
        return self.repository.get_by_reservation_id(reservation_id, for_update=True)

    def lock_for_package_purchase(self, purchase_id: str) -> Optional[Invoice]:
        return self.repository.get_by_package_purchase_id(purchase_id, for_update=True)

    def mark_paid(self, invoice: Optional[Invoice], payment_method: str) -> None:
        if invoice is None or invoice.status == InvoiceStatus.PAID.value:
            return
        now = self.now()
        self.repository.update(
            invoice,
            status=InvoiceStatus.PAID.value,
            payment_method=payment_method,
            paid_at=now,
            updated_at=now,
        )

    def mark_failed(self, invoice: Optional[Invoice]) -> None:
        self._close(invoice, InvoiceStatus.FAILED)

    def mark_cancelled(self, invoice: Optional[Invoice]) -> None:
        self._close(invoice, InvoiceStatus.CANCELLED)

    def _close(self, invoice: Optional[Invoice], status: InvoiceStatus) -> None:
        # A paid invoice stays paid; only pending ones can be closed.
        if invoice is None or invoice.status != InvoiceStatus.PENDING.value:
            return
        self.repository.update(invoice, status=status.value, updated_at=self.now())
