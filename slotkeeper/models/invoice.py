# slotkeeper/models/invoice.py
"""Invoices and the counter that numbers them."""

from sqlalchemy import (
    BigInteger,
    CheckConstraint,
    Column,
    Date,
    DateTime,
    ForeignKey,
    Numeric,
    String,
)
from sqlalchemy.orm import relationship

from ..core.enums import InvoiceStatus
from ..core.ulid_helper import generate_ulid
from ..database import Base

INVOICE_SEQUENCE_NAME = "invoice_number_seq"
INVOICE_SEQUENCE_START = 1000


class Invoice(Base):
    """Invoice for exactly one reservation or one package purchase."""

    __tablename__ = "invoices"

    id = Column(String(26), primary_key=True, index=True, default=generate_ulid)
    invoice_number = Column(String(32), nullable=False, unique=True)

    reservation_id = Column(String(26), ForeignKey("reservations.id"), nullable=True, unique=True)
    package_purchase_id = Column(
        String(26), ForeignKey("package_purchases.id"), nullable=True, unique=True
    )
    customer_id = Column(String(26), nullable=True, index=True)
    customer_email = Column(String(255), nullable=True)

    description = Column(String(255), nullable=True)
    amount = Column(Numeric(10, 2), nullable=False)
    currency = Column(String(3), nullable=False, default="SEK")
    status = Column(String(20), nullable=False, default=InvoiceStatus.PENDING.value, index=True)
    payment_method = Column(String(20), nullable=True)

    issued_at = Column(DateTime(timezone=True), nullable=False)
    due_date = Column(Date, nullable=True)
    paid_at = Column(DateTime(timezone=True), nullable=True)
    updated_at = Column(DateTime(timezone=True), nullable=True)

    reservation = relationship("Reservation", back_populates="invoice")
    package_purchase = relationship("PackagePurchase", back_populates="invoice")

    __table_args__ = (
        CheckConstraint(
            "(reservation_id IS NULL) <> (package_purchase_id IS NULL)",
            name="ck_invoices_single_subject",
        ),
    )

    def __repr__(self) -> str:
        return f"<Invoice {self.invoice_number} {self.status}>"


class InvoiceSequence(Base):
    """
    Counter row for dialects without native sequences.

    PostgreSQL uses the ``invoice_number_seq`` sequence instead.
    """

    __tablename__ = "invoice_sequences"

    name = Column(String(64), primary_key=True)
    last_value = Column(BigInteger, nullable=False)
