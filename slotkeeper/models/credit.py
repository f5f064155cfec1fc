# slotkeeper/models/credit.py
"""
Prepaid credits.

Customers buy credit packages through the checkout rail and spend one credit
per reservation of the matching credit type.
"""

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    Numeric,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship

from ..core.enums import PaymentStatus
from ..core.ulid_helper import generate_ulid
from ..database import Base


class CreditBalance(Base):
    """Remaining credits of one customer for one credit type."""

    __tablename__ = "credit_balances"

    id = Column(String(26), primary_key=True, default=generate_ulid)
    customer_id = Column(String(26), nullable=False, index=True)
    credit_type = Column(String(50), nullable=False)
    credits_remaining = Column(Integer, nullable=False, default=0)
    credits_total = Column(Integer, nullable=False, default=0)
    updated_at = Column(DateTime(timezone=True), nullable=True)

    __table_args__ = (
        UniqueConstraint("customer_id", "credit_type", name="uq_credit_balances_customer_type"),
        CheckConstraint("credits_remaining >= 0", name="ck_credit_balances_non_negative"),
    )

    def __repr__(self) -> str:
        return f"<CreditBalance {self.customer_id}:{self.credit_type}={self.credits_remaining}>"


class CreditPackage(Base):
    """Catalog entry: a bundle of credits sold for a fixed price."""

    __tablename__ = "credit_packages"

    id = Column(String(26), primary_key=True, default=generate_ulid)
    name = Column(String(255), nullable=False)
    credit_type = Column(String(50), nullable=False)
    credits = Column(Integer, nullable=False)
    price = Column(Numeric(10, 2), nullable=False)
    currency = Column(String(3), nullable=False, default="SEK")
    is_active = Column(Boolean, nullable=False, default=True)

    __table_args__ = (CheckConstraint("credits > 0", name="ck_credit_packages_credits"),)


class PackagePurchase(Base):
    """A customer's purchase of a credit package, paid through checkout."""

    __tablename__ = "package_purchases"

    id = Column(String(26), primary_key=True, index=True, default=generate_ulid)
    customer_id = Column(String(26), nullable=False, index=True)
    package_id = Column(String(26), ForeignKey("credit_packages.id"), nullable=False)
    credit_type = Column(String(50), nullable=False)
    credits = Column(Integer, nullable=False)
    amount = Column(Numeric(10, 2), nullable=False)
    currency = Column(String(3), nullable=False, default="SEK")
    payment_status = Column(String(40), nullable=False, default=PaymentStatus.UNPAID.value)
    checkout_order_id = Column(String(255), nullable=True, unique=True)
    created_at = Column(DateTime(timezone=True), nullable=False)
    paid_at = Column(DateTime(timezone=True), nullable=True)
    updated_at = Column(DateTime(timezone=True), nullable=True)

    package = relationship("CreditPackage")
    invoice = relationship("Invoice", back_populates="package_purchase", uselist=False)

    @property
    def merchant_reference(self) -> str:
        return f"package_{self.id}"
