# slotkeeper/models/reservation.py
"""
Reservation model.

A reservation holds a half-open time range on one resource and date. Rows are
never hard-deleted once a payment was attempted; cancellation is a status.
"""

from sqlalchemy import (
    CheckConstraint,
    Column,
    Date,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Text,
    Time,
    text,
)
from sqlalchemy.orm import relationship

from ..core.enums import PaymentStatus, ReservationStatus
from ..core.ulid_helper import generate_ulid
from ..database import Base

_LIVE_ROW = text("status <> 'cancelled' AND deleted_at IS NULL")


class Reservation(Base):
    __tablename__ = "reservations"

    id = Column(String(26), primary_key=True, index=True, default=generate_ulid)
    resource_id = Column(String(26), ForeignKey("resources.id"), nullable=False)

    # Customer (null for guest checkouts)
    customer_id = Column(String(26), nullable=True, index=True)
    guest_name = Column(String(255), nullable=True)
    guest_email = Column(String(255), nullable=True)
    guest_phone = Column(String(50), nullable=True)

    booking_date = Column(Date, nullable=False, index=True)
    start_time = Column(Time, nullable=False)
    end_time = Column(Time, nullable=False)
    duration_minutes = Column(Integer, nullable=False)
    participant_count = Column(Integer, nullable=False, default=1)
    credit_type = Column(String(50), nullable=False, default="lesson")

    amount = Column(Numeric(10, 2), nullable=False)
    currency = Column(String(3), nullable=False, default="SEK")

    status = Column(String(20), nullable=False, default=ReservationStatus.TEMP.value, index=True)
    payment_status = Column(
        String(40), nullable=False, default=PaymentStatus.UNPAID.value, index=True
    )
    payment_method = Column(String(20), nullable=True)
    checkout_order_id = Column(String(255), nullable=True, unique=True)

    created_at = Column(DateTime(timezone=True), nullable=False)
    updated_at = Column(DateTime(timezone=True), nullable=True)
    confirmed_at = Column(DateTime(timezone=True), nullable=True)
    paid_at = Column(DateTime(timezone=True), nullable=True)
    completed_at = Column(DateTime(timezone=True), nullable=True)
    cancelled_at = Column(DateTime(timezone=True), nullable=True)
    cancellation_reason = Column(Text, nullable=True)
    deleted_at = Column(DateTime(timezone=True), nullable=True)
    audit_notes = Column(Text, nullable=True)

    resource = relationship("Resource")
    invoice = relationship("Invoice", back_populates="reservation", uselist=False)

    __table_args__ = (
        CheckConstraint("start_time < end_time", name="ck_reservations_time_order"),
        CheckConstraint("duration_minutes > 0", name="ck_reservations_duration"),
        CheckConstraint("participant_count >= 1", name="ck_reservations_participants"),
        # Backstop against a concurrent double booking of the same start.
        Index(
            "uq_reservations_live_slot",
            "resource_id",
            "booking_date",
            "start_time",
            unique=True,
            postgresql_where=_LIVE_ROW,
            sqlite_where=_LIVE_ROW,
        ),
        Index("ix_reservations_resource_date", "resource_id", "booking_date"),
        Index("ix_reservations_status_created", "status", "created_at"),
    )

    def append_audit_note(self, note: str) -> None:
        self.audit_notes = f"{self.audit_notes}\n{note}" if self.audit_notes else note

    @property
    def is_cancelled(self) -> bool:
        return self.status == ReservationStatus.CANCELLED.value

    @property
    def merchant_reference(self) -> str:
        return f"booking_{self.id}"

    def __repr__(self) -> str:
        return (
            f"<Reservation {self.id} {self.booking_date} {self.start_time}-{self.end_time} "
            f"{self.status}/{self.payment_status}>"
        )
