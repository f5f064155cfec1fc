# slotkeeper/core/enums.py
"""
Enumerations for roles, capabilities and reservation/payment states.

Values are persisted as plain strings, so members are ``str`` subclasses.
"""

from enum import Enum


class RoleName(str, Enum):
    """Caller roles as supplied by the identity layer."""

    ADMIN = "admin"
    TEACHER = "teacher"
    STUDENT = "student"
    GUEST = "guest"


class PermissionName(str, Enum):
    """Capabilities checked by the service layer."""

    VIEW_AVAILABILITY = "view_availability"
    CREATE_RESERVATION = "create_reservation"
    VIEW_RESERVATION = "view_reservation"
    CANCEL_OWN_RESERVATION = "cancel_own_reservation"
    REPORT_MANUAL_PAYMENT = "report_manual_payment"
    START_CHECKOUT = "start_checkout"
    PAY_WITH_CREDITS = "pay_with_credits"
    PURCHASE_PACKAGE = "purchase_package"

    CONFIRM_PAYMENT = "confirm_payment"
    DECLINE_PAYMENT = "decline_payment"
    MOVE_RESERVATION = "move_reservation"
    CANCEL_ANY_RESERVATION = "cancel_any_reservation"
    COMPLETE_RESERVATION = "complete_reservation"
    UNBOOK_RESERVATION = "unbook_reservation"
    MANAGE_SCHEDULE = "manage_schedule"
    MANAGE_CREDITS = "manage_credits"


class ReservationStatus(str, Enum):
    """Reservation lifecycle states."""

    TEMP = "temp"  # created, no payment rail chosen yet
    ON_HOLD = "on_hold"  # redirected to the checkout provider
    CONFIRMED = "confirmed"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


HOLD_STATUSES = (ReservationStatus.TEMP.value, ReservationStatus.ON_HOLD.value)


class PaymentStatus(str, Enum):
    """Payment state of a reservation or package purchase."""

    UNPAID = "unpaid"
    PENDING_ADMIN_CONFIRMATION = "pending_admin_confirmation"
    PAID = "paid"
    FAILED = "failed"
    CANCELLED = "cancelled"


TERMINAL_PAYMENT_STATUSES = (
    PaymentStatus.PAID.value,
    PaymentStatus.FAILED.value,
    PaymentStatus.CANCELLED.value,
)


class PaymentMethod(str, Enum):
    MANUAL = "manual"
    CHECKOUT = "checkout"
    CREDITS = "credits"


class InvoiceStatus(str, Enum):
    PENDING = "pending"
    PAID = "paid"
    FAILED = "failed"
    CANCELLED = "cancelled"


class SignalSource(str, Enum):
    """Where a payment signal came from."""

    MANUAL = "manual"
    WEBHOOK = "webhook"
    POLL = "poll"
    CREDIT = "credit"
