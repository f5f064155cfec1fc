# slotkeeper/services/payment_reconciliation_service.py
"""
Payment reconciliation across the three rails.

    manual:   customer report -> pending_admin_confirmation -> admin confirm/decline
    checkout: provider order -> webhook or poll -> apply_provider_status
    credits:  debit one credit -> paid

Payment status only moves forward: ``paid`` is never regressed and
``failed``/``cancelled`` are terminal. Webhooks and polls both become a
``PaymentSignal`` and go through the same apply path, so replays converge on
the same state. Invoice status is written in the same transaction as the
payment status it mirrors.
"""

from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from enum import Enum
import json
from typing import Any, Dict, Optional, Union

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..core.clock import Clock
from ..core.config import settings
from ..core.enums import (
    HOLD_STATUSES,
    InvoiceStatus,
    PaymentMethod,
    PaymentStatus,
    PermissionName,
    ReservationStatus,
    SignalSource,
)
from ..core.exceptions import (
    BusinessRuleException,
    InvalidSignatureException,
    InvalidStateTransitionException,
    RepositoryException,
    ServiceException,
    ValidationException,
)
from ..core.permissions import Actor, ensure_owner, ensure_permission
from ..integrations.checkout_client import CheckoutClient, CheckoutProviderError, verify_signature
from ..models.credit import PackagePurchase
from ..models.reservation import Reservation
from ..models.webhook_event import WebhookEvent
from ..monitoring.prometheus_metrics import prometheus_metrics
from ..repositories.credit_repository import PackagePurchaseRepository
from ..repositories.webhook_event_repository import WebhookEventRepository
from .base import BaseService
from .reservation_service import ReservationService

WEBHOOK_SOURCE = "checkout"

PAID_PROVIDER_STATUSES = frozenset({"paid", "completed"})
FAILED_PROVIDER_STATUSES = frozenset({"declined", "error"})


class ReconciliationOutcome(str, Enum):
    APPLIED = "applied"
    ALREADY_APPLIED = "already_applied"
    IGNORED = "ignored"


@dataclass(frozen=True)
class PaymentSignal:
    """A claim, from any rail, about the payment state of one order."""

    source: SignalSource
    external_reference: str
    reported_status: str
    reported_amount: Optional[Decimal] = None
    merchant_reference: Optional[str] = None
    auth_proof: Optional[str] = None


@dataclass
class ReconciliationResult:
    outcome: ReconciliationOutcome
    subject_type: Optional[str] = None
    subject_id: Optional[str] = None
    payment_status: Optional[str] = None
    reason: Optional[str] = None


@dataclass
class CheckoutSession:
    reservation_id: str
    order_id: str
    payment_url: Optional[str]


def map_provider_status(reported_status: str) -> Optional[PaymentStatus]:
    """Translate a provider status; None means "no change"."""
    normalized = (reported_status or "").strip().lower()
    if normalized in PAID_PROVIDER_STATUSES:
        return PaymentStatus.PAID
    if normalized in FAILED_PROVIDER_STATUSES:
        return PaymentStatus.FAILED
    return None


def _parse_amount(value: Any) -> Optional[Decimal]:
    if value is None or value == "":
        return None
    try:
        return Decimal(str(value))
    except InvalidOperation:
        return None


class HoldExpiredException(BusinessRuleException):
    """Raised when checkout is started for a hold that has already timed out."""

    def __init__(self, reservation_id: str):
        super().__init__(
            message="This reservation hold has expired, please book the slot again",
            code="HOLD_EXPIRED",
            details={"reservation_id": reservation_id},
        )


class PaymentReconciliationService(BaseService):
    def __init__(
        self,
        db: Session,
        clock: Optional[Clock] = None,
        reservation_service: Optional[ReservationService] = None,
        checkout_client: Optional[CheckoutClient] = None,
        webhook_secret: Optional[str] = None,
    ):
        super().__init__(db, clock)
        self.reservations = reservation_service or ReservationService(db, self.clock)
        self.invoices = self.reservations.invoices
        self.credits = self.reservations.credits
        self.hold_policy = self.reservations.hold_policy
        self.checkout_client = checkout_client
        self._webhook_secret = (
            webhook_secret
            if webhook_secret is not None
            else settings.checkout_webhook_secret.get_secret_value()
        )
        self.purchase_repository = PackagePurchaseRepository(db)
        self.webhook_repository = WebhookEventRepository(db)

    # Manual rail

    @BaseService.measure_operation("report_manual_payment")
    def report_manual_payment(self, actor: Actor, reservation_id: str) -> ReconciliationResult:
        """Customer says "I have paid": hold the slot until an admin checks."""
        ensure_permission(actor, PermissionName.REPORT_MANUAL_PAYMENT)
        with self.transaction():
            reservation = self.reservations.lock_reservation(reservation_id)
            ensure_owner(actor, reservation.customer_id)
            if reservation.payment_status in (
                PaymentStatus.PENDING_ADMIN_CONFIRMATION.value,
                PaymentStatus.PAID.value,
            ):
                return self._finish(
                    SignalSource.MANUAL, reservation, ReconciliationOutcome.ALREADY_APPLIED
                )
            self._ensure_open_hold(reservation, "report payment for")
            if self.hold_policy.is_expired(reservation, self.now()):
                self.reservations.ensure_slot_still_free(reservation)

            now = self.now()
            reservation.append_audit_note(f"{now.isoformat()} customer reported manual payment")
            self.reservations.repository.update(
                reservation,
                status=ReservationStatus.CONFIRMED.value,
                payment_status=PaymentStatus.PENDING_ADMIN_CONFIRMATION.value,
                payment_method=PaymentMethod.MANUAL.value,
                confirmed_at=now,
                updated_at=now,
            )
            invoice = self.invoices.lock_for_reservation(reservation.id)
            if invoice is not None:
                self.invoices.repository.update(invoice, payment_method=PaymentMethod.MANUAL.value)

        self.log_operation("report_manual_payment", reservation_id=reservation.id)
        return self._finish(SignalSource.MANUAL, reservation, ReconciliationOutcome.APPLIED)

    @BaseService.measure_operation("confirm_payment")
    def confirm_payment(self, actor: Actor, reservation_id: str) -> ReconciliationResult:
        """Admin confirms money arrived (manual/cash). Allowed from unpaid or pending."""
        ensure_permission(actor, PermissionName.CONFIRM_PAYMENT)
        with self.transaction():
            reservation = self.reservations.lock_reservation(reservation_id)
            if reservation.payment_status == PaymentStatus.PAID.value:
                return self._finish(
                    SignalSource.MANUAL, reservation, ReconciliationOutcome.ALREADY_APPLIED
                )
            if reservation.is_cancelled or reservation.payment_status in (
                PaymentStatus.FAILED.value,
                PaymentStatus.CANCELLED.value,
            ):
                raise InvalidStateTransitionException(
                    "payment", reservation.payment_status, "confirm"
                )
            self._mark_reservation_paid(
                reservation, reservation.payment_method or PaymentMethod.MANUAL.value
            )
            reservation.append_audit_note(
                f"{self.now().isoformat()} payment confirmed by {actor.user_id or 'admin'}"
            )

        self.reservations.notifier.payment_confirmed(reservation)
        self.log_operation(
            "confirm_payment", reservation_id=reservation.id, confirmed_by=actor.user_id
        )
        return self._finish(SignalSource.MANUAL, reservation, ReconciliationOutcome.APPLIED)

    @BaseService.measure_operation("decline_payment")
    def decline_payment(
        self, actor: Actor, reservation_id: str, reason: Optional[str] = None
    ) -> ReconciliationResult:
        """Admin rejects a reported payment. The reservation is cancelled; no credit is issued."""
        ensure_permission(actor, PermissionName.DECLINE_PAYMENT)
        with self.transaction():
            reservation = self.reservations.lock_reservation(reservation_id)
            if reservation.payment_status == PaymentStatus.FAILED.value:
                return self._finish(
                    SignalSource.MANUAL, reservation, ReconciliationOutcome.ALREADY_APPLIED
                )
            if reservation.payment_status in (
                PaymentStatus.PAID.value,
                PaymentStatus.CANCELLED.value,
            ):
                raise InvalidStateTransitionException(
                    "payment", reservation.payment_status, "decline"
                )
            self._mark_reservation_failed(reservation, reason or "payment declined by admin")

        self.log_operation("decline_payment", reservation_id=reservation.id, reason=reason)
        return self._finish(SignalSource.MANUAL, reservation, ReconciliationOutcome.APPLIED)

    # Credit rail

    @BaseService.measure_operation("pay_with_credits")
    def pay_with_credits(self, actor: Actor, reservation_id: str) -> ReconciliationResult:
        """
        Spend one credit of the reservation's credit type.

        Raises:
            InsufficientCreditsException: balance below one; nothing is changed
            SlotNoLongerAvailableException: the hold expired and the slot was retaken
        """
        ensure_permission(actor, PermissionName.PAY_WITH_CREDITS)
        if actor.user_id is None:
            raise ValidationException("Paying with credits requires a customer account")

        with self.transaction():
            reservation = self.reservations.lock_reservation(reservation_id)
            if reservation.customer_id is None:
                raise ValidationException("Guest reservations cannot be paid with credits")
            ensure_owner(actor, reservation.customer_id)
            if (
                reservation.payment_status == PaymentStatus.PAID.value
                and reservation.payment_method == PaymentMethod.CREDITS.value
            ):
                return self._finish(
                    SignalSource.CREDIT, reservation, ReconciliationOutcome.ALREADY_APPLIED
                )
            self._ensure_open_hold(reservation, "pay with credits for")
            if self.hold_policy.is_expired(reservation, self.now()):
                self.reservations.ensure_slot_still_free(reservation)

            self.credits.debit_one(reservation.customer_id, reservation.credit_type)
            self._mark_reservation_paid(reservation, PaymentMethod.CREDITS.value)

        self.reservations.notifier.payment_confirmed(reservation)
        self.log_operation(
            "pay_with_credits", reservation_id=reservation.id, credit_type=reservation.credit_type
        )
        return self._finish(SignalSource.CREDIT, reservation, ReconciliationOutcome.APPLIED)

    # Checkout rail

    @BaseService.measure_operation("start_checkout")
    def start_checkout(self, actor: Actor, reservation_id: str) -> CheckoutSession:
        """Create a provider order and move the reservation to ``on_hold``."""
        ensure_permission(actor, PermissionName.START_CHECKOUT)
        client = self._require_client()

        reservation = self.reservations.get_reservation(reservation_id)
        ensure_owner(actor, reservation.customer_id)
        self._ensure_open_hold(reservation, "start checkout for")
        if self.hold_policy.is_expired(reservation, self.now()):
            raise HoldExpiredException(reservation.id)

        # Provider call happens outside any transaction.
        try:
            order = client.create_order(
                merchant_reference=reservation.merchant_reference,
                amount=reservation.amount,
                currency=reservation.currency,
                description=(
                    f"Reservation {reservation.booking_date.isoformat()} "
                    f"{reservation.start_time:%H:%M}"
                ),
                return_url=settings.checkout_return_url,
                customer_email=reservation.guest_email,
            )
        except CheckoutProviderError as exc:
            raise ServiceException(
                "The payment provider could not create an order",
                code="CHECKOUT_PROVIDER_ERROR",
                details={"status_code": exc.status_code},
            ) from exc

        order_id = str(order.get("OrderId") or "")
        if not order_id:
            raise ServiceException(
                "The payment provider returned no order id", code="CHECKOUT_PROVIDER_ERROR"
            )

        with self.transaction():
            reservation = self.reservations.lock_reservation(reservation_id)
            self._ensure_open_hold(reservation, "start checkout for")
            now = self.now()
            reservation.append_audit_note(f"{now.isoformat()} checkout order {order_id} created")
            self.reservations.repository.update(
                reservation,
                status=ReservationStatus.ON_HOLD.value,
                payment_method=PaymentMethod.CHECKOUT.value,
                checkout_order_id=order_id,
                updated_at=now,
            )
            invoice = self.invoices.lock_for_reservation(reservation.id)
            if invoice is not None:
                self.invoices.repository.update(
                    invoice, payment_method=PaymentMethod.CHECKOUT.value
                )

        self.log_operation("start_checkout", reservation_id=reservation.id, order_id=order_id)
        return CheckoutSession(
            reservation_id=reservation.id,
            order_id=order_id,
            payment_url=order.get("PaymentLink"),
        )

    @BaseService.measure_operation("poll_checkout")
    def poll_checkout(self, actor: Actor, reservation_id: str) -> ReconciliationResult:
        """Ask the provider for the order status and apply it like a webhook."""
        ensure_permission(actor, PermissionName.START_CHECKOUT)
        client = self._require_client()
        reservation = self.reservations.get_reservation(reservation_id)
        ensure_owner(actor, reservation.customer_id)
        if not reservation.checkout_order_id:
            raise ValidationException("No checkout has been started for this reservation")

        try:
            order = client.get_order(reservation.checkout_order_id)
        except CheckoutProviderError as exc:
            raise ServiceException(
                "The payment provider could not be queried",
                code="CHECKOUT_PROVIDER_ERROR",
                details={"status_code": exc.status_code},
            ) from exc

        signal = PaymentSignal(
            source=SignalSource.POLL,
            external_reference=reservation.checkout_order_id,
            reported_status=str(order.get("Status") or ""),
            reported_amount=_parse_amount(order.get("TotalPrice")),
        )
        return self.apply_provider_status(signal)

    @BaseService.measure_operation("apply_provider_status")
    def apply_provider_status(self, signal: PaymentSignal) -> ReconciliationResult:
        """Apply a webhook or poll signal. Safe to call any number of times."""
        with self.transaction():
            result = self._apply_signal(signal)
        return result

    @BaseService.measure_operation("ingest_checkout_webhook")
    def ingest_checkout_webhook(
        self, raw_body: bytes, signature: Optional[str]
    ) -> ReconciliationResult:
        """
        Verify, record and apply one provider delivery.

        Raises:
            InvalidSignatureException: signature missing or wrong
            ValidationException: body is not a JSON object with OrderId and Status
        """
        if not verify_signature(self._webhook_secret, raw_body, signature):
            raise InvalidSignatureException()

        try:
            payload = json.loads(raw_body.decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError) as exc:
            raise ValidationException("Webhook body is not valid JSON") from exc
        if not isinstance(payload, dict):
            raise ValidationException("Webhook body must be a JSON object")

        order_id = payload.get("OrderId")
        status = payload.get("Status")
        if not order_id or not status:
            raise ValidationException("Webhook body needs OrderId and Status")
        order_id = str(order_id)
        event_id = str(payload.get("EventId") or f"{order_id}:{str(status).lower()}")

        signal = PaymentSignal(
            source=SignalSource.WEBHOOK,
            external_reference=order_id,
            reported_status=str(status),
            reported_amount=_parse_amount(payload.get("TotalPrice")),
            merchant_reference=payload.get("MerchantReference"),
            auth_proof=signature,
        )

        try:
            with self.transaction():
                existing = self.webhook_repository.find_by_source_and_event_id(
                    WEBHOOK_SOURCE, event_id
                )
                if existing is not None and existing.status == "processed":
                    return self._duplicate_delivery(existing)
                event = existing or self.webhook_repository.record_received(
                    source=WEBHOOK_SOURCE,
                    event_id=event_id,
                    event_type=str(payload.get("NotificationType") or "order_status"),
                    payload=payload,
                    received_at=self.now(),
                )
                result = self._apply_signal(signal)
                self.webhook_repository.mark_processed(
                    event,
                    outcome=result.outcome.value,
                    processed_at=self.now(),
                    related_entity_type=result.subject_type,
                    related_entity_id=result.subject_id,
                )
        except RepositoryException as exc:
            # A concurrent delivery of the same event committed its ledger row first.
            if not isinstance(exc.__cause__, IntegrityError):
                raise
            winner = self.webhook_repository.find_by_source_and_event_id(WEBHOOK_SOURCE, event_id)
            if winner is None:
                raise
            return self._duplicate_delivery(winner)
        return result

    def _duplicate_delivery(self, event: WebhookEvent) -> ReconciliationResult:
        self.logger.info("Duplicate checkout webhook %s", event.event_id)
        prometheus_metrics.inc_payment_signal(
            SignalSource.WEBHOOK.value, ReconciliationOutcome.ALREADY_APPLIED.value
        )
        return ReconciliationResult(
            outcome=ReconciliationOutcome.ALREADY_APPLIED,
            subject_type=event.related_entity_type,
            subject_id=event.related_entity_id,
        )

    # Internals (run inside an open transaction)

    def _apply_signal(self, signal: PaymentSignal) -> ReconciliationResult:
        target = map_provider_status(signal.reported_status)
        reservation = self.reservations.repository.get_by_checkout_order_id(
            signal.external_reference, for_update=True
        )
        if reservation is None and (signal.merchant_reference or "").startswith("booking_"):
            candidate = self.reservations.repository.get_for_update(
                signal.merchant_reference[len("booking_") :]
            )
            if candidate is not None and candidate.checkout_order_id in (
                None,
                signal.external_reference,
            ):
                reservation = candidate
        if reservation is not None:
            result = self._apply_to_reservation(reservation, signal, target)
        else:
            purchase = self.purchase_repository.get_by_checkout_order_id(
                signal.external_reference, for_update=True
            )
            if purchase is None:
                self.logger.warning(
                    "Payment signal for unknown order %s ignored", signal.external_reference
                )
                result = ReconciliationResult(
                    outcome=ReconciliationOutcome.IGNORED, reason="unknown_order"
                )
            else:
                result = self._apply_to_purchase(purchase, signal, target)

        prometheus_metrics.inc_payment_signal(signal.source.value, result.outcome.value)
        self.logger.info(
            "Payment signal %s for %s: %s",
            signal.reported_status,
            signal.external_reference,
            result.outcome.value,
            extra={
                "source": signal.source.value,
                "order_id": signal.external_reference,
                "outcome": result.outcome.value,
                "reason": result.reason,
            },
        )
        return result

    def _apply_to_reservation(
        self,
        reservation: Reservation,
        signal: PaymentSignal,
        target: Optional[PaymentStatus],
    ) -> ReconciliationResult:
        def result(
            outcome: ReconciliationOutcome, reason: Optional[str] = None
        ) -> ReconciliationResult:
            return ReconciliationResult(
                outcome=outcome,
                subject_type="reservation",
                subject_id=reservation.id,
                payment_status=reservation.payment_status,
                reason=reason,
            )

        current = reservation.payment_status
        if target is None:
            return result(ReconciliationOutcome.IGNORED, "status_without_effect")

        if target == PaymentStatus.PAID:
            if current == PaymentStatus.PAID.value:
                return result(ReconciliationOutcome.ALREADY_APPLIED)
            if current in (PaymentStatus.FAILED.value, PaymentStatus.CANCELLED.value):
                self.logger.warning(
                    "Paid signal for reservation %s in terminal payment state %s",
                    reservation.id,
                    current,
                )
                return result(ReconciliationOutcome.IGNORED, "terminal_payment_state")
            if not self._amount_matches(reservation.amount, signal.reported_amount):
                self.logger.warning(
                    "Amount mismatch for reservation %s: expected %s, provider reported %s",
                    reservation.id,
                    reservation.amount,
                    signal.reported_amount,
                )
                return result(ReconciliationOutcome.IGNORED, "amount_mismatch")
            if reservation.is_cancelled:
                # Money arrived after the hold was released; record it, keep the slot free.
                self.logger.warning(
                    "Late payment for released reservation %s; needs manual follow-up",
                    reservation.id,
                )
                self._record_late_payment(reservation)
                return result(ReconciliationOutcome.APPLIED, "late_payment")
            self._mark_reservation_paid(reservation, PaymentMethod.CHECKOUT.value)
            self.reservations.notifier.payment_confirmed(reservation)
            return result(ReconciliationOutcome.APPLIED)

        if current == PaymentStatus.FAILED.value:
            return result(ReconciliationOutcome.ALREADY_APPLIED)
        if current in (PaymentStatus.PAID.value, PaymentStatus.CANCELLED.value):
            return result(ReconciliationOutcome.IGNORED, "terminal_payment_state")
        self._mark_reservation_failed(reservation, f"checkout {signal.reported_status.lower()}")
        return result(ReconciliationOutcome.APPLIED)

    def _apply_to_purchase(
        self,
        purchase: PackagePurchase,
        signal: PaymentSignal,
        target: Optional[PaymentStatus],
    ) -> ReconciliationResult:
        def result(
            outcome: ReconciliationOutcome, reason: Optional[str] = None
        ) -> ReconciliationResult:
            return ReconciliationResult(
                outcome=outcome,
                subject_type="package_purchase",
                subject_id=purchase.id,
                payment_status=purchase.payment_status,
                reason=reason,
            )

        current = purchase.payment_status
        if target is None:
            return result(ReconciliationOutcome.IGNORED, "status_without_effect")
        if target.value == current:
            return result(ReconciliationOutcome.ALREADY_APPLIED)
        if current in (
            PaymentStatus.PAID.value,
            PaymentStatus.FAILED.value,
            PaymentStatus.CANCELLED.value,
        ):
            return result(ReconciliationOutcome.IGNORED, "terminal_payment_state")

        now = self.now()
        invoice = self.invoices.lock_for_package_purchase(purchase.id)
        if target == PaymentStatus.PAID:
            if not self._amount_matches(purchase.amount, signal.reported_amount):
                self.logger.warning(
                    "Amount mismatch for package purchase %s: expected %s, provider reported %s",
                    purchase.id,
                    purchase.amount,
                    signal.reported_amount,
                )
                return result(ReconciliationOutcome.IGNORED, "amount_mismatch")
            self.purchase_repository.update(
                purchase, payment_status=PaymentStatus.PAID.value, paid_at=now, updated_at=now
            )
            self.credits.add_credits(purchase.customer_id, purchase.credit_type, purchase.credits)
            self.invoices.mark_paid(invoice, PaymentMethod.CHECKOUT.value)
        else:
            self.purchase_repository.update(
                purchase, payment_status=PaymentStatus.FAILED.value, updated_at=now
            )
            self.invoices.mark_failed(invoice)
        return result(ReconciliationOutcome.APPLIED)

    def _mark_reservation_paid(self, reservation: Reservation, method: str) -> None:
        now = self.now()
        updates: Dict[str, Any] = {
            "payment_status": PaymentStatus.PAID.value,
            "payment_method": method,
            "paid_at": now,
            "updated_at": now,
        }
        if reservation.status in HOLD_STATUSES:
            updates["status"] = ReservationStatus.CONFIRMED.value
        if reservation.confirmed_at is None:
            updates["confirmed_at"] = now
        self.reservations.repository.update(reservation, **updates)
        self.invoices.mark_paid(self.invoices.lock_for_reservation(reservation.id), method)

    def _mark_reservation_failed(self, reservation: Reservation, reason: str) -> None:
        now = self.now()
        updates: Dict[str, Any] = {
            "payment_status": PaymentStatus.FAILED.value,
            "updated_at": now,
        }
        if not reservation.is_cancelled:
            updates.update(
                status=ReservationStatus.CANCELLED.value,
                cancelled_at=now,
                cancellation_reason=reason,
            )
        reservation.append_audit_note(f"{now.isoformat()} payment failed: {reason}")
        self.reservations.repository.update(reservation, **updates)
        self.invoices.mark_failed(self.invoices.lock_for_reservation(reservation.id))

    def _record_late_payment(self, reservation: Reservation) -> None:
        now = self.now()
        reservation.append_audit_note(
            f"{now.isoformat()} payment received after the hold was released"
        )
        self.reservations.repository.update(
            reservation,
            payment_status=PaymentStatus.PAID.value,
            payment_method=PaymentMethod.CHECKOUT.value,
            paid_at=now,
            updated_at=now,
        )
        invoice = self.invoices.lock_for_reservation(reservation.id)
        if invoice is not None and invoice.status != InvoiceStatus.PAID.value:
            # The reaper may already have cancelled it; money in means paid.
            self.invoices.repository.update(
                invoice,
                status=InvoiceStatus.PAID.value,
                payment_method=PaymentMethod.CHECKOUT.value,
                paid_at=now,
                updated_at=now,
            )

    def _ensure_open_hold(self, reservation: Reservation, action: str) -> None:
        if (
            reservation.status not in HOLD_STATUSES
            or reservation.payment_status != PaymentStatus.UNPAID.value
        ):
            raise InvalidStateTransitionException(
                "reservation",
                f"{reservation.status}/{reservation.payment_status}",
                action,
            )

    @staticmethod
    def _amount_matches(expected: Union[Decimal, Any], reported: Optional[Decimal]) -> bool:
        if reported is None:
            return True
        if not reported.is_finite():
            return False
        cents = Decimal("0.01")
        try:
            return Decimal(str(expected)).quantize(cents) == reported.quantize(cents)
        except InvalidOperation:
            # Too many digits for the decimal context.
            return False

    def _require_client(self) -> CheckoutClient:
        if self.checkout_client is None:
            raise ServiceException(
                "Checkout payments are not configured", code="CHECKOUT_NOT_CONFIGURED"
            )
        return self.checkout_client

    def _finish(
        self,
        source: SignalSource,
        reservation: Reservation,
        outcome: ReconciliationOutcome,
    ) -> ReconciliationResult:
        prometheus_metrics.inc_payment_signal(source.value, outcome.value)
        return ReconciliationResult(
            outcome=outcome,
            subject_type="reservation",
            subject_id=reservation.id,
            payment_status=reservation.payment_status,
        )
