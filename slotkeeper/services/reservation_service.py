# slotkeeper/services/reservation_service.py
"""
Reservation lifecycle.

    temp -> on_hold -> confirmed -> completed
    any state before completed -> cancelled (terminal)

Creates and moves take the resource row lock before re-checking conflicts,
so two writers for the same resource never interleave between the check and
the insert. The partial unique index on live reservations turns a lost race
that slips past the lock into SlotNoLongerAvailableException.
"""

from dataclasses import dataclass
from datetime import date, time
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..core.clock import Clock
from ..core.enums import PaymentStatus, PermissionName, ReservationStatus
from ..core.exceptions import (
    DomainException,
    ForbiddenException,
    InvalidStateTransitionException,
    NotFoundException,
    RepositoryException,
    SlotNoLongerAvailableException,
    ValidationException,
)
from ..core.hold_policy import HoldPolicy
from ..core.permissions import Actor, ensure_owner, ensure_permission
from ..core.time_ranges import duration_minutes, format_hhmm, overlaps
from ..models.invoice import Invoice
from ..models.reservation import Reservation
from ..repositories.reservation_repository import ReservationRepository
from ..repositories.resource_repository import ResourceRepository
from .availability_service import AvailabilityService, first_conflict
from .base import BaseService
from .credit_service import CreditService
from .invoice_service import InvoiceService
from .notifications import LoggingNotifier, ReservationNotifier

CANCELLABLE_PAYMENT_STATUSES = (
    PaymentStatus.UNPAID.value,
    PaymentStatus.PENDING_ADMIN_CONFIRMATION.value,
)
UNBOOK_REFUND_CREDITS = 1


@dataclass
class UnbookResult:
    reservation_id: str
    success: bool
    credit_refunded: bool = False
    error: Optional[str] = None


def calculate_amount(hourly_rate: Any, minutes: int) -> Decimal:
    rate = Decimal(str(hourly_rate or 0))
    return (rate * minutes / Decimal(60)).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)


def _is_unique_violation(exc: RepositoryException) -> bool:
    return isinstance(exc.__cause__, IntegrityError)


class ReservationService(BaseService):
    def __init__(
        self,
        db: Session,
        clock: Optional[Clock] = None,
        hold_policy: Optional[HoldPolicy] = None,
        notifier: Optional[ReservationNotifier] = None,
        availability_service: Optional[AvailabilityService] = None,
        invoice_service: Optional[InvoiceService] = None,
        credit_service: Optional[CreditService] = None,
    ):
        super().__init__(db, clock)
        self.availability = availability_service or AvailabilityService(
            db, self.clock, hold_policy=hold_policy
        )
        self.hold_policy = self.availability.hold_policy
        self.invoices = invoice_service or InvoiceService(db, self.clock)
        self.credits = credit_service or CreditService(db, self.clock)
        self.notifier: ReservationNotifier = notifier or LoggingNotifier()
        self.repository = ReservationRepository(db)
        self.resource_repository = ResourceRepository(db)

    # Reads

    def get_reservation(self, reservation_id: str, actor: Optional[Actor] = None) -> Reservation:
        reservation = self.repository.get_by_id(reservation_id)
        if reservation is None or reservation.deleted_at is not None:
            raise NotFoundException(f"Reservation {reservation_id} not found")
        if actor is not None:
            ensure_permission(actor, PermissionName.VIEW_RESERVATION)
            ensure_owner(actor, reservation.customer_id)
        return reservation

    def lock_reservation(self, reservation_id: str) -> Reservation:
        reservation = self.repository.get_for_update(reservation_id)
        if reservation is None or reservation.deleted_at is not None:
            raise NotFoundException(f"Reservation {reservation_id} not found")
        return reservation

    # Create

    @BaseService.measure_operation("create_reservation")
    def create_reservation(
        self,
        actor: Actor,
        *,
        resource_id: str,
        booking_date: date,
        start_time: time,
        end_time: time,
        participant_count: int = 1,
        payment_method: Optional[str] = None,
        credit_type: str = "lesson",
        guest_name: Optional[str] = None,
        guest_email: Optional[str] = None,
        guest_phone: Optional[str] = None,
    ) -> Tuple[Reservation, Invoice]:
        """
        Place a ``temp`` hold on a slot and issue its invoice.

        Raises:
            ValidationException: malformed range, participant count or an
                unpublished time
            NotFoundException: unknown or inactive resource
            SlotNoLongerAvailableException: the range is blocked or taken
        """
        ensure_permission(actor, PermissionName.CREATE_RESERVATION)
        minutes = self._validate_range(start_time, end_time)
        if participant_count < 1:
            raise ValidationException(
                "participant_count must be at least 1",
                details={"participant_count": participant_count},
            )
        if actor.user_id is None and not (guest_name and guest_email):
            raise ValidationException("Guest reservations need a name and an e-mail address")

        with self.transaction():
            resource = self.resource_repository.lock_for_booking(resource_id)
            if resource is None or not resource.is_active:
                raise NotFoundException(f"Resource {resource_id} not found")
            if participant_count > resource.max_participants:
                raise ValidationException(
                    f"At most {resource.max_participants} participants can share this slot",
                    details={
                        "participant_count": participant_count,
                        "max_participants": resource.max_participants,
                    },
                )
            if not self.availability.is_within_published_window(
                resource_id, booking_date, start_time, end_time
            ):
                raise ValidationException(
                    "The requested time is not a published slot",
                    details=self._range_details(booking_date, start_time, end_time),
                )

            self._ensure_slot_free(resource_id, booking_date, start_time, end_time)
            self._release_expired_overlaps(resource_id, booking_date, start_time, end_time)

            now = self.now()
            try:
                reservation = self.repository.create(
                    resource_id=resource_id,
                    customer_id=actor.user_id,
                    guest_name=guest_name,
                    guest_email=guest_email,
                    guest_phone=guest_phone,
                    booking_date=booking_date,
                    start_time=start_time,
                    end_time=end_time,
                    duration_minutes=minutes,
                    participant_count=participant_count,
                    credit_type=credit_type,
                    amount=calculate_amount(resource.hourly_rate, minutes),
                    currency=resource.currency,
                    status=ReservationStatus.TEMP.value,
                    payment_status=PaymentStatus.UNPAID.value,
                    payment_method=payment_method,
                    created_at=now,
                    updated_at=now,
                )
            except RepositoryException as exc:
                if _is_unique_violation(exc):
                    raise SlotNoLongerAvailableException(
                        details=self._range_details(booking_date, start_time, end_time)
                    ) from exc
                raise
            invoice = self.invoices.issue_for_reservation(reservation)

        self.log_operation(
            "create_reservation",
            reservation_id=reservation.id,
            resource_id=resource_id,
            invoice_number=invoice.invoice_number,
        )
        return reservation, invoice

    # Move

    @BaseService.measure_operation("move_reservation")
    def move_reservation(
        self,
        actor: Actor,
        reservation_id: str,
        *,
        new_date: date,
        new_start_time: time,
        new_end_time: time,
    ) -> Reservation:
        """Admin move; published windows are not enforced, conflicts and blocks are."""
        ensure_permission(actor, PermissionName.MOVE_RESERVATION)
        minutes = self._validate_range(new_start_time, new_end_time)

        with self.transaction():
            reservation = self.lock_reservation(reservation_id)
            if reservation.status in (
                ReservationStatus.CANCELLED.value,
                ReservationStatus.COMPLETED.value,
            ):
                raise InvalidStateTransitionException("reservation", reservation.status, "move")
            self.resource_repository.lock_for_booking(reservation.resource_id)
            self._ensure_slot_free(
                reservation.resource_id,
                new_date,
                new_start_time,
                new_end_time,
                exclude_id=reservation.id,
            )
            self._release_expired_overlaps(
                reservation.resource_id, new_date, new_start_time, new_end_time
            )

            previous = {
                "booking_date": reservation.booking_date,
                "start_time": reservation.start_time,
                "end_time": reservation.end_time,
            }
            reservation.append_audit_note(
                f"{self.now().isoformat()} moved from {previous['booking_date']} "
                f"{format_hhmm(previous['start_time'])}-{format_hhmm(previous['end_time'])} "
                f"by {actor.user_id or actor.role.value}"
            )
            try:
                self.repository.update(
                    reservation,
                    booking_date=new_date,
                    start_time=new_start_time,
                    end_time=new_end_time,
                    duration_minutes=minutes,
                    updated_at=self.now(),
                )
            except RepositoryException as exc:
                if _is_unique_violation(exc):
                    raise SlotNoLongerAvailableException(
                        details=self._range_details(new_date, new_start_time, new_end_time)
                    ) from exc
                raise

        self.notifier.reservation_moved(reservation, previous)
        self.log_operation("move_reservation", reservation_id=reservation.id)
        return reservation

    # Cancel / unbook

    @BaseService.measure_operation("cancel_reservation")
    def cancel_reservation(
        self, actor: Actor, reservation_id: str, reason: Optional[str] = None
    ) -> Reservation:
        """
        Cancel a reservation that has not been completed.

        A paid reservation keeps payment status ``paid``; refunds are a manual
        admin matter. Cancelling an already cancelled reservation is a no-op.
        """
        with self.transaction():
            reservation = self.lock_reservation(reservation_id)
            self._ensure_can_cancel(actor, reservation)
            if reservation.is_cancelled:
                return reservation
            self._cancel(reservation, reason or "cancelled", actor)

        self.notifier.reservation_cancelled(reservation, credit_refunded=False)
        self.log_operation("cancel_reservation", reservation_id=reservation.id, reason=reason)
        return reservation

    @BaseService.measure_operation("unbook_reservation")
    def unbook_reservation(
        self, actor: Actor, reservation_id: str, reason: Optional[str] = None
    ) -> UnbookResult:
        """
        Teacher/admin cancellation that gives the customer one credit back.

        Guest reservations are cancelled without a refund. The credit and the
        cancellation are written in the same transaction.
        """
        ensure_permission(actor, PermissionName.UNBOOK_RESERVATION)
        with self.transaction():
            reservation = self.lock_reservation(reservation_id)
            if reservation.status in (
                ReservationStatus.CANCELLED.value,
                ReservationStatus.COMPLETED.value,
            ):
                raise InvalidStateTransitionException("reservation", reservation.status, "unbook")
            self._cancel(reservation, reason or "unbooked by teacher", actor)
            refunded = False
            if reservation.customer_id:
                self.credits.add_credits(
                    reservation.customer_id, reservation.credit_type, UNBOOK_REFUND_CREDITS
                )
                reservation.append_audit_note(
                    f"{self.now().isoformat()} refunded {UNBOOK_REFUND_CREDITS} "
                    f"'{reservation.credit_type}' credit"
                )
                refunded = True

        self.notifier.reservation_cancelled(reservation, credit_refunded=refunded)
        self.log_operation(
            "unbook_reservation", reservation_id=reservation.id, credit_refunded=refunded
        )
        return UnbookResult(reservation_id=reservation.id, success=True, credit_refunded=refunded)

    def bulk_unbook(
        self, actor: Actor, reservation_ids: List[str], reason: Optional[str] = None
    ) -> List[UnbookResult]:
        """Unbook each reservation in its own transaction; one failure does not stop the rest."""
        ensure_permission(actor, PermissionName.UNBOOK_RESERVATION)
        if not reservation_ids:
            raise ValidationException("At least one reservation id is required")
        results: List[UnbookResult] = []
        for reservation_id in dict.fromkeys(reservation_ids):
            try:
                results.append(self.unbook_reservation(actor, reservation_id, reason))
            except DomainException as exc:
                self.logger.warning("Unbook of %s failed: %s", reservation_id, exc.message)
                results.append(
                    UnbookResult(reservation_id=reservation_id, success=False, error=exc.message)
                )
        return results

    # Complete

    @BaseService.measure_operation("complete_reservation")
    def mark_completed(self, actor: Actor, reservation_id: str) -> Reservation:
        ensure_permission(actor, PermissionName.COMPLETE_RESERVATION)
        with self.transaction():
            reservation = self.lock_reservation(reservation_id)
            if reservation.status == ReservationStatus.COMPLETED.value:
                return reservation
            if reservation.status != ReservationStatus.CONFIRMED.value:
                raise InvalidStateTransitionException("reservation", reservation.status, "complete")
            now = self.now()
            self.repository.update(
                reservation,
                status=ReservationStatus.COMPLETED.value,
                completed_at=now,
                updated_at=now,
            )
        self.log_operation("complete_reservation", reservation_id=reservation.id)
        return reservation

    # Helpers used inside an open transaction

    def release_hold(self, reservation: Reservation, note: str) -> None:
        """Cancel an unpaid hold; payment status is left as it is."""
        now = self.now()
        reservation.append_audit_note(f"{now.isoformat()} {note}")
        self.repository.update(
            reservation,
            status=ReservationStatus.CANCELLED.value,
            cancelled_at=now,
            cancellation_reason=note,
            updated_at=now,
        )
        self.invoices.mark_cancelled(self.invoices.lock_for_reservation(reservation.id))

    def ensure_slot_still_free(self, reservation: Reservation) -> None:
        """Used when an expired hold is being paid for: nobody else may hold the range now."""
        self.resource_repository.lock_for_booking(reservation.resource_id)
        self._ensure_slot_free(
            reservation.resource_id,
            reservation.booking_date,
            reservation.start_time,
            reservation.end_time,
            exclude_id=reservation.id,
        )

    def _cancel(self, reservation: Reservation, reason: str, actor: Actor) -> None:
        now = self.now()
        updates: Dict[str, Any] = {
            "status": ReservationStatus.CANCELLED.value,
            "cancelled_at": now,
            "cancellation_reason": reason,
            "updated_at": now,
        }
        if reservation.payment_status in CANCELLABLE_PAYMENT_STATUSES:
            updates["payment_status"] = PaymentStatus.CANCELLED.value
            self.invoices.mark_cancelled(self.invoices.lock_for_reservation(reservation.id))
        reservation.append_audit_note(
            f"{now.isoformat()} cancelled by {actor.user_id or actor.role.value}: {reason}"
        )
        self.repository.update(reservation, **updates)

    def _ensure_can_cancel(self, actor: Actor, reservation: Reservation) -> None:
        if not actor.has_permission(PermissionName.CANCEL_ANY_RESERVATION):
            ensure_permission(actor, PermissionName.CANCEL_OWN_RESERVATION)
            if reservation.customer_id is None:
                raise ForbiddenException("Guest reservations can only be cancelled by an admin")
            ensure_owner(actor, reservation.customer_id)
        if reservation.status == ReservationStatus.COMPLETED.value:
            raise InvalidStateTransitionException("reservation", reservation.status, "cancel")

    def _ensure_slot_free(
        self,
        resource_id: str,
        on_date: date,
        start: time,
        end: time,
        exclude_id: Optional[str] = None,
    ) -> None:
        blocks = self.resource_repository.blocks_for_date(resource_id, on_date)
        block = self.availability.first_blocking_range(blocks, start, end)
        if block is not None:
            raise SlotNoLongerAvailableException(
                "The selected time is blocked",
                details={**self._range_details(on_date, start, end), "blocked_range_id": block.id},
            )
        live = self.availability.live_reservations(resource_id, on_date, exclude_id=exclude_id)
        conflict = first_conflict(live, start, end)
        if conflict is not None:
            raise SlotNoLongerAvailableException(details=self._range_details(on_date, start, end))

    def _release_expired_overlaps(
        self, resource_id: str, on_date: date, start: time, end: time
    ) -> None:
        cutoff = self.hold_policy.cutoff(self.now())
        for stale in self.repository.get_expired_holds_for_date(resource_id, on_date, cutoff):
            if overlaps(stale.start_time, stale.end_time, start, end):
                self.logger.info("Releasing expired hold %s before rebooking", stale.id)
                self.release_hold(stale, "hold expired; slot released for a new reservation")

    @staticmethod
    def _validate_range(start: time, end: time) -> int:
        minutes = duration_minutes(start, end)
        if minutes <= 0:
            raise ValidationException(
                "start_time must be before end_time",
                details={"start_time": format_hhmm(start), "end_time": format_hhmm(end)},
            )
        return minutes

    @staticmethod
    def _range_details(on_date: date, start: time, end: time) -> Dict[str, str]:
        return {
            "date": on_date.isoformat(),
            "start_time": format_hhmm(start),
            "end_time": format_hhmm(end),
        }
