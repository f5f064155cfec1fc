# slotkeeper/core/hold_policy.py
"""
Expiry rule for unpaid holds.

A reservation is an *expired hold* when it is still ``temp``/``on_hold``, its
payment is not ``paid`` and it was created before ``now - timeout``. The
availability calculator ignores expired holds and the reaper cancels them;
both go through this policy (the SQL form lives in ReservationRepository).
"""

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any

from .clock import ensure_utc
from .enums import HOLD_STATUSES, PaymentStatus


@dataclass(frozen=True)
class HoldPolicy:
    timeout_minutes: int

    def __post_init__(self) -> None:
        if self.timeout_minutes < 1:
            raise ValueError("hold timeout must be at least one minute")

    @property
    def timeout(self) -> timedelta:
        return timedelta(minutes=self.timeout_minutes)

    def cutoff(self, now: datetime) -> datetime:
        """Holds created strictly before this instant are expired."""
        return ensure_utc(now) - self.timeout

    def is_expired(self, reservation: Any, now: datetime) -> bool:
        if reservation.status not in HOLD_STATUSES:
            return False
        if reservation.payment_status == PaymentStatus.PAID.value:
            return False
        created_at = ensure_utc(reservation.created_at)
        return created_at is not None and created_at < self.cutoff(now)
