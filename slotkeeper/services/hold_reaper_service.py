# slotkeeper/services/hold_reaper_service.py
"""
Stale-hold reaper.

Cancels unpaid ``temp``/``on_hold`` reservations older than the cutoff so their
slots become bookable again. The sweep is stateless and idempotent: a second
run over the same data finds nothing to do. Payment status is left untouched,
so a payment that arrives later is still recorded.
"""

from typing import Dict, Optional

from sqlalchemy.orm import Session

from ..core.clock import Clock
from ..core.config import settings
from ..core.enums import PermissionName, ReservationStatus
from ..core.exceptions import ValidationException
from ..core.hold_policy import HoldPolicy
from ..core.permissions import Actor, ensure_permission
from ..monitoring.prometheus_metrics import prometheus_metrics
from .base import BaseService
from .reservation_service import ReservationService

MAX_CUTOFF_MINUTES = 24 * 60


class HoldReaperService(BaseService):
    def __init__(
        self,
        db: Session,
        clock: Optional[Clock] = None,
        reservation_service: Optional[ReservationService] = None,
        default_cutoff_minutes: Optional[int] = None,
    ):
        super().__init__(db, clock)
        self.reservations = reservation_service or ReservationService(db, self.clock)
        self.default_cutoff_minutes = default_cutoff_minutes or settings.reaper_cutoff_minutes

    def _policy(self, minutes: Optional[int]) -> HoldPolicy:
        value = self.default_cutoff_minutes if minutes is None else minutes
        if not 1 <= value <= MAX_CUTOFF_MINUTES:
            raise ValidationException(
                f"minutes must be between 1 and {MAX_CUTOFF_MINUTES}",
                details={"minutes": value},
            )
        return HoldPolicy(value)

    @BaseService.measure_operation("release_stale_holds")
    def release_stale_holds(
        self, actor: Optional[Actor] = None, minutes: Optional[int] = None
    ) -> Dict[str, int]:
        """
        Cancel every unpaid hold created more than ``minutes`` ago.

        Returns:
            Counts per previous status plus ``total``.
        """
        ensure_permission(actor or Actor.system(), PermissionName.CANCEL_ANY_RESERVATION)
        policy = self._policy(minutes)
        cutoff = policy.cutoff(self.now())
        counts = {ReservationStatus.TEMP.value: 0, ReservationStatus.ON_HOLD.value: 0}

        with self.transaction():
            for reservation in self.reservations.repository.get_stale_holds(cutoff):
                counts[reservation.status] += 1
                self.reservations.release_hold(
                    reservation,
                    f"hold released by reaper after {policy.timeout_minutes} minutes "
                    "without payment",
                )

        for status, count in counts.items():
            prometheus_metrics.inc_holds_released(status, count)
        total = sum(counts.values())
        if total:
            self.log_operation("release_stale_holds", cutoff=cutoff.isoformat(), **counts)
        else:
            self.logger.debug("No stale holds older than %s", cutoff.isoformat())
        return {**counts, "total": total}

    def hold_statistics(self, minutes: Optional[int] = None) -> Dict[str, Dict[str, int]]:
        """Current unpaid holds and how many of them the next sweep would release."""
        policy = self._policy(minutes)
        repository = self.reservations.repository
        return {
            "active": repository.count_holds_by_status(),
            "stale": repository.count_holds_by_status(created_before=policy.cutoff(self.now())),
        }
