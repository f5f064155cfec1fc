# slotkeeper/services/availability_service.py
"""
Availability calculator.

A slot is one published window (weekly template window or admin extra slot)
for the date. Windows are offered whole: a window touched by a partial block
or by a live reservation is dropped, never split. An all-day block removes
the whole date. Expired holds do not count as reservations here even before
the reaper has cancelled them.
"""

from dataclasses import dataclass
from datetime import date, time
import logging
from typing import Iterable, List, Optional, Sequence

from sqlalchemy.orm import Session

from ..core.clock import Clock
from ..core.config import settings
from ..core.enums import PermissionName
from ..core.hold_policy import HoldPolicy
from ..core.permissions import Actor, ensure_permission
from ..core.time_ranges import contains, overlaps
from ..models.reservation import Reservation
from ..models.resource import BlockedRange
from ..repositories.reservation_repository import ReservationRepository
from ..repositories.resource_repository import ResourceRepository
from .base import BaseService

logger = logging.getLogger(__name__)


@dataclass(frozen=True, order=True)
class Slot:
    start_time: time
    end_time: time


def block_overlaps(block: BlockedRange, start: time, end: time) -> bool:
    if block.is_all_day:
        return True
    return overlaps(block.start_time, block.end_time, start, end)


def first_conflict(
    reservations: Iterable[Reservation], start: time, end: time
) -> Optional[Reservation]:
    for reservation in reservations:
        if overlaps(reservation.start_time, reservation.end_time, start, end):
            return reservation
    return None


class AvailabilityService(BaseService):
    """Computes the bookable slots of a resource on a date."""

    def __init__(
        self,
        db: Session,
        clock: Optional[Clock] = None,
        hold_policy: Optional[HoldPolicy] = None,
        resource_repository: Optional[ResourceRepository] = None,
        reservation_repository: Optional[ReservationRepository] = None,
    ):
        super().__init__(db, clock)
        self.hold_policy = hold_policy or HoldPolicy(settings.hold_timeout_minutes)
        self.resource_repository = resource_repository or ResourceRepository(db)
        self.reservation_repository = reservation_repository or ReservationRepository(db)

    @BaseService.measure_operation("get_available_slots")
    def get_available_slots(
        self, resource_id: str, on_date: date, actor: Optional[Actor] = None
    ) -> List[Slot]:
        ensure_permission(actor or Actor.guest(), PermissionName.VIEW_AVAILABILITY)

        resource = self.resource_repository.get_active(resource_id)
        if resource is None:
            self.logger.debug("Availability requested for unknown resource %s", resource_id)
            return []

        windows = self.published_windows(resource_id, on_date)
        if not windows:
            return []

        blocks = self.resource_repository.blocks_for_date(resource_id, on_date)
        if any(block.is_all_day for block in blocks):
            return []

        live = self.live_reservations(resource_id, on_date)
        return [
            window
            for window in windows
            if not any(
                block_overlaps(block, window.start_time, window.end_time) for block in blocks
            )
            and first_conflict(live, window.start_time, window.end_time) is None
        ]

    def published_windows(self, resource_id: str, on_date: date) -> List[Slot]:
        """Template windows for the weekday plus extra slots, sorted.

        Template windows win: an extra slot overlapping an accepted window
        (including an exact duplicate) is left out, so the result never
        holds two overlapping windows.
        """
        template = self.resource_repository.windows_for_weekday(resource_id, on_date.weekday())
        extras = self.resource_repository.extra_slots_for_date(resource_id, on_date)
        accepted: List[Slot] = []
        candidates = sorted({Slot(w.start_time, w.end_time) for w in template}) + sorted(
            {Slot(e.start_time, e.end_time) for e in extras}
        )
        for candidate in candidates:
            if any(
                overlaps(kept.start_time, kept.end_time, candidate.start_time, candidate.end_time)
                for kept in accepted
            ):
                continue
            accepted.append(candidate)
        return sorted(accepted)

    def live_reservations(
        self, resource_id: str, on_date: date, exclude_id: Optional[str] = None
    ) -> List[Reservation]:
        cutoff = self.hold_policy.cutoff(self.now())
        return self.reservation_repository.get_live_for_date(
            resource_id, on_date, cutoff, exclude_id=exclude_id
        )

    def is_within_published_window(
        self, resource_id: str, on_date: date, start: time, end: time
    ) -> bool:
        return any(
            contains(window.start_time, window.end_time, start, end)
            for window in self.published_windows(resource_id, on_date)
        )

    @staticmethod
    def first_blocking_range(
        blocks: Sequence[BlockedRange], start: time, end: time
    ) -> Optional[BlockedRange]:
        for block in blocks:
            if block_overlaps(block, start, end):
                return block
        return None
