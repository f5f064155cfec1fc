# slotkeeper/services/schedule_service.py
"""Admin management of resources and their published schedule."""

from dataclasses import dataclass
from datetime import date, time
from decimal import Decimal
from itertools import combinations
from typing import List, Optional, Sequence

from sqlalchemy.orm import Session

from ..core.clock import Clock
from ..core.config import settings
from ..core.enums import PermissionName
from ..core.exceptions import NotFoundException, ValidationException
from ..core.permissions import Actor, ensure_permission
from ..core.time_ranges import format_hhmm, overlaps
from ..models.resource import AvailabilityWindow, BlockedRange, ExtraSlot, Resource
from ..repositories.resource_repository import ResourceRepository
from .base import BaseService


@dataclass(frozen=True)
class WindowSpec:
    day_of_week: int
    start_time: time
    end_time: time


class ScheduleService(BaseService):
    def __init__(self, db: Session, clock: Optional[Clock] = None):
        super().__init__(db, clock)
        self.repository = ResourceRepository(db)

    @BaseService.measure_operation("create_resource")
    def create_resource(
        self,
        actor: Actor,
        *,
        name: str,
        hourly_rate: Decimal,
        max_participants: int = 1,
        currency: Optional[str] = None,
    ) -> Resource:
        ensure_permission(actor, PermissionName.MANAGE_SCHEDULE)
        if max_participants < 1:
            raise ValidationException("max_participants must be at least 1")
        with self.transaction():
            resource = self.repository.create(
                name=name,
                hourly_rate=hourly_rate,
                max_participants=max_participants,
                currency=currency or settings.default_currency,
                is_active=True,
                created_at=self.now(),
            )
        return resource

    @BaseService.measure_operation("set_weekly_template")
    def set_weekly_template(
        self, actor: Actor, resource_id: str, windows: Sequence[WindowSpec]
    ) -> List[AvailabilityWindow]:
        """Replace the resource's weekly template. Windows on one weekday may not overlap."""
        ensure_permission(actor, PermissionName.MANAGE_SCHEDULE)
        for window in windows:
            if not 0 <= window.day_of_week <= 6:
                raise ValidationException(
                    "day_of_week must be between 0 (Monday) and 6 (Sunday)",
                    details={"day_of_week": window.day_of_week},
                )
            self._validate_range(window.start_time, window.end_time)
        for first, second in combinations(windows, 2):
            if first.day_of_week == second.day_of_week and overlaps(
                first.start_time, first.end_time, second.start_time, second.end_time
            ):
                raise ValidationException(
                    "Template windows on the same day must not overlap",
                    details={
                        "day_of_week": first.day_of_week,
                        "windows": [
                            f"{format_hhmm(first.start_time)}-{format_hhmm(first.end_time)}",
                            f"{format_hhmm(second.start_time)}-{format_hhmm(second.end_time)}",
                        ],
                    },
                )

        with self.transaction():
            self._get_resource(resource_id)
            created = self.repository.replace_windows(
                resource_id,
                [
                    {
                        "day_of_week": w.day_of_week,
                        "start_time": w.start_time,
                        "end_time": w.end_time,
                        "is_active": True,
                    }
                    for w in windows
                ],
            )
        self.log_operation("set_weekly_template", resource_id=resource_id, windows=len(created))
        return created

    @BaseService.measure_operation("add_blocked_range")
    def add_blocked_range(
        self,
        actor: Actor,
        resource_id: str,
        *,
        on_date: date,
        start_time: Optional[time] = None,
        end_time: Optional[time] = None,
        reason: Optional[str] = None,
    ) -> BlockedRange:
        """Block a whole date (no times given) or part of it."""
        ensure_permission(actor, PermissionName.MANAGE_SCHEDULE)
        is_all_day = start_time is None and end_time is None
        if not is_all_day:
            if start_time is None or end_time is None:
                raise ValidationException("Give both start_time and end_time, or neither")
            self._validate_range(start_time, end_time)

        with self.transaction():
            self._get_resource(resource_id)
            block = self.repository.add_block(
                resource_id=resource_id,
                date=on_date,
                is_all_day=is_all_day,
                start_time=start_time,
                end_time=end_time,
                reason=reason,
                created_at=self.now(),
            )
        self.log_operation("add_blocked_range", resource_id=resource_id, block_id=block.id)
        return block

    @BaseService.measure_operation("remove_blocked_range")
    def remove_blocked_range(self, actor: Actor, block_id: str) -> None:
        ensure_permission(actor, PermissionName.MANAGE_SCHEDULE)
        with self.transaction():
            block = self.repository.get_block(block_id)
            if block is None:
                raise NotFoundException(f"Blocked range {block_id} not found")
            self.repository.delete(block)

    @BaseService.measure_operation("add_extra_slot")
    def add_extra_slot(
        self,
        actor: Actor,
        resource_id: str,
        *,
        on_date: date,
        start_time: time,
        end_time: time,
        reason: Optional[str] = None,
    ) -> ExtraSlot:
        ensure_permission(actor, PermissionName.MANAGE_SCHEDULE)
        self._validate_range(start_time, end_time)
        with self.transaction():
            self._get_resource(resource_id)
            self._ensure_extra_slot_free(resource_id, on_date, start_time, end_time)
            slot = self.repository.add_extra_slot(
                resource_id=resource_id,
                date=on_date,
                start_time=start_time,
                end_time=end_time,
                reason=reason,
                created_at=self.now(),
            )
        self.log_operation("add_extra_slot", resource_id=resource_id, slot_id=slot.id)
        return slot

    @BaseService.measure_operation("remove_extra_slot")
    def remove_extra_slot(self, actor: Actor, slot_id: str) -> None:
        ensure_permission(actor, PermissionName.MANAGE_SCHEDULE)
        with self.transaction():
            slot = self.repository.get_extra_slot(slot_id)
            if slot is None:
                raise NotFoundException(f"Extra slot {slot_id} not found")
            self.repository.delete(slot)

    def _get_resource(self, resource_id: str) -> Resource:
        resource = self.repository.get_by_id(resource_id)
        if resource is None:
            raise NotFoundException(f"Resource {resource_id} not found")
        return resource

    def _ensure_extra_slot_free(
        self, resource_id: str, on_date: date, start: time, end: time
    ) -> None:
        """Extra slots may not overlap the date's template windows or other extra slots."""
        existing = [
            (w.start_time, w.end_time)
            for w in self.repository.windows_for_weekday(resource_id, on_date.weekday())
        ] + [
            (e.start_time, e.end_time)
            for e in self.repository.extra_slots_for_date(resource_id, on_date)
        ]
        for other_start, other_end in existing:
            if overlaps(other_start, other_end, start, end):
                raise ValidationException(
                    "Extra slot overlaps a published window on that date",
                    details={
                        "date": on_date.isoformat(),
                        "window": f"{format_hhmm(other_start)}-{format_hhmm(other_end)}",
                    },
                )

    @staticmethod
    def _validate_range(start: time, end: time) -> None:
        if start >= end:
            raise ValidationException(
                "start_time must be before end_time",
                details={"start_time": format_hhmm(start), "end_time": format_hhmm(end)},
            )
