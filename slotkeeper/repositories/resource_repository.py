# slotkeeper/repositories/resource_repository.py
"""Resources and their published schedule (template windows, blocks, extra slots)."""

from datetime import date
from typing import List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from slotkeeper.core.exceptions import RepositoryException
from slotkeeper.models.resource import AvailabilityWindow, BlockedRange, ExtraSlot, Resource
from slotkeeper.repositories.base_repository import BaseRepository


class ResourceRepository(BaseRepository[Resource]):
    def __init__(self, db: Session) -> None:
        super().__init__(db, Resource)

    def get_active(self, resource_id: str) -> Optional[Resource]:
        query = self._build_query().filter(Resource.id == resource_id, Resource.is_active.is_(True))
        return self._execute_first(query)

    def lock_for_booking(self, resource_id: str) -> Optional[Resource]:
        """
        Lock the resource row for the rest of the transaction.

        Every create/move for the resource takes this lock first, so conflict
        checks and inserts for one resource run one at a time.
        """
        return self.get_for_update(resource_id)

    # Template windows

    def windows_for_weekday(self, resource_id: str, day_of_week: int) -> List[AvailabilityWindow]:
        query = (
            self.db.query(AvailabilityWindow)
            .filter(
                AvailabilityWindow.resource_id == resource_id,
                AvailabilityWindow.day_of_week == day_of_week,
                AvailabilityWindow.is_active.is_(True),
            )
            .order_by(AvailabilityWindow.start_time)
        )
        return self._execute_query(query)

    def list_windows(self, resource_id: str) -> List[AvailabilityWindow]:
        query = (
            self.db.query(AvailabilityWindow)
            .filter(AvailabilityWindow.resource_id == resource_id)
            .order_by(AvailabilityWindow.day_of_week, AvailabilityWindow.start_time)
        )
        return self._execute_query(query)

    def replace_windows(self, resource_id: str, windows: List[dict]) -> List[AvailabilityWindow]:
        """Swap the whole weekly template for ``windows``."""
        try:
            self.db.query(AvailabilityWindow).filter(
                AvailabilityWindow.resource_id == resource_id
            ).delete(synchronize_session=False)
            created = [AvailabilityWindow(resource_id=resource_id, **data) for data in windows]
            self.db.add_all(created)
            self.db.flush()
            return created
        except SQLAlchemyError as exc:
            self.logger.error("Failed to replace template for %s: %s", resource_id, exc)
            raise RepositoryException(f"Failed to replace template: {exc}") from exc

    # Date specific overrides

    def blocks_for_date(self, resource_id: str, on_date: date) -> List[BlockedRange]:
        query = self.db.query(BlockedRange).filter(
            BlockedRange.resource_id == resource_id, BlockedRange.date == on_date
        )
        return self._execute_query(query)

    def extra_slots_for_date(self, resource_id: str, on_date: date) -> List[ExtraSlot]:
        query = (
            self.db.query(ExtraSlot)
            .filter(ExtraSlot.resource_id == resource_id, ExtraSlot.date == on_date)
            .order_by(ExtraSlot.start_time)
        )
        return self._execute_query(query)

    def add_block(self, **kwargs) -> BlockedRange:
        try:
            block = BlockedRange(**kwargs)
            self.db.add(block)
            self.db.flush()
            return block
        except SQLAlchemyError as exc:
            self.logger.error("Failed to add blocked range: %s", exc)
            raise RepositoryException(f"Failed to add blocked range: {exc}") from exc

    def get_block(self, block_id: str) -> Optional[BlockedRange]:
        return self.db.get(BlockedRange, block_id)

    def add_extra_slot(self, **kwargs) -> ExtraSlot:
        try:
            slot = ExtraSlot(**kwargs)
            self.db.add(slot)
            self.db.flush()
            return slot
        except SQLAlchemyError as exc:
            self.logger.error("Failed to add extra slot: %s", exc)
            raise RepositoryException(f"Failed to add extra slot: {exc}") from exc

    def get_extra_slot(self, slot_id: str) -> Optional[ExtraSlot]:
        return self.db.get(ExtraSlot, slot_id)
