# slotkeeper/repositories/reservation_repository.py
"""
Reservation queries.

``expired_hold_clause`` is the SQL form of ``HoldPolicy.is_expired``; the
availability read path and the reaper both filter with it.
"""

from datetime import date, datetime
from typing import Dict, List, Optional

from sqlalchemy import and_, func, not_
from sqlalchemy.orm import Session
from sqlalchemy.sql.elements import ColumnElement

from slotkeeper.core.enums import HOLD_STATUSES, PaymentStatus, ReservationStatus
from slotkeeper.models.reservation import Reservation
from slotkeeper.repositories.base_repository import BaseRepository


def expired_hold_clause(cutoff: datetime) -> ColumnElement[bool]:
    return and_(
        Reservation.status.in_(HOLD_STATUSES),
        Reservation.payment_status != PaymentStatus.PAID.value,
        Reservation.created_at < cutoff,
    )


def live_clause(hold_cutoff: datetime) -> ColumnElement[bool]:
    """Rows that still occupy their slot."""
    return and_(
        Reservation.status != ReservationStatus.CANCELLED.value,
        Reservation.deleted_at.is_(None),
        not_(expired_hold_clause(hold_cutoff)),
    )


class ReservationRepository(BaseRepository[Reservation]):
    def __init__(self, db: Session) -> None:
        super().__init__(db, Reservation)

    def get_live_for_date(
        self,
        resource_id: str,
        on_date: date,
        hold_cutoff: datetime,
        *,
        exclude_id: Optional[str] = None,
    ) -> List[Reservation]:
        query = self._build_query().filter(
            Reservation.resource_id == resource_id,
            Reservation.booking_date == on_date,
            live_clause(hold_cutoff),
        )
        if exclude_id is not None:
            query = query.filter(Reservation.id != exclude_id)
        return self._execute_query(query.order_by(Reservation.start_time))

    def get_expired_holds_for_date(
        self, resource_id: str, on_date: date, hold_cutoff: datetime
    ) -> List[Reservation]:
        query = (
            self._build_query()
            .filter(
                Reservation.resource_id == resource_id,
                Reservation.booking_date == on_date,
                Reservation.deleted_at.is_(None),
                expired_hold_clause(hold_cutoff),
            )
            .with_for_update()
        )
        return self._execute_query(query)

    def get_stale_holds(
        self, cutoff: datetime, *, limit: Optional[int] = None
    ) -> List[Reservation]:
        """Unpaid holds created before ``cutoff``, locked for the sweep."""
        query = (
            self._build_query()
            .filter(expired_hold_clause(cutoff))
            .order_by(Reservation.created_at)
            .with_for_update()
        )
        if limit is not None:
            query = query.limit(limit)
        return self._execute_query(query)

    def get_by_checkout_order_id(
        self, order_id: str, *, for_update: bool = False
    ) -> Optional[Reservation]:
        query = self._build_query().filter(Reservation.checkout_order_id == order_id)
        if for_update:
            query = query.populate_existing().with_for_update()
        return self._execute_first(query)

    def count_holds_by_status(self, *, created_before: Optional[datetime] = None) -> Dict[str, int]:
        query = self.db.query(Reservation.status, func.count(Reservation.id)).filter(
            Reservation.status.in_(HOLD_STATUSES),
            Reservation.payment_status != PaymentStatus.PAID.value,
        )
        if created_before is not None:
            query = query.filter(Reservation.created_at < created_before)
        rows = self._execute_query(query.group_by(Reservation.status))
        counts = {status: 0 for status in HOLD_STATUSES}
        for status, count in rows:
            counts[status] = int(count or 0)
        return counts
