# slotkeeper/services/notifications.py
"""
Outbound notification hook.

Delivery (e-mail rendering and sending) belongs to an external collaborator.
The core only reports the events; the default notifier logs them.
"""

import logging
from typing import Any, Dict, Protocol

from ..models.reservation import Reservation

logger = logging.getLogger(__name__)


class ReservationNotifier(Protocol):
    def reservation_moved(self, reservation: Reservation, previous: Dict[str, Any]) -> None:
        ...

    def reservation_cancelled(self, reservation: Reservation, *, credit_refunded: bool) -> None:
        ...

    def payment_confirmed(self, reservation: Reservation) -> None:
        ...


class LoggingNotifier:
    def reservation_moved(self, reservation: Reservation, previous: Dict[str, Any]) -> None:
        logger.info(
            "Reservation %s moved",
            reservation.id,
            extra={
                "event": "reservation_moved",
                "reservation_id": reservation.id,
                "previous": {k: str(v) for k, v in previous.items()},
            },
        )

    def reservation_cancelled(self, reservation: Reservation, *, credit_refunded: bool) -> None:
        logger.info(
            "Reservation %s cancelled",
            reservation.id,
            extra={
                "event": "reservation_cancelled",
                "reservation_id": reservation.id,
                "credit_refunded": credit_refunded,
            },
        )

    def payment_confirmed(self, reservation: Reservation) -> None:
        logger.info(
            "Payment confirmed for reservation %s",
            reservation.id,
            extra={"event": "payment_confirmed", "reservation_id": reservation.id},
        )
