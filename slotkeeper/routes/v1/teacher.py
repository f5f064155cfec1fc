# slotkeeper/routes/v1/teacher.py
"""
Teacher routes - API v1

Endpoints:
    POST /reservations/{id}/unbook → Cancel a booking, refunding one credit
                                     to registered customers
    POST /reservations/{id}/complete → Mark a lesson as held
"""

import logging
from typing import NoReturn, Optional

from fastapi import APIRouter, Body, Depends, HTTPException, Path, status

from ...api.dependencies import get_actor, get_reservation_service
from ...core.exceptions import DomainException
from ...core.permissions import Actor
from ...core.ulid_helper import ULID_PATH_PATTERN
from ...schemas.reservation import CancellationRequest, ReservationResponse, UnbookResultResponse
from ...services.reservation_service import ReservationService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["teacher"])


def handle_domain_exception(exc: DomainException) -> NoReturn:
    """Convert domain exceptions to HTTP exceptions."""
    if hasattr(exc, "to_http_exception"):
        raise exc.to_http_exception()
    raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(exc))


@router.post("/reservations/{reservation_id}/unbook", response_model=UnbookResultResponse)
def unbook_reservation(
    reservation_id: str = Path(..., pattern=ULID_PATH_PATTERN),
    payload: Optional[CancellationRequest] = Body(default=None),
    actor: Actor = Depends(get_actor),
    service: ReservationService = Depends(get_reservation_service),
) -> UnbookResultResponse:
    try:
        result = service.unbook_reservation(
            actor, reservation_id, reason=payload.reason if payload else None
        )
    except DomainException as exc:
        handle_domain_exception(exc)
    return UnbookResultResponse(
        reservation_id=result.reservation_id,
        success=result.success,
        credit_refunded=result.credit_refunded,
        error=result.error,
    )


@router.post("/reservations/{reservation_id}/complete", response_model=ReservationResponse)
def complete_reservation(
    reservation_id: str = Path(..., pattern=ULID_PATH_PATTERN),
    actor: Actor = Depends(get_actor),
    service: ReservationService = Depends(get_reservation_service),
) -> ReservationResponse:
    try:
        reservation = service.mark_completed(actor, reservation_id)
    except DomainException as exc:
        handle_domain_exception(exc)
    return ReservationResponse.model_validate(reservation)
