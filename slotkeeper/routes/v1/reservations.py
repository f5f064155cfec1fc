# slotkeeper/routes/v1/reservations.py
"""
Reservation routes - API v1

Customer-facing reservation endpoints. Guests may book with contact details;
registered students book as themselves.

Endpoints:
    POST /                     → Place a hold on a slot and issue the invoice
    GET /{reservation_id}      → Reservation details
    POST /{reservation_id}/cancel → Cancel an unpaid reservation
"""

import logging
from typing import NoReturn, Optional

from fastapi import APIRouter, Body, Depends, HTTPException, Path, status

from ...api.dependencies import get_actor, get_reservation_service
from ...core.exceptions import DomainException
from ...core.permissions import Actor
from ...core.ulid_helper import ULID_PATH_PATTERN
from ...schemas.reservation import (
    CancellationRequest,
    ReservationCreate,
    ReservationCreatedResponse,
    ReservationResponse,
)
from ...services.reservation_service import ReservationService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["reservations"])


def handle_domain_exception(exc: DomainException) -> NoReturn:
    """Convert domain exceptions to HTTP exceptions."""
    if hasattr(exc, "to_http_exception"):
        raise exc.to_http_exception()
    raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(exc))


@router.post(
    "",
    response_model=ReservationCreatedResponse,
    status_code=status.HTTP_201_CREATED,
    responses={409: {"description": "Slot no longer available"}},
)
def create_reservation(
    payload: ReservationCreate,
    actor: Actor = Depends(get_actor),
    service: ReservationService = Depends(get_reservation_service),
) -> ReservationCreatedResponse:
    guest = payload.guest
    try:
        reservation, invoice = service.create_reservation(
            actor,
            resource_id=payload.resource_id,
            booking_date=payload.date,
            start_time=payload.start_time,
            end_time=payload.end_time,
            participant_count=payload.participant_count,
            payment_method=payload.payment_method.value if payload.payment_method else None,
            credit_type=payload.credit_type,
            guest_name=guest.name if guest else None,
            guest_email=str(guest.email) if guest else None,
            guest_phone=guest.phone if guest else None,
        )
    except DomainException as exc:
        handle_domain_exception(exc)
    return ReservationCreatedResponse(
        reservation_id=reservation.id,
        invoice_id=invoice.id,
        invoice_number=invoice.invoice_number,
        status=reservation.status,
        payment_status=reservation.payment_status,
        amount=reservation.amount,
        currency=reservation.currency,
    )


@router.get("/{reservation_id}", response_model=ReservationResponse)
def get_reservation(
    reservation_id: str = Path(..., pattern=ULID_PATH_PATTERN),
    actor: Actor = Depends(get_actor),
    service: ReservationService = Depends(get_reservation_service),
) -> ReservationResponse:
    try:
        reservation = service.get_reservation(reservation_id, actor)
    except DomainException as exc:
        handle_domain_exception(exc)
    return ReservationResponse.model_validate(reservation)


@router.post("/{reservation_id}/cancel", response_model=ReservationResponse)
def cancel_reservation(
    reservation_id: str = Path(..., pattern=ULID_PATH_PATTERN),
    payload: Optional[CancellationRequest] = Body(default=None),
    actor: Actor = Depends(get_actor),
    service: ReservationService = Depends(get_reservation_service),
) -> ReservationResponse:
    try:
        reservation = service.cancel_reservation(
            actor, reservation_id, reason=payload.reason if payload else None
        )
    except DomainException as exc:
        handle_domain_exception(exc)
    return ReservationResponse.model_validate(reservation)
