# slotkeeper/routes/v1/admin.py
"""
Admin routes - API v1

Payment confirmation, reservation management, schedule administration and
credit grants. Every operation checks the caller's capabilities in the
service layer; the role header alone is not trusted here.

Endpoints:
    POST /reservations/{id}/confirm-payment    → Confirm a manual payment
    POST /reservations/{id}/decline-payment    → Decline and cancel
    POST /reservations/{id}/move               → Move to another free range
    POST /reservations/{id}/complete           → Mark as held
    POST /reservations/{id}/cancel             → Cancel an unpaid reservation
    POST /reservations/bulk-unbook             → Unbook several reservations
    POST /resources                            → Create a bookable resource
    PUT /resources/{id}/template               → Replace the weekly template
    POST /resources/{id}/blocked-ranges        → Block a date or a range
    DELETE /resources/blocked-ranges/{id}      → Remove a block
    POST /resources/{id}/extra-slots           → Publish a one-off slot
    DELETE /resources/extra-slots/{id}         → Remove a one-off slot
    POST /credits/grant                        → Grant credits to a customer
    POST /packages                             → Create a credit package
"""

import logging
from typing import List, NoReturn, Optional

from fastapi import APIRouter, Body, Depends, HTTPException, Path, Response, status

from ...api.dependencies import (
    get_actor,
    get_credit_service,
    get_package_service,
    get_payment_reconciliation_service,
    get_reservation_service,
    get_schedule_service,
)
from ...core.exceptions import DomainException
from ...core.permissions import Actor
from ...core.ulid_helper import ULID_PATH_PATTERN
from ...schemas.payment import (
    CreditBalanceResponse,
    CreditGrantRequest,
    CreditPackageCreate,
    CreditPackageResponse,
    DeclinePaymentRequest,
    ReconciliationResponse,
)
from ...schemas.reservation import (
    BulkUnbookRequest,
    BulkUnbookResponse,
    CancellationRequest,
    ReservationMove,
    ReservationResponse,
    UnbookResultResponse,
)
from ...schemas.schedule import (
    BlockedRangeCreate,
    BlockedRangeResponse,
    ExtraSlotCreate,
    ExtraSlotResponse,
    ResourceCreate,
    ResourceResponse,
    TemplateWindowResponse,
    WeeklyTemplateUpdate,
)
from ...services.credit_service import CreditService
from ...services.package_service import PackageService
from ...services.payment_reconciliation_service import PaymentReconciliationService
from ...services.reservation_service import ReservationService
from ...services.schedule_service import ScheduleService, WindowSpec
from .payments import to_response

logger = logging.getLogger(__name__)

router = APIRouter(tags=["admin"])


def handle_domain_exception(exc: DomainException) -> NoReturn:
    """Convert domain exceptions to HTTP exceptions."""
    if hasattr(exc, "to_http_exception"):
        raise exc.to_http_exception()
    raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(exc))


# =============================================================================
# Payments
# =============================================================================


@router.post(
    "/reservations/{reservation_id}/confirm-payment", response_model=ReconciliationResponse
)
def confirm_payment(
    reservation_id: str = Path(..., pattern=ULID_PATH_PATTERN),
    actor: Actor = Depends(get_actor),
    service: PaymentReconciliationService = Depends(get_payment_reconciliation_service),
) -> ReconciliationResponse:
    try:
        result = service.confirm_payment(actor, reservation_id)
    except DomainException as exc:
        handle_domain_exception(exc)
    return to_response(result)


@router.post(
    "/reservations/{reservation_id}/decline-payment", response_model=ReconciliationResponse
)
def decline_payment(
    reservation_id: str = Path(..., pattern=ULID_PATH_PATTERN),
    payload: Optional[DeclinePaymentRequest] = Body(default=None),
    actor: Actor = Depends(get_actor),
    service: PaymentReconciliationService = Depends(get_payment_reconciliation_service),
) -> ReconciliationResponse:
    try:
        result = service.decline_payment(
            actor, reservation_id, reason=payload.reason if payload else None
        )
    except DomainException as exc:
        handle_domain_exception(exc)
    return to_response(result)


# =============================================================================
# Reservations (static routes before dynamic ones)
# =============================================================================


@router.post("/reservations/bulk-unbook", response_model=BulkUnbookResponse)
def bulk_unbook(
    payload: BulkUnbookRequest,
    actor: Actor = Depends(get_actor),
    service: ReservationService = Depends(get_reservation_service),
) -> BulkUnbookResponse:
    try:
        results = service.bulk_unbook(actor, payload.reservation_ids, reason=payload.reason)
    except DomainException as exc:
        handle_domain_exception(exc)
    successful = sum(1 for result in results if result.success)
    return BulkUnbookResponse(
        results=[
            UnbookResultResponse(
                reservation_id=result.reservation_id,
                success=result.success,
                credit_refunded=result.credit_refunded,
                error=result.error,
            )
            for result in results
        ],
        successful=successful,
        failed=len(results) - successful,
    )


@router.post("/reservations/{reservation_id}/move", response_model=ReservationResponse)
def move_reservation(
    payload: ReservationMove,
    reservation_id: str = Path(..., pattern=ULID_PATH_PATTERN),
    actor: Actor = Depends(get_actor),
    service: ReservationService = Depends(get_reservation_service),
) -> ReservationResponse:
    try:
        reservation = service.move_reservation(
            actor,
            reservation_id,
            new_date=payload.date,
            new_start_time=payload.start_time,
            new_end_time=payload.end_time,
        )
    except DomainException as exc:
        handle_domain_exception(exc)
    return ReservationResponse.model_validate(reservation)


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


@router.post("/reservations/{reservation_id}/cancel", response_model=ReservationResponse)
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


# =============================================================================
# Schedule
# =============================================================================


@router.post(
    "/resources", response_model=ResourceResponse, status_code=status.HTTP_201_CREATED
)
def create_resource(
    payload: ResourceCreate,
    actor: Actor = Depends(get_actor),
    service: ScheduleService = Depends(get_schedule_service),
) -> ResourceResponse:
    try:
        resource = service.create_resource(
            actor,
            name=payload.name,
            hourly_rate=payload.hourly_rate,
            max_participants=payload.max_participants,
            currency=payload.currency,
        )
    except DomainException as exc:
        handle_domain_exception(exc)
    return ResourceResponse.model_validate(resource)


@router.delete("/resources/blocked-ranges/{block_id}", status_code=status.HTTP_204_NO_CONTENT)
def remove_blocked_range(
    block_id: str = Path(..., pattern=ULID_PATH_PATTERN),
    actor: Actor = Depends(get_actor),
    service: ScheduleService = Depends(get_schedule_service),
) -> Response:
    try:
        service.remove_blocked_range(actor, block_id)
    except DomainException as exc:
        handle_domain_exception(exc)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.delete("/resources/extra-slots/{slot_id}", status_code=status.HTTP_204_NO_CONTENT)
def remove_extra_slot(
    slot_id: str = Path(..., pattern=ULID_PATH_PATTERN),
    actor: Actor = Depends(get_actor),
    service: ScheduleService = Depends(get_schedule_service),
) -> Response:
    try:
        service.remove_extra_slot(actor, slot_id)
    except DomainException as exc:
        handle_domain_exception(exc)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.put("/resources/{resource_id}/template", response_model=List[TemplateWindowResponse])
def set_weekly_template(
    payload: WeeklyTemplateUpdate,
    resource_id: str = Path(..., pattern=ULID_PATH_PATTERN),
    actor: Actor = Depends(get_actor),
    service: ScheduleService = Depends(get_schedule_service),
) -> List[TemplateWindowResponse]:
    windows = [
        WindowSpec(day_of_week=w.day_of_week, start_time=w.start_time, end_time=w.end_time)
        for w in payload.windows
    ]
    try:
        saved = service.set_weekly_template(actor, resource_id, windows)
    except DomainException as exc:
        handle_domain_exception(exc)
    return [TemplateWindowResponse.model_validate(window) for window in saved]


@router.post(
    "/resources/{resource_id}/blocked-ranges",
    response_model=BlockedRangeResponse,
    status_code=status.HTTP_201_CREATED,
)
def add_blocked_range(
    payload: BlockedRangeCreate,
    resource_id: str = Path(..., pattern=ULID_PATH_PATTERN),
    actor: Actor = Depends(get_actor),
    service: ScheduleService = Depends(get_schedule_service),
) -> BlockedRangeResponse:
    try:
        block = service.add_blocked_range(
            actor,
            resource_id,
            on_date=payload.date,
            start_time=payload.start_time,
            end_time=payload.end_time,
            reason=payload.reason,
        )
    except DomainException as exc:
        handle_domain_exception(exc)
    return BlockedRangeResponse.model_validate(block)


@router.post(
    "/resources/{resource_id}/extra-slots",
    response_model=ExtraSlotResponse,
    status_code=status.HTTP_201_CREATED,
)
def add_extra_slot(
    payload: ExtraSlotCreate,
    resource_id: str = Path(..., pattern=ULID_PATH_PATTERN),
    actor: Actor = Depends(get_actor),
    service: ScheduleService = Depends(get_schedule_service),
) -> ExtraSlotResponse:
    try:
        extra = service.add_extra_slot(
            actor,
            resource_id,
            on_date=payload.date,
            start_time=payload.start_time,
            end_time=payload.end_time,
            reason=payload.reason,
        )
    except DomainException as exc:
        handle_domain_exception(exc)
    return ExtraSlotResponse.model_validate(extra)


# =============================================================================
# Credits
# =============================================================================


@router.post("/credits/grant", response_model=CreditBalanceResponse)
def grant_credits(
    payload: CreditGrantRequest,
    actor: Actor = Depends(get_actor),
    service: CreditService = Depends(get_credit_service),
) -> CreditBalanceResponse:
    try:
        balance = service.grant_credits(
            actor, payload.customer_id, payload.credit_type, payload.credits
        )
    except DomainException as exc:
        handle_domain_exception(exc)
    return CreditBalanceResponse.model_validate(balance)


@router.post(
    "/packages", response_model=CreditPackageResponse, status_code=status.HTTP_201_CREATED
)
def create_package(
    payload: CreditPackageCreate,
    actor: Actor = Depends(get_actor),
    service: PackageService = Depends(get_package_service),
) -> CreditPackageResponse:
    try:
        package = service.create_package(
            actor,
            name=payload.name,
            credit_type=payload.credit_type,
            credits=payload.credits,
            price=payload.price,
            currency=payload.currency,
        )
    except DomainException as exc:
        handle_domain_exception(exc)
    return CreditPackageResponse.model_validate(package)
