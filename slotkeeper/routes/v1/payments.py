# slotkeeper/routes/v1/payments.py
"""
Payment routes - API v1

Customer side of the three payment rails plus credit packages.

Endpoints:
    POST /reservations/{id}/manual-report   → "I have paid" (manual rail)
    POST /reservations/{id}/credits         → Pay with one prepaid credit
    POST /reservations/{id}/checkout        → Start a hosted checkout session
    POST /reservations/{id}/checkout/poll   → Ask the provider for the order status
    GET /packages                           → Active credit packages
    POST /packages/{package_id}/purchase    → Buy a credit package via checkout
    GET /credits                            → Caller's credit balances
"""

import asyncio
import logging
from typing import List, NoReturn

from fastapi import APIRouter, Depends, HTTPException, Path, status

from ...api.dependencies import (
    get_actor,
    get_credit_service,
    get_package_service,
    get_payment_reconciliation_service,
)
from ...core.exceptions import DomainException, ValidationException
from ...core.permissions import Actor
from ...core.ulid_helper import ULID_PATH_PATTERN
from ...schemas.payment import (
    CheckoutSessionResponse,
    CreditBalanceResponse,
    CreditPackageResponse,
    PackageCheckoutResponse,
    ReconciliationResponse,
)
from ...services.credit_service import CreditService
from ...services.package_service import PackageService
from ...services.payment_reconciliation_service import (
    PaymentReconciliationService,
    ReconciliationResult,
)

logger = logging.getLogger(__name__)

router = APIRouter(tags=["payments"])


def handle_domain_exception(exc: DomainException) -> NoReturn:
    """Convert domain exceptions to HTTP exceptions."""
    if hasattr(exc, "to_http_exception"):
        raise exc.to_http_exception()
    raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(exc))


def to_response(result: ReconciliationResult) -> ReconciliationResponse:
    return ReconciliationResponse(
        outcome=result.outcome.value,
        subject_type=result.subject_type,
        subject_id=result.subject_id,
        payment_status=result.payment_status,
        reason=result.reason,
    )


@router.post("/reservations/{reservation_id}/manual-report", response_model=ReconciliationResponse)
def report_manual_payment(
    reservation_id: str = Path(..., pattern=ULID_PATH_PATTERN),
    actor: Actor = Depends(get_actor),
    service: PaymentReconciliationService = Depends(get_payment_reconciliation_service),
) -> ReconciliationResponse:
    try:
        result = service.report_manual_payment(actor, reservation_id)
    except DomainException as exc:
        handle_domain_exception(exc)
    return to_response(result)


@router.post(
    "/reservations/{reservation_id}/credits",
    response_model=ReconciliationResponse,
    responses={422: {"description": "Insufficient credits"}},
)
def pay_with_credits(
    reservation_id: str = Path(..., pattern=ULID_PATH_PATTERN),
    actor: Actor = Depends(get_actor),
    service: PaymentReconciliationService = Depends(get_payment_reconciliation_service),
) -> ReconciliationResponse:
    try:
        result = service.pay_with_credits(actor, reservation_id)
    except DomainException as exc:
        handle_domain_exception(exc)
    return to_response(result)


@router.post(
    "/reservations/{reservation_id}/checkout",
    response_model=CheckoutSessionResponse,
    status_code=status.HTTP_201_CREATED,
)
async def start_checkout(
    reservation_id: str = Path(..., pattern=ULID_PATH_PATTERN),
    actor: Actor = Depends(get_actor),
    service: PaymentReconciliationService = Depends(get_payment_reconciliation_service),
) -> CheckoutSessionResponse:
    try:
        session = await asyncio.to_thread(service.start_checkout, actor, reservation_id)
    except DomainException as exc:
        handle_domain_exception(exc)
    return CheckoutSessionResponse(
        reservation_id=session.reservation_id,
        order_id=session.order_id,
        payment_url=session.payment_url,
    )


@router.post("/reservations/{reservation_id}/checkout/poll", response_model=ReconciliationResponse)
async def poll_checkout(
    reservation_id: str = Path(..., pattern=ULID_PATH_PATTERN),
    actor: Actor = Depends(get_actor),
    service: PaymentReconciliationService = Depends(get_payment_reconciliation_service),
) -> ReconciliationResponse:
    try:
        result = await asyncio.to_thread(service.poll_checkout, actor, reservation_id)
    except DomainException as exc:
        handle_domain_exception(exc)
    return to_response(result)


@router.get("/packages", response_model=List[CreditPackageResponse])
def list_packages(
    service: PackageService = Depends(get_package_service),
) -> List[CreditPackageResponse]:
    return [CreditPackageResponse.model_validate(package) for package in service.list_packages()]


@router.post(
    "/packages/{package_id}/purchase",
    response_model=PackageCheckoutResponse,
    status_code=status.HTTP_201_CREATED,
)
async def purchase_package(
    package_id: str = Path(..., pattern=ULID_PATH_PATTERN),
    actor: Actor = Depends(get_actor),
    service: PackageService = Depends(get_package_service),
) -> PackageCheckoutResponse:
    try:
        checkout = await asyncio.to_thread(service.purchase_package, actor, package_id)
    except DomainException as exc:
        handle_domain_exception(exc)
    return PackageCheckoutResponse(
        purchase_id=checkout.purchase_id,
        invoice_number=checkout.invoice_number,
        order_id=checkout.order_id,
        payment_url=checkout.payment_url,
    )


@router.get("/credits", response_model=List[CreditBalanceResponse])
def get_my_credits(
    actor: Actor = Depends(get_actor),
    service: CreditService = Depends(get_credit_service),
) -> List[CreditBalanceResponse]:
    if actor.user_id is None:
        handle_domain_exception(ValidationException("Credit balances require a customer account"))
    return [CreditBalanceResponse.model_validate(b) for b in service.get_balances(actor.user_id)]
