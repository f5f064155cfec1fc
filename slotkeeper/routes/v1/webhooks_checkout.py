# slotkeeper/routes/v1/webhooks_checkout.py
"""
Checkout provider webhook endpoint (v1).

The provider retries until it gets a 2xx, so every accepted delivery answers
2xx: 202 when the payment state changed (or had already changed), 200 when the
delivery was a no-op. A bad signature answers 401, a malformed body 400.
"""

import logging
from typing import NoReturn, Optional

from fastapi import APIRouter, Depends, Header, HTTPException, Request, Response, status

from ...api.dependencies import get_payment_reconciliation_service
from ...core.exceptions import DomainException
from ...integrations.checkout_client import SIGNATURE_HEADER
from ...schemas.payment import WebhookAckResponse
from ...services.payment_reconciliation_service import (
    PaymentReconciliationService,
    ReconciliationOutcome,
)

logger = logging.getLogger(__name__)

router = APIRouter(tags=["webhooks"])


def handle_domain_exception(exc: DomainException) -> NoReturn:
    """Convert domain exceptions to HTTP exceptions."""
    if hasattr(exc, "to_http_exception"):
        raise exc.to_http_exception()
    raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(exc))


async def read_raw_body(request: Request) -> bytes:
    """Raw request bytes; the signature is computed over them, not the parsed JSON."""
    return await request.body()


@router.post(
    "",
    response_model=WebhookAckResponse,
    status_code=status.HTTP_202_ACCEPTED,
    responses={
        200: {"description": "Delivery accepted, no state change"},
        400: {"description": "Malformed payload"},
        401: {"description": "Invalid signature"},
    },
)
def handle_checkout_webhook(
    response: Response,
    raw_body: bytes = Depends(read_raw_body),
    signature: Optional[str] = Header(default=None, alias=SIGNATURE_HEADER),
    service: PaymentReconciliationService = Depends(get_payment_reconciliation_service),
) -> WebhookAckResponse:
    """Process checkout order status notifications."""
    try:
        result = service.ingest_checkout_webhook(raw_body, signature)
    except DomainException as exc:
        logger.warning("Rejected checkout webhook: %s", exc.message)
        handle_domain_exception(exc)

    if result.outcome == ReconciliationOutcome.IGNORED:
        response.status_code = status.HTTP_200_OK
    return WebhookAckResponse(outcome=result.outcome.value, reason=result.reason)
