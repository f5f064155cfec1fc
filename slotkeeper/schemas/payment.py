"""Payment, credit and package DTOs."""

from typing import Optional

from pydantic import Field

from ._strict_base import MoneyAmount, MoneyInput, StrictModel, StrictRequestModel


class ReconciliationResponse(StrictModel):
    outcome: str
    subject_type: Optional[str] = None
    subject_id: Optional[str] = None
    payment_status: Optional[str] = None
    reason: Optional[str] = None


class DeclinePaymentRequest(StrictRequestModel):
    reason: Optional[str] = Field(default=None, max_length=500)


class CheckoutSessionResponse(StrictModel):
    reservation_id: str
    order_id: str
    payment_url: Optional[str] = None


class PackageCheckoutResponse(StrictModel):
    purchase_id: str
    invoice_number: str
    order_id: str
    payment_url: Optional[str] = None


class CreditGrantRequest(StrictRequestModel):
    customer_id: str = Field(..., min_length=1, max_length=26)
    credit_type: str = Field(default="lesson", min_length=1, max_length=50)
    credits: int = Field(..., ge=1, le=1000)


class CreditBalanceResponse(StrictModel):
    customer_id: str
    credit_type: str
    credits_remaining: int
    credits_total: int


class CreditPackageCreate(StrictRequestModel):
    name: str = Field(..., min_length=1, max_length=255)
    credit_type: str = Field(default="lesson", min_length=1, max_length=50)
    credits: int = Field(..., ge=1)
    price: MoneyInput
    currency: Optional[str] = Field(default=None, min_length=3, max_length=3)


class CreditPackageResponse(StrictModel):
    id: str
    name: str
    credit_type: str
    credits: int
    price: MoneyAmount
    currency: str


class WebhookAckResponse(StrictModel):
    """Acknowledgement returned to the checkout provider."""

    ok: bool = True
    outcome: str
    reason: Optional[str] = None
