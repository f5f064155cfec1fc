"""Reservation request/response DTOs."""

from datetime import date, datetime, time
from typing import List, Optional

from pydantic import EmailStr, Field, model_validator

from ..core.enums import PaymentMethod
from ._strict_base import MoneyAmount, StrictModel, StrictRequestModel


class GuestContact(StrictRequestModel):
    name: str = Field(..., min_length=1, max_length=255)
    email: EmailStr
    phone: Optional[str] = Field(default=None, max_length=50)


class ReservationCreate(StrictRequestModel):
    resource_id: str = Field(..., min_length=26, max_length=26)
    date: date
    start_time: time
    end_time: time
    participant_count: int = Field(default=1, ge=1)
    payment_method: Optional[PaymentMethod] = None
    credit_type: str = Field(default="lesson", min_length=1, max_length=50)
    guest: Optional[GuestContact] = None

    @model_validator(mode="after")
    def _check_range(self) -> "ReservationCreate":
        if self.start_time >= self.end_time:
            raise ValueError("start_time must be before end_time")
        return self


class ReservationMove(StrictRequestModel):
    date: date
    start_time: time
    end_time: time

    @model_validator(mode="after")
    def _check_range(self) -> "ReservationMove":
        if self.start_time >= self.end_time:
            raise ValueError("start_time must be before end_time")
        return self


class CancellationRequest(StrictRequestModel):
    reason: Optional[str] = Field(default=None, max_length=500)


class BulkUnbookRequest(StrictRequestModel):
    reservation_ids: List[str] = Field(..., min_length=1, max_length=100)
    reason: Optional[str] = Field(default=None, max_length=500)


class ReservationCreatedResponse(StrictModel):
    reservation_id: str
    invoice_id: str
    invoice_number: str
    status: str
    payment_status: str
    amount: MoneyAmount
    currency: str


class ReservationResponse(StrictModel):
    id: str
    resource_id: str
    customer_id: Optional[str] = None
    booking_date: date
    start_time: time
    end_time: time
    duration_minutes: int
    participant_count: int
    credit_type: str
    amount: MoneyAmount
    currency: str
    status: str
    payment_status: str
    payment_method: Optional[str] = None
    created_at: datetime
    confirmed_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    cancelled_at: Optional[datetime] = None
    cancellation_reason: Optional[str] = None


class UnbookResultResponse(StrictModel):
    reservation_id: str
    success: bool
    credit_refunded: bool = False
    error: Optional[str] = None


class BulkUnbookResponse(StrictModel):
    results: List[UnbookResultResponse]
    successful: int
    failed: int
