"""Availability response DTOs."""

from typing import List

from pydantic import Field

from ._strict_base import StrictModel


class SlotResponse(StrictModel):
    start_time: str = Field(..., description="HH:MM", examples=["08:15"])
    end_time: str = Field(..., description="HH:MM", examples=["08:55"])


class AvailabilityResponse(StrictModel):
    resource_id: str
    date: str = Field(..., description="Requested date as sent; unparseable dates list no slots")
    slots: List[SlotResponse]
