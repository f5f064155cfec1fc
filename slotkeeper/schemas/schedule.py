"""Admin schedule DTOs."""

from datetime import date, time
from typing import List, Optional

from pydantic import Field, model_validator

from ._strict_base import MoneyAmount, MoneyInput, StrictModel, StrictRequestModel


class ResourceCreate(StrictRequestModel):
    name: str = Field(..., min_length=1, max_length=255)
    hourly_rate: MoneyInput
    max_participants: int = Field(default=1, ge=1)
    currency: Optional[str] = Field(default=None, min_length=3, max_length=3)


class ResourceResponse(StrictModel):
    id: str
    name: str
    hourly_rate: MoneyAmount
    currency: str
    max_participants: int
    is_active: bool


class TemplateWindow(StrictRequestModel):
    day_of_week: int = Field(..., ge=0, le=6, description="0=Monday .. 6=Sunday")
    start_time: time
    end_time: time


class WeeklyTemplateUpdate(StrictRequestModel):
    windows: List[TemplateWindow]


class TemplateWindowResponse(StrictModel):
    id: str
    day_of_week: int
    start_time: time
    end_time: time


class BlockedRangeCreate(StrictRequestModel):
    date: date
    start_time: Optional[time] = None
    end_time: Optional[time] = None
    reason: Optional[str] = Field(default=None, max_length=500)

    @model_validator(mode="after")
    def _both_or_neither(self) -> "BlockedRangeCreate":
        if (self.start_time is None) != (self.end_time is None):
            raise ValueError("Give both start_time and end_time, or neither for an all-day block")
        return self


class BlockedRangeResponse(StrictModel):
    id: str
    resource_id: str
    date: date
    is_all_day: bool
    start_time: Optional[time] = None
    end_time: Optional[time] = None
    reason: Optional[str] = None


class ExtraSlotCreate(StrictRequestModel):
    date: date
    start_time: time
    end_time: time
    reason: Optional[str] = Field(default=None, max_length=500)


class ExtraSlotResponse(StrictModel):
    id: str
    resource_id: str
    date: date
    start_time: time
    end_time: time
    reason: Optional[str] = None
