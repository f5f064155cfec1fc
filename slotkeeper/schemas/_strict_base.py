"""Schema baselines: strict models and the money field types."""

from decimal import ROUND_HALF_UP, Decimal
from typing import Annotated

from pydantic import BaseModel, ConfigDict, Field, PlainSerializer

CENT = Decimal("0.01")


def _money_str(value: Decimal) -> str:
    return str(value.quantize(CENT, rounding=ROUND_HALF_UP))


# Serialized as "400.00" so clients never see float rounding.
MoneyAmount = Annotated[Decimal, PlainSerializer(_money_str, return_type=str, when_used="json")]
MoneyInput = Annotated[Decimal, Field(ge=0, max_digits=10, decimal_places=2)]


class StrictModel(BaseModel):
    """Response base; reads straight from ORM rows."""

    model_config = ConfigDict(extra="forbid", validate_assignment=True, from_attributes=True)


class StrictRequestModel(StrictModel):
    """Request base; unknown fields are a 422."""

    model_config = ConfigDict(extra="forbid", validate_assignment=True)
