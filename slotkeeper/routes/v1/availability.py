# slotkeeper/routes/v1/availability.py
"""
Availability routes - API v1

Public slot listing for one resource on one calendar date.

Endpoints:
    GET /           → Available slots for ?resource_id=&date=
"""

from datetime import date
import logging
from typing import NoReturn

from fastapi import APIRouter, Depends, HTTPException, Query, status

from ...api.dependencies import get_actor, get_availability_service
from ...core.exceptions import DomainException
from ...core.permissions import Actor
from ...core.time_ranges import format_hhmm
from ...schemas.availability import AvailabilityResponse, SlotResponse
from ...services.availability_service import AvailabilityService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["availability"])


def handle_domain_exception(exc: DomainException) -> NoReturn:
    """Convert domain exceptions to HTTP exceptions."""
    if hasattr(exc, "to_http_exception"):
        raise exc.to_http_exception()
    raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(exc))


@router.get("", response_model=AvailabilityResponse)
def get_availability(
    resource_id: str = Query(..., min_length=1),
    raw_date: str = Query(..., alias="date", description="YYYY-MM-DD"),
    actor: Actor = Depends(get_actor),
    service: AvailabilityService = Depends(get_availability_service),
) -> AvailabilityResponse:
    try:
        on_date = date.fromisoformat(raw_date)
    except ValueError:
        logger.debug("Availability requested for invalid date %r", raw_date)
        return AvailabilityResponse(resource_id=resource_id, date=raw_date, slots=[])

    try:
        slots = service.get_available_slots(resource_id, on_date, actor)
    except DomainException as exc:
        handle_domain_exception(exc)
    return AvailabilityResponse(
        resource_id=resource_id,
        date=on_date.isoformat(),
        slots=[
            SlotResponse(
                start_time=format_hhmm(slot.start_time), end_time=format_hhmm(slot.end_time)
            )
            for slot in slots
        ],
    )
