# slotkeeper/routes/v1/reaper.py
"""
Stale-hold reaper endpoint (v1).

Called by an external scheduler with a shared bearer secret; the Celery beat
task runs the same sweep in-process.

Endpoints:
    POST /?minutes=N → Cancel unpaid holds older than N minutes
    GET /?minutes=N  → Counts of live and stale holds, no changes
"""

import logging
from typing import NoReturn, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status

from ...api.dependencies import get_hold_reaper_service, require_reaper_secret
from ...core.exceptions import DomainException
from ...core.permissions import Actor
from ...schemas.reaper import HoldStatsResponse, ReapResponse
from ...services.hold_reaper_service import MAX_CUTOFF_MINUTES, HoldReaperService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["reaper"], dependencies=[Depends(require_reaper_secret)])


def handle_domain_exception(exc: DomainException) -> NoReturn:
    """Convert domain exceptions to HTTP exceptions."""
    if hasattr(exc, "to_http_exception"):
        raise exc.to_http_exception()
    raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(exc))


@router.post("", response_model=ReapResponse)
def release_stale_holds(
    minutes: Optional[int] = Query(default=None, ge=1, le=MAX_CUTOFF_MINUTES),
    service: HoldReaperService = Depends(get_hold_reaper_service),
) -> ReapResponse:
    try:
        counts = service.release_stale_holds(Actor.system(), minutes=minutes)
    except DomainException as exc:
        handle_domain_exception(exc)
    return ReapResponse(
        cutoff_minutes=minutes or service.default_cutoff_minutes,
        deleted=counts,
    )


@router.get("", response_model=HoldStatsResponse)
def hold_statistics(
    minutes: Optional[int] = Query(default=None, ge=1, le=MAX_CUTOFF_MINUTES),
    service: HoldReaperService = Depends(get_hold_reaper_service),
) -> HoldStatsResponse:
    try:
        stats = service.hold_statistics(minutes=minutes)
    except DomainException as exc:
        handle_domain_exception(exc)
    return HoldStatsResponse(
        cutoff_minutes=minutes or service.default_cutoff_minutes,
        active=stats["active"],
        stale=stats["stale"],
    )
