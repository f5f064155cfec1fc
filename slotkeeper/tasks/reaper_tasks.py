# slotkeeper/tasks/reaper_tasks.py
"""
Celery task for the stale-hold sweep.

Safe to run concurrently with the HTTP trigger: each hold is locked and
re-checked before it is cancelled, so overlapping sweeps release it once.
"""

import logging
from typing import Any, Callable, Dict, Optional, ParamSpec, Protocol, TypeVar, cast

from celery.result import AsyncResult
from sqlalchemy.orm import Session

from ..core.permissions import Actor
from ..services.hold_reaper_service import HoldReaperService
from .celery_app import BaseTask, celery_app

P = ParamSpec("P")
R = TypeVar("R", covariant=True)

logger = logging.getLogger(__name__)


class TaskWrapper(Protocol[P, R]):
    def __call__(self, *args: P.args, **kwargs: P.kwargs) -> R:
        ...

    delay: Callable[..., AsyncResult]
    apply_async: Callable[..., AsyncResult]


def typed_task(
    *task_args: Any, **task_kwargs: Any
) -> Callable[[Callable[P, R]], TaskWrapper[P, R]]:
    """Return a typed Celery task decorator for mypy."""

    return cast(
        Callable[[Callable[P, R]], TaskWrapper[P, R]],
        celery_app.task(*task_args, **task_kwargs),
    )


@typed_task(base=BaseTask, name="slotkeeper.tasks.reaper_tasks.release_stale_holds")
def release_stale_holds(minutes: Optional[int] = None) -> Dict[str, int]:
    """Cancel unpaid holds older than the cutoff and return per-status counts."""
    from ..database import SessionLocal

    db: Session = SessionLocal()
    try:
        counts = HoldReaperService(db).release_stale_holds(Actor.system(), minutes=minutes)
        if counts["total"]:
            logger.info("Reaper task released %s stale holds", counts["total"])
        return counts
    finally:
        db.close()
