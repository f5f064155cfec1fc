"""Repository helpers for the webhook event ledger."""

from __future__ import annotations

from datetime import datetime
import logging
from typing import Any, cast

from sqlalchemy.orm import Session

from slotkeeper.models.webhook_event import WebhookEvent
from slotkeeper.repositories.base_repository import BaseRepository

logger = logging.getLogger(__name__)


class WebhookEventRepository(BaseRepository[WebhookEvent]):
    """Repository for webhook ledger queries."""

    def __init__(self, db: Session) -> None:
        super().__init__(db, WebhookEvent)

    def find_by_source_and_event_id(self, source: str, event_id: str) -> WebhookEvent | None:
        """Find webhook event by source and external event ID."""
        query = self._build_query().filter(
            WebhookEvent.source == source, WebhookEvent.event_id == event_id
        )
        return cast(WebhookEvent | None, self._execute_first(query))

    def record_received(
        self,
        *,
        source: str,
        event_id: str,
        event_type: str,
        payload: dict[str, Any],
        received_at: datetime,
    ) -> WebhookEvent:
        return self.create(
            source=source,
            event_id=event_id,
            event_type=event_type,
            payload=payload,
            status="received",
            received_at=received_at,
        )

    def mark_processed(
        self,
        event: WebhookEvent,
        *,
        outcome: str,
        processed_at: datetime,
        related_entity_type: str | None = None,
        related_entity_id: str | None = None,
    ) -> WebhookEvent:
        return self.update(
            event,
            status="processed",
            outcome=outcome,
            processed_at=processed_at,
            related_entity_type=related_entity_type,
            related_entity_id=related_entity_id,
        )
