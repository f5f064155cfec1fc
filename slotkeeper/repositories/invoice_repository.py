# slotkeeper/repositories/invoice_repository.py
"""Invoice persistence and the invoice number counter."""

from typing import Optional

from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from slotkeeper.core.exceptions import RepositoryException
from slotkeeper.models.invoice import (
    INVOICE_SEQUENCE_NAME,
    INVOICE_SEQUENCE_START,
    Invoice,
    InvoiceSequence,
)
from slotkeeper.repositories.base_repository import BaseRepository


class InvoiceRepository(BaseRepository[Invoice]):
    def __init__(self, db: Session) -> None:
        super().__init__(db, Invoice)

    def next_sequence_value(self) -> int:
        """
        Take the next value from the atomic invoice counter.

        PostgreSQL uses a native sequence; other dialects increment a locked
        counter row. Values are never reused, gaps are allowed.
        """
        try:
            if self.dialect_name == "postgresql":
                value = self.db.execute(text(f"SELECT nextval('{INVOICE_SEQUENCE_NAME}')")).scalar()
                return int(value)

            counter = (
                self.db.query(InvoiceSequence)
                .filter(InvoiceSequence.name == INVOICE_SEQUENCE_NAME)
                .populate_existing()
                .with_for_update()
                .first()
            )
            if counter is None:
                counter = InvoiceSequence(
                    name=INVOICE_SEQUENCE_NAME, last_value=INVOICE_SEQUENCE_START
                )
                self.db.add(counter)
            else:
                counter.last_value = counter.last_value + 1
            self.db.flush()
            return int(counter.last_value)
        except SQLAlchemyError as exc:
            self.logger.error("Failed to advance invoice sequence: %s", exc)
            raise RepositoryException(f"Failed to advance invoice sequence: {exc}") from exc

    def get_by_reservation_id(
        self, reservation_id: str, *, for_update: bool = False
    ) -> Optional[Invoice]:
        query = self._build_query().filter(Invoice.reservation_id == reservation_id)
        if for_update:
            query = query.populate_existing().with_for_update()
        return self._execute_first(query)

    def get_by_package_purchase_id(
        self, purchase_id: str, *, for_update: bool = False
    ) -> Optional[Invoice]:
        query = self._build_query().filter(Invoice.package_purchase_id == purchase_id)
        if for_update:
            query = query.populate_existing().with_for_update()
        return self._execute_first(query)
