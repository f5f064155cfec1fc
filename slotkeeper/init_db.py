"""
Create tables (and the PostgreSQL invoice sequence) from the ORM metadata.

Usage:
    python -m slotkeeper.init_db
"""

import logging
from typing import Optional

from sqlalchemy import text
from sqlalchemy.engine import Engine

from slotkeeper.database import Base, engine as default_engine
import slotkeeper.models  # noqa: F401
from slotkeeper.models.invoice import INVOICE_SEQUENCE_NAME, INVOICE_SEQUENCE_START

logger = logging.getLogger(__name__)


def init_db(engine: Optional[Engine] = None) -> None:
    target = engine or default_engine
    Base.metadata.create_all(target)
    if target.dialect.name == "postgresql":
        with target.begin() as conn:
            conn.execute(
                text(
                    f"CREATE SEQUENCE IF NOT EXISTS {INVOICE_SEQUENCE_NAME} "
                    f"START WITH {INVOICE_SEQUENCE_START}"
                )
            )
    logger.info("Database schema ready on %s", target.dialect.name)


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    init_db()
