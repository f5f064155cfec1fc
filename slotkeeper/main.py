# slotkeeper/main.py
"""
FastAPI application entry point.

Run locally with ``uvicorn slotkeeper.main:app --reload``.
"""

from contextlib import asynccontextmanager
import logging
from typing import AsyncGenerator

from fastapi import APIRouter, FastAPI

from . import __version__
from .core.config import settings
from .errors import register_error_handlers
from .routes.v1 import admin as admin_v1
from .routes.v1 import availability as availability_v1
from .routes.v1 import health as health_v1
from .routes.v1 import payments as payments_v1
from .routes.v1 import reaper as reaper_v1
from .routes.v1 import reservations as reservations_v1
from .routes.v1 import teacher as teacher_v1
from .routes.v1 import webhooks_checkout as webhooks_checkout_v1

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def app_lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    logger.info(
        "Starting slotkeeper %s (environment=%s, hold timeout=%sm, reaper cutoff=%sm)",
        __version__,
        settings.environment,
        settings.hold_timeout_minutes,
        settings.reaper_cutoff_minutes,
    )
    if not settings.checkout_webhook_secret.get_secret_value():
        logger.warning("CHECKOUT_WEBHOOK_SECRET is not set; checkout webhooks will be rejected")
    if not settings.reaper_secret.get_secret_value():
        logger.warning("REAPER_SECRET is not set; the /reap endpoint is disabled")
    yield
    logger.info("Shutting down slotkeeper")


app = FastAPI(
    title="Slotkeeper API",
    description="Slot reservations with manual, checkout and credit payment reconciliation",
    version=__version__,
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=app_lifespan,
)
register_error_handlers(app)

api_v1 = APIRouter(prefix="/api/v1")
api_v1.include_router(availability_v1.router, prefix="/availability")
api_v1.include_router(reservations_v1.router, prefix="/reservations")
api_v1.include_router(payments_v1.router, prefix="/payments")
api_v1.include_router(admin_v1.router, prefix="/admin")
api_v1.include_router(teacher_v1.router, prefix="/teacher")
api_v1.include_router(webhooks_checkout_v1.router, prefix="/webhooks/checkout")
api_v1.include_router(reaper_v1.router, prefix="/reap")
api_v1.include_router(health_v1.router)

app.include_router(api_v1)
