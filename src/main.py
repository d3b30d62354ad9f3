"""FastAPI application entry point — wires everything together.

Usage:
    python -m src.main

Serves the onboarding API for the store configured in the environment.
"""

from __future__ import annotations

import logging
import sys
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import structlog
import uvicorn
from fastapi import FastAPI

from src.config import settings
from src.db.engine import redis_lifespan
from src.db.settings_store import AppSettingsStore
from src.diagnostics.audit import log_on_event
from src.diagnostics.events import emit, start_event_system, stop_event_system, subscribe, unsubscribe
from src.integrations.woocommerce.client import WooCommerceClient
from src.integrations.woocommerce.gateway import WooCommerceStoreGateway
from src.onboarding.router import router as onboarding_router
from src.onboarding.service import PaymentsOnboardingService
from src.schemas.events import EventType, SystemEvent

# ── Logging setup ────────────────────────────────────────────────────

logging.basicConfig(
    level=getattr(logging, settings.log_level),
    format="%(asctime)s %(levelname)-8s %(name)s — %(message)s",
    stream=sys.stdout,
)
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.dev.ConsoleRenderer(),
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
)

logger = logging.getLogger(__name__)

# ── FastAPI lifespan ─────────────────────────────────────────────────


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application startup and shutdown lifecycle."""
    logger.info("Starting onboarding service (env=%s, site=%s)", settings.environment, settings.store.store_site_id)

    # 1. Redis (persisted app settings)
    async with redis_lifespan() as redis:
        logger.info("Redis connected")

        # 2. Event system
        await start_event_system()
        subscribe(log_on_event)
        logger.info("Event system started with log subscriber")

        # 3. Store gateway + onboarding service
        client = WooCommerceClient()
        gateway = WooCommerceStoreGateway(client, AppSettingsStore(redis))
        app.state.onboarding_service = PaymentsOnboardingService(gateway, settings.store.store_site_id)
        logger.info("Onboarding service ready for %s", settings.store.store_api_url)

        await emit(SystemEvent(
            event_type=EventType.SYSTEM_STARTUP,
            site_id=settings.store.store_site_id,
            source_module="main",
        ))

        try:
            yield
        finally:
            logger.info("Shutting down onboarding service...")

            await emit(SystemEvent(
                event_type=EventType.SYSTEM_SHUTDOWN,
                site_id=settings.store.store_site_id,
                source_module="main",
            ))

            await client.close()
            logger.info("Store client closed")

            await stop_event_system()
            unsubscribe(log_on_event)
            logger.info("Event system stopped")

    logger.info("Onboarding service shutdown complete")


# ── FastAPI app ──────────────────────────────────────────────────────

app = FastAPI(
    title="Payments Onboarding API",
    description="In-person payments readiness for a WooCommerce store",
    version="0.1.0",
    lifespan=lifespan,
)
app.include_router(onboarding_router)


@app.get("/health")
async def health_check() -> dict[str, str]:
    """Health check endpoint."""
    return {
        "status": "ok",
        "environment": settings.environment,
        "store": settings.store.store_api_url,
    }


# ── Entry point ──────────────────────────────────────────────────────

if __name__ == "__main__":
    uvicorn.run(
        "src.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.environment == "development",
        log_level=settings.log_level.lower(),
    )
