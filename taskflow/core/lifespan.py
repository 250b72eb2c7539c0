"""Application lifespan: startup and shutdown.

Single place for all startup/shutdown logic (SRP). Used by main.py;
no business logic here, only wiring of infrastructure (cache backend,
telemetry, background evaluations, DB engine dispose).
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI

from taskflow.core.config import get_settings
from taskflow.shared.telemetry.logging import setup_logging

logger = logging.getLogger(__name__)


@asynccontextmanager
async def create_lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Run startup then yield; on exit run shutdown.

    Startup order: cache backend (Redis when configured, else in-memory),
    telemetry (if enabled). Shutdown order: pending background evaluations,
    cache disconnect, telemetry shutdown, SQL engine dispose.
    """
    settings = get_settings()

    # ---- Startup ----
    setup_logging(settings)

    if settings.cache_backend == "redis":
        from taskflow.infrastructure.cache.redis_cache import RedisCacheBackend

        cache_backend = RedisCacheBackend(settings=settings)
        await cache_backend.connect()
    else:
        from taskflow.infrastructure.cache.memory_cache import InMemoryCacheBackend

        cache_backend = InMemoryCacheBackend()
    app.state.cache_backend = cache_backend
    app.state.workflow_services = None

    telemetry = None
    if settings.telemetry_enabled:
        from taskflow.shared.telemetry.telemetry import TelemetryConfig

        telemetry = TelemetryConfig.from_settings(settings)
        if telemetry.setup_telemetry() is not None:
            telemetry.instrument_fastapi(app)

    yield

    # ---- Shutdown ----
    from taskflow.shared.utils.background import drain_background_tasks

    await drain_background_tasks()
    logger.info("Background workflow evaluations finished")

    disconnect = getattr(app.state.cache_backend, "disconnect", None)
    if disconnect is not None:
        await disconnect()
        logger.info("Cache disconnected")

    if telemetry is not None:
        telemetry.shutdown()

    from taskflow.infrastructure.persistence.database import dispose_engine

    await dispose_engine()
