"""
FastAPI application factory and configuration.

This module creates the FastAPI application instance,
configures exception handlers, and lifespan events.
"""

import asyncio
import contextlib
import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from datetime import timedelta

from fastapi import FastAPI, Request
from psycopg_pool import ConnectionPool

from src.adapters.repository.postgres import PostgresConsumedTokenStore, run_migrations
from src.api.dependencies import build_registration_workflow, get_auth_config, get_notifier
from src.api.errors import register_error_handlers
from src.api.v1 import router as v1_router
from src.config.settings import Settings, get_settings

logger = logging.getLogger(__name__)

# OpenAPI tags for documentation grouping
tags_metadata = [
    {
        "name": "v1",
        "description": "Token lifecycle API v1 - Registration, sessions, password reset, "
        "email verification and user administration",
    },
    {"name": "auth", "description": "Multi-step account workflows driven by typed tokens"},
    {"name": "users", "description": "User administration (bearer access token required)"},
]


def reap_once(pool: ConnectionPool, settings: Settings) -> int:
    """Delete stale ghost registrations and expired consumed-token ids."""
    workflow = build_registration_workflow(pool)
    deleted = workflow.reap_pending(
        timedelta(seconds=settings.pending_registration_max_age_seconds)
    )
    if workflow.token_ledger is not None:
        PostgresConsumedTokenStore(pool).purge_expired()
    return deleted


async def _reap_periodically(pool: ConnectionPool, settings: Settings) -> None:
    while True:
        await asyncio.sleep(settings.pending_reap_interval_seconds)
        try:
            await asyncio.to_thread(reap_once, pool, settings)
        except Exception:
            logger.exception("Pending registration reaper failed")


def start_reaper(pool: ConnectionPool, settings: Settings) -> asyncio.Task | None:
    """Schedule the periodic reaper, or return None when the interval is 0."""
    if settings.pending_reap_interval_seconds <= 0:
        logger.info("Pending registration reaper disabled")
        return None
    logger.info("Pending registration reaper every %ds", settings.pending_reap_interval_seconds)
    return asyncio.create_task(_reap_periodically(pool, settings))


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    FastAPI lifespan context manager.

    Manages application startup and shutdown:
    - Validates key material (missing secrets abort startup)
    - Creates database connection pool on startup
    - Runs migrations on startup
    - Starts the pending registration reaper
    - Stops the reaper, closes the pool and drains the notifier on shutdown
    """
    settings = get_settings()

    logger.info("Starting application...")
    get_auth_config()

    logger.info("Connecting to database...")

    # Create connection pool with explicit sizing
    pool = ConnectionPool(
        conninfo=settings.database_url,
        min_size=settings.pool_min_size,
        max_size=settings.pool_max_size,
    )

    # Run migrations
    logger.info("Running database migrations...")
    run_migrations(pool)

    # Store pool in app state for dependency injection
    app.state.pool = pool

    reaper = start_reaper(pool, settings)

    logger.info("Application startup complete")

    yield

    # Shutdown
    logger.info("Shutting down application...")
    if reaper is not None:
        reaper.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await reaper
    pool.close()
    logger.info("Database connection pool closed")
    get_notifier().shutdown()
    logger.info("Notifier stopped")


app = FastAPI(
    title="ghostkey",
    description="Token lifecycle API - Ghost registration, sessions, password reset "
    "and email verification without persisting unconfirmed state",
    version="0.1.0",
    openapi_tags=tags_metadata,
    lifespan=lifespan,
)

register_error_handlers(app)

# Include v1 API routes
app.include_router(v1_router, prefix="/v1")


@app.get("/health")
async def health_check(request: Request) -> dict[str, str]:
    """
    Health check endpoint with database validation.

    Returns 200 OK if application and database are healthy.
    Raises exception if database connection fails.
    """
    # Validate database connectivity
    pool = request.app.state.pool
    with pool.connection() as conn:
        conn.execute("SELECT 1")

    return {"status": "healthy"}
