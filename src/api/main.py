"""
FastAPI application factory and configuration.

This module creates the FastAPI application instance,
configures middleware, exception handlers, and lifespan events.
"""

import asyncio
import contextlib
import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from psycopg_pool import ConnectionPool

from src.adapters.issuer.client import IssuanceClient
from src.adapters.repository.postgres import run_migrations
from src.adapters.smtp.console import ConsoleNotifier
from src.adapters.smtp.mailer import SmtpNotifier
from src.api.errors import install_exception_handlers
from src.api.routes import router
from src.config.settings import Settings, get_settings
from src.domain.ports import Notifier
from src.domain.verification import VerificationGate

logger = logging.getLogger(__name__)

# OpenAPI tags for documentation grouping
tags_metadata = [
    {
        "name": "onboarding",
        "description": "Email verification and organization registration with LEAR credential issuance",
    },
]


def build_notifier(settings: Settings) -> Notifier:
    """SMTP delivery when enabled, console logging otherwise."""
    if not settings.smtp_enabled:
        return ConsoleNotifier()
    return SmtpNotifier.from_password_file(
        settings.smtp_password_file,
        host=settings.smtp_host,
        port=settings.smtp_port,
        username=settings.smtp_username,
        use_tls=settings.smtp_tls,
        environment=settings.environment,
        onboard_team_email=settings.onboard_team_email,
        issuer_team_email=settings.issuer_team_email,
        cc_team_email=settings.cc_team_email,
    )


def build_gate(settings: Settings) -> VerificationGate:
    return VerificationGate(
        code_ttl_seconds=settings.code_ttl_seconds,
        email_window_seconds=settings.email_window_seconds,
        email_max_attempts=settings.email_max_attempts,
        ip_rate_per_second=settings.ip_rate_per_second,
        ip_burst=settings.ip_burst,
    )


async def sweep_periodically(gate: VerificationGate, interval_seconds: float) -> None:
    """Sweep expired verification entries until cancelled."""
    while True:
        await asyncio.sleep(interval_seconds)
        gate.sweep()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    FastAPI lifespan context manager.

    Manages application startup and shutdown:
    - Loads the signing key and refuses to start if it does not match the did:key
    - Creates database connection pool and runs migrations
    - Starts the verification sweep task
    - Closes connection pool on shutdown
    """
    settings = get_settings()
    logging.basicConfig(level=settings.log_level)

    logger.info("Starting application (environment=%s)...", settings.environment)

    # IdentityMismatch propagates and aborts startup
    app.state.issuer = IssuanceClient.from_files(
        settings.private_key_file,
        settings.machine_credential_file,
        settings.my_did_key,
        verifier_token_endpoint=settings.verifier_token_endpoint,
        verifier_url=settings.verifier_url,
        credential_issuance_url=settings.issuer_credential_issuance_url,
        timeout=settings.http_timeout_seconds,
    )

    logger.info("Connecting to database...")
    pool = ConnectionPool(
        conninfo=settings.database_url,
        min_size=settings.pool_min_size,
        max_size=settings.pool_max_size,
    )

    logger.info("Running database migrations...")
    run_migrations(pool)

    app.state.pool = pool
    app.state.notifier = build_notifier(settings)
    app.state.gate = build_gate(settings)
    sweeper = asyncio.create_task(
        sweep_periodically(app.state.gate, settings.sweep_interval_seconds)
    )

    logger.info("Application startup complete")

    yield

    # Shutdown
    logger.info("Shutting down application...")
    sweeper.cancel()
    with contextlib.suppress(asyncio.CancelledError):
        await sweeper
    pool.close()
    logger.info("Database connection pool closed")


app = FastAPI(
    title="onboarding",
    description="Organization onboarding with email verification and LEAR credential issuance",
    version="0.1.0",
    openapi_tags=tags_metadata,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["POST", "GET", "OPTIONS", "PUT", "DELETE"],
    allow_headers=["Content-Type", "X-Requested-With", "Authorization"],
)
install_exception_handlers(app)

app.include_router(router, prefix="/api")


@app.get("/health")
def health_check(request: Request) -> dict[str, str]:
    """
    Health check endpoint with database validation.

    Returns 200 OK if application and database are healthy.
    Raises exception if database connection fails.
    """
    pool = request.app.state.pool
    with pool.connection() as conn:
        conn.execute("SELECT 1")

    return {"status": "healthy"}
