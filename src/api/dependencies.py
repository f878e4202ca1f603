"""
FastAPI dependencies - Dependency injection factories.

This module provides Depends() factories for injecting
domain services and infrastructure adapters into routes.
Long-lived objects (pool, gate, issuer, notifier) are created during
the app lifespan and stored in app.state.
"""

from fastapi import Depends, Header, HTTPException, Request, status
from psycopg_pool import ConnectionPool

from src.adapters.repository.postgres import PostgresRegistrationStore, conflict_policy_for
from src.config.settings import get_settings
from src.domain.ports import CredentialIssuer, Notifier
from src.domain.registration import RegistrationWorkflow
from src.domain.verification import VerificationGate


def get_pool(request: Request) -> ConnectionPool:
    """
    Get connection pool from app state.

    The pool is created during app lifespan startup and stored in app.state.
    """
    return request.app.state.pool


def get_store(request: Request) -> PostgresRegistrationStore:
    """Create store with connection pool and the environment's conflict policy."""
    pool = get_pool(request)
    return PostgresRegistrationStore(pool, conflict_policy_for(get_settings().environment))


def get_verification_gate(request: Request) -> VerificationGate:
    return request.app.state.gate


def get_issuer(request: Request) -> CredentialIssuer:
    return request.app.state.issuer


def get_notifier(request: Request) -> Notifier:
    return request.app.state.notifier


def get_registration_workflow(request: Request) -> RegistrationWorkflow:
    """
    Create registration workflow with injected dependencies.

    Wires together the store, issuance client and notifier.
    """
    return RegistrationWorkflow(
        store=get_store(request),
        issuer=get_issuer(request),
        notifier=get_notifier(request),
    )


def require_client_header(
    x_requested_with: str | None = Header(default=None),
) -> None:
    """
    Reject requests that do not carry the X-Requested-With header.

    Browsers cannot add this header to cross-site form posts, so its
    presence shows the request came from the onboarding web client.
    """
    if not x_requested_with:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Security check failed: missing CSRF header",
        )


def enforce_ip_rate_limit(
    request: Request,
    gate: VerificationGate = Depends(get_verification_gate),
) -> None:
    """Apply the per-address token bucket of the verification gate."""
    address = request.client.host if request.client else "unknown"
    if not gate.allow(address):
        raise HTTPException(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            detail="Too many requests",
        )
