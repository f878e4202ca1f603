"""
API routes - Email verification and registration endpoints.

This module defines the HTTP endpoints:
- POST /api/validate-email - Request an email verification code
- POST /api/verify-code - Check an email verification code
- POST /api/register - Register an organization and issue its credential

Every endpoint requires the X-Requested-With header. Handlers are plain
functions so FastAPI runs them on its thread pool; registration blocks on
the database, the Verifier and the Issuer.
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, status

from src.api.dependencies import (
    enforce_ip_rate_limit,
    get_notifier,
    get_registration_workflow,
    get_verification_gate,
    require_client_header,
)
from src.api.models import (
    APIResponse,
    RegisterRequest,
    ValidateEmailRequest,
    VerifyCodeRequest,
)
from src.domain.exceptions import NotifyError, RateLimited, StoreError, ValidationError
from src.domain.ports import Notifier
from src.domain.registration import RegistrationWorkflow, is_valid_email
from src.domain.verification import VerificationGate

logger = logging.getLogger(__name__)

router = APIRouter(tags=["onboarding"], dependencies=[Depends(require_client_header)])

_ERRORS = {
    400: {"model": APIResponse, "description": "Invalid request"},
    403: {"model": APIResponse, "description": "Missing X-Requested-With header"},
}


@router.post(
    "/validate-email",
    response_model=APIResponse,
    response_model_exclude_none=True,
    dependencies=[Depends(enforce_ip_rate_limit)],
    responses={**_ERRORS, 429: {"model": APIResponse, "description": "Rate limited"}},
    summary="Request an email verification code",
)
def validate_email(
    request_data: ValidateEmailRequest,
    gate: VerificationGate = Depends(get_verification_gate),
    notifier: Notifier = Depends(get_notifier),
) -> APIResponse:
    """
    Issue a 6-digit verification code for an email address.

    At most 3 codes per email every 3 minutes, and a token bucket per
    client address. The code is also handed to the notifier for delivery.
    """
    if not request_data.email or not is_valid_email(request_data.email):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="A valid email is required",
        )

    try:
        code = gate.request_code(request_data.email)
    except RateLimited:
        raise HTTPException(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            detail="Too many requests. Please wait a few minutes.",
        ) from None

    try:
        notifier.send_verification_code(request_data.email, code)
    except NotifyError as exc:
        logger.error("Error sending verification code to %s: %s", request_data.email, exc)

    return APIResponse(
        success=True,
        message="Validation code sent to your email",
        data={"code": code},
    )


@router.post(
    "/verify-code",
    response_model=APIResponse,
    response_model_exclude_none=True,
    responses=_ERRORS,
    summary="Check an email verification code",
)
def verify_code(
    request_data: VerifyCodeRequest,
    gate: VerificationGate = Depends(get_verification_gate),
) -> APIResponse:
    """A correct code is consumed and cannot be used again."""
    if not gate.verify_code(request_data.email, request_data.code):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid verification code",
        )
    return APIResponse(success=True, message="Email verified successfully")


@router.post(
    "/register",
    response_model=APIResponse,
    response_model_exclude_none=True,
    responses={**_ERRORS, 500: {"model": APIResponse, "description": "Registration not saved"}},
    summary="Register an organization",
)
def register(
    request_data: RegisterRequest,
    workflow: RegistrationWorkflow = Depends(get_registration_workflow),
) -> APIResponse:
    """
    Register an organization and request its mandate credential.

    Once the registration is saved the response is always successful;
    issuance and notification failures are handled by the operator team.
    """
    try:
        workflow.register(request_data.to_form())
    except ValidationError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from None
    except StoreError as exc:
        logger.error("Error saving initial registration: %s", exc)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to save registration",
        ) from None

    return APIResponse(success=True, message="Registration successful")
