"""
Registration workflow - persistence, credential issuance and notification.

This module contains the core business logic for onboarding an
organization, sequencing every registration attempt through a small
state machine.

Registration State Machine
==========================

States:
- RECEIVED: Form submitted, nothing checked yet
- DISCARDED: Honeypot field populated; reported as success, nothing stored
- VALIDATED: Required fields, country and email format accepted
- PERSISTED: Initial record saved
- ISSUANCE_SUCCEEDED / ISSUANCE_FAILED: Outcome of the Issuer call
- NOTIFIED: Welcome (and, on failure, operator) notifications attempted
- COMPLETE: Outcome recorded

Transitions:
    RECEIVED  -> DISCARDED | VALIDATED
    VALIDATED -> PERSISTED
    PERSISTED -> ISSUANCE_SUCCEEDED | ISSUANCE_FAILED
    ISSUANCE_* -> NOTIFIED -> COMPLETE

Once PERSISTED is reached the attempt always ends in COMPLETE and the
registrant is told the registration succeeded. Issuance and notification
failures are written to the registration record and mailed to the
operator team instead of being surfaced to the end user.
"""

import logging
import re
import secrets
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum

from .countries import is_valid_country
from .credentials import CredentialIssuanceRequest, Mandatee, Mandator, Power
from .exceptions import CredentialIssuanceError, NotifyError, StoreError, ValidationError
from .ports import CredentialIssuer, Notifier, Registration, RegistrationStore

logger = logging.getLogger(__name__)

_EMAIL_PATTERN = re.compile(r"[a-z0-9._%+\-]+@[a-z0-9.\-]+\.[a-z]{2,}")

DEFAULT_POWER = Power(
    type="domain",
    domain="DOME",
    function="Onboarding",
    action=["execute", "verify"],
)


class WorkflowState(str, Enum):
    """States of a single registration attempt."""

    RECEIVED = "RECEIVED"
    DISCARDED = "DISCARDED"
    VALIDATED = "VALIDATED"
    PERSISTED = "PERSISTED"
    ISSUANCE_SUCCEEDED = "ISSUANCE_SUCCEEDED"
    ISSUANCE_FAILED = "ISSUANCE_FAILED"
    NOTIFIED = "NOTIFIED"
    COMPLETE = "COMPLETE"


@dataclass
class RegistrationForm:
    """Registration form as submitted by the client. ``website`` is the honeypot."""

    first_name: str
    last_name: str
    company_name: str
    country: str
    vat_id: str
    email: str
    website: str = ""


@dataclass
class RegistrationAttempt:
    """Outcome of one pass through the workflow."""

    state: WorkflowState = WorkflowState.RECEIVED
    registration: Registration | None = None
    history: list[WorkflowState] = field(default_factory=lambda: [WorkflowState.RECEIVED])

    def advance(self, state: WorkflowState) -> None:
        logger.info(
            "Registration %s: %s -> %s",
            self.registration.registration_id if self.registration else "-",
            self.state.value,
            state.value,
        )
        self.state = state
        self.history.append(state)


def is_valid_email(email: str) -> bool:
    """Check that an email address has a plausible format."""
    return bool(_EMAIL_PATTERN.fullmatch(email.lower()))


def validate_form(form: RegistrationForm) -> None:
    """
    Validate required fields, country and email format.

    Raises:
        ValidationError: With a message suitable for the end user
    """
    if not form.first_name:
        raise ValidationError("first name is required")
    if not form.last_name:
        raise ValidationError("last name is required")
    if not form.company_name:
        raise ValidationError("company name is required")
    if not form.country:
        raise ValidationError("country is required")
    if not is_valid_country(form.country):
        raise ValidationError("invalid country code")
    if not form.vat_id:
        raise ValidationError("VAT ID is required")
    if not form.email:
        raise ValidationError("email is required")
    if not is_valid_email(form.email):
        raise ValidationError("invalid email address format")


def generate_registration_id(now: datetime | None = None) -> str:
    """
    Create a human-readable but unguessable id: YYYYMMDD-########.

    The suffix is 8 cryptographically random decimal digits.
    """
    now = now or datetime.now(timezone.utc)
    return f"{now:%Y%m%d}-{secrets.randbelow(100_000_000):08d}"


def build_issuance_request(form: RegistrationForm) -> CredentialIssuanceRequest:
    """Build the LEARCredentialEmployee request for a validated form."""
    return CredentialIssuanceRequest(
        mandator=Mandator(
            organization_identifier=f"{form.country}-{form.vat_id}",
            organization=form.company_name,
            country=form.country,
            common_name=f"{form.first_name} {form.last_name}",
            email_address=form.email,
        ),
        mandatee=Mandatee(
            first_name=form.first_name,
            last_name=form.last_name,
            nationality=form.country,
            email=form.email,
        ),
        power=[
            Power(
                type=DEFAULT_POWER.type,
                domain=DEFAULT_POWER.domain,
                function=DEFAULT_POWER.function,
                action=list(DEFAULT_POWER.action),
            )
        ],
    )


@dataclass
class RegistrationWorkflow:
    """
    Domain service for organization onboarding.

    Orchestrates validation, persistence, credential issuance and
    notifications for each registration attempt.
    """

    store: RegistrationStore
    issuer: CredentialIssuer
    notifier: Notifier

    def register(self, form: RegistrationForm) -> RegistrationAttempt:
        """
        Run one registration attempt to completion.

        Args:
            form: Submitted registration form

        Returns:
            RegistrationAttempt in state COMPLETE, or DISCARDED for bots

        Raises:
            ValidationError: If the form is invalid (nothing persisted)
            StoreError: If the initial save failed (nothing issued or sent)
        """
        attempt = RegistrationAttempt()

        if form.website:
            logger.info("Bot detected via honeypot field")
            attempt.advance(WorkflowState.DISCARDED)
            return attempt

        validate_form(form)
        attempt.advance(WorkflowState.VALIDATED)

        registration = Registration(
            registration_id=generate_registration_id(),
            email=form.email,
            first_name=form.first_name,
            last_name=form.last_name,
            company_name=form.company_name,
            country=form.country,
            vat_id=form.vat_id,
        )
        attempt.registration = registration

        logger.info(
            "Saving registration %s for %s (VAT %s)",
            registration.registration_id,
            registration.email,
            registration.vat_id,
        )
        self.store.save_registration(registration)
        attempt.advance(WorkflowState.PERSISTED)

        request = build_issuance_request(form)
        issued = self._issue(registration, request)
        attempt.advance(
            WorkflowState.ISSUANCE_SUCCEEDED if issued else WorkflowState.ISSUANCE_FAILED
        )

        if not issued:
            self._notify_issuer_error(registration, request)
        self._notify_welcome(registration)
        attempt.advance(WorkflowState.NOTIFIED)

        self._update_status(registration, "notification result")
        attempt.advance(WorkflowState.COMPLETE)
        return attempt

    def _issue(self, registration: Registration, request: CredentialIssuanceRequest) -> bool:
        registration.issuance_at = datetime.now(timezone.utc)
        try:
            self.issuer.request_credential(request)
        except CredentialIssuanceError as exc:
            logger.error(
                "Error calling issuance service for %s: %s", registration.registration_id, exc
            )
            registration.issuance_error = str(exc) or exc.__class__.__name__
            self._update_status(registration, "issuance error")
            return False

        registration.issuance_error = ""
        self._update_status(registration, "issuance success")
        return True

    def _notify_issuer_error(
        self, registration: Registration, request: CredentialIssuanceRequest
    ) -> None:
        try:
            self.notifier.send_issuer_error(
                registration, request.to_json(indent=2), registration.issuance_error
            )
        except NotifyError as exc:
            logger.error("Error sending issuer error email: %s", exc)

    def _notify_welcome(self, registration: Registration) -> None:
        try:
            self.notifier.send_welcome(registration)
        except NotifyError as exc:
            logger.error("Error sending welcome email to %s: %s", registration.email, exc)
            registration.notif_email_error = str(exc) or exc.__class__.__name__
            return

        logger.info("Welcome email sent to %s", registration.email)
        registration.notif_email_at = datetime.now(timezone.utc)
        registration.notif_email_error = ""

    def _update_status(self, registration: Registration, context: str) -> None:
        # Best effort: the registrant has already been accepted
        try:
            self.store.update_registration_status(registration)
        except StoreError as exc:
            logger.error(
                "Error updating registration %s with %s: %s",
                registration.registration_id,
                context,
                exc,
            )
