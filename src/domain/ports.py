"""
Port interfaces - Protocol definitions for infrastructure abstraction.

This module defines the interfaces (ports) that the domain requires
from infrastructure. Adapters implement these protocols.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Protocol

from .credentials import CredentialIssuanceRequest


@dataclass
class Registration:
    """
    Durable registration record.

    The (email, vat_id) pair and registration_id are the natural keys.
    issuance_error and notif_email_error are "" on success and are
    overwritten on every attempt.
    """

    registration_id: str
    email: str
    first_name: str
    last_name: str
    company_name: str
    country: str
    vat_id: str
    created_at: datetime | None = None
    updated_at: datetime | None = None
    issuance_at: datetime | None = None
    issuance_error: str = ""
    notif_email_at: datetime | None = None
    notif_email_error: str = ""


class RegistrationStore(Protocol):
    """Port interface for registration persistence."""

    def save_registration(self, registration: Registration) -> None:
        """
        Persist a new registration.

        Non-production stores amend an existing record with the same
        (email, vat_id) pair; production stores reject any conflict.

        Raises:
            StoreError: If the record could not be written
        """
        ...

    def update_registration_status(self, registration: Registration) -> None:
        """
        Persist issuance and notification outcome fields.

        Raises:
            StoreError: If the record could not be written
        """
        ...

    def get_registration(self, vat_id: str, email: str) -> Registration | None:
        """Look up a registration by its (vat_id, email) pair."""
        ...


class CredentialIssuer(Protocol):
    """Port interface for the remote credential Issuer."""

    def request_credential(self, request: CredentialIssuanceRequest) -> bytes:
        """
        Ask the Issuer to issue a credential.

        Returns:
            Raw Issuer response body

        Raises:
            TokenError: If no access token could be obtained
            IssuanceError: If the Issuer call failed
        """
        ...


class Notifier(Protocol):
    """Port interface for user and operator notifications."""

    def send_verification_code(self, email: str, code: str) -> None:
        """Deliver an email verification code."""
        ...

    def send_welcome(self, registration: Registration) -> None:
        """
        Tell the registrant that their registration was received.

        Raises:
            NotifyError: If delivery failed
        """
        ...

    def send_issuer_error(self, registration: Registration, payload: str, error: str) -> None:
        """
        Tell the operator team that issuance failed for a registration.

        Args:
            registration: The affected registration
            payload: Pretty-printed issuance request that was attempted
            error: Error text reported by the issuance client

        Raises:
            NotifyError: If delivery failed
        """
        ...
