"""
Domain exceptions - Semantic error types for onboarding.

This module defines domain-specific exceptions that communicate
business rule violations without leaking infrastructure details.
Adapters wrap library errors into these types.
"""


class OnboardingError(Exception):
    """Base class for onboarding domain errors."""

    pass


class ValidationError(OnboardingError):
    """Registration or request input failed validation."""

    pass


class RateLimited(OnboardingError):
    """Too many verification code requests for an email or address."""

    pass


class KeyIdentityError(OnboardingError):
    """Private key material could not be loaded."""

    pass


class IdentityMismatch(KeyIdentityError):
    """The private key does not correspond to the configured did:key."""

    pass


class CredentialIssuanceError(OnboardingError):
    """Base class for failures talking to the Verifier or the Issuer."""

    pass


class TokenError(CredentialIssuanceError):
    """The Verifier did not hand out an access token."""

    pass


class IssuanceError(CredentialIssuanceError):
    """The Issuer rejected or failed the credential issuance request."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class StoreError(OnboardingError):
    """Registration persistence failed."""

    pass


class DuplicateRegistration(StoreError):
    """A registration with the same email, VAT ID or id already exists."""

    pass


class NotifyError(OnboardingError):
    """A notification could not be delivered."""

    pass
