"""
Domain layer - Pure business logic with zero framework imports.

This package contains the onboarding workflow, the verification gate and
the credential issuance request model. It defines its own port interfaces
for infrastructure abstraction, ensuring hexagonal architecture decoupling.
"""

from .credentials import CredentialIssuanceRequest, Mandatee, Mandator, Power
from .exceptions import (
    CredentialIssuanceError,
    DuplicateRegistration,
    IdentityMismatch,
    IssuanceError,
    KeyIdentityError,
    NotifyError,
    OnboardingError,
    RateLimited,
    StoreError,
    TokenError,
    ValidationError,
)
from .ports import CredentialIssuer, Notifier, Registration, RegistrationStore
from .registration import (
    RegistrationAttempt,
    RegistrationForm,
    RegistrationWorkflow,
    WorkflowState,
)
from .verification import VerificationGate

__all__ = [
    "CredentialIssuanceError",
    "CredentialIssuanceRequest",
    "CredentialIssuer",
    "DuplicateRegistration",
    "IdentityMismatch",
    "IssuanceError",
    "KeyIdentityError",
    "Mandatee",
    "Mandator",
    "Notifier",
    "NotifyError",
    "OnboardingError",
    "Power",
    "RateLimited",
    "Registration",
    "RegistrationAttempt",
    "RegistrationForm",
    "RegistrationStore",
    "RegistrationWorkflow",
    "StoreError",
    "TokenError",
    "ValidationError",
    "VerificationGate",
    "WorkflowState",
]
