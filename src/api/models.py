"""
API request and response models.

Pydantic models for FastAPI endpoint validation and OpenAPI schema generation.
Field-level checks are deliberately loose: missing fields default to ""
and the registration workflow decides what is valid.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from src.domain.registration import RegistrationForm


class APIResponse(BaseModel):
    """Envelope shared by every API response."""

    success: bool
    message: str
    data: Any | None = None


class ValidateEmailRequest(BaseModel):
    """Request model for requesting an email verification code."""

    email: str = ""


class VerifyCodeRequest(BaseModel):
    """Request model for checking an email verification code."""

    email: str = ""
    code: str = ""


class RegisterRequest(BaseModel):
    """Request model for organization registration."""

    model_config = ConfigDict(populate_by_name=True)

    first_name: str = Field("", alias="firstName")
    last_name: str = Field("", alias="lastName")
    company_name: str = Field("", alias="companyName")
    country: str = ""
    vat_id: str = Field("", alias="vatId")
    email: str = ""
    website: str = Field("", description="Honeypot; must be empty")

    def to_form(self) -> RegistrationForm:
        return RegistrationForm(
            first_name=self.first_name,
            last_name=self.last_name,
            company_name=self.company_name,
            country=self.country,
            vat_id=self.vat_id,
            email=self.email,
            website=self.website,
        )
