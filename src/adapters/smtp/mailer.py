"""
SMTP notifier adapter - Implements Notifier protocol over smtplib.

Welcome mails go to the registrant with the CC team list in copy;
issuer error diagnostics go to the issuer team list. Port 465 with TLS
enabled uses implicit TLS, any other port upgrades with STARTTLS when
TLS is enabled.
"""

import logging
import smtplib
import ssl
from email.message import EmailMessage
from pathlib import Path

from src.domain.countries import country_name
from src.domain.exceptions import NotifyError
from src.domain.ports import Registration

logger = logging.getLogger(__name__)

WELCOME_SUBJECT = "Welcome to DOME Marketplace!"
ISSUER_ERROR_SUBJECT = "DOME: Error in Credential Issuer during customer registration"

_WELCOME_BODY = """\
Dear {first_name} {last_name},

Thank you for registering {company_name} ({country}) in the DOME Marketplace.

Your registration id is {registration_id}. Please keep it for any
communication with the onboarding team{contact}.

Environment: {environment}
"""

_VERIFICATION_BODY = """\
Your DOME onboarding verification code is {code}.

The code is valid for 15 minutes.
"""

_ISSUER_ERROR_BODY = """\
Credential issuance failed for registration {registration_id}
({first_name}, {company_name}).

Environment: {environment}

Error:
{error}

Payload sent to the Issuer:
{payload}
"""


class SmtpNotifier:
    """
    Implements Notifier protocol via SMTP.

    Uses structural subtyping - no explicit inheritance from Protocol.
    """

    def __init__(
        self,
        host: str,
        port: int,
        username: str,
        password: str,
        use_tls: bool = True,
        environment: str = "dev",
        onboard_team_email: list[str] | None = None,
        issuer_team_email: list[str] | None = None,
        cc_team_email: list[str] | None = None,
        timeout: float = 30.0,
    ) -> None:
        self._host = host
        self._port = port
        self._username = username
        self._password = password
        self._use_tls = use_tls
        self._environment = environment
        self._onboard_team_email = onboard_team_email or []
        self._issuer_team_email = issuer_team_email or []
        self._cc_team_email = cc_team_email or []
        self._timeout = timeout

    @classmethod
    def from_password_file(cls, password_file: str | Path, **kwargs) -> "SmtpNotifier":
        try:
            password = Path(password_file).read_text().strip()
        except OSError as exc:
            raise NotifyError(f"failed to read SMTP password file: {exc}") from exc
        return cls(password=password, **kwargs)

    def send_verification_code(self, email: str, code: str) -> None:
        self._send(
            [email],
            "DOME onboarding verification code",
            _VERIFICATION_BODY.format(code=code),
        )

    def send_welcome(self, registration: Registration) -> None:
        contact = f" at {self._onboard_team_email[0]}" if self._onboard_team_email else ""
        body = _WELCOME_BODY.format(
            first_name=registration.first_name,
            last_name=registration.last_name,
            company_name=registration.company_name,
            country=country_name(registration.country) or registration.country,
            registration_id=registration.registration_id,
            contact=contact,
            environment=self._environment,
        )
        self._send([registration.email, *self._cc_team_email], WELCOME_SUBJECT, body)

    def send_issuer_error(self, registration: Registration, payload: str, error: str) -> None:
        if not self._issuer_team_email:
            raise NotifyError("no issuer team recipients configured")
        body = _ISSUER_ERROR_BODY.format(
            registration_id=registration.registration_id,
            first_name=registration.first_name,
            company_name=registration.company_name,
            environment=self._environment,
            error=error,
            payload=payload,
        )
        self._send(self._issuer_team_email, ISSUER_ERROR_SUBJECT, body)

    def _send(self, recipients: list[str], subject: str, body: str) -> None:
        message = EmailMessage()
        message["From"] = self._username
        message["To"] = ", ".join(recipients)
        message["Subject"] = subject
        message.set_content(body)

        try:
            if self._use_tls and self._port == 465:
                context = ssl.create_default_context()
                with smtplib.SMTP_SSL(
                    self._host, self._port, context=context, timeout=self._timeout
                ) as smtp:
                    smtp.login(self._username, self._password)
                    smtp.send_message(message, to_addrs=recipients)
            else:
                with smtplib.SMTP(self._host, self._port, timeout=self._timeout) as smtp:
                    if self._use_tls:
                        smtp.starttls(context=ssl.create_default_context())
                    smtp.login(self._username, self._password)
                    smtp.send_message(message, to_addrs=recipients)
        except (smtplib.SMTPException, OSError) as exc:
            raise NotifyError(f"failed to send '{subject}': {exc}") from exc

        logger.debug("Sent '%s' to %s", subject, ", ".join(recipients))
