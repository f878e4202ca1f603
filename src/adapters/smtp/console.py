"""
Console notifier adapter - Implements Notifier protocol.

This module provides a console-based implementation of the domain's
notifier port, logging messages instead of mailing them. It is used
when SMTP delivery is disabled.
"""

import logging

from src.domain.ports import Registration

logger = logging.getLogger(__name__)


class ConsoleNotifier:
    """
    Implements Notifier protocol via console logging.

    Uses structural subtyping - no explicit inheritance from Protocol.
    For development purposes - prints notifications to stdout.
    """

    def send_verification_code(self, email: str, code: str) -> None:
        """
        Log verification code to console (simulates email delivery).

        The code is logged at INFO level to be visible in container logs.

        Args:
            email: Recipient email address
            code: 6-digit verification code
        """
        logger.info("[VERIFICATION] Email: %s Code: %s", email, code)

    def send_welcome(self, registration: Registration) -> None:
        logger.info(
            "[WELCOME] Email: %s Registration: %s Company: %s",
            registration.email,
            registration.registration_id,
            registration.company_name,
        )

    def send_issuer_error(self, registration: Registration, payload: str, error: str) -> None:
        logger.warning(
            "[ISSUER ERROR] Registration: %s Error: %s\n%s",
            registration.registration_id,
            error,
            payload,
        )
