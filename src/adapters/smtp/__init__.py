"""Notifier adapters - console logging and SMTP delivery."""

from .console import ConsoleNotifier
from .mailer import SmtpNotifier

__all__ = ["ConsoleNotifier", "SmtpNotifier"]
