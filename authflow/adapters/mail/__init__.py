"""Mail adapters - Confirmation email delivery."""

from .console import ConsoleMailSender
from .smtp import SmtpMailSender

__all__ = ["ConsoleMailSender", "SmtpMailSender"]
