"""
SMTP mail sender adapter - Implements MailSender protocol via smtplib.

Delivery errors (connection, auth, refused recipients) are not caught:
the domain relies on them propagating so the account stays UNVERIFIED
and the send can be retried.
"""

import logging
import smtplib
from collections.abc import Sequence
from email.message import EmailMessage
from email.utils import formataddr
from html import escape

from authflow.domain.models import MailRecipient

logger = logging.getLogger(__name__)

SUBJECT = "Confirm your account"


def render_confirm_account_mail(name: str, confirmation_url: str) -> tuple[str, str]:
    """Return (plain text, html) bodies for the confirmation email."""
    text = (
        f"Hi {name},\n\n"
        "Thanks for signing up. Please confirm your email address by opening "
        f"the link below:\n\n{confirmation_url}\n\n"
        "If you did not create an account, you can ignore this email.\n"
    )
    safe_name = escape(name)
    safe_url = escape(confirmation_url, quote=True)
    html = f"""
    <html>
        <body style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto; padding: 20px;">
            <p>Hi {safe_name},</p>
            <p>Thanks for signing up. Please confirm your email address:</p>
            <p style="text-align: center; margin: 30px 0;">
                <a href="{safe_url}"
                   style="background-color: #3b82f6; color: white; padding: 15px 30px;
                          text-decoration: none; border-radius: 5px; font-weight: bold;">
                    Confirm email
                </a>
            </p>
            <p style="color: #64748b; font-size: 14px;">
                If you did not create an account, you can ignore this email.
            </p>
        </body>
    </html>
    """
    return text, html


class SmtpMailSender:
    """
    Implements MailSender protocol via SMTP.

    Uses structural subtyping - no explicit inheritance from Protocol.
    STARTTLS and login are used only when a username is configured.
    """

    def __init__(
        self,
        host: str,
        port: int = 587,
        username: str = "",
        password: str = "",
        from_email: str = "no-reply@localhost",
        from_name: str = "authflow",
        timeout: float = 10.0,
    ) -> None:
        self.host = host
        self.port = port
        self.username = username
        self.password = password
        self.from_email = from_email
        self.from_name = from_name
        self.timeout = timeout

    def send_confirm_account_mail(
        self, confirmation_url: str, to: Sequence[MailRecipient]
    ) -> None:
        with smtplib.SMTP(self.host, self.port, timeout=self.timeout) as server:
            if self.username:
                server.starttls()
                server.login(self.username, self.password)
            for recipient in to:
                server.send_message(self._build_message(recipient, confirmation_url))
                logger.info("Confirmation email sent to %s", recipient.email)

    def _build_message(self, recipient: MailRecipient, confirmation_url: str) -> EmailMessage:
        text, html = render_confirm_account_mail(recipient.name, confirmation_url)
        message = EmailMessage()
        message["Subject"] = SUBJECT
        message["From"] = formataddr((self.from_name, self.from_email))
        message["To"] = formataddr((recipient.name, recipient.email))
        message.set_content(text)
        message.add_alternative(html, subtype="html")
        return message
