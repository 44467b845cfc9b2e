"""
Console mail sender adapter - Implements MailSender protocol.

This module provides a console-based implementation of the domain's
mail sender port, logging confirmation links for development use.
"""

import logging
from collections.abc import Sequence

from authflow.domain.models import MailRecipient

logger = logging.getLogger(__name__)


class ConsoleMailSender:
    """
    Implements MailSender protocol via console logging.

    Uses structural subtyping - no explicit inheritance from Protocol.
    For demo/development purposes - prints confirmation links to stdout.
    """

    def send_confirm_account_mail(
        self, confirmation_url: str, to: Sequence[MailRecipient]
    ) -> None:
        """
        Log the confirmation link (simulates email delivery).

        The link is logged at INFO level to be visible in docker-compose logs.
        """
        recipients = ", ".join(recipient.email for recipient in to)
        logger.info("[CONFIRMATION] To: %s URL: %s", recipients, confirmation_url)
