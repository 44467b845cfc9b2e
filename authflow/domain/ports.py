"""
Port interfaces - Protocol definitions for infrastructure abstraction.

This module defines the interfaces (ports) that the domain requires
from infrastructure. Adapters implement these protocols.
"""

from collections.abc import Mapping, Sequence
from typing import Any, Protocol

from .models import EmailStatus, MailRecipient, NewUserRecord, UserRecord, UserView

__all__ = [
    "EmailStatus",
    "MailSender",
    "PasswordHasher",
    "TokenCodec",
    "UserRepository",
]


class UserRepository(Protocol):
    """Port interface for user record persistence."""

    def find_by_id(self, user_id: str) -> UserRecord | None:
        """
        Fetch a user by id.

        Returns None when no user matches or the id is not well-formed.
        """
        ...

    def find_by_email(self, email: str) -> UserRecord | None:
        """Fetch a user by normalized email, or None."""
        ...

    def create(self, data: NewUserRecord) -> UserRecord:
        """
        Persist a new user; the store assigns id and created_at.

        Raises:
            EmailAlreadyInUse: If the store's uniqueness constraint rejects the email
        """
        ...

    def update_by_id(
        self,
        user_id: str,
        user: UserView,
        expected_status: EmailStatus | None = None,
    ) -> UserRecord | None:
        """
        Overwrite email, name and email_status of an existing user.

        created_at and password_hash are never written by this path.
        When expected_status is given, the write happens atomically only if
        the stored email_status still equals it.

        Returns:
            The updated record, or None if the user vanished meanwhile or
            its email_status no longer matches expected_status

        Raises:
            EmailAlreadyInUse: If the new email belongs to another user
        """
        ...

    def delete_by_id(self, user_id: str) -> None:
        """Permanently remove a user."""
        ...


class MailSender(Protocol):
    """Port interface for email delivery."""

    def send_confirm_account_mail(
        self, confirmation_url: str, to: Sequence[MailRecipient]
    ) -> None:
        """
        Deliver the account confirmation email.

        Args:
            confirmation_url: Link the recipient follows to confirm
            to: Recipients of the message

        Raises:
            Any delivery failure; callers rely on it propagating.
        """
        ...


class PasswordHasher(Protocol):
    """Port interface for one-way salted password hashing."""

    def hash(self, password: str) -> str:
        """Hash a password with a freshly generated salt."""
        ...

    def verify(self, password: str, hashed: str | None) -> bool:
        """
        Constant-time check of a password against a stored hash.

        hashed=None stands for "no such account": the check still costs one
        hash comparison and returns False. Never raises.
        """
        ...


class TokenCodec(Protocol):
    """Port interface for signed, self-contained tokens."""

    def sign(self, payload: Mapping[str, Any]) -> str:
        """Sign a JSON-serializable payload."""
        ...

    def verify(self, token: str, ignore_expiration: bool = False) -> dict[str, Any] | None:
        """Return the decoded payload, or None if the token is not authentic."""
        ...
