"""
User lifecycle domain service - CRUD orchestration and email verification.

Email Verification State Machine (Forward-Only Transitions)
===========================================================

States:
- UNVERIFIED: Initial state at creation
- PENDING: A confirmation email has been delivered
- VERIFIED: Terminal state after a confirmation token was accepted

Valid Transitions:
    UNVERIFIED -> PENDING   (send_confirmation_email, after delivery succeeds)
    PENDING -> PENDING      (confirmation email re-sent)
    PENDING -> VERIFIED     (confirm_email with a matching token)

Invalid Transitions (never allowed):
    VERIFIED -> any         (VERIFIED is terminal)
    any -> UNVERIFIED       (no backward movement)
    UNVERIFIED -> VERIFIED  (confirmation requires a prior send)

Confirmation Token Binding
==========================

Confirmation tokens are signed over {id, email, created_at} and verified
with expiration ignored, so a link stays valid for as long as those three
fields are unchanged. Changing the account's email therefore invalidates
every confirmation link issued before the change; that binding is the
only thing retiring old links.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any

from .exceptions import (
    ConfirmationNotRequested,
    EmailAlreadyInUse,
    EmailAlreadyVerified,
    InvalidConfirmationToken,
    InvalidStatusTransition,
    UserNotFound,
)
from .models import (
    EmailStatus,
    MailRecipient,
    NewUser,
    NewUserRecord,
    SensitiveUserView,
    UserPatch,
    UserView,
)
from .ports import MailSender, PasswordHasher, TokenCodec, UserRepository

logger = logging.getLogger(__name__)


def normalize_email(email: str) -> str:
    """
    Normalize email address for consistent storage and lookup.

    Applies: strip whitespace + lowercase
    """
    return email.strip().lower()


def _as_instant(value: datetime) -> datetime:
    """Naive datetimes are taken to be UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


@dataclass
class UserService:
    """
    Domain service owning user records and the email verification lifecycle.

    Every mutating operation starts with get_existing_by_id() so a missing
    user fails the same way everywhere.
    """

    repository: UserRepository
    mail_sender: MailSender
    password_hasher: PasswordHasher
    token_codec: TokenCodec
    project_url: str

    def find_by_id(self, user_id: str) -> UserView | None:
        record = self.repository.find_by_id(user_id)
        return record.sanitized() if record else None

    def find_by_email(self, email: str) -> UserView | None:
        record = self.repository.find_by_email(normalize_email(email))
        return record.sanitized() if record else None

    def find_by_email_with_sensitive_data(self, email: str) -> SensitiveUserView | None:
        """Lookup including the password hash. Reserved for credential checks."""
        record = self.repository.find_by_email(normalize_email(email))
        return record.sensitive() if record else None

    def get_existing_by_id(self, user_id: str) -> UserView:
        """
        Raises:
            UserNotFound: If no user has this id
        """
        user = self.find_by_id(user_id)
        if user is None:
            raise UserNotFound(user_id)
        return user

    def create(self, new_user: NewUser) -> UserView:
        """
        Create an UNVERIFIED user.

        The email pre-check gives a fast rejection; concurrent registrations
        that both pass it are settled by the store's uniqueness constraint.

        Raises:
            EmailAlreadyInUse: If the email is already registered
        """
        email = normalize_email(new_user.email)
        if self.find_by_email(email) is not None:
            raise EmailAlreadyInUse(email)

        record = self.repository.create(
            NewUserRecord(
                name=new_user.name,
                email=email,
                password_hash=self.password_hasher.hash(new_user.password),
                email_status=EmailStatus.UNVERIFIED,
            )
        )
        logger.info("User created: id=%s", record.id)
        return record.sanitized()

    def update(self, user_id: str, patch: UserPatch) -> UserView:
        """
        Apply a partial update; absent fields keep their current values.

        Raises:
            UserNotFound: If no user has this id
            InvalidStatusTransition: If the patch would move email_status backwards,
                or email_status changed while the update was in flight
            EmailAlreadyInUse: If the new email belongs to another user
        """
        current = self.get_existing_by_id(user_id)

        if patch.email_status is not None and not current.email_status.can_transition_to(
            patch.email_status
        ):
            raise InvalidStatusTransition(
                f"{current.email_status.value} -> {patch.email_status.value}"
            )
        if patch.email is not None:
            patch = UserPatch(
                name=patch.name,
                email=normalize_email(patch.email),
                email_status=patch.email_status,
            )

        updated = self.repository.update_by_id(
            user_id, patch.apply(current), expected_status=current.email_status
        )
        if updated is None:
            if self.repository.find_by_id(user_id) is None:
                raise UserNotFound(user_id)
            # email_status moved between the read above and the write
            raise InvalidStatusTransition(f"{current.email_status.value} changed concurrently")

        if updated.email_status != current.email_status:
            logger.info(
                "Email status changed: id=%s %s -> %s",
                user_id,
                current.email_status.value,
                updated.email_status.value,
            )
        return updated.sanitized()

    def delete(self, user_id: str) -> None:
        """
        Raises:
            UserNotFound: If no user has this id
        """
        self.get_existing_by_id(user_id)
        self.repository.delete_by_id(user_id)
        logger.info("User deleted: id=%s", user_id)

    def send_confirmation_email(self, user_id: str) -> None:
        """
        Deliver a confirmation link and move the user to PENDING.

        The status changes only after the mail sender returns; a delivery
        failure propagates and leaves the status untouched, so the send
        can be retried.

        Raises:
            UserNotFound: If no user has this id
            EmailAlreadyVerified: If the email is already VERIFIED
        """
        user = self.get_existing_by_id(user_id)

        if user.email_status == EmailStatus.VERIFIED:
            raise EmailAlreadyVerified(user_id)

        token = self.token_codec.sign(
            {
                "id": user.id,
                "email": user.email,
                "created_at": user.created_at.isoformat(),
            }
        )

        self.mail_sender.send_confirm_account_mail(
            confirmation_url=self.build_confirmation_url(user.id, token),
            to=[MailRecipient(email=user.email, name=user.name)],
        )

        self.update(user_id, UserPatch(email_status=EmailStatus.PENDING))

    def confirm_email(self, user_id: str, token: str) -> UserView:
        """
        Accept a confirmation token and move the user to VERIFIED.

        Raises:
            UserNotFound: If no user has this id
            EmailAlreadyVerified: If the email is already VERIFIED
            ConfirmationNotRequested: If no confirmation email was ever sent
            InvalidConfirmationToken: If the token is forged or its bound
                id, email or created_at no longer match the account
        """
        user = self.get_existing_by_id(user_id)

        if user.email_status == EmailStatus.VERIFIED:
            raise EmailAlreadyVerified(user_id)

        if user.email_status == EmailStatus.UNVERIFIED:
            raise ConfirmationNotRequested(user_id)

        decoded = self.token_codec.verify(token, ignore_expiration=True)
        failed_check = self._binding_failure(user, decoded)
        if failed_check is not None:
            logger.info("Confirmation rejected: id=%s check=%s", user_id, failed_check)
            raise InvalidConfirmationToken(user_id)

        return self.update(user_id, UserPatch(email_status=EmailStatus.VERIFIED))

    def build_confirmation_url(self, user_id: str, token: str) -> str:
        return f"{self.project_url.rstrip('/')}/users/{user_id}/email/confirm/{token}"

    @staticmethod
    def _binding_failure(user: UserView, decoded: dict[str, Any] | None) -> str | None:
        """Name of the first failed check, or None when the token binds to ``user``."""
        if not decoded:
            return "signature"
        if decoded.get("id") != user.id:
            return "id"
        if decoded.get("email") != user.email:
            return "email"
        try:
            issued_for = datetime.fromisoformat(decoded["created_at"])
        except (KeyError, TypeError, ValueError):
            return "created_at"
        if _as_instant(issued_for) != _as_instant(user.created_at):
            return "created_at"
        return None
