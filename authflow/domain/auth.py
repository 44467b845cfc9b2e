"""
Authentication domain service - Login, registration and session checks.

Login never tells the caller why it failed: an unknown email and a wrong
password both yield None. For unknown emails the candidate password is
still checked against a dummy hash, so both miss paths pay for one bcrypt
comparison and neither can raise. The HTTP boundary uses check_credentials(),
which turns that None into InvalidCredentials.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

from .exceptions import InvalidCredentials, InvalidSessionToken
from .models import LoginResult, NewUser, SessionClaims, UserView
from .ports import PasswordHasher, TokenCodec
from .users import UserService, normalize_email

logger = logging.getLogger(__name__)


@dataclass
class AuthService:
    """
    Domain service for credential validation and registration.

    Attributes:
        session_ttl: Lifetime embedded as ``exp`` in session tokens;
            None issues tokens without expiry.
    """

    user_service: UserService
    password_hasher: PasswordHasher
    token_codec: TokenCodec
    session_ttl: timedelta | None = None

    def login(self, email: str, password: str) -> LoginResult | None:
        """
        Validate credentials and issue a session token.

        Returns:
            LoginResult on success, None for unknown email or wrong password
        """
        user = self.user_service.find_by_email_with_sensitive_data(email)

        if user is None:
            self.password_hasher.verify(password, None)
            return None

        if not self.password_hasher.verify(password, user.password_hash):
            return None

        claims = SessionClaims.from_user(user)
        payload = claims.to_payload()
        if self.session_ttl is not None:
            payload["exp"] = int((datetime.now(timezone.utc) + self.session_ttl).timestamp())

        logger.info("User logged in: id=%s", user.id)
        return LoginResult(token=self.token_codec.sign(payload), claims=claims)

    def check_credentials(self, email: str, password: str) -> LoginResult:
        """
        login() for callers that map failure to an error response.

        Raises:
            InvalidCredentials: For an unknown email or a wrong password alike
        """
        result = self.login(email, password)
        if result is None:
            raise InvalidCredentials(normalize_email(email))
        return result

    def register(self, new_user: NewUser) -> UserView:
        """
        Create the account, then send its confirmation email.

        If delivery fails the error propagates; the account exists in
        UNVERIFIED state and resend_confirmation() can retry.

        Raises:
            EmailAlreadyInUse: If the email is already registered
        """
        created = self.user_service.create(new_user)
        self.user_service.send_confirmation_email(created.id)
        return created

    def resend_confirmation(self, user_id: str) -> None:
        """
        Raises:
            UserNotFound: If no user has this id
            EmailAlreadyVerified: If the email is already VERIFIED
        """
        self.user_service.send_confirmation_email(user_id)

    def authenticate(self, token: str) -> SessionClaims:
        """
        Verify a session token, enforcing expiry when present.

        Raises:
            InvalidSessionToken: If the token is forged, expired or malformed
        """
        return decode_session_token(self.token_codec, token)


def decode_session_token(token_codec: TokenCodec, token: str) -> SessionClaims:
    """
    Verify a session token without needing the rest of AuthService.

    Raises:
        InvalidSessionToken: If the token is forged, expired or malformed
    """
    payload = token_codec.verify(token)
    if payload is None:
        raise InvalidSessionToken("Session token invalid")
    try:
        return SessionClaims.from_payload(payload)
    except (KeyError, ValueError):
        raise InvalidSessionToken("Session token malformed") from None
