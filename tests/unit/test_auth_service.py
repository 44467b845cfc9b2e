"""
Unit tests for AuthService domain logic.

Tests verify:
- Login success returns a signed token and hash-free claims
- Unknown email and wrong password are indistinguishable
- Registration orchestration and its delivery-failure behavior
- Session token verification
"""

from dataclasses import replace
from datetime import datetime, timedelta, timezone
from unittest.mock import MagicMock, Mock

import pytest

from authflow.adapters.security.bcrypt_hasher import BcryptPasswordHasher
from authflow.adapters.security.jwt_codec import JwtTokenCodec
from authflow.domain.auth import AuthService, decode_session_token
from authflow.domain.exceptions import EmailAlreadyInUse, InvalidCredentials, InvalidSessionToken
from authflow.domain.models import EmailStatus, LoginResult, NewUser, SessionClaims
from authflow.domain.users import UserService

ADA = NewUser(name="Ada", email="ada@example.com", password="password123")


class TestLogin:
    """Tests for login()."""

    def test_login_success(self, auth_service: AuthService, user_service: UserService) -> None:
        user = user_service.create(ADA)

        result = auth_service.login("ada@example.com", "password123")

        assert isinstance(result, LoginResult)
        assert result.claims == SessionClaims(
            id=user.id, email="ada@example.com", name="Ada", email_status=EmailStatus.UNVERIFIED
        )

    def test_token_carries_claims_without_hash(
        self, auth_service: AuthService, user_service: UserService, token_codec: JwtTokenCodec
    ) -> None:
        user_service.create(ADA)

        result = auth_service.login("ada@example.com", "password123")
        payload = token_codec.verify(result.token)

        assert payload == result.claims.to_payload()
        assert "password_hash" not in payload
        assert "password" not in payload

    def test_login_normalizes_email(self, auth_service: AuthService, user_service: UserService) -> None:
        user_service.create(ADA)
        assert auth_service.login("  ADA@Example.com ", "password123") is not None

    def test_wrong_password(self, auth_service: AuthService, user_service: UserService) -> None:
        user_service.create(ADA)
        assert auth_service.login("ada@example.com", "wrong-password") is None

    def test_unknown_email(self, auth_service: AuthService) -> None:
        assert auth_service.login("nobody@example.com", "password123") is None

    def test_unknown_email_still_runs_bcrypt(self, user_service: UserService, token_codec: JwtTokenCodec) -> None:
        """The miss path pays for a bcrypt comparison like the wrong-password path."""
        hasher = MagicMock(wraps=BcryptPasswordHasher(rounds=4))
        service = AuthService(user_service=user_service, password_hasher=hasher, token_codec=token_codec)

        service.login("nobody@example.com", "password123")

        hasher.verify.assert_called_once_with("password123", None)
        hasher.hash.assert_not_called()

    def test_overlong_password_fails_alike_for_known_and_unknown_email(
        self, auth_service: AuthService, user_service: UserService
    ) -> None:
        """Passwords bcrypt refuses are a plain miss on both paths, never an error."""
        user_service.create(ADA)
        overlong = "x" * 73

        assert auth_service.login("nobody@example.com", overlong) is None
        assert auth_service.login("ada@example.com", overlong) is None

    def test_corrupt_stored_hash_is_plain_failure(
        self, auth_service: AuthService, user_service: UserService, repository
    ) -> None:
        user = user_service.create(ADA)
        repository._users[user.id] = replace(repository._users[user.id], password_hash="corrupt")

        assert auth_service.login("ada@example.com", "password123") is None

    def test_no_expiry_by_default(
        self, auth_service: AuthService, user_service: UserService, token_codec: JwtTokenCodec
    ) -> None:
        user_service.create(ADA)
        result = auth_service.login("ada@example.com", "password123")
        assert "exp" not in token_codec.verify(result.token)

    def test_session_ttl_embeds_expiry(self, user_service: UserService, password_hasher, token_codec) -> None:
        service = AuthService(
            user_service=user_service,
            password_hasher=password_hasher,
            token_codec=token_codec,
            session_ttl=timedelta(hours=1),
        )
        user_service.create(ADA)

        result = service.login("ada@example.com", "password123")
        exp = token_codec.verify(result.token)["exp"]

        now = datetime.now(timezone.utc).timestamp()
        assert now + 3500 < exp <= now + 3600


class TestRegister:
    """Tests for register() orchestration."""

    def test_register_creates_and_sends(
        self, auth_service: AuthService, user_service: UserService, mail_sender: Mock
    ) -> None:
        created = auth_service.register(ADA)

        mail_sender.send_confirm_account_mail.assert_called_once()
        assert user_service.get_existing_by_id(created.id).email_status == EmailStatus.PENDING

    def test_register_returns_creation_view(self, auth_service: AuthService) -> None:
        created = auth_service.register(ADA)

        assert created.email == "ada@example.com"
        assert created.email_status == EmailStatus.UNVERIFIED
        assert not hasattr(created, "password_hash")

    def test_register_twice_conflicts(self, auth_service: AuthService, mail_sender: Mock) -> None:
        auth_service.register(ADA)

        with pytest.raises(EmailAlreadyInUse):
            auth_service.register(ADA)
        assert mail_sender.send_confirm_account_mail.call_count == 1

    def test_delivery_failure_fails_registration_but_keeps_account(
        self, auth_service: AuthService, user_service: UserService, mail_sender: Mock
    ) -> None:
        mail_sender.send_confirm_account_mail.side_effect = ConnectionError("smtp down")

        with pytest.raises(ConnectionError):
            auth_service.register(ADA)

        user = user_service.find_by_email("ada@example.com")
        assert user is not None
        assert user.email_status == EmailStatus.UNVERIFIED

    def test_resend_recovers_after_delivery_failure(
        self, auth_service: AuthService, user_service: UserService, mail_sender: Mock
    ) -> None:
        mail_sender.send_confirm_account_mail.side_effect = ConnectionError("smtp down")
        with pytest.raises(ConnectionError):
            auth_service.register(ADA)
        user = user_service.find_by_email("ada@example.com")

        mail_sender.send_confirm_account_mail.side_effect = None
        auth_service.resend_confirmation(user.id)

        assert user_service.get_existing_by_id(user.id).email_status == EmailStatus.PENDING


class TestCheckCredentials:
    """Tests for check_credentials(), the raising form of login()."""

    def test_success_returns_login_result(self, auth_service: AuthService, user_service: UserService) -> None:
        user_service.create(ADA)

        result = auth_service.check_credentials("ada@example.com", "password123")

        assert isinstance(result, LoginResult)
        assert result.claims.email == "ada@example.com"

    @pytest.mark.parametrize(
        ("email", "password"),
        [
            ("ada@example.com", "wrong-password"),
            ("nobody@example.com", "password123"),
            ("nobody@example.com", "x" * 73),
        ],
    )
    def test_failure_raises_invalid_credentials(
        self, auth_service: AuthService, user_service: UserService, email: str, password: str
    ) -> None:
        user_service.create(ADA)

        with pytest.raises(InvalidCredentials):
            auth_service.check_credentials(email, password)


class TestAuthenticate:
    """Tests for session token verification."""

    def test_valid_session_token(self, auth_service: AuthService, user_service: UserService) -> None:
        user_service.create(ADA)
        result = auth_service.login("ada@example.com", "password123")

        assert auth_service.authenticate(result.token) == result.claims

    def test_forged_session_token(self, auth_service: AuthService) -> None:
        forged = JwtTokenCodec(secret="attacker-secret-0123456789abcdefghijk").sign(
            {"id": "x", "email": "x@example.com", "name": "X", "email_status": "VERIFIED"}
        )
        with pytest.raises(InvalidSessionToken):
            auth_service.authenticate(forged)

    def test_expired_session_token(self, token_codec: JwtTokenCodec) -> None:
        past = datetime.now(timezone.utc) - timedelta(minutes=1)
        token = token_codec.sign(
            {
                "id": "x",
                "email": "x@example.com",
                "name": "X",
                "email_status": "PENDING",
                "exp": int(past.timestamp()),
            }
        )
        with pytest.raises(InvalidSessionToken):
            decode_session_token(token_codec, token)

    def test_confirmation_token_is_not_a_session(self, token_codec: JwtTokenCodec) -> None:
        """A confirmation payload lacks session claims and is rejected."""
        token = token_codec.sign({"id": "x", "email": "x@example.com", "created_at": "2024-01-01T00:00:00+00:00"})
        with pytest.raises(InvalidSessionToken):
            decode_session_token(token_codec, token)

    def test_unknown_status_in_claims(self, token_codec: JwtTokenCodec) -> None:
        token = token_codec.sign({"id": "x", "email": "x@example.com", "name": "X", "email_status": "ADMIN"})
        with pytest.raises(InvalidSessionToken):
            decode_session_token(token_codec, token)
