"""
Shared test fixtures and configuration.

This module provides pytest fixtures for:
- An in-memory UserRepository with the same uniqueness guarantees as Postgres
- Fast bcrypt and JWT primitives
- Wired UserService / AuthService instances with a mocked mail sender
"""

import threading
import uuid
from dataclasses import replace
from datetime import datetime, timezone
from unittest.mock import Mock

import pytest

from authflow.adapters.security.bcrypt_hasher import BcryptPasswordHasher
from authflow.adapters.security.jwt_codec import JwtTokenCodec
from authflow.domain.auth import AuthService
from authflow.domain.exceptions import EmailAlreadyInUse
from authflow.domain.models import EmailStatus, NewUserRecord, UserRecord, UserView
from authflow.domain.users import UserService

TEST_SECRET = "unit-test-signing-secret-0123456789abcdef"
TEST_PROJECT_URL = "http://testserver/v1"


class InMemoryUserRepository:
    """
    Implements UserRepository protocol with a dict.

    Mirrors the Postgres adapter: store-assigned id and created_at, and an
    email uniqueness check that raises EmailAlreadyInUse.
    """

    def __init__(self) -> None:
        self._users: dict[str, UserRecord] = {}
        self._lock = threading.Lock()

    def find_by_id(self, user_id: str) -> UserRecord | None:
        return self._users.get(user_id)

    def find_by_email(self, email: str) -> UserRecord | None:
        return next((user for user in self._users.values() if user.email == email), None)

    def create(self, data: NewUserRecord) -> UserRecord:
        with self._lock:
            if self.find_by_email(data.email) is not None:
                raise EmailAlreadyInUse(data.email)
            record = UserRecord(
                id=str(uuid.uuid4()),
                email=data.email,
                name=data.name,
                password_hash=data.password_hash,
                email_status=data.email_status,
                created_at=datetime.now(timezone.utc),
            )
            self._users[record.id] = record
            return record

    def update_by_id(
        self, user_id: str, user: UserView, expected_status: EmailStatus | None = None
    ) -> UserRecord | None:
        with self._lock:
            current = self._users.get(user_id)
            if current is None:
                return None
            if expected_status is not None and current.email_status != expected_status:
                return None
            owner = self.find_by_email(user.email)
            if owner is not None and owner.id != user_id:
                raise EmailAlreadyInUse(user.email)
            updated = replace(
                current, email=user.email, name=user.name, email_status=user.email_status
            )
            self._users[user_id] = updated
            return updated

    def delete_by_id(self, user_id: str) -> None:
        with self._lock:
            self._users.pop(user_id, None)


def token_from_url(url: str) -> str:
    """Extract the token segment from a confirmation URL."""
    return url.rsplit("/", 1)[1]


@pytest.fixture
def repository() -> InMemoryUserRepository:
    return InMemoryUserRepository()


@pytest.fixture
def mail_sender() -> Mock:
    return Mock()


@pytest.fixture
def password_hasher() -> BcryptPasswordHasher:
    # Minimum bcrypt cost keeps the suite fast
    return BcryptPasswordHasher(rounds=4)


@pytest.fixture
def token_codec() -> JwtTokenCodec:
    return JwtTokenCodec(secret=TEST_SECRET)


@pytest.fixture
def user_service(
    repository: InMemoryUserRepository,
    mail_sender: Mock,
    password_hasher: BcryptPasswordHasher,
    token_codec: JwtTokenCodec,
) -> UserService:
    return UserService(
        repository=repository,
        mail_sender=mail_sender,
        password_hasher=password_hasher,
        token_codec=token_codec,
        project_url=TEST_PROJECT_URL,
    )


@pytest.fixture
def auth_service(
    user_service: UserService,
    password_hasher: BcryptPasswordHasher,
    token_codec: JwtTokenCodec,
) -> AuthService:
    return AuthService(
        user_service=user_service,
        password_hasher=password_hasher,
        token_codec=token_codec,
    )


@pytest.fixture
def last_confirmation_token(mail_sender: Mock):
    """Callable returning the token from the most recent confirmation email."""

    def _token() -> str:
        return token_from_url(mail_sender.send_confirm_account_mail.call_args.kwargs["confirmation_url"])

    return _token
