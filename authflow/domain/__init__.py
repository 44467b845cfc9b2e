"""
Domain layer - Account lifecycle and authentication business logic.

This package contains the email verification state machine and the
credential checks. It defines its own port interfaces for infrastructure
abstraction; adapters live in authflow.adapters.
"""

from .auth import AuthService
from .exceptions import (
    AccountError,
    ConfirmationNotRequested,
    ConflictError,
    EmailAlreadyInUse,
    EmailAlreadyVerified,
    InvalidConfirmationToken,
    InvalidCredentials,
    InvalidSessionToken,
    InvalidStatusTransition,
    InvalidTokenError,
    NotFoundError,
    UserNotFound,
)
from .models import (
    EmailStatus,
    LoginResult,
    MailRecipient,
    NewUser,
    NewUserRecord,
    SensitiveUserView,
    SessionClaims,
    UserPatch,
    UserRecord,
    UserView,
)
from .ports import MailSender, PasswordHasher, TokenCodec, UserRepository
from .users import UserService

__all__ = [
    "AccountError",
    "AuthService",
    "ConfirmationNotRequested",
    "ConflictError",
    "EmailAlreadyInUse",
    "EmailAlreadyVerified",
    "EmailStatus",
    "InvalidConfirmationToken",
    "InvalidCredentials",
    "InvalidSessionToken",
    "InvalidStatusTransition",
    "InvalidTokenError",
    "LoginResult",
    "MailRecipient",
    "MailSender",
    "NewUser",
    "NewUserRecord",
    "NotFoundError",
    "PasswordHasher",
    "SensitiveUserView",
    "SessionClaims",
    "TokenCodec",
    "UserNotFound",
    "UserPatch",
    "UserRecord",
    "UserRepository",
    "UserService",
    "UserView",
]
