"""
Domain exceptions - Semantic error types for accounts and authentication.

This module defines domain-specific exceptions that communicate
business rule violations without leaking infrastructure details.
The boundary layer maps each family to a response:

- NotFoundError: referenced user does not exist
- ConflictError: operation incompatible with current account state
- InvalidCredentials: login failure (unknown email and wrong password alike)
- InvalidTokenError: token failed signature or binding checks
"""


class AccountError(Exception):
    """Base class for account domain errors."""

    pass


class NotFoundError(AccountError):
    """Referenced entity does not exist."""

    pass


class ConflictError(AccountError):
    """Operation conflicts with the current account state."""

    pass


class InvalidCredentials(AccountError):
    """Email/password pair did not match an account."""

    pass


class InvalidTokenError(AccountError):
    """Token failed verification."""

    pass


class UserNotFound(NotFoundError):
    """No user with the given id."""

    pass


class EmailAlreadyInUse(ConflictError):
    """Another account is already registered with this email."""

    pass


class EmailAlreadyVerified(ConflictError):
    """Account email is already VERIFIED."""

    pass


class ConfirmationNotRequested(ConflictError):
    """Confirmation attempted before any confirmation email was sent."""

    pass


class InvalidStatusTransition(ConflictError):
    """Requested email status change would move the state machine backwards."""

    pass


class InvalidConfirmationToken(InvalidTokenError):
    """Confirmation token signature or binding check failed."""

    pass


class InvalidSessionToken(InvalidTokenError):
    """Session token is missing, malformed, expired or forged."""

    pass
