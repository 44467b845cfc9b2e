"""
Domain models - User record, its outward projections and input structures.

Projections are built by explicit field selection so the password hash
can only ever leave the domain through SensitiveUserView.
"""

from dataclasses import dataclass, replace
from datetime import datetime
from enum import Enum
from typing import Any


class EmailStatus(str, Enum):
    """
    Email verification states.

    State Transitions (forward-only):
    - UNVERIFIED -> PENDING  (confirmation email delivered)
    - PENDING -> PENDING     (confirmation email re-sent)
    - PENDING -> VERIFIED    (confirmation token accepted)

    Terminal States:
    - VERIFIED: no further transitions

    Note: Forward-only transitions are enforced by UserService.update().
    """

    UNVERIFIED = "UNVERIFIED"
    PENDING = "PENDING"
    VERIFIED = "VERIFIED"

    @property
    def rank(self) -> int:
        return list(EmailStatus).index(self)

    def can_transition_to(self, target: "EmailStatus") -> bool:
        """True unless ``target`` lies behind this state."""
        return target.rank >= self.rank


@dataclass(frozen=True)
class UserView:
    """Sanitized user projection; never carries the password hash."""

    id: str
    email: str
    name: str
    email_status: EmailStatus
    created_at: datetime


@dataclass(frozen=True)
class SensitiveUserView(UserView):
    """User projection including the password hash. Login only."""

    password_hash: str


@dataclass(frozen=True)
class UserRecord:
    """Full user record as held by the credential store."""

    id: str
    email: str
    name: str
    password_hash: str
    email_status: EmailStatus
    created_at: datetime

    def sanitized(self) -> UserView:
        return UserView(
            id=self.id,
            email=self.email,
            name=self.name,
            email_status=self.email_status,
            created_at=self.created_at,
        )

    def sensitive(self) -> SensitiveUserView:
        return SensitiveUserView(
            id=self.id,
            email=self.email,
            name=self.name,
            email_status=self.email_status,
            created_at=self.created_at,
            password_hash=self.password_hash,
        )


@dataclass(frozen=True)
class NewUser:
    """Registration data as received from the boundary layer."""

    name: str
    email: str
    password: str


@dataclass(frozen=True)
class NewUserRecord:
    """What the credential store receives on create."""

    name: str
    email: str
    password_hash: str
    email_status: EmailStatus = EmailStatus.UNVERIFIED


@dataclass(frozen=True)
class UserPatch:
    """
    Partial update. A field left as None is absent from the patch.

    apply() merges field by field: a present patch value wins, otherwise
    the current value is kept.
    """

    name: str | None = None
    email: str | None = None
    email_status: EmailStatus | None = None

    def apply(self, user: UserView) -> UserView:
        changes = {
            key: value
            for key, value in (
                ("name", self.name),
                ("email", self.email),
                ("email_status", self.email_status),
            )
            if value is not None
        }
        return replace(user, **changes)

    def is_empty(self) -> bool:
        return self.name is None and self.email is None and self.email_status is None


@dataclass(frozen=True)
class SessionClaims:
    """Whitelisted user attributes carried by a session token."""

    id: str
    email: str
    name: str
    email_status: EmailStatus

    @classmethod
    def from_user(cls, user: UserView) -> "SessionClaims":
        return cls(
            id=user.id,
            email=user.email,
            name=user.name,
            email_status=user.email_status,
        )

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> "SessionClaims":
        """Rebuild claims from a decoded token. Raises KeyError/ValueError if malformed."""
        return cls(
            id=str(payload["id"]),
            email=str(payload["email"]),
            name=str(payload["name"]),
            email_status=EmailStatus(payload["email_status"]),
        )

    def to_payload(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "email": self.email,
            "name": self.name,
            "email_status": self.email_status.value,
        }


@dataclass(frozen=True)
class LoginResult:
    """Signed session token plus the claims it carries."""

    token: str
    claims: SessionClaims


@dataclass(frozen=True)
class MailRecipient:
    email: str
    name: str
