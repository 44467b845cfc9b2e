"""
API request and response models.

Pydantic models for FastAPI endpoint validation and OpenAPI schema generation.
"""

from datetime import datetime

from pydantic import BaseModel, EmailStr, Field, field_validator

from authflow.domain.models import EmailStatus, SessionClaims, UserView

# bcrypt only looks at the first 72 bytes of a password and rejects longer input
MAX_PASSWORD_BYTES = 72


class RegisterRequest(BaseModel):
    """Request model for user registration."""

    name: str = Field(..., min_length=1, max_length=120)
    email: EmailStr
    password: str = Field(..., min_length=8, description="User password (min 8 characters)")

    @field_validator("password")
    @classmethod
    def password_fits_bcrypt(cls, value: str) -> str:
        if len(value.encode()) > MAX_PASSWORD_BYTES:
            raise ValueError(f"password must be at most {MAX_PASSWORD_BYTES} bytes")
        return value


class LoginRequest(BaseModel):
    """Request model for login."""

    email: EmailStr
    password: str


class UpdateUserRequest(BaseModel):
    """Partial profile update; omitted fields are left unchanged."""

    name: str | None = Field(default=None, min_length=1, max_length=120)
    email: EmailStr | None = None


class UserResponse(BaseModel):
    """Sanitized user representation."""

    id: str
    email: str
    name: str
    email_status: EmailStatus
    created_at: datetime

    @classmethod
    def from_view(cls, user: UserView) -> "UserResponse":
        return cls(
            id=user.id,
            email=user.email,
            name=user.name,
            email_status=user.email_status,
            created_at=user.created_at,
        )


class SessionUser(BaseModel):
    """Claims carried by the session token."""

    id: str
    email: str
    name: str
    email_status: EmailStatus

    @classmethod
    def from_claims(cls, claims: SessionClaims) -> "SessionUser":
        return cls(
            id=claims.id,
            email=claims.email,
            name=claims.name,
            email_status=claims.email_status,
        )


class LoginResponse(BaseModel):
    """Response model for successful login."""

    token: str
    user: SessionUser


class MessageResponse(BaseModel):
    message: str


class ErrorResponse(BaseModel):
    """Standard error response model."""

    detail: str
