"""
FastAPI dependencies - Dependency injection factories.

This module provides Depends() factories for injecting
domain services and infrastructure adapters into routes.
"""

from datetime import timedelta

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from psycopg_pool import ConnectionPool

from authflow.adapters.mail.console import ConsoleMailSender
from authflow.adapters.mail.smtp import SmtpMailSender
from authflow.adapters.repository.postgres import PostgresUserRepository
from authflow.adapters.security.bcrypt_hasher import BcryptPasswordHasher
from authflow.adapters.security.jwt_codec import JwtTokenCodec
from authflow.config.settings import Settings, get_settings
from authflow.domain.auth import AuthService, decode_session_token
from authflow.domain.exceptions import InvalidSessionToken
from authflow.domain.models import SessionClaims
from authflow.domain.ports import MailSender
from authflow.domain.users import UserService

# Module-level singleton - ConsoleMailSender is stateless
_console_mail_sender = ConsoleMailSender()


def get_pool(request: Request) -> ConnectionPool:
    """
    Get connection pool from app state.

    The pool is created during app lifespan startup and stored in app.state.
    """
    return request.app.state.pool


def get_repository(request: Request) -> PostgresUserRepository:
    """Create repository with connection pool from app state."""
    pool = get_pool(request)
    return PostgresUserRepository(pool)


def get_mail_sender(settings: Settings = Depends(get_settings)) -> MailSender:
    """Console sender in development, SMTP when mail_backend=smtp."""
    if settings.mail_backend == "smtp":
        return SmtpMailSender(
            host=settings.smtp_host,
            port=settings.smtp_port,
            username=settings.smtp_username,
            password=settings.smtp_password,
            from_email=settings.smtp_from_email,
            from_name=settings.smtp_from_name,
        )
    return _console_mail_sender


def get_password_hasher(settings: Settings = Depends(get_settings)) -> BcryptPasswordHasher:
    return BcryptPasswordHasher(rounds=settings.bcrypt_cost)


def get_token_codec(settings: Settings = Depends(get_settings)) -> JwtTokenCodec:
    """Codec bound to the process-wide signing secret."""
    return JwtTokenCodec(secret=settings.jwt_secret, algorithm=settings.jwt_algorithm)


def get_user_service(
    repository: PostgresUserRepository = Depends(get_repository),
    mail_sender: MailSender = Depends(get_mail_sender),
    password_hasher: BcryptPasswordHasher = Depends(get_password_hasher),
    token_codec: JwtTokenCodec = Depends(get_token_codec),
    settings: Settings = Depends(get_settings),
) -> UserService:
    """
    Create user service with injected dependencies.

    Wires together the repository, mail sender and security primitives.
    """
    return UserService(
        repository=repository,
        mail_sender=mail_sender,
        password_hasher=password_hasher,
        token_codec=token_codec,
        project_url=settings.project_url,
    )


def get_auth_service(
    user_service: UserService = Depends(get_user_service),
    password_hasher: BcryptPasswordHasher = Depends(get_password_hasher),
    token_codec: JwtTokenCodec = Depends(get_token_codec),
    settings: Settings = Depends(get_settings),
) -> AuthService:
    ttl = settings.session_token_ttl_seconds
    return AuthService(
        user_service=user_service,
        password_hasher=password_hasher,
        token_codec=token_codec,
        session_ttl=timedelta(seconds=ttl) if ttl else None,
    )


# Bearer security scheme for OpenAPI documentation
http_bearer = HTTPBearer()


def get_session_claims(
    credentials: HTTPAuthorizationCredentials = Depends(http_bearer),
    token_codec: JwtTokenCodec = Depends(get_token_codec),
) -> SessionClaims:
    """
    Resolve the caller's session token into claims.

    FastAPI's HTTPBearer rejects requests without a Bearer Authorization
    header before this runs.
    """
    try:
        return decode_session_token(token_codec, credentials.credentials)
    except InvalidSessionToken:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid session token",
            headers={"WWW-Authenticate": "Bearer"},
        ) from None
