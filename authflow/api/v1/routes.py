"""
API v1 routes.

Defines REST endpoints for registration, login, profile management and
email confirmation. Domain exceptions are translated to HTTP errors here.

Handlers are plain functions so FastAPI runs the blocking database, SMTP
and bcrypt work in its threadpool.
"""

from fastapi import APIRouter, Depends, HTTPException, Response, status

from authflow.api.dependencies import get_auth_service, get_session_claims, get_user_service
from authflow.api.models import (
    ErrorResponse,
    LoginRequest,
    LoginResponse,
    MessageResponse,
    RegisterRequest,
    SessionUser,
    UpdateUserRequest,
    UserResponse,
)
from authflow.domain.auth import AuthService
from authflow.domain.exceptions import (
    ConfirmationNotRequested,
    ConflictError,
    EmailAlreadyInUse,
    EmailAlreadyVerified,
    InvalidConfirmationToken,
    InvalidCredentials,
    InvalidStatusTransition,
    UserNotFound,
)
from authflow.domain.models import NewUser, SessionClaims, UserPatch
from authflow.domain.users import UserService

router = APIRouter(tags=["v1"])


def _require_self(claims: SessionClaims, user_id: str) -> None:
    if claims.id != user_id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Cannot act on another account",
        )


def _not_found() -> HTTPException:
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")


@router.post(
    "/auth/register",
    response_model=UserResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        409: {"model": ErrorResponse, "description": "Email already in use"},
        422: {"description": "Validation error"},
    },
    summary="Register a new user",
    description="Create an account and send a confirmation link to its email address.",
)
def register(
    request_data: RegisterRequest,
    service: AuthService = Depends(get_auth_service),
) -> UserResponse:
    try:
        user = service.register(
            NewUser(
                name=request_data.name,
                email=request_data.email,
                password=request_data.password,
            )
        )
    except ConflictError:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Email already in use",
        ) from None
    return UserResponse.from_view(user)


@router.post(
    "/auth/login",
    response_model=LoginResponse,
    responses={401: {"model": ErrorResponse, "description": "Invalid credentials"}},
    summary="Log in",
)
def login(
    request_data: LoginRequest,
    service: AuthService = Depends(get_auth_service),
) -> LoginResponse:
    try:
        result = service.check_credentials(request_data.email, request_data.password)
    except InvalidCredentials:
        # Unknown email and wrong password are indistinguishable to the caller
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid credentials",
        ) from None
    return LoginResponse(token=result.token, user=SessionUser.from_claims(result.claims))


@router.get(
    "/users/{user_id}",
    response_model=UserResponse,
    responses={404: {"model": ErrorResponse, "description": "User not found"}},
    summary="Get a user",
)
def get_user(
    user_id: str,
    service: UserService = Depends(get_user_service),
) -> UserResponse:
    try:
        user = service.get_existing_by_id(user_id)
    except UserNotFound:
        raise _not_found() from None
    return UserResponse.from_view(user)


@router.patch(
    "/users/{user_id}",
    response_model=UserResponse,
    responses={
        403: {"model": ErrorResponse, "description": "Not the caller's account"},
        404: {"model": ErrorResponse, "description": "User not found"},
        409: {"model": ErrorResponse, "description": "Email in use or account changed concurrently"},
    },
    summary="Update name or email",
)
def update_user(
    user_id: str,
    request_data: UpdateUserRequest,
    claims: SessionClaims = Depends(get_session_claims),
    service: UserService = Depends(get_user_service),
) -> UserResponse:
    _require_self(claims, user_id)
    changes = request_data.model_dump(exclude_unset=True, exclude_none=True)
    try:
        user = service.update(user_id, UserPatch(**changes))
    except UserNotFound:
        raise _not_found() from None
    except EmailAlreadyInUse:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Email already in use",
        ) from None
    except InvalidStatusTransition:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Account changed concurrently",
        ) from None
    return UserResponse.from_view(user)


@router.delete(
    "/users/{user_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    responses={
        403: {"model": ErrorResponse, "description": "Not the caller's account"},
        404: {"model": ErrorResponse, "description": "User not found"},
    },
    summary="Delete an account",
)
def delete_user(
    user_id: str,
    claims: SessionClaims = Depends(get_session_claims),
    service: UserService = Depends(get_user_service),
) -> Response:
    _require_self(claims, user_id)
    try:
        service.delete(user_id)
    except UserNotFound:
        raise _not_found() from None
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post(
    "/users/{user_id}/email/send-confirmation",
    response_model=MessageResponse,
    status_code=status.HTTP_202_ACCEPTED,
    responses={
        404: {"model": ErrorResponse, "description": "User not found"},
        409: {"model": ErrorResponse, "description": "Email already verified"},
    },
    summary="(Re)send the confirmation email",
)
def send_confirmation(
    user_id: str,
    service: AuthService = Depends(get_auth_service),
) -> MessageResponse:
    try:
        service.resend_confirmation(user_id)
    except UserNotFound:
        raise _not_found() from None
    except ConflictError:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Email already verified",
        ) from None
    return MessageResponse(message="Confirmation email sent")


@router.get(
    "/users/{user_id}/email/confirm/{token}",
    response_model=UserResponse,
    responses={
        400: {"model": ErrorResponse, "description": "Invalid confirmation token"},
        404: {"model": ErrorResponse, "description": "User not found"},
        409: {"model": ErrorResponse, "description": "Already verified or never sent"},
    },
    summary="Confirm an email address",
    description="Target of the link delivered by the confirmation email.",
)
def confirm_email(
    user_id: str,
    token: str,
    service: UserService = Depends(get_user_service),
) -> UserResponse:
    try:
        user = service.confirm_email(user_id, token)
    except UserNotFound:
        raise _not_found() from None
    except InvalidConfirmationToken:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Confirmation token invalid",
        ) from None
    except EmailAlreadyVerified:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Email already verified",
        ) from None
    except ConfirmationNotRequested:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Confirmation token invalid",
        ) from None
    return UserResponse.from_view(user)
