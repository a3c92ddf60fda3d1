"""Authentication API endpoints."""

import logging
from datetime import UTC, datetime
from typing import Annotated

from fastapi import APIRouter, BackgroundTasks, Body, Depends, Request, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from src.api.dependencies import get_current_user, get_email_service, get_token_service
from src.config import get_settings
from src.database import get_db
from src.errors import (
    AuthenticationError,
    ConflictError,
    EmailDeliveryError,
    InvalidTokenError,
    ServerError,
    ValidationError,
)
from src.models.user import User
from src.rate_limit import limiter
from src.schemas.auth import (
    AuthResponse,
    ChangePasswordRequest,
    DeleteAccountRequest,
    ForgotPasswordRequest,
    LoginRequest,
    MessageResponse,
    MessageUserResponse,
    RefreshRequest,
    ResetPasswordRequest,
    SignupRequest,
    TokenPairResponse,
    UpdateProfileRequest,
)
from src.schemas.user import UserEnvelope, UserResponse
from src.services.auth import (
    authenticate_user,
    check_password,
    clear_email_verification_token,
    clear_password_reset_token,
    create_user,
    email_taken,
    get_user_by_email,
    get_user_by_id,
    get_user_by_reset_token,
    get_user_by_verification_token,
    issue_email_verification_token,
    issue_password_reset_token,
    set_password,
)
from src.services.email_service import EmailService, send_best_effort
from src.services.tokens import TokenService

logger = logging.getLogger(__name__)

settings = get_settings()

router = APIRouter(prefix="/api/auth", tags=["auth"])

INVALID_CREDENTIALS = "Invalid credentials"
INVALID_REFRESH_TOKEN = "Invalid or expired refresh token"  # noqa: S105
FORGOT_PASSWORD_MESSAGE = (
    "If an account exists with this email, a password reset link has been sent"
)


def _auth_response(message: str, user: User, tokens: TokenService) -> AuthResponse:
    pair = tokens.issue_token_pair(user.id)
    return AuthResponse(
        message=message,
        token=pair.token,
        refresh_token=pair.refresh_token,
        user=UserResponse.from_user(user),
    )


@router.post("/signup", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
@limiter.limit(settings.signup_rate_limit)
async def signup(
    request: Request,
    data: SignupRequest,
    background_tasks: BackgroundTasks,
    db: Annotated[Session, Depends(get_db)],
    tokens: Annotated[TokenService, Depends(get_token_service)],
    email_service: Annotated[EmailService, Depends(get_email_service)],
):
    """Register a new user and send the verification email in the background."""
    if get_user_by_email(db, data.email):
        raise ConflictError("User already exists with this email")

    try:
        user = create_user(db, data.name, data.email, data.password)
    except IntegrityError:
        db.rollback()
        raise ConflictError("User already exists with this email") from None

    verification_token = issue_email_verification_token(user)
    db.commit()
    db.refresh(user)

    background_tasks.add_task(
        send_best_effort,
        email_service.send_verification_email,
        user.email,
        user.name,
        verification_token,
    )

    logger.info(f"User {user.id} signed up")
    return _auth_response(
        "User created successfully. Please check your email to verify your account.",
        user,
        tokens,
    )


@router.post("/login", response_model=AuthResponse)
@limiter.limit(settings.login_rate_limit)
async def login(
    request: Request,
    credentials: LoginRequest,
    db: Annotated[Session, Depends(get_db)],
    tokens: Annotated[TokenService, Depends(get_token_service)],
):
    """Login with email and password."""
    user = authenticate_user(db, credentials.email, credentials.password)
    if not user:
        raise AuthenticationError(INVALID_CREDENTIALS)

    user.last_login_at = datetime.now(UTC)
    db.commit()
    db.refresh(user)

    return _auth_response("Login successful", user, tokens)


@router.get("/me", response_model=UserEnvelope)
async def get_me(
    current_user: Annotated[User, Depends(get_current_user)],
):
    """Get current user information."""
    return UserEnvelope(user=UserResponse.from_user(current_user))


@router.post("/refresh", response_model=TokenPairResponse)
async def refresh(
    db: Annotated[Session, Depends(get_db)],
    tokens: Annotated[TokenService, Depends(get_token_service)],
    data: Annotated[RefreshRequest | None, Body()] = None,
):
    """Exchange a refresh token for a new token pair.

    Every failure returns the same 401 so clients cannot tell an expired token
    from a deactivated account.
    """
    if data is None or not data.refresh_token:
        raise InvalidTokenError(INVALID_REFRESH_TOKEN)

    try:
        user_id = tokens.verify_refresh_token(data.refresh_token)
    except InvalidTokenError:
        raise InvalidTokenError(INVALID_REFRESH_TOKEN) from None

    user = get_user_by_id(db, user_id)
    if not user or not user.is_active:
        raise InvalidTokenError(INVALID_REFRESH_TOKEN)

    pair = tokens.issue_token_pair(user.id)
    return TokenPairResponse(
        message="Token refreshed successfully",
        token=pair.token,
        refresh_token=pair.refresh_token,
    )


@router.post("/logout", response_model=MessageResponse)
async def logout(
    current_user: Annotated[User, Depends(get_current_user)],
):
    """Logout (client should discard its tokens)."""
    return MessageResponse(message="Logout successful")


@router.get("/verify-email/{token}", response_model=MessageUserResponse)
async def verify_email(
    token: str,
    db: Annotated[Session, Depends(get_db)],
):
    """Confirm an email address with the token from the verification email."""
    user = get_user_by_verification_token(db, token)
    if not user:
        raise ValidationError("Invalid or expired verification token")

    user.email_verified = True
    clear_email_verification_token(user)
    db.commit()
    db.refresh(user)

    return MessageUserResponse(
        message="Email verified successfully", user=UserResponse.from_user(user)
    )


@router.post("/resend-verification", response_model=MessageResponse)
async def resend_verification(
    current_user: Annotated[User, Depends(get_current_user)],
    db: Annotated[Session, Depends(get_db)],
    email_service: Annotated[EmailService, Depends(get_email_service)],
):
    """Issue a new verification token and email it."""
    if current_user.email_verified:
        raise ValidationError("Email is already verified")

    verification_token = issue_email_verification_token(current_user)
    db.commit()

    try:
        await email_service.send_verification_email(
            current_user.email, current_user.name, verification_token
        )
    except EmailDeliveryError:
        raise ServerError("Error sending verification email") from None

    return MessageResponse(message="Verification email sent successfully")


@router.post("/forgot-password", response_model=MessageResponse)
@limiter.limit(settings.password_reset_rate_limit)
async def forgot_password(
    request: Request,
    data: ForgotPasswordRequest,
    db: Annotated[Session, Depends(get_db)],
    email_service: Annotated[EmailService, Depends(get_email_service)],
):
    """Email a password reset link.

    The response is identical whether or not the address is registered. If the
    email cannot be sent the reset token is withdrawn.
    """
    user = get_user_by_email(db, data.email)
    if user and user.is_active:
        reset_token = issue_password_reset_token(user)
        db.commit()

        try:
            await email_service.send_password_reset_email(user.email, user.name, reset_token)
        except EmailDeliveryError:
            clear_password_reset_token(user)
            db.commit()
            raise ServerError("Error sending password reset email") from None

    return MessageResponse(message=FORGOT_PASSWORD_MESSAGE)


@router.post("/reset-password/{token}", response_model=AuthResponse)
async def reset_password(
    token: str,
    data: ResetPasswordRequest,
    db: Annotated[Session, Depends(get_db)],
    tokens: Annotated[TokenService, Depends(get_token_service)],
):
    """Set a new password using the token from the reset email."""
    user = get_user_by_reset_token(db, token)
    if not user:
        raise ValidationError("Invalid or expired reset token")

    set_password(user, data.password)
    clear_password_reset_token(user)
    user.password_changed_at = datetime.now(UTC)
    db.commit()
    db.refresh(user)

    logger.info(f"User {user.id} reset their password")
    return _auth_response("Password reset successful", user, tokens)


@router.post("/change-password", response_model=TokenPairResponse)
async def change_password(
    data: ChangePasswordRequest,
    current_user: Annotated[User, Depends(get_current_user)],
    db: Annotated[Session, Depends(get_db)],
    tokens: Annotated[TokenService, Depends(get_token_service)],
):
    """Change password for the signed-in user."""
    if not check_password(current_user, data.current_password):
        raise AuthenticationError("Current password is incorrect")

    set_password(current_user, data.new_password)
    current_user.password_changed_at = datetime.now(UTC)
    db.commit()

    pair = tokens.issue_token_pair(current_user.id)
    return TokenPairResponse(
        message="Password changed successfully",
        token=pair.token,
        refresh_token=pair.refresh_token,
    )


@router.put("/update-profile", response_model=MessageUserResponse)
async def update_profile(
    data: UpdateProfileRequest,
    background_tasks: BackgroundTasks,
    current_user: Annotated[User, Depends(get_current_user)],
    db: Annotated[Session, Depends(get_db)],
    email_service: Annotated[EmailService, Depends(get_email_service)],
):
    """Update name, avatar or email; a new email must be verified again."""
    verification_token = None
    if data.email and data.email != current_user.email:
        if email_taken(db, data.email, exclude_user_id=current_user.id):
            raise ConflictError("Email is already in use")
        current_user.email = data.email
        current_user.email_verified = False
        verification_token = issue_email_verification_token(current_user)

    if data.name:
        current_user.name = data.name
    if data.avatar:
        current_user.avatar = data.avatar

    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise ConflictError("Email is already in use") from None
    db.refresh(current_user)

    if verification_token:
        background_tasks.add_task(
            send_best_effort,
            email_service.send_verification_email,
            current_user.email,
            current_user.name,
            verification_token,
        )

    return MessageUserResponse(
        message="Profile updated successfully", user=UserResponse.from_user(current_user)
    )


@router.delete("/delete-account", response_model=MessageResponse)
async def delete_account(
    current_user: Annotated[User, Depends(get_current_user)],
    db: Annotated[Session, Depends(get_db)],
    data: Annotated[DeleteAccountRequest | None, Body()] = None,
):
    """Soft-delete the account after confirming the password, if one is set."""
    if current_user.password_hash:
        password = data.password if data else None
        if not password or not check_password(current_user, password):
            raise AuthenticationError("Incorrect password")

    current_user.soft_delete()
    db.commit()

    logger.info(f"User {current_user.id} deleted their account")
    return MessageResponse(message="Account deleted successfully")
