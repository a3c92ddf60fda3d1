"""Pydantic schemas for API requests and responses."""

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
from src.schemas.onboarding import (
    CompleteOnboardingRequest,
    OnboardingResponse,
    PersonaAudit,
    RoleResponse,
)
from src.schemas.user import UserEnvelope, UserResponse

__all__ = [
    "SignupRequest",
    "LoginRequest",
    "RefreshRequest",
    "ForgotPasswordRequest",
    "ResetPasswordRequest",
    "ChangePasswordRequest",
    "UpdateProfileRequest",
    "DeleteAccountRequest",
    "MessageResponse",
    "TokenPairResponse",
    "AuthResponse",
    "MessageUserResponse",
    "UserResponse",
    "UserEnvelope",
    "CompleteOnboardingRequest",
    "OnboardingResponse",
    "PersonaAudit",
    "RoleResponse",
]
