"""Authentication schemas."""

from typing import Any

from pydantic import EmailStr, Field, field_validator, model_validator

from src.schemas.base import CamelModel
from src.schemas.user import UserResponse

MIN_NAME_LENGTH = 2
MIN_PASSWORD_LENGTH = 8


def _check_name(value: str) -> str:
    value = value.strip()
    if len(value) < MIN_NAME_LENGTH:
        raise ValueError(f"Name must be at least {MIN_NAME_LENGTH} characters")
    return value


def _check_password(value: str, label: str = "Password") -> str:
    if len(value) < MIN_PASSWORD_LENGTH:
        raise ValueError(f"{label} must be at least {MIN_PASSWORD_LENGTH} characters")
    return value


class SignupRequest(CamelModel):
    """User registration request."""

    name: str = Field(..., max_length=255)
    email: EmailStr = Field(..., max_length=255)
    password: str = Field(..., max_length=128)

    @field_validator("name")
    @classmethod
    def validate_name(cls, value: str) -> str:
        return _check_name(value)

    @field_validator("email")
    @classmethod
    def lowercase_email(cls, value: str) -> str:
        return value.lower()

    @field_validator("password")
    @classmethod
    def validate_password(cls, value: str) -> str:
        return _check_password(value)


class LoginRequest(CamelModel):
    """User login request."""

    email: EmailStr = Field(..., max_length=255)
    password: str = Field(..., min_length=1, max_length=128)

    @field_validator("email")
    @classmethod
    def lowercase_email(cls, value: str) -> str:
        return value.lower()


class RefreshRequest(CamelModel):
    """Refresh token exchange; a missing or malformed token is an authentication failure."""

    refresh_token: str | None = None

    @model_validator(mode="before")
    @classmethod
    def ignore_non_object_body(cls, data: Any) -> Any:
        return data if isinstance(data, dict) else {}

    @field_validator("refresh_token", mode="before")
    @classmethod
    def ignore_non_string_token(cls, value: Any) -> str | None:
        return value if isinstance(value, str) else None


class ForgotPasswordRequest(CamelModel):
    email: EmailStr = Field(..., max_length=255)

    @field_validator("email")
    @classmethod
    def lowercase_email(cls, value: str) -> str:
        return value.lower()


class ResetPasswordRequest(CamelModel):
    password: str = Field(..., max_length=128)

    @field_validator("password")
    @classmethod
    def validate_password(cls, value: str) -> str:
        return _check_password(value)


class ChangePasswordRequest(CamelModel):
    current_password: str = Field(..., min_length=1, max_length=128)
    new_password: str = Field(..., max_length=128)

    @field_validator("new_password")
    @classmethod
    def validate_new_password(cls, value: str) -> str:
        return _check_password(value, label="New password")


class UpdateProfileRequest(CamelModel):
    """Profile changes; omitted fields are left untouched."""

    name: str | None = Field(None, max_length=255)
    email: EmailStr | None = None
    avatar: str | None = Field(None, max_length=1024)

    @field_validator("name")
    @classmethod
    def validate_name(cls, value: str | None) -> str | None:
        return _check_name(value) if value is not None else None

    @field_validator("email")
    @classmethod
    def lowercase_email(cls, value: str | None) -> str | None:
        return value.lower() if value is not None else None


class DeleteAccountRequest(CamelModel):
    """Password confirmation; ignored for accounts without a password."""

    password: str | None = Field(None, max_length=128)


class MessageResponse(CamelModel):
    message: str


class TokenPairResponse(CamelModel):
    """New access and refresh tokens."""

    message: str
    token: str
    refresh_token: str


class AuthResponse(TokenPairResponse):
    """Tokens plus the signed-in user."""

    user: UserResponse


class MessageUserResponse(CamelModel):
    message: str
    user: UserResponse
