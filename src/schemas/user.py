"""User response schemas."""

from datetime import datetime
from typing import Any

from src.models.user import User
from src.schemas.base import CamelModel

# Secrets that never leave the server
_CONNECTED_ACCOUNT_SECRETS = {"accessToken", "refreshToken"}


class SubscriptionResponse(CamelModel):
    """Subscription summary."""

    plan: str
    status: str
    current_period_start: datetime | None = None
    current_period_end: datetime | None = None
    trial_end: datetime | None = None


class UsageResponse(CamelModel):
    """Post generation usage."""

    posts_generated: int
    posts_generated_today: int
    last_reset_date: datetime | None = None


class UserResponse(CamelModel):
    """User record without password hash, one-time tokens or provider tokens."""

    id: int
    name: str
    email: str
    avatar: str | None = None
    email_verified: bool
    google_id: str | None = None
    linkedin_id: str | None = None
    is_active: bool
    connected_accounts: dict[str, Any]
    subscription: SubscriptionResponse
    usage: UsageResponse
    settings: dict[str, Any]
    onboarding_completed: bool
    onboarding_step: int
    persona_score: dict[str, Any] | None = None
    last_login_at: datetime | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @classmethod
    def from_user(cls, user: User) -> "UserResponse":
        connected_accounts = {
            platform: {
                key: value
                for key, value in (account or {}).items()
                if key not in _CONNECTED_ACCOUNT_SECRETS
            }
            for platform, account in (user.connected_accounts or {}).items()
        }
        return cls(
            id=user.id,
            name=user.name,
            email=user.email,
            avatar=user.avatar,
            email_verified=bool(user.email_verified),
            google_id=user.google_id,
            linkedin_id=user.linkedin_id,
            is_active=bool(user.is_active),
            connected_accounts=connected_accounts,
            subscription=SubscriptionResponse(
                plan=user.plan.value,
                status=getattr(user.subscription_status, "value", user.subscription_status),
                current_period_start=user.current_period_start,
                current_period_end=user.current_period_end,
                trial_end=user.trial_end,
            ),
            usage=UsageResponse(
                posts_generated=user.posts_generated or 0,
                posts_generated_today=user.posts_generated_today or 0,
                last_reset_date=user.usage_last_reset_date,
            ),
            settings=user.settings or {},
            onboarding_completed=bool(user.onboarding_completed),
            onboarding_step=user.onboarding_step or 0,
            persona_score=user.persona_score,
            last_login_at=user.last_login_at,
            created_at=user.created_at,
            updated_at=user.updated_at,
        )


class UserEnvelope(CamelModel):
    """``{"user": ...}`` response."""

    user: UserResponse
